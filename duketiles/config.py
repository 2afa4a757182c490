"""Engine configuration loading and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

from duketiles.engine.evaluator import EvalWeights
from duketiles.engine.search import SearchConfig

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

# Overrides search.max_depth from the config file
DEPTH_ENV_VAR = "DUKETILES_SEARCH_DEPTH"


@dataclass
class EngineConfig:
    search: SearchConfig = field(default_factory=SearchConfig)
    weights: EvalWeights = field(default_factory=EvalWeights)
    log_level: str = "INFO"


def load_engine_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load engine settings from YAML. Missing file sections use defaults."""
    data = {}
    if path is not None:
        with open(path) as f:
            data = yaml.safe_load(f) or {}

    search = dict(data.get("search") or {})
    depth = os.environ.get(DEPTH_ENV_VAR)
    if depth:
        search["max_depth"] = int(depth)

    return EngineConfig(
        search=SearchConfig.from_dict(search),
        weights=EvalWeights.from_dict(data.get("eval")),
        log_level=str((data.get("logging") or {}).get("level", "INFO")).upper(),
    )


def setup_logging(level: Union[str, int] = logging.INFO, log_file: Optional[str] = None):
    """Set up logging to console, and to a file if given."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
