"""Tests for engine configuration loading and logging setup."""

import logging
import os

from duketiles.config import DEPTH_ENV_VAR, load_engine_config, setup_logging
from duketiles.engine.evaluator import EvalWeights
from duketiles.engine.search import SearchConfig

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class TestLoadEngineConfig:
    def test_defaults_without_file(self, monkeypatch):
        monkeypatch.delenv(DEPTH_ENV_VAR, raising=False)
        config = load_engine_config()
        assert config.search == SearchConfig()
        assert config.weights == EvalWeights()
        assert config.log_level == "INFO"

    def test_bundled_config(self, monkeypatch):
        monkeypatch.delenv(DEPTH_ENV_VAR, raising=False)
        config = load_engine_config(os.path.join(REPO_ROOT, "configs", "engine.yaml"))
        assert config.search.max_depth == 3
        assert config.search.time_budget is None
        assert config.weights.safety == 8

    def test_from_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(DEPTH_ENV_VAR, raising=False)
        path = tmp_path / "engine.yaml"
        path.write_text(
            "search:\n"
            "  max_depth: 5\n"
            "  time_budget: 2.5\n"
            "  workers: 4\n"
            "  aspiration: true\n"
            "eval:\n"
            "  material: 20\n"
            "logging:\n"
            "  level: debug\n"
        )
        config = load_engine_config(path)
        assert config.search == SearchConfig(max_depth=5, time_budget=2.5, workers=4)
        assert config.weights.material == 20
        assert config.weights.mobility == EvalWeights().mobility
        assert config.log_level == "DEBUG"

    def test_empty_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(DEPTH_ENV_VAR, raising=False)
        path = tmp_path / "engine.yaml"
        path.write_text("")
        assert load_engine_config(path).search == SearchConfig()

    def test_env_overrides_depth(self, tmp_path, monkeypatch):
        path = tmp_path / "engine.yaml"
        path.write_text("search:\n  max_depth: 5\n")
        monkeypatch.setenv(DEPTH_ENV_VAR, "2")
        assert load_engine_config(path).search.max_depth == 2


class TestSetupLogging:
    def test_level_and_file(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging("DEBUG", str(log_file))
        logging.getLogger("duketiles.test").debug("hello from the test")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert logging.getLogger().level == logging.DEBUG
        assert "[duketiles.test] DEBUG: hello from the test" in log_file.read_text()
        setup_logging(logging.WARNING)
