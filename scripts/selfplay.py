#!/usr/bin/env python3
"""Play AI-vs-AI games through the session API.

Usage:
    python scripts/selfplay.py                        # one game, default config
    python scripts/selfplay.py --games 5 --depth 2    # five shallow games
    python scripts/selfplay.py --catalog my_tiles.yaml --out games/
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from duketiles.config import load_engine_config, setup_logging
from duketiles.engine.evaluator import Evaluator
from duketiles.engine.search import SearchConfig
from duketiles.game.catalog import load_catalog
from duketiles.game.session import GameSession
from duketiles.game.state import Phase

logger = logging.getLogger("duketiles.selfplay")

DEFAULT_CONFIG = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
                              "configs", "engine.yaml")


def play_game(session: GameSession, max_plies: int, show: bool) -> str:
    """Play one game to the end or to the ply limit. Returns the result string."""
    while session.phase != Phase.FINISHED and session.state.ply < max_plies:
        session.play_ai_turn()
        if show:
            print(session.state.render())
            print()
    return session.result or "*"


def main():
    parser = argparse.ArgumentParser(description="DukeTiles AI self-play")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Engine config YAML")
    parser.add_argument("--catalog", default=None, help="Tile catalog YAML (default: bundled)")
    parser.add_argument("--games", type=int, default=1)
    parser.add_argument("--depth", type=int, default=None, help="Override search depth")
    parser.add_argument("--time", type=float, default=None, help="Seconds per move")
    parser.add_argument("--max-plies", type=int, default=200)
    parser.add_argument("--out", default=None, help="Directory for game records")
    parser.add_argument("--show", action="store_true", help="Print the board after each ply")
    parser.add_argument("--log-file", default=None)
    args = parser.parse_args()

    config = load_engine_config(args.config)
    setup_logging(config.log_level, args.log_file)

    search = config.search
    if args.depth is not None or args.time is not None:
        search = SearchConfig(
            max_depth=args.depth if args.depth is not None else search.max_depth,
            time_budget=args.time if args.time is not None else search.time_budget,
            workers=search.workers,
        )

    catalog = load_catalog(args.catalog)
    evaluator = Evaluator(config.weights)
    results = {"1-0": 0, "0-1": 0, "*": 0}

    for i in range(args.games):
        session = GameSession(catalog, search_config=search, evaluator=evaluator)
        result = play_game(session, args.max_plies, args.show)
        results[result] += 1
        logger.info("Game %d/%d: %s after %d plies", i + 1, args.games, result, session.state.ply)

        if args.out:
            os.makedirs(args.out, exist_ok=True)
            path = os.path.join(args.out, f"game_{i + 1:04d}.txt")
            headers = {"White": f"alphabeta-{search.max_depth}",
                       "Black": f"alphabeta-{search.max_depth}"}
            with open(path, "w") as f:
                f.write(session.record(headers) + "\n")

    print(f"White wins: {results['1-0']}  Black wins: {results['0-1']}  "
          f"Unfinished: {results['*']}")


if __name__ == "__main__":
    main()
