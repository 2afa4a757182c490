"""Iterative-deepening alpha-beta search.

Every branch works on a clone of the state, so the caller's state is
never touched. Root actions are searched in move-generator order and a
later action only replaces the best one on a strictly higher score, which
makes the result deterministic for a given state and configuration.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from duketiles.game.errors import InvalidPhase, NoLegalMoves
from duketiles.game.moves import captured_piece, generate_actions, setup_actions
from duketiles.game.notation import action_to_notation
from duketiles.game.rules import apply_action
from duketiles.game.state import Action, GameState, Phase, Player
from duketiles.engine.evaluator import WIN_SCORE, Evaluator

logger = logging.getLogger("duketiles.search")

INF = WIN_SCORE * 10
# Mate scores are shifted by at most this many plies
MAX_PLY = 1000


@dataclass
class SearchConfig:
    max_depth: int = 3
    time_budget: Optional[float] = None  # seconds, None = no limit
    workers: int = 1

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.max_depth}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        if self.time_budget is not None and self.time_budget < 0:
            raise ValueError(f"time_budget must not be negative, got {self.time_budget}")

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> SearchConfig:
        """Build from config, ignoring unknown keys."""
        d = d or {}
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {k: v for k, v in d.items() if k in known}
        if "max_depth" in kwargs:
            kwargs["max_depth"] = int(kwargs["max_depth"])
        if "workers" in kwargs:
            kwargs["workers"] = int(kwargs["workers"])
        if kwargs.get("time_budget") is not None:
            kwargs["time_budget"] = float(kwargs["time_budget"])
        return cls(**kwargs)


@dataclass
class SearchResult:
    action: Action
    score: Optional[int]
    depth: int  # deepest fully completed iteration, 0 if none
    nodes: int
    elapsed: float
    timed_out: bool = False


class SearchTimeout(Exception):
    """Raised inside the tree when the time budget runs out."""


class _Counter:
    def __init__(self):
        self.nodes = 0


def is_win_score(score: int) -> bool:
    return abs(score) >= WIN_SCORE - MAX_PLY


def _node_actions(state: GameState) -> list[Action]:
    if state.phase == Phase.SETUP:
        return setup_actions(state)
    return generate_actions(state, state.current_player)


class AlphaBetaSearch:
    """Minimax with alpha-beta pruning, from the root player's point of view."""

    def __init__(self, config: Optional[SearchConfig] = None,
                 evaluator: Optional[Evaluator] = None):
        self.config = config or SearchConfig()
        self.evaluator = evaluator or Evaluator()

    def search(self, state: GameState, player: int) -> SearchResult:
        if state.phase == Phase.FINISHED:
            raise InvalidPhase("Cannot search a finished game")
        player = Player(player)
        if player != state.current_player:
            raise InvalidPhase(f"It is {state.current_player.name}'s turn, not {player.name}'s")

        actions = _node_actions(state)
        if not actions:
            raise NoLegalMoves(f"{player.name} has no legal actions")

        start = time.monotonic()
        budget = self.config.time_budget
        deadline = start + budget if budget is not None else None
        counter = _Counter()

        # Nothing completed yet: fall back to the first generated action
        best_action, best_score, completed = actions[0], None, 0
        timed_out = False

        for depth in range(1, self.config.max_depth + 1):
            try:
                if self.config.workers > 1 and len(actions) > 1:
                    action, score = self._search_root_parallel(
                        state, player, actions, depth, deadline, counter)
                else:
                    action, score = self._search_root(
                        state, player, actions, depth, deadline, counter)
            except SearchTimeout:
                timed_out = True
                logger.info("Time budget %.2fs ran out during depth %d, keeping depth %d",
                            self.config.time_budget, depth, completed)
                break

            best_action, best_score, completed = action, score, depth
            logger.debug("depth=%d score=%d nodes=%d elapsed=%.3fs best=%s",
                         depth, score, counter.nodes, time.monotonic() - start,
                         action_to_notation(action))
            if score > 0 and is_win_score(score):
                # Forced win found; deeper search cannot improve on it
                break

        return SearchResult(best_action, best_score, completed, counter.nodes,
                            time.monotonic() - start, timed_out)

    def _search_root(self, state, player, actions, depth, deadline, counter):
        best_action, best_score = None, -INF
        alpha = -INF
        for action in actions:
            child = state.clone()
            apply_action(child, action, validate=False)
            score = self._alphabeta(child, depth - 1, alpha, INF, player, 1, deadline, counter)
            if best_action is None or score > best_score:
                best_action, best_score = action, score
            alpha = max(alpha, best_score)
        return best_action, best_score

    def _search_root_parallel(self, state, player, actions, depth, deadline, counter):
        """Search every root action with a full window on its own clone.

        Results are reduced in generation order once all workers finish, so
        the answer matches the sequential search.
        """
        def run(action):
            local = _Counter()
            child = state.clone()
            apply_action(child, action, validate=False)
            score = self._alphabeta(child, depth - 1, -INF, INF, player, 1, deadline, local)
            return score, local.nodes

        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            futures = [pool.submit(run, action) for action in actions]
            try:
                results = [f.result() for f in futures]
            except SearchTimeout:
                for f in futures:
                    f.cancel()
                raise

        best_action, best_score = None, -INF
        for action, (score, nodes) in zip(actions, results):
            counter.nodes += nodes
            if best_action is None or score > best_score:
                best_action, best_score = action, score
        return best_action, best_score

    def _alphabeta(self, state: GameState, depth: int, alpha: int, beta: int,
                   root: Player, ply: int, deadline: Optional[float],
                   counter: _Counter) -> int:
        counter.nodes += 1
        if deadline is not None and time.monotonic() >= deadline:
            raise SearchTimeout()

        if state.phase == Phase.FINISHED:
            score = self.evaluator.score(state, root)
            # Prefer faster wins and slower losses
            return score - ply if score > 0 else score + ply
        if depth == 0:
            return self.evaluator.score(state, root)

        actions = _node_actions(state)
        if not actions:
            return self.evaluator.score(state, root)
        actions = self._order(state, actions)

        if state.current_player == root:
            value = -INF
            for action in actions:
                child = state.clone()
                apply_action(child, action, validate=False)
                value = max(value, self._alphabeta(child, depth - 1, alpha, beta,
                                                   root, ply + 1, deadline, counter))
                alpha = max(alpha, value)
                if alpha >= beta:
                    break
            return value

        value = INF
        for action in actions:
            child = state.clone()
            apply_action(child, action, validate=False)
            value = min(value, self._alphabeta(child, depth - 1, alpha, beta,
                                               root, ply + 1, deadline, counter))
            beta = min(beta, value)
            if alpha >= beta:
                break
        return value

    def _order(self, state: GameState, actions: list[Action]) -> list[Action]:
        """Captures first, most valuable victim first; otherwise generation order."""
        def key(action):
            victim = captured_piece(state, action)
            return -state.catalog.value_of(victim.tile_id) if victim is not None else 0
        return sorted(actions, key=key)


def best_action(state: GameState, player: int, config: Optional[SearchConfig] = None,
                evaluator: Optional[Evaluator] = None) -> Action:
    """Pick an action for the player to move."""
    return AlphaBetaSearch(config, evaluator).search(state, player).action
