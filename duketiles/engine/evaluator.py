"""Static position evaluation for the alpha-beta search.

Every term is computed once from White's side as (White minus Black) in
integers, and the perspective only flips the sign, so
score(s, WHITE) == -score(s, BLACK) holds exactly.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional

from duketiles.game.moves import generate_actions, threats_against
from duketiles.game.state import GameState, Phase, Player, opponent

# Reserved score for a decided game; dominates any heuristic total
WIN_SCORE = 1_000_000


@dataclass
class EvalWeights:
    material: int = 10
    mobility: int = 1
    safety: int = 8
    center: int = 1

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> EvalWeights:
        """Build from config, ignoring keys that are not weights."""
        known = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: int(v) for k, v in (d or {}).items() if k in known})


@dataclass
class PositionEval:
    """Evaluation of a game position, from White's side."""
    score: int
    material: int = 0
    mobility: int = 0
    safety: int = 0
    center: int = 0


class Evaluator:
    """Material, mobility, command-piece safety and center control."""

    def __init__(self, weights: Optional[EvalWeights] = None):
        self.weights = weights or EvalWeights()

    def score(self, state: GameState, perspective: int) -> int:
        """Signed score, higher is better for the perspective player."""
        white = self.evaluate(state).score
        return white if perspective == Player.WHITE else -white

    def evaluate(self, state: GameState) -> PositionEval:
        if state.phase == Phase.FINISHED:
            return PositionEval(WIN_SCORE if state.winner == Player.WHITE else -WIN_SCORE)

        material = self._material(state)
        mobility = (len(generate_actions(state, Player.WHITE))
                    - len(generate_actions(state, Player.BLACK)))
        safety = self._safety(state)
        center = self._center(state)

        w = self.weights
        total = (material * w.material + mobility * w.mobility
                 + safety * w.safety + center * w.center)
        return PositionEval(total, material, mobility, safety, center)

    def _material(self, state: GameState) -> int:
        value = 0
        for piece in state.pieces.values():
            tile_value = state.catalog.value_of(piece.tile_id)
            value += tile_value if piece.player == Player.WHITE else -tile_value
        return value

    def _safety(self, state: GameState) -> int:
        """Attacks on the enemy command piece minus attacks on our own."""
        total = 0
        for player in Player:
            enemy = opponent(player)
            if not state.has_command_piece(enemy):
                continue
            square = state.command_piece_of(enemy).position
            hits = threats_against(state, player, square)
            total += hits if player == Player.WHITE else -hits
        return total

    def _center(self, state: GameState) -> int:
        # Doubled coordinates keep the board center on an integer
        span_r, span_c = state.rows - 1, state.cols - 1
        total = 0
        for piece in state.pieces.values():
            if piece.is_command:
                continue
            r, c = piece.position
            closeness = span_r + span_c - abs(2 * r - span_r) - abs(2 * c - span_c)
            total += closeness if piece.player == Player.WHITE else -closeness
        return total
