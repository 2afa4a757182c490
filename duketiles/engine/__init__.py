"""Position evaluation and alpha-beta search."""

from duketiles.engine.evaluator import WIN_SCORE, EvalWeights, Evaluator, PositionEval
from duketiles.engine.search import AlphaBetaSearch, SearchConfig, SearchResult, best_action

__all__ = [
    "WIN_SCORE", "EvalWeights", "Evaluator", "PositionEval",
    "AlphaBetaSearch", "SearchConfig", "SearchResult", "best_action",
]
