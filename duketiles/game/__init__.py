"""DukeTiles game engine: catalog, state, move generation, rules, notation."""

from duketiles.game.catalog import ActionKind, TileCatalog, TileDefinition, load_catalog
from duketiles.game.state import GameState, Phase, Piece, PlaceTile, Player, UnitAction
from duketiles.game.moves import legal_actions, setup_actions
from duketiles.game.rules import Outcome, apply_action, apply_action_copy, check_winner
from duketiles.game.board import render_board, rc_to_notation, notation_to_rc
from duketiles.game.notation import (
    action_from_dict, action_to_dict, action_to_notation, notation_to_action,
)
from duketiles.game.session import GameSession

__all__ = [
    "ActionKind", "TileCatalog", "TileDefinition", "load_catalog",
    "GameState", "Phase", "Piece", "PlaceTile", "Player", "UnitAction",
    "legal_actions", "setup_actions",
    "Outcome", "apply_action", "apply_action_copy", "check_winner",
    "render_board", "rc_to_notation", "notation_to_rc",
    "action_from_dict", "action_to_dict", "action_to_notation", "notation_to_action",
    "GameSession",
]
