"""Shared fixtures: catalogs, empty positions, piece placement, random playouts."""

import copy
import random

import pytest

from duketiles.game.catalog import TileCatalog, load_catalog
from duketiles.game.moves import legal_actions, setup_actions
from duketiles.game.rules import apply_action
from duketiles.game.state import GameState, Phase, Player

# Small catalog with one tile per action kind, for position tests.
# White's forward is +row; Black's grid is point-reflected.
TEST_CATALOG = {
    "board": {"rows": 6, "cols": 6},
    "rules": {"allow_reserve_placement": False},
    "setup": {"command_tile": "king", "placements": [], "pool": []},
    "tiles": {
        "king": {
            "front": [["move", 1, 0], ["move", 0, 1], ["move", -1, 0], ["move", 0, -1]],
            "back": [["move", 1, 0], ["move", 0, 1], ["move", -1, 0], ["move", 0, -1]],
        },
        "rook": {"symbol": "R", "front": [["slide", 1, 0]], "back": [["slide", -1, 0]]},
        "archer": {"symbol": "A", "front": [["strike", 2, 0]], "back": [["move", 1, 0]]},
        "captain": {
            "symbol": "C",
            "front": [["command", 0, 1], ["command", 0, -1]],
            "back": [["move", 1, 0]],
        },
        "pawn": {"symbol": "P", "value": 2, "front": [["move", 1, 0]], "back": [["move", 1, 0]]},
        "leaper": {"symbol": "L", "front": [["move", 2, 1], ["jump", 2, -1]],
                   "back": [["move", -1, 0]]},
        "statue": {"symbol": "S", "front": [["strike", 1, 0]], "back": [["strike", 1, 0]]},
    },
}


@pytest.fixture(scope="session")
def catalog():
    """The bundled default catalog."""
    return load_catalog()


@pytest.fixture
def make_catalog():
    """Build the small test catalog, optionally with rule or board overrides."""
    def _make(board=None, **rules):
        data = copy.deepcopy(TEST_CATALOG)
        data["rules"].update(rules)
        if board:
            data["board"].update(board)
        return TileCatalog.from_dict(data)
    return _make


@pytest.fixture
def test_catalog(make_catalog):
    return make_catalog()


@pytest.fixture
def empty_state(test_catalog):
    """In-progress state on the test catalog with nothing on the board."""
    return GameState.empty(test_catalog)


@pytest.fixture
def place():
    """Put a piece straight onto the board, bypassing the rules engine."""
    def _place(state, player, tile_id, pos, command=False, flipped=False):
        piece = state.place_piece(Player(player), tile_id, pos, is_command=command)
        if flipped:
            state.flip_piece(piece)
        return piece
    return _place


def play_random(state: GameState, rng: random.Random, plies: int) -> GameState:
    """Apply random legal actions (setup included) until plies or the game ends."""
    for _ in range(plies):
        if state.phase == Phase.FINISHED:
            break
        if state.phase == Phase.SETUP:
            actions = setup_actions(state)
        else:
            actions = legal_actions(state)
        if not actions:
            break
        apply_action(state, rng.choice(actions))
    return state


@pytest.fixture
def playout(catalog):
    """Random game on the default catalog, reproducible by seed."""
    def _playout(seed, plies):
        return play_random(GameState(catalog), random.Random(seed), plies)
    return _playout
