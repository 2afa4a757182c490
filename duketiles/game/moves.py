"""Legal action generation.

Placements come first (pool order, then adjacency direction order), followed
by unit actions in piece placement order and then face entry order. The
order is part of the contract: search tie-breaking depends on it.
"""

from __future__ import annotations

from typing import Callable, Optional

from duketiles.game.board import ADJACENCY, Position
from duketiles.game.catalog import ActionKind
from duketiles.game.errors import InvalidPhase
from duketiles.game.state import (
    Action, GameState, Phase, Piece, PlaceTile, Player, UnitAction,
)


def legal_actions(state: GameState, player: Optional[int] = None) -> list[Action]:
    """All legal actions for a player (default: the player to move).

    Only valid while the game is in progress; use setup_actions during Setup.
    """
    if state.phase != Phase.IN_PROGRESS:
        raise InvalidPhase(f"legal_actions requested during {state.phase.value}")
    player = state.current_player if player is None else Player(player)
    return generate_actions(state, player)


def generate_actions(state: GameState, player: Player) -> list[Action]:
    """Enumerate actions without any phase check."""
    actions: list[Action] = []
    if state.catalog.rules.allow_reserve_placement:
        _gen_reserve_placements(state, player, actions)
    for piece in state.pieces_of(player):
        _gen_piece_actions(state, piece, actions)
    return actions


def setup_actions(state: GameState, player: Optional[int] = None) -> list[PlaceTile]:
    """Placements available to a player during Setup.

    The first queued tile is the command tile, placed on one of the allowed
    home-row columns. Later tiles go next to the command piece.
    """
    if state.phase != Phase.SETUP:
        raise InvalidPhase(f"setup_actions requested during {state.phase.value}")
    player = state.current_player if player is None else Player(player)
    queue = state.setup_queues[player]
    if not queue:
        return []

    tile_id = queue[0]
    actions = []
    if not state.has_command_piece(player):
        row = state.home_row(player)
        for col in state.catalog.setup.command_columns:
            pos = (row, col)
            if state.piece_at(pos) is None and not state.is_blocked(pos):
                actions.append(PlaceTile(tile_id, pos))
        return actions

    for pos in _placement_cells(state, player):
        actions.append(PlaceTile(tile_id, pos))
    return actions


def actions_for_piece(state: GameState, piece: Piece) -> list[UnitAction]:
    actions: list[Action] = []
    _gen_piece_actions(state, piece, actions)
    return actions


def placement_actions(state: GameState, player: int) -> list[PlaceTile]:
    actions: list[Action] = []
    _gen_reserve_placements(state, Player(player), actions)
    return actions


def captured_piece(state: GameState, action: Action) -> Optional[Piece]:
    """The enemy piece an action would remove, or None."""
    if not isinstance(action, UnitAction):
        return None
    actor = state.piece_at(action.source)
    victim = state.piece_at(action.hit_square)
    if actor is None or victim is None or victim.player == actor.player:
        return None
    return victim


def threats_against(state: GameState, player: int, square: Position) -> int:
    """Number of the player's actions that would capture on the given square."""
    count = 0
    for piece in state.pieces_of(player):
        for action in actions_for_piece(state, piece):
            if action.hit_square == square and captured_piece(state, action) is not None:
                count += 1
    return count


def _placement_cells(state: GameState, player: int) -> list[Position]:
    """Empty, unblocked cells next to the player's command piece."""
    cmd = state.command_piece_of(player)
    r, c = cmd.position
    cells = []
    for dr, dc in ADJACENCY[state.catalog.rules.placement_adjacency]:
        pos = (r + dr, c + dc)
        if state.in_bounds(pos) and not state.is_blocked(pos) and state.piece_at(pos) is None:
            cells.append(pos)
    return cells


def _gen_reserve_placements(state: GameState, player: Player, actions: list[Action]):
    pool = state.pools[player]
    if not pool or not state.has_command_piece(player):
        return
    cells = _placement_cells(state, player)
    seen = set()
    for tile_id in pool:
        if tile_id in seen:
            continue
        seen.add(tile_id)
        for pos in cells:
            actions.append(PlaceTile(tile_id, pos))


def _gen_piece_actions(state: GameState, piece: Piece, actions: list[Action]):
    face = state.face_of(piece)
    entries = face.entries_for(piece.player)
    for index, (kind, offset) in enumerate(entries):
        _GENERATORS[kind](state, piece, offset, index, entries, actions)


def _target_of(piece: Piece, offset: Position) -> Position:
    return (piece.position[0] + offset[0], piece.position[1] + offset[1])


def _landable(state: GameState, piece: Piece, pos: Position) -> bool:
    """On board, not blocked, and empty or holding an enemy."""
    if not state.in_bounds(pos) or state.is_blocked(pos):
        return False
    occupant = state.board[pos[0]][pos[1]]
    return occupant is None or occupant.player != piece.player


def _cell_obstructed(state: GameState, pos: Position) -> bool:
    return (not state.in_bounds(pos) or state.is_blocked(pos)
            or state.board[pos[0]][pos[1]] is not None)


def _sign(x: int) -> int:
    return (x > 0) - (x < 0)


def _path_obstructed(state: GameState, origin: Position, offset: Position) -> bool:
    """Whether a non-adjacent Move is stopped by something between origin and target.

    Straight and diagonal offsets check the cells on the line. Bent offsets
    are obstructed only when both axis-first paths are.
    """
    dr, dc = offset
    if max(abs(dr), abs(dc)) <= 1:
        return False
    sr, sc = _sign(dr), _sign(dc)
    r, c = origin

    if dr == 0 or dc == 0 or abs(dr) == abs(dc):
        steps = max(abs(dr), abs(dc))
        return any(_cell_obstructed(state, (r + sr * i, c + sc * i)) for i in range(1, steps))

    rows_first = ([(r + sr * i, c) for i in range(1, abs(dr) + 1)]
                  + [(r + dr, c + sc * j) for j in range(1, abs(dc))])
    cols_first = ([(r, c + sc * j) for j in range(1, abs(dc) + 1)]
                  + [(r + sr * i, c + dc) for i in range(1, abs(dr))])
    return (any(_cell_obstructed(state, p) for p in rows_first)
            and any(_cell_obstructed(state, p) for p in cols_first))


def _gen_move(state, piece, offset, index, entries, actions):
    target = _target_of(piece, offset)
    if not _landable(state, piece, target):
        return
    if state.catalog.rules.moves_blocked_by_pieces and \
            _path_obstructed(state, piece.position, offset):
        return
    actions.append(UnitAction(ActionKind.MOVE, piece.position, target))


def _gen_jump(state, piece, offset, index, entries, actions):
    target = _target_of(piece, offset)
    if _landable(state, piece, target):
        actions.append(UnitAction(ActionKind.JUMP, piece.position, target))


def _gen_slide(state, piece, offset, index, entries, actions):
    """Repeat the offset until the ray leaves the board or hits something."""
    dr, dc = offset
    r, c = piece.position[0] + dr, piece.position[1] + dc
    while state.in_bounds((r, c)) and not state.is_blocked((r, c)):
        occupant = state.board[r][c]
        if occupant is None:
            actions.append(UnitAction(ActionKind.SLIDE, piece.position, (r, c)))
        else:
            if occupant.player != piece.player:
                actions.append(UnitAction(ActionKind.SLIDE, piece.position, (r, c)))
            break
        r, c = r + dr, c + dc


def _gen_strike(state, piece, offset, index, entries, actions):
    target = _target_of(piece, offset)
    occupant = state.piece_at(target)
    if occupant is not None and occupant.player != piece.player and not state.is_blocked(target):
        actions.append(UnitAction(ActionKind.STRIKE, piece.position, piece.position,
                                  secondary=target))


def _gen_command(state, piece, offset, index, entries, actions):
    source = _target_of(piece, offset)
    ordered = state.piece_at(source)
    if ordered is None or ordered.player != piece.player or ordered.is_command:
        return

    mode = state.catalog.rules.command_adjacency
    if mode == "command_squares":
        for j, (kind, other) in enumerate(entries):
            if j == index or kind != ActionKind.COMMAND:
                continue
            dest = _target_of(piece, other)
            if _landable(state, ordered, dest):
                actions.append(UnitAction(ActionKind.COMMAND, piece.position, dest,
                                          secondary=source))
        return

    for dr, dc in ADJACENCY[mode]:
        dest = (source[0] + dr, source[1] + dc)
        if state.in_bounds(dest) and not state.is_blocked(dest) and state.piece_at(dest) is None:
            actions.append(UnitAction(ActionKind.COMMAND, piece.position, dest,
                                      secondary=source))


def _gen_none(state, piece, offset, index, entries, actions):
    pass


# Single dispatch table over the closed set of action kinds
_GENERATORS: dict[ActionKind, Callable] = {
    ActionKind.NONE: _gen_none,
    ActionKind.MOVE: _gen_move,
    ActionKind.JUMP: _gen_jump,
    ActionKind.SLIDE: _gen_slide,
    ActionKind.STRIKE: _gen_strike,
    ActionKind.COMMAND: _gen_command,
}
