"""Game state representation: pieces, board occupancy, pools, turn and phase."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Union

from duketiles.game.board import Position, in_bounds, render_board
from duketiles.game.catalog import ActionKind, Face, TileCatalog
from duketiles.game.errors import NoCommandPiece


class Player(IntEnum):
    WHITE = 0
    BLACK = 1


def opponent(player: int) -> Player:
    return Player(1 - player)


class Phase(Enum):
    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


@dataclass
class Piece:
    piece_id: int
    player: Player
    tile_id: str
    position: Position
    flipped: bool = False
    is_command: bool = False

    def copy(self) -> Piece:
        return Piece(self.piece_id, self.player, self.tile_id,
                     self.position, self.flipped, self.is_command)


# Action types
@dataclass(frozen=True)
class PlaceTile:
    """Put a tile from the player's pool (or setup queue) onto the board."""
    tile_id: str
    target: Position


@dataclass(frozen=True)
class UnitAction:
    """Use one grid entry of a piece on the board.

    ``source`` is the acting piece. ``target`` is where the moved piece ends
    up: the acting piece for Move/Jump/Slide, the commanded piece for Command,
    and ``source`` itself for Strike. ``secondary`` is the struck cell for
    Strike and the commanded piece's starting cell for Command.
    """
    kind: ActionKind
    source: Position
    target: Position
    secondary: Optional[Position] = None

    @property
    def hit_square(self) -> Position:
        """Cell where an enemy would be captured by this action."""
        if self.kind == ActionKind.STRIKE:
            return self.secondary
        return self.target


Action = Union[PlaceTile, UnitAction]


class GameState:
    """Complete game state. Mutated in place by the rules engine only."""

    def __init__(self, catalog: TileCatalog):
        self.catalog = catalog
        rows, cols = catalog.board.rows, catalog.board.cols
        self.rows = rows
        self.cols = cols
        self.board: list[list[Optional[Piece]]] = [[None] * cols for _ in range(rows)]
        self.pieces: dict[int, Piece] = {}  # insertion order = placement order
        self.pools: list[list[str]] = [list(catalog.setup.pool), list(catalog.setup.pool)]
        self.placed_counts: list[int] = [0, 0]
        queue = [catalog.setup.command_tile] + list(catalog.setup.placements)
        self.setup_queues: list[list[str]] = [list(queue), list(queue)]
        self.current_player: Player = Player.WHITE
        self.phase: Phase = Phase.SETUP
        self.winner: Optional[Player] = None
        self.ply: int = 0
        self.next_piece_id: int = 0

    @classmethod
    def empty(cls, catalog: TileCatalog,
              pools: Optional[list[list[str]]] = None) -> GameState:
        """An in-progress state with nothing on the board.

        Used to set up positions directly; the caller places the pieces.
        """
        state = cls(catalog)
        state.setup_queues = [[], []]
        state.pools = [list(p) for p in pools] if pools is not None else [[], []]
        state.phase = Phase.IN_PROGRESS
        return state

    @property
    def blocked(self) -> frozenset:
        return self.catalog.board.blocked

    @property
    def done(self) -> bool:
        return self.phase == Phase.FINISHED

    def home_row(self, player: int) -> int:
        return 0 if player == Player.WHITE else self.rows - 1

    def clone(self) -> GameState:
        """Return a deep copy of this state. The catalog is shared."""
        new = GameState.__new__(GameState)
        new.catalog = self.catalog
        new.rows = self.rows
        new.cols = self.cols
        new.board = [[None] * self.cols for _ in range(self.rows)]
        new.pieces = {}
        for pid, piece in self.pieces.items():
            copied = piece.copy()
            new.pieces[pid] = copied
            new.board[copied.position[0]][copied.position[1]] = copied
        new.pools = [list(self.pools[0]), list(self.pools[1])]
        new.placed_counts = list(self.placed_counts)
        new.setup_queues = [list(self.setup_queues[0]), list(self.setup_queues[1])]
        new.current_player = self.current_player
        new.phase = self.phase
        new.winner = self.winner
        new.ply = self.ply
        new.next_piece_id = self.next_piece_id
        return new

    # Queries

    def in_bounds(self, pos: Position) -> bool:
        return in_bounds(pos, self.rows, self.cols)

    def piece_at(self, pos: Position) -> Optional[Piece]:
        """Get the piece at a position, or None (also for off-board positions)."""
        r, c = pos
        if 0 <= r < self.rows and 0 <= c < self.cols:
            return self.board[r][c]
        return None

    def is_blocked(self, pos: Position) -> bool:
        return pos in self.catalog.board.blocked

    def pieces_of(self, player: int) -> list[Piece]:
        """Live pieces of a player in placement order."""
        return [p for p in self.pieces.values() if p.player == player]

    def pool_of(self, player: int) -> list[str]:
        """Tile ids still in reserve for a player (a copy)."""
        return list(self.pools[player])

    def command_piece_of(self, player: int) -> Piece:
        for piece in self.pieces.values():
            if piece.is_command and piece.player == player:
                return piece
        raise NoCommandPiece(f"{Player(player).name} has no command piece on the board")

    def has_command_piece(self, player: int) -> bool:
        return any(p.is_command and p.player == player for p in self.pieces.values())

    def face_of(self, piece: Piece) -> Face:
        """Active face of a piece."""
        return self.catalog.definition_for(piece.tile_id).face(piece.flipped)

    # Mutations (rules engine only)

    def place_piece(self, player: int, tile_id: str, pos: Position,
                    is_command: bool = False) -> Piece:
        """Create a piece on an empty, unblocked cell."""
        self.catalog.definition_for(tile_id)
        self._check_free(pos)
        piece = Piece(self.next_piece_id, Player(player), tile_id, pos,
                      flipped=False, is_command=is_command)
        self.next_piece_id += 1
        self.pieces[piece.piece_id] = piece
        self.board[pos[0]][pos[1]] = piece
        self.placed_counts[player] += 1
        return piece

    def move_piece(self, piece: Piece, pos: Position):
        """Relocate a piece to an empty, unblocked cell."""
        self._check_live(piece)
        self._check_free(pos)
        r, c = piece.position
        self.board[r][c] = None
        piece.position = pos
        self.board[pos[0]][pos[1]] = piece

    def remove_piece(self, piece: Piece) -> Piece:
        """Take a piece off the board. It does not return to any pool."""
        self._check_live(piece)
        r, c = piece.position
        self.board[r][c] = None
        del self.pieces[piece.piece_id]
        return piece

    def flip_piece(self, piece: Piece):
        self._check_live(piece)
        piece.flipped = not piece.flipped

    def _check_free(self, pos: Position):
        if not self.in_bounds(pos):
            raise ValueError(f"Position {pos} is off the board")
        if self.is_blocked(pos):
            raise ValueError(f"Position {pos} is blocked")
        if self.board[pos[0]][pos[1]] is not None:
            raise ValueError(f"Position {pos} is occupied")

    def _check_live(self, piece: Piece):
        if self.pieces.get(piece.piece_id) is not piece:
            raise ValueError(f"Piece {piece.piece_id} is not on the board")

    # Consistency

    def check_invariants(self):
        """Raise AssertionError describing the first broken invariant."""
        seen = set()
        for pid, piece in self.pieces.items():
            assert pid == piece.piece_id, f"Piece key {pid} != id {piece.piece_id}"
            assert self.in_bounds(piece.position), f"Piece {pid} off board at {piece.position}"
            assert not self.is_blocked(piece.position), f"Piece {pid} on blocked cell"
            r, c = piece.position
            assert self.board[r][c] is piece, f"Cell {piece.position} does not hold piece {pid}"
            assert piece.tile_id in self.catalog.tiles, f"Piece {pid} has unknown tile"
            seen.add(piece.position)

        for r in range(self.rows):
            for c in range(self.cols):
                cell = self.board[r][c]
                if cell is not None:
                    assert (r, c) in seen, f"Cell {(r, c)} holds a piece not in the piece set"

        if self.phase == Phase.IN_PROGRESS:
            for player in Player:
                count = sum(1 for p in self.pieces.values()
                            if p.is_command and p.player == player)
                assert count == 1, f"{player.name} has {count} command pieces"
        if self.phase == Phase.FINISHED:
            assert self.winner is not None, "Finished game without a winner"
        else:
            assert self.winner is None, "Winner set before the game finished"

    # Serialization

    def to_dict(self) -> dict:
        return {
            "pieces": [
                {
                    "id": p.piece_id,
                    "player": int(p.player),
                    "tile": p.tile_id,
                    "position": list(p.position),
                    "flipped": p.flipped,
                    "command": p.is_command,
                }
                for p in self.pieces.values()
            ],
            "pools": [list(self.pools[0]), list(self.pools[1])],
            "placed": list(self.placed_counts),
            "setup_queues": [list(self.setup_queues[0]), list(self.setup_queues[1])],
            "current_player": int(self.current_player),
            "phase": self.phase.value,
            "winner": int(self.winner) if self.winner is not None else None,
            "ply": self.ply,
            "next_piece_id": self.next_piece_id,
        }

    @classmethod
    def from_dict(cls, catalog: TileCatalog, d: dict) -> GameState:
        state = cls(catalog)
        for entry in d["pieces"]:
            catalog.definition_for(entry["tile"])
            pos = (int(entry["position"][0]), int(entry["position"][1]))
            piece = Piece(int(entry["id"]), Player(entry["player"]), entry["tile"], pos,
                          flipped=bool(entry["flipped"]), is_command=bool(entry["command"]))
            state._check_free(pos)
            state.pieces[piece.piece_id] = piece
            state.board[pos[0]][pos[1]] = piece
        for tile_id in d["pools"][0] + d["pools"][1]:
            catalog.definition_for(tile_id)
        state.pools = [list(d["pools"][0]), list(d["pools"][1])]
        state.placed_counts = list(d["placed"])
        state.setup_queues = [list(d["setup_queues"][0]), list(d["setup_queues"][1])]
        state.current_player = Player(d["current_player"])
        state.phase = Phase(d["phase"])
        state.winner = Player(d["winner"]) if d["winner"] is not None else None
        state.ply = int(d["ply"])
        state.next_piece_id = int(d["next_piece_id"])
        return state

    def serialize(self) -> str:
        """Serialize game state to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def deserialize(cls, catalog: TileCatalog, data: str) -> GameState:
        """Deserialize game state from JSON string."""
        return cls.from_dict(catalog, json.loads(data))

    def to_display_board(self) -> list[list]:
        """Convert to the format expected by render_board."""
        display = [[None] * self.cols for _ in range(self.rows)]
        for piece in self.pieces.values():
            r, c = piece.position
            symbol = self.catalog.definition_for(piece.tile_id).symbol
            display[r][c] = (symbol, int(piece.player), piece.flipped)
        return display

    def render(self) -> str:
        return render_board(self.to_display_board(), self.blocked,
                            turn=self.ply, current_player=int(self.current_player))
