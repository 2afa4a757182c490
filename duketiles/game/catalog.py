"""Tile catalog: tile definitions, faces, board and rule configuration.

The catalog is built once (usually from ``tiles.yaml``) and never mutated.
Every GameState holds a reference to the catalog it was created with.

Face entries are ``(kind, (forward, right))`` offsets relative to the piece.
For the first player forward is +row and right is +col; the second player
sees the same grid point-reflected so forward always points at the opponent.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Union

import yaml

from duketiles.game.board import DEFAULT_COLS, DEFAULT_ROWS, Position
from duketiles.game.errors import CatalogError, UnknownTile

logger = logging.getLogger("duketiles.catalog")

DEFAULT_CATALOG_PATH = Path(__file__).with_name("tiles.yaml")


class ActionKind(Enum):
    NONE = "none"
    MOVE = "move"
    JUMP = "jump"
    SLIDE = "slide"
    STRIKE = "strike"
    COMMAND = "command"


# Material weight contributed by each grid entry when a tile has no explicit value
KIND_UTILITY = {
    ActionKind.MOVE: 1,
    ActionKind.JUMP: 3,
    ActionKind.SLIDE: 2,
    ActionKind.COMMAND: 2,
    ActionKind.STRIKE: 3,
}

COMMAND_TILE_VALUE = 1000

COMMAND_ADJACENCY_MODES = ("orthogonal", "all", "command_squares")
PLACEMENT_ADJACENCY_MODES = ("orthogonal", "all")

FaceEntry = tuple[ActionKind, Position]


@dataclass(frozen=True)
class Face:
    """One side of a tile: an ordered action grid."""
    entries: tuple[FaceEntry, ...]
    mirrored: tuple[FaceEntry, ...]

    @classmethod
    def build(cls, entries: list[FaceEntry]) -> Face:
        entries = tuple(entries)
        mirrored = tuple((kind, (-fwd, -right)) for kind, (fwd, right) in entries)
        return cls(entries, mirrored)

    def entries_for(self, player: int) -> tuple[FaceEntry, ...]:
        """Entries as absolute (drow, dcol) offsets for the given player."""
        return self.entries if player == 0 else self.mirrored


@dataclass(frozen=True)
class TileDefinition:
    tile_id: str
    symbol: str
    front: Face
    back: Face
    value: int

    def face(self, flipped: bool) -> Face:
        return self.back if flipped else self.front


@dataclass(frozen=True)
class BoardConfig:
    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    blocked: frozenset = frozenset()
    grid_radius: int = 2


@dataclass(frozen=True)
class RuleConfig:
    command_flips_target: bool = False
    command_adjacency: str = "all"
    placement_adjacency: str = "orthogonal"
    moves_blocked_by_pieces: bool = False
    allow_reserve_placement: bool = True
    stalemate_loses: bool = True


@dataclass(frozen=True)
class SetupConfig:
    command_tile: str = "duke"
    command_columns: tuple[int, ...] = (2, 3)
    placements: tuple[str, ...] = ()
    pool: tuple[str, ...] = ()


@dataclass(frozen=True)
class TileCatalog:
    """Immutable registry of tile definitions plus board and rule settings."""
    tiles: Mapping[str, TileDefinition]
    board: BoardConfig = field(default_factory=BoardConfig)
    rules: RuleConfig = field(default_factory=RuleConfig)
    setup: SetupConfig = field(default_factory=SetupConfig)

    def definition_for(self, tile_id: str) -> TileDefinition:
        try:
            return self.tiles[tile_id]
        except KeyError:
            raise UnknownTile(tile_id) from None

    def value_of(self, tile_id: str) -> int:
        return self.definition_for(tile_id).value

    def with_rules(self, **overrides) -> TileCatalog:
        """Return a copy of this catalog with some rule flags changed."""
        rules = dataclasses.replace(self.rules, **overrides)
        _validate_rules(rules)
        return dataclasses.replace(self, rules=rules)

    def with_board(self, **overrides) -> TileCatalog:
        """Return a copy of this catalog on a changed board.

        The board is checked the same way as when loading a catalog.
        """
        raw = {
            "rows": self.board.rows,
            "cols": self.board.cols,
            "blocked": sorted(self.board.blocked),
            "grid_radius": self.board.grid_radius,
        }
        unknown = set(overrides) - set(raw)
        if unknown:
            raise CatalogError(f"Unknown board settings: {sorted(unknown)}")
        raw.update(overrides)
        board = _parse_board(raw)
        for tile in self.tiles.values():
            for kind, offset in tile.front.entries + tile.back.entries:
                if max(abs(offset[0]), abs(offset[1])) > board.grid_radius:
                    raise CatalogError(
                        f"Tile {tile.tile_id!r} offset {offset} outside grid_radius "
                        f"{board.grid_radius}")
        _check_command_columns(self.setup.command_columns, board)
        return dataclasses.replace(self, board=board)

    @classmethod
    def from_dict(cls, data: dict) -> TileCatalog:
        """Build a catalog from parsed configuration data."""
        if not isinstance(data, dict):
            raise CatalogError("Catalog data must be a mapping")

        raw_tiles = data.get("tiles")
        if not raw_tiles:
            raise CatalogError("Catalog defines no tiles")

        board = _parse_board(data.get("board") or {})
        rules = _parse_rules(data.get("rules") or {})

        tiles = {}
        for tile_id, raw in raw_tiles.items():
            tiles[str(tile_id)] = _parse_tile(str(tile_id), raw, board.grid_radius)

        setup = _parse_setup(data.get("setup") or {}, tiles, board)

        # Command tile is always the most valuable piece on the board
        cmd = tiles[setup.command_tile]
        if "value" not in (raw_tiles[setup.command_tile] or {}):
            tiles[setup.command_tile] = dataclasses.replace(cmd, value=COMMAND_TILE_VALUE)

        return cls(tiles=MappingProxyType(tiles), board=board, rules=rules, setup=setup)


def tile_utility(front: Face, back: Face) -> int:
    """Naive material value of a tile, summed over both faces."""
    return sum(KIND_UTILITY.get(kind, 0)
               for face in (front, back) for kind, _ in face.entries)


def _parse_board(raw: dict) -> BoardConfig:
    rows = int(raw.get("rows", DEFAULT_ROWS))
    cols = int(raw.get("cols", DEFAULT_COLS))
    radius = int(raw.get("grid_radius", 2))
    if rows < 2 or cols < 2:
        raise CatalogError(f"Board too small: {rows}x{cols}")
    if radius < 1:
        raise CatalogError(f"grid_radius must be positive, got {radius}")

    blocked = set()
    for cell in raw.get("blocked") or []:
        try:
            r, c = int(cell[0]), int(cell[1])
        except (TypeError, ValueError, IndexError):
            raise CatalogError(f"Bad blocked cell: {cell!r}") from None
        if not (0 <= r < rows and 0 <= c < cols):
            raise CatalogError(f"Blocked cell off board: {cell!r}")
        blocked.add((r, c))

    return BoardConfig(rows=rows, cols=cols, blocked=frozenset(blocked), grid_radius=radius)


def _validate_rules(rules: RuleConfig):
    if rules.command_adjacency not in COMMAND_ADJACENCY_MODES:
        raise CatalogError(f"Unknown command_adjacency: {rules.command_adjacency!r}")
    if rules.placement_adjacency not in PLACEMENT_ADJACENCY_MODES:
        raise CatalogError(f"Unknown placement_adjacency: {rules.placement_adjacency!r}")


def _parse_rules(raw: dict) -> RuleConfig:
    known = {f.name for f in dataclasses.fields(RuleConfig)}
    unknown = set(raw) - known
    if unknown:
        raise CatalogError(f"Unknown rule settings: {sorted(unknown)}")
    rules = RuleConfig(**raw)
    _validate_rules(rules)
    return rules


def _parse_tile(tile_id: str, raw: dict, radius: int) -> TileDefinition:
    if not isinstance(raw, dict):
        raise CatalogError(f"Tile {tile_id!r} must be a mapping")

    faces = []
    for side in ("front", "back"):
        entries = []
        for entry in raw.get(side) or []:
            parsed = _parse_entry(tile_id, side, entry, radius)
            if parsed in entries:
                raise CatalogError(f"Tile {tile_id!r} repeats {side} entry {entry!r}")
            entries.append(parsed)
        faces.append(Face.build(entries))
    front, back = faces

    symbol = str(raw.get("symbol") or tile_id[0]).upper()
    value = int(raw["value"]) if "value" in raw else tile_utility(front, back)
    return TileDefinition(tile_id=tile_id, symbol=symbol, front=front, back=back, value=value)


def _parse_entry(tile_id: str, side: str, entry, radius: int) -> FaceEntry:
    try:
        kind_name, forward, right = entry
        kind = ActionKind(str(kind_name).lower())
        offset = (int(forward), int(right))
    except (TypeError, ValueError):
        raise CatalogError(f"Bad {side} entry for tile {tile_id!r}: {entry!r}") from None

    if kind == ActionKind.NONE:
        raise CatalogError(f"Tile {tile_id!r} lists an empty grid cell")
    if offset == (0, 0):
        raise CatalogError(f"Tile {tile_id!r} has an action on its own square")
    if max(abs(offset[0]), abs(offset[1])) > radius:
        raise CatalogError(
            f"Tile {tile_id!r} offset {offset} outside the {2 * radius + 1}x{2 * radius + 1} grid")
    return (kind, offset)


def _parse_setup(raw: dict, tiles: dict, board: BoardConfig) -> SetupConfig:
    command_tile = str(raw.get("command_tile", "duke"))
    placements = tuple(str(t) for t in raw.get("placements") or [])
    pool = tuple(str(t) for t in raw.get("pool") or [])

    for tile_id in (command_tile,) + placements + pool:
        if tile_id not in tiles:
            raise UnknownTile(tile_id)

    columns = tuple(int(c) for c in raw.get("command_columns") or range(board.cols))
    _check_command_columns(columns, board)

    return SetupConfig(command_tile=command_tile, command_columns=columns,
                       placements=placements, pool=pool)


def _check_command_columns(columns: tuple[int, ...], board: BoardConfig):
    for col in columns:
        if not 0 <= col < board.cols:
            raise CatalogError(f"Command column off board: {col}")
        if (0, col) in board.blocked or (board.rows - 1, col) in board.blocked:
            raise CatalogError(f"Command column {col} starts on a blocked cell")


def load_catalog(path: Optional[Union[str, Path]] = None) -> TileCatalog:
    """Load a tile catalog from YAML. Defaults to the bundled catalog."""
    path = Path(path) if path is not None else DEFAULT_CATALOG_PATH
    with open(path) as f:
        data = yaml.safe_load(f)
    catalog = TileCatalog.from_dict(data)
    logger.debug("Loaded %d tiles from %s (%dx%d board)",
                 len(catalog.tiles), path, catalog.board.rows, catalog.board.cols)
    return catalog
