"""Exception types raised by the rules engine and the search."""

from __future__ import annotations


class DukeTilesError(Exception):
    """Base class for every error raised by duketiles."""


class UnknownTile(DukeTilesError, KeyError):
    """A tile id was looked up that the catalog does not define."""

    def __init__(self, tile_id: str):
        super().__init__(tile_id)
        self.tile_id = tile_id

    def __str__(self) -> str:
        return f"Unknown tile: {self.tile_id!r}"


class CatalogError(DukeTilesError, ValueError):
    """Tile catalog data is malformed."""


class RuleViolation(DukeTilesError):
    """A caller asked for something the rules do not allow."""


class InvalidPhase(RuleViolation):
    """Operation requested outside the game phase it is valid in."""


class IllegalAction(RuleViolation):
    """Proposed action is not in the legal set. Recoverable: ask again."""


class NoCommandPiece(DukeTilesError, RuntimeError):
    """The player's command piece is gone. Only valid once the game is over."""


class NoLegalMoves(DukeTilesError, RuntimeError):
    """Search was asked to move for a player with nothing to play."""
