"""DukeTiles: rules engine and alpha-beta AI for a two-faced tile strategy game."""

__version__ = "0.1.0"
