"""Board geometry, square notation, and text-based rendering."""

from __future__ import annotations

from typing import Optional

Position = tuple[int, int]

# Default board, used when a catalog does not say otherwise
DEFAULT_ROWS = 6
DEFAULT_COLS = 6

# Orthogonal directions
ORTHOGONAL: list[Position] = [(1, 0), (0, 1), (-1, 0), (0, -1)]
# Diagonal directions
DIAGONAL: list[Position] = [(1, 1), (1, -1), (-1, -1), (-1, 1)]
# All 8 directions
ALL_DIRS: list[Position] = ORTHOGONAL + DIAGONAL

ADJACENCY = {
    "orthogonal": ORTHOGONAL,
    "all": ALL_DIRS,
}

# Column labels for notation
COL_LABELS = "abcdefghijklmnopqrstuvwxyz"


def in_bounds(pos: Position, rows: int, cols: int) -> bool:
    return 0 <= pos[0] < rows and 0 <= pos[1] < cols


def rc_to_notation(row: int, col: int) -> str:
    """Convert (row, col) to algebraic notation like 'a1'."""
    return f"{COL_LABELS[col]}{row + 1}"


def notation_to_rc(sq: str) -> Position:
    """Convert algebraic notation like 'a1' to (row, col)."""
    sq = sq.strip()
    if len(sq) < 2 or sq[0] not in COL_LABELS or not sq[1:].isdigit():
        raise ValueError(f"Invalid square: {sq!r}")
    col = COL_LABELS.index(sq[0])
    row = int(sq[1:]) - 1
    if row < 0:
        raise ValueError(f"Invalid square: {sq!r}")
    return (row, col)


def render_board(board, blocked: frozenset = frozenset(),
                 turn: Optional[int] = None,
                 current_player: Optional[int] = None) -> str:
    """Render the board as a text string.

    Args:
        board: rows x cols list of lists. Each cell is None or
            (tile_char, player, flipped).
        blocked: Cells marked as impassable terrain.
        turn: Optional ply number.
        current_player: Optional current player (0=White, 1=Black).
    """
    rows = len(board)
    cols = len(board[0]) if rows else 0
    lines = []

    if turn is not None:
        player_name = "White" if current_player == 0 else "Black"
        lines.append(f"Ply {turn} - {player_name} to move")
        lines.append("")

    header = "    " + "   ".join(COL_LABELS[c] for c in range(cols))
    separator = "  +" + "---+" * cols

    lines.append(header)
    lines.append(separator)

    for row in range(rows - 1, -1, -1):
        row_str = f"{row + 1} |"
        for col in range(cols):
            cell = board[row][col]
            if (row, col) in blocked:
                row_str += "###|"
            elif cell is not None:
                tile_char, player, flipped = cell
                # Lowercase for black, uppercase for white; '*' marks back face
                display = tile_char if player == 0 else tile_char.lower()
                mark = "*" if flipped else " "
                row_str += f" {display}{mark}|"
            else:
                row_str += "   |"
        row_str += f" {row + 1}"
        lines.append(row_str)
        lines.append(separator)

    lines.append(header)

    return "\n".join(lines)
