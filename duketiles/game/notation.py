"""Action notation and records.

Action formats (squares are column letter + 1-based row, e.g. ``c2``):
  Mb1-b2       Move from b1 to b2 (``x`` instead of ``-`` when capturing)
  Jb1-c3       Jump
  Sb1-b4       Slide
  Xb1~b3       Strike from b1 at b3 (striker stays on b1)
  Cb1:c2>c3    Command: piece at b1 orders the piece on c2 to c3
  @footman>c2  Place a footman tile on c2

Game records list the actions with numbered pairs, like a PGN move list:
  [White "alphabeta-3"]
  [Result "1-0"]

  1. @duke>c1 @duke>c6
  2. @footman>b1 @footman>c5
"""

from __future__ import annotations

import re
from typing import Optional

from duketiles.game.board import notation_to_rc, rc_to_notation
from duketiles.game.catalog import ActionKind
from duketiles.game.state import Action, GameState, PlaceTile, UnitAction

KIND_LETTERS = {
    ActionKind.MOVE: "M",
    ActionKind.JUMP: "J",
    ActionKind.SLIDE: "S",
    ActionKind.STRIKE: "X",
    ActionKind.COMMAND: "C",
}
LETTER_KINDS = {v: k for k, v in KIND_LETTERS.items()}

RESULTS = ("1-0", "0-1", "*")

_SQ = r"[a-z]\d+"
_STEP_RE = re.compile(rf"^([MJS])({_SQ})([-x])({_SQ})$")
_STRIKE_RE = re.compile(rf"^X({_SQ})~({_SQ})$")
_COMMAND_RE = re.compile(rf"^C({_SQ}):({_SQ})([>x])({_SQ})$")
_PLACE_RE = re.compile(rf"^@(\w+)>({_SQ})$")
_HEADER_RE = re.compile(r'^\[(\w+)\s+"([^"]*)"\]$')


def _sq(pos) -> str:
    return rc_to_notation(pos[0], pos[1])


def action_to_notation(action: Action, state: Optional[GameState] = None) -> str:
    """Convert an action to notation.

    With the state BEFORE the action, captures are marked with ``x``.
    """
    if isinstance(action, PlaceTile):
        return f"@{action.tile_id}>{_sq(action.target)}"

    if not isinstance(action, UnitAction):
        raise ValueError(f"Unknown action type: {type(action)}")

    capture = False
    if state is not None:
        victim = state.piece_at(action.hit_square)
        actor = state.piece_at(action.source)
        capture = victim is not None and actor is not None and victim.player != actor.player

    if action.kind == ActionKind.STRIKE:
        return f"X{_sq(action.source)}~{_sq(action.secondary)}"
    if action.kind == ActionKind.COMMAND:
        sep = "x" if capture else ">"
        return f"C{_sq(action.source)}:{_sq(action.secondary)}{sep}{_sq(action.target)}"
    if action.kind in (ActionKind.MOVE, ActionKind.JUMP, ActionKind.SLIDE):
        sep = "x" if capture else "-"
        return f"{KIND_LETTERS[action.kind]}{_sq(action.source)}{sep}{_sq(action.target)}"
    raise ValueError(f"Action kind has no notation: {action.kind}")


def notation_to_action(text: str) -> Action:
    """Parse notation into an action.

    Raises:
        ValueError: If the notation is invalid.
    """
    text = text.strip()

    m = _PLACE_RE.match(text)
    if m:
        return PlaceTile(m.group(1), notation_to_rc(m.group(2)))

    m = _STRIKE_RE.match(text)
    if m:
        source = notation_to_rc(m.group(1))
        return UnitAction(ActionKind.STRIKE, source, source, secondary=notation_to_rc(m.group(2)))

    m = _COMMAND_RE.match(text)
    if m:
        return UnitAction(ActionKind.COMMAND, notation_to_rc(m.group(1)),
                          notation_to_rc(m.group(4)), secondary=notation_to_rc(m.group(2)))

    m = _STEP_RE.match(text)
    if m:
        return UnitAction(LETTER_KINDS[m.group(1)], notation_to_rc(m.group(2)),
                          notation_to_rc(m.group(4)))

    raise ValueError(f"Invalid action notation: {text!r}")


def action_to_dict(action: Action) -> dict:
    """Tagged record for logging or transport."""
    if isinstance(action, PlaceTile):
        return {"kind": "place", "tile": action.tile_id, "source": None,
                "target": _sq(action.target), "secondary": None}
    return {
        "kind": action.kind.value,
        "tile": None,
        "source": _sq(action.source),
        "target": _sq(action.target),
        "secondary": _sq(action.secondary) if action.secondary is not None else None,
    }


def action_from_dict(d: dict) -> Action:
    if d["kind"] == "place":
        return PlaceTile(d["tile"], notation_to_rc(d["target"]))
    kind = ActionKind(d["kind"])
    if kind == ActionKind.NONE:
        raise ValueError("Action record has no kind")
    secondary = notation_to_rc(d["secondary"]) if d.get("secondary") else None
    return UnitAction(kind, notation_to_rc(d["source"]), notation_to_rc(d["target"]),
                      secondary=secondary)


def game_to_record(moves: list[str], headers: Optional[dict[str, str]] = None,
                   result: Optional[str] = None) -> str:
    """Format already-rendered action strings as a game record."""
    lines = [f'[{key} "{value}"]' for key, value in (headers or {}).items()]
    if result:
        lines.append(f'[Result "{result}"]')
    if lines:
        lines.append("")

    for number, i in enumerate(range(0, len(moves), 2), start=1):
        lines.append(f"{number}. " + " ".join(moves[i:i + 2]))

    if result:
        lines.append(result)
    return "\n".join(lines)


def record_to_game(text: str) -> tuple[dict[str, str], list[Action], Optional[str]]:
    """Parse a game record. Returns (headers, actions, result)."""
    headers: dict[str, str] = {}
    actions: list[Action] = []
    result: Optional[str] = None

    for line in text.strip().splitlines():
        line = line.strip()
        if not line:
            continue
        m = _HEADER_RE.match(line)
        if m:
            headers[m.group(1)] = m.group(2)
            continue
        for token in re.sub(r"^\d+\.\s*", "", line).split():
            if token in RESULTS:
                result = token
            else:
                actions.append(notation_to_action(token))

    if result is None:
        result = headers.get("Result")
    return headers, actions, result
