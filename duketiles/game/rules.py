"""Action application: capture resolution, tile flips, win detection, phase changes.

apply_action validates before touching the state, so a rejected action
leaves the state exactly as it was. It then mutates in place for
performance; use apply_action_copy (or clone first) for scratch work.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from duketiles.game.catalog import ActionKind
from duketiles.game.errors import IllegalAction, InvalidPhase
from duketiles.game.moves import (
    actions_for_piece, generate_actions, placement_actions, setup_actions,
)
from duketiles.game.state import (
    Action, GameState, Phase, Piece, PlaceTile, Player, UnitAction, opponent,
)

logger = logging.getLogger("duketiles.rules")


@dataclass(frozen=True)
class Outcome:
    """Result of applying one action."""
    captured: Optional[Piece]
    phase: Phase
    winner: Optional[Player] = None

    @property
    def finished(self) -> bool:
        return self.phase == Phase.FINISHED


def is_legal(state: GameState, action: Action) -> bool:
    """Membership test against legal_actions for the player to move.

    Only the acting piece (or the placement set) is regenerated.
    """
    player = state.current_player
    if state.phase == Phase.SETUP:
        return isinstance(action, PlaceTile) and action in setup_actions(state, player)
    if state.phase != Phase.IN_PROGRESS:
        return False

    if isinstance(action, PlaceTile):
        if not state.catalog.rules.allow_reserve_placement:
            return False
        return action in placement_actions(state, player)
    if isinstance(action, UnitAction):
        piece = state.piece_at(action.source)
        if piece is None or piece.player != player:
            return False
        return action in actions_for_piece(state, piece)
    return False


def apply_action(state: GameState, action: Action, validate: bool = True) -> Outcome:
    """Apply an action for the player to move. Modifies the state in place.

    Raises InvalidPhase once the game is finished and IllegalAction for an
    action outside the legal set. Pass validate=False only for actions that
    came straight out of the move generator for this exact state.
    """
    if state.phase == Phase.FINISHED:
        raise InvalidPhase("Game is already finished")
    if state.phase == Phase.SETUP and not isinstance(action, PlaceTile):
        raise InvalidPhase(f"Only tile placements are allowed during setup, got {action!r}")
    if validate and not is_legal(state, action):
        raise IllegalAction(f"{action!r} is not legal for {state.current_player.name}")

    if state.phase == Phase.SETUP:
        return _apply_setup(state, action)

    player = state.current_player
    captured = None
    rules = state.catalog.rules

    if isinstance(action, PlaceTile):
        state.pools[player].remove(action.tile_id)
        state.place_piece(player, action.tile_id, action.target)

    elif action.kind == ActionKind.STRIKE:
        # Striker stays put; target is removed in place
        actor = state.piece_at(action.source)
        captured = state.remove_piece(state.piece_at(action.secondary))
        state.flip_piece(actor)

    elif action.kind == ActionKind.COMMAND:
        # Commander does not move and never flips
        ordered = state.piece_at(action.secondary)
        victim = state.piece_at(action.target)
        if victim is not None:
            captured = state.remove_piece(victim)
        state.move_piece(ordered, action.target)
        if rules.command_flips_target:
            state.flip_piece(ordered)

    else:
        actor = state.piece_at(action.source)
        victim = state.piece_at(action.target)
        if victim is not None:
            captured = state.remove_piece(victim)
        state.move_piece(actor, action.target)
        state.flip_piece(actor)

    state.ply += 1

    if captured is not None and captured.is_command:
        _finish(state, winner=player)
        return Outcome(captured, state.phase, state.winner)

    state.current_player = opponent(player)
    _check_stalemate(state)
    return Outcome(captured, state.phase, state.winner)


def apply_action_copy(state: GameState, action: Action,
                      validate: bool = True) -> tuple[GameState, Outcome]:
    """Apply an action to a clone, leaving the given state untouched."""
    new_state = state.clone()
    outcome = apply_action(new_state, action, validate=validate)
    return new_state, outcome


def check_winner(state: GameState) -> tuple[bool, Optional[Player]]:
    """Check if the game is over. Returns (done, winner)."""
    return state.phase == Phase.FINISHED, state.winner


def _apply_setup(state: GameState, action: PlaceTile) -> Outcome:
    player = state.current_player
    is_command = not state.has_command_piece(player)
    state.place_piece(player, action.tile_id, action.target, is_command=is_command)
    state.setup_queues[player].pop(0)
    state.ply += 1
    _advance_setup(state, player)
    return Outcome(None, state.phase, state.winner)


def _advance_setup(state: GameState, last: Player):
    """Alternate setup turns, skipping a player whose queue is empty."""
    for candidate in (opponent(last), last):
        queue = state.setup_queues[candidate]
        if queue and not setup_actions(state, candidate):
            logger.warning("No room to place %s for %s, dropping %d queued tiles",
                           queue[0], candidate.name, len(queue))
            queue.clear()
        if queue:
            state.current_player = candidate
            return

    state.phase = Phase.IN_PROGRESS
    state.current_player = Player.WHITE
    logger.debug("Setup complete after %d placements", state.ply)
    _check_stalemate(state)


def _check_stalemate(state: GameState):
    if not state.catalog.rules.stalemate_loses:
        return
    if not generate_actions(state, state.current_player):
        logger.debug("%s has no legal actions", state.current_player.name)
        _finish(state, winner=opponent(state.current_player))


def _finish(state: GameState, winner: Player):
    state.phase = Phase.FINISHED
    state.winner = winner
    logger.debug("Game over at ply %d, winner %s", state.ply, winner.name)
