"""GameSession: owns the authoritative GameState and exposes the play API.

Front-ends (terminal, GUI, network) go through this class only. Every
action is validated by the rules engine before it touches the state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Union

from duketiles.game.catalog import TileCatalog, load_catalog
from duketiles.game.errors import IllegalAction, InvalidPhase
from duketiles.game.moves import legal_actions, setup_actions
from duketiles.game.notation import action_to_notation, game_to_record, notation_to_action
from duketiles.game.rules import Outcome, apply_action
from duketiles.game.state import Action, GameState, Phase, Player

if TYPE_CHECKING:
    from duketiles.engine.evaluator import Evaluator
    from duketiles.engine.search import SearchConfig

logger = logging.getLogger("duketiles.session")


class GameSession:
    """One game from Setup to Finished."""

    def __init__(self, catalog: Optional[TileCatalog] = None,
                 search_config: Optional[SearchConfig] = None,
                 evaluator: Optional[Evaluator] = None,
                 state: Optional[GameState] = None):
        self.catalog = catalog or (state.catalog if state is not None else load_catalog())
        self.state = state if state is not None else GameState(self.catalog)
        self.search_config = search_config
        self.evaluator = evaluator
        self.history: list[str] = []

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def current_player(self) -> Player:
        return self.state.current_player

    @property
    def result(self) -> Optional[str]:
        if self.state.phase != Phase.FINISHED:
            return None
        return "1-0" if self.state.winner == Player.WHITE else "0-1"

    def legal_actions(self, player: Optional[int] = None) -> list[Action]:
        """Setup placements during Setup, otherwise the legal action list."""
        if self.state.phase == Phase.SETUP:
            return list(setup_actions(self.state, player))
        return legal_actions(self.state, player)

    def apply(self, action: Union[Action, str]) -> Outcome:
        """Apply an action (or its notation) for the player to move.

        Raises IllegalAction or InvalidPhase without changing the state.
        Unparsable notation counts as an illegal action.
        """
        if isinstance(action, str):
            try:
                action = notation_to_action(action)
            except ValueError as e:
                raise IllegalAction(str(e)) from e
        player = self.state.current_player
        before = self.state.clone()
        outcome = apply_action(self.state, action)
        notation = action_to_notation(action, before)
        self.history.append(notation)
        logger.info("Ply %d: %s plays %s", self.state.ply, player.name, notation)
        if outcome.finished:
            logger.info("Game over: %s wins (%s)", outcome.winner.name, self.result)
        return outcome

    def best_action(self, player: Optional[int] = None,
                    config: Optional[SearchConfig] = None) -> Action:
        from duketiles.engine.search import best_action

        if self.state.phase == Phase.FINISHED:
            raise InvalidPhase("Game is already finished")
        player = self.state.current_player if player is None else Player(player)
        return best_action(self.state, player, config or self.search_config, self.evaluator)

    def play_ai_turn(self, config: Optional[SearchConfig] = None) -> Outcome:
        """Let the search pick an action for the player to move and apply it."""
        return self.apply(self.best_action(config=config))

    def snapshot(self) -> dict:
        """Read-only, JSON-serializable view of the game."""
        snap = self.state.to_dict()
        snap["board"] = self.state.render()
        snap["history"] = list(self.history)
        snap["result"] = self.result
        if self.state.phase != Phase.FINISHED:
            snap["legal_actions"] = [action_to_notation(a, self.state)
                                     for a in self.legal_actions()]
        return snap

    def record(self, headers: Optional[dict[str, str]] = None) -> str:
        return game_to_record(self.history, headers=headers, result=self.result)
