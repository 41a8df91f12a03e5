"""
Action Generator - Generates all legal actions from a match state.

The action generator is used by:
1. Bots to enumerate possible moves
2. UI to show available actions
3. Validation (is this action in legal_actions?)

Design: Generates Action objects, not just action types.
This ensures all generated actions are fully specified.
Interaction answers are not enumerated here; they depend on the
request shape and are produced by the responder or the UI.
"""

from __future__ import annotations
from dataclasses import dataclass

from .action import Action
from .state import GamePhase, InstantWindow, MatchState, RevealStage


@dataclass
class ActionGenerator:
    """Generates legal actions for the current match state."""

    def generate(self, state: MatchState) -> list[Action]:
        """Legal actions for both players, player 1 first."""
        if state.phase == GamePhase.GAME_OVER or state.interaction is not None:
            return []
        if state.phase == GamePhase.DRAW:
            return [Action.start_turn()]

        actions: list[Action] = []
        for player in state.players:
            actions.extend(self.generate_for_player(state, player.player_id))
        return actions

    def generate_for_player(self, state: MatchState, player_id: int) -> list[Action]:
        """
        Generate legal actions for a specific player.

        START_TURN is not tied to a player and is only returned by generate().
        """
        if state.phase == GamePhase.GAME_OVER or state.interaction is not None:
            return []

        actions: list[Action] = []
        actions.extend(self._generate_set_actions(state, player_id))
        actions.extend(self._generate_instant_actions(state, player_id))
        actions.extend(self._generate_pass_actions(state, player_id))
        return actions

    def _generate_set_actions(self, state: MatchState, player_id: int) -> list[Action]:
        if state.phase != GamePhase.SET:
            return []
        player = state.get_player(player_id)
        if player.has_committed:
            return []
        settable = player.settable_cards()
        if not settable:
            return [Action.set_card(player_id, None)]
        return [Action.set_card(player_id, c.instance_id) for c in settable]

    def _generate_instant_actions(self, state: MatchState, player_id: int) -> list[Action]:
        window = state.instant_window
        if window == InstantWindow.NONE:
            return []
        if window == InstantWindow.BEFORE_REVEAL and state.reveal_stage != RevealStage.INSTANTS:
            return []
        if window == InstantWindow.AFTER_REVEAL and state.reveal_stage != RevealStage.REVEALED:
            return []
        player = state.get_player(player_id)
        # Before-set instants end once the player commits
        if window == InstantWindow.BEFORE_SET and player.has_committed:
            return []
        return [
            Action.play_instant(player_id, c.instance_id)
            for c in player.hand
            if not c.is_locked and c.definition.can_instant(window)
        ]

    def _generate_pass_actions(self, state: MatchState, player_id: int) -> list[Action]:
        if state.phase != GamePhase.REVEAL or state.reveal_stage not in (RevealStage.INSTANTS, RevealStage.REVEALED):
            return []
        if player_id in state.passes:
            return []
        return [Action.pass_window(player_id)]


def legal_actions(state: MatchState) -> list[Action]:
    """
    Convenience function to get legal actions.

    Creates an ActionGenerator and generates actions.
    """
    return ActionGenerator().generate(state)
