"""
Game Loop - Drives a duel between human input and bot seats.

The loop:
1. A human action comes in (set, instant, pass, interaction answer)
2. The Reducer applies it
3. The loop starts turns and lets every bot act until a human is needed
4. The result lists what happened and what the human must answer next
5. Repeat

Both seats act in the same phase, so "whose turn" is really "who still
has something to do": the loop stops when only human seats do.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import TYPE_CHECKING

from ..engine_core.action import Action, ActionResult, ActionType
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.state import GamePhase

if TYPE_CHECKING:
    from ..engine_core.state import InteractionRequest
    from .manager import Session

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the game loop."""
    RUNNING_BOTS = "running_bots"
    WAITING_HUMAN_ACTION = "waiting_human_action"
    WAITING_INTERACTION = "waiting_interaction"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of advancing the loop.

    Contains what the bots did, the new log lines, and the interaction
    the human must answer (if any).
    """
    success: bool
    loop_state: LoopState

    # Actions taken by bots or by the engine (turn starts)
    actions_taken: list[str] = field(default_factory=list)

    # Match log lines produced while advancing
    log_lines: list[str] = field(default_factory=list)

    # Interaction waiting on a human
    pending_interaction: InteractionRequest | None = None

    # Errors/warnings
    errors: list[str] = field(default_factory=list)

    # The step cap ended this advance, not the match
    step_limit_hit: bool = False

    # Game over info
    winner_id: int | None = None
    is_draw: bool = False


class GameLoop:
    """
    The main game loop driver.

    Usage:
        loop = GameLoop(session)
        result = loop.advance()  # start turn 1, bots set their cards

        # Human sets a card
        result = loop.submit(Action.set_card(1, instance_id))

        if result.pending_interaction:
            answer = ask_user(result.pending_interaction)
            result = loop.submit(Action.resolve_interaction(1, answer))
    """

    def __init__(self, session: Session, max_steps: int = 500):
        self.session = session
        self.max_steps = max_steps
        self.state = LoopState.RUNNING_BOTS
        self._generator = ActionGenerator()

    def submit(self, action: Action) -> TurnResult:
        """Apply a human action, then let the bots catch up."""
        match_state = self.session.match_state
        if match_state is None or not self.session.is_active():
            return TurnResult(success=False, loop_state=self.state, errors=["Session is not active"])

        start = len(match_state.logs)
        result = self._apply(action)
        if not result.success:
            return TurnResult(
                success=False,
                loop_state=self.state,
                errors=[result.error or "Action rejected"],
                pending_interaction=self.session.match_state.interaction,
            )

        outcome = self.advance()
        outcome.log_lines = self.session.match_state.logs[start:]
        return outcome

    def advance(self, until_turn: int | None = None) -> TurnResult:
        """
        Start turns and run bot actions until a human is needed.

        Stops on game over, on an interaction owned by a human, when no
        bot has a legal action left, once the turn number passes
        `until_turn`, or after max_steps applied actions (`step_limit_hit`).
        """
        self.state = LoopState.RUNNING_BOTS
        start = len(self.session.match_state.logs)
        actions: list[str] = []
        errors: list[str] = []
        step_limit_hit = False

        for _ in range(self.max_steps):
            state = self.session.match_state

            if state.is_over:
                break
            if until_turn is not None and state.turn_number > until_turn:
                break

            if state.interaction is not None:
                if not self.session.is_waiting_for_human():
                    errors.append(f"Interaction {state.interaction.interaction_id} has no responder")
                break

            if state.phase == GamePhase.DRAW:
                result = self._apply(Action.start_turn())
                actions.append(f"Turn {state.turn_number} starts")
                if not result.success:
                    errors.append(result.error or "Could not start the turn")
                    break
                continue

            step = self._run_one_bot()
            if step is None:
                break
            label, result = step
            actions.append(label)
            if not result.success:
                errors.append(result.error or f"Bot action rejected: {label}")
                break
        else:
            logger.warning("Session %s hit the step limit", self.session.session_id)
            errors.append(f"Stopped after {self.max_steps} steps")
            step_limit_hit = True

        outcome = self._result(actions, errors, start)
        outcome.step_limit_hit = step_limit_hit
        return outcome

    def run_to_completion(self, max_turns: int = 200) -> TurnResult:
        """Run a bot-only match until it ends or max_turns have passed."""
        if self.session.human_player_ids:
            return TurnResult(success=False, loop_state=self.state, errors=["Session has human seats"])

        start = len(self.session.match_state.logs)
        actions: list[str] = []
        errors: list[str] = []
        while not self.session.match_state.is_over:
            if self.session.match_state.turn_number > max_turns:
                errors.append(f"No winner after {max_turns} turns")
                break
            result = self.advance(until_turn=max_turns)
            actions.extend(result.actions_taken)
            if result.step_limit_hit:
                continue
            if result.errors:
                errors.extend(result.errors)
                break
            if not result.actions_taken and not self.session.match_state.is_over:
                errors.append(f"Match stalled on turn {self.session.match_state.turn_number}")
                break
        return self._result(actions, errors, start)

    # ------------------------------------------------------------------

    def _run_one_bot(self) -> tuple[str, ActionResult] | None:
        """Let the first bot with something to do act once."""
        state = self.session.match_state
        for player_id, bot in sorted(self.session.bots.items()):
            legal = self._generator.generate_for_player(state, player_id)
            if not legal:
                continue
            decision = bot.select_action(state, player_id, legal)
            logger.debug("%s: %s", bot.get_name(), decision.explanation)
            result = self._apply(decision.action)
            label = f"{state.get_player(player_id).name}: {decision.action.action_type.value}"
            if decision.action.action_type == ActionType.PLAY_INSTANT and result.success:
                label = f"{label} ({decision.explanation})"
            return label, result
        return None

    def _apply(self, action: Action) -> ActionResult:
        result = self.session.reducer.apply(self.session.match_state, action)
        if result.success and result.new_state is not None:
            self.session.match_state = result.new_state
            self.session.refresh_state()
        else:
            logger.info("Rejected %s: %s", action.action_type.value, result.error)
        return result

    def _result(self, actions: list[str], errors: list[str], start: int) -> TurnResult:
        state = self.session.match_state
        if state.is_over:
            self.state = LoopState.GAME_OVER
        elif state.interaction is not None:
            self.state = LoopState.WAITING_INTERACTION
        else:
            self.state = LoopState.WAITING_HUMAN_ACTION

        outcome = state.outcome
        return TurnResult(
            success=not errors,
            loop_state=self.state,
            actions_taken=actions,
            log_lines=state.logs[start:],
            pending_interaction=state.interaction,
            errors=errors,
            winner_id=outcome.winner_id if outcome else None,
            is_draw=outcome.is_draw if outcome else False,
        )
