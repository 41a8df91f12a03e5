"""
Action System - Actions, payloads, and results.

Actions represent:
1. Turn progression (start the turn's draw)
2. Player decisions (set a card, play an instant, pass a window)
3. Answers to a suspended interaction

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .interaction import InteractionResponse


class ActionType(Enum):
    """Types of actions in the system."""
    # Turn progression
    START_TURN = "start_turn"

    # Player decisions
    SET_CARD = "set_card"
    PLAY_INSTANT = "play_instant"
    PASS = "pass"

    # Answer to a pending interaction
    RESOLVE_INTERACTION = "resolve_interaction"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    This is a generic container; validation happens in the reducer.
    """
    player_id: int | None = None
    instance_id: str | None = None

    # For interaction answers
    response: InteractionResponse | None = None

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete action to be applied to the match state.

    Actions are:
    - Logged for replay
    - Validated before application
    - Applied atomically by the reducer
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float | None = None
    action_id: str | None = None

    @classmethod
    def start_turn(cls) -> Action:
        return cls(action_type=ActionType.START_TURN)

    @classmethod
    def set_card(cls, player_id: int, instance_id: str | None) -> Action:
        """Factory for committing a face-down card (None when nothing is settable)."""
        return cls(
            action_type=ActionType.SET_CARD,
            payload=ActionPayload(player_id=player_id, instance_id=instance_id),
        )

    @classmethod
    def play_instant(cls, player_id: int, instance_id: str) -> Action:
        return cls(
            action_type=ActionType.PLAY_INSTANT,
            payload=ActionPayload(player_id=player_id, instance_id=instance_id),
        )

    @classmethod
    def pass_window(cls, player_id: int) -> Action:
        """Factory for passing the current instant window."""
        return cls(
            action_type=ActionType.PASS,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def resolve_interaction(cls, player_id: int, response: InteractionResponse) -> Action:
        return cls(
            action_type=ActionType.RESOLVE_INTERACTION,
            payload=ActionPayload(player_id=player_id, response=response),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Log lines produced by the action (for UI updates)
    """
    success: bool
    new_state: Any | None = None  # MatchState
    error: str | None = None
    error_code: str | None = None

    # For UI/presentation
    state_changes: list[str] = field(default_factory=list)

    # For effect resolution
    pending_choice: Any | None = None  # InteractionRequest awaiting a human
    effects_resolved: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        pending_choice: Any | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            pending_choice=pending_choice,
        )
