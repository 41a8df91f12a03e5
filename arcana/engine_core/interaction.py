"""
Interaction Broker - Suspends resolution until a player decides.

Three request shapes:
- BUTTON: labeled options, each bound to a zero-argument continuation
- NUMBER_INPUT: an inclusive integer range, continuation receives the value
- CARD_SELECT: an explicit candidate list, continuation receives the card

The request itself is plain data stored on MatchState.interaction.
The continuations are stored here, keyed by interaction id, so a state
shipped over the wire never carries callables. A receiving side that
rebuilds the state re-attaches its own handlers with `attach()`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Callable, Protocol

from .state import CardInstance, InteractionKind, InteractionRequest, MatchState

logger = logging.getLogger(__name__)


@dataclass
class InteractionHandlers:
    """Continuations bound to one interaction."""
    options: list[Callable[[], None]] = field(default_factory=list)
    on_confirm: Callable[[int], None] | None = None
    on_card_select: Callable[[CardInstance], None] | None = None


@dataclass
class InteractionResponse:
    """
    An answer to an outstanding interaction.

    Exactly one of option_index / value / card_instance_id is used,
    depending on the request kind. `dismiss` clears the request without
    invoking any continuation.
    """
    option_index: int | None = None
    value: int | None = None
    card_instance_id: str | None = None
    dismiss: bool = False
    explanation: str = ""

    @classmethod
    def choose_option(cls, index: int, explanation: str = "") -> InteractionResponse:
        return cls(option_index=index, explanation=explanation)

    @classmethod
    def number(cls, value: int, explanation: str = "") -> InteractionResponse:
        return cls(value=value, explanation=explanation)

    @classmethod
    def card(cls, instance_id: str, explanation: str = "") -> InteractionResponse:
        return cls(card_instance_id=instance_id, explanation=explanation)

    @classmethod
    def dismissed(cls, explanation: str = "") -> InteractionResponse:
        return cls(dismiss=True, explanation=explanation)


class InteractionResponder(Protocol):
    """Anything that can answer interactions for a computer-controlled side."""

    def respond(self, state: MatchState, request: InteractionRequest) -> InteractionResponse:
        ...


@dataclass
class Resolution:
    """Outcome of applying a response to the outstanding interaction."""
    state: MatchState
    continuation: Callable[[], None] | None = None
    error: str | None = None

    @property
    def accepted(self) -> bool:
        return self.error is None


class InteractionBroker:
    """
    Owns the continuation table and validates responses.

    At most one interaction is outstanding; the broker refuses to open a
    second one while the first is pending.
    """

    def __init__(self):
        self._handlers: dict[str, InteractionHandlers] = {}
        self._counter = 0

    def next_id(self) -> str:
        self._counter += 1
        return f"interaction-{self._counter}"

    def open(
        self,
        state: MatchState,
        request: InteractionRequest,
        handlers: InteractionHandlers,
    ) -> MatchState:
        """Store handlers and place the request on the state."""
        if state.interaction is not None:
            raise RuntimeError(
                f"Interaction {state.interaction.interaction_id} is still pending"
            )
        self._handlers[request.interaction_id] = handlers
        logger.debug(
            "Opened %s interaction %s for player %s: %s",
            request.kind.value, request.interaction_id, request.player_id, request.title,
        )
        return state._copy_with(interaction=request)

    def attach(self, interaction_id: str, handlers: InteractionHandlers) -> None:
        """Re-attach local continuations to a request rebuilt from a snapshot."""
        self._handlers[interaction_id] = handlers

    def has_handlers(self, interaction_id: str) -> bool:
        return interaction_id in self._handlers

    def dismiss(self, state: MatchState, reason: str = "") -> MatchState:
        """Clear the outstanding interaction without resolving it."""
        request = state.interaction
        if request is None:
            return state
        self._handlers.pop(request.interaction_id, None)
        message = f"[Dismissed] {request.title}"
        if reason:
            message = f"{message} ({reason})"
        logger.info(message)
        return state._copy_with(interaction=None, logs=state.logs + [message])

    def resolve(self, state: MatchState, response: InteractionResponse) -> Resolution:
        """
        Validate a response against the outstanding request.

        On success the request is cleared and the continuation to run is
        returned (already bound to the chosen value). Invalid or stale
        responses leave the state untouched and return an error.
        """
        request = state.interaction
        if request is None:
            return Resolution(state, error="No interaction pending")

        if response.dismiss:
            return Resolution(self.dismiss(state))

        handlers = self._handlers.get(request.interaction_id)
        if handlers is None:
            return Resolution(
                state,
                error=f"No handlers attached for {request.interaction_id}",
            )

        if request.kind == InteractionKind.BUTTON:
            index = response.option_index
            if index is None or not 0 <= index < len(handlers.options):
                return Resolution(state, error=f"Invalid option index: {index}")
            label = request.options[index] if index < len(request.options) else str(index)
            continuation = handlers.options[index]
            return self._accept(state, request, continuation, f"chose [{label}]")

        if request.kind == InteractionKind.NUMBER_INPUT:
            if response.value is None or handlers.on_confirm is None:
                return Resolution(state, error="A numeric value is required")
            value = response.value
            if request.min_value is not None:
                value = max(request.min_value, value)
            if request.max_value is not None:
                value = min(request.max_value, value)
            on_confirm = handlers.on_confirm
            return self._accept(state, request, lambda: on_confirm(value), f"entered {value}")

        if request.kind == InteractionKind.CARD_SELECT:
            instance_id = response.card_instance_id
            if instance_id is None or handlers.on_card_select is None:
                return Resolution(state, error="A card selection is required")
            chosen = request.candidate(instance_id)
            if chosen is None:
                return Resolution(state, error=f"{instance_id} is not a candidate")
            if request.require_present:
                location = state.find_card(instance_id)
                if location is None:
                    logger.warning("Ignoring stale selection %s", instance_id)
                    if not any(state.find_card(c.instance_id) for c in request.candidates):
                        return Resolution(self.dismiss(state, "no candidates remain"))
                    return Resolution(state, error=f"{instance_id} is no longer in play")
                chosen = location.card
            on_select = handlers.on_card_select
            card = chosen
            return self._accept(state, request, lambda: on_select(card), f"selected [{card.name}]")

        return Resolution(self.dismiss(state, "unknown interaction kind"))

    def _accept(
        self,
        state: MatchState,
        request: InteractionRequest,
        continuation: Callable[[], None],
        summary: str,
    ) -> Resolution:
        self._handlers.pop(request.interaction_id, None)
        player = state.get_player(request.player_id)
        message = f"{player.name} {summary} for {request.title}"
        logger.debug(message)
        new_state = state._copy_with(interaction=None, logs=state.logs + [message])
        return Resolution(new_state, continuation=continuation)

    def clear(self) -> None:
        self._handlers.clear()
