"""
Effect Resolver - Ordered command queue and hook dispatch.

This module handles:
- Building the EffectContext passed to every card hook
- Running hook invocations and engine steps from a single FIFO queue
- Deferred sub-steps (a command's follow-ups run before anything queued after it)
- Suspension when a hook opens an interaction, and resumption on its answer
- Synchronous resolution for computer-controlled players

The resolver owns the queue and the working state while it drains.
It never runs two commands at once: every mutation is applied before the
next command starts, and nothing runs once the match is over.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from enum import Enum
import logging
import random
from typing import Callable

from .cards import CardRegistry, HookType
from .interaction import (
    InteractionBroker,
    InteractionHandlers,
    InteractionResponder,
    InteractionResponse,
)
from .operations import check_game_over
from .state import (
    CardInstance,
    InstantWindow,
    InteractionKind,
    InteractionRequest,
    MatchState,
    PendingEffect,
    PlayerState,
    VisualEvent,
)

logger = logging.getLogger(__name__)


class ResolverState(Enum):
    """State of the effect resolver."""
    READY = "ready"  # Nothing queued
    RESOLVING = "resolving"  # Draining the queue
    WAITING_CHOICE = "waiting_choice"  # Paused on a human interaction
    COMPLETED = "completed"  # Queue drained


@dataclass
class Command:
    """One unit of work on the queue."""
    label: str
    run: Callable[[], None]
    descriptor: PendingEffect


@dataclass
class EffectContext:
    """
    Execution context handed to a card hook.

    Reads always see the resolver's current state; writes go through
    `mutate`, which applies immediately and re-checks for game over.
    """
    resolver: EffectResolver
    player_id: int
    card: CardInstance | None = None
    window: InstantWindow = InstantWindow.NONE
    reversed: bool = False

    @property
    def state(self) -> MatchState:
        return self.resolver.state

    @property
    def player(self) -> PlayerState:
        return self.state.get_player(self.player_id)

    @property
    def opponent_id(self) -> int:
        return self.state.opponent_id(self.player_id)

    @property
    def opponent(self) -> PlayerState:
        return self.state.get_player(self.opponent_id)

    @property
    def rng(self) -> random.Random:
        return self.resolver.rng

    @property
    def registry(self) -> CardRegistry:
        return self.resolver.registry

    def target(self, intended_player_id: int) -> int:
        """Swap self and opponent when the effect is reversed."""
        if self.reversed:
            return self.state.opponent_id(intended_player_id)
        return intended_player_id

    def mutate(self, fn: Callable[[MatchState], MatchState]) -> None:
        self.resolver.mutate(fn)

    def log(self, message: str) -> None:
        self.resolver.log(message)

    def defer(self, fn: Callable[[], None], label: str = "deferred") -> None:
        """Run `fn` after the current step, before anything queued later."""
        self.resolver.defer(Command(
            label=label,
            run=fn,
            descriptor=PendingEffect(kind="CONTINUATION", player_id=self.player_id,
                                     description=label),
        ))

    def visual(self, kind: str, description: str = "", player_id: int | None = None) -> None:
        self.resolver.visual(
            kind,
            player_id if player_id is not None else self.player_id,
            self.card.name if self.card else None,
            description,
        )

    def request_buttons(
        self,
        title: str,
        options: list[tuple[str, Callable[[], None]]],
        description: str = "",
        player_id: int | None = None,
    ) -> None:
        if not options:
            self.log(f"{title}: no options available")
            return
        self.resolver.open_interaction(
            InteractionRequest(
                interaction_id=self.resolver.broker.next_id(),
                player_id=player_id or self.player_id,
                title=title,
                kind=InteractionKind.BUTTON,
                description=description,
                options=[label for label, _ in options],
                source_card_id=self.card.card_id if self.card else None,
            ),
            InteractionHandlers(options=[fn for _, fn in options]),
        )

    def request_number(
        self,
        title: str,
        min_value: int,
        max_value: int,
        on_confirm: Callable[[int], None],
        description: str = "",
        unit_cost: int | None = None,
        player_id: int | None = None,
    ) -> None:
        if max_value < min_value:
            self.log(f"{title}: nothing to choose")
            return
        self.resolver.open_interaction(
            InteractionRequest(
                interaction_id=self.resolver.broker.next_id(),
                player_id=player_id or self.player_id,
                title=title,
                kind=InteractionKind.NUMBER_INPUT,
                description=description,
                min_value=min_value,
                max_value=max_value,
                unit_cost=unit_cost,
                source_card_id=self.card.card_id if self.card else None,
            ),
            InteractionHandlers(on_confirm=on_confirm),
        )

    def request_card(
        self,
        title: str,
        candidates: list[CardInstance],
        on_select: Callable[[CardInstance], None],
        description: str = "",
        require_present: bool = True,
        player_id: int | None = None,
    ) -> None:
        if not candidates:
            self.log(f"{title}: no cards to choose from")
            return
        self.resolver.open_interaction(
            InteractionRequest(
                interaction_id=self.resolver.broker.next_id(),
                player_id=player_id or self.player_id,
                title=title,
                kind=InteractionKind.CARD_SELECT,
                description=description,
                candidates=list(candidates),
                require_present=require_present,
                source_card_id=self.card.card_id if self.card else None,
            ),
            InteractionHandlers(on_card_select=on_select),
        )


class EffectResolver:
    """
    Drains the command queue in strict order.

    The resolver is stateful during resolution and keeps the queue
    between calls while a human interaction is pending.
    """

    def __init__(
        self,
        registry: CardRegistry,
        rng: random.Random | None = None,
        broker: InteractionBroker | None = None,
    ):
        self.registry = registry
        self.rng = rng or random.Random()
        self.broker = broker or InteractionBroker()
        self.responders: dict[int, InteractionResponder] = {}
        self.status = ResolverState.READY
        self._state: MatchState | None = None
        self._queue: deque[Command] = deque()
        self._collector: list[Command] | None = None
        self._visual_counter = 0

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------

    @property
    def state(self) -> MatchState:
        if self._state is None:
            raise RuntimeError("Resolver has no working state")
        return self._state

    @property
    def queued(self) -> list[PendingEffect]:
        return [c.descriptor for c in self._queue]

    def run(self, state: MatchState, commands: list[Command]) -> MatchState:
        """Append commands to the queue and drain until idle or suspended."""
        self._state = state
        self._queue.extend(commands)
        self._drain()
        return self._finish()

    def resume(self, state: MatchState, response: InteractionResponse) -> tuple[MatchState, str | None]:
        """Answer the outstanding interaction and continue draining."""
        request = state.interaction
        resolution = self.broker.resolve(state, response)
        if not resolution.accepted:
            return state, resolution.error

        self._state = resolution.state
        if resolution.continuation is not None and request is not None:
            self._execute(Command(
                label=f"answer:{request.title}",
                run=resolution.continuation,
                descriptor=PendingEffect(kind="CONTINUATION", player_id=request.player_id,
                                         description=request.title),
            ))
        self._drain()
        return self._finish(), None

    def reset(self) -> None:
        """Drop queued work and continuations."""
        self._queue.clear()
        self._collector = None
        self.broker.clear()
        self.status = ResolverState.READY

    def _drain(self) -> None:
        self.status = ResolverState.RESOLVING
        while True:
            if self.state.is_over:
                if self._queue:
                    logger.debug("Match over, dropping %d queued commands", len(self._queue))
                    self._queue.clear()
                if self.state.interaction is not None:
                    self._state = self.broker.dismiss(self.state, "match over")
                break

            request = self.state.interaction
            if request is not None:
                responder = self.responders.get(request.player_id)
                if responder is None:
                    self.status = ResolverState.WAITING_CHOICE
                    return
                self._answer_automatically(responder, request)
                continue

            if not self._queue:
                break
            self._execute(self._queue.popleft())

        self.status = ResolverState.COMPLETED

    def _answer_automatically(
        self,
        responder: InteractionResponder,
        request: InteractionRequest,
    ) -> None:
        try:
            response = responder.respond(self.state, request)
        except Exception:
            logger.exception("Responder failed on %s", request.interaction_id)
            response = InteractionResponse.dismissed("responder error")

        resolution = self.broker.resolve(self.state, response)
        if not resolution.accepted:
            logger.warning(
                "Automatic answer to %s rejected: %s", request.interaction_id, resolution.error
            )
            self._state = self.broker.dismiss(self.state, resolution.error or "")
            return

        self._state = resolution.state
        if resolution.continuation is not None:
            self._execute(Command(
                label=f"answer:{request.title}",
                run=resolution.continuation,
                descriptor=PendingEffect(kind="CONTINUATION", player_id=request.player_id,
                                         description=request.title),
            ))

    def _execute(self, command: Command) -> None:
        collector: list[Command] = []
        previous = self._collector
        self._collector = collector
        try:
            command.run()
        finally:
            self._collector = previous
        # Follow-ups go to the front, in the order they were deferred
        for follow_up in reversed(collector):
            self._queue.appendleft(follow_up)

    def _finish(self) -> MatchState:
        self._state = self.state._copy_with(pending_effects=self.queued)
        return self._state

    # ------------------------------------------------------------------
    # Used by commands and contexts
    # ------------------------------------------------------------------

    def defer(self, command: Command) -> None:
        if self._collector is not None:
            self._collector.append(command)
        else:
            self._queue.append(command)

    def mutate(self, fn: Callable[[MatchState], MatchState]) -> None:
        if self.state.is_over:
            return
        new_state = fn(self.state)
        if new_state is None:
            return
        self._state = check_game_over(new_state)

    def log(self, message: str) -> None:
        logger.debug(message)
        self._state = self.state.with_log(message)

    def visual(
        self,
        kind: str,
        player_id: int | None,
        card_name: str | None = None,
        description: str = "",
    ) -> None:
        self._visual_counter += 1
        self._state = self.state.with_visual(VisualEvent(
            event_id=f"{kind.lower()}-{self._visual_counter}",
            kind=kind,
            player_id=player_id,
            card_name=card_name,
            description=description,
        ))

    def open_interaction(self, request: InteractionRequest, handlers: InteractionHandlers) -> None:
        if self.state.is_over:
            return
        if self.state.interaction is not None:
            # One outstanding request at a time: raise this one afterwards
            self.defer(Command(
                label=f"open:{request.title}",
                run=lambda: self.open_interaction(request, handlers),
                descriptor=PendingEffect(kind="INTERACTION", player_id=request.player_id,
                                         description=request.title),
            ))
            return
        self._state = self.broker.open(self.state, request, handlers)

    def make_context(
        self,
        player_id: int,
        card: CardInstance | None = None,
        window: InstantWindow = InstantWindow.NONE,
        reversed: bool | None = None,
    ) -> EffectContext:
        """Build a context; reversal follows the player's status unless given."""
        if reversed is None:
            player = self.state.get_player(player_id)
            reversed = player.status.is_reversed and not (card and card.is_treasure)
        return EffectContext(
            resolver=self,
            player_id=player_id,
            card=card,
            window=window,
            reversed=reversed,
        )

    def hook_command(
        self,
        hook: HookType,
        player_id: int,
        card: CardInstance,
        window: InstantWindow = InstantWindow.NONE,
    ) -> Command | None:
        """Build the command that invokes `hook` on `card`, or None if absent."""
        if not card.definition.implements(hook):
            return None

        def run() -> None:
            location = self.state.find_card(card.instance_id)
            current = location.card if location else card
            ctx = self.make_context(player_id, current, window)
            if ctx.reversed:
                self.log(f"[Reversed] {current.name} resolves with targets swapped")
            method = getattr(current.definition, hook.value)
            method(ctx)

        return Command(
            label=f"{hook.value}:{card.name}",
            run=run,
            descriptor=PendingEffect(
                kind=hook.name,
                player_id=player_id,
                instance_id=card.instance_id,
                description=card.name,
            ),
        )

    def dispatch_hook(
        self,
        hook: HookType,
        player_id: int,
        card: CardInstance,
        window: InstantWindow = InstantWindow.NONE,
    ) -> bool:
        """Queue a hook invocation as a follow-up of the current step."""
        command = self.hook_command(hook, player_id, card, window)
        if command is None:
            return False
        self.defer(command)
        return True
