"""
Reducer - Applies actions to match state.

The reducer is the single point of state mutation.
All state changes must go through apply().

Design principles:
- Transition function: (state, action) -> ActionResult with the new state
- Validates before applying; never raises to the caller
- Turn stages are commands on the EffectResolver queue, so card hooks,
  deferred follow-ups and interactions interleave in a fixed order
- A pending human interaction suspends the queue; RESOLVE_INTERACTION
  resumes it where it stopped

Turn outline:
    START_TURN -> draw -> SET (BEFORE_SET instants) -> both SET_CARD
    -> REVEAL: BEFORE_REVEAL instants until both PASS
    -> flip -> AFTER_REVEAL instants until both PASS
    -> status stage -> ranked stage -> discard stage
    -> hand trim -> turn boundary -> DRAW
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .action import Action, ActionResult, ActionType
from .cards import CardRegistry, HookType
from .effect_resolver import Command, EffectContext, EffectResolver
from .interaction import InteractionBroker, InteractionResponder
from .marks import INVALIDATED_MARK, tick_delayed_effects
from .operations import (
    change_atk,
    discard_cards,
    discard_set_card,
    damage_player,
    draw_cards,
    heal_player,
)
from .state import (
    CardInstance,
    DelayedAction,
    GamePhase,
    InstantWindow,
    MatchState,
    PendingEffect,
    PlayerState,
    RevealStage,
)

logger = logging.getLogger(__name__)

PLAYER_ORDER = (1, 2)

# Reveal stages that wait on both players passing an instant window
PASS_STAGES = (RevealStage.INSTANTS, RevealStage.REVEALED)


def _step(label: str, run, player_id: int | None = None, instance_id: str | None = None) -> Command:
    return Command(
        label=label,
        run=run,
        descriptor=PendingEffect(kind=label.upper(), player_id=player_id,
                                 instance_id=instance_id, description=label),
    )


@dataclass
class Reducer:
    """
    Reducer applies actions to match state.

    One reducer drives one match: it owns the resolver whose queue
    survives across a pending interaction. Responders registered for a
    player answer that player's interactions synchronously.
    """
    registry: CardRegistry
    rng: random.Random = field(default_factory=random.Random)
    broker: InteractionBroker = field(default_factory=InteractionBroker)
    responders: dict[int, InteractionResponder] = field(default_factory=dict)

    def __post_init__(self):
        self.resolver = EffectResolver(self.registry, self.rng, self.broker)
        self.resolver.responders = self.responders

    def register_responder(self, player_id: int, responder: InteractionResponder) -> None:
        self.responders[player_id] = responder

    def apply(self, state: MatchState, action: Action) -> ActionResult:
        """
        Apply an action to the match state.

        Returns ActionResult with new state or error.
        """
        if state.interaction is not None and action.action_type != ActionType.RESOLVE_INTERACTION:
            return ActionResult.failure(
                f"Interaction '{state.interaction.title}' must be resolved first",
                error_code="INTERACTION_PENDING",
            )

        # Validate action is legal
        validation_error = self._validate_action(state, action)
        if validation_error:
            return ActionResult.failure(validation_error, error_code="INVALID_ACTION")

        # Dispatch to handler based on action type
        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        try:
            result = handler(state, action)
        except Exception as e:
            logger.exception("Handler for %s failed", action.action_type.value)
            self.resolver.reset()
            return ActionResult.failure(str(e), error_code="HANDLER_ERROR")

        if result.success and result.new_state is not None:
            new_state = result.new_state
            result.state_changes = new_state.logs[len(state.logs):]
            result.pending_choice = new_state.interaction
            result.effects_resolved = [
                line for line in result.state_changes if line.startswith("[")
            ]
        return result

    def _validate_action(self, state: MatchState, action: Action) -> str | None:
        """
        Validate that an action is legal in the current state.

        Returns error message if invalid, None if valid.
        """
        if state.phase == GamePhase.GAME_OVER:
            return "Match is over - no actions allowed"

        action_type = action.action_type
        payload = action.payload

        if action_type == ActionType.START_TURN:
            if state.phase != GamePhase.DRAW:
                return f"Cannot start a turn during {state.phase.value}"
            return None

        player = self._find_player(state, payload.player_id)
        if player is None:
            return f"Player {payload.player_id} not found"

        if action_type == ActionType.SET_CARD:
            if state.phase != GamePhase.SET:
                return f"Cannot set a card during {state.phase.value}"
            if player.has_committed:
                return f"{player.name} has already set a card"
            settable = player.settable_cards()
            if payload.instance_id is None:
                if settable:
                    return f"{player.name} must set one of their cards"
                return None
            card = player.find_in_hand(payload.instance_id)
            if card is None:
                return f"Card {payload.instance_id} not in hand"
            if card not in settable:
                return f"[{card.name}] cannot be set"
            return None

        if action_type == ActionType.PLAY_INSTANT:
            window = state.instant_window
            if window == InstantWindow.NONE:
                return "No instant window is open"
            if window == InstantWindow.BEFORE_REVEAL and state.reveal_stage != RevealStage.INSTANTS:
                return "The before-reveal window has closed"
            if window == InstantWindow.AFTER_REVEAL and state.reveal_stage != RevealStage.REVEALED:
                return "The after-reveal window has closed"
            if window == InstantWindow.BEFORE_SET and player.has_committed:
                return f"{player.name} has already set a card"
            card = player.find_in_hand(payload.instance_id) if payload.instance_id else None
            if card is None:
                return f"Card {payload.instance_id} not in hand"
            if card.is_locked:
                return f"[{card.name}] is locked"
            if not card.definition.can_instant(window):
                return f"[{card.name}] cannot be played in the {window.value} window"
            return None

        if action_type == ActionType.PASS:
            if state.phase != GamePhase.REVEAL or state.reveal_stage not in PASS_STAGES:
                return "Nothing to pass right now"
            if player.player_id in state.passes:
                return f"{player.name} has already passed"
            return None

        if action_type == ActionType.RESOLVE_INTERACTION:
            if state.interaction is None:
                return "No interaction pending"
            if state.interaction.player_id != player.player_id:
                return f"Interaction belongs to player {state.interaction.player_id}"
            if payload.response is None:
                return "A response is required"
            return None

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.START_TURN: self._handle_start_turn,
            ActionType.SET_CARD: self._handle_set_card,
            ActionType.PLAY_INSTANT: self._handle_play_instant,
            ActionType.PASS: self._handle_pass,
            ActionType.RESOLVE_INTERACTION: self._handle_resolve_interaction,
        }
        return handlers.get(action_type)

    @staticmethod
    def _find_player(state: MatchState, player_id: int | None) -> PlayerState | None:
        if player_id is None:
            return None
        try:
            return state.get_player(player_id)
        except KeyError:
            return None

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_start_turn(self, state: MatchState, action: Action) -> ActionResult:
        new_state = self.resolver.run(state, [
            _step("draw", self._draw_stage),
            _step("ensure-playable", self._ensure_playable),
            _step("enter-set", self._enter_set),
        ])
        return ActionResult.success_with_state(new_state)

    def _handle_set_card(self, state: MatchState, action: Action) -> ActionResult:
        player = state.get_player(action.payload.player_id)
        card = player.find_in_hand(action.payload.instance_id) if action.payload.instance_id else None

        if card is None:
            player = player.with_changes(has_committed=True, set_card=None)
            message = f"{player.name} has nothing to set this turn."
        else:
            player = player.with_changes(
                hand=[c for c in player.hand if c.instance_id != card.instance_id],
                set_card=card,
                has_committed=True,
                is_set_card_revealed=False,
            )
            message = f"{player.name} sets a card face down."
        new_state = state.with_player(player).with_log(message)

        if all(p.has_committed for p in new_state.players):
            new_state = new_state._copy_with(
                phase=GamePhase.REVEAL,
                instant_window=InstantWindow.BEFORE_REVEAL,
                reveal_stage=RevealStage.INSTANTS,
                passes=[],
            ).with_log("Both cards are set. Before-reveal instants may be played.")
        return ActionResult.success_with_state(new_state)

    def _handle_play_instant(self, state: MatchState, action: Action) -> ActionResult:
        player_id = action.payload.player_id
        card = state.get_player(player_id).find_in_hand(action.payload.instance_id)
        window = state.instant_window

        def play() -> None:
            def move(s: MatchState) -> MatchState:
                p = s.get_player(player_id)
                hand = [c for c in p.hand if c.instance_id != card.instance_id]
                if card.is_treasure:
                    s = s.with_player(p.with_changes(hand=hand))
                    s = s._copy_with(vault=s.vault + [card])
                else:
                    s = s.with_player(p.with_changes(hand=hand, discard_pile=p.discard_pile + [card]))
                return s._copy_with(passes=[]).with_log(
                    f"[Instant] {p.name} plays [{card.name}]."
                )

            self.resolver.mutate(move)
            self.resolver.visual("INSTANT", player_id, card.name)
            self.resolver.dispatch_hook(HookType.ON_INSTANT, player_id, card, window)

        new_state = self.resolver.run(state, [
            _step("instant", play, player_id, card.instance_id),
        ])
        return ActionResult.success_with_state(new_state)

    def _handle_pass(self, state: MatchState, action: Action) -> ActionResult:
        player = state.get_player(action.payload.player_id)
        new_state = state._copy_with(passes=state.passes + [player.player_id])
        new_state = new_state.with_log(f"{player.name} passes.")
        if not all(pid in new_state.passes for pid in PLAYER_ORDER):
            return ActionResult.success_with_state(new_state)

        if new_state.reveal_stage == RevealStage.INSTANTS:
            new_state = self.resolver.run(new_state, [_step("flip", self._flip)])
            return ActionResult.success_with_state(new_state)

        new_state = self.resolver.run(new_state, [
            _step("close-window", self._close_window),
            _step("status-stage", self._status_stage),
            _step("ranked-stage", self._ranked_stage),
            _step("discard-stage", self._discard_stage),
            _step("hand-trim", self._hand_trim),
            _step("turn-boundary", self._turn_boundary),
        ])
        return ActionResult.success_with_state(new_state)

    def _handle_resolve_interaction(self, state: MatchState, action: Action) -> ActionResult:
        new_state, error = self.resolver.resume(state, action.payload.response)
        if error:
            return ActionResult.failure(error, error_code="INVALID_ACTION")
        return ActionResult.success_with_state(new_state)

    # ------------------------------------------------------------------
    # DRAW
    # ------------------------------------------------------------------

    def _context(self, player_id: int, card: CardInstance | None = None) -> EffectContext:
        return self.resolver.make_context(player_id, card, reversed=False)

    def _draw_stage(self) -> None:
        self.resolver.log(f"--- Draw phase, turn {self.resolver.state.turn_number} ---")
        for pid in PLAYER_ORDER:
            player = self.resolver.state.get_player(pid)
            draw_cards(self._context(pid), pid, player.draw_per_turn, apply_reversal=False)

    def _ensure_playable(self) -> None:
        for pid in PLAYER_ORDER:
            player = self.resolver.state.get_player(pid)
            if not player.settable_cards() and player.deck:
                self.resolver.log(f"{player.name} has no playable card and draws one more.")
                draw_cards(self._context(pid), pid, 1, apply_reversal=False)

    def _enter_set(self) -> None:
        self.resolver.mutate(lambda s: s._copy_with(
            phase=GamePhase.SET,
            instant_window=InstantWindow.BEFORE_SET,
            passes=[],
        ).with_log("Set phase. Before-set instants may be played."))

    # ------------------------------------------------------------------
    # REVEAL
    # ------------------------------------------------------------------

    def _flip(self) -> None:
        def apply(s: MatchState) -> MatchState:
            for p in s.players:
                s = s.with_player(p.with_changes(is_set_card_revealed=p.set_card is not None))
            return s._copy_with(
                instant_window=InstantWindow.AFTER_REVEAL,
                reveal_stage=RevealStage.REVEALED,
                passes=[],
            ).with_log("Cards are revealed! After-reveal instants may be played.")

        self.resolver.mutate(apply)
        for p in self.resolver.state.players:
            if p.set_card:
                self.resolver.visual("REVEAL", p.player_id, p.set_card.name)

    def _close_window(self) -> None:
        self.resolver.mutate(lambda s: s._copy_with(
            instant_window=InstantWindow.NONE,
            reveal_stage=RevealStage.STATUS,
            passes=[],
        ))

    def _is_invalidated(self, player: PlayerState, card: CardInstance) -> bool:
        if card.is_treasure:
            return False
        return (
            player.status.is_invalidated
            or player.status.invalidate_next_played_card
            or card.has_mark(INVALIDATED_MARK)
        )

    def _current_set_card(self, player_id: int, instance_id: str) -> CardInstance | None:
        """The card still in the player's set slot, or None if it left."""
        player = self.resolver.state.get_player(player_id)
        if player.set_card and player.set_card.instance_id == instance_id:
            return player.set_card
        return None

    def _status_stage(self) -> None:
        for pid in PLAYER_ORDER:
            card = self.resolver.state.get_player(pid).set_card
            if card and card.definition.implements(HookType.ON_RESOLVE_STATUS):
                self.resolver.defer(_step(
                    "status", lambda pid=pid, iid=card.instance_id: self._resolve_status(pid, iid),
                    pid, card.instance_id,
                ))

    def _resolve_status(self, player_id: int, instance_id: str) -> None:
        card = self._current_set_card(player_id, instance_id)
        if card is None:
            return
        player = self.resolver.state.get_player(player_id)
        if self._is_invalidated(player, card):
            self.resolver.log(f"[Invalidated] {player.name}'s [{card.name}] status effect is invalidated.")
            return
        self.resolver.dispatch_hook(HookType.ON_RESOLVE_STATUS, player_id, card)

    def reveal_order(self, state: MatchState) -> list[tuple[int, CardInstance]]:
        """Set cards sorted by effective rank; ties resolve in player-id order."""
        entries = [
            (p.player_id, p.set_card) for p in state.players if p.set_card is not None
        ]
        return sorted(entries, key=lambda entry: (entry[1].effective_rank, entry[0]))

    def _ranked_stage(self) -> None:
        self.resolver.mutate(lambda s: s._copy_with(reveal_stage=RevealStage.RANKED))
        for pid, card in self.reveal_order(self.resolver.state):
            self.resolver.defer(_step(
                "reveal", lambda pid=pid, iid=card.instance_id: self._reveal_card(pid, iid),
                pid, card.instance_id,
            ))

    def _reveal_card(self, player_id: int, instance_id: str) -> None:
        card = self._current_set_card(player_id, instance_id)
        if card is None:
            self.resolver.log(f"A card of player {player_id} left play before it could resolve.")
            return

        player = self.resolver.state.get_player(player_id)
        ctx = self._context(player_id, card)
        damage_player(ctx, self.resolver.state.opponent_id(player_id), player.atk,
                      apply_reversal=False)

        player = self.resolver.state.get_player(player_id)
        invalidated = self._is_invalidated(player, card)
        # The pending invalidation is spent by this card, even a treasure
        if player.status.invalidate_next_played_card:
            self.resolver.mutate(lambda s: s.with_player(
                s.get_player(player_id).with_status(invalidate_next_played_card=False)
            ))
        if invalidated:
            self.resolver.log(f"[Invalidated] {player.name}'s [{card.name}] is invalidated!")
            return

        if not card.definition.implements(HookType.ON_REVEAL):
            return
        self.resolver.visual("REVEAL_EFFECT", player_id, card.name)
        times = 1
        if player.status.effect_double_next:
            times = 2
            self.resolver.log(f"[Double] [{card.name}] resolves twice.")
            self.resolver.mutate(lambda s: s.with_player(
                s.get_player(player_id).with_status(effect_double_next=False)
            ))
        for _ in range(times):
            self.resolver.dispatch_hook(HookType.ON_REVEAL, player_id, card)

    # ------------------------------------------------------------------
    # DISCARD
    # ------------------------------------------------------------------

    def _discard_stage(self) -> None:
        self.resolver.mutate(lambda s: s._copy_with(
            phase=GamePhase.DISCARD,
            reveal_stage=RevealStage.DISCARD,
        ))
        for pid in PLAYER_ORDER:
            if self.resolver.state.get_player(pid).set_card is not None:
                discard_set_card(self._context(pid), pid)

    def _hand_trim(self) -> None:
        for pid in PLAYER_ORDER:
            player = self.resolver.state.get_player(pid)
            if player.skip_discard_this_turn:
                continue
            excess = player.hand_count - player.max_hand_size
            if excess > 0:
                self.resolver.defer(_step(
                    "trim", lambda pid=pid, n=excess: self.trim_hand(pid, n), pid,
                ))

    def trim_hand(self, player_id: int, remaining: int) -> None:
        """Ask the player to discard one card at a time, `remaining` times at most."""
        player = self.resolver.state.get_player(player_id)
        if remaining <= 0 or player.hand_count <= player.max_hand_size:
            return
        ctx = self._context(player_id)

        def on_select(card: CardInstance) -> None:
            discard_cards(ctx, player_id, [card.instance_id], forced=False, apply_reversal=False)
            ctx.defer(lambda: self.trim_hand(player_id, remaining - 1), label="trim")

        ctx.request_card(
            "Discard down to hand size",
            [c for c in player.hand if not c.is_treasure],
            on_select,
            description=f"Discard a card ({player.hand_count - player.max_hand_size} over the limit).",
            player_id=player_id,
        )

    # ------------------------------------------------------------------
    # Turn boundary
    # ------------------------------------------------------------------

    def _turn_boundary(self) -> None:
        due = []

        def tick(s: MatchState) -> MatchState:
            s, fired = tick_delayed_effects(s)
            due.extend(fired)
            return s

        self.resolver.mutate(tick)
        for pid, effect in due:
            ctx = self._context(pid)
            self.resolver.log(f"[Delayed] {effect.source} takes effect.")
            if effect.action == DelayedAction.DRAW:
                draw_cards(ctx, pid, effect.amount, apply_reversal=False)
            elif effect.action == DelayedAction.DISCARD:
                hand = [c for c in self.resolver.state.get_player(pid).hand if not c.is_treasure]
                picked = self.rng.sample(hand, min(effect.amount, len(hand)))
                discard_cards(ctx, pid, [c.instance_id for c in picked], forced=False,
                              apply_reversal=False)
            elif effect.action == DelayedAction.ATK_CHANGE:
                change_atk(ctx, pid, effect.amount, apply_reversal=False)
            elif effect.action == DelayedAction.HEAL:
                heal_player(ctx, pid, effect.amount, apply_reversal=False)

        self.resolver.defer(_step("next-turn", self._next_turn))

    def _next_turn(self) -> None:
        def reset(s: MatchState) -> MatchState:
            for p in s.players:
                status = p.status
                s = s.with_player(p.with_changes(
                    hand=[self._tick_lock(c) for c in p.hand],
                    deck=[self._tick_lock(c) for c in p.deck],
                    discard_pile=[self._tick_lock(c) for c in p.discard_pile],
                    set_card=None,
                    has_committed=False,
                    is_set_card_revealed=False,
                    skip_discard_this_turn=False,
                ).with_status(
                    immunity_this_turn=status.immunity_next_turn,
                    immunity_next_turn=False,
                    piercing_damage_this_turn=status.piercing_damage_next_turn,
                    piercing_damage_next_turn=False,
                    is_invalidated=status.invalidate_next_turn,
                    invalidate_next_turn=False,
                    is_reversed=False,
                    prevent_healing=False,
                    has_lifesteal=False,
                    damage_reflection=False,
                    incoming_damage_conversion=False,
                    damage_taken_this_turn=0,
                ))
            turn = s.turn_number + 1
            return s._copy_with(
                phase=GamePhase.DRAW,
                instant_window=InstantWindow.NONE,
                reveal_stage=None,
                passes=[],
                turn_number=turn,
            ).with_log(f"--- Turn {turn} begins ---")

        self.resolver.mutate(reset)

    @staticmethod
    def _tick_lock(card: CardInstance) -> CardInstance:
        changes = {}
        if card.temp_rank is not None:
            changes["temp_rank"] = None
        if card.is_locked:
            turns = card.locked_turns - 1
            changes["locked_turns"] = max(0, turns)
            changes["is_locked"] = turns > 0
        return card.with_changes(**changes) if changes else card


def apply_action(
    registry: CardRegistry,
    state: MatchState,
    action: Action,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action. Only suitable for actions
    that do not leave an interaction pending.
    """
    reducer = Reducer(registry=registry, rng=rng or random.Random(state.random_seed))
    return reducer.apply(state, action)
