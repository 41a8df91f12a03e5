"""
Snapshot - MatchState as plain serializable data for transport.

Cards travel as ids plus their runtime fields; the receiving side re-binds
definitions from its own CardRegistry. The outstanding interaction travels
as data only: its continuations stay with the InteractionBroker that
opened it, and a receiving side re-attaches local handlers by id.
"""

from __future__ import annotations
from dataclasses import asdict
from typing import Any, Optional

from pydantic import BaseModel, Field

from .cards import CardRegistry
from .state import (
    CardInstance,
    DelayedAction,
    DelayedEffect,
    FieldState,
    GamePhase,
    InstantWindow,
    InteractionKind,
    InteractionRequest,
    MatchOutcome,
    MatchState,
    PendingEffect,
    PlayerState,
    Quest,
    QuestTrigger,
    RevealStage,
    StatusFlags,
    VisualEvent,
)


# =============================================================================
# Models
# =============================================================================

class CardSnapshot(BaseModel):
    card_id: str
    instance_id: str
    marks: list[str] = Field(default_factory=list)
    is_locked: bool = False
    locked_turns: int = 0
    temp_rank: Optional[int] = None


class StatusSnapshot(BaseModel):
    immunity_this_turn: bool = False
    immunity_next_turn: bool = False
    effect_double_next: bool = False
    is_reversed: bool = False
    is_invalidated: bool = False
    invalidate_next_played_card: bool = False
    invalidate_next_turn: bool = False
    prevent_transform: int = 0
    prevent_healing: bool = False
    has_lifesteal: bool = False
    damage_reflection: bool = False
    incoming_damage_conversion: bool = False
    next_damage_double: bool = False
    piercing_damage_this_turn: bool = False
    piercing_damage_next_turn: bool = False
    damage_taken_this_turn: int = 0


class DelayedEffectSnapshot(BaseModel):
    amount: int
    action: DelayedAction
    turns_remaining: int
    source: str = ""


class QuestSnapshot(BaseModel):
    quest_id: str
    name: str
    description: str = ""
    progress: int = 0
    target: int = 1
    trigger: QuestTrigger = QuestTrigger.CUSTOM
    completed: bool = False


class PlayerSnapshot(BaseModel):
    player_id: int
    name: str
    is_human: bool = True
    hp: int
    atk: int
    max_hand_size: int
    draw_per_turn: int
    hand: list[CardSnapshot] = Field(default_factory=list)
    deck: list[CardSnapshot] = Field(default_factory=list)
    discard_pile: list[CardSnapshot] = Field(default_factory=list)
    set_card: Optional[CardSnapshot] = None
    has_committed: bool = False
    is_set_card_revealed: bool = False
    status: StatusSnapshot = Field(default_factory=StatusSnapshot)
    delayed_effects: list[DelayedEffectSnapshot] = Field(default_factory=list)
    quests: list[QuestSnapshot] = Field(default_factory=list)
    skip_discard_this_turn: bool = False


class FieldSnapshot(BaseModel):
    card: CardSnapshot
    owner_id: int
    active: bool = False
    counter: int = 0


class InteractionSnapshot(BaseModel):
    interaction_id: str
    player_id: int
    title: str
    kind: InteractionKind
    description: str = ""
    options: list[str] = Field(default_factory=list)
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    candidates: list[CardSnapshot] = Field(default_factory=list)
    require_present: bool = True
    unit_cost: Optional[int] = None
    source_card_id: Optional[str] = None


class PendingEffectSnapshot(BaseModel):
    kind: str
    player_id: Optional[int] = None
    instance_id: Optional[str] = None
    description: str = ""


class VisualEventSnapshot(BaseModel):
    event_id: str
    kind: str
    player_id: Optional[int] = None
    card_name: Optional[str] = None
    description: str = ""


class OutcomeSnapshot(BaseModel):
    winner_id: Optional[int] = None
    loser_ids: list[int] = Field(default_factory=list)
    is_draw: bool = False


class MatchSnapshot(BaseModel):
    """Complete wire form of a MatchState."""
    match_id: str
    players: list[PlayerSnapshot]
    phase: GamePhase
    instant_window: InstantWindow = InstantWindow.NONE
    reveal_stage: Optional[RevealStage] = None
    turn_number: int = 1
    shared_field: Optional[FieldSnapshot] = None
    vault: list[CardSnapshot] = Field(default_factory=list)
    exile: list[CardSnapshot] = Field(default_factory=list)
    logs: list[str] = Field(default_factory=list)
    interaction: Optional[InteractionSnapshot] = None
    pending_effects: list[PendingEffectSnapshot] = Field(default_factory=list)
    visual_events: list[VisualEventSnapshot] = Field(default_factory=list)
    passes: list[int] = Field(default_factory=list)
    outcome: Optional[OutcomeSnapshot] = None
    random_seed: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Conversion
# =============================================================================

def _card_out(card: CardInstance) -> CardSnapshot:
    return CardSnapshot(
        card_id=card.card_id,
        instance_id=card.instance_id,
        marks=list(card.marks),
        is_locked=card.is_locked,
        locked_turns=card.locked_turns,
        temp_rank=card.temp_rank,
    )


def _card_in(snapshot: CardSnapshot, registry: CardRegistry) -> CardInstance:
    return CardInstance(
        definition=registry.get(snapshot.card_id),
        instance_id=snapshot.instance_id,
        marks=list(snapshot.marks),
        is_locked=snapshot.is_locked,
        locked_turns=snapshot.locked_turns,
        temp_rank=snapshot.temp_rank,
    )


def _player_out(player: PlayerState) -> PlayerSnapshot:
    return PlayerSnapshot(
        player_id=player.player_id,
        name=player.name,
        is_human=player.is_human,
        hp=player.hp,
        atk=player.atk,
        max_hand_size=player.max_hand_size,
        draw_per_turn=player.draw_per_turn,
        hand=[_card_out(c) for c in player.hand],
        deck=[_card_out(c) for c in player.deck],
        discard_pile=[_card_out(c) for c in player.discard_pile],
        set_card=_card_out(player.set_card) if player.set_card else None,
        has_committed=player.has_committed,
        is_set_card_revealed=player.is_set_card_revealed,
        status=StatusSnapshot(**asdict(player.status)),
        delayed_effects=[DelayedEffectSnapshot(**asdict(e)) for e in player.delayed_effects],
        quests=[QuestSnapshot(**asdict(q)) for q in player.quests],
        skip_discard_this_turn=player.skip_discard_this_turn,
    )


def _player_in(snapshot: PlayerSnapshot, registry: CardRegistry) -> PlayerState:
    return PlayerState(
        player_id=snapshot.player_id,
        name=snapshot.name,
        is_human=snapshot.is_human,
        hp=snapshot.hp,
        atk=snapshot.atk,
        max_hand_size=snapshot.max_hand_size,
        draw_per_turn=snapshot.draw_per_turn,
        hand=[_card_in(c, registry) for c in snapshot.hand],
        deck=[_card_in(c, registry) for c in snapshot.deck],
        discard_pile=[_card_in(c, registry) for c in snapshot.discard_pile],
        set_card=_card_in(snapshot.set_card, registry) if snapshot.set_card else None,
        has_committed=snapshot.has_committed,
        is_set_card_revealed=snapshot.is_set_card_revealed,
        status=StatusFlags(**snapshot.status.model_dump()),
        delayed_effects=[DelayedEffect(**e.model_dump()) for e in snapshot.delayed_effects],
        quests=[Quest(**q.model_dump()) for q in snapshot.quests],
        skip_discard_this_turn=snapshot.skip_discard_this_turn,
    )


def to_snapshot(state: MatchState) -> MatchSnapshot:
    """Strip a MatchState down to plain data."""
    field_snapshot = None
    if state.shared_field:
        field_snapshot = FieldSnapshot(
            card=_card_out(state.shared_field.card),
            owner_id=state.shared_field.owner_id,
            active=state.shared_field.active,
            counter=state.shared_field.counter,
        )

    interaction = None
    if state.interaction:
        request = state.interaction
        interaction = InteractionSnapshot(
            interaction_id=request.interaction_id,
            player_id=request.player_id,
            title=request.title,
            kind=request.kind,
            description=request.description,
            options=list(request.options),
            min_value=request.min_value,
            max_value=request.max_value,
            candidates=[_card_out(c) for c in request.candidates],
            require_present=request.require_present,
            unit_cost=request.unit_cost,
            source_card_id=request.source_card_id,
        )

    return MatchSnapshot(
        match_id=state.match_id,
        players=[_player_out(p) for p in state.players],
        phase=state.phase,
        instant_window=state.instant_window,
        reveal_stage=state.reveal_stage,
        turn_number=state.turn_number,
        shared_field=field_snapshot,
        vault=[_card_out(c) for c in state.vault],
        exile=[_card_out(c) for c in state.exile],
        logs=list(state.logs),
        interaction=interaction,
        pending_effects=[PendingEffectSnapshot(**asdict(e)) for e in state.pending_effects],
        visual_events=[VisualEventSnapshot(**asdict(e)) for e in state.visual_events],
        passes=list(state.passes),
        outcome=OutcomeSnapshot(**asdict(state.outcome)) if state.outcome else None,
        random_seed=state.random_seed,
        metadata=dict(state.metadata),
    )


def from_snapshot(snapshot: MatchSnapshot, registry: CardRegistry) -> MatchState:
    """
    Rebuild a MatchState, re-binding card definitions from `registry`.

    Raises KeyError if the snapshot names a card the registry lacks.
    """
    shared_field = None
    if snapshot.shared_field:
        shared_field = FieldState(
            card=_card_in(snapshot.shared_field.card, registry),
            owner_id=snapshot.shared_field.owner_id,
            active=snapshot.shared_field.active,
            counter=snapshot.shared_field.counter,
        )

    interaction = None
    if snapshot.interaction:
        data = snapshot.interaction
        interaction = InteractionRequest(
            interaction_id=data.interaction_id,
            player_id=data.player_id,
            title=data.title,
            kind=data.kind,
            description=data.description,
            options=list(data.options),
            min_value=data.min_value,
            max_value=data.max_value,
            candidates=[_card_in(c, registry) for c in data.candidates],
            require_present=data.require_present,
            unit_cost=data.unit_cost,
            source_card_id=data.source_card_id,
        )

    outcome = None
    if snapshot.outcome:
        outcome = MatchOutcome(**snapshot.outcome.model_dump())

    return MatchState(
        match_id=snapshot.match_id,
        players=[_player_in(p, registry) for p in snapshot.players],
        phase=snapshot.phase,
        instant_window=snapshot.instant_window,
        reveal_stage=snapshot.reveal_stage,
        turn_number=snapshot.turn_number,
        shared_field=shared_field,
        vault=[_card_in(c, registry) for c in snapshot.vault],
        exile=[_card_in(c, registry) for c in snapshot.exile],
        logs=list(snapshot.logs),
        interaction=interaction,
        pending_effects=[PendingEffect(**e.model_dump()) for e in snapshot.pending_effects],
        visual_events=[VisualEvent(**e.model_dump()) for e in snapshot.visual_events],
        passes=list(snapshot.passes),
        outcome=outcome,
        random_seed=snapshot.random_seed,
        metadata=dict(snapshot.metadata),
    )


def dumps(state: MatchState) -> str:
    return to_snapshot(state).model_dump_json()


def loads(data: str, registry: CardRegistry) -> MatchState:
    return from_snapshot(MatchSnapshot.model_validate_json(data), registry)
