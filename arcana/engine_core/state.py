"""
Match State - The single authoritative snapshot of a duel.

Design principles:
- Immutable-friendly: every mutation returns a new state
- Plain data: no callables live in the state, so it can be snapshotted
  for transport (continuations stay in the InteractionBroker)
- Two players, identified by ids 1 and 2
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterator

from .cards import CardDefinition


MAX_HP_REFERENCE = 40


class GamePhase(Enum):
    """Top-level phases of a turn."""
    DRAW = "draw"
    SET = "set"
    REVEAL = "reveal"
    DISCARD = "discard"
    GAME_OVER = "game_over"


class InstantWindow(Enum):
    """Timing windows in which instant cards may be played."""
    NONE = "none"
    BEFORE_SET = "before_set"
    BEFORE_REVEAL = "before_reveal"
    AFTER_REVEAL = "after_reveal"


class RevealStage(Enum):
    """Sub-stages of the REVEAL phase, in fixed order."""
    INSTANTS = "instants"  # face down, before-reveal window
    REVEALED = "revealed"  # face up, after-reveal window
    STATUS = "status"
    RANKED = "ranked"
    DISCARD = "discard"


class InteractionKind(Enum):
    """Shapes of a suspended decision."""
    BUTTON = "button"
    NUMBER_INPUT = "number_input"
    CARD_SELECT = "card_select"


class DelayedAction(Enum):
    """What a delayed effect does when its countdown reaches zero."""
    DRAW = "draw"
    DISCARD = "discard"
    ATK_CHANGE = "atk_change"
    HEAL = "heal"


class QuestTrigger(Enum):
    """Events that advance quest progress."""
    DRAW = "draw"
    DISCARD = "discard"
    DAMAGE_DEALT = "damage_dealt"
    CUSTOM = "custom"


# ============================================================================
# Cards
# ============================================================================

@dataclass
class CardInstance:
    """
    A runtime card: a definition bound to an instance id.

    Equality and hashing use the instance id, like any other
    runtime card handle.
    """
    definition: CardDefinition
    instance_id: str
    marks: list[str] = field(default_factory=list)
    is_locked: bool = False
    locked_turns: int = 0
    temp_rank: int | None = None

    @property
    def card_id(self) -> str:
        return self.definition.card_id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def rank(self) -> int:
        return self.definition.rank

    @property
    def effective_rank(self) -> int:
        """Rank used for reveal ordering: override first, else definition rank."""
        return self.temp_rank if self.temp_rank is not None else self.definition.rank

    @property
    def is_treasure(self) -> bool:
        return self.definition.is_treasure

    def has_mark(self, mark: str) -> bool:
        return mark in self.marks

    def with_changes(self, **kwargs) -> CardInstance:
        return replace(self, **kwargs)

    def __hash__(self):
        return hash(self.instance_id)

    def __eq__(self, other):
        if not isinstance(other, CardInstance):
            return False
        return self.instance_id == other.instance_id


@dataclass
class CardLocation:
    """Where a card instance currently lives."""
    zone: str  # hand, deck, discard, set, field, vault, exile
    owner_id: int | None
    card: CardInstance


# ============================================================================
# Player
# ============================================================================

@dataclass
class StatusFlags:
    """Per-player status effects; most reset at the turn boundary."""
    immunity_this_turn: bool = False
    immunity_next_turn: bool = False
    effect_double_next: bool = False
    is_reversed: bool = False
    is_invalidated: bool = False
    invalidate_next_played_card: bool = False
    invalidate_next_turn: bool = False
    prevent_transform: int = 0  # transform effects still to be blocked
    prevent_healing: bool = False
    has_lifesteal: bool = False
    damage_reflection: bool = False
    incoming_damage_conversion: bool = False
    next_damage_double: bool = False
    piercing_damage_this_turn: bool = False
    piercing_damage_next_turn: bool = False
    damage_taken_this_turn: int = 0


@dataclass
class DelayedEffect:
    """A mutation applied after `turns_remaining` turn boundaries."""
    amount: int
    action: DelayedAction
    turns_remaining: int
    source: str = ""


@dataclass
class Quest:
    """A progress-tracked objective with a one-time reward."""
    quest_id: str
    name: str
    description: str = ""
    progress: int = 0
    target: int = 1
    trigger: QuestTrigger = QuestTrigger.CUSTOM
    completed: bool = False

    @property
    def is_complete(self) -> bool:
        return self.progress >= self.target


@dataclass
class PlayerState:
    """State for one side of the duel."""
    player_id: int
    name: str
    is_human: bool = True

    hp: int = 40
    atk: int = 2
    max_hand_size: int = 3
    draw_per_turn: int = 1

    # Zones; deck top is index 0
    hand: list[CardInstance] = field(default_factory=list)
    deck: list[CardInstance] = field(default_factory=list)
    discard_pile: list[CardInstance] = field(default_factory=list)

    # The face-down card committed this turn
    set_card: CardInstance | None = None
    has_committed: bool = False
    is_set_card_revealed: bool = False

    status: StatusFlags = field(default_factory=StatusFlags)
    delayed_effects: list[DelayedEffect] = field(default_factory=list)
    quests: list[Quest] = field(default_factory=list)
    skip_discard_this_turn: bool = False

    @property
    def hand_count(self) -> int:
        """Cards that count toward the hand limit (treasure excluded)."""
        return sum(1 for c in self.hand if not c.is_treasure)

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    def settable_cards(self) -> list[CardInstance]:
        return [c for c in self.hand if not c.is_locked and c.definition.can_set]

    def find_in_hand(self, instance_id: str) -> CardInstance | None:
        for c in self.hand:
            if c.instance_id == instance_id:
                return c
        return None

    def with_status(self, **kwargs) -> PlayerState:
        return replace(self, status=replace(self.status, **kwargs))

    def with_changes(self, **kwargs) -> PlayerState:
        return replace(self, **kwargs)


# ============================================================================
# Shared state
# ============================================================================

@dataclass
class FieldState:
    """The single shared field slot."""
    card: CardInstance
    owner_id: int
    active: bool = False
    counter: int = 0


@dataclass
class InteractionRequest:
    """
    A suspended decision, as plain data.

    The continuations bound to it are held by the InteractionBroker,
    keyed by interaction_id.
    """
    interaction_id: str
    player_id: int
    title: str
    kind: InteractionKind
    description: str = ""
    options: list[str] = field(default_factory=list)
    min_value: int | None = None
    max_value: int | None = None
    candidates: list[CardInstance] = field(default_factory=list)
    require_present: bool = True
    unit_cost: int | None = None
    source_card_id: str | None = None

    def candidate(self, instance_id: str) -> CardInstance | None:
        for c in self.candidates:
            if c.instance_id == instance_id:
                return c
        return None


@dataclass
class PendingEffect:
    """Descriptor of a queued command (hook invocation or engine step)."""
    kind: str
    player_id: int | None = None
    instance_id: str | None = None
    description: str = ""


@dataclass
class VisualEvent:
    """One-shot event for the presentation layer; ignored by the engine."""
    event_id: str
    kind: str
    player_id: int | None = None
    card_name: str | None = None
    description: str = ""


@dataclass
class MatchOutcome:
    """Terminal result: a winner, or a draw on simultaneous defeat."""
    winner_id: int | None
    loser_ids: list[int] = field(default_factory=list)
    is_draw: bool = False


@dataclass
class MatchState:
    """
    Complete match state at a point in time.

    All state changes go through the reducer and the operations module,
    each of which returns a new MatchState.
    """
    match_id: str
    players: list[PlayerState] = field(default_factory=list)

    phase: GamePhase = GamePhase.DRAW
    instant_window: InstantWindow = InstantWindow.NONE
    reveal_stage: RevealStage | None = None
    turn_number: int = 1

    shared_field: FieldState | None = None
    vault: list[CardInstance] = field(default_factory=list)
    exile: list[CardInstance] = field(default_factory=list)

    logs: list[str] = field(default_factory=list)
    interaction: InteractionRequest | None = None
    pending_effects: list[PendingEffect] = field(default_factory=list)
    visual_events: list[VisualEvent] = field(default_factory=list)

    # Players that passed the current instant window
    passes: list[int] = field(default_factory=list)
    outcome: MatchOutcome | None = None

    random_seed: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    def get_player(self, player_id: int) -> PlayerState:
        for p in self.players:
            if p.player_id == player_id:
                return p
        raise KeyError(f"Player {player_id} not found")

    def opponent_id(self, player_id: int) -> int:
        return 2 if player_id == 1 else 1

    def opponent_of(self, player_id: int) -> PlayerState:
        return self.get_player(self.opponent_id(player_id))

    def with_player(self, player: PlayerState) -> MatchState:
        """Return new state with updated player."""
        new_players = [
            player if p.player_id == player.player_id else p
            for p in self.players
        ]
        return self._copy_with(players=new_players)

    def with_log(self, message: str) -> MatchState:
        return self._copy_with(logs=self.logs + [message])

    def with_visual(self, event: VisualEvent) -> MatchState:
        return self._copy_with(visual_events=self.visual_events + [event])

    def _copy_with(self, **kwargs) -> MatchState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def iter_cards(self) -> Iterator[CardLocation]:
        """Every live card instance with its current zone."""
        for p in self.players:
            for c in p.hand:
                yield CardLocation("hand", p.player_id, c)
            for c in p.deck:
                yield CardLocation("deck", p.player_id, c)
            for c in p.discard_pile:
                yield CardLocation("discard", p.player_id, c)
            if p.set_card:
                yield CardLocation("set", p.player_id, p.set_card)
        if self.shared_field:
            yield CardLocation("field", self.shared_field.owner_id, self.shared_field.card)
        for c in self.vault:
            yield CardLocation("vault", None, c)
        for c in self.exile:
            yield CardLocation("exile", None, c)

    def find_card(self, instance_id: str) -> CardLocation | None:
        for location in self.iter_cards():
            if location.card.instance_id == instance_id:
                return location
        return None

    def is_treasure_in_vault(self, card_id: str) -> bool:
        return any(c.card_id == card_id for c in self.vault)
