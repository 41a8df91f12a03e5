"""
Card Definitions - The contract every card implements.

A CardDefinition is the immutable template of a card:
- Identity (id, name, suit, rank)
- Static flags (treasure, lockable, settable)
- Instant eligibility per window
- Optional hooks (on_draw, on_resolve_status, on_reveal, on_instant,
  on_discard, on_field_leave)
- AI hints (effect tags per hook)

Cards are data. Concrete cards subclass CardDefinition and override only
the hooks they need; the engine asks `implements()` before dispatching,
so a card without a hook never produces a queued invocation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable

if TYPE_CHECKING:
    from .effect_resolver import EffectContext
    from .state import InstantWindow


class Suit(Enum):
    """Card suits."""
    CUPS = "cups"
    SWORDS = "swords"
    WANDS = "wands"
    PENTACLES = "pentacles"
    EMPTY = "empty"
    TREASURE = "treasure"


class Keyword(Enum):
    """Rules keywords printed on cards."""
    SCRY = "scry"
    CLASH = "clash"
    SEIZE = "seize"
    BLIND_SEIZE = "blind_seize"
    RETURN = "return"
    DESTROY = "destroy"
    INVALIDATE = "invalidate"
    REVERSE = "reverse"
    TREASURE = "treasure"
    IMPRINT = "imprint"
    SUBSTITUTE = "substitute"
    PIERCE = "pierce"
    SHUFFLE = "shuffle"
    FIELD = "field"
    QUEST = "quest"
    LOCK = "lock"
    TRANSFORM = "transform"


class AITag(Enum):
    """Closed set of effect tags the AI scorer understands."""
    DAMAGE = "damage"
    HEAL = "heal"
    DRAW = "draw"
    DISCARD = "discard"
    BUFF = "buff"
    DEBUFF = "debuff"
    CONTROL = "control"
    SPECIAL = "special"
    TRANSFORM = "transform"
    FIELD = "field"


DEFENSIVE_TAGS = frozenset({AITag.HEAL, AITag.BUFF, AITag.CONTROL})


class HookType(Enum):
    """Hook names, valued by the method that implements them."""
    ON_DRAW = "on_draw"
    ON_RESOLVE_STATUS = "on_resolve_status"
    ON_REVEAL = "on_reveal"
    ON_INSTANT = "on_instant"
    ON_DISCARD = "on_discard"
    ON_FIELD_LEAVE = "on_field_leave"


@dataclass(frozen=True)
class CardAIInfo:
    """
    Hints consumed by the AI scorer.

    Tags are declared per hook. `damage_multiplier` scales the estimated
    damage (atk x multiplier). `retrieves_treasure` and `search_targets`
    feed the situational scoring rules.
    """
    on_reveal: tuple[AITag, ...] = ()
    on_instant: tuple[AITag, ...] = ()
    on_draw: tuple[AITag, ...] = ()
    on_discard: tuple[AITag, ...] = ()
    damage_multiplier: float = 1.0
    self_damage: bool = False
    retrieves_treasure: str | None = None
    search_targets: tuple[str, ...] = ()

    @property
    def primary_tags(self) -> tuple[AITag, ...]:
        """Tags describing what playing the card does."""
        if self.on_reveal:
            return self.on_reveal
        merged: list[AITag] = []
        for tags in (self.on_instant, self.on_draw, self.on_discard):
            for tag in tags:
                if tag not in merged:
                    merged.append(tag)
        return tuple(merged)


@dataclass(frozen=True)
class CardDefinition:
    """
    Immutable card template.

    Subclasses override hook methods. The base implementations do nothing
    and are treated as "hook absent" by `implements()`.
    """
    card_id: str
    name: str
    suit: Suit
    rank: int
    description: str = ""
    keywords: tuple[Keyword, ...] = ()
    is_treasure: bool = False
    lockable: bool = True
    can_set: bool = True
    instant_windows: frozenset = frozenset()
    # Field counter value at which this card, standing as the field, activates
    field_activation: int | None = None
    ai: CardAIInfo = field(default_factory=CardAIInfo)

    @property
    def arcana_number(self) -> int:
        """Major arcana number (rank without the suit hundreds)."""
        return self.rank % 100

    def can_instant(self, window: InstantWindow) -> bool:
        return window in self.instant_windows

    def implements(self, hook: HookType) -> bool:
        """Whether this card overrides the given hook."""
        method = getattr(type(self), hook.value, None)
        return method is not None and method is not getattr(CardDefinition, hook.value)

    # Hooks ---------------------------------------------------------------

    def on_draw(self, ctx: EffectContext) -> None:
        pass

    def on_resolve_status(self, ctx: EffectContext) -> None:
        pass

    def on_reveal(self, ctx: EffectContext) -> None:
        pass

    def on_instant(self, ctx: EffectContext) -> None:
        pass

    def on_discard(self, ctx: EffectContext) -> None:
        pass

    def on_field_leave(self, ctx: EffectContext) -> None:
        pass


QuestReward = Callable[["EffectContext"], None]


class CardRegistry:
    """
    Lookup table of card definitions and quest rewards.

    The registry is what lets a serialized snapshot (which only carries
    card ids) be re-bound to live definitions.
    """

    def __init__(self, definitions: Iterable[CardDefinition] = ()):
        self._cards: dict[str, CardDefinition] = {}
        self._quest_rewards: dict[str, QuestReward] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: CardDefinition) -> None:
        if definition.card_id in self._cards:
            raise ValueError(f"Duplicate card id: {definition.card_id}")
        self._cards[definition.card_id] = definition

    def register_quest_reward(self, quest_id: str, reward: QuestReward) -> None:
        self._quest_rewards[quest_id] = reward

    def get(self, card_id: str) -> CardDefinition:
        try:
            return self._cards[card_id]
        except KeyError:
            raise KeyError(f"Unknown card id: {card_id}") from None

    def quest_reward(self, quest_id: str) -> QuestReward | None:
        return self._quest_rewards.get(quest_id)

    def __contains__(self, card_id: str) -> bool:
        return card_id in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    @property
    def definitions(self) -> list[CardDefinition]:
        return list(self._cards.values())

    def non_treasure(self) -> list[CardDefinition]:
        return [c for c in self._cards.values() if not c.is_treasure]

    def treasures(self) -> list[CardDefinition]:
        return [c for c in self._cards.values() if c.is_treasure]
