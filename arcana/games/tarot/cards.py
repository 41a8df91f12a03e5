"""
Tarot Cards - The sample card library.

Each card is a CardDefinition subclass that overrides only the hooks it
uses. Ranks encode the suit in the hundreds (cups 1xx, wands 2xx,
swords 3xx, pentacles 4xx) and the major arcana number below; treasures
sit under 100 so they always resolve first.

The library covers every hook and every engine primitive:
- Draw / discard / field-leave triggers
- Status-stage effects (reverse, invalidate)
- Clash, marks, delayed effects and quests
- Treasure, seize, lock, transform, destroy, search/substitute
- All three interaction kinds
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from ...engine_core.cards import (
    AITag,
    CardAIInfo,
    CardDefinition,
    CardRegistry,
    HookType,
    Keyword,
    Suit,
)
from ...engine_core.clash import ClashOutcome, clash
from ...engine_core.marks import (
    INVALIDATED_MARK,
    attach_mark,
    check_mark,
    schedule_delayed,
    strip_mark,
    with_mark,
)
from ...engine_core.operations import (
    add_quest,
    advance_quest,
    blind_seize,
    change_atk,
    damage_player,
    destroy_card,
    discard_cards,
    discard_field,
    draw_cards,
    give_card,
    heal_player,
    issue_treasure,
    lock_random_cards,
    modify_player,
    put_card_in_deck,
    return_card,
    seize_card,
    set_field,
    set_invalidated,
    set_reversed,
    set_status,
    shuffle_deck,
    transform_card,
)
from ...engine_core.state import (
    CardInstance,
    DelayedAction,
    InstantWindow,
    MatchState,
    Quest,
    QuestTrigger,
)

if TYPE_CHECKING:
    from ...engine_core.effect_resolver import EffectContext


EMPOWERED_MARK = "mark-cups-magician"
DEVIL_MARK = "mark-swords-devil"

CHARIOT_QUEST = "quest-cups-chariot"
STAR_QUEST = "quest-wands-star"

BEFORE_SET = frozenset({InstantWindow.BEFORE_SET})
BEFORE_REVEAL = frozenset({InstantWindow.BEFORE_REVEAL})
EVERY_WINDOW = frozenset({InstantWindow.BEFORE_SET, InstantWindow.BEFORE_REVEAL, InstantWindow.AFTER_REVEAL})


def _empowered_bonus(ctx: EffectContext) -> int:
    """Extra damage (one atk) for a card carrying the magician's mark; the mark is spent."""
    if ctx.card is None or not check_mark(ctx, ctx.card.instance_id, EMPOWERED_MARK):
        return 0
    strip_mark(ctx, ctx.card.instance_id, EMPOWERED_MARK)
    ctx.log(f"[Empowered] [{ctx.card.name}] strikes harder.")
    return ctx.player.atk


# ============================================================================
# Cups
# ============================================================================

class CupsMagician(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        candidates = [
            c for c in ctx.player.hand
            if not c.is_treasure and c.instance_id != ctx.card.instance_id
        ]

        def empower(card: CardInstance) -> None:
            attach_mark(ctx, card.instance_id, EMPOWERED_MARK)

        ctx.request_card(
            "Select a card to empower",
            candidates,
            empower,
            description="The chosen card deals one extra atk of damage when it strikes.",
        )

    def on_instant(self, ctx: EffectContext) -> None:
        set_status(ctx, ctx.player_id, effect_double_next=True)
        ctx.log(f"[Magician] {ctx.player.name}'s played card will resolve twice.")


class CupsPriestess(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        heal_player(ctx, ctx.player_id, 4)

    def on_instant(self, ctx: EffectContext) -> None:
        heal_player(ctx, ctx.player_id, 3)

    def on_discard(self, ctx: EffectContext) -> None:
        set_status(ctx, ctx.player_id, immunity_next_turn=True)
        ctx.log(f"[Priestess] {ctx.player.name} will be immune to damage next turn.")


class CupsEmperor(CardDefinition):
    def on_draw(self, ctx: EffectContext) -> None:
        names = ", ".join(c.name for c in ctx.opponent.hand) or "nothing"
        ctx.log(f"[Emperor] {ctx.opponent.name}'s hand is revealed: {names}.")

    def on_reveal(self, ctx: EffectContext) -> None:
        issue_treasure(ctx, ctx.player_id, "treasure-cups")


class CupsChariot(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        bonus = _empowered_bonus(ctx)

        def settle(ctx: EffectContext, outcome: ClashOutcome, mine: CardInstance, theirs: CardInstance) -> None:
            if outcome is ClashOutcome.WIN:
                damage_player(ctx, ctx.opponent_id, ctx.player.atk + bonus)
            elif outcome is ClashOutcome.LOSE:
                damage_player(ctx, ctx.player_id, ctx.opponent.atk)
            else:
                ctx.log("[Chariot] The clash is even; nobody is hurt.")

        clash(ctx, settle)

    def on_discard(self, ctx: EffectContext) -> None:
        add_quest(ctx, ctx.player_id, Quest(
            quest_id=CHARIOT_QUEST,
            name="The Chariot's Road",
            description="Draw 6 cards. Reward: deal twice your atk to the opponent.",
            target=6,
            trigger=QuestTrigger.DRAW,
        ))


class CupsWheel(CardDefinition):
    def on_resolve_status(self, ctx: EffectContext) -> None:
        set_reversed(ctx, ctx.opponent_id)


class CupsDeath(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        candidates = [c for c in ctx.opponent.hand if not c.is_treasure]
        ctx.request_card(
            "Select a card to destroy",
            candidates,
            lambda card: destroy_card(ctx, card.instance_id),
            description="The chosen card is removed from the game.",
        )


class CupsTemperance(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        set_field(ctx, ctx.card)

    def on_instant(self, ctx: EffectContext) -> None:
        hand = [c.instance_id for c in ctx.player.hand if not c.is_treasure]
        discard_cards(ctx, ctx.player_id, hand)

    def on_field_leave(self, ctx: EffectContext) -> None:
        field = ctx.state.shared_field
        if field is None or not field.counter:
            return
        amount = field.counter * 2 if field.active else field.counter
        heal_player(ctx, ctx.player_id, amount)


# ============================================================================
# Wands
# ============================================================================

class WandsFool(CardDefinition):
    def on_draw(self, ctx: EffectContext) -> None:
        schedule_delayed(ctx, ctx.player_id, DelayedAction.DRAW, 1, turns=1)

    def on_reveal(self, ctx: EffectContext) -> None:
        change_atk(ctx, ctx.player_id, 1)
        schedule_delayed(ctx, ctx.player_id, DelayedAction.ATK_CHANGE, -1, turns=2)

    def on_instant(self, ctx: EffectContext) -> None:
        heal_player(ctx, ctx.player_id, 2)


class WandsEmpress(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        def draw_two() -> None:
            draw_cards(ctx, ctx.player_id, 2)

        def discard_and_heal() -> None:
            candidates = [c for c in ctx.player.hand if not c.is_treasure]

            def pay(card: CardInstance) -> None:
                discard_cards(ctx, ctx.player_id, [card.instance_id])
                heal_player(ctx, ctx.player_id, 5)

            ctx.request_card("Select a card to discard", candidates, pay)

        ctx.request_buttons(
            "Empress: choose a blessing",
            [("Draw 2 cards", draw_two), ("Discard a card and heal 5", discard_and_heal)],
        )


class WandsHangedMan(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        blind_seize(ctx, 1)

    def on_discard(self, ctx: EffectContext) -> None:
        candidates = [c for c in ctx.player.discard_pile if c.instance_id != ctx.card.instance_id]
        ctx.request_card(
            "Select a card to return to hand",
            candidates,
            lambda card: return_card(ctx, card.instance_id),
        )


class WandsTower(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        atk = ctx.player.atk
        damage_player(ctx, ctx.opponent_id, atk)
        damage_player(ctx, ctx.player_id, atk)
        schedule_delayed(ctx, ctx.opponent_id, DelayedAction.DISCARD, 1, turns=1)


class WandsStar(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        wanted = self.ai.search_targets
        candidates = [c for c in ctx.player.deck if c.card_id in wanted]
        ctx.request_card(
            "Search your deck",
            candidates,
            lambda card: _substitute(ctx, card),
            description="The chosen card takes the Star's place and resolves.",
        )

    def on_discard(self, ctx: EffectContext) -> None:
        add_quest(ctx, ctx.player_id, Quest(
            quest_id=STAR_QUEST,
            name="Under the Star",
            description="Draw the Sun or the Moon twice. Reward: gain a Sun.",
            target=2,
            trigger=QuestTrigger.CUSTOM,
        ))


def _substitute(ctx: EffectContext, chosen: CardInstance) -> None:
    """Swap the played card with `chosen` from the deck, then resolve it."""
    star = ctx.card
    pid = ctx.player_id
    slot = ctx.player.set_card
    if slot is None or slot.instance_id != star.instance_id:
        ctx.log(f"[Substitute] [{star.name}] has already left play.")
        return
    if not any(c.instance_id == chosen.instance_id for c in ctx.player.deck):
        ctx.log(f"[Substitute] [{chosen.name}] is no longer in the deck.")
        return

    def swap(state: MatchState) -> MatchState:
        p = state.get_player(pid)
        deck = [c for c in p.deck if c.instance_id != chosen.instance_id]
        return state.with_player(p.with_changes(deck=deck, set_card=chosen)).with_log(
            f"[Substitute] [{chosen.name}] takes the place of [{star.name}]."
        )

    ctx.mutate(swap)
    put_card_in_deck(ctx, pid, star, apply_reversal=False)
    ctx.resolver.dispatch_hook(HookType.ON_REVEAL, pid, chosen)


class WandsMoon(CardDefinition):
    def on_draw(self, ctx: EffectContext) -> None:
        advance_quest(ctx, ctx.player_id, STAR_QUEST)

    def on_reveal(self, ctx: EffectContext) -> None:
        lock_random_cards(ctx, ctx.opponent_id, 1, duration=1)


class WandsSun(CardDefinition):
    def on_draw(self, ctx: EffectContext) -> None:
        advance_quest(ctx, ctx.player_id, STAR_QUEST)

    def on_reveal(self, ctx: EffectContext) -> None:
        damage_player(ctx, ctx.opponent_id, ctx.player.atk * 2 + _empowered_bonus(ctx))


# ============================================================================
# Swords
# ============================================================================

class SwordsFool(CardDefinition):
    def on_draw(self, ctx: EffectContext) -> None:
        damage_player(ctx, ctx.player_id, 1)
        discard_cards(ctx, ctx.player_id, [ctx.card.instance_id], forced=False)

    def on_reveal(self, ctx: EffectContext) -> None:
        atk = ctx.player.atk * 2
        damage_player(ctx, ctx.opponent_id, atk)
        damage_player(ctx, ctx.player_id, atk)

    def on_instant(self, ctx: EffectContext) -> None:
        set_status(ctx, ctx.player_id, immunity_this_turn=True)
        set_status(ctx, ctx.opponent_id, next_damage_double=True)

    def on_discard(self, ctx: EffectContext) -> None:
        draw_cards(ctx, ctx.player_id, 1)


class SwordsPriestess(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        set_status(ctx, ctx.player_id, damage_reflection=True, has_lifesteal=True)
        ctx.log(f"[Priestess] {ctx.player.name} reflects and drains damage this turn.")

    def on_instant(self, ctx: EffectContext) -> None:
        set_status(ctx, ctx.player_id, incoming_damage_conversion=True)
        ctx.log(f"[Priestess] {ctx.player.name} will turn heavy damage into healing.")


class SwordsJustice(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        diff = ctx.opponent.hand_count - ctx.player.hand_count
        if diff > 0:
            ctx.log(f"[Justice] Hand difference {diff}; judgment is passed.")
            damage_player(ctx, ctx.opponent_id, diff)
        else:
            ctx.log("[Justice] No judgment is needed.")

    def on_discard(self, ctx: EffectContext) -> None:
        candidates = [c for c in ctx.opponent.hand if not c.is_treasure]
        if not candidates:
            return
        target = ctx.rng.choice(candidates)
        attach_mark(ctx, target.instance_id, INVALIDATED_MARK)


class SwordsDevil(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        marked_before = ctx.card.has_mark(DEVIL_MARK)

        def mark_hands(state: MatchState) -> MatchState:
            for player in state.players:
                for card in player.hand:
                    state = with_mark(state, card.instance_id, DEVIL_MARK)
            return state

        ctx.mutate(mark_hands)
        ctx.log("[Devil] Every card in hand bears the Devil's mark.")
        if marked_before:
            damage_player(ctx, ctx.opponent_id, 1 + _empowered_bonus(ctx))

    def on_discard(self, ctx: EffectContext) -> None:
        field = ctx.state.shared_field
        if field is None:
            return
        owner_id = field.owner_id
        atk = ctx.state.get_player(owner_id).atk
        discard_field(ctx)
        damage_player(ctx, owner_id, atk, apply_reversal=False)


class SwordsJudgment(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        damage_player(ctx, ctx.opponent_id, ctx.player.atk, piercing=True)
        set_status(ctx, ctx.player_id, piercing_damage_next_turn=True)


# ============================================================================
# Pentacles
# ============================================================================

class PentaclesMagician(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        target_id = ctx.target(ctx.opponent_id)
        candidates = [c for c in ctx.state.get_player(target_id).hand if not c.is_treasure]
        if not candidates:
            ctx.log("[Magician] There is nothing to transform.")
            return
        transform_card(ctx, ctx.opponent_id, ctx.rng.choice(candidates).instance_id)


class PentaclesEmperor(CardDefinition):
    HP_PER_SEIZE = 4

    def on_reveal(self, ctx: EffectContext) -> None:
        seizable = [c for c in ctx.opponent.hand if not c.is_treasure]
        affordable = (ctx.player.hp - 1) // self.HP_PER_SEIZE
        most = min(3, len(seizable), affordable)

        def confirm(count: int) -> None:
            cost = count * self.HP_PER_SEIZE
            modify_player(ctx, ctx.player_id, lambda p: p.with_changes(hp=p.hp - cost),
                          apply_reversal=False)
            ctx.log(f"[Emperor] {ctx.player.name} pays {cost} hp to seize {count} card(s).")
            _seize_step(ctx, count)

        ctx.request_number(
            "Pay hp to seize cards (cost)",
            1,
            most,
            confirm,
            description=f"Each seized card costs {self.HP_PER_SEIZE} hp.",
            unit_cost=self.HP_PER_SEIZE,
        )


def _seize_step(ctx: EffectContext, remaining: int) -> None:
    """One pick per step, re-reading the opponent's hand each time."""
    if remaining <= 0:
        return
    candidates = [c for c in ctx.opponent.hand if not c.is_treasure]

    def take(card: CardInstance) -> None:
        seize_card(ctx, card.instance_id)
        ctx.defer(lambda: _seize_step(ctx, remaining - 1), label="seize")

    ctx.request_card(
        "Select a card to seize",
        candidates,
        take,
        description=f"{remaining} seizure(s) left.",
    )


class PentaclesStrength(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        mine = [c for c in ctx.player.hand if not c.is_treasure]
        theirs = [c for c in ctx.opponent.hand if not c.is_treasure]
        if mine:
            discard_cards(ctx, ctx.player_id, [ctx.rng.choice(mine).instance_id])
        if theirs:
            destroy_card(ctx, ctx.rng.choice(theirs).instance_id)


class PentaclesHermit(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        pile = [c for c in ctx.player.discard_pile if c.instance_id != ctx.card.instance_id]
        for card in pile[-2:]:
            put_card_in_deck(ctx, ctx.player_id, card)
        deck = ctx.player.deck
        if deck:
            ctx.log(f"[Scry] The top of {ctx.player.name}'s deck is [{deck[0].name}].")
        draw_cards(ctx, ctx.player_id, 1)


class PentaclesJustice(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        set_status(ctx, ctx.opponent_id, invalidate_next_turn=True)
        ctx.log(f"[Justice] {ctx.opponent.name}'s card will be invalidated next turn.")

    def on_instant(self, ctx: EffectContext) -> None:
        if ctx.window == InstantWindow.BEFORE_SET:
            _pay_hp(ctx, 2)
            discard_field(ctx)
        elif ctx.window == InstantWindow.BEFORE_REVEAL:
            _pay_hp(ctx, 4)
            set_reversed(ctx, ctx.opponent_id)
        else:
            _pay_hp(ctx, 4)
            set_invalidated(ctx, ctx.opponent_id)


def _pay_hp(ctx: EffectContext, cost: int) -> None:
    modify_player(ctx, ctx.player_id, lambda p: p.with_changes(hp=p.hp - cost), apply_reversal=False)
    ctx.log(f"[Cost] {ctx.player.name} pays {cost} hp.")


class PentaclesHangedMan(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        target_id = ctx.target(ctx.player_id)
        target = ctx.state.get_player(target_id)
        wards = target.status.prevent_transform + 2
        set_status(ctx, target_id, apply_reversal=False, prevent_transform=wards)
        ctx.log(f"[Hanged Man] {target.name}'s cards resist the next {wards} transformation(s).")

    def on_discard(self, ctx: EffectContext) -> None:
        pid = ctx.player_id
        found = next((c for c in ctx.player.deck if c.card_id == "pentacles-justice"), None)
        if found is not None:
            def fetch(state: MatchState) -> MatchState:
                p = state.get_player(pid)
                p = p.with_changes(
                    deck=[c for c in p.deck if c.instance_id != found.instance_id],
                    hand=p.hand + [found],
                )
                return state.with_player(p).with_log(f"[Search] {p.name} takes [{found.name}] from the deck.")

            ctx.mutate(fetch)
        shuffle_deck(ctx, pid, apply_reversal=False)


# ============================================================================
# Treasures
# ============================================================================

class TreasureCups(CardDefinition):
    def on_resolve_status(self, ctx: EffectContext) -> None:
        ctx.request_buttons(
            "Treasure of Cups: bend fate",
            [
                ("Reverse the opponent", lambda: set_reversed(ctx, ctx.opponent_id)),
                ("Invalidate the opponent", lambda: set_invalidated(ctx, ctx.opponent_id)),
            ],
        )

    def on_reveal(self, ctx: EffectContext) -> None:
        def confirm(amount: int) -> None:
            modify_player(ctx, ctx.player_id, lambda p: p.with_changes(hp=p.hp - amount))
            ctx.log(f"[Treasure] {ctx.player.name} sacrifices {amount} hp.")
            schedule_delayed(ctx, ctx.player_id, DelayedAction.HEAL, amount * 2, turns=1)

        ctx.request_number(
            "Sacrifice hp (cost)",
            0,
            min(10, ctx.player.hp - 1),
            confirm,
            description="Next turn you heal twice what you sacrificed.",
            unit_cost=1,
        )


class TreasureWands(CardDefinition):
    def on_reveal(self, ctx: EffectContext) -> None:
        draw_cards(ctx, ctx.player_id, 2)
        heal_player(ctx, ctx.player_id, 2)


# ============================================================================
# Library
# ============================================================================

def _chariot_reward(ctx: EffectContext) -> None:
    damage_player(ctx, ctx.opponent_id, ctx.player.atk * 2)


def _star_reward(ctx: EffectContext) -> None:
    give_card(ctx, ctx.player_id, "wands-sun")


TAROT_CARDS: list[CardDefinition] = [
    CupsMagician(
        card_id="cups-magician", name="Magician of Cups", suit=Suit.CUPS, rank=101,
        description="Reveal: mark a card in your hand; it deals one extra atk of damage.\n"
                    "Instant (before reveal): your played card resolves twice.",
        keywords=(Keyword.IMPRINT,),
        instant_windows=BEFORE_REVEAL,
        ai=CardAIInfo(on_reveal=(AITag.BUFF,), on_instant=(AITag.BUFF,)),
    ),
    CupsPriestess(
        card_id="cups-priestess", name="High Priestess of Cups", suit=Suit.CUPS, rank=102,
        description="Reveal: heal 4.\nInstant (before set): heal 3.\n"
                    "Discard: you are immune to damage next turn.",
        instant_windows=BEFORE_SET,
        ai=CardAIInfo(on_reveal=(AITag.HEAL,), on_instant=(AITag.HEAL,), on_discard=(AITag.BUFF,)),
    ),
    CupsEmperor(
        card_id="cups-emperor", name="Emperor of Cups", suit=Suit.CUPS, rank=104,
        description="Draw: the opponent's hand is revealed.\n"
                    "Reveal: take the Treasure of Cups from the vault.",
        keywords=(Keyword.TREASURE,),
        ai=CardAIInfo(on_reveal=(AITag.SPECIAL,), retrieves_treasure="treasure-cups"),
    ),
    CupsChariot(
        card_id="cups-chariot", name="Chariot of Cups", suit=Suit.CUPS, rank=107,
        description="Reveal: clash. Win: deal your atk. Lose: take the opponent's atk.\n"
                    "Discard: accept the quest The Chariot's Road.",
        keywords=(Keyword.CLASH, Keyword.QUEST),
        ai=CardAIInfo(on_reveal=(AITag.DAMAGE,), on_discard=(AITag.SPECIAL,)),
    ),
    CupsWheel(
        card_id="cups-wheel", name="Wheel of Fortune of Cups", suit=Suit.CUPS, rank=110,
        description="Status: the opponent's effects are reversed this turn.",
        keywords=(Keyword.REVERSE,),
        ai=CardAIInfo(on_reveal=(AITag.CONTROL,)),
    ),
    CupsDeath(
        card_id="cups-death", name="Death of Cups", suit=Suit.CUPS, rank=113,
        description="Reveal: destroy a card in the opponent's hand.",
        keywords=(Keyword.DESTROY,),
        ai=CardAIInfo(on_reveal=(AITag.CONTROL,)),
    ),
    CupsTemperance(
        card_id="cups-temperance", name="Temperance of Cups", suit=Suit.CUPS, rank=114,
        description="Reveal: set this card as the field.\n"
                    "Instant (before set): discard your whole hand.\n"
                    "Field: activates once 3 cards have been discarded while it stands.\n"
                    "Field leave: its owner heals 1 per card discarded while it stood, "
                    "2 per card if it was active.",
        keywords=(Keyword.FIELD,),
        instant_windows=BEFORE_SET,
        field_activation=3,
        ai=CardAIInfo(on_reveal=(AITag.FIELD,), on_instant=(AITag.DISCARD,)),
    ),
    WandsFool(
        card_id="wands-fool", name="Fool of Wands", suit=Suit.WANDS, rank=200,
        description="Draw: draw a card next turn.\n"
                    "Reveal: +1 atk, which fades after two turns.\n"
                    "Instant (before set): heal 2.",
        instant_windows=BEFORE_SET,
        ai=CardAIInfo(on_reveal=(AITag.BUFF,), on_instant=(AITag.HEAL,), on_draw=(AITag.DRAW,)),
    ),
    WandsEmpress(
        card_id="wands-empress", name="Empress of Wands", suit=Suit.WANDS, rank=203,
        description="Reveal: draw 2 cards, or discard a card and heal 5.",
        ai=CardAIInfo(on_reveal=(AITag.DRAW,)),
    ),
    WandsHangedMan(
        card_id="wands-hanged-man", name="Hanged Man of Wands", suit=Suit.WANDS, rank=212,
        description="Reveal: blindly seize a card from the opponent.\n"
                    "Discard: return a card from your discard pile to your hand.",
        keywords=(Keyword.BLIND_SEIZE, Keyword.RETURN),
        ai=CardAIInfo(on_reveal=(AITag.CONTROL,), on_discard=(AITag.DRAW,)),
    ),
    WandsTower(
        card_id="wands-tower", name="Tower of Wands", suit=Suit.WANDS, rank=216,
        description="Reveal: deal your atk to both players. "
                    "The opponent discards a random card next turn.",
        ai=CardAIInfo(on_reveal=(AITag.DAMAGE, AITag.DISCARD), self_damage=True),
    ),
    WandsStar(
        card_id="wands-star", name="Star of Wands", suit=Suit.WANDS, rank=217,
        description="Reveal: search your deck for the Sun or the Moon; it takes this card's place.\n"
                    "Discard: accept the quest Under the Star.",
        keywords=(Keyword.SUBSTITUTE, Keyword.QUEST, Keyword.SHUFFLE),
        ai=CardAIInfo(
            on_reveal=(AITag.SPECIAL,),
            on_discard=(AITag.SPECIAL,),
            search_targets=("wands-sun", "wands-moon"),
        ),
    ),
    WandsMoon(
        card_id="wands-moon", name="Moon of Wands", suit=Suit.WANDS, rank=218,
        description="Reveal: lock a random card in the opponent's hand for a turn.",
        keywords=(Keyword.LOCK,),
        ai=CardAIInfo(on_reveal=(AITag.CONTROL,)),
    ),
    WandsSun(
        card_id="wands-sun", name="Sun of Wands", suit=Suit.WANDS, rank=219,
        description="Reveal: deal twice your atk.",
        ai=CardAIInfo(on_reveal=(AITag.DAMAGE,), damage_multiplier=2.0),
    ),
    SwordsFool(
        card_id="swords-fool", name="Fool of Swords", suit=Suit.SWORDS, rank=300,
        description="Draw: take 1 damage and discard this card.\n"
                    "Reveal: deal twice your atk to both players.\n"
                    "Instant (before reveal): become immune this turn; "
                    "the opponent's next damage taken is doubled.\n"
                    "Discard: draw a card.",
        instant_windows=BEFORE_REVEAL,
        ai=CardAIInfo(
            on_reveal=(AITag.DAMAGE,),
            on_instant=(AITag.BUFF,),
            on_draw=(AITag.DAMAGE,),
            on_discard=(AITag.DRAW,),
            damage_multiplier=2.0,
            self_damage=True,
        ),
    ),
    SwordsPriestess(
        card_id="swords-priestess", name="High Priestess of Swords", suit=Suit.SWORDS, rank=302,
        description="Reveal: reflect damage and gain lifesteal this turn.\n"
                    "Instant (before reveal): heavy damage heals you instead.",
        instant_windows=BEFORE_REVEAL,
        ai=CardAIInfo(on_reveal=(AITag.BUFF,), on_instant=(AITag.BUFF,)),
    ),
    SwordsJustice(
        card_id="swords-justice", name="Justice of Swords", suit=Suit.SWORDS, rank=311,
        description="Reveal: deal 1 damage per card the opponent holds beyond your hand.\n"
                    "Discard: a random card in the opponent's hand is invalidated.",
        keywords=(Keyword.INVALIDATE,),
        ai=CardAIInfo(on_reveal=(AITag.DAMAGE,), on_discard=(AITag.CONTROL,), damage_multiplier=0.5),
    ),
    SwordsDevil(
        card_id="swords-devil", name="Devil of Swords", suit=Suit.SWORDS, rank=315,
        description="Reveal: mark every card in both hands; a marked Devil deals 1 extra damage.\n"
                    "Discard: clear the field; its owner takes their own atk.",
        keywords=(Keyword.IMPRINT,),
        ai=CardAIInfo(on_reveal=(AITag.DEBUFF,), on_discard=(AITag.FIELD,)),
    ),
    SwordsJudgment(
        card_id="swords-judgment", name="Judgment of Swords", suit=Suit.SWORDS, rank=320,
        description="Reveal: deal piercing damage equal to your atk; "
                    "your damage pierces next turn too.",
        keywords=(Keyword.PIERCE,),
        ai=CardAIInfo(on_reveal=(AITag.DAMAGE,)),
    ),
    PentaclesMagician(
        card_id="pentacles-magician", name="Magician of Pentacles", suit=Suit.PENTACLES, rank=401,
        description="Reveal: transform a random card in the opponent's hand.",
        keywords=(Keyword.TRANSFORM,),
        ai=CardAIInfo(on_reveal=(AITag.TRANSFORM,)),
    ),
    PentaclesEmperor(
        card_id="pentacles-emperor", name="Emperor of Pentacles", suit=Suit.PENTACLES, rank=404,
        description="Reveal: lose hp, 4 per card, to seize up to 3 cards from the opponent.",
        keywords=(Keyword.SEIZE,),
        ai=CardAIInfo(on_reveal=(AITag.CONTROL,)),
    ),
    PentaclesStrength(
        card_id="pentacles-strength", name="Strength of Pentacles", suit=Suit.PENTACLES, rank=408,
        description="Reveal: discard a random card of yours and destroy a random card of the opponent.",
        keywords=(Keyword.DESTROY,),
        ai=CardAIInfo(on_reveal=(AITag.CONTROL, AITag.DISCARD)),
    ),
    PentaclesHermit(
        card_id="pentacles-hermit", name="Hermit of Pentacles", suit=Suit.PENTACLES, rank=409,
        description="Reveal: shuffle up to 2 cards from your discard pile into your deck, "
                    "scry the top card, then draw a card.",
        keywords=(Keyword.SHUFFLE, Keyword.SCRY),
        ai=CardAIInfo(on_reveal=(AITag.DRAW,)),
    ),
    PentaclesJustice(
        card_id="pentacles-justice", name="Justice of Pentacles", suit=Suit.PENTACLES, rank=411,
        description="Reveal: the opponent's card is invalidated next turn.\n"
                    "Instant (before set): pay 2 hp to clear the field.\n"
                    "Instant (before reveal): pay 4 hp to reverse the opponent.\n"
                    "Instant (after reveal): pay 4 hp to invalidate the opponent's next card.",
        keywords=(Keyword.INVALIDATE, Keyword.REVERSE),
        instant_windows=EVERY_WINDOW,
        ai=CardAIInfo(on_reveal=(AITag.CONTROL,), on_instant=(AITag.DEBUFF,)),
    ),
    PentaclesHangedMan(
        card_id="pentacles-hanged-man", name="Hanged Man of Pentacles", suit=Suit.PENTACLES, rank=412,
        description="Reveal: the next 2 transformations aimed at your cards fail.\n"
                    "Discard: take the Justice of Pentacles from your deck, then shuffle it.",
        keywords=(Keyword.SHUFFLE,),
        ai=CardAIInfo(
            on_reveal=(AITag.BUFF,),
            on_discard=(AITag.DRAW,),
            search_targets=("pentacles-justice",),
        ),
    ),
    TreasureCups(
        card_id="treasure-cups", name="Treasure of Cups", suit=Suit.TREASURE, rank=52,
        description="Status: reverse or invalidate the opponent.\n"
                    "Reveal: sacrifice hp; next turn heal twice as much.",
        keywords=(Keyword.TREASURE,),
        is_treasure=True,
        lockable=False,
        ai=CardAIInfo(on_reveal=(AITag.CONTROL, AITag.HEAL)),
    ),
    TreasureWands(
        card_id="treasure-wands", name="Treasure of Wands", suit=Suit.TREASURE, rank=51,
        description="Reveal: draw 2 cards and heal 2.",
        keywords=(Keyword.TREASURE,),
        is_treasure=True,
        lockable=False,
        ai=CardAIInfo(on_reveal=(AITag.DRAW, AITag.HEAL)),
    ),
]


def build_registry() -> CardRegistry:
    """Registry holding every tarot card plus the quest rewards."""
    registry = CardRegistry(TAROT_CARDS)
    registry.register_quest_reward(CHARIOT_QUEST, _chariot_reward)
    registry.register_quest_reward(STAR_QUEST, _star_reward)
    return registry
