"""
Clash - Draw-and-compare between the two decks.

Protocol:
1. Each side takes the top card of its deck (both decks must be non-empty)
2. The cards are compared (default: higher arcana number wins)
3. The loser's card goes to its owner's discard pile (on_discard fires);
   the winner's card goes to its owner's hand (on_draw fires). On a tie
   both cards go to hand.
4. The caller's continuation receives the outcome from the acting
   player's point of view, after the card moves are queued.
"""

from __future__ import annotations
from enum import Enum
import logging
from typing import TYPE_CHECKING, Callable

from .cards import HookType
from .state import CardInstance, MatchState

if TYPE_CHECKING:
    from .effect_resolver import EffectContext

logger = logging.getLogger(__name__)


class ClashOutcome(Enum):
    WIN = "win"
    LOSE = "lose"
    TIE = "tie"

    def flipped(self) -> ClashOutcome:
        if self is ClashOutcome.WIN:
            return ClashOutcome.LOSE
        if self is ClashOutcome.LOSE:
            return ClashOutcome.WIN
        return ClashOutcome.TIE


Comparator = Callable[[CardInstance, CardInstance], ClashOutcome]
ClashContinuation = Callable[["EffectContext", ClashOutcome, CardInstance, CardInstance], None]


def compare_by_arcana(mine: CardInstance, theirs: CardInstance) -> ClashOutcome:
    a = mine.definition.arcana_number
    b = theirs.definition.arcana_number
    if a > b:
        return ClashOutcome.WIN
    if a < b:
        return ClashOutcome.LOSE
    return ClashOutcome.TIE


def compare_by_rank(mine: CardInstance, theirs: CardInstance) -> ClashOutcome:
    if mine.effective_rank > theirs.effective_rank:
        return ClashOutcome.WIN
    if mine.effective_rank < theirs.effective_rank:
        return ClashOutcome.LOSE
    return ClashOutcome.TIE


def clash(
    ctx: EffectContext,
    on_resolve: ClashContinuation | None = None,
    compare: Comparator = compare_by_arcana,
) -> ClashOutcome | None:
    """
    Run a clash for the acting player.

    Returns the outcome, or None when either deck is empty (nothing is
    consumed and the continuation is not called).
    """
    me_id = ctx.player_id
    opp_id = ctx.opponent_id
    me = ctx.state.get_player(me_id)
    opp = ctx.state.get_player(opp_id)
    if not me.deck or not opp.deck:
        ctx.log("[Clash] Not enough cards in the decks; the clash fizzles.")
        return None

    my_card = me.deck[0]
    opp_card = opp.deck[0]
    outcome = compare(my_card, opp_card)
    ctx.log(
        f"[Clash] {me.name} [{my_card.name}] vs {opp.name} [{opp_card.name}]: "
        f"{me.name} {outcome.value}s."
    )

    to_hand: list[tuple[int, CardInstance]] = []
    to_discard: list[tuple[int, CardInstance]] = []
    if outcome is ClashOutcome.WIN:
        to_hand.append((me_id, my_card))
        to_discard.append((opp_id, opp_card))
    elif outcome is ClashOutcome.LOSE:
        to_discard.append((me_id, my_card))
        to_hand.append((opp_id, opp_card))
    else:
        to_hand.extend([(me_id, my_card), (opp_id, opp_card)])

    def apply(state: MatchState) -> MatchState:
        for pid, card in to_hand:
            p = state.get_player(pid)
            state = state.with_player(p.with_changes(deck=p.deck[1:], hand=p.hand + [card]))
        for pid, card in to_discard:
            p = state.get_player(pid)
            state = state.with_player(p.with_changes(
                deck=p.deck[1:], discard_pile=p.discard_pile + [card],
            ))
        return state

    ctx.mutate(apply)
    ctx.visual("CLASH", outcome.value)

    for pid, card in to_discard:
        ctx.resolver.dispatch_hook(HookType.ON_DISCARD, pid, card)
    for pid, card in to_hand:
        ctx.resolver.dispatch_hook(HookType.ON_DRAW, pid, card)

    if on_resolve is not None:
        ctx.defer(lambda: on_resolve(ctx, outcome, my_card, opp_card), label="clash-result")
    return outcome
