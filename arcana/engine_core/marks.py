"""
Marks & Delayed Effects - Transient tags and scheduled mutations.

Marks are opaque strings on a card instance. They do nothing on their own;
card hooks look for them and branch. Every mark operation locates the
instance by id in whichever zone holds it.

Mark policy:
- attach_mark replaces the card's marks by default (one active mark)
- attach_mark(stack=True) appends, keeping duplicates

Delayed effects live on the player. The registry only counts them down;
the turn boundary applies the ones that come due.
"""

from __future__ import annotations
from dataclasses import replace
import logging
from typing import TYPE_CHECKING

from .operations import replace_card
from .state import DelayedAction, DelayedEffect, MatchState

if TYPE_CHECKING:
    from .effect_resolver import EffectContext

logger = logging.getLogger(__name__)

# Any card carrying this mark is invalidated when it is revealed
INVALIDATED_MARK = "mark-invalidated"


# ============================================================================
# Marks (pure state functions)
# ============================================================================

def with_mark(state: MatchState, instance_id: str, mark: str, stack: bool = False) -> MatchState:
    location = state.find_card(instance_id)
    if location is None:
        logger.debug("Cannot mark %s: not in play", instance_id)
        return state
    card = location.card
    marks = card.marks + [mark] if stack else [mark]
    return replace_card(state, card.with_changes(marks=marks))


def without_mark(state: MatchState, instance_id: str, mark: str | None = None) -> MatchState:
    """Remove one mark (every copy of it), or all marks when `mark` is None."""
    location = state.find_card(instance_id)
    if location is None:
        return state
    card = location.card
    marks = [] if mark is None else [m for m in card.marks if m != mark]
    return replace_card(state, card.with_changes(marks=marks))


def has_mark(state: MatchState, instance_id: str, mark: str) -> bool:
    location = state.find_card(instance_id)
    return location is not None and location.card.has_mark(mark)


# ============================================================================
# Marks (hook-facing)
# ============================================================================

def attach_mark(ctx: EffectContext, instance_id: str, mark: str, stack: bool = False) -> bool:
    location = ctx.state.find_card(instance_id)
    if location is None:
        ctx.log(f"[Mark] {instance_id} is no longer in play.")
        return False
    ctx.mutate(lambda s: with_mark(s, instance_id, mark, stack))
    ctx.log(f"[Mark] [{location.card.name}] is marked.")
    return True


def check_mark(ctx: EffectContext, instance_id: str, mark: str) -> bool:
    return has_mark(ctx.state, instance_id, mark)


def strip_mark(ctx: EffectContext, instance_id: str, mark: str | None = None) -> bool:
    if not ctx.state.find_card(instance_id):
        return False
    ctx.mutate(lambda s: without_mark(s, instance_id, mark))
    return True


def marked_cards(state: MatchState, player_id: int, mark: str, zone: str = "hand") -> list:
    return [
        loc.card for loc in state.iter_cards()
        if loc.owner_id == player_id and loc.zone == zone and loc.card.has_mark(mark)
    ]


# ============================================================================
# Delayed effects
# ============================================================================

def schedule_delayed(
    ctx: EffectContext,
    player_id: int,
    action: DelayedAction,
    amount: int,
    turns: int,
    source: str = "",
) -> None:
    """Queue an effect that applies after `turns` turn boundaries."""
    target_id = ctx.target(player_id)
    effect = DelayedEffect(
        amount=amount,
        action=action,
        turns_remaining=max(1, turns),
        source=source or (ctx.card.name if ctx.card else ""),
    )

    def apply(state: MatchState) -> MatchState:
        p = state.get_player(target_id)
        return state.with_player(p.with_changes(delayed_effects=p.delayed_effects + [effect]))

    ctx.mutate(apply)
    ctx.log(
        f"[Delayed] {effect.source}: {action.value} {amount} "
        f"for {ctx.state.get_player(target_id).name} in {effect.turns_remaining} turn(s)."
    )


def tick_delayed_effects(state: MatchState) -> tuple[MatchState, list[tuple[int, DelayedEffect]]]:
    """
    Decrement every countdown once.

    Returns the state with due effects removed, plus the due effects as
    (player_id, effect) pairs in player-id then scheduling order.
    """
    due: list[tuple[int, DelayedEffect]] = []
    for player in sorted(state.players, key=lambda p: p.player_id):
        remaining: list[DelayedEffect] = []
        for effect in player.delayed_effects:
            ticked = replace(effect, turns_remaining=effect.turns_remaining - 1)
            if ticked.turns_remaining <= 0:
                due.append((player.player_id, ticked))
            else:
                remaining.append(ticked)
        state = state.with_player(player.with_changes(delayed_effects=remaining))
    return state, due
