"""
Operations - State-mutation primitives used by card hooks and the engine.

Every primitive:
- Takes the EffectContext of the caller
- Applies the context's reversal swap to the player it targets
- Mutates through ctx.mutate, so the game-over check runs after each change
- Treats empty resources (empty deck, missing card) as a logged no-op

Hooks that a primitive triggers (on_draw, on_discard, quest rewards) are
queued as follow-ups of the calling step, in the order the cards moved.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Callable

from .cards import HookType
from .state import (
    CardInstance,
    FieldState,
    GamePhase,
    InstantWindow,
    MatchOutcome,
    MatchState,
    PlayerState,
    Quest,
    QuestTrigger,
)

if TYPE_CHECKING:
    from .effect_resolver import EffectContext

logger = logging.getLogger(__name__)

MAX_QUESTS = 2


# ============================================================================
# Game over
# ============================================================================

def check_game_over(state: MatchState) -> MatchState:
    """
    Move to GAME_OVER the moment any player's hp is at or below zero.

    Both players at zero or below is a draw.
    """
    if state.is_over:
        return state
    fallen = [p.player_id for p in state.players if p.hp <= 0]
    if not fallen:
        return state

    if len(fallen) == len(state.players):
        outcome = MatchOutcome(winner_id=None, loser_ids=fallen, is_draw=True)
        message = "Both players fell at once. The match is a draw."
    else:
        loser = fallen[0]
        winner = state.opponent_id(loser)
        outcome = MatchOutcome(winner_id=winner, loser_ids=[loser])
        message = f"{state.get_player(winner).name} wins the match!"

    logger.info(message)
    return state._copy_with(
        phase=GamePhase.GAME_OVER,
        instant_window=InstantWindow.NONE,
        reveal_stage=None,
        outcome=outcome,
        logs=state.logs + [message],
    )


# ============================================================================
# Helpers
# ============================================================================

def _log(state: MatchState, message: str) -> MatchState:
    logger.debug(message)
    return state.with_log(message)


def _remove_everywhere(state: MatchState, instance_id: str) -> MatchState:
    """Return a state with the instance removed from whichever zone holds it."""
    players = []
    for p in state.players:
        players.append(p.with_changes(
            hand=[c for c in p.hand if c.instance_id != instance_id],
            deck=[c for c in p.deck if c.instance_id != instance_id],
            discard_pile=[c for c in p.discard_pile if c.instance_id != instance_id],
            set_card=None if p.set_card and p.set_card.instance_id == instance_id else p.set_card,
        ))
    shared_field = state.shared_field
    if shared_field and shared_field.card.instance_id == instance_id:
        shared_field = None
    return state._copy_with(
        players=players,
        shared_field=shared_field,
        vault=[c for c in state.vault if c.instance_id != instance_id],
        exile=[c for c in state.exile if c.instance_id != instance_id],
    )


def replace_card(state: MatchState, card: CardInstance) -> MatchState:
    """Swap in an updated copy of an instance wherever it currently lives."""
    def swap(cards: list[CardInstance]) -> list[CardInstance]:
        return [card if c.instance_id == card.instance_id else c for c in cards]

    players = []
    for p in state.players:
        set_card = p.set_card
        if set_card and set_card.instance_id == card.instance_id:
            set_card = card
        players.append(p.with_changes(
            hand=swap(p.hand),
            deck=swap(p.deck),
            discard_pile=swap(p.discard_pile),
            set_card=set_card,
        ))
    shared_field = state.shared_field
    if shared_field and shared_field.card.instance_id == card.instance_id:
        shared_field = FieldState(
            card=card,
            owner_id=shared_field.owner_id,
            active=shared_field.active,
            counter=shared_field.counter,
        )
    return state._copy_with(
        players=players,
        shared_field=shared_field,
        vault=swap(state.vault),
        exile=swap(state.exile),
    )


def _next_instance_id(state: MatchState, card_id: str) -> str:
    # Instances are never deleted, so the live count only grows
    return f"{card_id}#{sum(1 for _ in state.iter_cards()) + 1}"


def _to_vault(state: MatchState, card: CardInstance) -> MatchState:
    state = _remove_everywhere(state, card.instance_id)
    fresh = card.with_changes(marks=[], is_locked=False, locked_turns=0, temp_rank=None)
    state = state._copy_with(vault=state.vault + [fresh])
    return _log(state, f"[Vault] Treasure [{card.name}] returns to the vault.")


# ============================================================================
# Player stats
# ============================================================================

def modify_player(
    ctx: EffectContext,
    player_id: int,
    fn: Callable[[PlayerState], PlayerState],
    apply_reversal: bool = True,
) -> None:
    """Apply `fn` to a player; healing is blocked by prevent_healing."""
    target_id = ctx.target(player_id) if apply_reversal else player_id

    def apply(state: MatchState) -> MatchState:
        before = state.get_player(target_id)
        after = fn(before)
        if after.hp > before.hp and before.status.prevent_healing:
            state = _log(state, f"[No healing] {before.name} cannot recover hp.")
            after = after.with_changes(hp=before.hp)
        return state.with_player(after)

    ctx.mutate(apply)


def heal_player(ctx: EffectContext, player_id: int, amount: int, apply_reversal: bool = True) -> None:
    if amount <= 0:
        return
    target_id = ctx.target(player_id) if apply_reversal else player_id
    before = ctx.state.get_player(target_id).hp
    modify_player(ctx, target_id, lambda p: p.with_changes(hp=p.hp + amount), apply_reversal=False)
    player = ctx.state.get_player(target_id)
    if player.hp > before:
        ctx.log(f"[Heal] {player.name} recovers {player.hp - before} hp.")


def change_atk(ctx: EffectContext, player_id: int, delta: int, apply_reversal: bool = True) -> None:
    target_id = ctx.target(player_id) if apply_reversal else player_id
    modify_player(ctx, target_id, lambda p: p.with_changes(atk=max(0, p.atk + delta)),
                  apply_reversal=False)
    ctx.log(f"[Atk] {ctx.state.get_player(target_id).name} atk {delta:+d}.")


def damage_player(
    ctx: EffectContext,
    player_id: int,
    amount: int,
    piercing: bool = False,
    apply_reversal: bool = True,
) -> int:
    """
    Deal damage and return the amount actually dealt.

    Order of checks on the victim: damage conversion, immunity (unless
    piercing), double-next-damage, then reflection. Lifesteal and damage
    quests apply to the attacker when the damage is not self-inflicted.
    """
    if amount <= 0 or ctx.state.is_over:
        return 0
    target_id = ctx.target(player_id) if apply_reversal else player_id
    state = ctx.state
    victim = state.get_player(target_id)
    attacker_id = ctx.player_id if ctx.player_id != target_id else None
    attacker = state.get_player(attacker_id) if attacker_id is not None else None

    if victim.status.incoming_damage_conversion and amount > victim.atk:
        ctx.log(f"[Conversion] {victim.name} turns {amount} damage into healing.")
        modify_player(
            ctx, target_id,
            lambda p: p.with_status(incoming_damage_conversion=False).with_changes(hp=p.hp + amount),
            apply_reversal=False,
        )
        return 0

    piercing = piercing or bool(attacker and attacker.status.piercing_damage_this_turn)
    if victim.status.immunity_this_turn and not piercing:
        ctx.log(f"[Immune] {victim.name} takes no damage.")
        return 0

    dealt = amount
    if victim.status.next_damage_double:
        dealt *= 2
    reflected = 1 if victim.status.damage_reflection else 0

    def apply(s: MatchState) -> MatchState:
        p = s.get_player(target_id)
        p = p.with_status(
            next_damage_double=False,
            damage_taken_this_turn=p.status.damage_taken_this_turn + dealt,
        ).with_changes(hp=p.hp - dealt - reflected)
        s = s.with_player(p)
        kind = "piercing " if piercing else ""
        s = _log(s, f"[Damage] {p.name} takes {dealt} {kind}damage.")
        if reflected:
            s = _log(s, f"[Reflection] {p.name} suffers {reflected} backlash.")
        return s

    ctx.mutate(apply)
    ctx.visual("DAMAGE", f"-{dealt}", player_id=target_id)

    if attacker is not None and dealt > 0:
        if attacker.status.has_lifesteal:
            ctx.log(f"[Lifesteal] {attacker.name} drains {dealt} hp.")
            modify_player(ctx, attacker.player_id, lambda p: p.with_changes(hp=p.hp + dealt),
                          apply_reversal=False)
        progress_quests(ctx, attacker.player_id, QuestTrigger.DAMAGE_DEALT, dealt)
    return dealt


def set_status(ctx: EffectContext, player_id: int, apply_reversal: bool = True, **flags) -> None:
    """Set status flags on a player."""
    target_id = ctx.target(player_id) if apply_reversal else player_id
    modify_player(ctx, target_id, lambda p: p.with_status(**flags), apply_reversal=False)


def set_invalidated(ctx: EffectContext, player_id: int) -> None:
    """Invalidate the next card the target plays; treasure ignores it."""
    target_id = ctx.target(player_id)
    player = ctx.state.get_player(target_id)
    if player.set_card and player.set_card.is_treasure:
        ctx.log(f"[Immune] Treasure [{player.set_card.name}] cannot be invalidated.")
        return
    set_status(ctx, target_id, apply_reversal=False, invalidate_next_played_card=True)
    ctx.log(f"[Invalidate] {player.name}'s next card is invalidated.")


def set_reversed(ctx: EffectContext, player_id: int) -> None:
    """Reverse the target's effects this turn; treasure ignores it."""
    target_id = ctx.target(player_id)
    player = ctx.state.get_player(target_id)
    if player.set_card and player.set_card.is_treasure:
        ctx.log(f"[Immune] Treasure [{player.set_card.name}] cannot be reversed.")
        return
    set_status(ctx, target_id, apply_reversal=False, is_reversed=True)
    ctx.log(f"[Reverse] {player.name}'s effects are reversed.")


# ============================================================================
# Piles
# ============================================================================

def draw_cards(ctx: EffectContext, player_id: int, count: int, apply_reversal: bool = True) -> list[CardInstance]:
    """Draw from the deck top; on_draw fires per card in draw order."""
    target_id = ctx.target(player_id) if apply_reversal else player_id
    player = ctx.state.get_player(target_id)
    drawn = player.deck[:max(0, count)]
    if len(drawn) < count:
        ctx.log(f"[Empty deck] {player.name} has no cards left to draw.")
    if not drawn:
        return []

    def apply(state: MatchState) -> MatchState:
        p = state.get_player(target_id)
        p = p.with_changes(hand=p.hand + drawn, deck=p.deck[len(drawn):])
        return _log(state.with_player(p), f"[Draw] {p.name} draws {len(drawn)} card(s).")

    ctx.mutate(apply)
    for card in drawn:
        ctx.resolver.dispatch_hook(HookType.ON_DRAW, target_id, card)
    progress_quests(ctx, target_id, QuestTrigger.DRAW, len(drawn))
    return drawn


def discard_cards(
    ctx: EffectContext,
    player_id: int,
    instance_ids: list[str],
    forced: bool | None = None,
    apply_reversal: bool = True,
) -> list[CardInstance]:
    """
    Discard cards from a hand; on_discard fires for each.

    Treasure returns to the vault instead, and is untouched when the
    discard is forced on the opponent.
    """
    target_id = ctx.target(player_id) if apply_reversal else player_id
    if forced is None:
        forced = target_id != ctx.player_id
    player = ctx.state.get_player(target_id)
    chosen = [c for c in player.hand if c.instance_id in instance_ids]
    if not chosen:
        ctx.log(f"[Discard] {player.name} has nothing to discard.")
        return []

    discarded: list[CardInstance] = []
    for card in chosen:
        if card.is_treasure:
            if forced:
                ctx.log(f"[Immune] Treasure [{card.name}] cannot be forced out of hand.")
            else:
                ctx.mutate(lambda s, c=card: _to_vault(s, c))
            continue
        discarded.append(card)

    if not discarded:
        return []

    ids = {c.instance_id for c in discarded}

    def apply(state: MatchState) -> MatchState:
        p = state.get_player(target_id)
        p = p.with_changes(
            hand=[c for c in p.hand if c.instance_id not in ids],
            discard_pile=p.discard_pile + discarded,
        )
        names = ", ".join(c.name for c in discarded)
        return _log(state.with_player(p), f"[Discard] {p.name} discards {names}.")

    ctx.mutate(apply)
    # The standing field counts every card discarded from a hand
    advance_field_counter(ctx, len(discarded))
    for card in discarded:
        ctx.resolver.dispatch_hook(HookType.ON_DISCARD, target_id, card)
    progress_quests(ctx, target_id, QuestTrigger.DISCARD, len(discarded))
    return discarded


def discard_set_card(ctx: EffectContext, player_id: int) -> CardInstance | None:
    """Move a player's played card to their discard pile after the reveal."""
    player = ctx.state.get_player(player_id)
    card = player.set_card
    if card is None:
        return None
    if card.is_treasure:
        ctx.mutate(lambda s: _to_vault(s, card))
        return None

    def apply(state: MatchState) -> MatchState:
        p = state.get_player(player_id)
        p = p.with_changes(set_card=None, discard_pile=p.discard_pile + [card])
        return _log(state.with_player(p), f"[Discard] {p.name}'s [{card.name}] goes to the discard pile.")

    ctx.mutate(apply)
    ctx.resolver.dispatch_hook(HookType.ON_DISCARD, player_id, card)
    return card


def shuffle_deck(ctx: EffectContext, player_id: int, apply_reversal: bool = True) -> None:
    target_id = ctx.target(player_id) if apply_reversal else player_id
    rng = ctx.rng

    def apply(state: MatchState) -> MatchState:
        p = state.get_player(target_id)
        deck = list(p.deck)
        rng.shuffle(deck)
        return _log(state.with_player(p.with_changes(deck=deck)), f"[Shuffle] {p.name}'s deck is shuffled.")

    ctx.mutate(apply)


def put_card_in_deck(
    ctx: EffectContext,
    player_id: int,
    card: CardInstance,
    shuffle: bool = True,
    apply_reversal: bool = True,
) -> None:
    """Move a card into a deck (shuffled in, or to the bottom)."""
    target_id = ctx.target(player_id) if apply_reversal else player_id
    if card.is_treasure:
        ctx.mutate(lambda s: _to_vault(s, card))
        return
    rng = ctx.rng

    def apply(state: MatchState) -> MatchState:
        location = state.find_card(card.instance_id)
        current = location.card if location else card
        state = _remove_everywhere(state, card.instance_id)
        p = state.get_player(target_id)
        deck = p.deck + [current]
        if shuffle:
            rng.shuffle(deck)
            message = f"[Deck] [{current.name}] is shuffled into {p.name}'s deck."
        else:
            message = f"[Deck] [{current.name}] is placed at the bottom of {p.name}'s deck."
        return _log(state.with_player(p.with_changes(deck=deck)), message)

    ctx.mutate(apply)


def return_card(ctx: EffectContext, instance_id: str) -> CardInstance | None:
    """Move a card from the acting player's discard pile back to hand."""
    player = ctx.player
    card = next((c for c in player.discard_pile if c.instance_id == instance_id), None)
    if card is None:
        ctx.log("[Return] That card is not in the discard pile.")
        return None

    def apply(state: MatchState) -> MatchState:
        p = state.get_player(ctx.player_id)
        p = p.with_changes(
            discard_pile=[c for c in p.discard_pile if c.instance_id != instance_id],
            hand=p.hand + [card],
        )
        return _log(state.with_player(p), f"[Return] [{card.name}] returns to {p.name}'s hand.")

    ctx.mutate(apply)
    return card


def destroy_card(ctx: EffectContext, instance_id: str) -> bool:
    """Remove a card from the game (to exile); treasure is immune."""
    location = ctx.state.find_card(instance_id)
    if location is None or location.zone == "exile":
        return False
    card = location.card
    if card.is_treasure:
        ctx.log(f"[Immune] Treasure [{card.name}] cannot be destroyed.")
        return False

    def apply(state: MatchState) -> MatchState:
        state = _remove_everywhere(state, instance_id)
        state = state._copy_with(exile=state.exile + [card])
        return _log(state, f"[Destroy] [{card.name}] is removed from the game.")

    ctx.mutate(apply)
    ctx.visual("DESTROY", card.name, player_id=location.owner_id)
    return True


def lock_random_cards(
    ctx: EffectContext,
    player_id: int,
    count: int,
    duration: int = 1,
    apply_reversal: bool = True,
) -> list[CardInstance]:
    """Lock random unlocked, non-treasure cards in a hand for `duration` turns."""
    target_id = ctx.target(player_id) if apply_reversal else player_id
    player = ctx.state.get_player(target_id)
    available = [
        c for c in player.hand
        if not c.is_locked and not c.is_treasure and c.definition.lockable
    ]
    if not available:
        ctx.log(f"[Lock] {player.name} has no card that can be locked.")
        return []

    picked = ctx.rng.sample(available, min(count, len(available)))
    picked_ids = {c.instance_id for c in picked}

    def apply(state: MatchState) -> MatchState:
        p = state.get_player(target_id)
        hand = [
            c.with_changes(is_locked=True, locked_turns=duration) if c.instance_id in picked_ids else c
            for c in p.hand
        ]
        return _log(
            state.with_player(p.with_changes(hand=hand)),
            f"[Lock] {len(picked)} of {p.name}'s cards are locked for {duration} turn(s).",
        )

    ctx.mutate(apply)
    return picked


def seize_card(ctx: EffectContext, instance_id: str) -> CardInstance | None:
    """Take a specific card from the opponent's hand into the acting player's hand."""
    opponent = ctx.opponent
    card = opponent.find_in_hand(instance_id)
    if card is None:
        ctx.log("[Seize] That card is not in the opponent's hand.")
        return None
    if card.is_treasure:
        ctx.log(f"[Immune] Treasure [{card.name}] cannot be seized.")
        return None

    def apply(state: MatchState) -> MatchState:
        opp = state.get_player(opponent.player_id)
        me = state.get_player(ctx.player_id)
        state = state.with_player(opp.with_changes(
            hand=[c for c in opp.hand if c.instance_id != instance_id],
        ))
        state = state.with_player(me.with_changes(hand=me.hand + [card]))
        return _log(state, f"[Seize] {me.name} takes [{card.name}].")

    ctx.mutate(apply)
    return card


def blind_seize(ctx: EffectContext, count: int = 1, mark: str | None = None) -> list[CardInstance]:
    """Take random non-treasure cards from the opponent's hand."""
    opponent = ctx.opponent
    available = [c for c in opponent.hand if not c.is_treasure]
    if not available:
        ctx.log(f"[Seize] {opponent.name} has nothing that can be taken.")
        return []
    taken = ctx.rng.sample(available, min(count, len(available)))
    if mark:
        taken = [c.with_changes(marks=c.marks + [mark]) for c in taken]
    taken_ids = {c.instance_id for c in taken}

    def apply(state: MatchState) -> MatchState:
        opp = state.get_player(opponent.player_id)
        me = state.get_player(ctx.player_id)
        state = state.with_player(opp.with_changes(
            hand=[c for c in opp.hand if c.instance_id not in taken_ids],
        ))
        state = state.with_player(me.with_changes(hand=me.hand + taken))
        return _log(state, f"[Seize] {me.name} takes {len(taken)} card(s) blindly.")

    ctx.mutate(apply)
    return taken


def transform_card(ctx: EffectContext, player_id: int, instance_id: str) -> CardInstance | None:
    """Turn a card into a random non-treasure card, keeping its id and marks."""
    target_id = ctx.target(player_id)
    player = ctx.state.get_player(target_id)
    if player.status.prevent_transform > 0:
        left = player.status.prevent_transform - 1
        set_status(ctx, target_id, apply_reversal=False, prevent_transform=left)
        ctx.log(f"[Transform] {player.name}'s cards resist the change ({left} ward(s) left).")
        return None
    location = ctx.state.find_card(instance_id)
    if location is None:
        return None
    card = location.card
    if card.is_treasure:
        ctx.log(f"[Immune] Treasure [{card.name}] cannot be transformed.")
        return None
    candidates = ctx.registry.non_treasure()
    if not candidates:
        return None
    new_definition = ctx.rng.choice(candidates)
    transformed = card.with_changes(definition=new_definition, temp_rank=None)

    ctx.mutate(lambda s: _log(
        replace_card(s, transformed),
        f"[Transform] [{card.name}] becomes [{new_definition.name}].",
    ))
    ctx.visual("TRANSFORM", new_definition.name, player_id=target_id)
    return transformed


def issue_treasure(ctx: EffectContext, player_id: int, card_id: str, apply_reversal: bool = True) -> CardInstance | None:
    """Move a treasure from the vault to a hand."""
    target_id = ctx.target(player_id) if apply_reversal else player_id
    card = next((c for c in ctx.state.vault if c.card_id == card_id), None)
    if card is None:
        ctx.log(f"[Vault] {card_id} is already in play; the vault is empty.")
        return None

    def apply(state: MatchState) -> MatchState:
        state = state._copy_with(vault=[c for c in state.vault if c.instance_id != card.instance_id])
        p = state.get_player(target_id)
        state = state.with_player(p.with_changes(hand=p.hand + [card]))
        return _log(state, f"[Treasure] {p.name} receives [{card.name}].")

    ctx.mutate(apply)
    return card


def give_card(ctx: EffectContext, player_id: int, card_id: str, apply_reversal: bool = True) -> CardInstance | None:
    """Put a new instance of a definition into a hand (treasure comes from the vault)."""
    definition = ctx.registry.get(card_id)
    if definition.is_treasure:
        return issue_treasure(ctx, player_id, card_id, apply_reversal)
    target_id = ctx.target(player_id) if apply_reversal else player_id
    card = CardInstance(definition=definition, instance_id=_next_instance_id(ctx.state, card_id))

    def apply(state: MatchState) -> MatchState:
        p = state.get_player(target_id)
        state = state.with_player(p.with_changes(hand=p.hand + [card]))
        return _log(state, f"[Gain] {p.name} gains [{definition.name}].")

    ctx.mutate(apply)
    return card


# ============================================================================
# Field
# ============================================================================

def discard_field(ctx: EffectContext) -> None:
    """Clear the shared field; the card goes to its owner's discard pile."""
    current = ctx.state.shared_field
    if current is None:
        return
    card = current.card
    owner_id = current.owner_id
    owner_ctx = ctx.resolver.make_context(owner_id, card, reversed=False)
    if card.definition.implements(HookType.ON_FIELD_LEAVE):
        card.definition.on_field_leave(owner_ctx)

    def apply(state: MatchState) -> MatchState:
        state = state._copy_with(shared_field=None)
        state = _log(state, f"[Field] [{card.name}] leaves the field.")
        if card.is_treasure:
            return _to_vault(state, card)
        owner = state.get_player(owner_id)
        return state.with_player(owner.with_changes(discard_pile=owner.discard_pile + [card]))

    ctx.mutate(apply)


def set_field(ctx: EffectContext, card: CardInstance, activate: bool = False) -> None:
    """Place a card on the shared field, replacing whatever was there."""
    discard_field(ctx)

    def apply(state: MatchState) -> MatchState:
        state = _remove_everywhere(state, card.instance_id)
        state = state._copy_with(shared_field=FieldState(
            card=card, owner_id=ctx.player_id, active=activate, counter=0,
        ))
        return _log(state, f"[Field] {state.get_player(ctx.player_id).name} sets [{card.name}] as the field.")

    ctx.mutate(apply)


def advance_field_counter(ctx: EffectContext, amount: int = 1, activate_at: int | None = None) -> int:
    """
    Add to the field counter and return the new value.

    The field activates once the counter reaches `activate_at`, which
    defaults to the field card's own `field_activation`. Activation is
    permanent while the card stands.
    """
    current = ctx.state.shared_field
    if current is None:
        return 0
    if activate_at is None:
        activate_at = current.card.definition.field_activation
    counter = current.counter + amount
    active = current.active or (activate_at is not None and counter >= activate_at)
    ctx.mutate(lambda s: s._copy_with(shared_field=FieldState(
        card=current.card, owner_id=current.owner_id, active=active, counter=counter,
    )))
    if active and not current.active:
        ctx.log(f"[Field] [{current.card.name}] activates.")
    return counter


# ============================================================================
# Quests
# ============================================================================

def add_quest(ctx: EffectContext, player_id: int, quest: Quest) -> bool:
    target_id = ctx.target(player_id)
    player = ctx.state.get_player(target_id)
    if len(player.quests) >= ctx.state.metadata.get("quest_cap", MAX_QUESTS):
        ctx.log(f"[Quest] {player.name}'s quest log is full; {quest.name} is not taken.")
        return False
    if any(q.quest_id == quest.quest_id for q in player.quests):
        ctx.log(f"[Quest] {player.name} already has {quest.name}.")
        return False

    modify_player(ctx, target_id, lambda p: p.with_changes(quests=p.quests + [quest]),
                  apply_reversal=False)
    ctx.log(f"[Quest] {player.name} accepts {quest.name}.")
    return True


def advance_quest(ctx: EffectContext, player_id: int, quest_id: str, amount: int = 1) -> bool:
    """Add progress; on completion the reward fires once and the quest is removed."""
    player = ctx.state.get_player(player_id)
    quest = next((q for q in player.quests if q.quest_id == quest_id), None)
    if quest is None or quest.completed:
        return False

    progress = quest.progress + amount
    if progress < quest.target:
        modify_player(
            ctx, player_id,
            lambda p: p.with_changes(quests=[
                Quest(**{**q.__dict__, "progress": progress}) if q.quest_id == quest_id else q
                for q in p.quests
            ]),
            apply_reversal=False,
        )
        return False

    modify_player(
        ctx, player_id,
        lambda p: p.with_changes(quests=[q for q in p.quests if q.quest_id != quest_id]),
        apply_reversal=False,
    )
    ctx.log(f"[Quest complete] {player.name} completes {quest.name}!")
    reward = ctx.registry.quest_reward(quest_id)
    if reward is not None:
        resolver = ctx.resolver
        ctx.defer(
            lambda: reward(resolver.make_context(player_id, reversed=False)),
            label=f"quest-reward:{quest_id}",
        )
    return True


def progress_quests(ctx: EffectContext, player_id: int, trigger: QuestTrigger, amount: int) -> None:
    if amount <= 0:
        return
    for quest in list(ctx.state.get_player(player_id).quests):
        if quest.trigger == trigger:
            advance_quest(ctx, player_id, quest.quest_id, amount)
