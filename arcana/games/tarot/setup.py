"""
Tarot Match Setup - Creates the initial match state.

This module handles:
- Building a 20-card deck per player from the non-treasure library
- Shuffling with a seed for determinism
- Dealing the opening hands
- Placing every treasure in the vault

The returned state is in the DRAW phase of turn 1, ready for START_TURN.
"""

from __future__ import annotations
from dataclasses import dataclass
import itertools
import random

from ...engine_core.cards import CardRegistry
from ...engine_core.state import CardInstance, GamePhase, MatchState, PlayerState
from .cards import build_registry


@dataclass
class MatchConfig:
    """Starting numbers for a duel."""
    starting_hp: int = 40
    starting_atk: int = 2
    max_hand_size: int = 3
    draw_per_turn: int = 1
    initial_hand_size: int = 3
    deck_size: int = 20
    quest_cap: int = 2
    random_seed: int | None = None


def setup_match(
    config: MatchConfig | None = None,
    registry: CardRegistry | None = None,
    player_names: tuple[str, str] = ("Player", "Bot"),
    human_players: tuple[bool, bool] = (True, False),
    match_id: str | None = None,
) -> MatchState:
    """
    Set up a new duel.

    Args:
        config: Starting numbers (defaults to MatchConfig())
        registry: Card library (defaults to the tarot library)
        player_names: Names for players 1 and 2
        human_players: Which players are driven by a person
        match_id: Match identifier (derived from the seed if not given)

    Returns:
        Initial MatchState ready for START_TURN
    """
    config = config or MatchConfig()
    registry = registry or build_registry()

    seed = config.random_seed if config.random_seed is not None else random.randrange(1_000_000)
    rng = random.Random(seed)

    pool = registry.non_treasure()
    if not pool:
        raise ValueError("The card library has no playable cards")

    serial = itertools.count(1)

    def instance(definition) -> CardInstance:
        return CardInstance(definition=definition, instance_id=f"{definition.card_id}#{next(serial)}")

    players = []
    for index, (name, is_human) in enumerate(zip(player_names, human_players)):
        deck = [instance(d) for d in _pick_deck(pool, config.deck_size, rng)]
        rng.shuffle(deck)
        hand = deck[:config.initial_hand_size]
        players.append(PlayerState(
            player_id=index + 1,
            name=name,
            is_human=is_human,
            hp=config.starting_hp,
            atk=config.starting_atk,
            max_hand_size=config.max_hand_size,
            draw_per_turn=config.draw_per_turn,
            hand=hand,
            deck=deck[config.initial_hand_size:],
        ))

    vault = [instance(d) for d in registry.treasures()]

    return MatchState(
        match_id=match_id or f"duel_{seed}",
        players=players,
        phase=GamePhase.DRAW,
        turn_number=1,
        vault=vault,
        logs=[f"The duel begins: {players[0].name} vs {players[1].name}."],
        random_seed=seed,
        metadata={"quest_cap": config.quest_cap},
    )


def _pick_deck(pool: list, size: int, rng: random.Random) -> list:
    """Sample distinct definitions; a small library is cycled to fill the deck."""
    if len(pool) >= size:
        return rng.sample(pool, size)
    picked = []
    while len(picked) < size:
        picked.extend(rng.sample(pool, min(len(pool), size - len(picked))))
    return picked
