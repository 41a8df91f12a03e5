"""
Pytest fixtures for Arcana tests.
"""

import itertools
import random

import pytest

from ..engine_core.cards import CardRegistry
from ..engine_core.effect_resolver import Command, EffectResolver
from ..engine_core.reducer import Reducer
from ..engine_core.state import CardInstance, GamePhase, MatchState, PendingEffect, PlayerState
from ..games.tarot import MatchConfig, build_registry, setup_match


def make_player(player_id: int, hand=(), deck=(), discard=(), **changes) -> PlayerState:
    """A player with explicit zones and default stats (hp 40, atk 2)."""
    return PlayerState(
        player_id=player_id,
        name=f"P{player_id}",
        hand=list(hand),
        deck=list(deck),
        discard_pile=list(discard),
        **changes,
    )


def make_state(p1: PlayerState, p2: PlayerState, **changes) -> MatchState:
    changes.setdefault("phase", GamePhase.REVEAL)
    return MatchState(match_id="test_match", players=[p1, p2], **changes)


def run_effect(resolver: EffectResolver, state: MatchState, effect, player_id: int = 1, card=None) -> MatchState:
    """Run `effect(ctx)` as a single command and drain the queue."""
    def step():
        effect(resolver.make_context(player_id, card))

    return resolver.run(state, [Command(label="test", run=step, descriptor=PendingEffect(kind="TEST"))])


@pytest.fixture
def registry() -> CardRegistry:
    """The tarot library with its quest rewards."""
    return build_registry()


@pytest.fixture
def card(registry):
    """Factory for card instances with unique ids."""
    serial = itertools.count(1)

    def make(card_id: str, **changes) -> CardInstance:
        return CardInstance(
            definition=registry.get(card_id),
            instance_id=f"{card_id}#t{next(serial)}",
            **changes,
        )

    return make


@pytest.fixture
def resolver(registry) -> EffectResolver:
    return EffectResolver(registry, random.Random(7))


@pytest.fixture
def reducer(registry) -> Reducer:
    return Reducer(registry=registry, rng=random.Random(7))


@pytest.fixture
def seeded_state(registry) -> MatchState:
    """A freshly dealt duel in the DRAW phase of turn 1."""
    return setup_match(
        MatchConfig(random_seed=1234),
        registry,
        player_names=("Ana", "Bot"),
        human_players=(True, False),
    )
