"""
Tests for the AI interaction policy.

Tests:
- Safe hp spending and numeric answers
- Card selection for discards and keeps
- Button rules
- Unanswerable requests are dismissed
"""

import random

import pytest

from ..bots.interaction_policy import AIInteractionPolicy
from ..engine_core.state import InteractionKind, InteractionRequest
from .conftest import make_player, make_state


@pytest.fixture
def policy():
    return AIInteractionPolicy(rng=random.Random(3))


def request(kind, title="Choose", **fields):
    return InteractionRequest(interaction_id="interaction-1", player_id=1, title=title, kind=kind, **fields)


class TestNumbers:
    """Tests for numeric answers."""

    @pytest.mark.parametrize("hp, low, high, cost, expected", [
        (20, 1, 6, 4, 1),
        (40, 1, 6, 1, 6),
        (40, 0, 20, 2, 5),
        (3, 1, 6, 4, 1),
    ])
    def test_safe_spend(self, hp, low, high, cost, expected):
        assert AIInteractionPolicy.safe_spend(hp, low, high, cost) == expected

    def test_cost_request_spends_safely(self, policy):
        state = make_state(make_player(1, hp=20), make_player(2))
        answer = policy.respond(state, request(
            InteractionKind.NUMBER_INPUT, "Pay hp", min_value=1, max_value=6, unit_cost=4,
        ))
        assert answer.value == 1

    def test_discard_count_minimised(self, policy):
        state = make_state(make_player(1), make_player(2))
        answer = policy.respond(state, request(
            InteractionKind.NUMBER_INPUT, "Discard how many?", min_value=1, max_value=3,
        ))
        assert answer.value == 1

    def test_default_takes_maximum(self, policy):
        state = make_state(make_player(1), make_player(2))
        answer = policy.respond(state, request(
            InteractionKind.NUMBER_INPUT, "Draw how many?", min_value=0, max_value=2,
        ))
        assert answer.value == 2


class TestCardSelection:
    """Tests for CARD_SELECT answers."""

    def test_discard_picks_weakest(self, policy, card):
        treasure, death = card("treasure-wands"), card("cups-death")
        state = make_state(make_player(1, hand=[treasure, death]), make_player(2))

        answer = policy.respond(state, request(
            InteractionKind.CARD_SELECT, "Discard a card", candidates=[treasure, death],
        ))
        assert answer.card_instance_id == death.instance_id

    def test_keep_picks_strongest(self, policy, card):
        treasure, death = card("treasure-wands"), card("cups-death")
        state = make_state(make_player(1, hand=[treasure, death]), make_player(2))

        answer = policy.respond(state, request(
            InteractionKind.CARD_SELECT, "Choose a card to keep", candidates=[treasure, death],
        ))
        assert answer.card_instance_id == treasure.instance_id

    def test_locked_candidates_skipped(self, policy, card):
        locked, death = card("wands-sun", is_locked=True, locked_turns=1), card("cups-death")
        state = make_state(make_player(1, hand=[locked, death]), make_player(2))

        answer = policy.respond(state, request(
            InteractionKind.CARD_SELECT, "Select a card", candidates=[locked, death],
        ))
        assert answer.card_instance_id == death.instance_id


class TestButtons:
    """Tests for BUTTON answers."""

    def test_preferred_wording(self, policy):
        state = make_state(make_player(1), make_player(2))
        answer = policy.respond(state, request(InteractionKind.BUTTON, options=["Cancel", "Activate"]))
        assert answer.option_index == 1

    @pytest.mark.parametrize("hand_size, expected", [(1, 0), (4, 1)])
    def test_draw_or_discard_by_hand_size(self, policy, card, hand_size, expected):
        hand = [card("cups-wheel") for _ in range(hand_size)]
        state = make_state(make_player(1, hand=hand), make_player(2))
        answer = policy.respond(state, request(
            InteractionKind.BUTTON, options=["Draw 2 cards", "Discard a card and heal 5"],
        ))
        assert answer.option_index == expected

    def test_claims_empty_field(self, policy):
        state = make_state(make_player(1), make_player(2))
        answer = policy.respond(state, request(InteractionKind.BUTTON, options=["Skip", "Set the field"]))
        assert answer.option_index == 1

    def test_avoids_cancel_when_choosing_randomly(self, policy):
        state = make_state(make_player(1), make_player(2))
        answer = policy.respond(state, request(InteractionKind.BUTTON, options=["Decline", "Reverse"]))
        assert answer.option_index == 1


class TestDismissal:
    """Tests for requests the AI cannot answer."""

    def test_empty_request_dismissed(self, policy):
        state = make_state(make_player(1), make_player(2))
        answer = policy.respond(state, request(InteractionKind.CARD_SELECT, candidates=[]))
        assert answer.dismiss
