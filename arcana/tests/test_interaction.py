"""
Tests for the interaction broker.

Tests:
- Button, number and card-select validation
- Stale selections are rejected, or dismissed when nothing remains
- Only one interaction may be outstanding
"""

import pytest

from ..engine_core.interaction import InteractionBroker, InteractionHandlers, InteractionResponse
from ..engine_core.state import InteractionKind, InteractionRequest
from .conftest import make_player, make_state


def _request(broker, kind, **fields):
    return InteractionRequest(
        interaction_id=broker.next_id(),
        player_id=1,
        title="Test request",
        kind=kind,
        **fields,
    )


class TestButtons:
    """Tests for BUTTON requests."""

    def test_chosen_continuation_runs(self):
        broker = InteractionBroker()
        chosen = []
        state = make_state(make_player(1), make_player(2))
        request = _request(broker, InteractionKind.BUTTON, options=["Heal", "Draw"])
        state = broker.open(state, request, InteractionHandlers(options=[
            lambda: chosen.append("heal"),
            lambda: chosen.append("draw"),
        ]))

        resolution = broker.resolve(state, InteractionResponse.choose_option(1))
        assert resolution.accepted
        assert resolution.state.interaction is None
        assert "P1 chose [Draw] for Test request" in resolution.state.logs

        resolution.continuation()
        assert chosen == ["draw"]

    def test_invalid_index_leaves_request_open(self):
        broker = InteractionBroker()
        state = make_state(make_player(1), make_player(2))
        request = _request(broker, InteractionKind.BUTTON, options=["Only"])
        state = broker.open(state, request, InteractionHandlers(options=[lambda: None]))

        resolution = broker.resolve(state, InteractionResponse.choose_option(3))
        assert not resolution.accepted
        assert resolution.state.interaction is request


class TestNumbers:
    """Tests for NUMBER_INPUT requests."""

    def test_value_is_clamped(self):
        broker = InteractionBroker()
        confirmed = []
        state = make_state(make_player(1), make_player(2))
        request = _request(broker, InteractionKind.NUMBER_INPUT, min_value=1, max_value=6)
        state = broker.open(state, request, InteractionHandlers(on_confirm=confirmed.append))

        resolution = broker.resolve(state, InteractionResponse.number(10))
        resolution.continuation()
        assert confirmed == [6]

    def test_missing_value_rejected(self):
        broker = InteractionBroker()
        state = make_state(make_player(1), make_player(2))
        request = _request(broker, InteractionKind.NUMBER_INPUT, min_value=1, max_value=6)
        state = broker.open(state, request, InteractionHandlers(on_confirm=lambda v: None))

        assert not broker.resolve(state, InteractionResponse()).accepted


class TestCardSelect:
    """Tests for CARD_SELECT requests."""

    def test_candidate_selected(self, card):
        broker = InteractionBroker()
        picked = []
        wheel, death = card("cups-wheel"), card("cups-death")
        state = make_state(make_player(1, hand=[wheel, death]), make_player(2))
        request = _request(broker, InteractionKind.CARD_SELECT, candidates=[wheel, death])
        state = broker.open(state, request, InteractionHandlers(on_card_select=picked.append))

        resolution = broker.resolve(state, InteractionResponse.card(death.instance_id))
        resolution.continuation()
        assert picked == [death]

    def test_non_candidate_rejected(self, card):
        broker = InteractionBroker()
        wheel, death = card("cups-wheel"), card("cups-death")
        state = make_state(make_player(1, hand=[wheel, death]), make_player(2))
        request = _request(broker, InteractionKind.CARD_SELECT, candidates=[wheel])
        state = broker.open(state, request, InteractionHandlers(on_card_select=lambda c: None))

        resolution = broker.resolve(state, InteractionResponse.card(death.instance_id))
        assert not resolution.accepted
        assert "not a candidate" in resolution.error

    def test_stale_selection_rejected(self, card):
        broker = InteractionBroker()
        wheel, death = card("cups-wheel"), card("cups-death")
        # Only the wheel is still in play
        state = make_state(make_player(1, hand=[wheel]), make_player(2))
        request = _request(broker, InteractionKind.CARD_SELECT, candidates=[wheel, death])
        state = broker.open(state, request, InteractionHandlers(on_card_select=lambda c: None))

        resolution = broker.resolve(state, InteractionResponse.card(death.instance_id))
        assert not resolution.accepted
        assert "no longer in play" in resolution.error
        assert resolution.state.interaction is request

    def test_all_candidates_gone_dismisses(self, card):
        broker = InteractionBroker()
        wheel = card("cups-wheel")
        state = make_state(make_player(1), make_player(2))
        request = _request(broker, InteractionKind.CARD_SELECT, candidates=[wheel])
        state = broker.open(state, request, InteractionHandlers(on_card_select=lambda c: None))

        resolution = broker.resolve(state, InteractionResponse.card(wheel.instance_id))
        assert resolution.accepted
        assert resolution.continuation is None
        assert resolution.state.interaction is None

    def test_absent_cards_allowed_when_not_required(self, card):
        broker = InteractionBroker()
        picked = []
        wheel = card("cups-wheel")
        state = make_state(make_player(1), make_player(2))
        request = _request(
            broker, InteractionKind.CARD_SELECT, candidates=[wheel], require_present=False,
        )
        state = broker.open(state, request, InteractionHandlers(on_card_select=picked.append))

        broker.resolve(state, InteractionResponse.card(wheel.instance_id)).continuation()
        assert picked == [wheel]


class TestLifecycle:
    """Tests for open/dismiss/attach."""

    def test_dismiss_clears_without_continuation(self):
        broker = InteractionBroker()
        called = []
        state = make_state(make_player(1), make_player(2))
        request = _request(broker, InteractionKind.BUTTON, options=["Go"])
        state = broker.open(state, request, InteractionHandlers(options=[lambda: called.append(1)]))

        resolution = broker.resolve(state, InteractionResponse.dismissed())
        assert resolution.accepted
        assert resolution.continuation is None
        assert resolution.state.interaction is None
        assert not broker.has_handlers(request.interaction_id)
        assert called == []

    def test_second_open_raises(self):
        broker = InteractionBroker()
        state = make_state(make_player(1), make_player(2))
        state = broker.open(
            state,
            _request(broker, InteractionKind.BUTTON, options=["A"]),
            InteractionHandlers(options=[lambda: None]),
        )
        with pytest.raises(RuntimeError):
            broker.open(
                state,
                _request(broker, InteractionKind.BUTTON, options=["B"]),
                InteractionHandlers(options=[lambda: None]),
            )

    def test_missing_handlers_reported(self):
        broker = InteractionBroker()
        state = make_state(make_player(1), make_player(2))
        state = broker.open(
            state,
            _request(broker, InteractionKind.BUTTON, options=["A"]),
            InteractionHandlers(options=[lambda: None]),
        )

        fresh = InteractionBroker()
        resolution = fresh.resolve(state, InteractionResponse.choose_option(0))
        assert not resolution.accepted
        assert "No handlers" in resolution.error

        fresh.attach(state.interaction.interaction_id, InteractionHandlers(options=[lambda: None]))
        assert fresh.resolve(state, InteractionResponse.choose_option(0)).accepted

    def test_nothing_pending(self):
        broker = InteractionBroker()
        state = make_state(make_player(1), make_player(2))
        assert broker.resolve(state, InteractionResponse.choose_option(0)).error == "No interaction pending"
