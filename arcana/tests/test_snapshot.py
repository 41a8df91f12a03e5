"""
Tests for match snapshots.

Tests:
- A dealt match survives a JSON round trip
- A pending interaction can be answered on the receiving side
- Unknown card ids are refused
"""

import pytest

from ..engine_core.interaction import InteractionBroker, InteractionHandlers, InteractionResponse
from ..engine_core.snapshot import MatchSnapshot, dumps, from_snapshot, loads, to_snapshot
from ..engine_core.state import InteractionKind, InteractionRequest, StatusFlags
from .conftest import make_player, make_state


class TestRoundTrip:
    """Tests for to_snapshot / from_snapshot."""

    def test_seeded_match_round_trip(self, seeded_state, registry):
        restored = from_snapshot(to_snapshot(seeded_state), registry)

        assert restored == seeded_state
        assert dumps(restored) == dumps(seeded_state)

    def test_json_round_trip_keeps_runtime_fields(self, registry, card):
        marked = card("cups-wheel", marks=["mark-a"], is_locked=True, locked_turns=2, temp_rank=5)
        state = make_state(
            make_player(1, hand=[marked], status=StatusFlags(effect_double_next=True)),
            make_player(2, set_card=card("wands-sun"), has_committed=True),
            passes=[2],
        )

        restored = loads(dumps(state), registry)

        card_back = restored.get_player(1).hand[0]
        assert card_back.definition is registry.get("cups-wheel")
        assert card_back.marks == ["mark-a"]
        assert card_back.locked_turns == 2
        assert card_back.temp_rank == 5
        assert restored.get_player(1).status.effect_double_next
        assert restored.get_player(2).set_card.card_id == "wands-sun"
        assert restored.passes == [2]

    def test_snapshot_is_plain_json(self, seeded_state):
        data = dumps(seeded_state)
        snapshot = MatchSnapshot.model_validate_json(data)
        assert snapshot.match_id == seeded_state.match_id
        assert len(snapshot.players) == 2

    def test_unknown_card_refused(self, seeded_state, registry):
        snapshot = to_snapshot(seeded_state)
        snapshot.players[0].deck[0].card_id = "no-such-card"

        with pytest.raises(KeyError):
            from_snapshot(snapshot, registry)


class TestPendingInteraction:
    """Tests for shipping a suspended decision."""

    def test_receiver_reattaches_handlers(self, registry, card):
        wheel = card("cups-wheel")
        sender = InteractionBroker()
        state = make_state(make_player(1, hand=[wheel]), make_player(2))
        state = sender.open(
            state,
            InteractionRequest(
                interaction_id=sender.next_id(),
                player_id=1,
                title="Select a card",
                kind=InteractionKind.CARD_SELECT,
                candidates=[wheel],
            ),
            InteractionHandlers(on_card_select=lambda c: None),
        )

        received = loads(dumps(state), registry)
        assert received.interaction.candidates == [wheel]

        picked = []
        receiver = InteractionBroker()
        receiver.attach(received.interaction.interaction_id, InteractionHandlers(on_card_select=picked.append))
        resolution = receiver.resolve(received, InteractionResponse.card(wheel.instance_id))

        assert resolution.accepted
        resolution.continuation()
        assert [c.instance_id for c in picked] == [wheel.instance_id]
