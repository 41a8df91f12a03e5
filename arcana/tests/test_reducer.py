"""
Tests for the reducer (turn flow).

Tests:
- START_TURN draws and opens the set phase
- SET_CARD validation
- Instant windows, including the after-reveal window
- Reveal order, rule damage, invalidation and game over
- Hand trim and the turn boundary
- Pending invalidation is spent by any played card
- Locks tick down in every zone
"""

from ..bots.policy import FirstLegalPolicy
from ..engine_core.action import Action
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.cards import CardDefinition, Suit
from ..engine_core.interaction import InteractionResponse
from ..engine_core.state import (
    CardInstance,
    DelayedAction,
    DelayedEffect,
    GamePhase,
    InstantWindow,
    InteractionKind,
    RevealStage,
    StatusFlags,
)
from .conftest import make_player, make_state


class Recorder(CardDefinition):
    """Test card that logs its own reveal."""

    def on_reveal(self, ctx):
        ctx.log(f"reveal:{ctx.card.instance_id}")


def recorder(instance_id: str, rank: int, **changes) -> CardInstance:
    definition = Recorder(card_id=f"recorder-{rank}", name=f"Recorder {rank}", suit=Suit.EMPTY, rank=rank)
    return CardInstance(definition=definition, instance_id=instance_id, **changes)


def revealing(p1, p2, **changes):
    """A state waiting on before-reveal passes, with both players committed."""
    p1 = p1.with_changes(has_committed=True)
    p2 = p2.with_changes(has_committed=True)
    return make_state(
        p1, p2,
        phase=GamePhase.REVEAL,
        instant_window=InstantWindow.BEFORE_REVEAL,
        reveal_stage=RevealStage.INSTANTS,
        **changes,
    )


def setting(p1, p2):
    return make_state(p1, p2, phase=GamePhase.SET, instant_window=InstantWindow.BEFORE_SET)


def apply_ok(reducer, state, action):
    result = reducer.apply(state, action)
    assert result.success, result.error
    return result.new_state


def pass_round(reducer, state):
    """Both players pass the open window once."""
    state = apply_ok(reducer, state, Action.pass_window(1))
    return apply_ok(reducer, state, Action.pass_window(2))


def both_pass(reducer, state):
    """Pass the before-reveal window, then the after-reveal one."""
    return pass_round(reducer, pass_round(reducer, state))


class TestStartTurn:
    """Tests for the draw phase."""

    def test_draws_and_enters_set(self, reducer, card):
        wheel, death, sun = card("cups-wheel"), card("cups-death"), card("wands-sun")
        state = make_state(
            make_player(1, deck=[wheel, death]),
            make_player(2, deck=[sun]),
            phase=GamePhase.DRAW,
        )

        state = apply_ok(reducer, state, Action.start_turn())

        assert state.get_player(1).hand == [wheel]
        assert state.get_player(1).deck == [death]
        assert state.get_player(2).hand == [sun]
        assert state.phase == GamePhase.SET
        assert state.instant_window == InstantWindow.BEFORE_SET

    def test_extra_draw_when_nothing_is_playable(self, reducer, card):
        locked = card("cups-wheel", is_locked=True, locked_turns=1)
        death, sun = card("cups-death"), card("wands-sun")
        state = make_state(
            make_player(1, hand=[locked], deck=[death], draw_per_turn=0),
            make_player(2, hand=[sun], draw_per_turn=0),
            phase=GamePhase.DRAW,
        )

        state = apply_ok(reducer, state, Action.start_turn())

        assert state.get_player(1).hand == [locked, death]
        assert state.get_player(2).hand == [sun]

    def test_rejected_outside_draw_phase(self, reducer):
        state = setting(make_player(1), make_player(2))
        result = reducer.apply(state, Action.start_turn())
        assert not result.success
        assert result.error_code == "INVALID_ACTION"


class TestSetCard:
    """Tests for committing a face-down card."""

    def test_locked_card_rejected(self, reducer, card):
        locked = card("cups-wheel", is_locked=True, locked_turns=1)
        state = setting(make_player(1, hand=[locked, card("cups-death")]), make_player(2))

        result = reducer.apply(state, Action.set_card(1, locked.instance_id))
        assert not result.success
        assert "cannot be set" in result.error

    def test_card_not_in_hand_rejected(self, reducer):
        state = setting(make_player(1), make_player(2))
        result = reducer.apply(state, Action.set_card(1, "cups-wheel#404"))
        assert not result.success
        assert "not in hand" in result.error

    def test_nothing_set_only_when_nothing_is_settable(self, reducer, card):
        state = setting(make_player(1, hand=[card("cups-wheel")]), make_player(2))
        result = reducer.apply(state, Action.set_card(1, None))
        assert not result.success
        assert "must set" in result.error

        empty = setting(make_player(1), make_player(2))
        new_state = apply_ok(reducer, empty, Action.set_card(1, None))
        assert new_state.get_player(1).has_committed
        assert new_state.get_player(1).set_card is None

    def test_second_set_rejected(self, reducer, card):
        wheel, death = card("cups-wheel"), card("cups-death")
        state = setting(make_player(1, hand=[wheel, death]), make_player(2, hand=[card("wands-sun")]))

        state = apply_ok(reducer, state, Action.set_card(1, wheel.instance_id))
        result = reducer.apply(state, Action.set_card(1, death.instance_id))
        assert not result.success
        assert "already set" in result.error

    def test_both_set_opens_before_reveal(self, reducer, card):
        wheel, sun = card("cups-wheel"), card("wands-sun")
        state = setting(make_player(1, hand=[wheel]), make_player(2, hand=[sun]))

        state = apply_ok(reducer, state, Action.set_card(1, wheel.instance_id))
        assert state.phase == GamePhase.SET
        state = apply_ok(reducer, state, Action.set_card(2, sun.instance_id))

        assert state.phase == GamePhase.REVEAL
        assert state.reveal_stage == RevealStage.INSTANTS
        assert state.instant_window == InstantWindow.BEFORE_REVEAL
        assert state.get_player(1).set_card == wheel
        assert state.get_player(1).hand == []


class TestInstants:
    """Tests for instant windows."""

    def test_before_set_instant(self, reducer, card):
        priestess, wheel, spare = card("cups-priestess"), card("cups-wheel"), card("cups-priestess")
        state = setting(make_player(1, hand=[priestess, wheel, spare], hp=30), make_player(2))

        state = apply_ok(reducer, state, Action.play_instant(1, priestess.instance_id))
        player = state.get_player(1)
        assert player.hp == 33
        assert player.discard_pile == [priestess]
        # Instants skip the discard hook
        assert not player.status.immunity_next_turn

        state = apply_ok(reducer, state, Action.set_card(1, wheel.instance_id))
        result = reducer.apply(state, Action.play_instant(1, spare.instance_id))
        assert not result.success
        assert "already set" in result.error

    def test_wrong_window_rejected(self, reducer, card):
        magician = card("cups-magician")
        state = setting(make_player(1, hand=[magician]), make_player(2))

        result = reducer.apply(state, Action.play_instant(1, magician.instance_id))
        assert not result.success
        assert "cannot be played" in result.error

    def test_locked_instant_rejected(self, reducer, card):
        priestess = card("cups-priestess", is_locked=True, locked_turns=1)
        state = setting(make_player(1, hand=[priestess]), make_player(2))

        result = reducer.apply(state, Action.play_instant(1, priestess.instance_id))
        assert not result.success
        assert "locked" in result.error

    def test_instant_resets_passes(self, reducer, card):
        priestess = card("swords-priestess")
        state = revealing(make_player(1, hand=[priestess]), make_player(2), passes=[2])

        state = apply_ok(reducer, state, Action.play_instant(1, priestess.instance_id))

        assert state.passes == []
        assert state.get_player(1).status.incoming_damage_conversion
        assert state.phase == GamePhase.REVEAL

    def test_pass_twice_rejected(self, reducer):
        state = revealing(make_player(1), make_player(2))
        state = apply_ok(reducer, state, Action.pass_window(1))
        result = reducer.apply(state, Action.pass_window(1))
        assert not result.success

    def test_after_reveal_window(self, reducer, card):
        justice = card("pentacles-justice")
        state = revealing(
            make_player(1, hand=[justice], set_card=recorder("mine", 10)),
            make_player(2, set_card=recorder("theirs", 20)),
        )

        state = pass_round(reducer, state)

        assert state.phase == GamePhase.REVEAL
        assert state.instant_window == InstantWindow.AFTER_REVEAL
        assert state.reveal_stage == RevealStage.REVEALED
        assert state.passes == []
        assert state.get_player(2).is_set_card_revealed
        assert not any(line.startswith("reveal:") for line in state.logs)
        legal = ActionGenerator().generate_for_player(state, 1)
        assert Action.play_instant(1, justice.instance_id) in legal

        state = apply_ok(reducer, state, Action.play_instant(1, justice.instance_id))
        assert state.get_player(1).hp == 36
        assert state.get_player(2).status.invalidate_next_played_card

        state = pass_round(reducer, state)

        assert "reveal:mine" in state.logs
        assert "reveal:theirs" not in state.logs
        assert not state.get_player(2).status.invalidate_next_played_card
        assert state.turn_number == 2

    def test_before_reveal_instant_rejected_after_flip(self, reducer, card):
        priestess = card("swords-priestess")
        state = revealing(make_player(1, hand=[priestess]), make_player(2))
        state = pass_round(reducer, state)

        result = reducer.apply(state, Action.play_instant(1, priestess.instance_id))

        assert not result.success
        assert "cannot be played" in result.error
        assert Action.play_instant(1, priestess.instance_id) not in ActionGenerator().generate_for_player(state, 1)

    def test_justice_before_flip_reverses(self, reducer, card):
        justice = card("pentacles-justice")
        state = revealing(make_player(1, hand=[justice]), make_player(2))

        state = apply_ok(reducer, state, Action.play_instant(1, justice.instance_id))

        # Played before the flip, Justice reverses instead of invalidating
        assert state.get_player(2).status.is_reversed
        assert not state.get_player(2).status.invalidate_next_played_card


class TestReveal:
    """Tests for the reveal phase."""

    def test_full_reveal(self, reducer, card):
        priestess, sun = card("cups-priestess"), card("wands-sun")
        state = revealing(
            make_player(1, set_card=priestess, hp=30),
            make_player(2, set_card=sun),
        )

        state = both_pass(reducer, state)

        p1, p2 = state.get_player(1), state.get_player(2)
        # priestess: rule damage 2 to p2, heal 4; sun: rule damage 2 and 4 more to p1
        assert p1.hp == 28
        assert p2.hp == 38
        assert p1.discard_pile == [priestess]
        assert p2.discard_pile == [sun]
        # The priestess's discard effect carries into the next turn
        assert p1.status.immunity_this_turn
        assert state.turn_number == 2
        assert state.phase == GamePhase.DRAW
        assert p1.set_card is None and not p1.has_committed

    def test_reveal_order_by_rank(self, reducer):
        state = revealing(
            make_player(1, set_card=recorder("high", 50)),
            make_player(2, set_card=recorder("low", 10)),
        )
        assert [pid for pid, _ in reducer.reveal_order(state)] == [2, 1]

        state = both_pass(reducer, state)
        reveals = [line for line in state.logs if line.startswith("reveal:")]
        assert reveals == ["reveal:low", "reveal:high"]

    def test_temp_rank_and_ties(self, reducer):
        overridden = revealing(
            make_player(1, set_card=recorder("mine", 50)),
            make_player(2, set_card=recorder("theirs", 10, temp_rank=60)),
        )
        assert [pid for pid, _ in reducer.reveal_order(overridden)] == [1, 2]

        tied = revealing(
            make_player(1, set_card=recorder("mine", 10)),
            make_player(2, set_card=recorder("theirs", 10)),
        )
        assert [pid for pid, _ in reducer.reveal_order(tied)] == [1, 2]

    def test_game_over_stops_resolution(self, reducer):
        state = revealing(
            make_player(1, set_card=recorder("mine", 10)),
            make_player(2, set_card=recorder("theirs", 20), hp=2),
        )

        state = both_pass(reducer, state)

        assert state.is_over
        assert state.outcome.winner_id == 1
        assert not any(line.startswith("reveal:") for line in state.logs)

        result = reducer.apply(state, Action.start_turn())
        assert not result.success
        assert "over" in result.error

    def test_invalidated_card_still_strikes(self, reducer):
        state = revealing(
            make_player(1, set_card=recorder("mine", 10), status=StatusFlags(is_invalidated=True)),
            make_player(2),
        )

        state = both_pass(reducer, state)

        assert "reveal:mine" not in state.logs
        assert any(line.startswith("[Invalidated]") for line in state.logs)
        assert state.get_player(2).hp == 38


class TestEndOfTurn:
    """Tests for hand trim and the turn boundary."""

    def test_human_trims_one_card_at_a_time(self, reducer, card):
        hand = [card("cups-wheel"), card("cups-death"), card("wands-moon"),
                card("wands-sun"), card("cups-magician")]
        state = revealing(make_player(1, hand=hand), make_player(2))

        state = both_pass(reducer, state)
        assert state.interaction.kind == InteractionKind.CARD_SELECT
        assert state.interaction.player_id == 1
        assert state.phase == GamePhase.DISCARD

        result = reducer.apply(state, Action.pass_window(1))
        assert result.error_code == "INTERACTION_PENDING"

        state = apply_ok(reducer, state, Action.resolve_interaction(
            1, InteractionResponse.card(hand[0].instance_id)))
        assert state.interaction is not None

        state = apply_ok(reducer, state, Action.resolve_interaction(
            1, InteractionResponse.card(hand[1].instance_id)))

        assert state.interaction is None
        assert state.get_player(1).hand == hand[2:]
        assert state.get_player(1).discard_pile == hand[:2]
        assert state.turn_number == 2

    def test_computer_player_trims_automatically(self, reducer, card):
        reducer.register_responder(1, FirstLegalPolicy())
        hand = [card("cups-wheel"), card("cups-death"), card("wands-moon"),
                card("wands-sun"), card("cups-magician")]
        state = revealing(make_player(1, hand=hand), make_player(2))

        state = both_pass(reducer, state)

        assert state.interaction is None
        assert state.get_player(1).hand_count == 3
        assert state.turn_number == 2

    def test_delayed_effects_and_locks(self, reducer, card):
        locked = card("wands-sun", is_locked=True, locked_turns=1)
        state = revealing(
            make_player(1, delayed_effects=[
                DelayedEffect(amount=3, action=DelayedAction.HEAL, turns_remaining=1),
                DelayedEffect(amount=1, action=DelayedAction.ATK_CHANGE, turns_remaining=2),
            ]),
            make_player(2, hand=[locked]),
        )

        state = both_pass(reducer, state)

        p1 = state.get_player(1)
        assert p1.hp == 43
        assert p1.atk == 2
        assert [e.turns_remaining for e in p1.delayed_effects] == [1]
        assert not state.get_player(2).hand[0].is_locked

    def test_locks_tick_in_every_zone(self, reducer, card):
        in_deck = card("wands-sun", is_locked=True, locked_turns=1)
        in_pile = card("wands-moon", is_locked=True, locked_turns=1)
        held = card("cups-wheel", is_locked=True, locked_turns=2, temp_rank=5)
        state = revealing(
            make_player(1, deck=[in_deck], discard=[in_pile], hand=[held]),
            make_player(2),
        )

        state = both_pass(reducer, state)

        p1 = state.get_player(1)
        assert not p1.deck[0].is_locked
        assert not p1.discard_pile[0].is_locked
        assert p1.hand[0].is_locked and p1.hand[0].locked_turns == 1
        assert p1.hand[0].temp_rank is None


class TestPendingInvalidation:
    """Tests for the invalidate-next-card flag."""

    def test_treasure_spends_the_flag(self, reducer, card):
        treasure = card("treasure-wands")
        state = revealing(
            make_player(1, set_card=treasure, hp=30,
                        status=StatusFlags(invalidate_next_played_card=True)),
            make_player(2),
        )

        state = both_pass(reducer, state)

        p1 = state.get_player(1)
        assert not p1.status.invalidate_next_played_card
        assert not any(line.startswith("[Invalidated]") for line in state.logs)
        # The treasure resolved: heal 2
        assert p1.hp == 32
        assert treasure.instance_id in [c.instance_id for c in state.vault]

    def test_invalidated_card_spends_the_flag(self, reducer):
        state = revealing(
            make_player(1, set_card=recorder("mine", 10),
                        status=StatusFlags(invalidate_next_played_card=True)),
            make_player(2),
        )

        state = both_pass(reducer, state)

        assert "reveal:mine" not in state.logs
        assert not state.get_player(1).status.invalidate_next_played_card

    def test_invalidate_next_turn_rolls_over(self, reducer, card):
        justice = card("pentacles-justice")
        state = revealing(
            make_player(1, set_card=justice),
            make_player(2, set_card=recorder("theirs", 900)),
        )

        state = both_pass(reducer, state)

        p2 = state.get_player(2)
        assert "reveal:theirs" in state.logs
        assert not p2.status.invalidate_next_turn
        assert p2.status.is_invalidated
