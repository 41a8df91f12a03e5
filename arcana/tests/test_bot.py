"""
Tests for bot action selection and legality.

Tests:
- Bot selects legal actions
- Defensive instants are spent only in danger
- Locked cards are never chosen
- Personalities and simple policies
"""

import pytest

from ..bots import ArcanaBot, FirstLegalPolicy, RandomPolicy, create_bot
from ..bots.personality import BALANCED, PERSONALITIES, Personality, create_random_personality
from ..engine_core.action import Action, ActionType
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.state import GamePhase, InstantWindow, RevealStage
from .conftest import make_player, make_state

STEADY = Personality(name="Steady", randomness=0.0)


def before_reveal(p1, p2):
    return make_state(
        p1.with_changes(has_committed=True),
        p2.with_changes(has_committed=True),
        phase=GamePhase.REVEAL,
        instant_window=InstantWindow.BEFORE_REVEAL,
        reveal_stage=RevealStage.INSTANTS,
    )


class TestBotActionLegality:
    """Tests that bots only select legal actions."""

    def test_bot_selects_legal_action(self, seeded_state, reducer):
        state = reducer.apply(seeded_state, Action.start_turn()).new_state
        legal = ActionGenerator().generate_for_player(state, 2)

        bot = create_bot(2, "balanced", seed=11)
        decision = bot.select_action(state, 2, legal)

        assert decision.action in legal
        assert decision.action.action_type in (ActionType.SET_CARD, ActionType.PLAY_INSTANT)

    def test_no_legal_actions_raises(self):
        bot = ArcanaBot(player_id=1)
        state = make_state(make_player(1), make_player(2))
        with pytest.raises(ValueError):
            bot.select_action(state, 1, [])

    def test_sets_lethal_card(self, card):
        sun, death = card("wands-sun"), card("cups-death")
        state = make_state(make_player(1, hand=[death, sun]), make_player(2, hp=4), phase=GamePhase.SET)
        legal = ActionGenerator().generate_for_player(state, 1)

        decision = ArcanaBot(player_id=1, personality=STEADY).select_action(state, 1, legal)

        assert decision.action == Action.set_card(1, sun.instance_id)
        assert decision.best_score > 9000


class TestInstants:
    """Tests for the decision to react."""

    def test_passes_when_safe(self, card):
        priestess = card("swords-priestess")
        state = before_reveal(make_player(1, hand=[priestess]), make_player(2))
        legal = ActionGenerator().generate_for_player(state, 1)

        decision = ArcanaBot(player_id=1, personality=STEADY).select_action(state, 1, legal)
        assert decision.action.action_type == ActionType.PASS

    def test_reacts_when_in_danger(self, card):
        priestess = card("swords-priestess")
        state = before_reveal(make_player(1, hand=[priestess], hp=5), make_player(2))
        legal = ActionGenerator().generate_for_player(state, 1)

        decision = ArcanaBot(player_id=1, personality=STEADY).select_action(state, 1, legal)
        assert decision.action == Action.play_instant(1, priestess.instance_id)

    def test_non_defensive_instant_not_spent(self, card):
        temperance, death = card("cups-temperance"), card("cups-death")
        state = make_state(
            make_player(1, hand=[temperance, death], hp=5), make_player(2),
            phase=GamePhase.SET, instant_window=InstantWindow.BEFORE_SET,
        )
        legal = ActionGenerator().generate_for_player(state, 1)
        assert Action.play_instant(1, temperance.instance_id) in legal

        decision = ArcanaBot(player_id=1, personality=STEADY).select_action(state, 1, legal)
        assert decision.action.action_type == ActionType.SET_CARD

    def test_after_reveal_costly_instant_not_spent(self, card):
        justice = card("pentacles-justice")
        state = before_reveal(make_player(1, hand=[justice], hp=5), make_player(2))._copy_with(
            instant_window=InstantWindow.AFTER_REVEAL,
            reveal_stage=RevealStage.REVEALED,
        )
        legal = ActionGenerator().generate_for_player(state, 1)
        assert Action.play_instant(1, justice.instance_id) in legal

        decision = ArcanaBot(player_id=1, personality=STEADY).select_action(state, 1, legal)
        assert decision.action == Action.pass_window(1)


class TestLockedCards:
    """Locked cards are never chosen."""

    def test_locked_card_never_set(self, card):
        locked, death = card("wands-sun", is_locked=True, locked_turns=1), card("cups-death")
        state = make_state(make_player(1, hand=[locked, death]), make_player(2, hp=4), phase=GamePhase.SET)
        reckless = Personality(name="Reckless", risk_tolerance=1.0, randomness=0.0)
        offered = [Action.set_card(1, locked.instance_id), Action.set_card(1, death.instance_id)]

        bot = ArcanaBot(player_id=1, personality=reckless)
        for _ in range(10):
            assert bot.select_action(state, 1, offered).action == Action.set_card(1, death.instance_id)


class TestPersonalities:
    """Tests for personality construction."""

    def test_predefined(self):
        assert set(PERSONALITIES) == {"balanced", "aggressive", "cautious"}
        assert create_bot(2, "aggressive").personality is PERSONALITIES["aggressive"]

    def test_unknown_personality(self):
        with pytest.raises(ValueError):
            create_bot(2, "reckless")

    def test_random_personality_is_reproducible(self):
        a = create_random_personality(seed=5)
        b = create_random_personality(seed=5)

        assert a.weights == b.weights
        assert a.weights.lethal_bonus == BALANCED.weights.lethal_bonus
        assert a.weights.locked_sentinel == BALANCED.weights.locked_sentinel
        assert 0 <= a.risk_tolerance <= 1


class TestSimplePolicies:
    """Tests for the baseline policies."""

    def test_first_legal(self):
        state = make_state(make_player(1), make_player(2))
        legal = [Action.pass_window(1), Action.set_card(1, None)]
        assert FirstLegalPolicy().select_action(state, 1, legal).action == legal[0]

    def test_random_is_legal(self):
        state = make_state(make_player(1), make_player(2))
        legal = [Action.pass_window(1), Action.set_card(1, None)]
        policy = RandomPolicy(seed=1)
        for _ in range(5):
            assert policy.select_action(state, 1, legal).action in legal
