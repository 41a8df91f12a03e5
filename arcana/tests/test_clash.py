"""
Tests for the clash resolver.

Tests:
- Comparison is exhaustive and symmetric
- Card moves for WIN, LOSE and TIE
- The continuation receives the outcome
- An empty deck fizzles the clash
"""

import itertools

from ..engine_core.clash import ClashOutcome, clash, compare_by_arcana, compare_by_rank
from ..games.tarot import TAROT_CARDS
from .conftest import make_player, make_state, run_effect


class TestComparison:
    """Tests for the comparators."""

    def test_outcomes_exhaustive_and_symmetric(self, card):
        instances = [card(definition.card_id) for definition in TAROT_CARDS]
        for mine, theirs in itertools.product(instances, repeat=2):
            for compare in (compare_by_arcana, compare_by_rank):
                outcome = compare(mine, theirs)
                assert outcome in ClashOutcome
                assert compare(theirs, mine) == outcome.flipped()

    def test_same_card_ties(self, card):
        assert compare_by_arcana(card("wands-sun"), card("wands-sun")) == ClashOutcome.TIE

    def test_arcana_ignores_suit(self, card):
        # High Priestess of Cups (102) vs High Priestess of Swords (302)
        assert compare_by_arcana(card("cups-priestess"), card("swords-priestess")) == ClashOutcome.TIE
        assert compare_by_rank(card("cups-priestess"), card("swords-priestess")) == ClashOutcome.LOSE

    def test_flipped(self):
        assert ClashOutcome.WIN.flipped() == ClashOutcome.LOSE
        assert ClashOutcome.LOSE.flipped() == ClashOutcome.WIN
        assert ClashOutcome.TIE.flipped() == ClashOutcome.TIE


class TestClash:
    """Tests for the clash operation."""

    def _run(self, resolver, my_top, their_top):
        seen = []

        def on_resolve(ctx, outcome, mine, theirs):
            seen.append((outcome, mine.instance_id, theirs.instance_id))

        state = make_state(make_player(1, deck=[my_top]), make_player(2, deck=[their_top]))
        state = run_effect(resolver, state, lambda ctx: clash(ctx, on_resolve))
        return state, seen

    def test_win(self, resolver, card):
        sun, magician = card("wands-sun"), card("cups-magician")
        state, seen = self._run(resolver, sun, magician)

        assert seen == [(ClashOutcome.WIN, sun.instance_id, magician.instance_id)]
        assert state.get_player(1).hand == [sun]
        assert state.get_player(2).discard_pile == [magician]
        assert state.get_player(1).deck == [] and state.get_player(2).deck == []

    def test_lose(self, resolver, card):
        magician, sun = card("cups-magician"), card("wands-sun")
        state, seen = self._run(resolver, magician, sun)

        assert seen[0][0] == ClashOutcome.LOSE
        assert state.get_player(1).discard_pile == [magician]
        assert state.get_player(2).hand == [sun]

    def test_tie_sends_both_to_hand(self, resolver, card):
        mine, theirs = card("cups-priestess"), card("swords-priestess")
        state, seen = self._run(resolver, mine, theirs)

        assert seen[0][0] == ClashOutcome.TIE
        assert state.get_player(1).hand == [mine]
        assert state.get_player(2).hand == [theirs]

    def test_loser_card_fires_on_discard(self, resolver, card):
        """A losing High Priestess of Cups still grants its discard effect."""
        priestess, sun = card("cups-priestess"), card("wands-sun")
        state, _ = self._run(resolver, priestess, sun)
        assert state.get_player(1).status.immunity_next_turn

    def test_empty_deck_fizzles(self, resolver, card):
        seen = []
        sun = card("wands-sun")
        state = make_state(make_player(1, deck=[sun]), make_player(2))
        results = []
        state = run_effect(
            resolver, state,
            lambda ctx: results.append(clash(ctx, lambda *args: seen.append(args))),
        )

        assert results == [None]
        assert seen == []
        assert state.get_player(1).deck == [sun]
