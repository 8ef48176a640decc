"""
Tests for deck utilities.

Tests:
- Shuffle preserves the multiset
- Draw order and reshuffle on empty
- Unique card diversion
- Exhaustion
"""

import random
from collections import Counter

from ..engine_core.deck import draw_cards, remove_card, shuffle
from .conftest import make_card


def _ids(cards):
    return Counter(c.id for c in cards)


class TestShuffle:
    """Tests for shuffle."""

    def test_shuffle_keeps_cards(self, rng):
        cards = [make_card(f"c{i}") for i in range(10)]
        shuffled = shuffle(cards, rng)
        assert _ids(shuffled) == _ids(cards)
        assert [c.id for c in cards] == [f"c{i}" for i in range(10)]

    def test_seeded_shuffle_is_repeatable(self):
        cards = [make_card(f"c{i}") for i in range(10)]
        assert shuffle(cards, random.Random(7)) == shuffle(cards, random.Random(7))


class TestDraw:
    """Tests for draw_cards."""

    def test_draws_from_end(self, rng):
        deck = [make_card("a"), make_card("b"), make_card("c")]
        result = draw_cards(deck, [], 2, rng=rng)
        assert [c.id for c in result.hand] == ["c", "b"]
        assert [c.id for c in result.deck] == ["a"]

    def test_reshuffle_mid_draw(self, rng):
        """One deck card plus four discards yields exactly three drawn cards."""
        deck = [make_card("d0")]
        discard = [make_card(f"x{i}") for i in range(4)]
        result = draw_cards(deck, discard, 3, rng=rng)

        assert len(result.hand) == 3
        assert result.hand[0].id == "d0"
        before = _ids(deck) + _ids(discard)
        after = _ids(result.deck) + _ids(result.discard) + _ids(result.hand)
        assert before == after
        assert result.discard == ()

    def test_exhaustion_truncates(self, rng):
        result = draw_cards([make_card("a")], [make_card("b")], 5, rng=rng)
        assert len(result.hand) == 2
        assert result.deck == () and result.discard == ()

    def test_unique_card_diverted(self, rng):
        """A unique card already held goes to discard and drawing continues."""
        held = make_card("star", unique=True)
        deck = [make_card("plain"), make_card("star", unique=True)]
        result = draw_cards(deck, [], 1, current_hand=[held], rng=rng)

        assert [c.id for c in result.hand] == ["plain"]
        assert [c.id for c in result.discard] == ["star"]

    def test_only_blocked_uniques_terminates(self, rng):
        held = make_card("star", unique=True)
        result = draw_cards([make_card("star", unique=True)], [], 3, current_hand=[held], rng=rng)
        assert result.hand == ()


class TestRemoveCard:
    def test_removes_one_instance(self):
        a = make_card("a")
        b = make_card("a")
        zone = (a, b)
        assert remove_card(zone, b) == (a,)
        assert remove_card(zone, b)[0] is a
