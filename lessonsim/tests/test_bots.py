"""
Tests for lesson policies and run_lesson.
"""

import random

from ..bots import FirstPlayablePolicy, GreedyScorePolicy, RandomPolicy, run_lesson
from ..bots.policy import playable_card_ids
from ..engine_core.engine import initialize_game
from ..spec_schema import Effect, EffectType
from .conftest import make_card


def _score_card(card_id, value, cost=0):
    return make_card(card_id, cost=cost, effects=[Effect(type=EffectType.SCORE_FIXED, value=value)])


class TestPolicies:
    """Tests for action selection."""

    def test_playable_ids_skip_unaffordable(self, base_state):
        state = base_state.copy_with(hand=(
            _score_card("cheap", 1),
            _score_card("cheap", 1),
            _score_card("pricey", 50, cost=99),
        ))
        assert playable_card_ids(state) == ["cheap"]

    def test_first_playable(self, state_with_hand):
        decision = FirstPlayablePolicy().select_action(state_with_hand)
        assert decision.card_id == "genki_card"

    def test_nothing_playable(self, base_state):
        decision = FirstPlayablePolicy().select_action(base_state)
        assert decision.card_id is None

    def test_random_is_seeded(self, state_with_hand):
        first = [RandomPolicy(seed=5).select_action(state_with_hand).card_id for _ in range(3)]
        second = [RandomPolicy(seed=5).select_action(state_with_hand).card_id for _ in range(3)]
        assert first == second

    def test_greedy_picks_highest_score(self, state_with_hand):
        """hp_card scores 20, more than score_card's 10."""
        decision = GreedyScorePolicy().select_action(state_with_hand)
        assert decision.card_id == "hp_card"
        assert decision.expected_score == 20

    def test_name(self):
        assert GreedyScorePolicy().get_name() == "GreedyScorePolicy"


class TestRunLesson:
    """Tests for driving a whole lesson."""

    def test_runs_to_final_turn(self):
        deck = [_score_card(f"c{i}", 5) for i in range(8)]
        schedule = ["vocal"] * 4
        rng = random.Random(2)
        state = initialize_game({"hp": 30}, schedule, deck, max_turns=4, rng=rng)

        final = run_lesson(state, GreedyScorePolicy(), schedule, rng)

        assert final.is_finished
        assert final.turn == 4
        assert final.score == 20

    def test_first_policy_on_empty_hand(self):
        state = initialize_game(None, ["vocal", "vocal"], [], max_turns=2)
        final = run_lesson(state, FirstPlayablePolicy(), ["vocal", "vocal"])
        assert final.is_finished
        assert final.score == 0
