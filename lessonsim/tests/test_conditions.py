"""
Tests for condition evaluation.

Tests:
- Resource thresholds and comparison operators
- HP ratio edge cases
- Buff, trouble and rarity counters
- Fail-closed handling of unknown types
"""

from ..engine_core.conditions import check_conditions, evaluate_condition, matches_played_card
from ..engine_core.state import Buff
from ..spec_schema import CardType, CompareOp, Condition, ConditionType, EffectType
from .conftest import make_card


class TestThresholds:
    """Tests for scalar resource comparisons."""

    def test_genki_at_least(self, base_state):
        """Default comparison is >=."""
        state = base_state.copy_with(genki=10)
        assert evaluate_condition(state, Condition(ConditionType.GENKI, value=10))
        assert not evaluate_condition(state, Condition(ConditionType.GENKI, value=11))

    def test_all_operators(self, base_state):
        """Every comparison operator is honoured."""
        state = base_state.copy_with(motivation=5)
        cases = [
            (CompareOp.GE, 5, True),
            (CompareOp.LE, 4, False),
            (CompareOp.EQ, 5, True),
            (CompareOp.GT, 5, False),
            (CompareOp.LT, 6, True),
        ]
        for op, value, expected in cases:
            cond = Condition(ConditionType.MOTIVATION, value=value, compare=op)
            assert evaluate_condition(state, cond) is expected, op

    def test_turn_and_impression(self, base_state):
        state = base_state.copy_with(turn=4, good_impression=7)
        assert evaluate_condition(state, Condition(ConditionType.TURN, value=4, compare=CompareOp.EQ))
        assert evaluate_condition(state, Condition(ConditionType.IMPRESSION, value=7))


class TestHpRatio:
    """Tests for HP ratio and percent."""

    def test_hp_percent(self, base_state):
        state = base_state.copy_with(hp=15, max_hp=30)
        assert evaluate_condition(state, Condition(ConditionType.HP_PERCENT, value=50))
        assert not evaluate_condition(state, Condition(ConditionType.HP_PERCENT, value=51))

    def test_zero_max_hp_is_zero_ratio(self, base_state):
        """A zero max HP never divides by zero."""
        state = base_state.copy_with(hp=0, max_hp=0)
        assert evaluate_condition(state, Condition(ConditionType.HP_RATIO, value=0, compare=CompareOp.EQ))
        assert not evaluate_condition(state, Condition(ConditionType.HP_RATIO, value=0.1))


class TestCounters:
    """Tests for buff, trouble and rarity counters."""

    def test_buff_duration(self, base_state):
        """Buff condition compares the longest remaining duration."""
        state = base_state.copy_with(buffs=(
            Buff(id="b1", type=EffectType.BUFF_PERFECT_CONDITION, duration=2, name="Perfect Condition"),
        ))
        cond = Condition(ConditionType.BUFF, value=1, buff_type=EffectType.BUFF_PERFECT_CONDITION)
        assert evaluate_condition(state, cond)
        missing = Condition(ConditionType.BUFF, value=1, buff_type=EffectType.BUFF_DOUBLE_STRIKE)
        assert not evaluate_condition(state, missing)

    def test_indefinite_buff_counts_as_long(self, base_state):
        state = base_state.copy_with(buffs=(
            Buff(id="b1", type=EffectType.BUFF_SCORE_BONUS, duration=-1, name="Score Bonus"),
        ))
        cond = Condition(ConditionType.BUFF, value=50, buff_type=EffectType.BUFF_SCORE_BONUS)
        assert evaluate_condition(state, cond)

    def test_trouble_count_skips_excluded(self, base_state):
        """Trouble cards in excluded never count."""
        trouble = make_card("t", type=CardType.TROUBLE)
        state = base_state.copy_with(
            hand=(trouble,),
            deck=(make_card("t2", type=CardType.TROUBLE),),
            excluded=(make_card("t3", type=CardType.TROUBLE),),
        )
        assert evaluate_condition(state, Condition(ConditionType.TROUBLE_CARD_COUNT, value=2, compare=CompareOp.EQ))
        hand_only = Condition(ConditionType.TROUBLE_CARD_COUNT, value=1, compare=CompareOp.EQ, scope="hand")
        assert evaluate_condition(state, hand_only)

    def test_hand_rarity_count(self, base_state):
        state = base_state.copy_with(hand=(
            make_card("a", rarity="SSR"),
            make_card("b", rarity="SSR"),
            make_card("c", rarity="R"),
        ))
        cond = Condition(ConditionType.HAND_RARITY_COUNT, value=2, compare=CompareOp.EQ, target_rarity="SSR")
        assert evaluate_condition(state, cond)


class TestFailClosed:
    """Tests for condition lists and unknown types."""

    def test_empty_list_passes(self, base_state):
        assert check_conditions(base_state, [])
        assert check_conditions(base_state, None)

    def test_unknown_type_fails(self, base_state):
        """An unknown condition type evaluates to False."""
        cond = Condition(type="mystery_meter", value=0)
        assert not evaluate_condition(base_state, cond)
        assert not check_conditions(base_state, [Condition(ConditionType.GENKI, value=0), cond])

    def test_conjunction(self, base_state):
        state = base_state.copy_with(genki=5, motivation=1)
        conds = [Condition(ConditionType.GENKI, value=5), Condition(ConditionType.MOTIVATION, value=2)]
        assert not check_conditions(state, conds)


class TestCardUseMatching:
    """Tests for on-card-use trigger conditions."""

    def test_card_type_usage(self, base_state):
        cond = Condition(ConditionType.CARD_TYPE_USAGE, value=1, card_type="mental")
        assert matches_played_card(base_state, cond, CardType.MENTAL)
        assert not matches_played_card(base_state, cond, CardType.ACTIVE)

    def test_no_condition_always_matches(self, base_state):
        assert matches_played_card(base_state, None, CardType.ACTIVE)
