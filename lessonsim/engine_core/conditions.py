"""
Condition evaluation against a GameState.

A condition list is a conjunction; an empty list always passes. Unknown
condition types fail closed: the whole list evaluates to False.
"""

from __future__ import annotations
import logging
import operator
from typing import Callable, Iterable

from ..config import LOGIC_CONSTANTS
from ..spec_schema.cards import CardType
from ..spec_schema.effect_dsl import CompareOp, Condition, ConditionType, kind_name
from .state import GameState

logger = logging.getLogger(__name__)


_COMPARATORS: dict[CompareOp, Callable[[float, float], bool]] = {
    CompareOp.GE: operator.ge,
    CompareOp.LE: operator.le,
    CompareOp.EQ: operator.eq,
    CompareOp.GT: operator.gt,
    CompareOp.LT: operator.lt,
}


def _hp_ratio(state: GameState) -> float:
    return state.hp / state.max_hp if state.max_hp > 0 else 0.0


def _buff_duration(state: GameState, condition: Condition) -> float:
    durations = [
        LOGIC_CONSTANTS.indefinite_sentinel if b.indefinite else b.duration
        for b in state.buffs
        if b.type == condition.buff_type
    ]
    return max(durations, default=0)


def _trouble_count(state: GameState, condition: Condition) -> float:
    # Excluded cards never count
    scope = condition.scope
    if scope is None or scope == "all":
        zones = (state.hand, state.deck, state.discard)
    elif scope in ("hand", "deck", "discard"):
        zones = (getattr(state, scope),)
    else:
        return 0
    return sum(1 for zone in zones for c in zone if c.type == CardType.TROUBLE)


def _hand_rarity_count(state: GameState, condition: Condition) -> float:
    rarity = condition.target_rarity
    return sum(1 for c in state.hand if not rarity or c.rarity == rarity)


_GETTERS: dict[ConditionType, Callable[[GameState, Condition], float]] = {
    ConditionType.GENKI: lambda s, c: s.genki,
    ConditionType.IMPRESSION: lambda s, c: s.good_impression,
    ConditionType.MOTIVATION: lambda s, c: s.motivation,
    ConditionType.CONCENTRATION: lambda s, c: s.concentration,
    ConditionType.HP: lambda s, c: s.hp,
    ConditionType.HP_RATIO: lambda s, c: _hp_ratio(s),
    ConditionType.HP_PERCENT: lambda s, c: _hp_ratio(s) * 100,
    ConditionType.TURN: lambda s, c: s.turn,
    ConditionType.BUFF: _buff_duration,
    ConditionType.TROUBLE_CARD_COUNT: _trouble_count,
    ConditionType.HAND_RARITY_COUNT: _hand_rarity_count,
    # Only meaningful against a played card; see matches_played_card
    ConditionType.CARD_TYPE_USAGE: lambda s, c: 0,
}


def evaluate_condition(state: GameState, condition: Condition) -> bool:
    """Evaluate a single condition. Unknown types return False."""
    getter = _GETTERS.get(condition.type)
    if getter is None:
        logger.debug("Unknown condition type %r fails closed", kind_name(condition.type))
        return False

    target = getter(state, condition)
    compare = _COMPARATORS.get(condition.compare, operator.ge)
    return compare(target, condition.value)


def check_conditions(state: GameState, conditions: Iterable[Condition] | None) -> bool:
    """True when every condition holds (vacuously true for none)."""
    if not conditions:
        return True
    return all(evaluate_condition(state, c) for c in conditions)


def matches_played_card(
    state: GameState,
    condition: Condition | None,
    card_type: CardType,
) -> bool:
    """
    Check an on-card-use trigger condition against the card just played.

    card_type_usage compares the played card's type; any other condition
    is evaluated against the state. No condition always matches.
    """
    if condition is None:
        return True
    if condition.type == ConditionType.CARD_TYPE_USAGE:
        return condition.card_type is None or condition.card_type == card_type.value
    return evaluate_condition(state, condition)
