"""
Pytest fixtures for lessonsim tests.
"""

import random

import pytest

from ..engine_core.state import GameState, LessonAttribute
from ..spec_schema import Card, CardType, CostType, Effect, EffectType


def make_card(card_id: str, cost: int = 0, effects=(), **kwargs) -> Card:
    """Build a card with sensible defaults for tests."""
    kwargs.setdefault("name", card_id)
    return Card(id=card_id, cost=cost, effects=tuple(effects), **kwargs)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random generator."""
    return random.Random(42)


@pytest.fixture
def base_state() -> GameState:
    """Turn 1 state with 30/30 HP and nothing in any zone."""
    return GameState(hp=30, max_hp=30, current_turn_attribute=LessonAttribute.VOCAL)


@pytest.fixture
def genki_card() -> Card:
    return make_card("genki_card", cost=5, effects=[Effect(type=EffectType.BUFF_GENKI, value=10)])


@pytest.fixture
def score_card() -> Card:
    return make_card("score_card", cost=4, effects=[Effect(type=EffectType.SCORE_FIXED, value=10)])


@pytest.fixture
def hp_cost_card() -> Card:
    return make_card(
        "hp_card",
        cost=6,
        cost_type=CostType.HP,
        effects=[Effect(type=EffectType.SCORE_FIXED, value=20)],
    )


@pytest.fixture
def mental_card() -> Card:
    return make_card(
        "mental_card",
        type=CardType.MENTAL,
        effects=[Effect(type=EffectType.BUFF_IMPRESSION, value=3)],
    )


@pytest.fixture
def state_with_hand(base_state, genki_card, score_card, hp_cost_card, mental_card) -> GameState:
    """A state holding four playable cards and a small deck."""
    deck = tuple(make_card(f"filler_{i}", effects=[Effect(type=EffectType.SCORE_FIXED, value=1)]) for i in range(6))
    return base_state.copy_with(
        hand=(genki_card, score_card, hp_cost_card, mental_card),
        deck=deck,
    )
