"""Card data schema - cards, drinks and the effect DSL."""

from .effect_dsl import (
    Effect,
    EffectType,
    Condition,
    ConditionType,
    CompareOp,
)
from .cards import (
    Card,
    CardType,
    CostType,
    UsageLimit,
    PDrink,
    CardDataError,
    load_cards,
    save_cards,
)
from .validation import validate_card, validate_cards, ValidationResult, SpecValidationError

__all__ = [
    "Effect",
    "EffectType",
    "Condition",
    "ConditionType",
    "CompareOp",
    "Card",
    "CardType",
    "CostType",
    "UsageLimit",
    "PDrink",
    "CardDataError",
    "load_cards",
    "save_cards",
    "validate_card",
    "validate_cards",
    "ValidationResult",
    "SpecValidationError",
]
