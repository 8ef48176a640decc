"""
Card Validation - Schema checks for card rosters.

Validates that:
1. Required fields are present (id, name)
2. Numeric fields are in range (cost >= 0)
3. Card ids are unique within a roster
4. Effect trees are well-formed (gates have bodies, triggers have payloads)

Unknown effect or condition kinds are warnings, not errors: the engine
treats unknown effects as no-ops and unknown conditions as failing.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .cards import Card
from .effect_dsl import Condition, Effect, EffectType, kind_name


TRIGGER_KINDS = frozenset({
    EffectType.BUFF_TURN_START,
    EffectType.BUFF_ON_CARD_USE,
    EffectType.BUFF_REACTION_ON_COST,
})


class SpecValidationError(Exception):
    """Raised when card validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Card validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]

    def raise_if_invalid(self) -> None:
        if not self.valid:
            raise SpecValidationError(self.errors)


def validate_cards(cards: Iterable[Card], allow_copies: bool = False) -> ValidationResult:
    """
    Validate a roster of cards.

    With allow_copies (a deck), repeated ids are fine as long as every
    copy has the same definition; each definition is checked once.

    Returns ValidationResult with errors and warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []

    seen: dict[str, Card] = {}
    count = 0
    for card in cards:
        count += 1
        if card.id in seen:
            if not allow_copies:
                errors.append(f"Duplicate card id '{card.id}'")
            elif seen[card.id] != card:
                errors.append(f"Conflicting definitions for card id '{card.id}'")
            continue
        seen[card.id] = card

        result = validate_card(card)
        errors.extend(result.errors)
        warnings.extend(result.warnings)

    if count == 0:
        warnings.append("No cards defined")

    return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)


def validate_card(card: Card) -> ValidationResult:
    """Validate a single card definition."""
    errors: list[str] = []
    warnings: list[str] = []

    if not card.id:
        errors.append("Card has empty ID")
    if not card.name:
        errors.append(f"Card '{card.id}' has empty name")
    if card.cost < 0:
        errors.append(f"Card '{card.id}' has negative cost {card.cost}")

    for effect in card.effects:
        _check_effect(effect, f"Card '{card.id}'", errors, warnings)
    for cond in card.conditions:
        _check_condition(cond, f"Card '{card.id}'", warnings)

    if not card.effects and not card.is_trouble:
        warnings.append(f"Card '{card.id}' has no effects")

    return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)


def _check_effect(
    effect: Effect,
    where: str,
    errors: list[str],
    warnings: list[str],
) -> None:
    """Validate effect structure, recursing into nested effects."""
    if not isinstance(effect.type, EffectType):
        warnings.append(f"{where}: unknown effect type '{kind_name(effect.type)}' (ignored at runtime)")
        return

    if effect.type == EffectType.CONDITION_GATE and not effect.sub_effects:
        errors.append(f"{where}: condition_gate has no sub_effects")

    if effect.type in TRIGGER_KINDS and effect.triggered_effect is None:
        errors.append(f"{where}: {effect.type.value} has no triggered_effect")

    if effect.duration is not None and effect.duration < -1:
        errors.append(f"{where}: {effect.type.value} has invalid duration {effect.duration}")

    if effect.count is not None and effect.count < 0:
        errors.append(f"{where}: {effect.type.value} has negative count {effect.count}")

    for cond in effect.condition:
        _check_condition(cond, where, warnings)
    if effect.trigger_condition is not None:
        _check_condition(effect.trigger_condition, where, warnings)

    for sub in effect.sub_effects:
        _check_effect(sub, where, errors, warnings)
    if effect.triggered_effect is not None:
        _check_effect(effect.triggered_effect, where, errors, warnings)


def _check_condition(cond: Condition, where: str, warnings: list[str]) -> None:
    if not isinstance(cond.type, Enum):
        warnings.append(
            f"{where}: unknown condition type '{kind_name(cond.type)}' (always fails)"
        )
