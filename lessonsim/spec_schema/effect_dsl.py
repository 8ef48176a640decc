"""
Effect DSL - Structured card effects and conditions.

This module defines the small language the engine interprets:
- Effect: one tagged operation (score gain, resource change, buff grant, ...)
- Condition: a single threshold comparison against game state
- Nested effects: condition gates wrap sub-effects, trigger buffs carry
  the effect they fire later

Key design decisions:
- Kinds are closed enums; unknown kind strings are kept verbatim so newer
  card data still loads (the resolver treats them as no-ops)
- Everything is frozen; sequences are tuples
- The dict form uses the camelCase keys produced by the card authoring
  pipeline (subEffects, buffType, triggeredEffect, ...)
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class EffectType(Enum):
    """Kinds of effects understood by the resolver."""
    # Score gain
    SCORE_FIXED = "score_fixed"
    SCORE_SCALE_GENKI = "score_scale_genki"
    SCORE_SCALE_IMPRESSION = "score_scale_impression"
    SCORE_SCALE_MOTIVATION = "score_scale_motivation"

    # Resource pools
    BUFF_GENKI = "buff_genki"
    BUFF_IMPRESSION = "buff_impression"
    BUFF_MOTIVATION = "buff_motivation"
    BUFF_CONCENTRATION = "buff_concentration"
    BUFF_SHIELD = "buff_shield"

    # Persistent buffs and debuffs
    BUFF_PERFECT_CONDITION = "buff_perfect_condition"
    BUFF_DOUBLE_STRIKE = "buff_double_strike"
    BUFF_DOUBLE_COST = "buff_double_cost"
    BUFF_COST_REDUCTION = "buff_cost_reduction"
    BUFF_NO_GENKI_GAIN = "buff_no_genki_gain"
    BUFF_NO_DEBUFF = "buff_no_debuff"
    BUFF_SCORE_BONUS = "buff_score_bonus"
    BUFF_IMPRESSION_GAIN = "buff_impression_gain"
    BUFF_CARD_BASE_VALUE = "buff_card_base_value"
    DEBUFF_COST_INCREASE = "debuff_cost_increase"
    REDUCE_HP_COST = "reduce_hp_cost"

    # Reactive buffs
    BUFF_TURN_START = "buff_turn_start"
    BUFF_ON_CARD_USE = "buff_on_card_use"
    BUFF_REACTION_ON_COST = "buff_reaction_on_cost"

    # Direct pool manipulation
    HALF_GENKI = "half_genki"
    SET_GENKI = "set_genki"
    CONSUME_HP = "consume_hp"
    CONSUME_MOTIVATION = "consume_motivation"
    CONSUME_IMPRESSION = "consume_impression"
    MULTIPLY_IMPRESSION = "multiply_impression"

    # Cards
    DRAW_CARD = "draw_card"
    UPGRADE_HAND = "upgrade_hand"
    SWAP_HAND = "swap_hand"
    ADD_CARD_PLAY_COUNT = "add_card_play_count"
    TRIGGER_RANDOM_HAND_CARD = "trigger_random_hand_card"
    GENERATE_TROUBLE = "generate_trouble"

    # Turn structure
    ADD_TURN = "add_turn"
    END_LESSON = "end_lesson"

    # Composite
    CONDITION_GATE = "condition_gate"
    DELAYED_EFFECT = "delayed_effect"


class ConditionType(Enum):
    """Quantities a condition can compare."""
    GENKI = "genki"
    IMPRESSION = "impression"
    MOTIVATION = "motivation"
    CONCENTRATION = "concentration"
    HP = "hp"
    HP_RATIO = "hp_ratio"
    HP_PERCENT = "hp_percent"
    TURN = "turn"
    BUFF = "buff"
    TROUBLE_CARD_COUNT = "trouble_card_count"
    HAND_RARITY_COUNT = "hand_rarity_count"
    CARD_TYPE_USAGE = "card_type_usage"


class CompareOp(Enum):
    """Comparison operators for conditions."""
    GE = ">="
    LE = "<="
    EQ = "=="
    GT = ">"
    LT = "<"


def parse_kind(enum_cls: type[Enum], raw: Any) -> Any:
    """
    Convert a raw kind string to its enum member.

    Unknown strings are returned unchanged so the caller can decide
    whether to ignore them (effects) or fail them (conditions).
    """
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError:
        return raw


def kind_name(kind: Enum | str) -> str:
    """String form of a possibly-unknown kind."""
    return kind.value if isinstance(kind, Enum) else str(kind)


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(frozen=True)
class Condition:
    """
    A single scalar comparison against game state.

    Examples:
    - Condition(ConditionType.GENKI, value=10)  -> genki >= 10
    - Condition(ConditionType.BUFF, value=1, buff_type=EffectType.BUFF_PERFECT_CONDITION)
    """
    type: ConditionType | str
    value: float = 0
    compare: CompareOp = CompareOp.GE

    buff_type: EffectType | str | None = None  # type=buff
    card_type: str | None = None  # type=card_type_usage
    scope: str | None = None  # type=trouble_card_count: hand, deck, discard, all
    target_rarity: str | None = None  # type=hand_rarity_count

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Condition:
        compare_raw = _pick(data, "compare", default=">=")
        try:
            compare = CompareOp(compare_raw)
        except ValueError:
            raise ValueError(f"Unknown compare operator: {compare_raw!r}")

        buff_type = _pick(data, "buffType", "buff_type")
        return cls(
            type=parse_kind(ConditionType, data["type"]),
            value=_pick(data, "value", default=0),
            compare=compare,
            buff_type=parse_kind(EffectType, buff_type) if buff_type else None,
            card_type=_pick(data, "cardType", "card_type"),
            scope=_pick(data, "scope"),
            target_rarity=_pick(data, "targetRarity", "target_rarity"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": kind_name(self.type),
            "value": self.value,
            "compare": self.compare.value,
        }
        if self.buff_type is not None:
            data["buffType"] = kind_name(self.buff_type)
        if self.card_type is not None:
            data["cardType"] = self.card_type
        if self.scope is not None:
            data["scope"] = self.scope
        if self.target_rarity is not None:
            data["targetRarity"] = self.target_rarity
        return data


@dataclass(frozen=True)
class Effect:
    """
    A structured effect that the resolver can apply.

    Only the fields relevant to the effect's kind are set; the rest stay None.
    `condition` guards the effect itself, `sub_effects` are the body of a
    condition gate, and `triggered_effect` is what a reactive buff fires.
    """
    type: EffectType | str

    # Numeric parameters
    value: float | None = None  # flat amount
    ratio: float | None = None  # scaling factor against a resource
    multiplier: float | None = None  # concentration multiplier for score_fixed
    duration: int | None = None  # turns; -1 means for the rest of the lesson
    count: int | None = None  # use-based expiry

    # Composition
    condition: tuple[Condition, ...] = ()
    sub_effects: tuple[Effect, ...] = ()
    triggered_effect: Effect | None = None
    trigger_condition: Condition | None = None

    # Kind-specific parameters
    trouble_id: str | None = None  # generate_trouble
    target_rarity: str | None = None  # trigger_random_hand_card
    ignore_cost: bool = False  # trigger_random_hand_card
    param: str | None = None  # buff_card_base_value: genki, impression, motivation
    double_motivation: bool = False  # buff_genki applies motivation twice

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Effect:
        triggered = _pick(data, "triggeredEffect", "triggered_effect")
        trigger_condition = _pick(data, "triggerCondition", "trigger_condition")
        return cls(
            type=parse_kind(EffectType, data["type"]),
            value=_pick(data, "value"),
            ratio=_pick(data, "ratio"),
            multiplier=_pick(data, "multiplier"),
            duration=_pick(data, "duration"),
            count=_pick(data, "count"),
            condition=tuple(
                Condition.from_dict(c) for c in _pick(data, "condition", default=())
            ),
            sub_effects=tuple(
                Effect.from_dict(e) for e in _pick(data, "subEffects", "sub_effects", default=())
            ),
            triggered_effect=Effect.from_dict(triggered) if triggered else None,
            trigger_condition=(
                Condition.from_dict(trigger_condition) if trigger_condition else None
            ),
            trouble_id=_pick(data, "troubleId", "trouble_id"),
            target_rarity=_pick(data, "targetRarity", "target_rarity"),
            ignore_cost=bool(_pick(data, "ignoreCost", "ignore_cost", default=False)),
            param=_pick(data, "param"),
            double_motivation=bool(
                _pick(data, "doubleMotivation", "double_motivation", default=False)
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": kind_name(self.type)}
        for key, attr in (
            ("value", "value"),
            ("ratio", "ratio"),
            ("multiplier", "multiplier"),
            ("duration", "duration"),
            ("count", "count"),
            ("troubleId", "trouble_id"),
            ("targetRarity", "target_rarity"),
            ("param", "param"),
        ):
            val = getattr(self, attr)
            if val is not None:
                data[key] = val
        if self.condition:
            data["condition"] = [c.to_dict() for c in self.condition]
        if self.sub_effects:
            data["subEffects"] = [e.to_dict() for e in self.sub_effects]
        if self.triggered_effect is not None:
            data["triggeredEffect"] = self.triggered_effect.to_dict()
        if self.trigger_condition is not None:
            data["triggerCondition"] = self.trigger_condition.to_dict()
        if self.ignore_cost:
            data["ignoreCost"] = True
        if self.double_motivation:
            data["doubleMotivation"] = True
        return data


# ============================================================================
# Factory functions for common effect patterns
# ============================================================================

def score(value: int, multiplier: float | None = None) -> Effect:
    """Create a flat score gain."""
    return Effect(type=EffectType.SCORE_FIXED, value=value, multiplier=multiplier)


def gain(kind: EffectType, value: float) -> Effect:
    """Create a resource gain such as genki or good impression."""
    return Effect(type=kind, value=value)


def buff(
    kind: EffectType,
    duration: int | None = None,
    count: int | None = None,
    value: float | None = None,
) -> Effect:
    """Create a persistent buff grant."""
    return Effect(type=kind, duration=duration, count=count, value=value)


def condition(
    kind: ConditionType,
    value: float,
    compare: CompareOp = CompareOp.GE,
    **kwargs: Any,
) -> Condition:
    """Create a threshold condition."""
    return Condition(type=kind, value=value, compare=compare, **kwargs)


def condition_gate(
    conditions: list[Condition],
    sub_effects: list[Effect],
) -> Effect:
    """Create a gate that runs sub-effects only when all conditions hold."""
    return Effect(
        type=EffectType.CONDITION_GATE,
        condition=tuple(conditions),
        sub_effects=tuple(sub_effects),
    )


def trigger(
    kind: EffectType,
    triggered_effect: Effect,
    duration: int | None = -1,
    trigger_condition: Condition | None = None,
) -> Effect:
    """Create a reactive buff that fires `triggered_effect` later."""
    return Effect(
        type=kind,
        duration=duration,
        triggered_effect=triggered_effect,
        trigger_condition=trigger_condition,
    )
