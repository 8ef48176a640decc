"""
Pattern tables for card description text.

Each rule pairs an anchored regular expression with a builder that turns
the match into DSL objects. Text is NFKC-normalized before matching, so
full-width digits, plus signs, percent signs and parentheses appear in
their ASCII forms here.

Tables are ordered; the first matching rule wins.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Callable

from ..spec_schema.effect_dsl import (
    CompareOp,
    Condition,
    ConditionType,
    Effect,
    EffectType,
)


@dataclass(frozen=True)
class EffectRule:
    """A clause that compiles to one or more effects."""
    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], list[Effect]]


@dataclass(frozen=True)
class GateRule:
    """A clause that compiles to a condition guarding the next effect."""
    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], Condition]


@dataclass(frozen=True)
class TriggerRule:
    """
    A fragment registering a reactive buff.

    The `body` group holds the text of the triggered effect, which is
    compiled recursively.
    """
    name: str
    pattern: re.Pattern[str]
    kind: EffectType
    trigger_condition: Callable[[re.Match[str]], Condition | None] = lambda m: None


RESOURCE_NAMES: dict[str, ConditionType] = {
    "元気": ConditionType.GENKI,
    "好印象": ConditionType.IMPRESSION,
    "やる気": ConditionType.MOTIVATION,
    "体力": ConditionType.HP,
    "集中": ConditionType.CONCENTRATION,
}

SCALE_KINDS: dict[str, EffectType] = {
    "元気": EffectType.SCORE_SCALE_GENKI,
    "好印象": EffectType.SCORE_SCALE_IMPRESSION,
    "やる気": EffectType.SCORE_SCALE_MOTIVATION,
}

BASE_VALUE_PARAMS: dict[str, str] = {
    "元気": "genki",
    "好印象": "impression",
    "やる気": "motivation",
}

CARD_TYPE_NAMES: dict[str, str] = {
    "メンタル": "mental",
    "アクティブ": "active",
}

# "パラメータ" and "パラメーター" are both used
_PARAM = r"パラメータ(?:ー)?"


def _int(m: re.Match[str], group: int | str = 1) -> int:
    return int(m.group(group))


def _one(effect: Effect) -> list[Effect]:
    return [effect]


def _score(m: re.Match[str]) -> list[Effect]:
    multiplier = float(m.group("mult")) if m.group("mult") else None
    times = int(m.group("times")) if m.group("times") else 1
    return [Effect(type=EffectType.SCORE_FIXED, value=_int(m), multiplier=multiplier)] * times


def _optional_turns(m: re.Match[str]) -> int | None:
    return int(m.group("turns")) if m.group("turns") else None


# ============================================================================
# Flags and card-level clauses
# ============================================================================

FLAG_UNIQUE = re.compile(r"重複不可")
FLAG_ONCE_PER_LESSON = re.compile(r"レッスン中1回")
FLAG_START_IN_HAND = re.compile(r"レッスン開始時手札に入る")

USAGE_CONDITION = re.compile(r"(元気|好印象|やる気|体力|集中)が(\d+)以上の場合、?使用可")
PENDING_DURATION = re.compile(r"以降の?(\d+)ターンの間")
HP_COST = re.compile(r"^体力消費(\d+)$")

FRAGMENT_SPLIT = re.compile(r"[,/]")
CLAUSE_SPLIT = re.compile(r"、")

DOUBLE_MOTIVATION = re.compile(r"\(?やる気効果を2倍適用\)?")


# ============================================================================
# Gate conditions
# ============================================================================

GATE_RULES: list[GateRule] = [
    GateRule(
        "resource_at_least",
        re.compile(r"^(元気|好印象|やる気|体力|集中)が(\d+)以上の場合$"),
        lambda m: Condition(type=RESOURCE_NAMES[m.group(1)], value=_int(m, 2), compare=CompareOp.GE),
    ),
    GateRule(
        "hp_percent_at_least",
        re.compile(r"^体力が(\d+)%以上の場合$"),
        lambda m: Condition(type=ConditionType.HP_PERCENT, value=_int(m), compare=CompareOp.GE),
    ),
    GateRule(
        "trouble_count",
        re.compile(r"^除外以外にあるTトラブルカードが(\d+)枚以上の場合$"),
        lambda m: Condition(type=ConditionType.TROUBLE_CARD_COUNT, value=_int(m), compare=CompareOp.GE),
    ),
    GateRule(
        "hand_rarity_count",
        re.compile(r"^手札にあるスキルカード\((SSR|SR|R|N)\)が(\d+)枚以上の場合$"),
        lambda m: Condition(
            type=ConditionType.HAND_RARITY_COUNT,
            value=_int(m, 2),
            compare=CompareOp.GE,
            target_rarity=m.group(1),
        ),
    ),
    GateRule(
        "condition_buff",
        re.compile(r"^(好調|絶好調)状態の場合$"),
        lambda m: Condition(
            type=ConditionType.BUFF,
            value=1,
            compare=CompareOp.GE,
            buff_type=(
                EffectType.BUFF_DOUBLE_STRIKE if m.group(1) == "絶好調"
                else EffectType.BUFF_PERFECT_CONDITION
            ),
        ),
    ),
]


# ============================================================================
# Simple effects
# ============================================================================

EFFECT_RULES: list[EffectRule] = [
    # Score
    EffectRule(
        "score_fixed",
        re.compile(
            rf"^{_PARAM}\+(\d+)(?:\(集中効果を(?P<mult>[\d.]+)倍適用\))?(?:\((?P<times>\d+)回\))?$"
        ),
        _score,
    ),
    EffectRule(
        "score_scale",
        re.compile(rf"^(元気|好印象|やる気)の(\d+)%分{_PARAM}上昇$"),
        lambda m: _one(Effect(type=SCALE_KINDS[m.group(1)], ratio=_int(m, 2) / 100)),
    ),

    # Resource pools
    EffectRule(
        "genki",
        re.compile(r"^元気\+(\d+)$"),
        lambda m: _one(Effect(type=EffectType.BUFF_GENKI, value=_int(m))),
    ),
    EffectRule(
        "impression",
        re.compile(r"^好印象\+(\d+)$"),
        lambda m: _one(Effect(type=EffectType.BUFF_IMPRESSION, value=_int(m))),
    ),
    EffectRule(
        "motivation",
        re.compile(r"^やる気\+(\d+)$"),
        lambda m: _one(Effect(type=EffectType.BUFF_MOTIVATION, value=_int(m))),
    ),
    EffectRule(
        "concentration",
        re.compile(r"^集中\+(\d+)$"),
        lambda m: _one(Effect(type=EffectType.BUFF_CONCENTRATION, value=_int(m))),
    ),
    EffectRule(
        "multiply_impression",
        re.compile(r"^好印象(\d+(?:\.\d+)?)倍$"),
        lambda m: _one(Effect(type=EffectType.MULTIPLY_IMPRESSION, value=float(m.group(1)))),
    ),
    EffectRule(
        "half_genki",
        re.compile(r"^元気を半分にする$"),
        lambda m: _one(Effect(type=EffectType.HALF_GENKI)),
    ),
    EffectRule(
        "set_genki",
        re.compile(r"^元気を(\d+)にする$"),
        lambda m: _one(Effect(type=EffectType.SET_GENKI, value=_int(m))),
    ),
    EffectRule(
        "consume",
        re.compile(r"^(体力|やる気|好印象)消費(\d+)$"),
        lambda m: _one(Effect(
            type={
                "体力": EffectType.CONSUME_HP,
                "やる気": EffectType.CONSUME_MOTIVATION,
                "好印象": EffectType.CONSUME_IMPRESSION,
            }[m.group(1)],
            value=_int(m, 2),
        )),
    ),

    # Condition buffs
    EffectRule(
        "perfect_condition",
        re.compile(r"^好調(\d+)ターン$"),
        lambda m: _one(Effect(type=EffectType.BUFF_PERFECT_CONDITION, duration=_int(m))),
    ),
    EffectRule(
        "double_strike",
        re.compile(r"^絶好調(\d+)ターン$"),
        lambda m: _one(Effect(type=EffectType.BUFF_DOUBLE_STRIKE, duration=_int(m))),
    ),

    # Cost modifiers
    EffectRule(
        "cost_reduction",
        re.compile(r"^消費体力減少(\d+)ターン$"),
        lambda m: _one(Effect(type=EffectType.BUFF_COST_REDUCTION, duration=_int(m))),
    ),
    EffectRule(
        "double_cost",
        re.compile(r"^消費体力増加(\d+)ターン$"),
        lambda m: _one(Effect(type=EffectType.BUFF_DOUBLE_COST, duration=_int(m))),
    ),
    EffectRule(
        "reduce_hp_cost",
        re.compile(r"^消費体力削減(\d+)$"),
        lambda m: _one(Effect(type=EffectType.REDUCE_HP_COST, value=_int(m), duration=1)),
    ),
    EffectRule(
        "cost_increase",
        re.compile(r"^消費体力追加\+?(\d+)(?:\((?P<turns>\d+)ターン\))?$"),
        lambda m: _one(Effect(
            type=EffectType.DEBUFF_COST_INCREASE,
            value=_int(m),
            duration=_optional_turns(m),
        )),
    ),
    EffectRule(
        "no_genki_gain",
        re.compile(r"^元気増加無効(\d+)ターン$"),
        lambda m: _one(Effect(type=EffectType.BUFF_NO_GENKI_GAIN, duration=_int(m))),
    ),
    EffectRule(
        "no_debuff",
        re.compile(r"^低下状態無効(?:\((\d+)回\))?$"),
        lambda m: _one(Effect(
            type=EffectType.BUFF_NO_DEBUFF,
            count=int(m.group(1)) if m.group(1) else 1,
            duration=-1,
        )),
    ),

    # Bonus buffs
    EffectRule(
        "score_bonus",
        re.compile(rf"^{_PARAM}上昇量増加\+?(\d+)%(?:\((?P<turns>\d+)ターン\))?$"),
        lambda m: _one(Effect(
            type=EffectType.BUFF_SCORE_BONUS,
            value=_int(m),
            duration=_optional_turns(m) or -1,
        )),
    ),
    EffectRule(
        "impression_gain",
        re.compile(r"^好印象(?:増加量増加|強化)\+?(\d+)%(?:\((?P<turns>\d+)ターン\))?$"),
        lambda m: _one(Effect(
            type=EffectType.BUFF_IMPRESSION_GAIN,
            value=_int(m),
            duration=_optional_turns(m),
        )),
    ),
    EffectRule(
        "card_base_value",
        re.compile(r"^(?:すべての|所有)スキルカードの(元気|好印象|やる気)(?:値|值)?増加\+(\d+)$"),
        lambda m: _one(Effect(
            type=EffectType.BUFF_CARD_BASE_VALUE,
            param=BASE_VALUE_PARAMS[m.group(1)],
            value=_int(m, 2),
            duration=-1,
        )),
    ),

    # Cards
    EffectRule(
        "add_card_play_count",
        re.compile(r"^スキルカード使用数追加\+(\d+)$"),
        lambda m: _one(Effect(type=EffectType.ADD_CARD_PLAY_COUNT, value=_int(m))),
    ),
    EffectRule(
        "draw_card",
        re.compile(r"^スキルカードを(?:(\d+)枚)?引く$"),
        lambda m: _one(Effect(type=EffectType.DRAW_CARD, value=int(m.group(1)) if m.group(1) else 1)),
    ),
    EffectRule(
        "swap_hand",
        re.compile(r"^手札をすべて入れ替える$"),
        lambda m: _one(Effect(type=EffectType.SWAP_HAND)),
    ),
    EffectRule(
        "upgrade_hand",
        re.compile(r"^手札をすべてレッスン中強化$"),
        lambda m: _one(Effect(type=EffectType.UPGRADE_HAND)),
    ),
    EffectRule(
        "trigger_random_hand_card",
        re.compile(r"^ランダムな手札にあるスキルカード\(([A-Za-z]+)\)(\d+)枚をコストを消費せず使用$"),
        lambda m: _one(Effect(
            type=EffectType.TRIGGER_RANDOM_HAND_CARD,
            target_rarity=m.group(1),
            count=_int(m, 2),
            ignore_cost=True,
        )),
    ),
    EffectRule(
        "generate_trouble",
        re.compile(r"^(.+)を山札のランダムな位置に生成$"),
        lambda m: _one(Effect(type=EffectType.GENERATE_TROUBLE, trouble_id=f"trouble_{m.group(1)}")),
    ),

    # Turn structure
    EffectRule(
        "add_turn",
        re.compile(r"^ターン追加\+(\d+)$"),
        lambda m: _one(Effect(type=EffectType.ADD_TURN, value=_int(m))),
    ),
    EffectRule(
        "end_lesson",
        re.compile(r"^レッスン(?:を)?終了(?:する)?$"),
        lambda m: _one(Effect(type=EffectType.END_LESSON)),
    ),
]


# ============================================================================
# Reactive triggers
# ============================================================================

TRIGGER_RULES: list[TriggerRule] = [
    TriggerRule(
        "on_card_use",
        re.compile(r"^以降、(?P<card_type>メンタル|アクティブ)?スキルカード使用時、(?P<body>.+)$"),
        EffectType.BUFF_ON_CARD_USE,
        lambda m: (
            Condition(
                type=ConditionType.CARD_TYPE_USAGE,
                value=1,
                card_type=CARD_TYPE_NAMES[m.group("card_type")],
            )
            if m.group("card_type") else None
        ),
    ),
    TriggerRule(
        "reaction_on_cost",
        re.compile(r"^(?:以降、)?スキルカードコストで体力減少時、(?P<body>.+)$"),
        EffectType.BUFF_REACTION_ON_COST,
    ),
    TriggerRule(
        "turn_start",
        re.compile(r"^(?:以降、)?ターン開始時、(?P<body>.+)$"),
        EffectType.BUFF_TURN_START,
    ),
    # Turn-end effects fire at the start of the following turn
    TriggerRule(
        "turn_end",
        re.compile(r"^(?:以降、)?ターン終了時、(?P<body>.+)$"),
        EffectType.BUFF_TURN_START,
    ),
]
