"""
Effect Resolver - Interpreter for the card effect language.

This module applies structured effects to a GameState, including:
- Guard conditions on individual effects
- Debuff nullification by an active immunity buff
- Score formulas with condition, attribute and bonus multipliers
- Persistent buff grants and reactive trigger registration
- Nested effects (condition gates, randomly triggered hand cards)

Every function is pure: it takes a state and returns a new one together
with the log lines it produced. Unknown effect kinds resolve to the input
state with no logs.
"""

from __future__ import annotations
import logging
import math
import random
import uuid
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable

from ..config import LOGIC_CONSTANTS
from ..spec_schema.cards import Card, CardType
from ..spec_schema.effect_dsl import Effect, EffectType, kind_name
from .conditions import check_conditions
from .deck import draw_cards, remove_card
from .state import Buff, GameState

logger = logging.getLogger(__name__)


# Effect kinds intercepted by an active buff_no_debuff.
# buff_genki's own no-gain check is a separate, in-handler mechanism.
DEBUFF_KINDS = frozenset({
    EffectType.BUFF_NO_GENKI_GAIN,
    EffectType.BUFF_DOUBLE_COST,
    EffectType.DEBUFF_COST_INCREASE,
    EffectType.HALF_GENKI,
    EffectType.SET_GENKI,
})

# Effect kinds that append a Buff to the state
BUFF_KINDS = frozenset({
    EffectType.BUFF_PERFECT_CONDITION,
    EffectType.BUFF_DOUBLE_STRIKE,
    EffectType.BUFF_DOUBLE_COST,
    EffectType.BUFF_COST_REDUCTION,
    EffectType.BUFF_NO_GENKI_GAIN,
    EffectType.BUFF_NO_DEBUFF,
    EffectType.BUFF_SCORE_BONUS,
    EffectType.BUFF_IMPRESSION_GAIN,
    EffectType.BUFF_CARD_BASE_VALUE,
    EffectType.BUFF_TURN_START,
    EffectType.BUFF_ON_CARD_USE,
    EffectType.BUFF_REACTION_ON_COST,
    EffectType.DEBUFF_COST_INCREASE,
    EffectType.REDUCE_HP_COST,
})

# Re-granting these extends the existing buff instead of stacking
EXTENDABLE_KINDS = frozenset({EffectType.BUFF_NO_GENKI_GAIN})

BUFF_NAMES: dict[EffectType, str] = {
    EffectType.BUFF_PERFECT_CONDITION: "Perfect Condition",
    EffectType.BUFF_DOUBLE_STRIKE: "Double Strike",
    EffectType.BUFF_DOUBLE_COST: "Double Cost",
    EffectType.BUFF_COST_REDUCTION: "Cost Reduction",
    EffectType.BUFF_NO_GENKI_GAIN: "No Genki Gain",
    EffectType.BUFF_NO_DEBUFF: "Debuff Immunity",
    EffectType.BUFF_SCORE_BONUS: "Score Bonus",
    EffectType.BUFF_IMPRESSION_GAIN: "Impression Gain Up",
    EffectType.BUFF_CARD_BASE_VALUE: "Card Base Value Up",
    EffectType.BUFF_TURN_START: "Turn Start Trigger",
    EffectType.BUFF_ON_CARD_USE: "Card Use Trigger",
    EffectType.BUFF_REACTION_ON_COST: "HP Cost Reaction",
    EffectType.DEBUFF_COST_INCREASE: "Cost Increase",
    EffectType.REDUCE_HP_COST: "HP Cost Down",
}

# Resource effects adjusted by buff_card_base_value with a matching param
_BASE_VALUE_PARAMS: dict[EffectType, str] = {
    EffectType.BUFF_GENKI: "genki",
    EffectType.BUFF_IMPRESSION: "impression",
    EffectType.BUFF_MOTIVATION: "motivation",
}


@dataclass(frozen=True)
class ResolutionResult:
    """New state plus the log lines produced by one resolution."""
    state: GameState
    logs: tuple[str, ...] = ()


Handler = Callable[[GameState, Effect, Any], tuple[GameState, list[str]]]


def _rand(rng: random.Random | None) -> Any:
    return rng if rng is not None else random


def _value(effect: Effect, default: float = 0) -> float:
    return effect.value if effect.value is not None else default


# ============================================================================
# Multipliers
# ============================================================================

def _condition_multiplier(state: GameState) -> float:
    """Double strike wins over perfect condition; they never stack."""
    if state.has_buff(EffectType.BUFF_DOUBLE_STRIKE):
        return LOGIC_CONSTANTS.double_strike_score
    if state.has_buff(EffectType.BUFF_PERFECT_CONDITION):
        return LOGIC_CONSTANTS.perfect_condition_score
    return 1.0


def _attribute_bonus(state: GameState) -> float:
    return 1.0 + state.attribute_stat / 100.0


def _score_bonus(state: GameState) -> float:
    return 1.0 + state.sum_buff_values(EffectType.BUFF_SCORE_BONUS) / 100.0


def score_multiplier(state: GameState) -> float:
    """Combined multiplier applied to every score gain."""
    return _condition_multiplier(state) * _attribute_bonus(state) * _score_bonus(state)


def _adjusted_value(state: GameState, effect: Effect) -> int:
    base = _value(effect)
    param = _BASE_VALUE_PARAMS.get(effect.type)
    if param is not None:
        base += state.sum_buff_values(EffectType.BUFF_CARD_BASE_VALUE, param)
    return int(base)


# ============================================================================
# Score
# ============================================================================

def _score_fixed(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    focus_multiplier = effect.multiplier if effect.multiplier is not None else 1.0
    focus_bonus = math.floor(
        state.concentration * LOGIC_CONSTANTS.concentration_score_bonus_per_stack * focus_multiplier
    )
    amount = math.floor((_value(effect) + focus_bonus) * score_multiplier(state))
    return state.copy_with(score=state.score + amount), [f"Score +{amount}"]


def _scale_handler(resource: str, label: str) -> Handler:
    def handler(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
        ratio = effect.ratio if effect.ratio is not None else 1.0
        pool = getattr(state, resource)
        amount = math.floor(pool * ratio * score_multiplier(state))
        log = f"Score +{amount} ({round(ratio * 100)}% of {label} {pool})"
        return state.copy_with(score=state.score + amount), [log]
    return handler


# ============================================================================
# Resource pools
# ============================================================================

def _buff_genki(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    if state.has_buff(EffectType.BUFF_NO_GENKI_GAIN):
        return state, ["Genki gain blocked (no genki gain)"]

    flat = _adjusted_value(state, effect)
    motivation_mult = 2 if effect.double_motivation else 1
    bonus = state.motivation * LOGIC_CONSTANTS.motivation_genki_bonus_per_stack * motivation_mult
    log = f"Genki +{flat}"
    if bonus > 0:
        log += f" (motivation bonus +{bonus}{' x2' if motivation_mult > 1 else ''})"
    return state.copy_with(genki=state.genki + flat + bonus), [log]


def _buff_impression(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    gain_mult = 1.0 + state.sum_buff_values(EffectType.BUFF_IMPRESSION_GAIN) / 100.0
    amount = math.floor(_adjusted_value(state, effect) * gain_mult)
    log = f"Good Impression +{amount}"
    if gain_mult > 1:
        log += f" (gain +{round((gain_mult - 1) * 100)}%)"
    return state.copy_with(good_impression=state.good_impression + amount), [log]


def _buff_motivation(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    amount = _adjusted_value(state, effect)
    return state.copy_with(motivation=state.motivation + amount), [f"Motivation +{amount}"]


def _buff_concentration(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    amount = int(_value(effect))
    return state.copy_with(concentration=state.concentration + amount), [f"Concentration +{amount}"]


def _buff_shield(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    amount = int(_value(effect))
    return state.copy_with(shield=state.shield + amount), [f"Shield +{amount}"]


def _half_genki(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    new_genki = math.floor(state.genki * 0.5)
    return state.copy_with(genki=new_genki), [f"Genki halved ({state.genki} -> {new_genki})"]


def _set_genki(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    new_genki = max(0, int(_value(effect)))
    return state.copy_with(genki=new_genki), [f"Genki set to {new_genki}"]


def _consume_handler(field_name: str, label: str) -> Handler:
    def handler(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
        amount = int(_value(effect))
        new_value = max(0, getattr(state, field_name) - amount)
        return state.copy_with(**{field_name: new_value}), [f"{label} -{amount}"]
    return handler


def _multiply_impression(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    mult = _value(effect, 1.0)
    new_value = math.floor(state.good_impression * mult)
    log = f"Good Impression x{mult} ({state.good_impression} -> {new_value})"
    return state.copy_with(good_impression=new_value), [log]


# ============================================================================
# Cards
# ============================================================================

def _draw_card(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    requested = int(_value(effect, 1))
    capacity = max(0, LOGIC_CONSTANTS.hand_limit - len(state.hand))
    count = min(requested, capacity)
    if count <= 0:
        return state, ["Hand is full, no card drawn"]

    result = draw_cards(state.deck, state.discard, count, state.hand, rng)
    new_state = state.copy_with(
        deck=result.deck,
        discard=result.discard,
        hand=state.hand + result.hand,
    )
    return new_state, [f"Drew {len(result.hand)} card(s)"]


def _swap_hand(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    size = len(state.hand)
    result = draw_cards(state.deck, state.discard + state.hand, size, (), rng)
    new_state = state.copy_with(deck=result.deck, discard=result.discard, hand=result.hand)
    return new_state, ["Swapped the entire hand"]


def _upgrade_hand(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    # A card keeps its base form when its unique upgrade is already in hand
    held_ids = {c.id for c in state.hand}
    hand: list[Card] = []
    for card in state.hand:
        better = None if card.id.endswith("+") else state.catalog.get(card.id + "+")
        if better is None or (better.unique and better.id in held_ids):
            hand.append(card)
            continue
        hand.append(better)
        held_ids.add(better.id)

    return state.copy_with(hand=tuple(hand)), ["Upgraded every card in hand"]


def _add_card_play_count(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    amount = int(_value(effect))
    new_state = state.copy_with(cards_played=max(0, state.cards_played - amount))
    return new_state, [f"Extra card play +{amount}"]


def _trigger_random_hand_card(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    candidates = [
        c for c in state.hand
        if not effect.target_rarity or c.rarity == effect.target_rarity
    ]
    count = min(effect.count or 1, len(candidates))
    if count == 0:
        return state, ["No matching card in hand to trigger"]

    chosen = _rand(rng).sample(candidates, count)
    logs = [f"Triggered from hand: {', '.join(c.name for c in chosen)}"]

    new_state = state
    for card in chosen:
        new_state = new_state.copy_with(
            hand=remove_card(new_state.hand, card),
            discard=new_state.discard + (card,),
        )
        result = resolve_effects(new_state, card.effects, rng)
        new_state = result.state
        logs.extend(result.logs)
    return new_state, logs


def _generate_trouble(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    trouble_id = effect.trouble_id
    if not trouble_id:
        logger.debug("generate_trouble without trouble_id ignored")
        return state, []

    card = state.catalog.get(trouble_id)
    if card is None:
        card = Card(
            id=f"{trouble_id}_{uuid.uuid4().hex[:8]}",
            name=trouble_id,
            type=CardType.TROUBLE,
            plan="trouble",
            cost=0,
        )

    position = _rand(rng).randint(0, len(state.deck))
    new_deck = state.deck[:position] + (card,) + state.deck[position:]
    return state.copy_with(deck=new_deck), [f"Trouble card {card.name} shuffled into the deck"]


# ============================================================================
# Turn structure and composites
# ============================================================================

def _add_turn(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    amount = int(_value(effect))
    new_max = state.max_turns + amount
    return state.copy_with(max_turns=new_max), [f"Turns +{amount} ({new_max} total)"]


def _end_lesson(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    return state.copy_with(max_turns=state.turn), ["Lesson ends this turn"]


def _condition_gate(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    # The gate's own condition was checked before dispatch
    result = resolve_effects(state, effect.sub_effects, rng)
    return result.state, list(result.logs)


def _delayed_effect(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    # Scheduling across turns is not modelled; the kind is accepted and ignored
    logger.debug("delayed_effect is not scheduled; ignored")
    return state, []


# ============================================================================
# Buff grants
# ============================================================================

def _grant_buff(state: GameState, effect: Effect, rng: Any) -> tuple[GameState, list[str]]:
    kind = effect.type
    name = BUFF_NAMES.get(kind, kind_name(kind))

    if kind in EXTENDABLE_KINDS:
        for i, existing in enumerate(state.buffs):
            if existing.type != kind:
                continue
            extra = effect.duration if effect.duration is not None else LOGIC_CONSTANTS.default_buff_duration
            if existing.indefinite or extra < 0:
                new_duration = LOGIC_CONSTANTS.indefinite_duration
            else:
                new_duration = existing.duration + extra
            extended = replace(existing, duration=new_duration)
            buffs = state.buffs[:i] + (extended,) + state.buffs[i + 1:]
            return state.copy_with(buffs=buffs), [f"{name} extended (+{extra} turns)"]

    if effect.duration is not None:
        duration = effect.duration
    elif effect.count is not None:
        duration = LOGIC_CONSTANTS.indefinite_duration
    else:
        duration = LOGIC_CONSTANTS.default_buff_duration

    buff = Buff(
        id=f"buff_{uuid.uuid4().hex[:8]}",
        type=kind,
        duration=duration,
        name=name,
        count=effect.count,
        value=effect.value,
        ratio=effect.ratio,
        is_new=True,
        triggered_effect=effect.triggered_effect,
        trigger_condition=effect.trigger_condition,
        param=effect.param,
        double_motivation=effect.double_motivation,
    )

    if effect.count is not None:
        label = f"({effect.count}回)"
    elif duration == LOGIC_CONSTANTS.indefinite_duration:
        label = "(rest of lesson)"
    else:
        label = f"({duration}ターン)"
    return state.copy_with(buffs=state.buffs + (buff,)), [f"{name} {label}"]


def _nullify_debuff(state: GameState, effect: Effect) -> ResolutionResult | None:
    """
    Absorb a debuff with an active buff_no_debuff.

    Count-based immunity is spent first, then turn-based immunity (one
    turn per absorbed debuff). An indefinite immunity without a count
    absorbs without being consumed. Returns None when nothing absorbs.
    """
    immunities = [
        (i, b) for i, b in enumerate(state.buffs)
        if b.type == EffectType.BUFF_NO_DEBUFF
    ]
    if not immunities:
        return None

    log = f"Debuff {kind_name(effect.type)} nullified"
    buffs = list(state.buffs)

    for i, b in immunities:
        if b.count is not None and b.count > 0:
            if b.count == 1:
                del buffs[i]
            else:
                buffs[i] = replace(b, count=b.count - 1)
            return ResolutionResult(state.copy_with(buffs=tuple(buffs)), (log,))

    for i, b in immunities:
        if b.count is None and b.duration > 0:
            if b.duration == 1:
                del buffs[i]
            else:
                buffs[i] = replace(b, duration=b.duration - 1)
            return ResolutionResult(state.copy_with(buffs=tuple(buffs)), (log,))

    for _, b in immunities:
        if b.count is None and b.indefinite:
            return ResolutionResult(state, (log,))

    return None


# ============================================================================
# Dispatch
# ============================================================================

EFFECT_HANDLERS: dict[EffectType, Handler] = {
    EffectType.SCORE_FIXED: _score_fixed,
    EffectType.SCORE_SCALE_GENKI: _scale_handler("genki", "genki"),
    EffectType.SCORE_SCALE_IMPRESSION: _scale_handler("good_impression", "good impression"),
    EffectType.SCORE_SCALE_MOTIVATION: _scale_handler("motivation", "motivation"),
    EffectType.BUFF_GENKI: _buff_genki,
    EffectType.BUFF_IMPRESSION: _buff_impression,
    EffectType.BUFF_MOTIVATION: _buff_motivation,
    EffectType.BUFF_CONCENTRATION: _buff_concentration,
    EffectType.BUFF_SHIELD: _buff_shield,
    EffectType.HALF_GENKI: _half_genki,
    EffectType.SET_GENKI: _set_genki,
    EffectType.CONSUME_HP: _consume_handler("hp", "HP"),
    EffectType.CONSUME_MOTIVATION: _consume_handler("motivation", "Motivation"),
    EffectType.CONSUME_IMPRESSION: _consume_handler("good_impression", "Good Impression"),
    EffectType.MULTIPLY_IMPRESSION: _multiply_impression,
    EffectType.DRAW_CARD: _draw_card,
    EffectType.SWAP_HAND: _swap_hand,
    EffectType.UPGRADE_HAND: _upgrade_hand,
    EffectType.ADD_CARD_PLAY_COUNT: _add_card_play_count,
    EffectType.TRIGGER_RANDOM_HAND_CARD: _trigger_random_hand_card,
    EffectType.GENERATE_TROUBLE: _generate_trouble,
    EffectType.ADD_TURN: _add_turn,
    EffectType.END_LESSON: _end_lesson,
    EffectType.CONDITION_GATE: _condition_gate,
    EffectType.DELAYED_EFFECT: _delayed_effect,
    **{kind: _grant_buff for kind in BUFF_KINDS},
}


def resolve_effect(
    state: GameState,
    effect: Effect,
    rng: random.Random | None = None,
) -> ResolutionResult:
    """
    Apply a single effect.

    1. A failing guard condition makes the effect a silent no-op.
    2. Debuff kinds are absorbed by an active debuff immunity.
    3. Otherwise the kind's handler runs; unknown kinds change nothing.
    """
    if effect.condition and not check_conditions(state, effect.condition):
        return ResolutionResult(state)

    if effect.type in DEBUFF_KINDS:
        nullified = _nullify_debuff(state, effect)
        if nullified is not None:
            return nullified

    handler = EFFECT_HANDLERS.get(effect.type)
    if handler is None:
        logger.debug("No handler for effect type %r; ignored", kind_name(effect.type))
        return ResolutionResult(state)

    new_state, logs = handler(state, effect, rng)
    return ResolutionResult(new_state, tuple(logs))


def resolve_effects(
    state: GameState,
    effects: Iterable[Effect],
    rng: random.Random | None = None,
) -> ResolutionResult:
    """Fold resolve_effect over effects, each seeing the previous result."""
    logs: list[str] = []
    for effect in effects:
        result = resolve_effect(state, effect, rng)
        state = result.state
        logs.extend(result.logs)
    return ResolutionResult(state, tuple(logs))


def apply_card_effects(
    state: GameState,
    effects: Iterable[Effect],
    rng: random.Random | None = None,
) -> GameState:
    """Resolve effects in order and append their combined log batch once."""
    result = resolve_effects(state, effects, rng)
    return result.state.with_logs(*result.logs)
