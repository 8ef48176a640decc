"""
Engine - Turn and card-play state machine.

Transitions:
- initialize_game: build the opening state (start-in-hand cards, shuffle, draw)
- play_card_core: pay a card's cost, resolve its effects, relocate it
- end_turn_core: recover, refill the hand, score impression, tick buffs
- use_drink_core: consume a P-drink once

Illegal actions are not errors. A rejected transition returns the input
state unchanged and logs the reason at DEBUG level.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import replace
from typing import Any, Iterable, Mapping, Sequence

from ..config import LOGIC_CONSTANTS
from ..spec_schema.cards import Card, CostType, PDrink
from ..spec_schema.effect_dsl import Effect, EffectType, kind_name
from .conditions import check_conditions, matches_played_card
from .deck import draw_cards, remove_card, shuffle
from .effect_resolver import apply_card_effects
from .state import (
    Buff,
    GameState,
    InitialStatus,
    LessonAttribute,
    PDrinkState,
    TurnPhase,
)

logger = logging.getLogger(__name__)


def _to_attribute(value: LessonAttribute | str) -> LessonAttribute:
    return value if isinstance(value, LessonAttribute) else LessonAttribute(value)


def attribute_for_turn(
    turn_attributes: Sequence[LessonAttribute | str] | None,
    turn: int,
) -> LessonAttribute:
    """Attribute of a 1-based turn; turns past the schedule reuse its last entry."""
    if not turn_attributes:
        return LessonAttribute.VOCAL
    index = min(max(turn, 1) - 1, len(turn_attributes) - 1)
    return _to_attribute(turn_attributes[index])


# ============================================================================
# Initialization
# ============================================================================

def initialize_game(
    status: InitialStatus | Mapping[str, Any] | None,
    turn_attributes: Sequence[LessonAttribute | str] | None,
    deck: Iterable[Card],
    drinks: Iterable[PDrink] | None = None,
    *,
    max_turns: int = LOGIC_CONSTANTS.max_turns,
    catalog: Mapping[str, Card] | None = None,
    rng: random.Random | None = None,
) -> GameState:
    """
    Create the opening state of a lesson.

    Cards flagged start_in_hand go straight to the hand; the rest are
    shuffled into the deck and the hand is filled up to the base draw.
    Extra start_in_hand copies of a unique card go to the discard pile.
    """
    if not isinstance(status, InitialStatus):
        status = InitialStatus.from_mapping(status)

    cards = list(deck)
    start_hand: list[Card] = []
    blocked: list[Card] = []
    for card in cards:
        if not card.start_in_hand:
            continue
        if card.unique and any(c.id == card.id for c in start_hand):
            blocked.append(card)
        else:
            start_hand.append(card)
    remaining = shuffle([c for c in cards if not c.start_in_hand], rng)

    draw_count = max(0, LOGIC_CONSTANTS.base_draw - len(start_hand))
    result = draw_cards(remaining, blocked, draw_count, start_hand, rng)

    known: dict[str, Card] = {c.id: c for c in cards}
    if catalog:
        known.update(catalog)

    return GameState(
        turn=1,
        max_turns=max_turns,
        phase=TurnPhase.START,
        current_turn_attribute=attribute_for_turn(turn_attributes, 1),
        vocal=status.vocal,
        dance=status.dance,
        visual=status.visual,
        hp=min(status.hp, status.max_hp),
        max_hp=status.max_hp,
        deck=result.deck,
        hand=tuple(start_hand) + result.hand,
        discard=result.discard,
        p_drinks=tuple(PDrinkState(drink=d) for d in drinks or ()),
        logs=("Turn 1 start",),
        catalog=known,
    )


# ============================================================================
# Card play
# ============================================================================

def calculate_actual_cost(card: Card, buffs: Iterable[Buff]) -> int:
    """
    Cost of playing a card under the active buffs.

    Flat adjustments come first (reduce_hp_cost, then debuff_cost_increase),
    then cost reduction halves and double cost doubles. Never negative.
    """
    buffs = list(buffs)
    reduction = sum((b.value or 0) for b in buffs if b.type == EffectType.REDUCE_HP_COST)
    increase = sum((b.value or 0) for b in buffs if b.type == EffectType.DEBUFF_COST_INCREASE)

    cost = max(0, card.cost - reduction)
    cost += increase

    if any(b.type == EffectType.BUFF_COST_REDUCTION for b in buffs):
        cost = math.floor(cost * LOGIC_CONSTANTS.cost_reduction_rate)
    if any(b.type == EffectType.BUFF_DOUBLE_COST for b in buffs):
        cost *= LOGIC_CONSTANTS.double_cost_rate

    return max(0, int(cost))


def _required_amount(card: Card, kind: EffectType) -> float:
    for effect in card.effects:
        if effect.type == kind:
            return effect.value or 0
    return 0


def _rejection_reason(state: GameState, card: Card, actual_cost: int) -> str | None:
    """Why the card cannot be paid for right now, or None."""
    if state.motivation < _required_amount(card, EffectType.CONSUME_MOTIVATION):
        return "not enough motivation"
    if state.good_impression < _required_amount(card, EffectType.CONSUME_IMPRESSION):
        return "not enough good impression"
    if card.cost_type == CostType.HP:
        if state.hp < actual_cost:
            return f"HP {state.hp} below cost {actual_cost}"
    elif state.hp + state.genki < actual_cost:
        return f"HP + genki {state.hp + state.genki} below cost {actual_cost}"
    return None


def is_card_playable(state: GameState, card_id: str) -> bool:
    """
    Whether a hand card can be played now.

    Unlike play_card_core this also honours the card's usage conditions,
    so hosts can disable controls for cards that are declared unusable.
    """
    if state.cards_played >= LOGIC_CONSTANTS.plays_per_turn:
        return False
    card = state.find_in_hand(card_id)
    if card is None:
        return False
    if not check_conditions(state, card.conditions):
        return False
    return _rejection_reason(state, card, calculate_actual_cost(card, state.buffs)) is None


def play_card_core(
    state: GameState,
    card_id: str,
    rng: random.Random | None = None,
) -> GameState:
    """
    Play a card from the hand.

    Returns the input state unchanged when the play is illegal: a card was
    already played this turn, the card is not in hand, or its cost cannot
    be paid. Otherwise the cost is paid (genki first, then HP; HP-cost
    cards pay from HP only), the card's effects resolve, HP cost reactions
    and card-use triggers fire, and the card moves to discard (or to
    excluded when it is once per lesson).
    """
    if state.cards_played >= LOGIC_CONSTANTS.plays_per_turn:
        logger.debug("Play of %s rejected: card already played this turn", card_id)
        return state

    card = state.find_in_hand(card_id)
    if card is None:
        logger.debug("Play of %s rejected: not in hand", card_id)
        return state

    actual_cost = calculate_actual_cost(card, state.buffs)
    reason = _rejection_reason(state, card, actual_cost)
    if reason is not None:
        logger.debug("Play of %s rejected: %s", card_id, reason)
        return state

    if card.cost_type == CostType.HP:
        hp_consumption = actual_cost
        new_genki = state.genki
    else:
        hp_consumption = max(0, actual_cost - state.genki)
        new_genki = max(0, state.genki - actual_cost)

    reactions: list[Effect] = []
    if hp_consumption > 0:
        reactions = [
            b.triggered_effect for b in state.buffs
            if b.type == EffectType.BUFF_REACTION_ON_COST and b.triggered_effect is not None
        ]
    card_use_buffs = [
        b for b in state.buffs
        if b.type == EffectType.BUFF_ON_CARD_USE and b.triggered_effect is not None
    ]

    # The card leaves the hand and counts as played before its effects resolve
    new_state = state.copy_with(
        phase=TurnPhase.MAIN,
        hand=remove_card(state.hand, card),
        genki=new_genki,
        hp=state.hp - hp_consumption,
        cards_played=state.cards_played + 1,
    )

    new_state = apply_card_effects(new_state, card.effects, rng)

    if reactions:
        new_state = apply_card_effects(new_state, reactions, rng)
        new_state = new_state.with_logs(
            *(f"Reaction triggered: {kind_name(e.type)}" for e in reactions)
        )

    fired = [
        b.triggered_effect for b in card_use_buffs
        if matches_played_card(new_state, b.trigger_condition, card.type)
    ]
    if fired:
        new_state = apply_card_effects(new_state, fired, rng)
        new_state = new_state.with_logs(f"Card use triggers fired ({len(fired)})")

    if card.once_per_lesson:
        new_state = new_state.copy_with(excluded=new_state.excluded + (card,))
    else:
        new_state = new_state.copy_with(discard=new_state.discard + (card,))

    cost_note = f" (cost {actual_cost})" if actual_cost > 0 else ""
    logger.debug("Played %s for %d", card.id, actual_cost)
    return new_state.with_logs(f"Played {card.name}{cost_note}")


# ============================================================================
# Turn end
# ============================================================================

def _tick_buffs(buffs: Iterable[Buff]) -> tuple[Buff, ...]:
    """
    Advance buff durations by one turn boundary.

    Indefinite buffs are untouched. Buffs granted this turn only lose their
    is_new marker. Buffs reaching zero are removed.
    """
    ticked = []
    for b in buffs:
        if b.indefinite:
            ticked.append(b)
        elif b.is_new:
            ticked.append(replace(b, is_new=False))
        else:
            ticked.append(replace(b, duration=b.duration - 1))
    return tuple(b for b in ticked if b.duration != 0)


def end_turn_core(
    state: GameState,
    turn_attributes: Sequence[LessonAttribute | str] | None,
    rng: random.Random | None = None,
) -> GameState:
    """
    Close the current turn and open the next one.

    No-op on the final turn. Otherwise: skip recovery when nothing was
    played, discard the hand and draw a new one, score good impression,
    tick buffs, decay good impression, advance the turn, then fire
    turn-start triggers.
    """
    if state.turn >= state.max_turns:
        logger.debug("End turn ignored: lesson finished at turn %d", state.turn)
        return state

    skipped = state.cards_played == 0
    hp = state.hp
    if skipped:
        hp = min(state.max_hp, state.hp + LOGIC_CONSTANTS.skip_recovery_hp)

    kept_hand: tuple[Card, ...] = ()
    draw_count = min(
        max(0, LOGIC_CONSTANTS.base_draw - len(kept_hand)),
        LOGIC_CONSTANTS.hand_limit - len(kept_hand),
    )
    result = draw_cards(state.deck, state.discard + state.hand, draw_count, kept_hand, rng)

    impression_score = state.good_impression * LOGIC_CONSTANTS.impression_score_per_stack
    next_turn = state.turn + 1

    logs: list[str] = []
    if impression_score > 0:
        logs.append(f"Good Impression score +{impression_score}")
    skip_note = f" (skip recovery +{LOGIC_CONSTANTS.skip_recovery_hp} HP)" if skipped else ""
    logs.append(f"Turn {next_turn} start (Good Impression -{LOGIC_CONSTANTS.impression_decay}){skip_note}")

    new_state = state.copy_with(
        score=state.score + impression_score,
        hp=hp,
        turn=next_turn,
        phase=TurnPhase.START,
        current_turn_attribute=attribute_for_turn(turn_attributes, next_turn),
        deck=result.deck,
        hand=kept_hand + result.hand,
        discard=result.discard,
        buffs=_tick_buffs(state.buffs),
        good_impression=max(0, state.good_impression - LOGIC_CONSTANTS.impression_decay),
        cards_played=0,
        logs=state.logs + tuple(logs),
    )

    triggers = [
        b.triggered_effect for b in new_state.buffs
        if b.type == EffectType.BUFF_TURN_START and b.triggered_effect is not None
    ]
    if triggers:
        new_state = apply_card_effects(new_state, triggers, rng)
        new_state = new_state.with_logs(f"Turn start triggers fired ({len(triggers)})")

    return new_state


# ============================================================================
# P-drinks
# ============================================================================

def use_drink_core(
    state: GameState,
    drink_id: str,
    rng: random.Random | None = None,
) -> GameState:
    """Use an unused P-drink once. Unknown or spent drinks are a no-op."""
    for i, slot in enumerate(state.p_drinks):
        if slot.drink.id == drink_id and not slot.used:
            break
    else:
        logger.debug("Drink %s unavailable", drink_id)
        return state

    drinks = state.p_drinks[:i] + (PDrinkState(drink=slot.drink, used=True),) + state.p_drinks[i + 1:]
    new_state = apply_card_effects(state.copy_with(p_drinks=drinks), slot.drink.effects, rng)
    return new_state.with_logs(f"Used drink {slot.drink.name}")
