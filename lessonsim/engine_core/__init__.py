"""Core engine - state, condition evaluation, effect resolution and turn flow."""

from .state import GameState, Buff, PDrinkState, InitialStatus, LessonAttribute, TurnPhase
from .conditions import check_conditions, evaluate_condition
from .deck import shuffle, draw_cards, DrawResult
from .effect_resolver import (
    resolve_effect,
    resolve_effects,
    apply_card_effects,
    ResolutionResult,
    EFFECT_HANDLERS,
    DEBUFF_KINDS,
)
from .engine import (
    initialize_game,
    calculate_actual_cost,
    play_card_core,
    end_turn_core,
    use_drink_core,
    is_card_playable,
)

__all__ = [
    "GameState",
    "Buff",
    "PDrinkState",
    "InitialStatus",
    "LessonAttribute",
    "TurnPhase",
    "check_conditions",
    "evaluate_condition",
    "shuffle",
    "draw_cards",
    "DrawResult",
    "resolve_effect",
    "resolve_effects",
    "apply_card_effects",
    "ResolutionResult",
    "EFFECT_HANDLERS",
    "DEBUFF_KINDS",
    "initialize_game",
    "calculate_actual_cost",
    "play_card_core",
    "end_turn_core",
    "use_drink_core",
    "is_card_playable",
]
