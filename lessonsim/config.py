"""
Balance constants for the lesson engine.

Tuning the simulation means changing the values here; the resolver and
the engine never hard-code these numbers.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class LogicConstants:
    """Numeric rules shared by the resolver and the turn engine."""
    # Good impression
    impression_score_per_stack: int = 1  # score per stack at turn end
    impression_decay: int = 1  # stacks lost at each turn transition

    # Motivation
    motivation_genki_bonus_per_stack: int = 1

    # Concentration
    concentration_score_bonus_per_stack: int = 1

    # Condition multipliers
    perfect_condition_score: float = 1.5
    double_strike_score: float = 2.0

    # Hand and turn structure
    hand_limit: int = 5
    base_draw: int = 3
    plays_per_turn: int = 1
    skip_recovery_hp: int = 2
    max_turns: int = 12

    # Character defaults
    default_hp: int = 30

    # Buff bookkeeping
    default_buff_duration: int = 1
    indefinite_duration: int = -1
    indefinite_sentinel: int = 999  # stands in for -1 when comparing durations

    # Cost modifiers
    cost_reduction_rate: float = 0.5
    double_cost_rate: int = 2


LOGIC_CONSTANTS = LogicConstants()
