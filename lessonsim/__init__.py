"""
Lessonsim - Produce Lesson Simulator

A deterministic, rules-driven engine for simulating turn-based skill-card lessons.
The engine takes structured card definitions and provides:
- Immutable game state snapshots
- Conditional effect resolution with persistent buffs
- Turn and card-play state machine
- An offline compiler from card description text to effect trees
"""

__version__ = "0.1.0"
