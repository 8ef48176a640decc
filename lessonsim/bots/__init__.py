"""
Bots module - Automated lesson play.

Provides:
- LessonPolicy: Interface for choosing which card to play
- FirstPlayablePolicy, RandomPolicy, GreedyScorePolicy: baseline policies
- run_lesson: Drive a lesson to its final turn
"""

from .policy import (
    LessonPolicy,
    LessonDecision,
    FirstPlayablePolicy,
    RandomPolicy,
    GreedyScorePolicy,
    playable_card_ids,
    run_lesson,
)

__all__ = [
    "LessonPolicy",
    "LessonDecision",
    "FirstPlayablePolicy",
    "RandomPolicy",
    "GreedyScorePolicy",
    "playable_card_ids",
    "run_lesson",
]
