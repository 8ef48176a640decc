"""
Lesson Policy - Interface for automated lesson play.

A LessonPolicy looks at a game state and decides which hand card to play,
or to skip the play and end the turn. run_lesson drives a state through
every remaining turn with a policy; the CLI uses it for simulations.
"""

from __future__ import annotations
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from ..config import LOGIC_CONSTANTS
from ..engine_core.engine import end_turn_core, is_card_playable, play_card_core
from ..engine_core.state import GameState, LessonAttribute

logger = logging.getLogger(__name__)


@dataclass
class LessonDecision:
    """
    A decision made by a policy.

    card_id is None when the policy skips playing this turn.
    """
    card_id: str | None
    explanation: str = ""
    expected_score: float = 0.0


def playable_card_ids(state: GameState) -> list[str]:
    """Ids of hand cards that can be played now, in hand order, without repeats."""
    seen: list[str] = []
    for card in state.hand:
        if card.id not in seen and is_card_playable(state, card.id):
            seen.append(card.id)
    return seen


class LessonPolicy(ABC):
    """
    Abstract base class for lesson policies.

    Implementations range from trivial baselines to one-step lookahead.
    """

    @abstractmethod
    def select_action(self, state: GameState) -> LessonDecision:
        """
        Select a card to play.

        Args:
            state: Current game state

        Returns:
            LessonDecision with the chosen card id, or None to skip
        """
        pass

    def get_name(self) -> str:
        """Get the policy's name/identifier."""
        return self.__class__.__name__


class FirstPlayablePolicy(LessonPolicy):
    """
    Plays the first playable card in hand.

    Used for:
    - Deterministic testing
    - Baseline comparison
    """

    def select_action(self, state: GameState) -> LessonDecision:
        playable = playable_card_ids(state)
        if not playable:
            return LessonDecision(card_id=None, explanation="Nothing playable")
        return LessonDecision(card_id=playable[0], explanation="Selected first playable card")


class RandomPolicy(LessonPolicy):
    """
    Random policy - plays a uniformly random playable card.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_action(self, state: GameState) -> LessonDecision:
        playable = playable_card_ids(state)
        if not playable:
            return LessonDecision(card_id=None, explanation="Nothing playable")
        return LessonDecision(card_id=self.rng.choice(playable), explanation="Selected randomly")


class GreedyScorePolicy(LessonPolicy):
    """
    One-step lookahead on score.

    Simulates every playable card and picks the one with the largest
    immediate score gain; ties keep hand order. Skips only when nothing is
    playable. Simulations use a fixed seed so the choice is repeatable.
    """

    def __init__(self, seed: int = 0):
        self.seed = seed

    def select_action(self, state: GameState) -> LessonDecision:
        best: LessonDecision | None = None
        for card_id in playable_card_ids(state):
            simulated = play_card_core(state, card_id, random.Random(self.seed))
            gain = simulated.score - state.score
            if best is None or gain > best.expected_score:
                best = LessonDecision(
                    card_id=card_id,
                    explanation=f"Best immediate score gain (+{gain})",
                    expected_score=gain,
                )
        return best or LessonDecision(card_id=None, explanation="Nothing playable")


def run_lesson(
    state: GameState,
    policy: LessonPolicy,
    turn_attributes: Sequence[LessonAttribute | str] | None,
    rng: random.Random | None = None,
) -> GameState:
    """
    Play out the lesson from `state` to its final turn.

    Each turn the policy may play cards until it skips or the play cap is
    reached; then the turn ends. The final turn is played but not ended.
    """
    while True:
        for _ in range(LOGIC_CONSTANTS.hand_limit):
            decision = policy.select_action(state)
            if decision.card_id is None:
                break
            played = play_card_core(state, decision.card_id, rng)
            if played is state:
                logger.warning("%s chose unplayable card %s", policy.get_name(), decision.card_id)
                break
            state = played

        if state.is_finished:
            return state
        state = end_turn_core(state, turn_attributes, rng)
