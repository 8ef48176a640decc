"""
Session Manager - Creates and manages lesson sessions.

LIFECYCLE:
1. Caller supplies a deck, initial status and turn schedule
2. A session is created holding the opening GameState
3. During the lesson every play/end-turn/drink call replaces the state
4. Session ends → removed from memory

PERSISTENCE RULES:
- NO database; sessions are in-memory only
- Each session owns exactly one authoritative GameState
- Transitions on one session are serialized by its lock
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence
import logging
import random
import threading
import time
import uuid

from ..config import LOGIC_CONSTANTS
from ..engine_core.engine import (
    calculate_actual_cost,
    end_turn_core,
    initialize_game,
    play_card_core,
    use_drink_core,
)
from ..engine_core.state import GameState, InitialStatus, LessonAttribute
from ..spec_schema import Card, PDrink

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised for an unknown or ended session id."""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session {self.session_id} not found"


@dataclass
class LessonSession:
    """
    An ephemeral lesson session.

    Contains:
    - The current canonical GameState
    - The per-turn attribute schedule
    - A private random generator (seeded when a seed is given)

    The engine functions are pure; the session is the single writer that
    threads the state between calls.
    """
    session_id: str
    game_state: GameState
    turn_attributes: tuple[LessonAttribute | str, ...]
    rng: random.Random
    created_at: float
    seed: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def is_finished(self) -> bool:
        return self.game_state.is_finished

    def play_card(self, card_id: str) -> bool:
        """Play a hand card. Returns False when the play was rejected."""
        with self._lock:
            new_state = play_card_core(self.game_state, card_id, self.rng)
            accepted = new_state is not self.game_state
            self.game_state = new_state
        return accepted

    def end_turn(self) -> bool:
        """End the current turn. Returns False on the final turn."""
        with self._lock:
            new_state = end_turn_core(self.game_state, self.turn_attributes, self.rng)
            accepted = new_state is not self.game_state
            self.game_state = new_state
        return accepted

    def use_drink(self, drink_id: str) -> bool:
        """Use a P-drink. Returns False for an unknown or used drink."""
        with self._lock:
            new_state = use_drink_core(self.game_state, drink_id, self.rng)
            accepted = new_state is not self.game_state
            self.game_state = new_state
        return accepted

    def preview_cost(self, card_id: str) -> int | None:
        """Actual cost of a hand card under the current buffs."""
        card = self.game_state.find_in_hand(card_id)
        if card is None:
            return None
        return calculate_actual_cost(card, self.game_state.buffs)


class SessionManager:
    """
    Manages lesson sessions.

    Responsibilities:
    - Create sessions from decks
    - Track active sessions
    - Clean up finished or stale sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self):
        self._sessions: dict[str, LessonSession] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        deck: Iterable[Card],
        status: InitialStatus | Mapping[str, Any] | None = None,
        turn_attributes: Sequence[LessonAttribute | str] | None = None,
        drinks: Iterable[PDrink] | None = None,
        *,
        max_turns: int | None = None,
        catalog: Mapping[str, Card] | None = None,
        seed: int | None = None,
    ) -> LessonSession:
        """
        Create a new lesson session.

        Args:
            deck: Cards making up the lesson deck
            status: Initial stats and HP
            turn_attributes: Attribute of each turn, defaults to all vocal
            drinks: Optional P-drinks
            max_turns: Lesson length, defaults to the schedule length
            catalog: Extra card definitions for upgrades and troubles
            seed: Seed for the session's random generator

        Returns:
            New LessonSession on turn 1
        """
        schedule = tuple(turn_attributes or ())
        if max_turns is None:
            max_turns = len(schedule) or LOGIC_CONSTANTS.max_turns
        rng = random.Random(seed)

        state = initialize_game(
            status,
            schedule,
            deck,
            drinks,
            max_turns=max_turns,
            catalog=catalog,
            rng=rng,
        )
        session = LessonSession(
            session_id=str(uuid.uuid4()),
            game_state=state,
            turn_attributes=schedule,
            rng=rng,
            created_at=time.time(),
            seed=seed,
        )
        with self._lock:
            self._sessions[session.session_id] = session
        logger.info("Created session %s (%d turns)", session.session_id, max_turns)
        return session

    def get_session(self, session_id: str) -> LessonSession:
        """Get a session by ID. Raises SessionNotFoundError if unknown."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def end_session(self, session_id: str) -> bool:
        """
        End a session and drop it from memory.

        Returns False if the session did not exist.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info("Ended session %s", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of sessions whose lesson is still running."""
        with self._lock:
            sessions = list(self._sessions.items())
        return [sid for sid, session in sessions if not session.is_finished]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove sessions older than max_age.

        Returns the number removed.
        """
        current_time = time.time()
        with self._lock:
            sessions = list(self._sessions.items())
        stale = [
            sid for sid, session in sessions
            if current_time - session.created_at > max_age_seconds
        ]
        for session_id in stale:
            self.end_session(session_id)
        return len(stale)
