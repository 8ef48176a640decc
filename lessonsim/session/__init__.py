"""
Session Module - Manages ephemeral lesson sessions.

A session represents one play-through of a lesson:
- Created when a caller starts a lesson
- Holds the current game state
- Applies plays, turn ends and drinks one at a time
- Destroyed when the caller ends it

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import SessionManager, LessonSession, SessionNotFoundError

__all__ = [
    "SessionManager",
    "LessonSession",
    "SessionNotFoundError",
]
