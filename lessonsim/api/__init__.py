"""
API Module - HTTP interface for lesson UIs.

Exposes the engine via REST API.
A client:
1. Compiles card text rows (optional authoring step)
2. Starts a lesson session with a deck
3. Plays cards, ends turns and uses drinks
4. Reads the state and log trail after each action

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CompileRequest,
    CreateSessionRequest,
    PlayCardRequest,
    UseDrinkRequest,
    # Responses
    ActionResponse,
    CompileResponse,
    CostPreviewResponse,
    GameStateResponse,
    SessionResponse,
    ErrorResponse,
    # Enums
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CompileRequest",
    "CreateSessionRequest",
    "PlayCardRequest",
    "UseDrinkRequest",
    # Responses
    "ActionResponse",
    "CompileResponse",
    "CostPreviewResponse",
    "GameStateResponse",
    "SessionResponse",
    "ErrorResponse",
    # Enums
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
