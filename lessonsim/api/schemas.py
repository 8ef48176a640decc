"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a lesson UI and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- CARD_NOT_IN_HAND: Cost preview asked for a card that is not in hand
- INVALID_CARD_DATA: Card or drink JSON could not be read
- VALIDATION_ERROR: Card data failed schema validation
- INTERNAL_ERROR: Unexpected server failure
"""

from enum import Enum
from typing import Optional, Any, Literal
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class CompilationStatus(str, Enum):
    """Card text compilation status."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    INVALID_CARD_DATA = "INVALID_CARD_DATA"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    card_id: str
    name: str
    card_type: str = Field("active", description="active, mental, trouble")
    cost: int = 0
    cost_type: str = Field("normal", description="normal, hp")
    actual_cost: Optional[int] = Field(None, description="Cost after active buffs")
    rarity: Optional[str] = None
    description: str = ""


class BuffInfo(BaseModel):
    """An active buff."""
    buff_id: str
    buff_type: str
    name: str
    duration: int = Field(..., description="Turns left, -1 for the rest of the lesson")
    count: Optional[int] = None
    value: Optional[float] = None


class DrinkInfo(BaseModel):
    """A P-drink slot."""
    drink_id: str
    name: str
    used: bool = False
    description: str = ""


class InitialStatusInfo(BaseModel):
    """Starting stats for a lesson."""
    vocal: int = Field(0, ge=0)
    dance: int = Field(0, ge=0)
    visual: int = Field(0, ge=0)
    hp: int = Field(30, ge=0)
    max_hp: Optional[int] = Field(None, ge=0, description="Defaults to hp")


# =============================================================================
# Request Models
# =============================================================================

class CompileRequest(BaseModel):
    """Request to compile one card row from the card sheet."""
    name: str = Field(..., description="Card name")
    description: str = Field(..., description="Card effect text")
    card_type: str = Field("アクティブ", description="Card type column")
    plan: str = Field("free", description="Plan the card belongs to")
    cost: Optional[int] = Field(None, ge=0, description="Cost column")
    rarity: Optional[str] = None


class CreateSessionRequest(BaseModel):
    """Request to start a lesson session."""
    cards: list[dict[str, Any]] = Field(..., description="Deck as card JSON objects")
    status: InitialStatusInfo = Field(default_factory=InitialStatusInfo)
    turn_attributes: list[Literal["vocal", "dance", "visual"]] = Field(
        default_factory=list, description="Attribute per turn: vocal, dance, visual"
    )
    drinks: list[dict[str, Any]] = Field(default_factory=list, description="P-drink JSON objects")
    max_turns: Optional[int] = Field(None, ge=1, description="Defaults to the schedule length")
    catalog: list[dict[str, Any]] = Field(
        default_factory=list, description="Extra cards for upgrades and trouble generation"
    )
    random_seed: Optional[int] = Field(None, description="Seed for reproducible lessons")


class PlayCardRequest(BaseModel):
    """Request to play a card from the hand."""
    card_id: str


class UseDrinkRequest(BaseModel):
    """Request to use a P-drink."""
    drink_id: str


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standardized error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class CompileResponse(BaseModel):
    """Response from card text compilation."""
    success: bool
    status: CompilationStatus
    card: Optional[dict[str, Any]] = Field(None, description="Compiled card JSON")
    effect_count: int = 0
    unparsed: list[str] = Field(default_factory=list, description="Clauses no rule matched")
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class GameStateResponse(BaseModel):
    """Complete lesson state for display."""
    session_id: str
    turn: int
    max_turns: int
    phase: str
    current_turn_attribute: str
    is_finished: bool

    vocal: int
    dance: int
    visual: int
    hp: int
    max_hp: int
    shield: int
    genki: int
    good_impression: int
    motivation: int
    concentration: int
    score: int
    cards_played: int

    hand: list[CardInfo] = Field(default_factory=list)
    deck_count: int = 0
    discard_count: int = 0
    excluded_count: int = 0
    buffs: list[BuffInfo] = Field(default_factory=list)
    drinks: list[DrinkInfo] = Field(default_factory=list)
    logs: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Session summary."""
    session_id: str
    created_at: float
    turn: int
    max_turns: int
    score: int
    is_finished: bool
    seed: Optional[int] = None
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of a play, end turn or drink action."""
    session_id: str
    accepted: bool = Field(..., description="False when the engine ignored the action")
    game_state: GameStateResponse
    api_version: str = "v1"


class CostPreviewResponse(BaseModel):
    """Cost of a hand card under the current buffs."""
    session_id: str
    card_id: str
    base_cost: int
    actual_cost: int
    cost_type: str
    playable: bool
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
