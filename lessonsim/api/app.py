"""
FastAPI Application - REST API for lesson UIs.

Endpoints:
    POST   /api/v1/compile                       Compile one card text row
    POST   /api/v1/sessions                      Start a lesson session
    GET    /api/v1/sessions                      List active sessions
    GET    /api/v1/sessions/{id}                 Get session summary
    DELETE /api/v1/sessions/{id}                 End session
    GET    /api/v1/sessions/{id}/state           Get full game state
    POST   /api/v1/sessions/{id}/play            Play a hand card
    POST   /api/v1/sessions/{id}/end-turn        End the current turn
    POST   /api/v1/sessions/{id}/drink           Use a P-drink
    GET    /api/v1/sessions/{id}/cost/{card_id}  Preview a card's actual cost

Illegal plays are not errors: the engine ignores them and the response
reports accepted=false with the unchanged state.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .service import APIService
from .schemas import (
    # Request models
    CompileRequest,
    CreateSessionRequest,
    PlayCardRequest,
    UseDrinkRequest,
    # Response models
    ActionResponse,
    CompileResponse,
    CostPreviewResponse,
    EndSessionResponse,
    ErrorResponse,
    GameStateResponse,
    HealthResponse,
    SessionListResponse,
    SessionResponse,
    # Enums
    ErrorCode,
)
from ..session import SessionNotFoundError
from ..spec_schema import CardDataError, SpecValidationError

logger = logging.getLogger(__name__)

# Environment configuration
LESSONSIM_ENV = os.getenv("LESSONSIM_ENV", "development")
LESSONSIM_LOG_LEVEL = os.getenv("LESSONSIM_LOG_LEVEL", "INFO").upper()
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

API_VERSION = "0.1.0"


def make_error_response(
    error_code: ErrorCode,
    message: str,
    status_code: int = 400,
    details: Optional[dict] = None,
) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=message,
            error_code=error_code,
            details=details,
        ).model_dump(mode="json"),
    )


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    logging.getLogger("lessonsim").setLevel(LESSONSIM_LOG_LEVEL)

    app = FastAPI(
        title="Lesson Simulator API",
        description="""
Turn-based lesson card game simulator.

## Flow

1. `POST /sessions` with a deck of card JSON objects
2. `POST /play` and `POST /end-turn` until `is_finished`
3. `DELETE /sessions/{id}` when done

Rejected plays return `accepted=false` with the state unchanged.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `CARD_NOT_IN_HAND` | Cost preview for a card not in hand |
| `INVALID_CARD_DATA` | Card or drink JSON is malformed |
| `VALIDATION_ERROR` | Deck failed validation |
| `INTERNAL_ERROR` | Unexpected failure |
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # =========================================================================
    # Error handlers
    # =========================================================================

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found(request: Request, exc: SessionNotFoundError) -> JSONResponse:
        return make_error_response(ErrorCode.SESSION_NOT_FOUND, str(exc), status_code=404)

    @app.exception_handler(CardDataError)
    async def invalid_card_data(request: Request, exc: CardDataError) -> JSONResponse:
        return make_error_response(ErrorCode.INVALID_CARD_DATA, str(exc), status_code=400)

    @app.exception_handler(SpecValidationError)
    async def validation_failed(request: Request, exc: SpecValidationError) -> JSONResponse:
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Card data failed validation",
            status_code=422,
            details={"errors": exc.errors},
        )

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        details = {"type": type(exc).__name__} if LESSONSIM_ENV == "development" else None
        return make_error_response(
            ErrorCode.INTERNAL_ERROR, "Internal server error", status_code=500, details=details
        )

    # =========================================================================
    # Compile Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/compile",
        response_model=CompileResponse,
        tags=["Cards"],
        summary="Compile card text into card JSON",
    )
    async def compile_card(body: CompileRequest) -> CompileResponse:
        """
        Compile one card sheet row.

        Clauses no rule recognises are returned in `unparsed`; a card with
        some recognised effects and some unparsed clauses is `partial`.
        """
        return api_service.compile_card(body)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Malformed card data"},
            422: {"model": ErrorResponse, "description": "Deck failed validation"},
        },
        tags=["Sessions"],
        summary="Start a lesson session",
    )
    async def create_session(body: CreateSessionRequest) -> SessionResponse:
        """Start a lesson on turn 1 with the opening hand drawn."""
        return api_service.create_session(body)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List sessions whose lesson is still running."""
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session summary",
    )
    async def get_session(session_id: str) -> SessionResponse:
        return api_service.get_session(session_id)

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a lesson session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a session and release its state."""
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Lesson Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Lesson"],
        summary="Get current game state",
    )
    async def get_game_state(session_id: str) -> GameStateResponse:
        return api_service.get_game_state(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/play",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Lesson"],
        summary="Play a card from the hand",
    )
    async def play_card(session_id: str, body: PlayCardRequest) -> ActionResponse:
        return api_service.play_card(session_id, body.card_id)

    @app.post(
        "/api/v1/sessions/{session_id}/end-turn",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Lesson"],
        summary="End the current turn",
    )
    async def end_turn(session_id: str) -> ActionResponse:
        """End the turn. On the final turn this is ignored (accepted=false)."""
        return api_service.end_turn(session_id)

    @app.post(
        "/api/v1/sessions/{session_id}/drink",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Lesson"],
        summary="Use a P-drink",
    )
    async def use_drink(session_id: str, body: UseDrinkRequest) -> ActionResponse:
        return api_service.use_drink(session_id, body.drink_id)

    @app.get(
        "/api/v1/sessions/{session_id}/cost/{card_id}",
        response_model=CostPreviewResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Lesson"],
        summary="Preview a hand card's actual cost",
    )
    async def preview_cost(session_id: str, card_id: str) -> Union[CostPreviewResponse, JSONResponse]:
        preview = api_service.preview_cost(session_id, card_id)
        if preview is None:
            return make_error_response(
                ErrorCode.CARD_NOT_IN_HAND,
                f"Card {card_id} is not in hand",
                status_code=404,
            )
        return preview

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="lessonsim",
            version=API_VERSION,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Lesson Simulator API",
            "version": API_VERSION,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn lessonsim.api.app:app
app = create_app()
