"""
API Service - Business logic layer between API and engine.

The service:
1. Compiles card text rows
2. Turns card JSON into decks and manages lesson sessions
3. Applies player actions through the session's single writer
4. Formats state for display

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    CompileRequest,
    CreateSessionRequest,
    # Responses
    ActionResponse,
    CompileResponse,
    CostPreviewResponse,
    GameStateResponse,
    SessionResponse,
    # Shared
    BuffInfo,
    CardInfo,
    DrinkInfo,
    # Enums
    CompilationStatus,
)
from ..engine_core.engine import calculate_actual_cost, is_card_playable
from ..engine_core.state import GameState, InitialStatus
from ..rule_compiler import CardRow, CardTextCompiler
from ..session import LessonSession, SessionManager
from ..spec_schema import Card, PDrink, SpecValidationError, validate_cards
from ..spec_schema.effect_dsl import kind_name

logger = logging.getLogger(__name__)


def _card_info(card: Card, state: GameState | None = None) -> CardInfo:
    return CardInfo(
        card_id=card.id,
        name=card.name,
        card_type=card.type.value,
        cost=card.cost,
        cost_type=card.cost_type.value,
        actual_cost=calculate_actual_cost(card, state.buffs) if state is not None else None,
        rarity=card.rarity,
        description=card.description,
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Compile a card row
        response = service.compile_card(CompileRequest(name="...", description="..."))

        # Start a lesson and play
        session = service.create_session(CreateSessionRequest(cards=[...]))
        result = service.play_card(session.session_id, "card_id")

    Unknown session ids raise SessionNotFoundError; malformed card data
    raises CardDataError; invalid decks raise SpecValidationError.
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    compiler: CardTextCompiler = field(default_factory=CardTextCompiler)

    def compile_card(self, request: CompileRequest) -> CompileResponse:
        """Compile one card sheet row into card JSON."""
        row = CardRow(
            name=request.name,
            rarity=request.rarity,
            plan=request.plan,
            type=request.card_type,
            cost="" if request.cost is None else str(request.cost),
            description=request.description,
        )
        result = self.compiler.compile_card(row)
        return CompileResponse(
            success=result.status.value != "failed",
            status=CompilationStatus(result.status.value),
            card=result.card.to_dict() if result.card else None,
            effect_count=result.extracted_effects,
            unparsed=result.unparsed,
            warnings=result.warnings,
            errors=result.errors,
        )

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """
        Start a lesson from card JSON.

        The deck is validated before any state is built.
        """
        deck = [Card.from_dict(c) for c in request.cards]
        catalog = {c.id: c for c in (Card.from_dict(d) for d in request.catalog)}
        drinks = [PDrink.from_dict(d) for d in request.drinks]

        validation = validate_cards(deck, allow_copies=True)
        if not validation.valid:
            raise SpecValidationError(validation.errors)

        logger.debug("Deck of %d cards validated", len(deck))
        status = InitialStatus.from_mapping(request.status.model_dump(exclude_none=True))
        session = self.session_manager.create_session(
            deck,
            status,
            request.turn_attributes,
            drinks,
            max_turns=request.max_turns,
            catalog=catalog,
            seed=request.random_seed,
        )
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse:
        return self._session_to_response(self.session_manager.get_session(session_id))

    def get_game_state(self, session_id: str) -> GameStateResponse:
        return self._state_to_response(self.session_manager.get_session(session_id))

    def play_card(self, session_id: str, card_id: str) -> ActionResponse:
        session = self.session_manager.get_session(session_id)
        accepted = session.play_card(card_id)
        return self._action_response(session, accepted)

    def end_turn(self, session_id: str) -> ActionResponse:
        session = self.session_manager.get_session(session_id)
        accepted = session.end_turn()
        return self._action_response(session, accepted)

    def use_drink(self, session_id: str, drink_id: str) -> ActionResponse:
        session = self.session_manager.get_session(session_id)
        accepted = session.use_drink(drink_id)
        return self._action_response(session, accepted)

    def preview_cost(self, session_id: str, card_id: str) -> CostPreviewResponse | None:
        """Cost preview for a hand card, None when the card is not in hand."""
        session = self.session_manager.get_session(session_id)
        state = session.game_state
        card = state.find_in_hand(card_id)
        if card is None:
            return None
        return CostPreviewResponse(
            session_id=session_id,
            card_id=card_id,
            base_cost=card.cost,
            actual_cost=calculate_actual_cost(card, state.buffs),
            cost_type=card.cost_type.value,
            playable=is_card_playable(state, card_id),
        )

    def end_session(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Response builders
    # =========================================================================

    def _action_response(self, session: LessonSession, accepted: bool) -> ActionResponse:
        return ActionResponse(
            session_id=session.session_id,
            accepted=accepted,
            game_state=self._state_to_response(session),
        )

    def _session_to_response(self, session: LessonSession) -> SessionResponse:
        state = session.game_state
        return SessionResponse(
            session_id=session.session_id,
            created_at=session.created_at,
            turn=state.turn,
            max_turns=state.max_turns,
            score=state.score,
            is_finished=state.is_finished,
            seed=session.seed,
        )

    def _state_to_response(self, session: LessonSession) -> GameStateResponse:
        state = session.game_state
        return GameStateResponse(
            session_id=session.session_id,
            turn=state.turn,
            max_turns=state.max_turns,
            phase=state.phase.value,
            current_turn_attribute=state.current_turn_attribute.value,
            is_finished=state.is_finished,
            vocal=state.vocal,
            dance=state.dance,
            visual=state.visual,
            hp=state.hp,
            max_hp=state.max_hp,
            shield=state.shield,
            genki=state.genki,
            good_impression=state.good_impression,
            motivation=state.motivation,
            concentration=state.concentration,
            score=state.score,
            cards_played=state.cards_played,
            hand=[_card_info(c, state) for c in state.hand],
            deck_count=len(state.deck),
            discard_count=len(state.discard),
            excluded_count=len(state.excluded),
            buffs=[
                BuffInfo(
                    buff_id=b.id,
                    buff_type=kind_name(b.type),
                    name=b.name,
                    duration=b.duration,
                    count=b.count,
                    value=b.value,
                )
                for b in state.buffs
            ],
            drinks=[
                DrinkInfo(
                    drink_id=slot.drink.id,
                    name=slot.drink.name,
                    used=slot.used,
                    description=slot.drink.description,
                )
                for slot in state.p_drinks
            ],
            logs=list(state.logs),
        )
