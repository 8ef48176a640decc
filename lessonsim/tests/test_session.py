"""
Tests for the session manager.

Tests:
- Session lifecycle (create, get, end, list, cleanup)
- Accepted and rejected transitions
- Seeded sessions are reproducible
"""

import threading

import pytest

from ..engine_core.state import LessonAttribute
from ..session import SessionManager, SessionNotFoundError
from ..spec_schema import Effect, EffectType, PDrink
from .conftest import make_card


def _deck():
    return [
        make_card(f"c{i}", effects=[Effect(type=EffectType.SCORE_FIXED, value=10)])
        for i in range(6)
    ]


@pytest.fixture
def manager():
    return SessionManager()


class TestLifecycle:
    """Tests for creating and ending sessions."""

    def test_create_session(self, manager):
        session = manager.create_session(_deck(), {"vocal": 100, "hp": 30}, ["vocal", "dance", "visual"], seed=1)

        state = session.game_state
        assert state.turn == 1
        assert state.max_turns == 3
        assert state.vocal == 100
        assert len(state.hand) == 3
        assert manager.get_session(session.session_id) is session

    def test_max_turns_default(self, manager):
        session = manager.create_session(_deck())
        assert session.game_state.max_turns == 12
        assert session.game_state.current_turn_attribute == LessonAttribute.VOCAL

    def test_unknown_session(self, manager):
        with pytest.raises(SessionNotFoundError) as exc_info:
            manager.get_session("missing")
        assert str(exc_info.value) == "Session missing not found"

    def test_end_session(self, manager):
        session = manager.create_session(_deck())
        assert manager.end_session(session.session_id)
        assert not manager.end_session(session.session_id)
        with pytest.raises(SessionNotFoundError):
            manager.get_session(session.session_id)

    def test_list_active_sessions(self, manager):
        running = manager.create_session(_deck(), turn_attributes=["vocal", "vocal"])
        done = manager.create_session(_deck(), turn_attributes=["vocal"])
        assert done.is_finished
        assert manager.list_active_sessions() == [running.session_id]

    def test_cleanup_stale_sessions(self, manager):
        old = manager.create_session(_deck())
        fresh = manager.create_session(_deck())
        old.created_at -= 7200

        assert manager.cleanup_stale_sessions(max_age_seconds=3600) == 1
        assert manager.get_session(fresh.session_id) is fresh
        with pytest.raises(SessionNotFoundError):
            manager.get_session(old.session_id)

    def test_listing_during_concurrent_creates(self, manager):
        """Listing and cleanup stay safe while other threads add sessions."""
        errors = []

        def create():
            for _ in range(20):
                manager.create_session(_deck())

        def scan():
            try:
                for _ in range(50):
                    manager.list_active_sessions()
                    manager.cleanup_stale_sessions(max_age_seconds=3600)
            except RuntimeError as e:
                errors.append(e)

        threads = [threading.Thread(target=create) for _ in range(3)] + [threading.Thread(target=scan)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(manager.list_active_sessions()) == 60


class TestTransitions:
    """Tests for play, end turn and drinks through a session."""

    def test_play_card(self, manager):
        session = manager.create_session(_deck(), turn_attributes=["vocal"] * 3, seed=3)
        card_id = session.game_state.hand[0].id

        assert session.play_card(card_id)
        assert session.game_state.score == 10
        assert session.game_state.cards_played == 1

        # one play per turn
        other = session.game_state.hand[0].id
        before = session.game_state
        assert not session.play_card(other)
        assert session.game_state is before

    def test_play_unknown_card(self, manager):
        session = manager.create_session(_deck(), seed=3)
        assert not session.play_card("nope")

    def test_end_turn(self, manager):
        session = manager.create_session(_deck(), turn_attributes=["vocal", "dance"], seed=3)
        assert session.end_turn()
        assert session.game_state.turn == 2
        assert session.game_state.current_turn_attribute == LessonAttribute.DANCE
        assert session.is_finished
        assert not session.end_turn()
        assert session.game_state.turn == 2

    def test_use_drink(self, manager):
        drink = PDrink(id="tea", name="Tea", effects=(Effect(type=EffectType.BUFF_GENKI, value=7),))
        session = manager.create_session(_deck(), drinks=[drink], seed=3)

        assert session.use_drink("tea")
        assert session.game_state.genki == 7
        assert not session.use_drink("tea")
        assert not session.use_drink("coffee")

    def test_preview_cost(self, manager):
        deck = [make_card(f"c{i}", cost=4) for i in range(3)]
        session = manager.create_session(deck, seed=3)
        assert session.preview_cost("c0") == 4
        assert session.preview_cost("nope") is None

    def test_seed_is_reproducible(self, manager):
        first = manager.create_session(_deck(), seed=9)
        second = manager.create_session(_deck(), seed=9)
        assert [c.id for c in first.game_state.hand] == [c.id for c in second.game_state.hand]
        assert first.session_id != second.session_id
