from __future__ import annotations

from client import state as app_state
from client.state import AppState
from shared.models import HISTORY_LIMIT, ChatMessage, ChatSession


def _exchange(state: AppState, text: str, now_ms: int) -> AppState:
    return app_state.record_exchange(
        state,
        text,
        f"re: {text}",
        state.current_model,
        now_ms=now_ms,
        now_iso=f"iso-{now_ms}",
    )


def test_start_new_twice_creates_no_entries() -> None:
    state = app_state.start_new(AppState())
    state = app_state.start_new(state)
    state = app_state.upsert(state, now_ms=1, now_iso="t")

    assert state.chat_history == ()
    assert state.current_chat_id is None


def test_repeated_exchanges_keep_single_entry_at_front() -> None:
    state = _exchange(AppState(), "first chat", 100)
    state = app_state.start_new(state)
    state = _exchange(state, "second chat", 200)
    second_id = state.current_chat_id
    for offset in range(3):
        state = _exchange(state, f"more {offset}", 300 + offset)

    ids = [session.id for session in state.chat_history]
    assert ids.count(second_id) == 1
    assert state.chat_history[0].id == second_id
    assert len(state.chat_history[0].messages) == 8
    assert state.chat_history[0].timestamp == "iso-302"


def test_session_id_assigned_lazily_from_clock() -> None:
    state = app_state.start_new(AppState())
    assert state.current_chat_id is None

    state = _exchange(state, "hello", 1700000000123)

    assert state.current_chat_id == "1700000000123"
    assert state.chat_history[0].id == "1700000000123"


def test_ids_stay_unique_within_same_millisecond() -> None:
    state = _exchange(AppState(), "one", 500)
    state = app_state.start_new(state)
    state = _exchange(state, "two", 500)

    assert [session.id for session in state.chat_history] == ["501", "500"]


def test_updating_older_session_moves_it_to_front() -> None:
    state = _exchange(AppState(), "alpha", 1)
    alpha_id = state.current_chat_id
    state = app_state.start_new(state)
    state = _exchange(state, "beta", 2)

    state, loaded = app_state.load(state, alpha_id or "")
    assert loaded is not None
    state = _exchange(state, "alpha again", 3)

    assert [session.id for session in state.chat_history] == ["1", "2"]
    assert len(state.chat_history[0].messages) == 4


def test_history_capped_and_oldest_evicted() -> None:
    state = AppState()
    for index in range(HISTORY_LIMIT + 5):
        state = app_state.start_new(state)
        state = _exchange(state, f"chat {index}", 1000 + index)

    assert len(state.chat_history) == HISTORY_LIMIT
    titles = [session.title for session in state.chat_history]
    assert titles[0] == f"chat {HISTORY_LIMIT + 4}"
    assert titles[-1] == "chat 5"
    assert "chat 4" not in titles


def test_title_truncated_and_fixed_at_creation() -> None:
    long_text = "x" * 45
    state = _exchange(AppState(), long_text, 10)
    assert state.chat_history[0].title == "x" * 30

    tampered = ChatMessage(role="user", content="replaced first message")
    state = AppState(
        chat_history=state.chat_history,
        current_chat_id=state.current_chat_id,
        messages=(tampered, *state.messages[1:]),
    )
    state = app_state.upsert(state, now_ms=11, now_iso="t")

    assert state.chat_history[0].title == "x" * 30


def test_load_unknown_id_is_noop() -> None:
    state = _exchange(AppState(), "hi", 1)

    updated, session = app_state.load(state, "missing")

    assert session is None
    assert updated is state


def test_load_replaces_buffer_and_model() -> None:
    stored = ChatSession(
        id="42",
        title="Stored",
        messages=(ChatMessage(role="user", content="q"), ChatMessage(role="assistant", content="a")),
        timestamp="2024-01-01T00:00:00.000Z",
        model="anthropic/claude-3-opus",
    )
    state = AppState(chat_history=(stored,), messages=(ChatMessage(role="user", content="x"),))

    updated, session = app_state.load(state, "42")

    assert session == stored
    assert updated.current_chat_id == "42"
    assert updated.messages == stored.messages
    assert updated.current_model == "anthropic/claude-3-opus"


def test_remove_active_session_resets_buffer() -> None:
    state = _exchange(AppState(), "keep", 1)
    state = app_state.start_new(state)
    state = _exchange(state, "drop", 2)

    state = app_state.remove(state, "2")

    assert [session.id for session in state.chat_history] == ["1"]
    assert state.current_chat_id is None
    assert state.messages == ()


def test_remove_unknown_id_keeps_history() -> None:
    state = _exchange(AppState(), "keep", 1)

    updated = app_state.remove(state, "nope")

    assert updated.chat_history == state.chat_history
    assert updated.current_chat_id == "1"


def test_clear_empties_history_and_active_session() -> None:
    state = _exchange(AppState(), "hello", 1)

    state = app_state.clear(state)

    assert state.chat_history == ()
    assert state.current_chat_id is None
    assert state.total_tokens == 0


def test_record_exchange_accumulates_tokens_and_start_new_resets() -> None:
    state = app_state.record_exchange(
        AppState(), "a", "b", "m1", now_ms=1, now_iso="t", tokens=12
    )
    state = app_state.record_exchange(state, "c", "d", "m1", now_ms=2, now_iso="t", tokens=8)
    assert state.total_tokens == 20
    assert state.chat_history[0].model == "m1"

    assert app_state.start_new(state).total_tokens == 0


def test_toggle_theme_flips() -> None:
    state = app_state.toggle_theme(AppState())
    assert state.theme == "light"
    assert app_state.toggle_theme(state).theme == "dark"
