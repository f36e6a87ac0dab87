from __future__ import annotations

from uuid import uuid4

import pytest

from quizchat.models import Language
from quizchat.session_store import SessionStore


def test_create_get_and_drop() -> None:
    store = SessionStore()
    s = store.create_session(language=Language.ms)

    assert len(store) == 1
    assert store.get_session(s.session_id) is s
    assert store.require_session(s.session_id).language == Language.ms
    assert s.started is False

    assert store.drop_session(s.session_id) is True
    assert store.drop_session(s.session_id) is False
    assert store.get_session(s.session_id) is None


def test_require_unknown_session() -> None:
    with pytest.raises(ValueError) as e:
        SessionStore().require_session(uuid4())
    assert str(e.value) == "Session not found"


def test_default_language_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUIZCHAT_DEFAULT_LANGUAGE", "MS")
    assert SessionStore().create_session().language == Language.ms

    monkeypatch.setenv("QUIZCHAT_DEFAULT_LANGUAGE", "de")
    with pytest.raises(ValueError):
        SessionStore().create_session()


def test_list_sessions_newest_first() -> None:
    store = SessionStore()
    first = store.create_session(language=Language.en)
    second = store.create_session(language=Language.en)
    first.created_at = second.created_at.replace(year=second.created_at.year - 1)

    assert store.list_sessions() == [second, first]
