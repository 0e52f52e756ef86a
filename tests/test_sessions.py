from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from course_compass.application.use_cases.sessions import SessionStore
from course_compass.domain.errors import SessionExpired, SessionNotFound, StorageUnavailable
from course_compass.infrastructure.repositories import SessionRepository


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def store(db_session, auth_config, clock):
    return SessionStore(SessionRepository(db_session), auth_config, clock=clock)


def test_create_and_resolve(store, make_user, clock, auth_config):
    user = make_user()
    token = store.create(user.id)
    rec = store.resolve(token)
    assert rec is not None
    assert rec.user_id == user.id
    assert rec.expires_at == clock.now + timedelta(seconds=auth_config.session_ttl_seconds)

def test_tokens_are_long_and_unique(store, make_user):
    user = make_user()
    tokens = {store.create(user.id) for _ in range(50)}
    assert len(tokens) == 50
    assert all(len(t) >= 43 for t in tokens)

def test_many_sessions_per_user(store, make_user):
    user = make_user()
    first, second = store.create(user.id), store.create(user.id)
    store.delete(first)
    assert store.resolve(first) is None
    assert store.resolve(second).user_id == user.id

def test_resolve_before_and_after_expiry(store, make_user, clock, db_session):
    user = make_user()
    token = store.create(user.id)
    clock.advance(seconds=3599)
    assert store.resolve(token) is not None
    clock.advance(seconds=2)
    assert store.resolve(token) is None
    # истёкшая запись удалена при обнаружении
    assert SessionRepository(db_session).get(token) is None

def test_resolve_exactly_at_expiry_is_expired(store, make_user, clock):
    user = make_user()
    token = store.create(user.id)
    clock.advance(seconds=3600)
    assert store.resolve(token) is None

def test_lookup_signals_reason(store, make_user, clock):
    user = make_user()
    with pytest.raises(SessionNotFound):
        store.lookup("missing")
    token = store.create(user.id)
    clock.advance(days=2)
    with pytest.raises(SessionExpired):
        store.lookup(token)
    with pytest.raises(SessionNotFound):
        store.lookup(token)

def test_delete_is_idempotent(store, make_user):
    user = make_user()
    token = store.create(user.id)
    store.delete(token)
    assert store.resolve(token) is None
    store.delete(token)
    store.delete("never-existed")

def test_resolve_unknown_or_empty(store):
    assert store.resolve("unknown-token") is None
    assert store.resolve("") is None
    assert store.resolve(None) is None

def test_token_collision_is_retried(auth_config):
    repo = MagicMock()
    repo.insert.side_effect = [False, True]
    token = SessionStore(repo, auth_config).create(1)
    assert token
    assert repo.insert.call_count == 2

def test_token_collision_gives_up(auth_config):
    repo = MagicMock()
    repo.insert.return_value = False
    with pytest.raises(StorageUnavailable):
        SessionStore(repo, auth_config).create(1)

def test_storage_error_propagates_from_store(auth_config):
    """Сам SessionStore не глотает ошибки хранилища, это делает резолвер"""
    repo = MagicMock()
    repo.get.side_effect = StorageUnavailable()
    with pytest.raises(StorageUnavailable):
        SessionStore(repo, auth_config).resolve("token")
