import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from ...config import AuthConfig
from ...domain.entities import SessionRecord
from ...domain.errors import SessionExpired, SessionNotFound, StorageUnavailable

logger = structlog.get_logger()

TOKEN_BYTES = 32
_MAX_TOKEN_ATTEMPTS = 3


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ISessionRepository:
    def insert(self, token: str, user_id: int, expires_at: datetime) -> bool: ...
    def get(self, token: str) -> SessionRecord | None: ...
    def delete(self, token: str) -> None: ...

class SessionStore:
    """Серверные сессии с фиксированным TTL и ленивым истечением.

    Истёкшая запись удаляется при первом обращении к ней; фонового
    процесса очистки нет, поэтому в хранилище могут временно оставаться
    истёкшие строки.
    """

    def __init__(self, repo: ISessionRepository, config: AuthConfig,
                 clock: Callable[[], datetime] = utcnow):
        self.repo = repo
        self.ttl = timedelta(seconds=config.session_ttl_seconds)
        self.clock = clock

    def create(self, user_id: int) -> str:
        expires_at = self.clock() + self.ttl
        for _ in range(_MAX_TOKEN_ATTEMPTS):
            token = secrets.token_urlsafe(TOKEN_BYTES)
            if self.repo.insert(token, user_id, expires_at):
                logger.info("session_created", user_id=user_id, expires_at=expires_at.isoformat())
                return token
        raise StorageUnavailable("Could not allocate a unique session token")

    def lookup(self, token: str) -> SessionRecord:
        rec = self.repo.get(token)
        if rec is None:
            raise SessionNotFound()
        if rec.expires_at <= self.clock():
            self.repo.delete(token)
            logger.info("session_expired", user_id=rec.user_id)
            raise SessionExpired()
        return rec

    def resolve(self, token: str) -> SessionRecord | None:
        if not token:
            return None
        try:
            return self.lookup(token)
        except (SessionNotFound, SessionExpired):
            return None

    def delete(self, token: str) -> None:
        if token:
            self.repo.delete(token)
