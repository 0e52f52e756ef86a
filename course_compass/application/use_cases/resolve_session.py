import structlog

from .sessions import SessionStore
from ...domain.entities import Identity, User
from ...domain.errors import StorageUnavailable

logger = structlog.get_logger()


class IUserLookup:
    def get_user_details_by_id(self, user_id: int) -> User | None: ...

class SessionResolver:
    def __init__(self, sessions: SessionStore, users: IUserLookup):
        self.sessions = sessions
        self.users = users

    def resolve_session(self, raw_cookie_value: str | None) -> Identity | None:
        """Текущая личность по значению cookie или None.

        Любая ошибка хранилища трактуется как «не аутентифицирован».
        """
        if not raw_cookie_value:
            return None
        try:
            rec = self.sessions.resolve(raw_cookie_value)
            if rec is None:
                return None
            user = self.users.get_user_details_by_id(rec.user_id)
            if user is None:
                self.sessions.delete(raw_cookie_value)
                logger.info("orphan_session_deleted", user_id=rec.user_id)
                return None
        except StorageUnavailable as e:
            logger.warning("session_lookup_failed", error=str(e))
            return None
        return Identity.from_user(user)
