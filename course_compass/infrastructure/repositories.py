from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .models import SessionORM, UserORM
from ..application.use_cases.credentials import IUserRepository
from ..application.use_cases.sessions import ISessionRepository
from ..domain.entities import Role, SessionRecord, User, UserWithHash
from ..domain.errors import DuplicateEmail, DuplicateUsername, StorageUnavailable

logger = structlog.get_logger()


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite возвращает naive datetime, храним всегда в UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_domain(u: UserORM) -> User:
    return User(
        id=u.id,
        username=u.username,
        email=u.email,
        role=Role(u.role),
        avatar_url=u.avatar_url,
        created_at=_as_utc(u.created_at),
    )


class _Repository:
    def __init__(self, db: Session): self.db = db

    def _fail(self, op: str, exc: SQLAlchemyError) -> StorageUnavailable:
        self.db.rollback()
        logger.warning("storage_error", operation=op, error=exc.__class__.__name__)
        return StorageUnavailable()


class UserRepository(_Repository, IUserRepository):
    def get_by_id(self, user_id: int) -> User | None:
        try:
            row = self.db.get(UserORM, user_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise self._fail("users.get_by_id", e) from e
        return to_domain(row) if row else None

    def get_by_email_and_role(self, email: str, role: Role) -> UserWithHash | None:
        try:
            row = self.db.scalars(
                select(UserORM).where(UserORM.email == email, UserORM.role == role.value)
            ).first()
        except SQLAlchemyError as e:
            raise self._fail("users.get_by_email_and_role", e) from e
        return UserWithHash(user=to_domain(row), password_hash=row.password_hash) if row else None

    def email_exists(self, email: str) -> bool:
        try:
            return self.db.scalar(select(UserORM.id).where(UserORM.email == email)) is not None
        except SQLAlchemyError as e:
            raise self._fail("users.email_exists", e) from e

    def username_exists(self, username: str) -> bool:
        try:
            return self.db.scalar(select(UserORM.id).where(UserORM.username == username)) is not None
        except SQLAlchemyError as e:
            raise self._fail("users.username_exists", e) from e

    def create(self, username: str, email: str, password_hash: str,
               role: Role, avatar_url: str | None = None) -> User:
        row = UserORM(username=username, email=email, password_hash=password_hash,
                      role=role.value, avatar_url=avatar_url)
        try:
            self.db.add(row); self.db.commit(); self.db.refresh(row)
        except IntegrityError as e:
            # гонка: параллельная вставка прошла раньше нашей проверки
            self.db.rollback()
            if self.email_exists(email):
                raise DuplicateEmail() from e
            if self.username_exists(username):
                raise DuplicateUsername() from e
            raise self._fail("users.create", e) from e
        except SQLAlchemyError as e:
            raise self._fail("users.create", e) from e
        return to_domain(row)

    def delete(self, user_id: int) -> None:
        try:
            self.db.execute(delete(UserORM).where(UserORM.id == user_id))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("users.delete", e) from e


class SessionRepository(_Repository, ISessionRepository):
    def insert(self, token: str, user_id: int, expires_at: datetime) -> bool:
        """Возвращает False, если такой токен уже существует."""
        try:
            self.db.add(SessionORM(id=token, user_id=user_id, expires_at=expires_at))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return False
        except SQLAlchemyError as e:
            raise self._fail("sessions.insert", e) from e
        return True

    def get(self, token: str) -> SessionRecord | None:
        try:
            row = self.db.scalars(
                select(SessionORM)
                .where(SessionORM.id == token)
                .execution_options(populate_existing=True)
            ).first()
        except SQLAlchemyError as e:
            raise self._fail("sessions.get", e) from e
        if not row:
            return None
        return SessionRecord(token=row.id, user_id=row.user_id, expires_at=_as_utc(row.expires_at))

    def delete(self, token: str) -> None:
        try:
            self.db.execute(delete(SessionORM).where(SessionORM.id == token))
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("sessions.delete", e) from e
