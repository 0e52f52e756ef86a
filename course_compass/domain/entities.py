from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"


@dataclass(frozen=True)
class User:
    id: int | None
    username: str
    email: str
    role: Role = Role.STUDENT
    avatar_url: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class UserWithHash:
    user: User
    password_hash: str


@dataclass(frozen=True)
class Identity:
    """Аутентифицированный пользователь текущего запроса."""

    id: int
    username: str
    role: Role
    avatar_url: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(id=user.id, username=user.username, role=user.role, avatar_url=user.avatar_url)


@dataclass(frozen=True)
class SessionRecord:
    token: str
    user_id: int
    expires_at: datetime
