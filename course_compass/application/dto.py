from dataclasses import dataclass

from ..domain.entities import User


@dataclass
class SignupInput:
    username: str
    email: str
    password: str
    avatar_url: str | None = None


@dataclass
class LoginInput:
    email: str
    password: str


@dataclass
class AuthResult:
    success: bool
    user: User | None = None
    error: str | None = None
    session_token: str | None = None
