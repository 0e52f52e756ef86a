from dataclasses import dataclass

from pydantic_settings import BaseSettings

DEFAULT_HASHIDS_SALT = "default-salt-please-change"


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./course_compass.db"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    HASHIDS_SALT: str = DEFAULT_HASHIDS_SALT
    HASHIDS_MIN_LENGTH: int = 8

    SESSION_COOKIE_NAME: str = "course_compass_session"
    SESSION_TTL_SECONDS: int = 7 * 24 * 60 * 60  # 7 дней
    BCRYPT_ROUNDS: int = 12

    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "10/minute"
    SIGNUP_RATE_LIMIT: str = "60/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()


@dataclass(frozen=True)
class AuthConfig:
    """Неизменяемая конфигурация аутентификации, создаётся один раз при старте."""

    hashids_salt: str
    hashids_min_length: int = 8
    session_ttl_seconds: int = 7 * 24 * 60 * 60
    cookie_name: str = "course_compass_session"
    cookie_secure: bool = False
    bcrypt_rounds: int = 12

    @classmethod
    def from_settings(cls, s: Settings) -> "AuthConfig":
        return cls(
            hashids_salt=s.HASHIDS_SALT,
            hashids_min_length=s.HASHIDS_MIN_LENGTH,
            session_ttl_seconds=s.SESSION_TTL_SECONDS,
            cookie_name=s.SESSION_COOKIE_NAME,
            cookie_secure=s.APP_ENV.lower() == "production",
            bcrypt_rounds=s.BCRYPT_ROUNDS,
        )

    @property
    def uses_default_salt(self) -> bool:
        return self.hashids_salt == DEFAULT_HASHIDS_SALT

    def cookie_options(self) -> dict:
        return {
            "httponly": True,
            "secure": self.cookie_secure,
            "samesite": "lax",
            "path": "/",
            "max_age": self.session_ttl_seconds,
        }
