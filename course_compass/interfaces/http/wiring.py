from fastapi import Depends, FastAPI, Request
from sqlalchemy.orm import Session, sessionmaker

from .gatekeeper import Decision, Gatekeeper
from ...application.use_cases.credentials import CredentialStore
from ...application.use_cases.resolve_session import SessionResolver
from ...application.use_cases.sessions import SessionStore
from ...config import AuthConfig
from ...domain.entities import Identity
from ...infrastructure.codec import IdCodec
from ...infrastructure.db import get_db
from ...infrastructure.repositories import SessionRepository, UserRepository
from ...infrastructure.security import PasswordHasher


def install(app: FastAPI, config: AuthConfig, session_factory: sessionmaker) -> None:
    """Собирает компоненты аутентификации один раз и кладёт их в app.state."""
    codec = IdCodec(config.hashids_salt, config.hashids_min_length)
    app.state.auth_config = config
    app.state.id_codec = codec
    app.state.password_hasher = PasswordHasher(config.bcrypt_rounds)
    app.state.gatekeeper = Gatekeeper(codec)
    app.state.session_factory = session_factory


def build_session_store(db: Session, config: AuthConfig) -> SessionStore:
    return SessionStore(SessionRepository(db), config)


def build_credential_store(db: Session, hasher: PasswordHasher) -> CredentialStore:
    return CredentialStore(UserRepository(db), hasher)


def build_resolver(db: Session, app: FastAPI) -> SessionResolver:
    return SessionResolver(
        build_session_store(db, app.state.auth_config),
        build_credential_store(db, app.state.password_hasher),
    )


def gate_request(app: FastAPI, path: str, cookie_value: str | None) -> Decision:
    """Решение привратника; сессия БД открывается только если нужна личность."""

    def resolve(token: str) -> Identity | None:
        db = app.state.session_factory()
        try:
            return build_resolver(db, app).resolve_session(token)
        finally:
            db.close()

    return app.state.gatekeeper.evaluate(path, cookie_value, resolve)


# --- FastAPI dependencies

def get_auth_config(request: Request) -> AuthConfig:
    return request.app.state.auth_config

def get_codec(request: Request) -> IdCodec:
    return request.app.state.id_codec

def get_gatekeeper(request: Request) -> Gatekeeper:
    return request.app.state.gatekeeper

def get_session_store(request: Request, db: Session = Depends(get_db)) -> SessionStore:
    return build_session_store(db, request.app.state.auth_config)

def get_credential_store(request: Request, db: Session = Depends(get_db)) -> CredentialStore:
    return build_credential_store(db, request.app.state.password_hasher)

def get_resolver(
    sessions: SessionStore = Depends(get_session_store),
    credentials: CredentialStore = Depends(get_credential_store),
) -> SessionResolver:
    return SessionResolver(sessions, credentials)
