from fastapi import Depends, HTTPException, Request, status

from .wiring import get_auth_config, get_resolver
from ...application.use_cases.resolve_session import SessionResolver
from ...config import AuthConfig
from ...domain.entities import Identity

def get_session_token(request: Request, config: AuthConfig = Depends(get_auth_config)) -> str | None:
    return request.cookies.get(config.cookie_name)

def get_optional_identity(
    token: str | None = Depends(get_session_token),
    resolver: SessionResolver = Depends(get_resolver),
) -> Identity | None:
    return resolver.resolve_session(token)

def get_identity(identity: Identity | None = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return identity
