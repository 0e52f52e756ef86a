from fastapi import APIRouter, Depends, Request, Response, status

from ....application.dto import LoginInput, SignupInput
from ....application.use_cases.authenticate import LoginUser, LogoutUser, SignupUser
from ....application.use_cases.credentials import CredentialStore
from ....application.use_cases.sessions import SessionStore
from ....config import AuthConfig, settings
from ....domain.entities import Identity, Role, User
from ....infrastructure.codec import IdCodec
from ....infrastructure.metrics import auth_attempts_total
from ....infrastructure.rate_limit import limiter
from ..authz import get_identity, get_session_token
from ..gatekeeper import Gatekeeper
from ..schemas import AuthResp, IdentityResp, LoginReq, RegisterReq, UserResp
from ..wiring import (
    get_auth_config,
    get_codec,
    get_credential_store,
    get_gatekeeper,
    get_session_store,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])

def to_user_resp(user: User, codec: IdCodec) -> UserResp:
    return UserResp(
        id=user.id,
        hash_id=codec.encode(user.id),
        username=user.username,
        email=user.email,
        role=user.role.value,
        avatar_url=user.avatar_url,
        created_at=user.created_at,
    )

def _set_session_cookie(response: Response, config: AuthConfig, token: str) -> None:
    response.set_cookie(config.cookie_name, token, **config.cookie_options())

@router.get("/health")
def health():
    return {"status": "ok"}

@router.post("/{role}/signup", response_model=AuthResp, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.SIGNUP_RATE_LIMIT)
def signup(
    request: Request,
    response: Response,
    role: Role,
    payload: RegisterReq,
    credentials: CredentialStore = Depends(get_credential_store),
    sessions: SessionStore = Depends(get_session_store),
    config: AuthConfig = Depends(get_auth_config),
    codec: IdCodec = Depends(get_codec),
    gatekeeper: Gatekeeper = Depends(get_gatekeeper),
):
    data = SignupInput(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        avatar_url=str(payload.avatar_url) if payload.avatar_url else None,
    )
    result = SignupUser(credentials, sessions).execute(data, role)
    if not result.success:
        auth_attempts_total.labels(action="signup", result="failure").inc()
        response.status_code = status.HTTP_400_BAD_REQUEST
        return AuthResp(success=False, error=result.error)

    auth_attempts_total.labels(action="signup", result="success").inc()
    _set_session_cookie(response, config, result.session_token)
    return AuthResp(
        success=True,
        user=to_user_resp(result.user, codec),
        redirect_to=gatekeeper.dashboard_url(Identity.from_user(result.user)),
    )

@router.post("/{role}/login", response_model=AuthResp)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(
    request: Request,
    response: Response,
    role: Role,
    payload: LoginReq,
    credentials: CredentialStore = Depends(get_credential_store),
    sessions: SessionStore = Depends(get_session_store),
    config: AuthConfig = Depends(get_auth_config),
    codec: IdCodec = Depends(get_codec),
    gatekeeper: Gatekeeper = Depends(get_gatekeeper),
):
    result = LoginUser(credentials, sessions).execute(
        LoginInput(email=payload.email, password=payload.password), role
    )
    if not result.success:
        auth_attempts_total.labels(action="login", result="failure").inc()
        response.status_code = status.HTTP_401_UNAUTHORIZED
        return AuthResp(success=False, error=result.error)

    auth_attempts_total.labels(action="login", result="success").inc()
    _set_session_cookie(response, config, result.session_token)
    return AuthResp(
        success=True,
        user=to_user_resp(result.user, codec),
        redirect_to=gatekeeper.dashboard_url(Identity.from_user(result.user)),
    )

@router.post("/logout")
def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    sessions: SessionStore = Depends(get_session_store),
    config: AuthConfig = Depends(get_auth_config),
):
    LogoutUser(sessions).execute(token)
    response.delete_cookie(
        config.cookie_name, path="/", secure=config.cookie_secure, httponly=True, samesite="lax"
    )
    return {"ok": True}

@router.get("/me", response_model=IdentityResp)
def me(identity: Identity = Depends(get_identity), codec: IdCodec = Depends(get_codec)):
    return IdentityResp(
        id=identity.id,
        hash_id=codec.encode(identity.id),
        username=identity.username,
        role=identity.role.value,
        avatar_url=identity.avatar_url,
    )
