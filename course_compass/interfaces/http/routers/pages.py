# Тонкие страничные эндпоинты: рендеринг вне этого сервиса, здесь только
# то, что нужно привратнику и профилю пользователя.
from fastapi import APIRouter, Depends, HTTPException

from .auth import to_user_resp
from ....application.use_cases.credentials import CredentialStore
from ....domain.entities import Identity, Role
from ....domain.errors import InvalidIdentifier
from ....infrastructure.codec import IdCodec
from ..authz import get_identity
from ..schemas import PageResp
from ..wiring import get_codec, get_credential_store

router = APIRouter(tags=["pages"])

@router.get("/", response_model=PageResp)
def home():
    return PageResp(page="home")

@router.get("/login/{role}", response_model=PageResp)
def login_page(role: Role):
    return PageResp(page="login", role=role.value)

@router.get("/signup/{role}", response_model=PageResp)
def signup_page(role: Role):
    return PageResp(page="signup", role=role.value)

def _owned_user_page(page: str, role: Role, hash_user_id: str, identity: Identity,
                     codec: IdCodec, credentials: CredentialStore) -> PageResp:
    # привратник уже сверил владельца; повторная проверка на случай вызова в обход middleware
    try:
        user_id = codec.require(hash_user_id)
    except InvalidIdentifier:
        raise HTTPException(404, "user not found")
    if user_id != identity.id or role != identity.role:
        raise HTTPException(403, "forbidden")
    user = credentials.get_user_details_by_id(user_id)
    if not user: raise HTTPException(404, "user not found")
    return PageResp(page=page, role=role.value, user=to_user_resp(user, codec))

@router.get("/{role}/{hash_user_id}/dashboard", response_model=PageResp)
def dashboard(role: Role, hash_user_id: str,
              identity: Identity = Depends(get_identity),
              codec: IdCodec = Depends(get_codec),
              credentials: CredentialStore = Depends(get_credential_store)):
    return _owned_user_page("dashboard", role, hash_user_id, identity, codec, credentials)

@router.get("/{role}/{hash_user_id}/profile", response_model=PageResp)
def profile(role: Role, hash_user_id: str,
            identity: Identity = Depends(get_identity),
            codec: IdCodec = Depends(get_codec),
            credentials: CredentialStore = Depends(get_credential_store)):
    return _owned_user_page("profile", role, hash_user_id, identity, codec, credentials)
