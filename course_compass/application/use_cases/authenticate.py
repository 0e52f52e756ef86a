import structlog

from .credentials import CredentialStore
from .sessions import SessionStore
from ..dto import AuthResult, LoginInput, SignupInput
from ...domain.entities import Role
from ...domain.errors import AuthError, InvalidCredentials, StorageUnavailable

logger = structlog.get_logger()

SIGNUP_FAILED = "An error occurred during signup. Please try again."
LOGIN_FAILED = "An error occurred during login. Please try again."


class SignupUser:
    def __init__(self, credentials: CredentialStore, sessions: SessionStore):
        self.credentials = credentials
        self.sessions = sessions

    def execute(self, data: SignupInput, role: Role) -> AuthResult:
        if not data.username:
            return AuthResult(success=False, error="Username is required.")
        try:
            user = self.credentials.create_user(
                data.username, data.email, data.password, role, data.avatar_url
            )
        except StorageUnavailable:
            return AuthResult(success=False, error=SIGNUP_FAILED)
        except AuthError as e:
            logger.info("signup_rejected", reason=e.__class__.__name__)
            return AuthResult(success=False, error=e.message)

        try:
            token = self.sessions.create(user.id)
        except StorageUnavailable:
            # откатываем пользователя, чтобы повторная регистрация не упёрлась в дубль
            self._discard_user(user.id)
            return AuthResult(success=False, error=SIGNUP_FAILED)
        logger.info("user_signed_up", user_id=user.id, role=role.value)
        return AuthResult(success=True, user=user, session_token=token)

    def _discard_user(self, user_id: int) -> None:
        try:
            self.credentials.remove_user(user_id)
        except StorageUnavailable:
            # учётная запись осталась без сессии; войти через login всё ещё можно
            logger.warning("signup_user_left_without_session", user_id=user_id)


class LoginUser:
    def __init__(self, credentials: CredentialStore, sessions: SessionStore):
        self.credentials = credentials
        self.sessions = sessions

    def execute(self, data: LoginInput, role: Role) -> AuthResult:
        try:
            found = self.credentials.find_by_email_and_role(data.email, role)
            if found is None or not self.credentials.verify_password(data.password, found.password_hash):
                raise InvalidCredentials()
            token = self.sessions.create(found.user.id)
        except InvalidCredentials as e:
            logger.info("login_failed", role=role.value)
            return AuthResult(success=False, error=e.message)
        except StorageUnavailable:
            return AuthResult(success=False, error=LOGIN_FAILED)
        return AuthResult(success=True, user=found.user, session_token=token)


class LogoutUser:
    def __init__(self, sessions: SessionStore):
        self.sessions = sessions

    def execute(self, token: str | None) -> None:
        if not token:
            return
        try:
            self.sessions.delete(token)
        except StorageUnavailable:
            # cookie всё равно будет удалена; строка истечёт сама
            logger.warning("logout_session_delete_failed")
