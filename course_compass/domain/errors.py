class AuthError(Exception):
    """Базовая ошибка слоя аутентификации."""

    message = "Authentication error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidIdentifier(AuthError):
    message = "Invalid identifier"


class DuplicateEmail(AuthError):
    message = "User with this email already exists."


class DuplicateUsername(AuthError):
    message = "Username is already taken."


class InvalidCredentials(AuthError):
    # одно сообщение на все случаи, чтобы не раскрывать существование аккаунта
    message = "Invalid email, password, or role."


class SessionNotFound(AuthError):
    message = "Session not found"


class SessionExpired(AuthError):
    message = "Session expired"


class StorageUnavailable(AuthError):
    message = "Storage unavailable"
