from passlib.context import CryptContext


class PasswordHasher:
    """bcrypt_sha256 с настраиваемой стоимостью; при 12 раундах проверка занимает ~250 мс."""

    def __init__(self, rounds: int = 12):
        self._ctx = CryptContext(
            schemes=["bcrypt_sha256"],
            deprecated="auto",
            bcrypt_sha256__rounds=rounds,
        )

    def hash(self, plain: str) -> str: return self._ctx.hash(plain)

    def verify(self, plain: str, hashed: str) -> bool:
        if not plain or not hashed:
            return False
        try:
            return self._ctx.verify(plain, hashed)
        except (ValueError, TypeError):
            # хэш не распознан: считаем пароль неверным
            return False
