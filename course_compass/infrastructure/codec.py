from hashids import Hashids

from ..domain.errors import InvalidIdentifier


class IdCodec:
    """Обратимое кодирование числовых id в непрозрачные токены для URL.

    Соль и минимальная длина задаются один раз при старте процесса. Смена соли
    делает недействительными все ранее выданные токены.
    """

    def __init__(self, salt: str, min_length: int = 8):
        self._hashids = Hashids(salt=salt, min_length=min_length)

    def encode(self, value: int) -> str:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError("Only non-negative integers can be encoded")
        return self._hashids.encode(value)

    def decode(self, token: str) -> int | None:
        if not token or not isinstance(token, str):
            return None
        try:
            numbers = self._hashids.decode(token)
        except (ValueError, TypeError, IndexError):
            return None
        if len(numbers) != 1:
            return None
        # hashids сам сверяет повторным кодированием, но проверим явно
        if self._hashids.encode(numbers[0]) != token:
            return None
        return numbers[0]

    def require(self, token: str) -> int:
        value = self.decode(token)
        if value is None:
            raise InvalidIdentifier()
        return value
