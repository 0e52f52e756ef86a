from ...domain.entities import Role, User, UserWithHash
from ...domain.errors import DuplicateEmail, DuplicateUsername


class IUserRepository:
    def get_by_id(self, user_id: int) -> User | None: ...
    def get_by_email_and_role(self, email: str, role: Role) -> UserWithHash | None: ...
    def email_exists(self, email: str) -> bool: ...
    def username_exists(self, username: str) -> bool: ...
    def create(self, username: str, email: str, password_hash: str,
               role: Role, avatar_url: str | None = None) -> User: ...
    def delete(self, user_id: int) -> None: ...

class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...

class CredentialStore:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def find_by_email_and_role(self, email: str, role: Role) -> UserWithHash | None:
        return self.repo.get_by_email_and_role(email, role)

    def create_user(self, username: str, email: str, password: str,
                    role: Role, avatar_url: str | None = None) -> User:
        # проверка до вставки; параллельный дубль отлавливает репозиторий по IntegrityError
        if self.repo.email_exists(email):
            raise DuplicateEmail()
        if self.repo.username_exists(username):
            raise DuplicateUsername()
        pwd_hash = self.hasher.hash(password)
        return self.repo.create(username, email, pwd_hash, role, avatar_url or None)

    def verify_password(self, plain: str, stored_hash: str) -> bool:
        return self.hasher.verify(plain, stored_hash)

    def get_user_details_by_id(self, user_id: int) -> User | None:
        return self.repo.get_by_id(user_id)

    def remove_user(self, user_id: int) -> None:
        self.repo.delete(user_id)
