import os
import sys
import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from course_compass.application.use_cases.credentials import CredentialStore
from course_compass.application.use_cases.sessions import SessionStore
from course_compass.config import AuthConfig
from course_compass.domain.entities import Role
from course_compass.infrastructure.codec import IdCodec
from course_compass.infrastructure.db import get_db
from course_compass.infrastructure.models import Base
from course_compass.infrastructure.rate_limit import limiter
from course_compass.infrastructure.repositories import SessionRepository, UserRepository
from course_compass.infrastructure.security import PasswordHasher
from course_compass.interfaces.http.wiring import install
from course_compass.main import app

# Тестовая конфигурация: фиксированная соль и дешёвый bcrypt
TEST_CONFIG = AuthConfig(
    hashids_salt="test-salt",
    hashids_min_length=8,
    session_ttl_seconds=3600,
    cookie_name="course_compass_session",
    bcrypt_rounds=4,
)
COOKIE = TEST_CONFIG.cookie_name
PASSWORD = "password123"

# Тестовая БД в памяти, одно соединение на все потоки
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

# Отключаем rate limiting в тестах
limiter.enabled = False


@pytest.fixture
def auth_config():
    return TEST_CONFIG

@pytest.fixture
def codec():
    return IdCodec(TEST_CONFIG.hashids_salt, TEST_CONFIG.hashids_min_length)

@pytest.fixture
def hasher():
    return PasswordHasher(rounds=TEST_CONFIG.bcrypt_rounds)

@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=test_engine)

@pytest.fixture
def credentials(db_session, hasher):
    return CredentialStore(UserRepository(db_session), hasher)

@pytest.fixture
def sessions(db_session, auth_config):
    return SessionStore(SessionRepository(db_session), auth_config)

@pytest.fixture
def make_user(credentials):
    """Создаёт пользователя напрямую через хранилище учётных данных"""
    def _make(username="alice", email="alice@example.com", role=Role.STUDENT, password=PASSWORD):
        return credentials.create_user(username, email, password, role)
    return _make

@pytest.fixture
def client(db_session):
    """Тестовый клиент с тестовой конфигурацией и БД"""
    install(app, TEST_CONFIG, TestingSessionLocal)
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    # Очищаем после теста
    if get_db in app.dependency_overrides:
        del app.dependency_overrides[get_db]

def signup(client, role="student", username="alice", email="alice@example.com", password=PASSWORD):
    return client.post(
        f"/api/auth/{role}/signup",
        json={"username": username, "email": email, "password": password},
    )
