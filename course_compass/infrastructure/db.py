from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from ..config import settings


def make_engine(url: str) -> Engine:
    connect_args = {}
    kwargs = {}
    if url.startswith("postgresql"):
        connect_args = {"client_encoding": "utf8"}
        kwargs = {"pool_size": 10, "max_overflow": 20, "pool_recycle": 3600}
    elif url.startswith("sqlite"):
        # сессии читаются из middleware в пуле потоков
        connect_args = {"check_same_thread": False}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args, echo=False, **kwargs)


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db():
    db = SessionLocal()
    try: yield db
    finally: db.close()
