# backend/parkops/db.py
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from parkops.config import DATABASE_URL


class Base(DeclarativeBase):
    pass


def _connect_args(url: str) -> dict:
    # request handlers run in a threadpool; sqlite connections are thread-bound by default
    if make_url(url).get_backend_name() == "sqlite":
        return {"check_same_thread": False}
    return {}


# pre-ping drops connections the database closed while the api was idle
engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args(DATABASE_URL))

# objects stay readable after commit; responses serialize them after the session ends
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def healthcheck() -> dict:
    """Round-trip to the database; raises if it is unreachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok"}
