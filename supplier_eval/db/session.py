# db/session.py
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from supplier_eval.app.core.config import settings


def build_engine(url: str = settings.DATABASE_URL) -> Engine:
    if url.startswith("sqlite"):
        # sync endpoints run in FastAPI's threadpool
        return create_engine(url, connect_args={"check_same_thread": False})
    # stale pooled connections are replaced before use
    return create_engine(url, pool_pre_ping=True)


engine = build_engine()
LocalSession = sessionmaker(autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Request-scoped session dependency."""
    with LocalSession() as db:
        yield db


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for startup hooks and scripts; uncommitted work is rolled back on error."""
    db = LocalSession()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
