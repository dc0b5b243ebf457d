"""Engine and session factory for the invoicing database."""

from __future__ import annotations

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from medassist.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()
DATABASE_URL = config.DATABASE_URL


def build_engine(database_url: str) -> Engine:
    echo = config.DEBUG and config.LOG_LEVEL == "DEBUG"
    if database_url.startswith("sqlite"):
        # Request handlers run in a threadpool, so connections cannot be thread-bound.
        return create_engine(database_url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
        max_overflow=20,
    )


engine = build_engine(DATABASE_URL)
# Objects stay readable after commit; services hand them straight to the renderer and schemas.
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db() -> None:
    """Create every table that does not exist yet."""
    from medassist.models import Base

    Base.metadata.create_all(bind=engine)
    logger.info("database.schema.ready", extra={"event": "database.schema.ready"})


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def verify_database_connection() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("database.connection_failed", extra={"event": "database.connection_failed"})
        return False
    return True
