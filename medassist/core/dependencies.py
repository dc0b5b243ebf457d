"""Dependency providers for API handlers."""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

from sqlalchemy.orm import Session

from medassist.core.config import get_config
from medassist.database.db import get_db
from medassist.services.asset_fetcher import AssetFetcher
from medassist.services.email_transport import EmailTransport, build_transport


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


@lru_cache(maxsize=1)
def get_email_transport() -> EmailTransport:
    """One transport per process; the sandbox outbox lives as long as the app."""
    return build_transport(get_config())


def get_asset_fetcher() -> AssetFetcher:
    return AssetFetcher()
