"""Session-holding base for invoicing services."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from medassist.database import db as database

logger = logging.getLogger(__name__)


class BaseService:
    """Services share the caller's session, or open their own when given none."""

    def __init__(self, db: Session | None = None) -> None:
        self.db = db if db is not None else database.SessionLocal()

    def commit(self) -> None:
        """Commit, rolling the session back before re-raising on failure."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning(
                "service.commit.failed",
                extra={"event": "service.commit.failed", "service": type(self).__name__},
            )
            raise

    def rollback(self) -> None:
        self.db.rollback()
