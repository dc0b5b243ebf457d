"""Process startup: logging, schema creation and fail-fast checks."""

from __future__ import annotations

import logging

from medassist.core.config import get_config
from medassist.core.logging_config import configure_logging
from medassist.database import db as database

logger = logging.getLogger(__name__)


def _warn(event: str, **fields) -> None:
    logger.warning(event, extra={"event": event, **fields})


def validate_startup_config() -> None:
    """Refuse to start without a database; warn about risky but runnable setups."""
    config = get_config()
    if not database.verify_database_connection():
        raise RuntimeError("Database connectivity check failed.")

    scheme = database.DATABASE_URL.split("://", 1)[0]
    if config.is_production and scheme == "sqlite":
        _warn("startup.production.sqlite_detected")
    if not config.PDF_FONT_PATH:
        _warn("startup.pdf.builtin_fonts", detail="Georgian text needs PDF_FONT_PATH")

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": scheme,
            "email_transport": config.EMAIL_TRANSPORT,
        },
    )


def bootstrap() -> None:
    configure_logging()
    database.init_db()
    validate_startup_config()
