"""Environment-driven settings for the invoicing service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from medassist.core.exceptions import ConfigurationError

load_dotenv()

EMAIL_TRANSPORTS = {"sandbox", "smtp", "resend"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
DATABASE_SCHEMES = {"sqlite", "postgresql", "postgresql+psycopg"}

# Settings each transport cannot run without.
TRANSPORT_REQUIREMENTS = {
    "smtp": ("SMTP_SERVER",),
    "resend": ("RESEND_API_KEY",),
}


def _env(name: str, default: str | None = None) -> str | None:
    """Stripped environment value; blank counts as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_flag(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _env_number(name: str, default: str, cast):
    raw = _env(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.") from None


@dataclass(frozen=True)
class Config:
    """Validated runtime settings."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str | None
    EMAIL_TRANSPORT: str
    EMAIL_FROM_ADDRESS: str
    EMAIL_FROM_NAME: str | None
    SMTP_SERVER: str | None
    SMTP_PORT: int
    SMTP_USERNAME: str | None
    SMTP_PASSWORD: str | None
    RESEND_API_KEY: str | None
    RESEND_API_URL: str
    ASSET_FETCH_TIMEOUT_SECONDS: float
    ASSET_MAX_BYTES: int
    PDF_FONT_PATH: str | None
    PDF_BOLD_FONT_PATH: str | None
    DEFAULT_INVOICE_PREFIX: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    environment = (env or _env("ENV", "development")).lower()
    production = environment == "production"

    config = Config(
        APP_NAME="MedAssist Invoicing",
        APP_VERSION=_env("APP_VERSION", "1.0.0"),
        ENV=environment,
        # Debug mode never leaks into production, whatever DEBUG says.
        DEBUG=False if production else _env_flag("DEBUG", True),
        DATABASE_URL=_env("DATABASE_URL", "sqlite:///./medassist.db"),
        API_PREFIX=_env("API_PREFIX", "/api/v1"),
        LOG_LEVEL=_env("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=_env("LOG_FILE"),
        EMAIL_TRANSPORT=_env("EMAIL_TRANSPORT", "sandbox").lower(),
        EMAIL_FROM_ADDRESS=_env("EMAIL_FROM_ADDRESS", "invoices@medassist.ge"),
        EMAIL_FROM_NAME=_env("EMAIL_FROM_NAME"),
        SMTP_SERVER=_env("SMTP_SERVER"),
        SMTP_PORT=_env_number("SMTP_PORT", "587", int),
        SMTP_USERNAME=_env("SMTP_USERNAME"),
        SMTP_PASSWORD=_env("SMTP_PASSWORD"),
        RESEND_API_KEY=_env("RESEND_API_KEY"),
        RESEND_API_URL=_env("RESEND_API_URL", "https://api.resend.com/emails"),
        ASSET_FETCH_TIMEOUT_SECONDS=_env_number("ASSET_FETCH_TIMEOUT_SECONDS", "10", float),
        ASSET_MAX_BYTES=_env_number("ASSET_MAX_BYTES", str(5 * 1024 * 1024), int),
        PDF_FONT_PATH=_env("PDF_FONT_PATH"),
        PDF_BOLD_FONT_PATH=_env("PDF_BOLD_FONT_PATH"),
        DEFAULT_INVOICE_PREFIX=_env("DEFAULT_INVOICE_PREFIX", "INV"),
    )
    _validate_config(config)
    return config


def _check_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in DATABASE_SCHEMES:
        raise ConfigurationError(f"DATABASE_URL scheme {parsed.scheme!r} is not supported; use sqlite or postgresql.")
    if parsed.scheme != "sqlite" and not parsed.hostname:
        raise ConfigurationError("DATABASE_URL for PostgreSQL needs a hostname.")


def _check_email(config: Config) -> None:
    if config.EMAIL_TRANSPORT not in EMAIL_TRANSPORTS:
        raise ConfigurationError(f"EMAIL_TRANSPORT must be one of {', '.join(sorted(EMAIL_TRANSPORTS))}.")
    if config.is_production and config.EMAIL_TRANSPORT == "sandbox":
        raise ConfigurationError("Production cannot use the sandbox email transport.")
    for setting in TRANSPORT_REQUIREMENTS.get(config.EMAIL_TRANSPORT, ()):
        if not getattr(config, setting):
            raise ConfigurationError(f"{setting} is required for the {config.EMAIL_TRANSPORT} transport.")


def _validate_config(config: Config) -> None:
    _check_database_url(config.DATABASE_URL)
    if config.LOG_LEVEL not in LOG_LEVELS:
        raise ConfigurationError(f"LOG_LEVEL must be one of {', '.join(sorted(LOG_LEVELS))}.")
    _check_email(config)
    if config.ASSET_FETCH_TIMEOUT_SECONDS <= 0:
        raise ConfigurationError("ASSET_FETCH_TIMEOUT_SECONDS must be positive.")
    if config.ASSET_MAX_BYTES < 1:
        raise ConfigurationError("ASSET_MAX_BYTES must be at least 1.")
    if config.PDF_BOLD_FONT_PATH and not config.PDF_FONT_PATH:
        raise ConfigurationError("PDF_BOLD_FONT_PATH requires PDF_FONT_PATH.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Validated settings, built once per requested environment."""
    return _build_config(env)
