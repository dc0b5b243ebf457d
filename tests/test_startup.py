from __future__ import annotations

import logging

import pytest

import medassist.core.startup as startup_module
from medassist.core import config as config_module
from medassist.core.exceptions import ConfigurationError


class _Cfg:
    ENV = "production"
    EMAIL_TRANSPORT = "smtp"
    PDF_FONT_PATH = None

    @property
    def is_production(self) -> bool:
        return True


def test_startup_raises_when_database_unreachable(monkeypatch):
    monkeypatch.setattr(startup_module, "get_config", lambda: _Cfg())
    monkeypatch.setattr(startup_module.database, "verify_database_connection", lambda: False)

    with pytest.raises(RuntimeError, match="Database connectivity check failed"):
        startup_module.validate_startup_config()


def test_startup_warns_about_sqlite_and_builtin_fonts(monkeypatch, caplog):
    monkeypatch.setattr(startup_module, "get_config", lambda: _Cfg())
    monkeypatch.setattr(startup_module.database, "verify_database_connection", lambda: True)
    monkeypatch.setattr(startup_module.database, "DATABASE_URL", "sqlite:///./medassist.db")

    with caplog.at_level(logging.INFO, logger="medassist.core.startup"):
        startup_module.validate_startup_config()

    messages = [record.getMessage() for record in caplog.records]
    assert "startup.production.sqlite_detected" in messages
    assert "startup.pdf.builtin_fonts" in messages
    assert "startup.config.validated" in messages


@pytest.mark.parametrize(
    ("env", "message"),
    [
        ({"EMAIL_TRANSPORT": "carrier-pigeon"}, "EMAIL_TRANSPORT"),
        ({"EMAIL_TRANSPORT": "resend"}, "RESEND_API_KEY"),
        ({"ENV": "production", "EMAIL_TRANSPORT": "sandbox"}, "sandbox"),
        ({"DATABASE_URL": "mysql://db/medassist"}, "DATABASE_URL"),
        ({"PDF_BOLD_FONT_PATH": "/fonts/bold.ttf"}, "PDF_BOLD_FONT_PATH"),
    ],
)
def test_invalid_configuration_is_rejected(monkeypatch, env, message):
    for key in ("ENV", "EMAIL_TRANSPORT", "RESEND_API_KEY", "DATABASE_URL", "PDF_FONT_PATH", "PDF_BOLD_FONT_PATH"):
        monkeypatch.delenv(key, raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)

    with pytest.raises(ConfigurationError, match=message):
        config_module._build_config()
