"""Font selection for invoice PDFs.

The built-in Helvetica faces cover Latin text only; Georgian output needs a
TrueType face such as FiraGO configured through PDF_FONT_PATH.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from medassist.core.config import get_config
from medassist.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

REGULAR_TTF_NAME = "InvoiceSans"
BOLD_TTF_NAME = "InvoiceSans-Bold"


@dataclass(frozen=True)
class FontPair:
    regular: str
    bold: str


BUILTIN_FONTS = FontPair(regular="Helvetica", bold="Helvetica-Bold")


@lru_cache(maxsize=4)
def register_fonts(font_path: str | None, bold_font_path: str | None = None) -> FontPair:
    """Register the configured TrueType faces once per path pair."""
    if not font_path:
        return BUILTIN_FONTS
    try:
        pdfmetrics.registerFont(TTFont(REGULAR_TTF_NAME, font_path))
        if bold_font_path:
            pdfmetrics.registerFont(TTFont(BOLD_TTF_NAME, bold_font_path))
    except Exception as exc:
        raise ConfigurationError(f"Unable to load PDF font: {exc}") from exc
    logger.info("pdf.fonts.registered", extra={"event": "pdf.fonts.registered", "font_path": font_path})
    return FontPair(regular=REGULAR_TTF_NAME, bold=BOLD_TTF_NAME if bold_font_path else REGULAR_TTF_NAME)


def get_document_fonts() -> FontPair:
    config = get_config()
    return register_fonts(config.PDF_FONT_PATH, config.PDF_BOLD_FONT_PATH)
