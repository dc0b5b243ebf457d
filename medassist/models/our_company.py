"""Our company (invoice sender) model module."""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from medassist.models.base import AuditMixin, Base


class OurCompany(Base, AuditMixin):
    __tablename__ = "our_companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_name: Mapped[str | None] = mapped_column(String(255))
    id_code: Mapped[str | None] = mapped_column(String(64))
    country: Mapped[str | None] = mapped_column(String(100))
    city: Mapped[str | None] = mapped_column(String(100))
    address: Mapped[str | None] = mapped_column(String(500))
    email: Mapped[str | None] = mapped_column(String(320))
    phone: Mapped[str | None] = mapped_column(String(50))
    website: Mapped[str | None] = mapped_column(String(255))
    bank_name: Mapped[str | None] = mapped_column(String(255))
    bank_code: Mapped[str | None] = mapped_column(String(64))
    account_gel: Mapped[str | None] = mapped_column(String(64))
    account_usd: Mapped[str | None] = mapped_column(String(64))
    account_eur: Mapped[str | None] = mapped_column(String(64))
    logo_url: Mapped[str | None] = mapped_column(String(1000))
    signature_url: Mapped[str | None] = mapped_column(String(1000))
    stamp_url: Mapped[str | None] = mapped_column(String(1000))
    invoice_prefix: Mapped[str | None] = mapped_column(String(20))
    invoice_footer_text: Mapped[str | None] = mapped_column(Text)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
