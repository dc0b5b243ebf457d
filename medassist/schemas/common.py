"""Error body shared by every endpoint."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorEnvelope(BaseModel):
    status: str = "error"
    error_code: str
    detail: str
    # Set for field-level validation problems.
    field: str | None = None
    # Set when a failed send was still recorded in the ledger.
    send_id: int | None = None
