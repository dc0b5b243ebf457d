"""Email provider delivery callbacks for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from medassist.core.dependencies import get_db_session
from medassist.schemas.sends import ProviderCallbackRequest, SendEventResponse
from medassist.services.send_ledger import SendLedger

router = APIRouter(prefix="/invoice-sends", tags=["sends"])


@router.post("/{send_id}/events", response_model=SendEventResponse)
def provider_callback(
    send_id: int,
    payload: ProviderCallbackRequest,
    db: Session = Depends(get_db_session),
) -> SendEventResponse:
    event = SendLedger(db).apply_provider_callback(send_id, **payload.model_dump(exclude_none=True))
    return SendEventResponse.model_validate(event)


@router.post("/by-message/{provider_message_id}/events", response_model=SendEventResponse)
def provider_callback_by_message(
    provider_message_id: str,
    payload: ProviderCallbackRequest,
    db: Session = Depends(get_db_session),
) -> SendEventResponse:
    ledger = SendLedger(db)
    event = ledger.apply_provider_callback_for_message(provider_message_id, **payload.model_dump(exclude_none=True))
    return SendEventResponse.model_validate(event)
