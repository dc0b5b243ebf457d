"""Invoice endpoints for API v1: lifecycle, PDF, email preview and send."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from medassist.core.dependencies import get_asset_fetcher, get_db_session, get_email_transport
from medassist.core.exceptions import TransportFailure
from medassist.models.enums import InvoiceLanguage, InvoiceStatus
from medassist.schemas.invoices import InvoiceCreateRequest, InvoiceResponse, InvoiceUpdateRequest, MarkPaidRequest
from medassist.schemas.sends import EmailPreviewResponse, SendEventResponse, SendRequest, SendResponse
from medassist.services.asset_fetcher import AssetFetcher
from medassist.services.document_service import InvoiceDocumentService
from medassist.services.email_composer import SendOverrides
from medassist.services.email_transport import EmailTransport
from medassist.services.invoice_send_service import InvoiceSendService
from medassist.services.invoice_service import InvoiceService
from medassist.services.invoice_wizard import InvoiceWizard
from medassist.services.send_ledger import SendLedger

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(payload: InvoiceCreateRequest, db: Session = Depends(get_db_session)) -> InvoiceResponse:
    wizard = InvoiceWizard(db)
    wizard.select_case_and_parties(payload.case_id, payload.recipient_id, payload.sender_id)

    details = payload.model_dump(
        include={
            "language",
            "currency",
            "franchise_amount",
            "cc_emails",
            "email_subject",
            "email_body",
            "attach_patient_docs",
            "attach_original_docs",
            "attach_medical_docs",
            "notes",
        },
        exclude_none=True,
    )
    if "recipient_email" in payload.model_fields_set:
        details["recipient_email"] = payload.recipient_email
    if payload.line_items is not None:
        details["line_items"] = [item.model_dump() for item in payload.line_items]
    wizard.fill_details_and_services(**details)
    return InvoiceResponse.model_validate(wizard.submit())


@router.get("", response_model=list[InvoiceResponse])
def list_invoices(
    invoice_status: InvoiceStatus | None = Query(default=None, alias="status"),
    case_id: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db_session),
) -> list[InvoiceResponse]:
    invoices = InvoiceService(db).list_invoices(status=invoice_status, case_id=case_id)
    return [InvoiceResponse.model_validate(invoice) for invoice in invoices]


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, db: Session = Depends(get_db_session)) -> InvoiceResponse:
    return InvoiceResponse.model_validate(InvoiceService(db).require_invoice(invoice_id))


@router.put("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(invoice_id: int, payload: InvoiceUpdateRequest, db: Session = Depends(get_db_session)) -> InvoiceResponse:
    changes = payload.model_dump(exclude_unset=True)
    invoice = InvoiceService(db).update_invoice(invoice_id, **changes)
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(invoice_id: int, db: Session = Depends(get_db_session)) -> Response:
    InvoiceService(db).delete_invoice(invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceResponse)
def mark_paid(
    invoice_id: int,
    payload: MarkPaidRequest | None = None,
    db: Session = Depends(get_db_session),
) -> InvoiceResponse:
    payload = payload or MarkPaidRequest()
    invoice = InvoiceService(db).mark_paid(invoice_id, paid_at=payload.paid_at, payment_reference=payload.payment_reference)
    return InvoiceResponse.model_validate(invoice)


@router.post("/{invoice_id}/cancel", response_model=InvoiceResponse)
def cancel_invoice(invoice_id: int, db: Session = Depends(get_db_session)) -> InvoiceResponse:
    return InvoiceResponse.model_validate(InvoiceService(db).cancel(invoice_id))


@router.post("/{invoice_id}/duplicate", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def duplicate_invoice(invoice_id: int, db: Session = Depends(get_db_session)) -> InvoiceResponse:
    return InvoiceResponse.model_validate(InvoiceService(db).duplicate(invoice_id))


@router.get("/{invoice_id}/pdf")
def invoice_pdf(
    invoice_id: int,
    download: bool = Query(default=False),
    language: InvoiceLanguage | None = Query(default=None),
    db: Session = Depends(get_db_session),
    asset_fetcher: AssetFetcher = Depends(get_asset_fetcher),
) -> Response:
    document = InvoiceDocumentService(db, asset_fetcher=asset_fetcher).render(invoice_id, language)
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={
            "Content-Disposition": document.content_disposition(inline=not download),
            "Cache-Control": "no-store",
        },
    )


@router.get("/{invoice_id}/preview", response_model=EmailPreviewResponse)
def email_preview(
    invoice_id: int,
    language: InvoiceLanguage | None = Query(default=None),
    db: Session = Depends(get_db_session),
    transport: EmailTransport = Depends(get_email_transport),
) -> EmailPreviewResponse:
    preview = InvoiceSendService(db, transport=transport).preview(invoice_id, language)
    return EmailPreviewResponse.model_validate(preview)


@router.post("/{invoice_id}/send", response_model=SendResponse)
def send_invoice(
    invoice_id: int,
    payload: SendRequest,
    db: Session = Depends(get_db_session),
    transport: EmailTransport = Depends(get_email_transport),
    asset_fetcher: AssetFetcher = Depends(get_asset_fetcher),
) -> SendResponse:
    service = InvoiceSendService(db, transport=transport, asset_fetcher=asset_fetcher)
    result = service.send(invoice_id, SendOverrides(**payload.model_dump()))
    if not result.success:
        raise TransportFailure(result.error or "Email could not be sent", send_id=result.send_id)
    return SendResponse.model_validate(result)


@router.get("/{invoice_id}/sends", response_model=list[SendEventResponse])
def list_sends(invoice_id: int, db: Session = Depends(get_db_session)) -> list[SendEventResponse]:
    InvoiceService(db).require_invoice(invoice_id)
    return [SendEventResponse.model_validate(event) for event in SendLedger(db).list_sends(invoice_id)]
