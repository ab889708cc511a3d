"""Invoice generation and template catalogue endpoints."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from freelancehub.api.payloads import PayloadModel
from freelancehub.core.auth import RequestUserContext, get_current_user_context
from freelancehub.db.dependencies import get_db_session
from freelancehub.services.invoice_service import InvoiceRequestData, InvoiceService

router = APIRouter(tags=["invoices"])


class InvoiceGeneratePayload(PayloadModel):
    project_ids: list[UUID] = Field(min_length=1)
    invoice_number: str = Field(min_length=1, max_length=64)
    due_date: date | None = None
    notes: str | None = Field(default=None, max_length=2000)


@router.post("/invoices/generate")
def generate_invoice(
    payload: InvoiceGeneratePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Assemble an invoice for projects of a single client. Nothing is stored."""

    return InvoiceService(db).generate_invoice(
        context=context,
        data=InvoiceRequestData(
            project_ids=payload.project_ids,
            invoice_number=payload.invoice_number.strip(),
            due_date=payload.due_date,
            notes=payload.notes,
        ),
    )


@router.get("/invoice-templates")
def list_invoice_templates() -> dict[str, list[object]]:
    return {"items": InvoiceService.list_templates()}
