"""Payment endpoints and the overdue sweep."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.orm import Session

from freelancehub.api.payloads import PayloadModel, cleared_fields
from freelancehub.core.auth import RequestUserContext, get_current_user_context
from freelancehub.db.dependencies import get_db_session
from freelancehub.models.entities import PaymentStatus, PaymentType
from freelancehub.services.reporting_service import ReportingService
from freelancehub.services.work_service import PaymentCreateData, PaymentUpdateData, WorkService

router = APIRouter(prefix="/payments", tags=["payments"])


class PaymentCreatePayload(PayloadModel):
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    type: PaymentType
    status: PaymentStatus = PaymentStatus.PENDING
    description: str | None = Field(default=None, max_length=2000)
    due_date: date | None = None
    paid_date: date | None = None
    client_id: UUID | None = None
    project_id: UUID | None = None
    worker_id: UUID | None = None


class PaymentUpdatePayload(PayloadModel):
    amount: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    type: PaymentType | None = None
    status: PaymentStatus | None = None
    description: str | None = Field(default=None, max_length=2000)
    due_date: date | None = None
    paid_date: date | None = None
    client_id: UUID | None = None
    project_id: UUID | None = None
    worker_id: UUID | None = None


def _work_service(db: Session) -> WorkService:
    return WorkService(db)


@router.get("")
def list_payments(
    payment_type: PaymentType | None = Query(default=None, alias="type"),
    status_filter: PaymentStatus | None = Query(default=None, alias="status"),
    project_id: UUID | None = Query(default=None),
    client_id: UUID | None = Query(default=None),
    worker_id: UUID | None = Query(default=None),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    items = _work_service(db).list_payments(
        context=context,
        payment_type=payment_type,
        payment_status=status_filter,
        project_id=project_id,
        client_id=client_id,
        worker_id=worker_id,
    )
    return {"items": items}


@router.get("/stats")
def payment_stats(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return ReportingService(db).payment_stats(context=context)


@router.post("/update-status")
def mark_overdue_payments(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Move past-due PENDING payments to OVERDUE."""

    updated = _work_service(db).mark_overdue_payments(context=context)
    return {"updated_count": updated, "message": f"Updated {updated} overdue payment(s)"}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _work_service(db)
    payment = service.create_payment(
        context=context,
        data=PaymentCreateData(
            amount=payload.amount,
            type=payload.type,
            status=payload.status,
            description=payload.description,
            due_date=payload.due_date,
            paid_date=payload.paid_date,
            client_id=payload.client_id,
            project_id=payload.project_id,
            worker_id=payload.worker_id,
        ),
    )
    return service.payment_payload(payment)


@router.get("/{payment_id}")
def get_payment(
    payment_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _work_service(db)
    return service.payment_payload(service.ensure_payment(context=context, payment_id=payment_id))


@router.patch("/{payment_id}")
def update_payment(
    payment_id: UUID,
    payload: PaymentUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _work_service(db)
    payment = service.update_payment(
        context=context,
        payment_id=payment_id,
        data=PaymentUpdateData(
            amount=payload.amount,
            type=payload.type,
            status=payload.status,
            description=payload.description,
            due_date=payload.due_date,
            paid_date=payload.paid_date,
            client_id=payload.client_id,
            project_id=payload.project_id,
            worker_id=payload.worker_id,
            cleared=cleared_fields(payload),
        ),
    )
    return service.payment_payload(payment)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    payment_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _work_service(db).delete_payment(context=context, payment_id=payment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
