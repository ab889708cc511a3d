"""Worker (team member) endpoints."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import EmailStr, Field
from sqlalchemy.orm import Session

from freelancehub.api.payloads import PayloadModel, cleared_fields
from freelancehub.core.auth import RequestUserContext, get_current_user_context
from freelancehub.db.dependencies import get_db_session
from freelancehub.models.entities import WorkerStatus
from freelancehub.services.directory_service import DirectoryService, WorkerCreateData, WorkerUpdateData
from freelancehub.services.reporting_service import ReportingService

router = APIRouter(prefix="/workers", tags=["workers"])


class WorkerCreatePayload(PayloadModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=64)
    skills: str | None = Field(default=None, max_length=1000)
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    status: WorkerStatus = WorkerStatus.ACTIVE


class WorkerUpdatePayload(PayloadModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=64)
    skills: str | None = Field(default=None, max_length=1000)
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    status: WorkerStatus | None = None


def _directory_service(db: Session) -> DirectoryService:
    return DirectoryService(db)


@router.get("")
def list_workers(
    status_filter: WorkerStatus | None = Query(default=None, alias="status"),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    return {"items": _directory_service(db).list_workers(context=context, worker_status=status_filter)}


@router.get("/stats")
def worker_stats(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return ReportingService(db).worker_stats(context=context)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_worker(
    payload: WorkerCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _directory_service(db)
    worker = service.create_worker(
        context=context,
        data=WorkerCreateData(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            skills=payload.skills,
            hourly_rate=payload.hourly_rate,
            status=payload.status,
        ),
    )
    return service.serialize_worker(worker, task_count=0, payment_count=0)


@router.get("/{worker_id}")
def get_worker(
    worker_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _directory_service(db).worker_detail(context=context, worker_id=worker_id)


@router.patch("/{worker_id}")
def update_worker(
    worker_id: UUID,
    payload: WorkerUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _directory_service(db)
    worker = service.update_worker(
        context=context,
        worker_id=worker_id,
        data=WorkerUpdateData(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            skills=payload.skills,
            hourly_rate=payload.hourly_rate,
            status=payload.status,
            cleared=cleared_fields(payload),
        ),
    )
    return service.serialize_worker(worker)


@router.delete("/{worker_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_worker(
    worker_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _directory_service(db).delete_worker(context=context, worker_id=worker_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
