"""Task endpoints.

Task writes keep the owning project's ``total_cost`` and the assigned
workers' rollups current.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import ConfigDict, Field
from sqlalchemy.orm import Session

from freelancehub.api.payloads import PayloadModel, cleared_fields
from freelancehub.core.auth import RequestUserContext, get_current_user_context
from freelancehub.db.dependencies import get_db_session
from freelancehub.models.entities import TaskPriority, TaskStatus
from freelancehub.services.reporting_service import ReportingService
from freelancehub.services.work_service import TaskCreateData, TaskUpdateData, WorkService

router = APIRouter(prefix="/tasks", tags=["tasks"])


class TaskCreatePayload(PayloadModel):
    project_id: UUID
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    estimated_hours: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    actual_hours: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    due_date: date | None = None
    assigned_worker_id: UUID | None = None


class TaskUpdatePayload(PayloadModel):
    # The owning project is fixed at creation.
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    estimated_hours: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    actual_hours: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    due_date: date | None = None
    assigned_worker_id: UUID | None = None


def _work_service(db: Session) -> WorkService:
    return WorkService(db)


@router.get("")
def list_tasks(
    status_filter: TaskStatus | None = Query(default=None, alias="status"),
    priority: TaskPriority | None = Query(default=None),
    project_id: UUID | None = Query(default=None),
    assigned_worker_id: UUID | None = Query(default=None),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    items = _work_service(db).list_tasks(
        context=context,
        task_status=status_filter,
        priority=priority,
        project_id=project_id,
        assigned_worker_id=assigned_worker_id,
    )
    return {"items": items}


@router.get("/stats")
def task_stats(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return ReportingService(db).task_stats(context=context)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _work_service(db)
    task = service.create_task(
        context=context,
        data=TaskCreateData(
            project_id=payload.project_id,
            title=payload.title,
            description=payload.description,
            status=payload.status,
            priority=payload.priority,
            estimated_hours=payload.estimated_hours,
            actual_hours=payload.actual_hours,
            hourly_rate=payload.hourly_rate,
            due_date=payload.due_date,
            assigned_worker_id=payload.assigned_worker_id,
        ),
    )
    return service.task_payload(task)


@router.get("/{task_id}")
def get_task(
    task_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _work_service(db)
    return service.task_payload(service.ensure_task(context=context, task_id=task_id))


@router.patch("/{task_id}")
def update_task(
    task_id: UUID,
    payload: TaskUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _work_service(db)
    task = service.update_task(
        context=context,
        task_id=task_id,
        data=TaskUpdateData(
            title=payload.title,
            description=payload.description,
            status=payload.status,
            priority=payload.priority,
            estimated_hours=payload.estimated_hours,
            actual_hours=payload.actual_hours,
            hourly_rate=payload.hourly_rate,
            due_date=payload.due_date,
            assigned_worker_id=payload.assigned_worker_id,
            cleared=cleared_fields(payload),
        ),
    )
    return service.task_payload(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _work_service(db).delete_task(context=context, task_id=task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
