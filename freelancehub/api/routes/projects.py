"""Project endpoints."""

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
from freelancehub.models.entities import ProjectStatus
from freelancehub.services.directory_service import DirectoryService, ProjectCreateData, ProjectUpdateData

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectCreatePayload(PayloadModel):
    name: str = Field(min_length=1, max_length=255)
    client_id: UUID
    description: str | None = Field(default=None, max_length=2000)
    budget: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    start_date: date | None = None
    end_date: date | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE


class ProjectUpdatePayload(PayloadModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    client_id: UUID | None = None
    description: str | None = Field(default=None, max_length=2000)
    budget: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    hourly_rate: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    start_date: date | None = None
    end_date: date | None = None
    status: ProjectStatus | None = None


def _directory_service(db: Session) -> DirectoryService:
    return DirectoryService(db)


@router.get("")
def list_projects(
    status_filter: ProjectStatus | None = Query(default=None, alias="status"),
    client_id: UUID | None = Query(default=None),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _directory_service(db)
    return {"items": service.list_projects(context=context, project_status=status_filter, client_id=client_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _directory_service(db)
    project = service.create_project(
        context=context,
        data=ProjectCreateData(
            name=payload.name,
            client_id=payload.client_id,
            description=payload.description,
            budget=payload.budget,
            hourly_rate=payload.hourly_rate,
            start_date=payload.start_date,
            end_date=payload.end_date,
            status=payload.status,
        ),
    )
    return service.serialize_project(project, task_count=0, payment_count=0)


@router.get("/{project_id}")
def get_project(
    project_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Project with display totals; stored aggregates are reconciled first."""

    return _directory_service(db).project_detail(context=context, project_id=project_id)


@router.patch("/{project_id}")
def update_project(
    project_id: UUID,
    payload: ProjectUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _directory_service(db)
    project = service.update_project(
        context=context,
        project_id=project_id,
        data=ProjectUpdateData(
            name=payload.name,
            client_id=payload.client_id,
            description=payload.description,
            budget=payload.budget,
            hourly_rate=payload.hourly_rate,
            start_date=payload.start_date,
            end_date=payload.end_date,
            status=payload.status,
            cleared=cleared_fields(payload),
        ),
    )
    return service.serialize_project(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _directory_service(db).delete_project(context=context, project_id=project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
