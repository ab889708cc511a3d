"""Client directory endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import EmailStr, Field
from sqlalchemy.orm import Session

from freelancehub.api.payloads import PayloadModel, cleared_fields
from freelancehub.core.auth import RequestUserContext, get_current_user_context
from freelancehub.db.dependencies import get_db_session
from freelancehub.models.entities import ClientStatus
from freelancehub.services.directory_service import ClientCreateData, ClientUpdateData, DirectoryService

router = APIRouter(prefix="/clients", tags=["clients"])


class ClientCreatePayload(PayloadModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=64)
    company: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=1000)
    notes: str | None = None
    status: ClientStatus = ClientStatus.ACTIVE


class ClientUpdatePayload(PayloadModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=64)
    company: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=1000)
    notes: str | None = None
    status: ClientStatus | None = None


def _directory_service(db: Session) -> DirectoryService:
    return DirectoryService(db)


@router.get("")
def list_clients(
    status_filter: ClientStatus | None = Query(default=None, alias="status"),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _directory_service(db)
    return {"items": service.list_clients(context=context, client_status=status_filter)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _directory_service(db)
    client = service.create_client(
        context=context,
        data=ClientCreateData(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            company=payload.company,
            address=payload.address,
            notes=payload.notes,
            status=payload.status,
        ),
    )
    return service.serialize_client(client, project_count=0, payment_count=0)


@router.get("/{client_id}")
def get_client(
    client_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _directory_service(db).client_detail(context=context, client_id=client_id)


@router.patch("/{client_id}")
def update_client(
    client_id: UUID,
    payload: ClientUpdatePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _directory_service(db)
    client = service.update_client(
        context=context,
        client_id=client_id,
        data=ClientUpdateData(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            company=payload.company,
            address=payload.address,
            notes=payload.notes,
            status=payload.status,
            cleared=cleared_fields(payload),
        ),
    )
    return service.serialize_client(client)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _directory_service(db).delete_client(context=context, client_id=client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
