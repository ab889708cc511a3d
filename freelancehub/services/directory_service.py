"""Application service for clients, projects and workers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from freelancehub.core.auth import RequestUserContext
from freelancehub.models.entities import (
    Client,
    ClientStatus,
    Payment,
    Project,
    ProjectStatus,
    Task,
    Worker,
    WorkerStatus,
    utcnow,
)
from freelancehub.repositories.freelance_repository import FreelanceRepository
from freelancehub.services.aggregates import AggregateRecalculator, as_money, project_financials

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClientCreateData:
    name: str
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    address: str | None = None
    notes: str | None = None
    status: ClientStatus = ClientStatus.ACTIVE


@dataclass(slots=True)
class ClientUpdateData:
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    address: str | None = None
    notes: str | None = None
    status: ClientStatus | None = None
    cleared: frozenset[str] = field(default_factory=frozenset)


@dataclass(slots=True)
class ProjectCreateData:
    name: str
    client_id: UUID
    description: str | None = None
    budget: Decimal | None = None
    hourly_rate: Decimal | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: ProjectStatus = ProjectStatus.ACTIVE


@dataclass(slots=True)
class ProjectUpdateData:
    name: str | None = None
    client_id: UUID | None = None
    description: str | None = None
    budget: Decimal | None = None
    hourly_rate: Decimal | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: ProjectStatus | None = None
    cleared: frozenset[str] = field(default_factory=frozenset)


@dataclass(slots=True)
class WorkerCreateData:
    name: str
    email: str | None = None
    phone: str | None = None
    skills: str | None = None
    hourly_rate: Decimal | None = None
    status: WorkerStatus = WorkerStatus.ACTIVE


@dataclass(slots=True)
class WorkerUpdateData:
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    skills: str | None = None
    hourly_rate: Decimal | None = None
    status: WorkerStatus | None = None
    cleared: frozenset[str] = field(default_factory=frozenset)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _money_or_none(value: Decimal | None) -> str | None:
    return str(as_money(value)) if value is not None else None


def _apply_optional(row: object, data: object, names: tuple[str, ...], *, text: bool = False) -> None:
    """Copy provided optional fields from update data; clear the ones sent as null."""

    for name in names:
        value = getattr(data, name)
        if value is not None:
            setattr(row, name, _clean(value) if text else value)
        elif name in data.cleared:
            setattr(row, name, None)


def _ensure_date_order(start_date: date | None, end_date: date | None) -> None:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be greater than or equal to start_date.",
        )


class DirectoryService:
    """Service implementing client, project and worker lifecycle rules."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = FreelanceRepository(db)
        self.recalculator = AggregateRecalculator(db)

    # ---------- Ownership ----------
    def ensure_client(self, *, context: RequestUserContext, client_id: UUID) -> Client:
        client = self.repo.get_client(context.user_id, client_id)
        if client is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
        return client

    def ensure_project(self, *, context: RequestUserContext, project_id: UUID) -> Project:
        project = self.repo.get_project(context.user_id, project_id)
        if project is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
        return project

    def ensure_worker(self, *, context: RequestUserContext, worker_id: UUID) -> Worker:
        worker = self.repo.get_worker(context.user_id, worker_id)
        if worker is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Worker not found")
        return worker

    # ---------- Serialization ----------
    @staticmethod
    def serialize_client(
        client: Client,
        *,
        project_count: int | None = None,
        payment_count: int | None = None,
    ) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": str(client.id),
            "name": client.name,
            "email": client.email,
            "phone": client.phone,
            "company": client.company,
            "address": client.address,
            "notes": client.notes,
            "status": client.status.value,
            "created_at": client.created_at.isoformat(),
            "updated_at": client.updated_at.isoformat(),
        }
        if project_count is not None:
            payload["project_count"] = project_count
        if payment_count is not None:
            payload["payment_count"] = payment_count
        return payload

    @staticmethod
    def serialize_client_summary(client: Client | None) -> dict[str, object] | None:
        if client is None:
            return None
        return {
            "id": str(client.id),
            "name": client.name,
            "email": client.email,
            "company": client.company,
        }

    def serialize_project(
        self,
        project: Project,
        *,
        client: Client | None = None,
        task_count: int | None = None,
        payment_count: int | None = None,
    ) -> dict[str, object]:
        financials = project_financials(project)
        payload: dict[str, object] = {
            "id": str(project.id),
            "client_id": str(project.client_id),
            "name": project.name,
            "description": project.description,
            "status": project.status.value,
            "start_date": project.start_date.isoformat() if project.start_date else None,
            "end_date": project.end_date.isoformat() if project.end_date else None,
            "budget": _money_or_none(project.budget),
            "hourly_rate": _money_or_none(project.hourly_rate),
            "task_cost_total": str(financials["task_cost_total"]),
            "total_cost": str(financials["total_cost"]),
            "paid_amount": str(financials["paid_amount"]),
            "outstanding_amount": str(financials["outstanding_amount"]),
            "created_at": project.created_at.isoformat(),
            "updated_at": project.updated_at.isoformat(),
        }
        if client is not None:
            payload["client"] = self.serialize_client_summary(client)
        if task_count is not None:
            payload["task_count"] = task_count
        if payment_count is not None:
            payload["payment_count"] = payment_count
        return payload

    @staticmethod
    def serialize_worker(
        worker: Worker,
        *,
        task_count: int | None = None,
        payment_count: int | None = None,
    ) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": str(worker.id),
            "name": worker.name,
            "email": worker.email,
            "phone": worker.phone,
            "skills": worker.skills,
            "hourly_rate": _money_or_none(worker.hourly_rate),
            "total_earned": str(as_money(worker.total_earned)),
            "total_paid": str(as_money(worker.total_paid)),
            "status": worker.status.value,
            "joined_at": worker.joined_at.isoformat(),
            "created_at": worker.created_at.isoformat(),
            "updated_at": worker.updated_at.isoformat(),
        }
        if task_count is not None:
            payload["task_count"] = task_count
        if payment_count is not None:
            payload["payment_count"] = payment_count
        return payload

    @staticmethod
    def _serialize_task_brief(task: Task, project_names: dict[UUID, str]) -> dict[str, object]:
        return {
            "id": str(task.id),
            "title": task.title,
            "status": task.status.value,
            "project_id": str(task.project_id),
            "project_name": project_names.get(task.project_id),
            "cost": str(as_money(task.cost)),
            "completed_at": task.completed_at.isoformat() if task.completed_at else None,
        }

    @staticmethod
    def _serialize_payment_brief(payment: Payment) -> dict[str, object]:
        return {
            "id": str(payment.id),
            "amount": str(as_money(payment.amount)),
            "type": payment.type.value,
            "status": payment.status.value,
            "project_id": str(payment.project_id) if payment.project_id else None,
            "paid_date": payment.paid_date.isoformat() if payment.paid_date else None,
            "created_at": payment.created_at.isoformat(),
        }

    # ---------- Client CRUD ----------
    def list_clients(
        self,
        *,
        context: RequestUserContext,
        client_status: ClientStatus | None = None,
    ) -> list[dict[str, object]]:
        clients = self.repo.list_clients(context.user_id, status=client_status)
        project_counts = self.repo.project_counts_by_client(context.user_id)
        payment_counts = self.repo.payment_counts_by_client(context.user_id)
        return [
            self.serialize_client(
                client,
                project_count=project_counts.get(client.id, 0),
                payment_count=payment_counts.get(client.id, 0),
            )
            for client in clients
        ]

    def client_detail(self, *, context: RequestUserContext, client_id: UUID) -> dict[str, object]:
        client = self.ensure_client(context=context, client_id=client_id)
        projects = self.repo.list_projects_for_client(client.id)
        payments = self.repo.list_payments_for_client(client.id)
        payload = self.serialize_client(client, project_count=len(projects), payment_count=len(payments))
        payload["projects"] = [self.serialize_project(project) for project in projects]
        payload["payments"] = [self._serialize_payment_brief(payment) for payment in payments]
        return payload

    def create_client(self, *, context: RequestUserContext, data: ClientCreateData) -> Client:
        now = utcnow()
        client = Client(
            user_id=context.user_id,
            name=data.name.strip(),
            email=_clean(data.email),
            phone=_clean(data.phone),
            company=_clean(data.company),
            address=_clean(data.address),
            notes=_clean(data.notes),
            status=data.status,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_client(client)
        self.db.commit()
        self.db.refresh(client)
        return client

    def update_client(self, *, context: RequestUserContext, client_id: UUID, data: ClientUpdateData) -> Client:
        client = self.ensure_client(context=context, client_id=client_id)

        if data.name is not None:
            client.name = data.name.strip()
        _apply_optional(client, data, ("email", "phone", "company", "address", "notes"), text=True)
        if data.status is not None:
            client.status = data.status
        client.updated_at = utcnow()

        self.db.commit()
        self.db.refresh(client)
        return client

    def delete_client(self, *, context: RequestUserContext, client_id: UUID) -> None:
        client = self.ensure_client(context=context, client_id=client_id)

        if self.repo.project_count_for_client(client.id) > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete client with existing projects",
            )
        if self.repo.payment_count_for_client(client.id) > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete client with existing payments",
            )

        self.repo.delete_client(client)
        self.db.commit()
        logger.info("Deleted client %s for account %s", client_id, context.user_id)

    # ---------- Project CRUD ----------
    def list_projects(
        self,
        *,
        context: RequestUserContext,
        project_status: ProjectStatus | None = None,
        client_id: UUID | None = None,
    ) -> list[dict[str, object]]:
        projects = self.repo.list_projects(context.user_id, status=project_status, client_id=client_id)
        clients = {client.id: client for client in self.repo.list_clients(context.user_id)}
        task_counts = self.repo.task_counts_by_project(context.user_id)
        payment_counts = self.repo.payment_counts_by_project(context.user_id)
        return [
            self.serialize_project(
                project,
                client=clients.get(project.client_id),
                task_count=task_counts.get(project.id, 0),
                payment_count=payment_counts.get(project.id, 0),
            )
            for project in projects
        ]

    def project_detail(self, *, context: RequestUserContext, project_id: UUID) -> dict[str, object]:
        project = self.ensure_project(context=context, project_id=project_id)
        if self.recalculator.reconcile_project(project):
            self.db.commit()
            self.db.refresh(project)

        client = self.repo.get_client(context.user_id, project.client_id)
        return self.serialize_project(
            project,
            client=client,
            task_count=self.repo.task_count_for_project(project.id),
            payment_count=self.repo.payment_count_for_project(project.id),
        )

    def create_project(self, *, context: RequestUserContext, data: ProjectCreateData) -> Project:
        self.ensure_client(context=context, client_id=data.client_id)
        _ensure_date_order(data.start_date, data.end_date)

        now = utcnow()
        project = Project(
            user_id=context.user_id,
            client_id=data.client_id,
            name=data.name.strip(),
            description=_clean(data.description),
            budget=data.budget,
            hourly_rate=data.hourly_rate,
            start_date=data.start_date,
            end_date=data.end_date,
            status=data.status,
            total_cost=Decimal("0.00"),
            paid_amount=Decimal("0.00"),
            created_at=now,
            updated_at=now,
        )
        self.repo.add_project(project)
        self.db.commit()
        self.db.refresh(project)
        return project

    def update_project(self, *, context: RequestUserContext, project_id: UUID, data: ProjectUpdateData) -> Project:
        project = self.ensure_project(context=context, project_id=project_id)

        if data.client_id is not None and data.client_id != project.client_id:
            self.ensure_client(context=context, client_id=data.client_id)
            # Client payments pin the project to their client.
            if self.repo.client_payment_count_for_project(project.id):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Cannot move project with client payments to another client",
                )

        target_start = project.start_date
        target_end = project.end_date
        if data.start_date is not None:
            target_start = data.start_date
        elif "start_date" in data.cleared:
            target_start = None
        if data.end_date is not None:
            target_end = data.end_date
        elif "end_date" in data.cleared:
            target_end = None
        _ensure_date_order(target_start, target_end)

        if data.name is not None:
            project.name = data.name.strip()
        if data.client_id is not None:
            project.client_id = data.client_id
        _apply_optional(project, data, ("description",), text=True)
        _apply_optional(project, data, ("budget", "hourly_rate"))
        project.start_date = target_start
        project.end_date = target_end

        if data.status is not None:
            if data.status is ProjectStatus.COMPLETED and project.end_date is None:
                project.end_date = date.today()
            project.status = data.status
        project.updated_at = utcnow()

        self.db.commit()
        self.db.refresh(project)
        return project

    def delete_project(self, *, context: RequestUserContext, project_id: UUID) -> None:
        project = self.ensure_project(context=context, project_id=project_id)

        if self.repo.task_count_for_project(project.id) > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete project with existing tasks",
            )
        if self.repo.payment_count_for_project(project.id) > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete project with existing payments",
            )

        self.repo.delete_project(project)
        self.db.commit()
        logger.info("Deleted project %s for account %s", project_id, context.user_id)

    # ---------- Worker CRUD ----------
    def list_workers(
        self,
        *,
        context: RequestUserContext,
        worker_status: WorkerStatus | None = None,
    ) -> list[dict[str, object]]:
        workers = self.repo.list_workers(context.user_id, status=worker_status)
        task_counts = self.repo.task_counts_by_worker(context.user_id)
        payment_counts = self.repo.payment_counts_by_worker(context.user_id)
        return [
            self.serialize_worker(
                worker,
                task_count=task_counts.get(worker.id, 0),
                payment_count=payment_counts.get(worker.id, 0),
            )
            for worker in workers
        ]

    def worker_detail(self, *, context: RequestUserContext, worker_id: UUID) -> dict[str, object]:
        worker = self.ensure_worker(context=context, worker_id=worker_id)
        tasks = self.repo.list_tasks_for_worker(worker.id)
        payments = self.repo.list_payments_for_worker(worker.id)
        project_names = self.repo.names_by_id(Project, (task.project_id for task in tasks))

        payload = self.serialize_worker(worker, task_count=len(tasks), payment_count=len(payments))
        payload["tasks"] = [self._serialize_task_brief(task, project_names) for task in tasks]
        payload["payments"] = [self._serialize_payment_brief(payment) for payment in payments]
        return payload

    def create_worker(self, *, context: RequestUserContext, data: WorkerCreateData) -> Worker:
        now = utcnow()
        worker = Worker(
            user_id=context.user_id,
            name=data.name.strip(),
            email=_clean(data.email),
            phone=_clean(data.phone),
            skills=_clean(data.skills),
            hourly_rate=data.hourly_rate,
            status=data.status,
            total_earned=Decimal("0.00"),
            total_paid=Decimal("0.00"),
            joined_at=now,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_worker(worker)
        self.db.commit()
        self.db.refresh(worker)
        return worker

    def update_worker(self, *, context: RequestUserContext, worker_id: UUID, data: WorkerUpdateData) -> Worker:
        worker = self.ensure_worker(context=context, worker_id=worker_id)

        if data.name is not None:
            worker.name = data.name.strip()
        _apply_optional(worker, data, ("email", "phone", "skills"), text=True)
        _apply_optional(worker, data, ("hourly_rate",))
        if data.status is not None:
            worker.status = data.status
        worker.updated_at = utcnow()

        self.db.commit()
        self.db.refresh(worker)
        return worker

    def delete_worker(self, *, context: RequestUserContext, worker_id: UUID) -> None:
        worker = self.ensure_worker(context=context, worker_id=worker_id)

        if self.repo.task_count_for_worker(worker.id) > 0 or self.repo.payment_count_for_worker(worker.id) > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete worker with existing tasks or payments",
            )

        self.repo.delete_worker(worker)
        self.db.commit()
        logger.info("Deleted worker %s for account %s", worker_id, context.user_id)
