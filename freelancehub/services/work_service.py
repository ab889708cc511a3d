"""Application service for tasks and payments.

Every task or payment write is followed by a recompute of the aggregates it
feeds (project totals and worker rollups). The recompute runs in a savepoint
of the request transaction: a storage error there is logged and rolled back
on its own, and the primary write still commits.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from freelancehub.core.auth import RequestUserContext
from freelancehub.models.entities import (
    Client,
    Payment,
    PaymentStatus,
    PaymentType,
    Project,
    Task,
    TaskPriority,
    TaskStatus,
    Worker,
    utcnow,
)
from freelancehub.repositories.freelance_repository import FreelanceRepository
from freelancehub.services.aggregates import AggregateRecalculator, as_money, compute_task_cost

logger = logging.getLogger(__name__)


# ---------- Payment target ----------
@dataclass(frozen=True, slots=True)
class ClientTarget:
    client_id: UUID
    project_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class WorkerTarget:
    worker_id: UUID
    project_id: UUID | None = None


@dataclass(frozen=True, slots=True)
class ProjectTarget:
    project_id: UUID


PaymentTarget = ClientTarget | WorkerTarget | ProjectTarget | None


def build_payment_target(
    *,
    client_id: UUID | None,
    project_id: UUID | None,
    worker_id: UUID | None,
) -> PaymentTarget:
    """Fold the three optional references of a payment into one target."""

    if client_id is not None and worker_id is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A payment cannot target both a client and a worker.",
        )
    if client_id is not None:
        return ClientTarget(client_id=client_id, project_id=project_id)
    if worker_id is not None:
        return WorkerTarget(worker_id=worker_id, project_id=project_id)
    if project_id is not None:
        return ProjectTarget(project_id=project_id)
    return None


def target_columns(target: PaymentTarget) -> dict[str, UUID | None]:
    columns: dict[str, UUID | None] = {"client_id": None, "project_id": None, "worker_id": None}
    if isinstance(target, ClientTarget):
        columns.update(client_id=target.client_id, project_id=target.project_id)
    elif isinstance(target, WorkerTarget):
        columns.update(worker_id=target.worker_id, project_id=target.project_id)
    elif isinstance(target, ProjectTarget):
        columns["project_id"] = target.project_id
    return columns


def target_kind(payment: Payment) -> str | None:
    if payment.client_id is not None:
        return "client"
    if payment.worker_id is not None:
        return "worker"
    if payment.project_id is not None:
        return "project"
    return None


# ---------- Inputs ----------
@dataclass(slots=True)
class TaskCreateData:
    project_id: UUID
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    estimated_hours: Decimal | None = None
    actual_hours: Decimal | None = None
    hourly_rate: Decimal | None = None
    due_date: date | None = None
    assigned_worker_id: UUID | None = None


@dataclass(slots=True)
class TaskUpdateData:
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    estimated_hours: Decimal | None = None
    actual_hours: Decimal | None = None
    hourly_rate: Decimal | None = None
    due_date: date | None = None
    assigned_worker_id: UUID | None = None
    cleared: frozenset[str] = field(default_factory=frozenset)


@dataclass(slots=True)
class PaymentCreateData:
    amount: Decimal
    type: PaymentType
    status: PaymentStatus = PaymentStatus.PENDING
    description: str | None = None
    due_date: date | None = None
    paid_date: date | None = None
    client_id: UUID | None = None
    project_id: UUID | None = None
    worker_id: UUID | None = None


@dataclass(slots=True)
class PaymentUpdateData:
    amount: Decimal | None = None
    type: PaymentType | None = None
    status: PaymentStatus | None = None
    description: str | None = None
    due_date: date | None = None
    paid_date: date | None = None
    client_id: UUID | None = None
    project_id: UUID | None = None
    worker_id: UUID | None = None
    cleared: frozenset[str] = field(default_factory=frozenset)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _decimal_or_none(value: Decimal | None) -> str | None:
    return str(as_money(value)) if value is not None else None


def _merged(data: object, current: object, name: str):
    """Value a field takes after a partial update."""

    value = getattr(data, name)
    if value is not None:
        return value
    if name in data.cleared:
        return None
    return getattr(current, name)


class WorkService:
    """Service implementing task and payment writes and their aggregate upkeep."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = FreelanceRepository(db)
        self.recalculator = AggregateRecalculator(db)

    # ---------- Ownership ----------
    def _ensure_project(self, context: RequestUserContext, project_id: UUID) -> Project:
        project = self.repo.get_project(context.user_id, project_id)
        if project is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
        return project

    def _ensure_worker(self, context: RequestUserContext, worker_id: UUID) -> Worker:
        worker = self.repo.get_worker(context.user_id, worker_id)
        if worker is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Worker not found")
        return worker

    def _ensure_client(self, context: RequestUserContext, client_id: UUID) -> Client:
        client = self.repo.get_client(context.user_id, client_id)
        if client is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
        return client

    def ensure_task(self, *, context: RequestUserContext, task_id: UUID) -> Task:
        task = self.repo.get_task(context.user_id, task_id)
        if task is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
        return task

    def ensure_payment(self, *, context: RequestUserContext, payment_id: UUID) -> Payment:
        payment = self.repo.get_payment(context.user_id, payment_id)
        if payment is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
        return payment

    def _validate_target(self, context: RequestUserContext, target: PaymentTarget) -> None:
        if target is None:
            return

        project = None
        if target.project_id is not None:
            project = self._ensure_project(context, target.project_id)

        if isinstance(target, ClientTarget):
            self._ensure_client(context, target.client_id)
            if project is not None and project.client_id != target.client_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Project does not belong to the selected client.",
                )
        elif isinstance(target, WorkerTarget):
            self._ensure_worker(context, target.worker_id)

    # ---------- Aggregate upkeep ----------
    def _refresh_aggregates(
        self,
        *,
        cost_projects: Iterable[UUID | None] = (),
        paid_projects: Iterable[UUID | None] = (),
        workers: Iterable[UUID | None] = (),
    ) -> None:
        self.db.flush()
        try:
            with self.db.begin_nested():
                for project_id in dict.fromkeys(cost_projects):
                    self.recalculator.recompute_project_total_cost(project_id)
                for project_id in dict.fromkeys(paid_projects):
                    self.recalculator.recompute_project_paid_amount(project_id)
                for worker_id in dict.fromkeys(workers):
                    self.recalculator.recompute_worker_rollups(worker_id)
        except SQLAlchemyError:
            logger.exception(
                "Aggregate recompute failed (projects=%s/%s, workers=%s); keeping the primary write.",
                list(cost_projects),
                list(paid_projects),
                list(workers),
            )

    # ---------- Serialization ----------
    @staticmethod
    def serialize_task(
        task: Task,
        *,
        project_name: str | None = None,
        worker_name: str | None = None,
    ) -> dict[str, object]:
        return {
            "id": str(task.id),
            "project_id": str(task.project_id),
            "project_name": project_name,
            "assigned_worker_id": str(task.assigned_worker_id) if task.assigned_worker_id else None,
            "assigned_worker_name": worker_name,
            "title": task.title,
            "description": task.description,
            "status": task.status.value,
            "priority": task.priority.value,
            "estimated_hours": _decimal_or_none(task.estimated_hours),
            "actual_hours": str(as_money(task.actual_hours)),
            "hourly_rate": _decimal_or_none(task.hourly_rate),
            "cost": str(as_money(task.cost)),
            "due_date": task.due_date.isoformat() if task.due_date else None,
            "completed_at": task.completed_at.isoformat() if task.completed_at else None,
            "created_at": task.created_at.isoformat(),
            "updated_at": task.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_payment(
        payment: Payment,
        *,
        client_name: str | None = None,
        project_name: str | None = None,
        worker_name: str | None = None,
    ) -> dict[str, object]:
        return {
            "id": str(payment.id),
            "amount": str(as_money(payment.amount)),
            "type": payment.type.value,
            "status": payment.status.value,
            "description": payment.description,
            "due_date": payment.due_date.isoformat() if payment.due_date else None,
            "paid_date": payment.paid_date.isoformat() if payment.paid_date else None,
            "target": target_kind(payment),
            "client_id": str(payment.client_id) if payment.client_id else None,
            "client_name": client_name,
            "project_id": str(payment.project_id) if payment.project_id else None,
            "project_name": project_name,
            "worker_id": str(payment.worker_id) if payment.worker_id else None,
            "worker_name": worker_name,
            "created_at": payment.created_at.isoformat(),
            "updated_at": payment.updated_at.isoformat(),
        }

    def task_payload(self, task: Task) -> dict[str, object]:
        project_names = self.repo.names_by_id(Project, [task.project_id])
        worker_names = self.repo.names_by_id(Worker, [task.assigned_worker_id])
        return self.serialize_task(
            task,
            project_name=project_names.get(task.project_id),
            worker_name=worker_names.get(task.assigned_worker_id),
        )

    def payment_payload(self, payment: Payment) -> dict[str, object]:
        return self.serialize_payment(
            payment,
            client_name=self.repo.names_by_id(Client, [payment.client_id]).get(payment.client_id),
            project_name=self.repo.names_by_id(Project, [payment.project_id]).get(payment.project_id),
            worker_name=self.repo.names_by_id(Worker, [payment.worker_id]).get(payment.worker_id),
        )

    # ---------- Tasks ----------
    def list_tasks(
        self,
        *,
        context: RequestUserContext,
        task_status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        project_id: UUID | None = None,
        assigned_worker_id: UUID | None = None,
    ) -> list[dict[str, object]]:
        tasks = self.repo.list_tasks(
            context.user_id,
            status=task_status,
            priority=priority,
            project_id=project_id,
            assigned_worker_id=assigned_worker_id,
        )
        project_names = self.repo.names_by_id(Project, (task.project_id for task in tasks))
        worker_names = self.repo.names_by_id(Worker, (task.assigned_worker_id for task in tasks))
        return [
            self.serialize_task(
                task,
                project_name=project_names.get(task.project_id),
                worker_name=worker_names.get(task.assigned_worker_id),
            )
            for task in tasks
        ]

    def create_task(self, *, context: RequestUserContext, data: TaskCreateData) -> Task:
        project = self._ensure_project(context, data.project_id)
        worker = None
        if data.assigned_worker_id is not None:
            worker = self._ensure_worker(context, data.assigned_worker_id)

        hourly_rate = data.hourly_rate
        if hourly_rate is None and worker is not None:
            hourly_rate = worker.hourly_rate
        if hourly_rate is None:
            hourly_rate = project.hourly_rate

        actual_hours = data.actual_hours if data.actual_hours is not None else Decimal("0.00")
        now = utcnow()
        task = Task(
            user_id=context.user_id,
            project_id=project.id,
            assigned_worker_id=worker.id if worker is not None else None,
            title=data.title.strip(),
            description=_clean(data.description),
            status=data.status,
            priority=data.priority,
            estimated_hours=data.estimated_hours,
            actual_hours=actual_hours,
            hourly_rate=hourly_rate,
            cost=compute_task_cost(hourly_rate, data.estimated_hours, actual_hours),
            due_date=data.due_date,
            completed_at=now if data.status is TaskStatus.COMPLETED else None,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_task(task)
        self._refresh_aggregates(cost_projects=[task.project_id], workers=[task.assigned_worker_id])

        self.db.commit()
        self.db.refresh(task)
        logger.info("Created task %s on project %s (cost %s)", task.id, task.project_id, task.cost)
        return task

    def update_task(self, *, context: RequestUserContext, task_id: UUID, data: TaskUpdateData) -> Task:
        task = self.ensure_task(context=context, task_id=task_id)
        previous_worker_id = task.assigned_worker_id

        if data.assigned_worker_id is not None and data.assigned_worker_id != task.assigned_worker_id:
            self._ensure_worker(context, data.assigned_worker_id)

        if data.title is not None:
            task.title = data.title.strip()
        if data.description is not None:
            task.description = _clean(data.description)
        elif "description" in data.cleared:
            task.description = None
        if data.priority is not None:
            task.priority = data.priority
        task.due_date = _merged(data, task, "due_date")
        task.assigned_worker_id = _merged(data, task, "assigned_worker_id")

        task.estimated_hours = _merged(data, task, "estimated_hours")
        task.actual_hours = _merged(data, task, "actual_hours") or Decimal("0.00")
        task.hourly_rate = _merged(data, task, "hourly_rate")
        task.cost = compute_task_cost(task.hourly_rate, task.estimated_hours, task.actual_hours)

        if data.status is not None and data.status is not task.status:
            if data.status is TaskStatus.COMPLETED:
                task.completed_at = utcnow()
            elif task.status is TaskStatus.COMPLETED:
                task.completed_at = None
            task.status = data.status
        task.updated_at = utcnow()

        self._refresh_aggregates(
            cost_projects=[task.project_id],
            workers=[previous_worker_id, task.assigned_worker_id],
        )

        self.db.commit()
        self.db.refresh(task)
        logger.info("Updated task %s on project %s (cost %s)", task.id, task.project_id, task.cost)
        return task

    def delete_task(self, *, context: RequestUserContext, task_id: UUID) -> None:
        task = self.ensure_task(context=context, task_id=task_id)
        project_id = task.project_id
        worker_id = task.assigned_worker_id

        self.repo.delete_task(task)
        self._refresh_aggregates(cost_projects=[project_id], workers=[worker_id])

        self.db.commit()
        logger.info("Deleted task %s from project %s", task_id, project_id)

    # ---------- Payments ----------
    def list_payments(
        self,
        *,
        context: RequestUserContext,
        payment_type: PaymentType | None = None,
        payment_status: PaymentStatus | None = None,
        project_id: UUID | None = None,
        client_id: UUID | None = None,
        worker_id: UUID | None = None,
    ) -> list[dict[str, object]]:
        payments = self.repo.list_payments(
            context.user_id,
            payment_type=payment_type,
            status=payment_status,
            project_id=project_id,
            client_id=client_id,
            worker_id=worker_id,
        )
        client_names = self.repo.names_by_id(Client, (payment.client_id for payment in payments))
        project_names = self.repo.names_by_id(Project, (payment.project_id for payment in payments))
        worker_names = self.repo.names_by_id(Worker, (payment.worker_id for payment in payments))
        return [
            self.serialize_payment(
                payment,
                client_name=client_names.get(payment.client_id),
                project_name=project_names.get(payment.project_id),
                worker_name=worker_names.get(payment.worker_id),
            )
            for payment in payments
        ]

    def create_payment(self, *, context: RequestUserContext, data: PaymentCreateData) -> Payment:
        target = build_payment_target(
            client_id=data.client_id,
            project_id=data.project_id,
            worker_id=data.worker_id,
        )
        self._validate_target(context, target)

        paid_date = data.paid_date
        if data.status is PaymentStatus.PAID and paid_date is None:
            paid_date = date.today()

        now = utcnow()
        payment = Payment(
            user_id=context.user_id,
            amount=data.amount,
            type=data.type,
            status=data.status,
            description=_clean(data.description),
            due_date=data.due_date,
            paid_date=paid_date,
            created_at=now,
            updated_at=now,
            **target_columns(target),
        )
        self.repo.add_payment(payment)
        self._refresh_aggregates(paid_projects=[payment.project_id], workers=[payment.worker_id])

        self.db.commit()
        self.db.refresh(payment)
        logger.info(
            "Created %s payment %s of %s (%s)",
            payment.type.value,
            payment.id,
            payment.amount,
            payment.status.value,
        )
        return payment

    def update_payment(self, *, context: RequestUserContext, payment_id: UUID, data: PaymentUpdateData) -> Payment:
        payment = self.ensure_payment(context=context, payment_id=payment_id)
        previous_project_id = payment.project_id
        previous_worker_id = payment.worker_id

        target = build_payment_target(
            client_id=_merged(data, payment, "client_id"),
            project_id=_merged(data, payment, "project_id"),
            worker_id=_merged(data, payment, "worker_id"),
        )
        self._validate_target(context, target)

        if data.amount is not None:
            payment.amount = data.amount
        if data.type is not None:
            payment.type = data.type
        if data.description is not None:
            payment.description = _clean(data.description)
        elif "description" in data.cleared:
            payment.description = None
        payment.due_date = _merged(data, payment, "due_date")
        payment.paid_date = _merged(data, payment, "paid_date")
        if data.status is not None:
            payment.status = data.status
        if payment.status is PaymentStatus.PAID and payment.paid_date is None:
            payment.paid_date = date.today()
        for column, value in target_columns(target).items():
            setattr(payment, column, value)
        payment.updated_at = utcnow()

        self._refresh_aggregates(
            paid_projects=[previous_project_id, payment.project_id],
            workers=[previous_worker_id, payment.worker_id],
        )

        self.db.commit()
        self.db.refresh(payment)
        logger.info("Updated payment %s (%s, %s)", payment.id, payment.amount, payment.status.value)
        return payment

    def delete_payment(self, *, context: RequestUserContext, payment_id: UUID) -> None:
        payment = self.ensure_payment(context=context, payment_id=payment_id)
        project_id = payment.project_id
        worker_id = payment.worker_id

        self.repo.delete_payment(payment)
        self._refresh_aggregates(paid_projects=[project_id], workers=[worker_id])

        self.db.commit()
        logger.info("Deleted payment %s", payment_id)

    def mark_overdue_payments(self, *, context: RequestUserContext, today: date | None = None) -> int:
        """Move the caller's past-due PENDING payments to OVERDUE."""

        cutoff = today or date.today()
        payments = self.repo.list_past_due_pending_payments(context.user_id, today=cutoff)
        now = utcnow()
        for payment in payments:
            payment.status = PaymentStatus.OVERDUE
            payment.updated_at = now

        self.db.commit()
        logger.info("Marked %d payment(s) overdue for account %s", len(payments), context.user_id)
        return len(payments)
