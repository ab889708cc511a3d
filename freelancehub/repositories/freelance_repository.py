"""Repository helpers for the freelance business domain.

Every lookup that takes an entity id also takes the owning ``user_id``, so a
row belonging to another account is indistinguishable from a missing one.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import InstrumentedAttribute

from freelancehub.models.entities import (
    BrandingSettings,
    Client,
    ClientStatus,
    Payment,
    PaymentStatus,
    PaymentType,
    Project,
    ProjectStatus,
    Task,
    TaskPriority,
    TaskStatus,
    Worker,
    WorkerStatus,
)

ZERO = Decimal("0.00")


class FreelanceRepository:
    """Persistence operations used by the CRUD, aggregate and reporting services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _add(self, row):
        self.db.add(row)
        self.db.flush()
        return row

    def _delete(self, row) -> None:
        self.db.delete(row)
        self.db.flush()

    def _count(self, model, *criteria) -> int:
        return self.db.scalar(select(func.count()).select_from(model).where(*criteria)) or 0

    def _counts_by(self, column: InstrumentedAttribute, *criteria) -> dict[UUID, int]:
        rows = self.db.execute(select(column, func.count()).where(*criteria).group_by(column)).all()
        return {key: count for key, count in rows if key is not None}

    # ---------- Clients ----------
    def list_clients(self, user_id: UUID, *, status: ClientStatus | None = None) -> list[Client]:
        criteria = [Client.user_id == user_id]
        if status is not None:
            criteria.append(Client.status == status)
        return self.db.scalars(select(Client).where(*criteria).order_by(Client.created_at.desc())).all()

    def get_client(self, user_id: UUID, client_id: UUID) -> Client | None:
        return self.db.scalar(select(Client).where(and_(Client.id == client_id, Client.user_id == user_id)))

    def add_client(self, client: Client) -> Client:
        return self._add(client)

    def delete_client(self, client: Client) -> None:
        self._delete(client)

    def project_count_for_client(self, client_id: UUID) -> int:
        return self._count(Project, Project.client_id == client_id)

    def payment_count_for_client(self, client_id: UUID) -> int:
        return self._count(Payment, Payment.client_id == client_id)

    def project_counts_by_client(self, user_id: UUID) -> dict[UUID, int]:
        return self._counts_by(Project.client_id, Project.user_id == user_id)

    def payment_counts_by_client(self, user_id: UUID) -> dict[UUID, int]:
        return self._counts_by(Payment.client_id, Payment.user_id == user_id)

    # ---------- Projects ----------
    def list_projects(
        self,
        user_id: UUID,
        *,
        status: ProjectStatus | None = None,
        client_id: UUID | None = None,
    ) -> list[Project]:
        criteria = [Project.user_id == user_id]
        if status is not None:
            criteria.append(Project.status == status)
        if client_id is not None:
            criteria.append(Project.client_id == client_id)
        return self.db.scalars(select(Project).where(*criteria).order_by(Project.created_at.desc())).all()

    def get_project(self, user_id: UUID, project_id: UUID) -> Project | None:
        return self.db.scalar(select(Project).where(and_(Project.id == project_id, Project.user_id == user_id)))

    def get_projects(self, user_id: UUID, project_ids: Iterable[UUID]) -> list[Project]:
        ids = list(dict.fromkeys(project_ids))
        if not ids:
            return []
        return self.db.scalars(
            select(Project)
            .where(and_(Project.id.in_(ids), Project.user_id == user_id))
            .order_by(Project.created_at.asc())
        ).all()

    def add_project(self, project: Project) -> Project:
        return self._add(project)

    def delete_project(self, project: Project) -> None:
        self._delete(project)

    def lock_project(self, project_id: UUID) -> UUID | None:
        return self.db.scalar(select(Project.id).where(Project.id == project_id).with_for_update())

    def store_project_aggregates(self, project_id: UUID, **values: Decimal) -> None:
        self.db.execute(update(Project).where(Project.id == project_id).values(**values))

    def task_count_for_project(self, project_id: UUID) -> int:
        return self._count(Task, Task.project_id == project_id)

    def payment_count_for_project(self, project_id: UUID) -> int:
        return self._count(Payment, Payment.project_id == project_id)

    def client_payment_count_for_project(self, project_id: UUID) -> int:
        return self._count(Payment, Payment.project_id == project_id, Payment.client_id.is_not(None))

    def task_counts_by_project(self, user_id: UUID) -> dict[UUID, int]:
        return self._counts_by(Task.project_id, Task.user_id == user_id)

    def payment_counts_by_project(self, user_id: UUID) -> dict[UUID, int]:
        return self._counts_by(Payment.project_id, Payment.user_id == user_id)

    def list_projects_for_client(self, client_id: UUID) -> list[Project]:
        return self.db.scalars(
            select(Project).where(Project.client_id == client_id).order_by(Project.created_at.desc())
        ).all()

    # ---------- Tasks ----------
    def list_tasks(
        self,
        user_id: UUID,
        *,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        project_id: UUID | None = None,
        assigned_worker_id: UUID | None = None,
    ) -> list[Task]:
        criteria = [Task.user_id == user_id]
        if status is not None:
            criteria.append(Task.status == status)
        if priority is not None:
            criteria.append(Task.priority == priority)
        if project_id is not None:
            criteria.append(Task.project_id == project_id)
        if assigned_worker_id is not None:
            criteria.append(Task.assigned_worker_id == assigned_worker_id)
        return self.db.scalars(select(Task).where(*criteria).order_by(Task.created_at.desc())).all()

    def list_tasks_for_project(self, project_id: UUID) -> list[Task]:
        return self.db.scalars(
            select(Task).where(Task.project_id == project_id).order_by(Task.created_at.asc())
        ).all()

    def list_tasks_for_worker(self, worker_id: UUID) -> list[Task]:
        return self.db.scalars(
            select(Task).where(Task.assigned_worker_id == worker_id).order_by(Task.created_at.desc())
        ).all()

    def get_task(self, user_id: UUID, task_id: UUID) -> Task | None:
        return self.db.scalar(select(Task).where(and_(Task.id == task_id, Task.user_id == user_id)))

    def add_task(self, task: Task) -> Task:
        return self._add(task)

    def delete_task(self, task: Task) -> None:
        self._delete(task)

    def sum_task_cost_for_project(self, project_id: UUID) -> Decimal:
        return self.db.scalar(
            select(func.coalesce(func.sum(Task.cost), ZERO)).where(Task.project_id == project_id)
        )

    def sum_task_cost_for_worker(self, worker_id: UUID) -> Decimal:
        return self.db.scalar(
            select(func.coalesce(func.sum(Task.cost), ZERO)).where(Task.assigned_worker_id == worker_id)
        )

    # ---------- Workers ----------
    def list_workers(self, user_id: UUID, *, status: WorkerStatus | None = None) -> list[Worker]:
        criteria = [Worker.user_id == user_id]
        if status is not None:
            criteria.append(Worker.status == status)
        return self.db.scalars(select(Worker).where(*criteria).order_by(Worker.created_at.desc())).all()

    def get_worker(self, user_id: UUID, worker_id: UUID) -> Worker | None:
        return self.db.scalar(select(Worker).where(and_(Worker.id == worker_id, Worker.user_id == user_id)))

    def add_worker(self, worker: Worker) -> Worker:
        return self._add(worker)

    def delete_worker(self, worker: Worker) -> None:
        self._delete(worker)

    def lock_worker(self, worker_id: UUID) -> UUID | None:
        return self.db.scalar(select(Worker.id).where(Worker.id == worker_id).with_for_update())

    def store_worker_rollups(self, worker_id: UUID, **values: Decimal) -> None:
        self.db.execute(update(Worker).where(Worker.id == worker_id).values(**values))

    def task_count_for_worker(self, worker_id: UUID) -> int:
        return self._count(Task, Task.assigned_worker_id == worker_id)

    def payment_count_for_worker(self, worker_id: UUID) -> int:
        return self._count(Payment, Payment.worker_id == worker_id)

    def task_counts_by_worker(self, user_id: UUID) -> dict[UUID, int]:
        return self._counts_by(Task.assigned_worker_id, Task.user_id == user_id)

    def payment_counts_by_worker(self, user_id: UUID) -> dict[UUID, int]:
        return self._counts_by(Payment.worker_id, Payment.user_id == user_id)

    # ---------- Payments ----------
    def list_payments(
        self,
        user_id: UUID,
        *,
        payment_type: PaymentType | None = None,
        status: PaymentStatus | None = None,
        project_id: UUID | None = None,
        client_id: UUID | None = None,
        worker_id: UUID | None = None,
    ) -> list[Payment]:
        criteria = [Payment.user_id == user_id]
        if payment_type is not None:
            criteria.append(Payment.type == payment_type)
        if status is not None:
            criteria.append(Payment.status == status)
        if project_id is not None:
            criteria.append(Payment.project_id == project_id)
        if client_id is not None:
            criteria.append(Payment.client_id == client_id)
        if worker_id is not None:
            criteria.append(Payment.worker_id == worker_id)
        return self.db.scalars(select(Payment).where(*criteria).order_by(Payment.created_at.desc())).all()

    def list_payments_for_project(self, project_id: UUID) -> list[Payment]:
        return self.db.scalars(
            select(Payment).where(Payment.project_id == project_id).order_by(Payment.created_at.desc())
        ).all()

    def list_payments_for_client(self, client_id: UUID) -> list[Payment]:
        return self.db.scalars(
            select(Payment).where(Payment.client_id == client_id).order_by(Payment.created_at.desc())
        ).all()

    def list_payments_for_worker(self, worker_id: UUID) -> list[Payment]:
        return self.db.scalars(
            select(Payment).where(Payment.worker_id == worker_id).order_by(Payment.created_at.desc())
        ).all()

    def get_payment(self, user_id: UUID, payment_id: UUID) -> Payment | None:
        return self.db.scalar(select(Payment).where(and_(Payment.id == payment_id, Payment.user_id == user_id)))

    def add_payment(self, payment: Payment) -> Payment:
        return self._add(payment)

    def delete_payment(self, payment: Payment) -> None:
        self._delete(payment)

    def sum_paid_for_project(self, project_id: UUID) -> Decimal:
        return self.db.scalar(
            select(func.coalesce(func.sum(Payment.amount), ZERO)).where(
                and_(Payment.project_id == project_id, Payment.status == PaymentStatus.PAID)
            )
        )

    def sum_paid_for_worker(self, worker_id: UUID) -> Decimal:
        return self.db.scalar(
            select(func.coalesce(func.sum(Payment.amount), ZERO)).where(
                and_(Payment.worker_id == worker_id, Payment.status == PaymentStatus.PAID)
            )
        )

    def list_past_due_pending_payments(self, user_id: UUID, *, today: date) -> list[Payment]:
        return self.db.scalars(
            select(Payment).where(
                and_(
                    Payment.user_id == user_id,
                    Payment.status == PaymentStatus.PENDING,
                    Payment.due_date.is_not(None),
                    Payment.due_date < today,
                )
            )
        ).all()

    # ---------- Reporting reads ----------
    def count_clients(self, user_id: UUID, *, status: ClientStatus | None = None) -> int:
        criteria = [Client.user_id == user_id]
        if status is not None:
            criteria.append(Client.status == status)
        return self._count(Client, *criteria)

    def count_projects(self, user_id: UUID, *, status: ProjectStatus | None = None) -> int:
        criteria = [Project.user_id == user_id]
        if status is not None:
            criteria.append(Project.status == status)
        return self._count(Project, *criteria)

    def count_tasks(
        self,
        user_id: UUID,
        *,
        statuses: Iterable[TaskStatus] | None = None,
        exclude_status: TaskStatus | None = None,
        due_before: date | None = None,
        completed_from: datetime | None = None,
        completed_to: datetime | None = None,
    ) -> int:
        criteria = [Task.user_id == user_id]
        if statuses is not None:
            criteria.append(Task.status.in_(list(statuses)))
        if exclude_status is not None:
            criteria.append(Task.status != exclude_status)
        if due_before is not None:
            criteria.extend([Task.due_date.is_not(None), Task.due_date < due_before])
        if completed_from is not None:
            criteria.append(Task.completed_at >= completed_from)
        if completed_to is not None:
            criteria.append(Task.completed_at < completed_to)
        return self._count(Task, *criteria)

    def sum_task_cost(self, user_id: UUID, *, status: TaskStatus | None = None) -> Decimal:
        criteria = [Task.user_id == user_id]
        if status is not None:
            criteria.append(Task.status == status)
        return self.db.scalar(select(func.coalesce(func.sum(Task.cost), ZERO)).where(*criteria))

    def sum_payments(
        self,
        user_id: UUID,
        *,
        payment_type: PaymentType | None = None,
        status: PaymentStatus | None = None,
        paid_from: date | None = None,
        paid_to: date | None = None,
    ) -> Decimal:
        criteria = [Payment.user_id == user_id]
        if payment_type is not None:
            criteria.append(Payment.type == payment_type)
        if status is not None:
            criteria.append(Payment.status == status)
        if paid_from is not None:
            criteria.append(Payment.paid_date >= paid_from)
        if paid_to is not None:
            criteria.append(Payment.paid_date <= paid_to)
        return self.db.scalar(select(func.coalesce(func.sum(Payment.amount), ZERO)).where(*criteria))

    def count_payments(self, user_id: UUID, *, status: PaymentStatus | None = None) -> int:
        criteria = [Payment.user_id == user_id]
        if status is not None:
            criteria.append(Payment.status == status)
        return self._count(Payment, *criteria)

    def count_workers(self, user_id: UUID, *, status: WorkerStatus | None = None) -> int:
        criteria = [Worker.user_id == user_id]
        if status is not None:
            criteria.append(Worker.status == status)
        return self._count(Worker, *criteria)

    def sum_worker_rollups(self, user_id: UUID) -> tuple[Decimal, Decimal]:
        row = self.db.execute(
            select(
                func.coalesce(func.sum(Worker.total_earned), ZERO),
                func.coalesce(func.sum(Worker.total_paid), ZERO),
            ).where(Worker.user_id == user_id)
        ).one()
        return row[0], row[1]

    def average_worker_rate(self, user_id: UUID) -> Decimal | float | None:
        return self.db.scalar(
            select(func.avg(Worker.hourly_rate)).where(
                and_(Worker.user_id == user_id, Worker.hourly_rate.is_not(None))
            )
        )

    def recent_clients(self, user_id: UUID, *, limit: int) -> list[Client]:
        return self.db.scalars(
            select(Client).where(Client.user_id == user_id).order_by(Client.created_at.desc()).limit(limit)
        ).all()

    def recent_projects(self, user_id: UUID, *, limit: int) -> list[Project]:
        return self.db.scalars(
            select(Project).where(Project.user_id == user_id).order_by(Project.created_at.desc()).limit(limit)
        ).all()

    def recent_tasks(self, user_id: UUID, *, limit: int) -> list[Task]:
        return self.db.scalars(
            select(Task).where(Task.user_id == user_id).order_by(Task.created_at.desc()).limit(limit)
        ).all()

    def recent_payments(self, user_id: UUID, *, limit: int) -> list[Payment]:
        return self.db.scalars(
            select(Payment).where(Payment.user_id == user_id).order_by(Payment.created_at.desc()).limit(limit)
        ).all()

    def names_by_id(self, model, ids: Iterable[UUID]) -> dict[UUID, str]:
        """Map ids to display names for clients, projects or workers."""

        wanted = {value for value in ids if value is not None}
        if not wanted:
            return {}
        rows = self.db.execute(select(model.id, model.name).where(model.id.in_(wanted))).all()
        return {row_id: name for row_id, name in rows}

    # ---------- Branding ----------
    def get_branding(self, user_id: UUID) -> BrandingSettings | None:
        return self.db.scalar(select(BrandingSettings).where(BrandingSettings.user_id == user_id))

    def add_branding(self, branding: BrandingSettings) -> BrandingSettings:
        return self._add(branding)
