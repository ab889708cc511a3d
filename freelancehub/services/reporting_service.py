"""Read-only dashboard and statistics queries.

Queries of one report run sequentially on the request session; they tolerate
slightly stale results and need no snapshot isolation.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from freelancehub.core.auth import RequestUserContext
from freelancehub.core.config import get_settings
from freelancehub.models.entities import (
    Client,
    ClientStatus,
    PaymentStatus,
    PaymentType,
    Project,
    ProjectStatus,
    TaskStatus,
    Worker,
    WorkerStatus,
)
from freelancehub.repositories.freelance_repository import FreelanceRepository
from freelancehub.services.aggregates import as_money

ACTIVITY_PER_KIND = 3


def _q2(value: Decimal | float | int | None) -> str:
    return str(as_money(value))


def _shift_month(anchor: date, offset: int) -> date:
    """First day of the month ``offset`` months away from ``anchor``'s month."""

    index = anchor.year * 12 + (anchor.month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)


def _month_end(month_start: date) -> date:
    return month_start.replace(day=calendar.monthrange(month_start.year, month_start.month)[1])


class ReportingService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = FreelanceRepository(db)
        self.settings = get_settings()

    def dashboard_stats(self, *, context: RequestUserContext, today: date | None = None) -> dict[str, object]:
        today = today or date.today()
        month_start = _shift_month(today, 0)
        next_month_start = _shift_month(today, 1)
        user_id = context.user_id

        return {
            "active_clients": self.repo.count_clients(user_id, status=ClientStatus.ACTIVE),
            "active_projects": self.repo.count_projects(user_id, status=ProjectStatus.ACTIVE),
            "pending_tasks": self.repo.count_tasks(
                user_id,
                statuses=(TaskStatus.TODO, TaskStatus.IN_PROGRESS),
            ),
            "total_revenue": _q2(
                self.repo.sum_payments(user_id, payment_type=PaymentType.INCOMING, status=PaymentStatus.PAID)
            ),
            "pending_payments": _q2(
                self.repo.sum_payments(user_id, payment_type=PaymentType.INCOMING, status=PaymentStatus.PENDING)
            ),
            "monthly_revenue": _q2(
                self.repo.sum_payments(
                    user_id,
                    payment_type=PaymentType.INCOMING,
                    status=PaymentStatus.PAID,
                    paid_from=month_start,
                    paid_to=_month_end(month_start),
                )
            ),
            "total_workers": self.repo.count_workers(user_id),
            "completed_tasks_this_month": self.repo.count_tasks(
                user_id,
                statuses=(TaskStatus.COMPLETED,),
                completed_from=datetime.combine(month_start, datetime.min.time()),
                completed_to=datetime.combine(next_month_start, datetime.min.time()),
            ),
        }

    def financial_chart(
        self,
        *,
        context: RequestUserContext,
        months: int | None = None,
        today: date | None = None,
    ) -> list[dict[str, object]]:
        today = today or date.today()
        months = months or self.settings.dashboard_chart_months

        series: list[dict[str, object]] = []
        for offset in range(months - 1, -1, -1):
            month_start = _shift_month(today, -offset)
            month_end = _month_end(month_start)
            revenue = as_money(
                self.repo.sum_payments(
                    context.user_id,
                    payment_type=PaymentType.INCOMING,
                    status=PaymentStatus.PAID,
                    paid_from=month_start,
                    paid_to=month_end,
                )
            )
            expenses = as_money(
                self.repo.sum_payments(
                    context.user_id,
                    payment_type=PaymentType.OUTGOING,
                    status=PaymentStatus.PAID,
                    paid_from=month_start,
                    paid_to=month_end,
                )
            )
            series.append(
                {
                    "month": month_start.strftime("%Y-%m"),
                    "label": month_start.strftime("%b %Y"),
                    "revenue": str(revenue),
                    "expenses": str(expenses),
                    "profit": str(revenue - expenses),
                }
            )
        return series

    def recent_activity(self, *, context: RequestUserContext, limit: int = 10) -> list[dict[str, object]]:
        user_id = context.user_id
        clients = self.repo.recent_clients(user_id, limit=ACTIVITY_PER_KIND)
        projects = self.repo.recent_projects(user_id, limit=ACTIVITY_PER_KIND)
        tasks = self.repo.recent_tasks(user_id, limit=ACTIVITY_PER_KIND)
        payments = self.repo.recent_payments(user_id, limit=ACTIVITY_PER_KIND)

        client_names = self.repo.names_by_id(
            Client,
            [project.client_id for project in projects] + [payment.client_id for payment in payments],
        )
        project_names = self.repo.names_by_id(
            Project,
            [task.project_id for task in tasks] + [payment.project_id for payment in payments],
        )
        worker_names = self.repo.names_by_id(Worker, (payment.worker_id for payment in payments))
        symbol = self.settings.currency_symbol

        activity: list[tuple[datetime, dict[str, object]]] = []
        for client in clients:
            activity.append(
                (
                    client.created_at,
                    {
                        "id": f"client-{client.id}",
                        "type": "client",
                        "title": "New client added",
                        "description": f"{client.name} was added to your client list",
                    },
                )
            )
        for project in projects:
            activity.append(
                (
                    project.created_at,
                    {
                        "id": f"project-{project.id}",
                        "type": "project",
                        "title": "New project created",
                        "description": f"{project.name} for {client_names.get(project.client_id, 'Unknown')}",
                    },
                )
            )
        for task in tasks:
            activity.append(
                (
                    task.created_at,
                    {
                        "id": f"task-{task.id}",
                        "type": "task",
                        "title": "New task created",
                        "description": f"{task.title} in {project_names.get(task.project_id, 'Unknown')}",
                    },
                )
            )
        for payment in payments:
            counterparty = (
                client_names.get(payment.client_id)
                or worker_names.get(payment.worker_id)
                or project_names.get(payment.project_id)
                or "Unknown"
            )
            direction = "received from" if payment.type is PaymentType.INCOMING else "paid to"
            activity.append(
                (
                    payment.created_at,
                    {
                        "id": f"payment-{payment.id}",
                        "type": "payment",
                        "title": f"Payment {payment.status.value.lower()}",
                        "description": f"{symbol}{as_money(payment.amount)} {direction} {counterparty}",
                    },
                )
            )

        activity.sort(key=lambda item: item[0], reverse=True)
        return [{**entry, "timestamp": created_at.isoformat()} for created_at, entry in activity[:limit]]

    def payment_stats(self, *, context: RequestUserContext) -> dict[str, object]:
        user_id = context.user_id

        def total(payment_type: PaymentType, payment_status: PaymentStatus) -> Decimal:
            return as_money(self.repo.sum_payments(user_id, payment_type=payment_type, status=payment_status))

        paid_incoming = total(PaymentType.INCOMING, PaymentStatus.PAID)
        paid_outgoing = total(PaymentType.OUTGOING, PaymentStatus.PAID)
        pending_incoming = total(PaymentType.INCOMING, PaymentStatus.PENDING)
        pending_outgoing = total(PaymentType.OUTGOING, PaymentStatus.PENDING)

        return {
            "total_incoming": str(paid_incoming + pending_incoming),
            "total_outgoing": str(paid_outgoing + pending_outgoing),
            "pending_incoming": str(pending_incoming),
            "pending_outgoing": str(pending_outgoing),
            "paid_incoming": str(paid_incoming),
            "paid_outgoing": str(paid_outgoing),
            "overdue_payments": self.repo.count_payments(user_id, status=PaymentStatus.OVERDUE),
            "net_profit": str(paid_incoming - paid_outgoing),
        }

    def task_stats(self, *, context: RequestUserContext, today: date | None = None) -> dict[str, object]:
        user_id = context.user_id
        today = today or date.today()
        return {
            "total_tasks": self.repo.count_tasks(user_id),
            "completed_tasks": self.repo.count_tasks(user_id, statuses=(TaskStatus.COMPLETED,)),
            "pending_tasks": self.repo.count_tasks(
                user_id,
                statuses=(TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.REVIEW),
            ),
            "overdue_tasks": self.repo.count_tasks(
                user_id,
                exclude_status=TaskStatus.COMPLETED,
                due_before=today,
            ),
            "total_value": _q2(self.repo.sum_task_cost(user_id)),
            "completed_value": _q2(self.repo.sum_task_cost(user_id, status=TaskStatus.COMPLETED)),
        }

    def worker_stats(self, *, context: RequestUserContext) -> dict[str, object]:
        user_id = context.user_id
        total_earned, total_paid = self.repo.sum_worker_rollups(user_id)
        return {
            "total_workers": self.repo.count_workers(user_id),
            "active_workers": self.repo.count_workers(user_id, status=WorkerStatus.ACTIVE),
            "total_earned": _q2(total_earned),
            "total_paid": _q2(total_paid),
            "pending_payments": _q2(
                self.repo.sum_payments(user_id, payment_type=PaymentType.OUTGOING, status=PaymentStatus.PENDING)
            ),
            "average_rate": _q2(self.repo.average_worker_rate(user_id)),
        }
