"""Derived financial aggregates for projects and workers.

Stored aggregates:

* ``Project.total_cost``: raw sum of the project's task costs.
* ``Project.paid_amount``: sum of the project's PAID payments.
* ``Worker.total_earned``: sum of costs of tasks assigned to the worker.
* ``Worker.total_paid``: sum of PAID payments addressed to the worker.

The budget fallback (a project without costed tasks shows its budget as its
cost) and the outstanding balance are display values and never stored.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session

from freelancehub.models.entities import Project, utcnow
from freelancehub.repositories.freelance_repository import FreelanceRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")


def as_money(value: Decimal | float | int | str | None) -> Decimal:
    """Normalize a DB or payload number to a 2-place decimal (None -> 0)."""

    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(Q2)


def compute_task_cost(
    hourly_rate: Decimal | None,
    estimated_hours: Decimal | None,
    actual_hours: Decimal | None,
) -> Decimal:
    """Cost of a task: rate times actual hours, or estimated hours when none logged."""

    rate = as_money(hourly_rate)
    actual = as_money(actual_hours)
    hours = actual if actual > ZERO else as_money(estimated_hours)
    return as_money(rate * hours)


def display_total_cost(task_cost_total: Decimal | None, budget: Decimal | None) -> Decimal:
    task_total = as_money(task_cost_total)
    if task_total > ZERO:
        return task_total
    return as_money(budget)


def outstanding_amount(total_cost: Decimal | None, paid_amount: Decimal | None) -> Decimal:
    return max(ZERO, as_money(total_cost) - as_money(paid_amount))


def project_financials(project: Project) -> dict[str, Decimal]:
    """Display values for a project computed from its stored aggregates."""

    total_cost = display_total_cost(project.total_cost, project.budget)
    paid_amount = as_money(project.paid_amount)
    return {
        "task_cost_total": as_money(project.total_cost),
        "total_cost": total_cost,
        "paid_amount": paid_amount,
        "outstanding_amount": outstanding_amount(total_cost, paid_amount),
    }


class AggregateRecalculator:
    """Recompute and persist aggregate fields inside the caller's transaction.

    Each recompute locks the parent row (``SELECT ... FOR UPDATE`` where the
    dialect supports it) before summing, so concurrent writers to the same
    parent serialize. Callers flush their child mutation first.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = FreelanceRepository(db)

    def _lock_project(self, project_id: UUID) -> None:
        if self.repo.lock_project(project_id) is None:
            raise NoResultFound(f"Project {project_id} not found for aggregate update.")

    def recompute_project_total_cost(self, project_id: UUID | None) -> Decimal | None:
        if not project_id:
            return None
        self.db.flush()
        self._lock_project(project_id)
        total = as_money(self.repo.sum_task_cost_for_project(project_id))
        self.repo.store_project_aggregates(project_id, total_cost=total, updated_at=utcnow())
        return total

    def recompute_project_paid_amount(self, project_id: UUID | None) -> Decimal | None:
        if not project_id:
            return None
        self.db.flush()
        self._lock_project(project_id)
        paid = as_money(self.repo.sum_paid_for_project(project_id))
        self.repo.store_project_aggregates(project_id, paid_amount=paid, updated_at=utcnow())
        return paid

    def recompute_worker_rollups(self, worker_id: UUID | None) -> tuple[Decimal, Decimal] | None:
        if not worker_id:
            return None
        self.db.flush()
        if self.repo.lock_worker(worker_id) is None:
            raise NoResultFound(f"Worker {worker_id} not found for rollup update.")
        earned = as_money(self.repo.sum_task_cost_for_worker(worker_id))
        paid = as_money(self.repo.sum_paid_for_worker(worker_id))
        self.repo.store_worker_rollups(worker_id, total_earned=earned, total_paid=paid, updated_at=utcnow())
        return earned, paid

    def reconcile_project(self, project: Project) -> bool:
        """Re-persist stored project aggregates when they drifted from live sums.

        Returns True when a write happened. The caller owns the commit.
        """

        live_total = as_money(self.repo.sum_task_cost_for_project(project.id))
        live_paid = as_money(self.repo.sum_paid_for_project(project.id))
        if as_money(project.total_cost) == live_total and as_money(project.paid_amount) == live_paid:
            return False

        logger.warning(
            "Project %s aggregates drifted (total_cost %s -> %s, paid_amount %s -> %s); re-persisting.",
            project.id,
            project.total_cost,
            live_total,
            project.paid_amount,
            live_paid,
        )
        self.repo.store_project_aggregates(
            project.id,
            total_cost=live_total,
            paid_amount=live_paid,
            updated_at=utcnow(),
        )
        return True
