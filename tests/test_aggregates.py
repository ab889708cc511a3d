from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session

from freelancehub.core.auth import ensure_user_principal
from freelancehub.models.entities import Client, Payment, PaymentStatus, PaymentType, Project, Task, Worker, utcnow
from freelancehub.services.aggregates import (
    AggregateRecalculator,
    as_money,
    compute_task_cost,
    display_total_cost,
    outstanding_amount,
)


def test_task_cost_uses_estimated_hours_until_actual_hours_are_logged() -> None:
    assert compute_task_cost(Decimal("50"), Decimal("10"), Decimal("0")) == Decimal("500.00")
    assert compute_task_cost(Decimal("50"), Decimal("10"), Decimal("4")) == Decimal("200.00")


def test_task_cost_treats_missing_factors_as_zero() -> None:
    assert compute_task_cost(None, Decimal("10"), None) == Decimal("0.00")
    assert compute_task_cost(Decimal("75"), None, None) == Decimal("0.00")
    assert compute_task_cost(Decimal("40"), Decimal("1.5"), None) == Decimal("60.00")


def test_display_total_falls_back_to_budget_only_without_task_costs() -> None:
    assert display_total_cost(Decimal("0"), Decimal("1000")) == Decimal("1000.00")
    assert display_total_cost(Decimal("0"), None) == Decimal("0.00")
    assert display_total_cost(Decimal("500"), Decimal("1000")) == Decimal("500.00")


@pytest.mark.parametrize(
    ("total", "paid", "expected"),
    [
        (Decimal("500"), Decimal("200"), Decimal("300.00")),
        (Decimal("500"), Decimal("800"), Decimal("0.00")),
        (None, Decimal("10"), Decimal("0.00")),
    ],
)
def test_outstanding_is_never_negative(total: Decimal | None, paid: Decimal, expected: Decimal) -> None:
    assert outstanding_amount(total, paid) == expected


def test_as_money_normalizes_floats_and_none() -> None:
    assert as_money(None) == Decimal("0.00")
    assert as_money(12.5) == Decimal("12.50")
    assert str(as_money("7")) == "7.00"


def _seed_project(db: Session) -> tuple[Project, Worker]:
    user = ensure_user_principal(db, subject="agg-owner", email="agg@test.local", display_name="Agg")
    now = utcnow()
    client = Client(user_id=user.id, name="Acme", created_at=now, updated_at=now)
    db.add(client)
    db.flush()
    project = Project(user_id=user.id, client_id=client.id, name="Site", created_at=now, updated_at=now)
    worker = Worker(user_id=user.id, name="Dev", joined_at=now, created_at=now, updated_at=now)
    db.add_all([project, worker])
    db.flush()

    db.add_all(
        [
            Task(
                user_id=user.id,
                project_id=project.id,
                assigned_worker_id=worker.id,
                title="Build",
                cost=Decimal("500.00"),
                created_at=now,
                updated_at=now,
            ),
            Task(
                user_id=user.id,
                project_id=project.id,
                title="Test",
                cost=Decimal("120.00"),
                created_at=now,
                updated_at=now,
            ),
            Payment(
                user_id=user.id,
                project_id=project.id,
                amount=Decimal("200.00"),
                type=PaymentType.INCOMING,
                status=PaymentStatus.PAID,
                created_at=now,
                updated_at=now,
            ),
            Payment(
                user_id=user.id,
                project_id=project.id,
                amount=Decimal("999.00"),
                type=PaymentType.INCOMING,
                status=PaymentStatus.PENDING,
                created_at=now,
                updated_at=now,
            ),
            Payment(
                user_id=user.id,
                worker_id=worker.id,
                amount=Decimal("150.00"),
                type=PaymentType.OUTGOING,
                status=PaymentStatus.PAID,
                created_at=now,
                updated_at=now,
            ),
        ]
    )
    db.commit()
    return project, worker


def test_recalculator_persists_sums_and_is_idempotent(db_session: Session) -> None:
    project, worker = _seed_project(db_session)
    recalculator = AggregateRecalculator(db_session)

    assert recalculator.recompute_project_total_cost(project.id) == Decimal("620.00")
    assert recalculator.recompute_project_total_cost(project.id) == Decimal("620.00")
    assert recalculator.recompute_project_paid_amount(project.id) == Decimal("200.00")
    assert recalculator.recompute_worker_rollups(worker.id) == (Decimal("500.00"), Decimal("150.00"))
    db_session.commit()

    db_session.refresh(project)
    db_session.refresh(worker)
    assert as_money(project.total_cost) == Decimal("620.00")
    assert as_money(project.paid_amount) == Decimal("200.00")
    assert as_money(worker.total_earned) == Decimal("500.00")
    assert as_money(worker.total_paid) == Decimal("150.00")


def test_recalculator_ignores_missing_ids_and_rejects_unknown_rows(db_session: Session) -> None:
    recalculator = AggregateRecalculator(db_session)

    assert recalculator.recompute_project_total_cost(None) is None
    assert recalculator.recompute_worker_rollups(None) is None
    with pytest.raises(NoResultFound):
        recalculator.recompute_project_paid_amount(uuid.uuid4())


def test_reconcile_rewrites_drifted_aggregates(db_session: Session, caplog: pytest.LogCaptureFixture) -> None:
    project, _ = _seed_project(db_session)
    recalculator = AggregateRecalculator(db_session)

    assert recalculator.reconcile_project(project) is True
    db_session.commit()
    assert "drifted" in caplog.text

    db_session.refresh(project)
    assert as_money(project.total_cost) == Decimal("620.00")
    assert recalculator.reconcile_project(project) is False
