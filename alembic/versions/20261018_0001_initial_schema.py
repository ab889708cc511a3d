"""initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


client_status = postgresql.ENUM("ACTIVE", "INACTIVE", "ARCHIVED", name="client_status", create_type=False)
project_status = postgresql.ENUM(
    "ACTIVE", "COMPLETED", "ON_HOLD", "CANCELLED", name="project_status", create_type=False
)
worker_status = postgresql.ENUM("ACTIVE", "INACTIVE", "ARCHIVED", name="worker_status", create_type=False)
task_status = postgresql.ENUM(
    "TODO", "IN_PROGRESS", "REVIEW", "COMPLETED", "CANCELLED", name="task_status", create_type=False
)
task_priority = postgresql.ENUM("LOW", "MEDIUM", "HIGH", "URGENT", name="task_priority", create_type=False)
payment_type = postgresql.ENUM("INCOMING", "OUTGOING", name="payment_type", create_type=False)
payment_status = postgresql.ENUM(
    "PENDING", "PAID", "OVERDUE", "CANCELLED", name="payment_status", create_type=False
)

ENUM_TYPES = (
    client_status,
    project_status,
    worker_status,
    task_status,
    task_priority,
    payment_type,
    payment_status,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _owner() -> sa.Column:
    return sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False)


def upgrade() -> None:
    for enum_type in ENUM_TYPES:
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("subject", sa.String(length=128), nullable=False, unique=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "clients",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        _owner(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("address", sa.String(length=1000), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", client_status, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_clients_user_id", "clients", ["user_id"])

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        _owner(),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("status", project_status, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("budget", sa.Numeric(14, 2), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(12, 2), nullable=True),
        sa.Column("total_cost", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("paid_amount", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("budget IS NULL OR budget >= 0", name="ck_projects_budget_non_negative"),
        sa.CheckConstraint("total_cost >= 0", name="ck_projects_total_cost_non_negative"),
        sa.CheckConstraint("paid_amount >= 0", name="ck_projects_paid_amount_non_negative"),
    )
    op.create_index("ix_projects_user_id", "projects", ["user_id"])
    op.create_index("ix_projects_client_id", "projects", ["client_id"])

    op.create_table(
        "workers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        _owner(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("skills", sa.String(length=1000), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(12, 2), nullable=True),
        sa.Column("total_earned", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("total_paid", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("status", worker_status, nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("hourly_rate IS NULL OR hourly_rate >= 0", name="ck_workers_hourly_rate_non_negative"),
    )
    op.create_index("ix_workers_user_id", "workers", ["user_id"])

    op.create_table(
        "tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        _owner(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column(
            "assigned_worker_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("workers.id"),
            nullable=True,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("status", task_status, nullable=False),
        sa.Column("priority", task_priority, nullable=False),
        sa.Column("estimated_hours", sa.Numeric(8, 2), nullable=True),
        sa.Column("actual_hours", sa.Numeric(8, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("hourly_rate", sa.Numeric(12, 2), nullable=True),
        sa.Column("cost", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "estimated_hours IS NULL OR estimated_hours >= 0",
            name="ck_tasks_estimated_hours_non_negative",
        ),
        sa.CheckConstraint("actual_hours >= 0", name="ck_tasks_actual_hours_non_negative"),
        sa.CheckConstraint("hourly_rate IS NULL OR hourly_rate >= 0", name="ck_tasks_hourly_rate_non_negative"),
        sa.CheckConstraint("cost >= 0", name="ck_tasks_cost_non_negative"),
    )
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"])
    op.create_index("ix_tasks_project_id", "tasks", ["project_id"])
    op.create_index("ix_tasks_assigned_worker_id", "tasks", ["assigned_worker_id"])

    op.create_table(
        "payments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        _owner(),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id"), nullable=True),
        sa.Column("worker_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("workers.id"), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("type", payment_type, nullable=False),
        sa.Column("status", payment_status, nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("paid_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        sa.CheckConstraint("client_id IS NULL OR worker_id IS NULL", name="ck_payments_not_client_and_worker"),
    )
    op.create_index("ix_payments_user_id", "payments", ["user_id"])
    op.create_index("ix_payments_project_status", "payments", ["project_id", "status"])
    op.create_index("ix_payments_client_id", "payments", ["client_id"])
    op.create_index("ix_payments_worker_id", "payments", ["worker_id"])

    op.create_table(
        "branding_settings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("business_name", sa.String(length=255), nullable=True),
        sa.Column("business_address", sa.String(length=1000), nullable=True),
        sa.Column("business_phone", sa.String(length=64), nullable=True),
        sa.Column("business_email", sa.String(length=320), nullable=True),
        sa.Column("website", sa.String(length=500), nullable=True),
        sa.Column("tax_number", sa.String(length=64), nullable=True),
        sa.Column("logo_url", sa.String(length=1000), nullable=True),
        sa.Column("primary_color", sa.String(length=16), nullable=False),
        sa.Column("secondary_color", sa.String(length=16), nullable=False),
        sa.Column("accent_color", sa.String(length=16), nullable=False),
        sa.Column("font_family", sa.String(length=64), nullable=False),
        sa.Column("default_template", sa.String(length=32), nullable=False),
        sa.Column("show_logo", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("show_business_info", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("invoice_prefix", sa.String(length=16), nullable=False),
        sa.Column("bank_name", sa.String(length=255), nullable=True),
        sa.Column("account_number", sa.String(length=64), nullable=True),
        sa.Column("routing_number", sa.String(length=64), nullable=True),
        sa.Column("paypal_email", sa.String(length=320), nullable=True),
        sa.Column("footer_text", sa.String(length=1000), nullable=True),
        sa.Column("terms_conditions", sa.String(length=2000), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("branding_settings")

    op.drop_index("ix_payments_worker_id", table_name="payments")
    op.drop_index("ix_payments_client_id", table_name="payments")
    op.drop_index("ix_payments_project_status", table_name="payments")
    op.drop_index("ix_payments_user_id", table_name="payments")
    op.drop_table("payments")

    op.drop_index("ix_tasks_assigned_worker_id", table_name="tasks")
    op.drop_index("ix_tasks_project_id", table_name="tasks")
    op.drop_index("ix_tasks_user_id", table_name="tasks")
    op.drop_table("tasks")

    op.drop_index("ix_workers_user_id", table_name="workers")
    op.drop_table("workers")

    op.drop_index("ix_projects_client_id", table_name="projects")
    op.drop_index("ix_projects_user_id", table_name="projects")
    op.drop_table("projects")

    op.drop_index("ix_clients_user_id", table_name="clients")
    op.drop_table("clients")

    op.drop_table("users")

    for enum_type in reversed(ENUM_TYPES):
        enum_type.drop(op.get_bind(), checkfirst=True)
