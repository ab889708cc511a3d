"""Invoice assembly, branding settings and the invoice template catalogue."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from freelancehub.core.auth import RequestUserContext
from freelancehub.core.config import get_settings
from freelancehub.models.entities import BrandingSettings, TaskStatus, utcnow
from freelancehub.repositories.freelance_repository import FreelanceRepository
from freelancehub.services.aggregates import ZERO, as_money, display_total_cost, outstanding_amount

logger = logging.getLogger(__name__)

DEFAULT_FOOTER_TEXT = "Thank you for your business!"

INVOICE_TEMPLATES: tuple[dict[str, object], ...] = (
    {
        "id": "modern",
        "name": "modern",
        "display_name": "Modern",
        "description": "Clean and contemporary design with bold typography",
        "is_default": True,
        "is_active": True,
        "layout": "two-column",
        "color_scheme": "blue",
        "header_style": "logo-focused",
    },
    {
        "id": "classic",
        "name": "classic",
        "display_name": "Classic",
        "description": "Traditional business invoice with professional formatting",
        "is_default": False,
        "is_active": True,
        "layout": "single-column",
        "color_scheme": "gray",
        "header_style": "minimal",
    },
    {
        "id": "minimal",
        "name": "minimal",
        "display_name": "Minimal",
        "description": "Simple, clean design focusing on clarity",
        "is_default": False,
        "is_active": True,
        "layout": "single-column",
        "color_scheme": "gray",
        "header_style": "minimal",
    },
    {
        "id": "corporate",
        "name": "corporate",
        "display_name": "Corporate",
        "description": "Professional corporate design with emphasis on branding",
        "is_default": False,
        "is_active": True,
        "layout": "header-focused",
        "color_scheme": "blue",
        "header_style": "bold",
    },
    {
        "id": "creative",
        "name": "creative",
        "display_name": "Creative",
        "description": "Unique design with creative elements and colors",
        "is_default": False,
        "is_active": True,
        "layout": "two-column",
        "color_scheme": "purple",
        "header_style": "logo-focused",
    },
)

TEMPLATE_IDS = frozenset(str(template["id"]) for template in INVOICE_TEMPLATES)


@dataclass(slots=True)
class InvoiceRequestData:
    project_ids: list[UUID]
    invoice_number: str
    due_date: date | None = None
    notes: str | None = None


@dataclass(slots=True)
class BrandingData:
    business_name: str | None = None
    business_address: str | None = None
    business_phone: str | None = None
    business_email: str | None = None
    website: str | None = None
    tax_number: str | None = None
    logo_url: str | None = None
    primary_color: str = "#3B82F6"
    secondary_color: str = "#1F2937"
    accent_color: str = "#10B981"
    font_family: str = "Inter"
    default_template: str = "modern"
    show_logo: bool = True
    show_business_info: bool = True
    invoice_prefix: str = "INV"
    bank_name: str | None = None
    account_number: str | None = None
    routing_number: str | None = None
    paypal_email: str | None = None
    footer_text: str | None = None
    terms_conditions: str | None = None


class InvoiceService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = FreelanceRepository(db)
        self.settings = get_settings()

    def default_payment_terms(self) -> str:
        return f"Payment is due within {self.settings.invoice_payment_terms_days} days of invoice date."

    # ---------- Templates ----------
    @staticmethod
    def list_templates() -> list[dict[str, object]]:
        return [dict(template) for template in INVOICE_TEMPLATES]

    # ---------- Branding ----------
    @staticmethod
    def serialize_branding(branding: BrandingSettings) -> dict[str, object]:
        payload = {name: getattr(branding, name) for name in BrandingData.__slots__}
        payload["id"] = str(branding.id)
        payload["created_at"] = branding.created_at.isoformat()
        payload["updated_at"] = branding.updated_at.isoformat()
        return payload

    def default_branding(self, *, context: RequestUserContext) -> dict[str, object]:
        payload = asdict(BrandingData())
        payload.update(
            id=None,
            business_name=context.display_name,
            business_email=context.email,
            footer_text=DEFAULT_FOOTER_TEXT,
            terms_conditions=self.default_payment_terms(),
        )
        return payload

    def get_branding(self, *, context: RequestUserContext) -> dict[str, object]:
        branding = self.repo.get_branding(context.user_id)
        if branding is None:
            return self.default_branding(context=context)
        return self.serialize_branding(branding)

    def save_branding(self, *, context: RequestUserContext, data: BrandingData) -> BrandingSettings:
        if data.default_template not in TEMPLATE_IDS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown invoice template '{data.default_template}'.",
            )

        now = utcnow()
        branding = self.repo.get_branding(context.user_id)
        if branding is None:
            branding = BrandingSettings(user_id=context.user_id, created_at=now)
            self.repo.add_branding(branding)

        for name, value in asdict(data).items():
            setattr(branding, name, value)
        branding.updated_at = now

        self.db.commit()
        self.db.refresh(branding)
        return branding

    # ---------- Invoices ----------
    def generate_invoice(self, *, context: RequestUserContext, data: InvoiceRequestData) -> dict[str, object]:
        requested_ids = list(dict.fromkeys(data.project_ids))
        projects = self.repo.get_projects(context.user_id, requested_ids)

        if not projects:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No projects found")
        if len(projects) != len(requested_ids):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Some projects were not found or do not belong to you",
            )
        if len({project.client_id for project in projects}) > 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="All projects must belong to the same client for a single invoice",
            )

        client = self.repo.get_client(context.user_id, projects[0].client_id)
        branding = self.repo.get_branding(context.user_id)

        line_items: list[dict[str, object]] = []
        project_summaries: list[dict[str, object]] = []
        subtotal = ZERO
        outstanding = ZERO

        for project in projects:
            tasks = self.repo.list_tasks_for_project(project.id)
            task_total = sum((as_money(task.cost) for task in tasks), ZERO)
            paid = as_money(self.repo.sum_paid_for_project(project.id))
            total_cost = display_total_cost(task_total, project.budget)
            project_outstanding = outstanding_amount(total_cost, paid)
            outstanding += project_outstanding

            if total_cost > ZERO:
                description = project.name
                if project.description:
                    description = f"{project.name} - {project.description}"
                line_items.append(
                    {
                        "type": "project",
                        "description": description,
                        "quantity": "1",
                        "rate": str(total_cost),
                        "amount": str(total_cost),
                    }
                )
                subtotal += total_cost

            for task in tasks:
                cost = as_money(task.cost)
                actual_hours = as_money(task.actual_hours)
                if cost <= ZERO or (task.status is not TaskStatus.COMPLETED and actual_hours <= ZERO):
                    continue
                quantity = actual_hours if actual_hours > ZERO else Decimal("1")
                rate = as_money(task.hourly_rate) if task.hourly_rate else as_money(cost / quantity)
                description = task.title
                if task.description:
                    description = f"{task.title} - {task.description}"
                line_items.append(
                    {
                        "type": "task",
                        "project_id": str(project.id),
                        "description": description,
                        "quantity": str(quantity),
                        "rate": str(rate),
                        "amount": str(cost),
                    }
                )

            project_summaries.append(
                {
                    "id": str(project.id),
                    "name": project.name,
                    "description": project.description,
                    "status": project.status.value,
                    "total_cost": str(total_cost),
                    "paid_amount": str(paid),
                    "outstanding_amount": str(project_outstanding),
                    "completed_tasks": sum(1 for task in tasks if task.status is TaskStatus.COMPLETED),
                }
            )

        tax = as_money(subtotal * self.settings.invoice_tax_rate)
        notes = data.notes
        if not notes:
            if len(projects) > 1:
                names = ", ".join(project.name for project in projects)
                notes = f"Invoice for {len(projects)} projects: {names}"
            else:
                notes = f"Invoice for project: {projects[0].name}"

        logger.info(
            "Generated invoice %s for client %s over %d project(s), total %s",
            data.invoice_number,
            client.id if client else None,
            len(projects),
            subtotal + tax,
        )
        return {
            "invoice_number": data.invoice_number,
            "issue_date": date.today().isoformat(),
            "due_date": data.due_date.isoformat() if data.due_date else None,
            "currency_symbol": self.settings.currency_symbol,
            "template": branding.default_template if branding else "modern",
            "freelancer": {
                "name": (branding.business_name if branding else None) or context.display_name,
                "email": (branding.business_email if branding else None) or context.email,
                "address": branding.business_address if branding else None,
                "phone": branding.business_phone if branding else None,
            },
            "client": {
                "id": str(client.id),
                "name": client.name,
                "email": client.email,
                "company": client.company,
                "address": client.address,
            }
            if client
            else None,
            "projects": project_summaries,
            "line_items": line_items,
            "subtotal": str(subtotal),
            "tax": str(tax),
            "total": str(subtotal + tax),
            "outstanding": str(outstanding),
            "notes": notes,
            "payment_terms": (branding.terms_conditions if branding else None) or self.default_payment_terms(),
            "status": "PENDING",
            "created_at": utcnow().isoformat(),
        }
