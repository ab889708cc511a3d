"""Invoice branding settings endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field, HttpUrl
from sqlalchemy.orm import Session

from freelancehub.api.payloads import PayloadModel
from freelancehub.core.auth import RequestUserContext, get_current_user_context
from freelancehub.db.dependencies import get_db_session
from freelancehub.services.invoice_service import BrandingData, InvoiceService

router = APIRouter(prefix="/branding", tags=["branding"])

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class BrandingPayload(PayloadModel):
    business_name: str | None = Field(default=None, max_length=255)
    business_address: str | None = Field(default=None, max_length=1000)
    business_phone: str | None = Field(default=None, max_length=64)
    business_email: EmailStr | None = None
    website: HttpUrl | None = None
    tax_number: str | None = Field(default=None, max_length=64)
    logo_url: HttpUrl | None = None
    primary_color: str = Field(default="#3B82F6", pattern=COLOR_PATTERN)
    secondary_color: str = Field(default="#1F2937", pattern=COLOR_PATTERN)
    accent_color: str = Field(default="#10B981", pattern=COLOR_PATTERN)
    font_family: str = Field(default="Inter", min_length=1, max_length=64)
    default_template: str = Field(default="modern", min_length=1, max_length=32)
    show_logo: bool = True
    show_business_info: bool = True
    invoice_prefix: str = Field(default="INV", min_length=1, max_length=16)
    bank_name: str | None = Field(default=None, max_length=255)
    account_number: str | None = Field(default=None, max_length=64)
    routing_number: str | None = Field(default=None, max_length=64)
    paypal_email: EmailStr | None = None
    footer_text: str | None = Field(default=None, max_length=1000)
    terms_conditions: str | None = Field(default=None, max_length=2000)


@router.get("")
def get_branding(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Stored branding, or defaults derived from the account."""

    return InvoiceService(db).get_branding(context=context)


@router.put("")
def save_branding(
    payload: BrandingPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    values = payload.model_dump()
    values["website"] = str(payload.website) if payload.website else None
    values["logo_url"] = str(payload.logo_url) if payload.logo_url else None

    service = InvoiceService(db)
    branding = service.save_branding(context=context, data=BrandingData(**values))
    return service.serialize_branding(branding)
