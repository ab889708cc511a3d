"""Dashboard read endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from freelancehub.core.auth import RequestUserContext, get_current_user_context
from freelancehub.db.dependencies import get_db_session
from freelancehub.services.reporting_service import ReportingService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _reporting_service(db: Session) -> ReportingService:
    return ReportingService(db)


@router.get("/stats")
def dashboard_stats(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _reporting_service(db).dashboard_stats(context=context)


@router.get("/chart")
def financial_chart(
    months: int | None = Query(default=None, ge=1, le=24),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    """Monthly revenue, expenses and profit, oldest month first."""

    return {"items": _reporting_service(db).financial_chart(context=context, months=months)}


@router.get("/activity")
def recent_activity(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    return {"items": _reporting_service(db).recent_activity(context=context)}
