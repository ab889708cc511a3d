"""Top-level API router."""

from fastapi import APIRouter

from freelancehub.api.routes.branding import router as branding_router
from freelancehub.api.routes.clients import router as clients_router
from freelancehub.api.routes.dashboard import router as dashboard_router
from freelancehub.api.routes.health import router as health_router
from freelancehub.api.routes.invoices import router as invoices_router
from freelancehub.api.routes.me import router as me_router
from freelancehub.api.routes.payments import router as payments_router
from freelancehub.api.routes.projects import router as projects_router
from freelancehub.api.routes.tasks import router as tasks_router
from freelancehub.api.routes.workers import router as workers_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(me_router)
api_router.include_router(clients_router)
api_router.include_router(projects_router)
api_router.include_router(tasks_router)
api_router.include_router(workers_router)
api_router.include_router(payments_router)
api_router.include_router(dashboard_router)
api_router.include_router(invoices_router)
api_router.include_router(branding_router)
