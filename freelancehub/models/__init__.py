"""ORM model package."""

from freelancehub.models.entities import (
    BrandingSettings,
    Client,
    Payment,
    Project,
    Task,
    User,
    Worker,
)

__all__ = [
    "BrandingSettings",
    "Client",
    "Payment",
    "Project",
    "Task",
    "User",
    "Worker",
]
