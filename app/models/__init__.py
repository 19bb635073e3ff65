"""SQLAlchemy ORM models for the resource group store."""

from app.models.base import Base  # noqa: F401
from app.models.resource_group import ResourceGroup, ResourceGroupMapping  # noqa: F401
