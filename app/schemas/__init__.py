"""Pydantic schemas for API payloads."""

from app.schemas.resource_group import (
    GroupType,
    PermissionCheckConstraints,
    PermissionCheckResult,
    ResourceGroupConstraints,
    ResourceGroupRequest,
    ResourceGroupResponse,
)

__all__ = [
    "GroupType",
    "PermissionCheckConstraints",
    "PermissionCheckResult",
    "ResourceGroupConstraints",
    "ResourceGroupRequest",
    "ResourceGroupResponse",
]
