"""Resource group store backed by SQLAlchemy."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, Iterable, List, Protocol, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.models.resource_group import ResourceGroup, ResourceGroupMapping
from app.schemas.resource_group import (
    GroupType,
    PermissionCheckResult,
    ResourceGroupRequest,
    ResourceGroupResponse,
)
from app.services.group_types import AuthorizationScope, BatchAuthorizer

ACTION_GET = "get"
ACTION_UPDATE = "update"

F = TypeVar("F", bound=Callable[..., Any])


class ResourceGroupServiceError(Exception):
    """Base class for resource group store errors."""

    status_code = 500


class ResourceGroupNotFoundError(ResourceGroupServiceError):
    """Raised when the addressed resource group does not exist."""

    status_code = 404


class ResourceGroupForbiddenError(ResourceGroupServiceError):
    """Raised when the caller lacks access to some member of the group."""

    status_code = 403


class ResourceGroupConflictError(ResourceGroupServiceError):
    """Raised when an active group with the same name already exists."""

    status_code = 409


class ResourceGroupService(Protocol):
    def get_active_resource_group_list(
        self,
        token: str,
        scope: AuthorizationScope,
        parent_resource_id: int,
        group_type: GroupType,
    ) -> List[ResourceGroupResponse]:
        ...

    def create_resource_group(
        self, request: ResourceGroupRequest, token: str, scope: AuthorizationScope
    ) -> ResourceGroupResponse:
        ...

    def update_resource_group(
        self, request: ResourceGroupRequest, token: str, scope: AuthorizationScope
    ) -> ResourceGroupResponse:
        ...

    def delete_resource_group(
        self,
        resource_group_id: int,
        group_type: GroupType,
        token: str,
        scope: AuthorizationScope,
    ) -> bool:
        ...

    def check_resource_group_permissions(
        self, request: ResourceGroupRequest, token: str, scope: AuthorizationScope
    ) -> PermissionCheckResult:
        ...


def rbac_object(parent_resource_id: int, resource_id: int) -> str:
    return f"{parent_resource_id}/{resource_id}"


def _storage_errors(method: F) -> F:
    """Roll back and surface database failures as store errors."""

    @functools.wraps(method)
    def wrapper(self: "SqlResourceGroupService", *args: Any, **kwargs: Any) -> Any:
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            self._session.rollback()
            self._logger.error(
                "resource_group_storage_error",
                extra={"method": method.__name__, "error": exc.__class__.__name__},
            )
            raise ResourceGroupServiceError(f"resource group storage failure: {exc.__class__.__name__}") from exc

    return wrapper  # type: ignore[return-value]


class SqlResourceGroupService:
    """Persists resource groups and gates them on member-level authorization."""

    def __init__(self, session: Session, authorizer: BatchAuthorizer) -> None:
        self._session = session
        self._authorizer = authorizer
        self._logger = logging.getLogger("app.services.resource_groups")

    @_storage_errors
    def get_active_resource_group_list(
        self,
        token: str,
        scope: AuthorizationScope,
        parent_resource_id: int,
        group_type: GroupType,
    ) -> List[ResourceGroupResponse]:
        stmt = (
            select(ResourceGroup)
            .options(selectinload(ResourceGroup.mappings))
            .where(ResourceGroup.parent_resource_id == parent_resource_id)
            .where(ResourceGroup.resource_key == group_type.value)
            .where(ResourceGroup.active.is_(True))
            .order_by(ResourceGroup.name)
        )
        groups = list(self._session.scalars(stmt))

        objects = {
            resource_id: rbac_object(parent_resource_id, resource_id)
            for group in groups
            for resource_id in group.active_resource_ids
        }
        decisions = self._authorizer.check(scope, token, list(objects.values()), ACTION_GET)

        visible: List[ResourceGroupResponse] = []
        for group in groups:
            allowed = [rid for rid in group.active_resource_ids if decisions.get(objects[rid], False)]
            if allowed:
                visible.append(self._to_response(group, resource_ids=allowed))
        return visible

    @_storage_errors
    def create_resource_group(
        self, request: ResourceGroupRequest, token: str, scope: AuthorizationScope
    ) -> ResourceGroupResponse:
        group_type = GroupType(request.group_type)
        self._require_access(scope, token, request.parent_resource_id, request.resource_ids)
        self._ensure_name_available(request.name, request.parent_resource_id, group_type)

        group = ResourceGroup(
            name=request.name,
            description=request.description or None,
            parent_resource_id=request.parent_resource_id,
            resource_key=group_type.value,
            active=True,
            created_by=request.user_id,
            updated_by=request.user_id,
        )
        group.mappings = self._build_mappings(request.resource_ids, group_type)
        self._session.add(group)
        self._flush_named(request.name)

        self._logger.info(
            "resource_group_created",
            extra={"resource_group_id": group.id, "group_type": group_type.value, "user_id": request.user_id},
        )
        return self._to_response(group)

    @_storage_errors
    def update_resource_group(
        self, request: ResourceGroupRequest, token: str, scope: AuthorizationScope
    ) -> ResourceGroupResponse:
        group_type = GroupType(request.group_type)
        group = self._get_active_group(request.id, group_type)
        # Access is required over both the old and the new membership.
        touched = set(group.active_resource_ids) | set(request.resource_ids)
        self._require_access(scope, token, group.parent_resource_id, sorted(touched))
        if request.name != group.name:
            self._ensure_name_available(request.name, group.parent_resource_id, group_type)

        group.name = request.name
        group.description = request.description or None
        group.updated_by = request.user_id
        self._replace_mappings(group, request.resource_ids, group_type)
        self._flush_named(request.name)

        self._logger.info(
            "resource_group_updated",
            extra={"resource_group_id": group.id, "group_type": group_type.value, "user_id": request.user_id},
        )
        return self._to_response(group)

    @_storage_errors
    def delete_resource_group(
        self,
        resource_group_id: int,
        group_type: GroupType,
        token: str,
        scope: AuthorizationScope,
    ) -> bool:
        group = self._get_active_group(resource_group_id, group_type)
        self._require_access(scope, token, group.parent_resource_id, group.active_resource_ids)

        group.active = False
        for mapping in group.mappings:
            mapping.active = False
        self._session.flush()

        self._logger.info(
            "resource_group_deleted",
            extra={"resource_group_id": group.id, "group_type": group_type.value},
        )
        return True

    def check_resource_group_permissions(
        self, request: ResourceGroupRequest, token: str, scope: AuthorizationScope
    ) -> PermissionCheckResult:
        objects = [rbac_object(request.parent_resource_id, rid) for rid in request.resource_ids]
        return self._authorizer.check(scope, token, objects, ACTION_UPDATE)

    def _require_access(
        self,
        scope: AuthorizationScope,
        token: str,
        parent_resource_id: int,
        resource_ids: Iterable[int],
    ) -> None:
        objects = [rbac_object(parent_resource_id, rid) for rid in resource_ids]
        decisions = self._authorizer.check(scope, token, objects, ACTION_UPDATE)
        # An object missing from the map was not evaluated and grants nothing.
        denied = [obj for obj in objects if not decisions.get(obj, False)]
        if denied:
            raise ResourceGroupForbiddenError(f"unauthorized for {', '.join(denied)}")

    def _flush_named(self, name: str) -> None:
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            raise ResourceGroupConflictError(f"resource group '{name}' already exists") from exc

    def _ensure_name_available(self, name: str, parent_resource_id: int, group_type: GroupType) -> None:
        existing = self._session.scalar(
            select(ResourceGroup.id)
            .where(ResourceGroup.name == name)
            .where(ResourceGroup.parent_resource_id == parent_resource_id)
            .where(ResourceGroup.resource_key == group_type.value)
            .where(ResourceGroup.active.is_(True))
        )
        if existing is not None:
            raise ResourceGroupConflictError(f"resource group '{name}' already exists")

    def _get_active_group(self, resource_group_id: int, group_type: GroupType) -> ResourceGroup:
        group = self._session.get(ResourceGroup, resource_group_id)
        if group is None or not group.active or group.resource_key != group_type.value:
            raise ResourceGroupNotFoundError(f"resource group {resource_group_id} not found")
        return group

    def _replace_mappings(self, group: ResourceGroup, resource_ids: List[int], group_type: GroupType) -> None:
        wanted = set(resource_ids)
        current: Dict[int, ResourceGroupMapping] = {
            mapping.resource_id: mapping for mapping in group.mappings if mapping.active
        }
        for resource_id, mapping in current.items():
            if resource_id not in wanted:
                mapping.active = False
        group.mappings.extend(self._build_mappings(sorted(wanted - current.keys()), group_type))

    @staticmethod
    def _build_mappings(resource_ids: Iterable[int], group_type: GroupType) -> List[ResourceGroupMapping]:
        return [
            ResourceGroupMapping(resource_id=resource_id, resource_key=group_type.value, active=True)
            for resource_id in dict.fromkeys(resource_ids)
        ]

    @staticmethod
    def _to_response(group: ResourceGroup, resource_ids: List[int] | None = None) -> ResourceGroupResponse:
        return ResourceGroupResponse(
            id=group.id,
            name=group.name,
            description=group.description,
            group_type=GroupType(group.resource_key),
            parent_resource_id=group.parent_resource_id,
            resource_ids=group.active_resource_ids if resource_ids is None else resource_ids,
            active=group.active,
        )
