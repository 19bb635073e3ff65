"""Request handling core for resource group operations.

Every entry point follows the same sequence: identify the caller, decode the
body, resolve the group type, apply the legacy app-group projections,
validate, and delegate to the resource group store together with the
authorization scope the group type resolved to.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.schemas.resource_group import (
    GroupType,
    PermissionCheckConstraints,
    PermissionCheckResult,
    ResourceGroupConstraints,
    ResourceGroupRequest,
    ResourceGroupResponse,
)
from app.services.enforcer import EnforcerError
from app.services.group_types import GroupTypeResolution, InvalidGroupTypeError, resolve_group_type
from app.services.resource_groups import ResourceGroupService, ResourceGroupServiceError
from app.services.users import UserResolutionError, UserService

T = TypeVar("T")

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


class ResourceGroupRequestError(Exception):
    """Base class for requests rejected before reaching the store."""

    status_code = 400


class UnauthorizedError(ResourceGroupRequestError):
    status_code = 401


class BadRequestError(ResourceGroupRequestError):
    status_code = 400


class ResourceGroupValidationError(ResourceGroupRequestError):
    """Normalized request failed field constraints; keeps the payload for diagnostics."""

    status_code = 400

    def __init__(self, message: str, *, errors: List[Dict[str, Any]], payload: Dict[str, Any]) -> None:
        super().__init__(message)
        self.errors = errors
        self.payload = payload


class ResourceGroupDispatcher:
    def __init__(
        self,
        user_service: UserService,
        resource_group_service: ResourceGroupService,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._users = user_service
        self._service = resource_group_service
        self._logger = logger or logging.getLogger("app.services.dispatcher")

    def get_active_resource_group_list(
        self, token: str, resource_id: str, group_type: str
    ) -> List[ResourceGroupResponse]:
        operation = "GetActiveResourceGroupList"
        parent_resource_id = self._parse_id(operation, "resourceId", resource_id)
        resolution = self._resolve(operation, group_type)
        return self._delegate(
            operation,
            lambda: self._service.get_active_resource_group_list(
                token, resolution.scope, parent_resource_id, resolution.group_type
            ),
            resourceId=parent_resource_id,
            groupType=resolution.group_type.value,
        )

    def create_resource_group(self, token: str, resource_id: str, body: Union[str, bytes]) -> ResourceGroupResponse:
        operation = "CreateResourceGroup"
        user_id = self._identify(operation, token)
        request = self._decode(operation, body)
        request.user_id = user_id
        parent_resource_id = self._parse_id(operation, "resourceId", resource_id)
        resolution = self._resolve(operation, request.group_type)
        request.parent_resource_id = parent_resource_id
        self._normalize(request, resolution)
        self._validate(operation, request, ResourceGroupConstraints)

        self._logger.info("resource_group_request", extra={"operation": operation, "payload": _dump(request)})
        return self._delegate(
            operation,
            lambda: self._service.create_resource_group(request, token, resolution.scope),
            payload=_dump(request),
        )

    def update_resource_group(self, token: str, body: Union[str, bytes]) -> ResourceGroupResponse:
        operation = "UpdateResourceGroup"
        user_id = self._identify(operation, token)
        request = self._decode(operation, body)
        request.user_id = user_id
        resolution = self._resolve(operation, request.group_type)
        self._normalize(request, resolution)
        self._validate(operation, request, ResourceGroupConstraints)

        self._logger.info("resource_group_request", extra={"operation": operation, "payload": _dump(request)})
        return self._delegate(
            operation,
            lambda: self._service.update_resource_group(request, token, resolution.scope),
            payload=_dump(request),
        )

    def delete_resource_group(self, token: str, resource_group_id: str, group_type: str) -> bool:
        operation = "DeleteResourceGroup"
        group_id = self._parse_id(operation, "resourceGroupId", resource_group_id)
        resolution = self._resolve(operation, group_type)

        self._logger.info(
            "resource_group_request",
            extra={"operation": operation, "resourceGroupId": group_id, "groupType": resolution.group_type.value},
        )
        return self._delegate(
            operation,
            lambda: self._service.delete_resource_group(group_id, resolution.group_type, token, resolution.scope),
            resourceGroupId=group_id,
            groupType=resolution.group_type.value,
        )

    def check_resource_group_permissions(
        self, token: str, resource_id: str, body: Union[str, bytes]
    ) -> PermissionCheckResult:
        operation = "CheckResourceGroupPermissions"
        user_id = self._identify(operation, token)
        request = self._decode(operation, body)
        request.user_id = user_id
        parent_resource_id = self._parse_id(operation, "resourceId", resource_id)
        resolution = self._resolve(operation, request.group_type)
        request.parent_resource_id = parent_resource_id
        self._normalize(request, resolution)
        self._validate(operation, request, PermissionCheckConstraints)

        self._logger.info("resource_group_request", extra={"operation": operation, "payload": _dump(request)})
        return self._delegate(
            operation,
            lambda: self._service.check_resource_group_permissions(request, token, resolution.scope),
            payload=_dump(request),
        )

    def _identify(self, operation: str, token: str) -> int:
        try:
            user_id = self._users.get_logged_in_user(token)
        except UserResolutionError as exc:
            self._logger.warning("resource_group_unauthorized", extra={"operation": operation, "err": str(exc)})
            raise UnauthorizedError("Unauthorized User") from exc
        if not user_id:
            self._logger.warning("resource_group_unauthorized", extra={"operation": operation, "err": "no user"})
            raise UnauthorizedError("Unauthorized User")
        return user_id

    def _decode(self, operation: str, body: Union[str, bytes]) -> ResourceGroupRequest:
        try:
            return ResourceGroupRequest.model_validate_json(body)
        except ValidationError as exc:
            self._logger.error("resource_group_request_err", extra={"operation": operation, "err": str(exc)})
            raise BadRequestError(f"invalid request body: {exc.error_count()} error(s)") from exc

    def _parse_id(self, operation: str, name: str, raw: str) -> int:
        if not _ID_PATTERN.fullmatch(raw):
            self._logger.error("resource_group_request_err", extra={"operation": operation, name: raw})
            raise BadRequestError(f"invalid {name} {raw!r}")
        return int(raw)

    def _resolve(self, operation: str, group_type: str) -> GroupTypeResolution:
        try:
            return resolve_group_type(group_type)
        except InvalidGroupTypeError as exc:
            self._logger.error("resource_group_request_err", extra={"operation": operation, "err": str(exc)})
            raise BadRequestError(str(exc)) from exc

    @staticmethod
    def _normalize(request: ResourceGroupRequest, resolution: GroupTypeResolution) -> None:
        request.group_type = resolution.group_type.value
        if resolution.group_type is not GroupType.APP_GROUP:
            return
        if request.environment_id > 0:
            request.parent_resource_id = request.environment_id
        if request.app_ids:
            request.resource_ids = list(request.app_ids)

    def _validate(self, operation: str, request: ResourceGroupRequest, constraints: Type[BaseModel]) -> None:
        payload = _dump(request)
        try:
            constraints.model_validate(payload)
        except ValidationError as exc:
            errors = exc.errors(include_url=False, include_context=False, include_input=False)
            self._logger.error(
                "resource_group_validation_error",
                extra={"operation": operation, "err": str(exc), "payload": payload},
            )
            raise ResourceGroupValidationError(
                f"validation failed for {operation}", errors=errors, payload=payload
            ) from exc

    def _delegate(self, operation: str, call: Callable[[], T], **context: Any) -> T:
        try:
            return call()
        except ResourceGroupServiceError as exc:
            self._logger.error("resource_group_service_err", extra={"operation": operation, "err": str(exc), **context})
            raise
        except EnforcerError as exc:
            self._logger.error("resource_group_service_err", extra={"operation": operation, "err": str(exc), **context})
            raise ResourceGroupServiceError(str(exc)) from exc
        except SQLAlchemyError as exc:
            # Statement text and parameters stay out of the client-facing message.
            message = f"resource group storage failure: {exc.__class__.__name__}"
            self._logger.error("resource_group_service_err", extra={"operation": operation, "err": message, **context})
            raise ResourceGroupServiceError(message) from exc


def _dump(request: ResourceGroupRequest) -> Dict[str, Any]:
    return request.model_dump(by_alias=True)
