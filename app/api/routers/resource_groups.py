"""Resource group endpoints.

Path identifiers are accepted as raw strings; the dispatcher owns parsing so
that malformed ids are reported as 400 rather than FastAPI's 422.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder

from app.api.dependencies import get_dispatcher, get_request_token
from app.services.dispatcher import ResourceGroupDispatcher

router = APIRouter()


async def get_raw_body(request: Request) -> bytes:
    return await request.body()


def _ok(result: Any) -> Dict[str, Any]:
    return {"code": HTTPStatus.OK.value, "status": HTTPStatus.OK.phrase, "result": jsonable_encoder(result)}


@router.get("/{resource_id}/group/{group_type}")
def get_active_resource_group_list(
    resource_id: str,
    group_type: str,
    token: str = Depends(get_request_token),
    dispatcher: ResourceGroupDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    return _ok(dispatcher.get_active_resource_group_list(token, resource_id, group_type))


@router.get("/{resource_id}/group")
def get_active_app_group_list(
    resource_id: str,
    token: str = Depends(get_request_token),
    dispatcher: ResourceGroupDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    return _ok(dispatcher.get_active_resource_group_list(token, resource_id, ""))


@router.post("/{resource_id}/group")
def create_resource_group(
    resource_id: str,
    body: bytes = Depends(get_raw_body),
    token: str = Depends(get_request_token),
    dispatcher: ResourceGroupDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    return _ok(dispatcher.create_resource_group(token, resource_id, body))


@router.put("/group")
def update_resource_group(
    body: bytes = Depends(get_raw_body),
    token: str = Depends(get_request_token),
    dispatcher: ResourceGroupDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    return _ok(dispatcher.update_resource_group(token, body))


@router.delete("/group/{resource_group_id}/{group_type}")
def delete_resource_group(
    resource_group_id: str,
    group_type: str,
    token: str = Depends(get_request_token),
    dispatcher: ResourceGroupDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    return _ok(dispatcher.delete_resource_group(token, resource_group_id, group_type))


@router.delete("/group/{resource_group_id}")
def delete_app_group(
    resource_group_id: str,
    token: str = Depends(get_request_token),
    dispatcher: ResourceGroupDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    return _ok(dispatcher.delete_resource_group(token, resource_group_id, ""))


@router.post("/{resource_id}/group/permission/check")
def check_resource_group_permissions(
    resource_id: str,
    body: bytes = Depends(get_raw_body),
    token: str = Depends(get_request_token),
    dispatcher: ResourceGroupDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    return _ok(dispatcher.check_resource_group_permissions(token, resource_id, body))
