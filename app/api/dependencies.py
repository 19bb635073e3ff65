"""Dependency injection helpers for FastAPI routes."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_session
from app.services.dispatcher import ResourceGroupDispatcher
from app.services.enforcer import Enforcer, get_enforcer
from app.services.group_types import BatchAuthorizer
from app.services.resource_groups import ResourceGroupService, SqlResourceGroupService
from app.services.users import UserService, get_user_service


def get_db_session() -> Session:
    yield from get_session()


def get_request_token(request: Request) -> str:
    return request.headers.get(get_settings().token_header, "")


def get_batch_authorizer(enforcer: Enforcer = Depends(get_enforcer)) -> BatchAuthorizer:
    return BatchAuthorizer(enforcer)


def get_resource_group_service(
    session: Session = Depends(get_db_session),
    authorizer: BatchAuthorizer = Depends(get_batch_authorizer),
) -> ResourceGroupService:
    return SqlResourceGroupService(session, authorizer)


def get_dispatcher(
    user_service: UserService = Depends(get_user_service),
    service: ResourceGroupService = Depends(get_resource_group_service),
) -> ResourceGroupDispatcher:
    return ResourceGroupDispatcher(user_service, service)
