"""Router registrations."""

from fastapi import APIRouter

from app.api.routers import health, resource_groups


def get_api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router, tags=["health"])
    router.include_router(resource_groups.router, prefix="/orchestrator/resource", tags=["resource-groups"])
    return router
