"""Exception handlers for the FastAPI app."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.services.dispatcher import ResourceGroupRequestError, ResourceGroupValidationError
from app.services.resource_groups import ResourceGroupServiceError


def error_body(status_code: int, message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "code": status_code,
        "status": HTTPStatus(status_code).phrase,
        "errors": [{"userMessage": message, "internalMessage": message}],
    }
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ResourceGroupValidationError)
    async def validation_handler(request: Request, exc: ResourceGroupValidationError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, str(exc), details=exc.errors, payload=exc.payload),
        )

    @app.exception_handler(ResourceGroupRequestError)
    async def request_error_handler(request: Request, exc: ResourceGroupRequestError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, str(exc)))

    @app.exception_handler(ResourceGroupServiceError)
    async def service_error_handler(request: Request, exc: ResourceGroupServiceError) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, str(exc)))
