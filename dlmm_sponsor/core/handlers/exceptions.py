from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import (
    http_exception_handler,
    request_validation_exception_handler,
)
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from dlmm_sponsor.core.errors import api_error
from dlmm_sponsor.core.utils.json_guards import is_json_mapping
from dlmm_sponsor.core.utils.request_id import get_request_id

logger = logging.getLogger(__name__)


def _detail_text(detail: object) -> str:
    if isinstance(detail, str):
        stripped = detail.strip()
        return stripped or "Request failed"
    if is_json_mapping(detail):
        message = detail.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
        error = detail.get("error")
        if isinstance(error, str) and error.strip():
            return error.strip()
    return "Request failed"


def _validation_details(exc: RequestValidationError) -> str | None:
    errors = exc.errors()
    if not errors:
        return None
    first = errors[0]
    loc = first.get("loc", [])
    if isinstance(loc, (list, tuple)):
        param = ".".join(str(part) for part in loc if part != "body")
        if param:
            return param
    return None


def add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> Response:
        if request.url.path.startswith("/api/"):
            return JSONResponse(
                status_code=422,
                content=api_error("Invalid request payload", details=_validation_details(exc)),
            )
        return await request_validation_exception_handler(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> Response:
        if request.url.path.startswith("/api/"):
            return JSONResponse(
                status_code=exc.status_code,
                content=api_error(_detail_text(exc.detail)),
                headers=exc.headers,
            )
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(
        request: Request,
        exc: Exception,
    ) -> Response:
        # The middleware has already reset the contextvar by the time this handler runs.
        request_id = getattr(request.state, "request_id", None) or get_request_id()
        logger.exception("Unhandled error request_id=%s path=%s", request_id, request.url.path)
        return JSONResponse(status_code=500, content=api_error("Internal server error"))
