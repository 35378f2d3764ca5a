from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from freefood.services.exceptions import (
    NotFoundError,
    ServiceError,
    StoreUnavailableError,
    ValidationError,
)

logger = structlog.get_logger()


def http_error_from_service(err: ServiceError) -> JSONResponse:
    content: dict = {"error": err.message, "code": err.code}
    if isinstance(err, NotFoundError):
        status = 404
    elif isinstance(err, ValidationError):
        status = 400
        if err.required:
            content["required"] = err.required
    else:
        status = 500
        content["details"] = err.details if isinstance(err, StoreUnavailableError) else None

    return JSONResponse(status_code=status, content=content)


def _describe(error: dict) -> str:
    field = ".".join(str(part) for part in error.get("loc", ())[1:])
    return f"{field}: {error.get('msg')}" if field else str(error.get("msg"))


def http_error_from_validation(exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()

    # Only top-level body fields count as "required"; nested gaps are invalid values
    required = [
        str(error["loc"][1])
        for error in errors
        if error.get("type") == "missing"
        and len(error.get("loc", ())) == 2
        and error["loc"][0] == "body"
    ]
    if required:
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields", "code": "VALIDATION_ERROR", "required": required},
        )

    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request body",
            "code": "VALIDATION_ERROR",
            "details": [_describe(error) for error in errors],
        },
    )


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def _service_error(request: Request, exc: ServiceError) -> JSONResponse:
        return http_error_from_service(exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("request_rejected", path=request.url.path, errors=len(exc.errors()))
        return http_error_from_validation(exc)
