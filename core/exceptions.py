import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)


class WorkshopError(HTTPException):
    """Base for errors raised by the services. Carries a short machine-readable kind."""

    error_code = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: Any = None, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code, detail=detail)


class ValidationError(WorkshopError):
    error_code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(WorkshopError):
    error_code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class UploadError(WorkshopError):
    error_code = "upload_error"
    status_code = status.HTTP_400_BAD_REQUEST


class PartialFailureError(WorkshopError):
    """A multi-step mutation stopped halfway; some side effects were kept."""

    error_code = "partial_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def format_validation_errors(errors) -> list:
    """Flatten pydantic error dicts into `{"field", "message"}` entries, one per violation."""
    formatted = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        formatted.append({
            "field": ".".join(loc) or None,
            "message": err.get("msg", "Invalid value"),
        })
    return formatted


async def workshop_error_handler(request: Request, exc: WorkshopError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.error_code},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": format_validation_errors(exc.errors()),
            "error": ValidationError.error_code,
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error", "error": "internal_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkshopError, workshop_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def validate_input(schema_cls, data: dict):
    """Build ``schema_cls`` from raw form data, reporting every invalid field at once."""
    try:
        return schema_cls(**data)
    except PydanticValidationError as e:
        raise ValidationError(format_validation_errors(e.errors()))
