"""Application error taxonomy and the FastAPI handlers that render it.

Every error raised by the services carries its HTTP status code so routers
can let it propagate. Responses share one shape::

    {"success": false, "message": "...", "errors": [{"field": ..., "message": ...}]}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
        status_code: int | None = None,
    ):
        self.message = message
        self.errors = errors or []
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "message": self.message, "errors": self.errors}


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidStateTransition(AppError):
    """An action was requested from a status that does not allow it."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, current_status: str, action: str):
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} subscription in status '{current_status}'",
            errors=[{"field": "status", "message": current_status}],
        )


class GatewayError(AppError):
    """The payment provider call failed or returned something unusable."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, provider_message: str | None = None):
        self.provider_message = provider_message or message
        super().__init__(message)


class SignatureError(AppError):
    """Signature mismatch. Never surfaced by the webhook endpoint."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnknownStatusError(ValueError):
    """The provider reported a subscription status outside the known set."""


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    body = ValidationError("Validation Error", errors=errors).to_dict()
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        request_validation_error_handler,  # type: ignore[arg-type]
    )
