from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse


class AppError(Exception):
    """Base application error rendered in the {success, message} envelope."""

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidWebhookError(AppError):
    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="INVALID_WEBHOOK", status_code=status.HTTP_400_BAD_REQUEST)


class GatewayUnavailableError(AppError):
    def __init__(self, gateway: str):
        super().__init__(
            f"Payment gateway '{gateway}' is not configured",
            code="GATEWAY_UNAVAILABLE",
            details={"gateway": gateway},
        )


class GatewayError(AppError):
    def __init__(self, message: str, gateway: str):
        super().__init__(message, code="GATEWAY_ERROR", details={"gateway": gateway})


class PersistenceError(AppError):
    def __init__(self, message: str = "Store unavailable"):
        super().__init__(message, code="PERSISTENCE_ERROR")


# Store-level outcomes. Services translate these into business results;
# if one escapes, it still renders as success=false with HTTP 200.


class DuplicateUserError(AppError):
    def __init__(self, external_id: str):
        super().__init__(
            "User already exists",
            code="DUPLICATE_USER",
            status_code=status.HTTP_200_OK,
            details={"external_id": external_id},
        )


class UserNotFoundError(AppError):
    def __init__(self, external_id: str):
        super().__init__(
            "User not found",
            code="USER_NOT_FOUND",
            status_code=status.HTTP_200_OK,
            details={"external_id": external_id},
        )


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    body = {
        "success": False,
        "message": exc.message,
        "code": exc.code,
        "details": exc.details,
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=exc.status_code, content=body)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    if exc.status_code >= 500:
        from creditsync.core.logging import get_logger
        get_logger(__name__).error("app_error", code=exc.code, message=exc.message, **exc.details)
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    body = {
        "success": False,
        "message": "Validation error",
        "code": "VALIDATION_ERROR",
        "details": {"errors": exc.errors()},
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from creditsync.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    body = {
        "success": False,
        "message": "Internal server error",
        "code": "INTERNAL_ERROR",
        "details": {},
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body,
    )
