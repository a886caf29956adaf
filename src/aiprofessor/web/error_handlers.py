import logging
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from aiprofessor.errors import ErrorKind, OversizedPayloadError, ProviderTimeoutError, RateLimitedError, UserError
from aiprofessor.utils import now

logger = logging.getLogger(__name__)

KIND_STATUS_CODES = {
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.SESSION_POLICY: 409,
    ErrorKind.INPUT_VALIDATION: 400,
    ErrorKind.PROVIDER_FAILURE: 502,
    ErrorKind.CONVERSION_FAILURE: 500,
}


def create_json_error_response(
    request: Request, status_code: int, message: str, details: dict[str, Any] | None = None
) -> JSONResponse:
    """Create the uniform JSON error body."""
    content: dict[str, Any] = {
        "timestamp": now().isoformat(),
        "status": status_code,
        "error": HTTPStatus(status_code).phrase,
        "message": message,
        "path": request.url.path,
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def get_status_code(exc: UserError) -> int:
    """HTTP status for a classified error."""
    if isinstance(exc, OversizedPayloadError):
        return 413
    if isinstance(exc, RateLimitedError):
        return 429
    if isinstance(exc, ProviderTimeoutError):
        return 504
    return KIND_STATUS_CODES[exc.kind]


async def user_error_handler(request: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if not isinstance(exc, UserError):
        return await general_exception_handler(request, exc)

    status_code = get_status_code(exc)
    if status_code >= 500:
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc, exc_info=exc.__cause__ is not None)
    return create_json_error_response(request, status_code, str(exc), exc.details)


async def request_validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle malformed request bodies and parameters (400)."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    field_errors = [
        {"field": ".".join(str(part) for part in error["loc"] if part != "body"), "message": error["msg"]} for error in errors
    ]
    return create_json_error_response(request, 400, "Request validation failed", {"fieldErrors": field_errors})


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle routing errors such as unknown paths and wrong methods."""
    if not isinstance(exc, StarletteHTTPException):
        return await general_exception_handler(request, exc)
    message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
    return create_json_error_response(request, exc.status_code, message)


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(request, 500, "An unexpected error occurred.")
