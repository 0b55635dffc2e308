"""
Response envelope shared by every JSON endpoint.

Success: ``{"ok": true, "data": ...}``
Failure: ``{"ok": false, "error": "...", "code": "..."}``

Routers raise ``HTTPException`` as usual; the handlers registered in
``legatepro.main`` turn every failure into the error envelope. A router that
needs a specific code passes ``detail={"error": ..., "code": ...}``.
"""

import logging
from typing import Any, Generic, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from legatepro.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)

T = TypeVar("T")

ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    402: "PAYMENT_REQUIRED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    415: "UNSUPPORTED_MEDIA_TYPE",
    429: "RATE_LIMITED",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
}

NO_STORE_HEADERS = {"Cache-Control": "no-store"}


class Envelope(BaseModel, Generic[T]):
    """Successful response wrapper."""
    ok: bool = True
    data: T


class ErrorEnvelope(BaseModel):
    ok: bool = False
    error: str
    code: str
    details: list[Any] | None = None


def ok(data: Any) -> dict[str, Any]:
    """Wrap a payload in the success envelope."""
    return {"ok": True, "data": data}


def error_response(
    status_code: int,
    error: str,
    code: str | None = None,
    *,
    details: list[Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorEnvelope(
        error=error,
        code=code or ERROR_CODES.get(status_code, "ERROR"),
        details=details,
    ).model_dump(exclude_none=True)
    return JSONResponse(
        status_code=status_code,
        content=body,
        headers={**NO_STORE_HEADERS, **(headers or {})},
    )


# =============================================================================
# Exception handlers
# =============================================================================

async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    code = None
    if isinstance(detail, dict):
        code = detail.get("code")
        message = str(detail.get("error") or "Request failed")
    else:
        message = str(detail) if detail else "Request failed"
    return error_response(exc.status_code, message, code, headers=getattr(exc, "headers", None))


def _format_validation_error(err: dict[str, Any]) -> str:
    loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
    where = ".".join(loc)
    msg = err.get("msg", "Invalid value")
    return f"{where}: {msg}" if where else msg


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Invalid input is a 400 across the API (not FastAPI's default 422)."""
    errors = exc.errors()
    messages = [_format_validation_error(e) for e in errors]
    summary = messages[0] if messages else "Invalid request"
    return error_response(400, summary, "BAD_REQUEST", details=messages)


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return error_response(
        429,
        "Too many requests. Please try again shortly.",
        "RATE_LIMITED",
        headers={"Retry-After": "60"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        extra=build_log_context(route=request.url.path, method=request.method),
    )
    return error_response(500, "Internal server error", "INTERNAL_ERROR")
