"""Exception handlers producing one JSON error shape for every endpoint.

Business failures raised through ``raise_for_failure`` carry a ``{"code",
"message"}`` detail. Those are flattened so clients always see ``detail`` as a
human-readable string plus a machine-readable ``code``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from habitstake.errors import ErrorKind

logger = structlog.get_logger()

_STATUS_CODES = {
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    429: "rate_limited",
}


def error_body(status_code: int, detail: object) -> dict[str, object]:
    """Normalize an HTTPException detail into ``{"code", "detail"}``."""
    if isinstance(detail, dict) and "code" in detail:
        return {"code": detail["code"], "detail": detail.get("message", "")}
    return {"code": _STATUS_CODES.get(status_code, "http_error"), "detail": detail}


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "code": ErrorKind.VALIDATION_ERROR.value,
                "detail": "Validation error",
                "errors": jsonable_errors(exc),
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions. Internals never reach the client."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"code": ErrorKind.INTERNAL_ERROR.value, "detail": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    """Pydantic error entries without the non-serializable ``ctx``/``input`` bits."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
