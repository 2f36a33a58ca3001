"""Global error handlers: every failure renders as the same JSON envelope.

    {"success": false, "error": "<message>", "kind": "<kind>"}
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from petnet.errors import InvalidInput, PetnetError

logger = structlog.get_logger()


def error_body(message: str, kind: str, **extra: object) -> dict[str, object]:
    return {"success": False, "error": message, "kind": kind, **extra}


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(PetnetError)
    async def petnet_error_handler(request: Request, exc: PetnetError) -> JSONResponse:
        """Domain errors raised by services."""
        logger.info(
            "request_rejected",
            path=request.url.path,
            method=request.method,
            kind=exc.kind,
            status=exc.status_code,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.kind))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Framework HTTP errors (unknown route, wrong method, ...)."""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail), "http_error"),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Body/query/path values that fail schema validation.

        Rendered with the same status and kind as a service-raised InvalidInput.
        """
        return JSONResponse(
            status_code=InvalidInput.status_code,
            content=error_body(
                _first_validation_message(exc),
                InvalidInput.kind,
                errors=jsonable_errors(exc),
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions, always JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content=error_body("Internal server error", "internal"))


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, object]]:
    """Validation error details without the non-serialisable ``ctx``/``input`` parts."""
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
