from collections.abc import Awaitable, Callable
import time
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import sentry_sdk
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError
from starlette.responses import Response

from loggers import get_logger

logger = get_logger(__name__)
timing_logger = get_logger("src.request.timing", plain_format=True)
UNEXPECTED_ERROR_DETAIL = "Unexpected error"
TOKEN_RESPONSE_HEADERS = ("token", "refresh-token")


def register_middlewares(app: FastAPI) -> None:
    """Registers all custom middlewares in proper order"""

    @app.middleware("http")
    async def security_headers_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Content-Security-Policy", "frame-ancestors 'none'")
        if any(name in response.headers for name in TOKEN_RESPONSE_HEADERS):
            # Credentials must not end up in shared or browser caches
            response.headers["Cache-Control"] = "no-store"
        return response

    @app.middleware("http")
    async def request_timing_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        if process_time < 0.5:
            level = timing_logger.info
            category = "[FAST]"
        elif process_time < 2:
            level = timing_logger.warning
            category = "[MODERATE]"
        else:
            level = timing_logger.warning
            category = "[SLOW]"

        level(
            "%s %s %s |%.3fs|%s",
            category,
            request.method,
            request.url.path,
            process_time,
            response.status_code,
        )

        return response

    @app.middleware("http")
    async def database_error_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except IntegrityError as exc:
            return handle_integrity_error(request, exc)
        except OperationalError as e:
            logger.error(
                "Database connection error at %s: %s", request.url.path, e.orig
            )
            sentry_sdk.capture_exception(e)
            return JSONResponse(
                status_code=500,
                content={
                    "detail": "Database connection error. Please try again later."
                },
            )
        except ProgrammingError as e:
            logger.error("SQL syntax error at %s: %s", request.url.path, e.orig)
            sentry_sdk.capture_exception(e)
            return JSONResponse(
                status_code=500, content={"detail": "Database query error."}
            )

    @app.middleware("http")
    async def unexpected_error_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "Unexpected error at %s: %s\n%s",
                request.url.path,
                str(e),
                traceback.format_exc(),
            )
            sentry_sdk.capture_exception(e)
            return JSONResponse(
                status_code=500, content={"detail": UNEXPECTED_ERROR_DETAIL}
            )


def handle_integrity_error(request: Request, error: IntegrityError) -> JSONResponse:
    """
    Map a PostgreSQL IntegrityError to a response.

    A unique violation (e.g. two concurrent sign-ups with one email) is the
    caller's conflict; anything else is a server error reported to Sentry.
    """
    sqlstate = getattr(error.orig, "sqlstate", None)
    if sqlstate == "23505":  # UniqueViolation
        logger.info("Unique violation at %s", request.url.path)
        return JSONResponse(
            status_code=409,
            content={"error": "Instance already exists", "message": "Conflict"},
        )

    logger.error(
        "Integrity error at %s: %s", request.url.path, error.orig, exc_info=True
    )
    sentry_sdk.capture_exception(error)
    return JSONResponse(status_code=500, content={"detail": UNEXPECTED_ERROR_DETAIL})
