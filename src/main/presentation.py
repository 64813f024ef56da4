from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from src.core.errors.exceptions import (
    CoreException,
    InfrastructureException,
    InstanceAlreadyExistsException,
    InstanceNotFoundException,
    InstanceProcessingException,
    PermissionDeniedException,
    UnauthorizedException,
)
from src.core.errors.handlers import (
    CoreExceptionHandler,
    InfrastructureExceptionHandler,
    InstanceAlreadyExistsExceptionHandler,
    InstanceNotFoundExceptionHandler,
    InstanceProcessingExceptionHandler,
    PermissionDeniedExceptionHandler,
    RequestValidationExceptionHandler,
    UnauthorizedExceptionHandler,
    ValidationErrorExceptionHandler,
    as_exception_handler,
)
from src.system import routers as system_routers
from src.user import routers as user_routers
from src.user.auth import routers as auth_routers


def include_routers(app: FastAPI) -> None:
    """
    Includes API routers into the FastAPI application.

    Parameters:
        app (FastAPI): The FastAPI application instance to which routers will
        be added.
    """
    api_router = APIRouter()
    api_router.include_router(auth_routers.router, tags=["Auth"])
    api_router.include_router(user_routers.router, prefix="/users", tags=["Users"])

    app.include_router(api_router, prefix="/api")
    app.include_router(system_routers.router, tags=["System"])


def include_exceptions_handlers(app: FastAPI) -> None:
    """
    Registers exception handlers for the project's exceptions.

    Every ``UnauthorizedException`` subclass (missing, forged, expired,
    wrong-kind and revoked tokens) goes through the one 401 handler.

    Parameters:
        app (FastAPI): The FastAPI application instance to which the exception handlers
        will be added.
    """
    app.add_exception_handler(
        InfrastructureException, as_exception_handler(InfrastructureExceptionHandler())
    )
    app.add_exception_handler(
        RequestValidationError,
        as_exception_handler(RequestValidationExceptionHandler()),
    )
    app.add_exception_handler(
        ValidationError, as_exception_handler(ValidationErrorExceptionHandler())
    )
    app.add_exception_handler(
        InstanceNotFoundException,
        as_exception_handler(InstanceNotFoundExceptionHandler()),
    )
    app.add_exception_handler(
        InstanceAlreadyExistsException,
        as_exception_handler(InstanceAlreadyExistsExceptionHandler()),
    )
    app.add_exception_handler(
        InstanceProcessingException,
        as_exception_handler(InstanceProcessingExceptionHandler()),
    )
    app.add_exception_handler(
        CoreException,
        as_exception_handler(CoreExceptionHandler()),
    )
    app.add_exception_handler(
        UnauthorizedException, as_exception_handler(UnauthorizedExceptionHandler())
    )
    app.add_exception_handler(
        PermissionDeniedException,
        as_exception_handler(PermissionDeniedExceptionHandler()),
    )
