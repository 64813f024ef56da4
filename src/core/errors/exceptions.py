from typing import Any


class CoreException(Exception):
    def __init__(
        self, message: str | None = None, additional_info: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.additional_info = additional_info


class InfrastructureException(CoreException):
    pass


class InstanceNotFoundException(CoreException):
    pass


class InstanceAlreadyExistsException(CoreException):
    pass


class InstanceProcessingException(CoreException):
    pass


class UnauthorizedException(CoreException):
    """
    Authentication failed. Every subclass is answered with the same 401 status;
    ``reason`` tells the client whether to renew or to log in again.
    """

    reason: str = "auth/unauthorized"


class PermissionDeniedException(CoreException):
    pass
