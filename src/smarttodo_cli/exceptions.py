"""Custom exceptions for Smart To-Do."""

from smarttodo_cli.utils import exit_codes


class SmartTodoError(Exception):
    """Base exception for all Smart To-Do errors.

    Carries the semantic exit code the CLI should terminate with.
    """

    exit_code = exit_codes.ERROR_GENERAL

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class TaskValidationError(SmartTodoError):
    """Raised when task input is rejected before any remote call."""

    exit_code = exit_codes.ERROR_INVALID_ARGS


class TaskNotFoundError(SmartTodoError):
    """Raised when an id (or suffix) does not match exactly one local task."""

    exit_code = exit_codes.ERROR_NOT_FOUND


class RemoteError(SmartTodoError):
    """Raised for any failure reported by the backend (network, auth, constraint)."""

    exit_code = exit_codes.ERROR_NETWORK

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_auth_rejection(self) -> bool:
        """Whether the backend explicitly refused the credentials."""
        return self.status_code in (400, 401, 403)


class RemoteTimeoutError(RemoteError):
    """Raised when a backend call does not complete in time."""


class NotAuthenticatedError(SmartTodoError):
    """Raised when a task operation is attempted without a session."""

    exit_code = exit_codes.ERROR_AUTH_FAILURE


class SessionLoadingError(SmartTodoError):
    """Raised when a task operation is attempted before the session resolved."""
