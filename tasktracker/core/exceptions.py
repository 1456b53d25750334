"""
Custom Exceptions for Task Tracker
"""


class TaskTrackerException(Exception):
    """Base exception for all Task Tracker errors"""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# Storage Exceptions
class StorageError(TaskTrackerException):
    """Underlying store operation failed"""

    pass


class NotFoundError(TaskTrackerException):
    """Referenced department, task or user does not exist"""

    pass


# Business Logic Exceptions
class ConflictError(TaskTrackerException):
    """Request conflicts with existing data (e.g. manager already assigned elsewhere)"""

    pass


class PreconditionError(TaskTrackerException):
    """Operation blocked by the current state of the data"""

    pass


# Access Exceptions
class AuthenticationError(TaskTrackerException):
    """Authentication failed"""

    pass


class AuthorizationError(TaskTrackerException):
    """User not authorized for this operation"""

    pass


class JWTDecodeError(AuthenticationError):
    """JWT decoding failed"""

    pass
