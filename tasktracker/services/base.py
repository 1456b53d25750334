"""
Service Layer Base Class

Shared logging and error translation for services that run against the
injected AsyncSession.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.exceptions import StorageError, TaskTrackerException
from tasktracker.core.logging import get_logger
from tasktracker.schemas.base import BaseSchema


T = TypeVar("T")


def storage_error_mapper(exc: Exception) -> TaskTrackerException:
    """Translate store failures into StorageError, keeping the driver message."""

    return StorageError(f"Storage operation failed: {exc}")


class BaseService:
    """
    Service base class providing common logging and error helpers.

    Domain errors raised inside an operation pass through unchanged;
    SQLAlchemy failures are surfaced as ``StorageError``. Nothing is retried.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.logger = get_logger(self.__class__.__name__)

    def _log_start(self, operation: str, payload: BaseSchema | dict | None = None) -> None:
        """Log service method entry with its (serialised) arguments."""

        if isinstance(payload, BaseSchema):
            serialized: Any = payload.model_dump(exclude_unset=True, mode="json")
        else:
            serialized = payload
        self.logger.info("service_operation_start", operation=operation, payload=serialized)

    def _log_success(self, operation: str, metadata: dict[str, Any] | None = None) -> None:
        meta = metadata or {}
        self.logger.info("service_operation_success", operation=operation, **meta)

    def _log_failure(self, operation: str, error: Exception) -> None:
        self.logger.error(
            "service_operation_failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )

    async def _execute_with_handling(
        self,
        operation: str,
        action: Callable[[], Awaitable[T]],
        *,
        payload: BaseSchema | dict | None = None,
        error_mapper: Callable[[Exception], TaskTrackerException] | None = storage_error_mapper,
    ) -> T:
        """
        Run ``action`` with start/success/failure logging and exception translation.
        """

        self._log_start(operation, payload)
        try:
            result = await action()
        except TaskTrackerException as exc:  # already a domain error, pass through
            self._log_failure(operation, exc)
            raise
        except SQLAlchemyError as exc:
            self._log_failure(operation, exc)
            if error_mapper:
                raise error_mapper(exc) from exc
            raise

        self._log_success(operation)
        return result
