"""
Exceptions raised by the insights service.

All service errors derive from InsightsServiceError and carry a message,
a details dict for structured logging, and a recoverable flag.
"""

from typing import Any, Dict, Optional


class InsightsServiceError(Exception):
    """Base exception for all insights service errors."""

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable!r})"
        )


class InvalidTransactionError(InsightsServiceError):
    """A transaction record violates the analysis input contract."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=False)
        self.field = field
        self.value = value

        if field:
            self.details["field"] = field
        if value is not None:
            self.details["value"] = str(value)


class TransactionStoreError(InsightsServiceError):
    """
    The transaction store could not return a snapshot.

    Raised out of the analyzer unchanged; retries belong to the caller.
    """

    def __init__(
        self,
        message: str,
        *,
        user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ) -> None:
        super().__init__(message, details=details, recoverable=recoverable)
        self.user_id = user_id

        if user_id:
            self.details["user_id"] = user_id


class GenerationError(InsightsServiceError):
    """The optional text generation capability failed or returned nothing usable."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        api_error: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, recoverable=True)
        self.provider = provider
        self.api_error = api_error

        if provider:
            self.details["provider"] = provider
        if api_error:
            self.details["api_error"] = api_error


__all__ = [
    "InsightsServiceError",
    "InvalidTransactionError",
    "TransactionStoreError",
    "GenerationError",
]
