"""Domain exceptions for tablefed.

Defines exceptions that represent business rule violations and the failure
modes of the schema pipeline. They are independent of infrastructure
concerns; the presentation layer maps them to HTTP responses in
exception handlers and the decommission worker maps them to retry
decisions.
"""

from typing import Any


class TableFedException(Exception):
    """Base exception for all tablefed errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(TableFedException):
    """Raised when a table definition is invalid (fields, names, primary key)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(TableFedException):
    """Raised when the tenant credential is missing."""

    def __init__(self, message: str = "Missing tenant credential") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class ResourceNotFoundException(TableFedException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'table', 'resolver').
            resource_id: The id or name that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class TableConflictException(TableFedException):
    """Raised when a table name is taken under the tenant by a different definition."""

    def __init__(self, table_name: str, reason: str = "Table already exists") -> None:
        super().__init__(
            f"{reason}: {table_name}",
            "TABLE_CONFLICT",
            {"table_name": table_name},
        )


class PublicationFailureException(TableFedException):
    """Raised when the managed engine rejects the merged document.

    Not retryable without a schema fix; the previously active document stays
    in place.
    """

    def __init__(self, diagnostic: str, attempts: int) -> None:
        super().__init__(
            f"Schema publication failed: {diagnostic}",
            "PUBLICATION_FAILED",
            {"diagnostic": diagnostic, "attempts": attempts, "retryable": False},
        )


class PublicationTimeoutException(TableFedException):
    """Raised when the schema status poll budget is exhausted. Retryable."""

    def __init__(self, attempts: int, interval_seconds: float) -> None:
        super().__init__(
            f"Schema publication did not finish after {attempts} status checks",
            "PUBLICATION_TIMEOUT",
            {
                "attempts": attempts,
                "interval_seconds": interval_seconds,
                "retryable": True,
            },
        )


class PublicationConflictException(TableFedException):
    """Raised when another publish replaced the document since it was read. Retryable."""

    def __init__(self, expected_revision: str | None, actual_revision: str | None) -> None:
        super().__init__(
            "Schema document changed during publication; retry.",
            "PUBLICATION_CONFLICT",
            {
                "expected_revision": expected_revision,
                "actual_revision": actual_revision,
                "retryable": True,
            },
        )


class TransientIOException(TableFedException):
    """Raised when a collaborator call (AWS or otherwise) fails.

    Propagated so the caller's retry (sync paths) or the queue redelivery
    (decommission) can re-attempt.
    """

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"{operation} failed: {reason}",
            "TRANSIENT_IO",
            {"operation": operation, "reason": reason, "retryable": True},
        )
