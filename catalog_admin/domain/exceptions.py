"""Domain exceptions.

All catalog-level errors. The API layer maps each class to an HTTP
status; ``AssetIngestionError`` never leaves the ingestion pipeline.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    error_code = "DOMAIN_ERROR"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """Raised when a required field is missing, empty or malformed."""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Human-readable error message.
            field: Name of the offending field, if any.
        """
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class NotFoundError(DomainError):
    """Raised when an identifier does not resolve to a record."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity_type: str, entity_id: str) -> None:
        """Initialize not found error.

        Args:
            entity_type: Kind of record (e.g. "Category", "Product").
            entity_id: Identifier that was looked up.
        """
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class AssetIngestionError(DomainError):
    """Raised inside the ingestion pipeline when an asset cannot be produced.

    Callers of the pipeline never see it: it is logged and turned into
    an omitted asset.
    """

    error_code = "ASSET_INGESTION_FAILED"

    def __init__(self, source: str, reason: str) -> None:
        """Initialize asset ingestion error.

        Args:
            source: Source URL or file name.
            reason: Why the asset could not be ingested.
        """
        super().__init__(
            f"Could not ingest asset {source}: {reason}",
            details={"source": source, "reason": reason},
        )
        self.source = source
        self.reason = reason


class PersistenceError(DomainError):
    """Raised when a database write fails."""

    error_code = "PERSISTENCE_ERROR"
    status_code = 500

    def __init__(self, operation: str, reason: str) -> None:
        """Initialize persistence error.

        Args:
            operation: What was being written (e.g. "save product").
            reason: Underlying driver message.
        """
        super().__init__(
            f"Database write failed during {operation}",
            details={"operation": operation, "reason": reason},
        )
        self.operation = operation
