"""Domain layer module.

Contains the error taxonomy shared by the catalog and application layers.
"""

from catalog_admin.domain.exceptions import (
    AssetIngestionError,
    DomainError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

__all__ = [
    "AssetIngestionError",
    "DomainError",
    "NotFoundError",
    "PersistenceError",
    "ValidationError",
]
