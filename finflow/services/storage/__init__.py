"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Two backends: a local JSON document and Google Sheets.
"""

from finflow.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
)
from finflow.services.storage.local import LocalFinanceStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "FinanceStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "StorageUnavailableError",
    # Local implementation
    "LocalFinanceStorage",
]
