"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Run against a local JSON file or a remote Google Sheets backend
2. Use in-memory storage for testing
3. Keep the scheduling engine decoupled from storage implementation

The backend is chosen once and passed to the service layer; there is no
global provider switch.

The interface is intentionally simple - read-all, insert-many,
update-by-id, delete-by-id. Filtering happens in Python.
"""

from abc import ABC, abstractmethod
from typing import Sequence
from uuid import UUID

from finflow.models.audit import AuditEvent
from finflow.models.transaction import Budget, FixedExpense, Transaction


class FinanceStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (local file, Google Sheets, ...) must
    implement these methods and provide read-your-writes consistency for
    a single caller.
    """

    # -- Transactions ---------------------------------------------------------

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """
        Return every stored transaction.

        Raises:
            StorageUnavailableError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def insert_transactions(self, transactions: Sequence[Transaction]) -> None:
        """
        Insert new transactions in one batch.

        Raises:
            DuplicateError: If an id already exists
            StorageUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> None:
        """
        Replace the stored transaction with the same id.

        Group propagation has already been applied by the caller.

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageUnavailableError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if a transaction was deleted, False if none matched
        """
        pass

    # -- Fixed expenses -------------------------------------------------------

    @abstractmethod
    async def list_fixed_expenses(self) -> list[FixedExpense]:
        """Return every fixed expense definition."""
        pass

    @abstractmethod
    async def add_fixed_expense(self, fixed_expense: FixedExpense) -> None:
        """
        Store a new fixed expense definition.

        Raises:
            DuplicateError: If the id already exists
        """
        pass

    @abstractmethod
    async def delete_fixed_expense(self, fixed_expense_id: str) -> bool:
        """
        Delete a definition. Transactions generated from it are kept.

        Returns:
            True if a definition was deleted
        """
        pass

    # -- Budgets --------------------------------------------------------------

    @abstractmethod
    async def list_budgets(self) -> list[Budget]:
        """Return every budget."""
        pass

    @abstractmethod
    async def upsert_budget(self, budget: Budget) -> None:
        """Insert the budget, or replace the stored one with the same id."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events of one user action, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageUnavailableError(StorageError):
    """Storage backend could not be reached or refused the operation."""
    pass
