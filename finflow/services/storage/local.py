"""
Local Storage Implementation

Single-user persistence in one JSON document on disk:

    {
        "transactions": [...],
        "fixed_expenses": [...],
        "budgets": [...],
        "audit_events": [...]
    }

Records are written with the models' JSON serialization, so dates are
stored anchored to midnight UTC and amounts as decimal strings.

When no path is given the document lives only in memory, which is what
the tests use.
"""

import json
from pathlib import Path
from typing import Optional, Sequence, Union
from uuid import UUID

from pydantic import BaseModel, ValidationError

from finflow.models.audit import AuditEvent
from finflow.models.transaction import Budget, FixedExpense, Transaction
from finflow.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    NotFoundError,
    StorageUnavailableError,
)

COLLECTIONS = ("transactions", "fixed_expenses", "budgets", "audit_events")


class LocalFinanceStorage(FinanceStorageInterface, AuditStorageInterface):
    """
    JSON-file implementation of ledger and audit storage.

    The whole document is rewritten after every change. That is fine
    for one user's personal ledger.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path else None
        self._data: dict[str, list[dict]] = self._load()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def _load(self) -> dict[str, list[dict]]:
        data: dict[str, list[dict]] = {name: [] for name in COLLECTIONS}
        if self._path is None or not self._path.exists():
            return data
        try:
            stored = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StorageUnavailableError(f"Failed to read {self._path}: {e}")
        for name in COLLECTIONS:
            data[name] = list(stored.get(name, []))
        return data

    def _commit(self, name: str, rows: list[dict]) -> None:
        """
        Replace one collection with `rows`.

        Memory only changes after the document has been written.
        """
        data = {**self._data, name: rows}
        if self._path is not None:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            except OSError as e:
                raise StorageUnavailableError(f"Failed to write {self._path}: {e}")
        self._data = data

    def _parse(self, name: str, model: type[BaseModel]) -> list:
        try:
            return [model.model_validate(row) for row in self._data[name]]
        except ValidationError as e:
            raise StorageUnavailableError(f"Corrupt {name} data: {e}")

    @staticmethod
    def _index_of(rows: list[dict], record_id: str) -> Optional[int]:
        for idx, row in enumerate(rows):
            if row.get("id") == record_id:
                return idx
        return None

    # -- Transactions ---------------------------------------------------------

    async def list_transactions(self) -> list[Transaction]:
        return self._parse("transactions", Transaction)

    async def insert_transactions(self, transactions: Sequence[Transaction]) -> None:
        rows = list(self._data["transactions"])
        known = {row.get("id") for row in rows}
        new_ids = [t.id for t in transactions]
        duplicates = known.intersection(new_ids)
        if duplicates or len(set(new_ids)) != len(new_ids):
            raise DuplicateError(f"Transaction ids already exist: {sorted(duplicates)}")
        rows.extend(t.model_dump(mode="json") for t in transactions)
        self._commit("transactions", rows)

    async def update_transaction(self, transaction: Transaction) -> None:
        rows = list(self._data["transactions"])
        idx = self._index_of(rows, transaction.id)
        if idx is None:
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        rows[idx] = transaction.model_dump(mode="json")
        self._commit("transactions", rows)

    async def delete_transaction(self, transaction_id: str) -> bool:
        rows = list(self._data["transactions"])
        idx = self._index_of(rows, transaction_id)
        if idx is None:
            return False
        del rows[idx]
        self._commit("transactions", rows)
        return True

    # -- Fixed expenses -------------------------------------------------------

    async def list_fixed_expenses(self) -> list[FixedExpense]:
        return self._parse("fixed_expenses", FixedExpense)

    async def add_fixed_expense(self, fixed_expense: FixedExpense) -> None:
        rows = list(self._data["fixed_expenses"])
        if self._index_of(rows, fixed_expense.id) is not None:
            raise DuplicateError(f"Fixed expense already exists: {fixed_expense.id}")
        rows.append(fixed_expense.model_dump(mode="json"))
        self._commit("fixed_expenses", rows)

    async def delete_fixed_expense(self, fixed_expense_id: str) -> bool:
        rows = list(self._data["fixed_expenses"])
        idx = self._index_of(rows, fixed_expense_id)
        if idx is None:
            return False
        del rows[idx]
        self._commit("fixed_expenses", rows)
        return True

    # -- Budgets --------------------------------------------------------------

    async def list_budgets(self) -> list[Budget]:
        return self._parse("budgets", Budget)

    async def upsert_budget(self, budget: Budget) -> None:
        rows = list(self._data["budgets"])
        idx = self._index_of(rows, budget.id)
        if idx is None:
            rows.append(budget.model_dump(mode="json"))
        else:
            rows[idx] = budget.model_dump(mode="json")
        self._commit("budgets", rows)

    # -- Audit ----------------------------------------------------------------

    async def append_event(self, event: AuditEvent) -> bool:
        self._commit(
            "audit_events",
            self._data["audit_events"] + [event.model_dump(mode="json")],
        )
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._parse("audit_events", AuditEvent)
            if e.correlation_id == correlation_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._parse("audit_events", AuditEvent)
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._parse("audit_events", AuditEvent)
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
