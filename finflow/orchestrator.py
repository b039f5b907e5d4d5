"""
Main Orchestrator for FinFlow

This module ties the scheduling engine to storage and auditing and
defines the end-to-end flows for:
1. New transaction (optionally split into installments)
2. Edit (plain overwrite, or propagation across an installment group)
3. Fixed expense generation for a month
4. Budgets and monthly reports

DESIGN DECISION: The orchestrator enforces the boundaries:
- The engine computes, storage persists, nothing else writes
- Storage is injected; there is no global provider switch
- Every mutation is audited
- Storage failures are audited and re-raised unchanged (no retries here)
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from finflow.audit import AuditLogger, create_correlation_id
from finflow.config import StorageSettings, get_settings
from finflow.ids import IdGenerator, UUIDGenerator
from finflow.models.transaction import (
    Budget,
    Category,
    FixedExpense,
    NewFixedExpense,
    NewTransaction,
    Transaction,
)
from finflow.reports import (
    BudgetStatus,
    MonthlySummary,
    budget_statuses,
    summarize_month,
)
from finflow.scheduling.fixed_expenses import FixedExpenseGenerator
from finflow.scheduling.installments import InstallmentExpander
from finflow.scheduling.propagation import GroupConsistencyError, propagate
from finflow.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    LocalFinanceStorage,
    NotFoundError,
    StorageError,
)


class FinanceTracker:
    """
    Service layer over one user's ledger.

    Flow for every mutation:
    1. Read current state from storage
    2. Run the pure engine component
    3. Write the result back
    4. Audit
    """

    def __init__(
        self,
        storage: FinanceStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        id_generator: Optional[IdGenerator] = None,
        quantum: Optional[Decimal] = None,
        budget_warning_ratio: Optional[Decimal] = None,
    ):
        if quantum is None or budget_warning_ratio is None:
            app_settings = get_settings().app
            quantum = quantum or app_settings.currency_quantum
            budget_warning_ratio = budget_warning_ratio or app_settings.budget_warning_ratio

        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._new_id = id_generator or UUIDGenerator()
        self._expander = InstallmentExpander(self._new_id, quantum=quantum)
        self._generator = FixedExpenseGenerator(self._new_id)
        self._budget_warning_ratio = budget_warning_ratio

    async def _storage_failed(
        self,
        operation: str,
        error: StorageError,
        correlation_id: Optional[UUID],
    ) -> None:
        await self._audit_logger.log_storage_error(
            operation=operation,
            error_message=str(error),
            correlation_id=correlation_id,
        )

    # -- Transactions ---------------------------------------------------------

    async def list_transactions(self) -> list[Transaction]:
        return await self._storage.list_transactions()

    async def add_transaction(
        self,
        new_transaction: NewTransaction,
        installments: int = 1,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Record a new transaction, split into `installments` if > 1.

        Returns:
            The inserted transactions in chronological order.

        Raises:
            InstallmentError: invalid installment request
            StorageError: the insert failed
        """
        correlation_id = correlation_id or create_correlation_id()

        created = self._expander.expand(new_transaction, installments)

        try:
            await self._storage.insert_transactions(created)
        except StorageError as e:
            await self._storage_failed("insert_transactions", e, correlation_id)
            raise

        if created[0].installment_info is not None:
            await self._audit_logger.log_installments_expanded(
                group_id=created[0].installment_info.group_id,
                installment_count=len(created),
                total_amount=str(new_transaction.amount),
                correlation_id=correlation_id,
            )
        for tx in created:
            await self._audit_logger.log_transaction_created(
                transaction_id=tx.id,
                amount=str(tx.amount),
                correlation_id=correlation_id,
            )

        return created

    async def update_transaction(
        self,
        edited: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Save a user edit.

        Installment members propagate the edit to their whole group
        (category, type, amount, base description for everyone; date only
        for the edited member). Other transactions are overwritten as given.

        Returns:
            Every transaction that was written.

        Raises:
            NotFoundError: no stored transaction has `edited.id`
            GroupConsistencyError: the stored group is inconsistent
            InstallmentError: the new description leaves no room for the
                installment suffix (nothing is written)
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            stored = await self._storage.list_transactions()
        except StorageError as e:
            await self._storage_failed("list_transactions", e, correlation_id)
            raise

        current = next((t for t in stored if t.id == edited.id), None)
        if current is None:
            raise NotFoundError(f"Transaction not found: {edited.id}")

        if current.installment_info is None:
            updated = [Transaction.model_validate(
                {**edited.model_dump(), "installment_info": None}
            )]
        else:
            group_id = current.installment_info.group_id
            members = [t for t in stored if t.group_id == group_id]
            try:
                updated = propagate(edited, members)
            except GroupConsistencyError as e:
                await self._audit_logger.log_group_consistency_error(
                    transaction_id=edited.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                raise

        try:
            for tx in updated:
                await self._storage.update_transaction(tx)
        except StorageError as e:
            await self._storage_failed("update_transaction", e, correlation_id)
            raise

        if current.installment_info is None:
            await self._audit_logger.log_transaction_updated(
                transaction_id=edited.id,
                correlation_id=correlation_id,
            )
        else:
            await self._audit_logger.log_installment_group_updated(
                group_id=current.installment_info.group_id,
                edited_id=edited.id,
                member_count=len(updated),
                correlation_id=correlation_id,
            )

        return updated

    async def delete_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Delete one transaction. Other installments of its group are kept."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            deleted = await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            await self._storage_failed("delete_transaction", e, correlation_id)
            raise

        if deleted:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=transaction_id,
                correlation_id=correlation_id,
            )
        return deleted

    async def delete_installment_group(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Delete every installment of a purchase. Returns how many were removed."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            members = [
                t for t in await self._storage.list_transactions()
                if t.group_id == group_id
            ]
            for member in members:
                await self._storage.delete_transaction(member.id)
        except StorageError as e:
            await self._storage_failed("delete_installment_group", e, correlation_id)
            raise

        if members:
            await self._audit_logger.log_installment_group_deleted(
                group_id=group_id,
                member_count=len(members),
                correlation_id=correlation_id,
            )
        return len(members)

    # -- Fixed expenses -------------------------------------------------------

    async def list_fixed_expenses(self) -> list[FixedExpense]:
        return await self._storage.list_fixed_expenses()

    async def add_fixed_expense(
        self,
        new_fixed_expense: NewFixedExpense,
        correlation_id: Optional[UUID] = None,
    ) -> FixedExpense:
        correlation_id = correlation_id or create_correlation_id()

        fixed_expense = FixedExpense(id=self._new_id(), **new_fixed_expense.model_dump())
        try:
            await self._storage.add_fixed_expense(fixed_expense)
        except StorageError as e:
            await self._storage_failed("add_fixed_expense", e, correlation_id)
            raise

        await self._audit_logger.log_fixed_expense_created(
            fixed_expense_id=fixed_expense.id,
            description=fixed_expense.description,
            day_of_month=fixed_expense.day_of_month,
            correlation_id=correlation_id,
        )
        return fixed_expense

    async def delete_fixed_expense(
        self,
        fixed_expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Delete a definition. Already generated transactions stay."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            deleted = await self._storage.delete_fixed_expense(fixed_expense_id)
        except StorageError as e:
            await self._storage_failed("delete_fixed_expense", e, correlation_id)
            raise

        if deleted:
            await self._audit_logger.log_fixed_expense_deleted(
                fixed_expense_id=fixed_expense_id,
                correlation_id=correlation_id,
            )
        return deleted

    async def generate_fixed_transactions(
        self,
        month: int,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Generate the month's fixed expense transactions (month is 1-12).

        Safe to call repeatedly: definitions already generated for the
        month are skipped, so a second call returns [].
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            definitions = await self._storage.list_fixed_expenses()
            existing = await self._storage.list_transactions()
        except StorageError as e:
            await self._storage_failed("generate_fixed_transactions", e, correlation_id)
            raise

        generated = self._generator.generate(definitions, month, year, existing)

        if generated:
            try:
                await self._storage.insert_transactions(generated)
            except StorageError as e:
                await self._storage_failed("insert_transactions", e, correlation_id)
                raise

        await self._audit_logger.log_fixed_transactions_generated(
            month=month,
            year=year,
            generated_count=len(generated),
            correlation_id=correlation_id,
        )
        return generated

    # -- Budgets --------------------------------------------------------------

    async def list_budgets(self) -> list[Budget]:
        return await self._storage.list_budgets()

    async def upsert_budget(
        self,
        category: Category,
        limit: Decimal,
        budget_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """
        Create or change a budget, keeping one budget per category.

        Without `budget_id` an existing budget for the category is updated
        in place; otherwise a new one is created.

        Raises:
            DuplicateError: `budget_id` would move a budget onto a category
                that already has another budget
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            budgets = await self._storage.list_budgets()
        except StorageError as e:
            await self._storage_failed("list_budgets", e, correlation_id)
            raise

        same_category = next((b for b in budgets if b.category == category), None)
        if budget_id is not None:
            if same_category is not None and same_category.id != budget_id:
                raise DuplicateError(f"A budget for {category.value} already exists")
            target_id = budget_id
        elif same_category is not None:
            target_id = same_category.id
        else:
            target_id = self._new_id()

        budget = Budget(id=target_id, category=category, limit=limit)
        try:
            await self._storage.upsert_budget(budget)
        except StorageError as e:
            await self._storage_failed("upsert_budget", e, correlation_id)
            raise

        await self._audit_logger.log_budget_upserted(
            budget_id=budget.id,
            category=category.value,
            limit=str(limit),
            correlation_id=correlation_id,
        )
        return budget

    # -- Reports --------------------------------------------------------------

    async def monthly_summary(self, month: int, year: int) -> MonthlySummary:
        return summarize_month(await self._storage.list_transactions(), month, year)

    async def budget_report(self, month: int, year: int) -> list[BudgetStatus]:
        return budget_statuses(
            await self._storage.list_budgets(),
            await self._storage.list_transactions(),
            month,
            year,
            warning_ratio=self._budget_warning_ratio,
        )


def create_storage(
    settings: Optional[StorageSettings] = None,
) -> tuple[FinanceStorageInterface, AuditStorageInterface]:
    """
    Build the configured storage backend.

    Returns:
        (ledger_storage, audit_storage)
    """
    settings = settings or get_settings().storage

    if settings.backend == "google_sheets":
        from finflow.services.storage.google_sheets import (
            GoogleSheetsAuditStorage,
            GoogleSheetsClient,
            GoogleSheetsFinanceStorage,
        )

        client = GoogleSheetsClient()
        return GoogleSheetsFinanceStorage(client), GoogleSheetsAuditStorage(client)

    storage = LocalFinanceStorage(settings.local_path)
    return storage, storage


def create_app_components(
    settings: Optional[StorageSettings] = None,
    id_generator: Optional[IdGenerator] = None,
) -> FinanceTracker:
    """
    Factory function to create the application's service layer.

    Args:
        settings: Storage settings; loaded from the environment if None.
        id_generator: Id source; random UUIDs if None.
    """
    ledger_storage, audit_storage = create_storage(settings)
    return FinanceTracker(
        storage=ledger_storage,
        audit_logger=AuditLogger(audit_storage),
        id_generator=id_generator,
    )
