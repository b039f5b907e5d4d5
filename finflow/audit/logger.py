"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger is logged.
This provides:
1. Traceability of generated installments and fixed expenses
2. Debugging capability for group edits
3. User can see history of their changes

The audit logger:
- Always logs locally through structlog
- Gracefully handles storage failures (never breaks the main flow)
- Supports correlation IDs to trace the events of one user action
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from finflow.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finflow.services.storage.interface import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finflow.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_created(
        self,
        transaction_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_installments_expanded(
        self,
        group_id: str,
        installment_count: int,
        total_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.installments_expanded(
            group_id=group_id,
            installment_count=installment_count,
            total_amount=total_amount,
            correlation_id=correlation_id,
        ))

    async def log_transaction_updated(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    async def log_installment_group_updated(
        self,
        group_id: str,
        edited_id: str,
        member_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.installment_group_updated(
            group_id=group_id,
            edited_id=edited_id,
            member_count=member_count,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    async def log_installment_group_deleted(
        self,
        group_id: str,
        member_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.installment_group_deleted(
            group_id=group_id,
            member_count=member_count,
            correlation_id=correlation_id,
        ))

    async def log_fixed_expense_created(
        self,
        fixed_expense_id: str,
        description: str,
        day_of_month: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.fixed_expense_created(
            fixed_expense_id=fixed_expense_id,
            description=description,
            day_of_month=day_of_month,
            correlation_id=correlation_id,
        ))

    async def log_fixed_expense_deleted(
        self,
        fixed_expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.fixed_expense_deleted(
            fixed_expense_id=fixed_expense_id,
            correlation_id=correlation_id,
        ))

    async def log_fixed_transactions_generated(
        self,
        month: int,
        year: int,
        generated_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.fixed_transactions_generated(
            month=month,
            year=year,
            generated_count=generated_count,
            correlation_id=correlation_id,
        ))

    async def log_budget_upserted(
        self,
        budget_id: str,
        category: str,
        limit: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.budget_upserted(
            budget_id=budget_id,
            category=category,
            limit=limit,
            correlation_id=correlation_id,
        ))

    async def log_group_consistency_error(
        self,
        transaction_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.group_consistency_error(
            transaction_id=transaction_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., an installment
    purchase). Pass it through all subsequent operations.
    """
    return uuid4()
