"""
Audit Models for FinFlow

Every mutation of the user's ledger is logged for audit purposes.
This provides:
1. Traceability of generated records back to the user action that made them
2. Debugging information when a group edit or generation misbehaves
3. A history the user can inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    INSTALLMENTS_EXPANDED = "installments_expanded"
    TRANSACTION_UPDATED = "transaction_updated"
    INSTALLMENT_GROUP_UPDATED = "installment_group_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    INSTALLMENT_GROUP_DELETED = "installment_group_deleted"

    # Fixed expenses
    FIXED_EXPENSE_CREATED = "fixed_expense_created"
    FIXED_EXPENSE_DELETED = "fixed_expense_deleted"
    FIXED_TRANSACTIONS_GENERATED = "fixed_transactions_generated"

    # Budgets
    BUDGET_UPSERTED = "budget_upserted"

    # Failures
    GROUP_CONSISTENCY_ERROR = "group_consistency_error"
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'installment_group', 'budget')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one user action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(transaction_id, correlation_id)
        event = AuditEventBuilder.fixed_transactions_generated(6, 2025, 3, correlation_id)
    """

    @staticmethod
    def transaction_created(
        transaction_id: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction created: {amount}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def installments_expanded(
        group_id: str,
        installment_count: int,
        total_amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSTALLMENTS_EXPANDED,
            entity_type="installment_group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description=f"Purchase of {total_amount} split into {installment_count} installments",
            details={
                "installment_count": installment_count,
                "total_amount": total_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction updated",
            is_user_action=True,
        )

    @staticmethod
    def installment_group_updated(
        group_id: str,
        edited_id: str,
        member_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSTALLMENT_GROUP_UPDATED,
            entity_type="installment_group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description=f"Edit propagated to {member_count} installments",
            details={
                "edited_transaction_id": edited_id,
                "member_count": member_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def installment_group_deleted(
        group_id: str,
        member_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSTALLMENT_GROUP_DELETED,
            entity_type="installment_group",
            entity_id=group_id,
            correlation_id=correlation_id,
            description=f"Installment group deleted ({member_count} transactions)",
            details={"member_count": member_count},
            is_user_action=True,
        )

    @staticmethod
    def fixed_expense_created(
        fixed_expense_id: str,
        description: str,
        day_of_month: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FIXED_EXPENSE_CREATED,
            entity_type="fixed_expense",
            entity_id=fixed_expense_id,
            correlation_id=correlation_id,
            description=f"Fixed expense created: {description} (day {day_of_month})",
            details={"day_of_month": day_of_month},
            is_user_action=True,
        )

    @staticmethod
    def fixed_expense_deleted(
        fixed_expense_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FIXED_EXPENSE_DELETED,
            entity_type="fixed_expense",
            entity_id=fixed_expense_id,
            correlation_id=correlation_id,
            description="Fixed expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def fixed_transactions_generated(
        month: int,
        year: int,
        generated_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FIXED_TRANSACTIONS_GENERATED,
            entity_type="period",
            entity_id=f"{year:04d}-{month:02d}",
            correlation_id=correlation_id,
            description=f"Generated {generated_count} fixed expense transactions for {year:04d}-{month:02d}",
            details={
                "month": month,
                "year": year,
                "generated_count": generated_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def budget_upserted(
        budget_id: str,
        category: str,
        limit: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPSERTED,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Budget for {category} set to {limit}",
            details={
                "category": category,
                "limit": limit,
            },
            is_user_action=True,
        )

    @staticmethod
    def group_consistency_error(
        transaction_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GROUP_CONSISTENCY_ERROR,
            severity=AuditSeverity.ERROR,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Installment group edit aborted",
            error_message=error_message,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
