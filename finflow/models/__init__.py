"""
Data Models Package

This package contains all Pydantic models used in FinFlow.
All data flowing through the system must conform to these schemas.
"""

from finflow.models.transaction import (
    Budget,
    Category,
    FixedExpense,
    InstallmentInfo,
    NewFixedExpense,
    NewTransaction,
    Transaction,
    TransactionType,
)
from finflow.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Budget",
    "Category",
    "FixedExpense",
    "InstallmentInfo",
    "NewFixedExpense",
    "NewTransaction",
    "Transaction",
    "TransactionType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
