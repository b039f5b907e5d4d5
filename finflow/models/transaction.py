"""
Core Data Models for FinFlow

These models define the schemas for every record the engine produces or
the storage layer persists:
1. Transactions (single, installment members, fixed-expense generated)
2. Fixed expense definitions (recurring monthly obligations)
3. Budgets (one monthly limit per category)

DESIGN DECISION: Dates are calendar dates, not datetimes. On the wire they
are anchored to midnight UTC ("2024-02-29T00:00:00.000Z") so the day a
transaction belongs to never depends on the reader's timezone.
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from finflow.scheduling.calendar import parse_utc_midnight_iso, to_utc_midnight_iso

# Installment suffixes (" (2/10)") count against this limit
DESCRIPTION_MAX_LENGTH = 200


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow."""
    INCOME = "income"
    EXPENSE = "expense"


class Category(str, Enum):
    """
    Supported transaction categories.

    Budgets are keyed by category, so free text is not accepted here.
    """
    HOUSING = "housing"
    TRANSPORT = "transport"
    FOOD = "food"
    ENTERTAINMENT = "entertainment"
    HEALTH = "health"
    EDUCATION = "education"
    PETS = "pets"
    CLOTHING = "clothing"
    SALARY = "salary"
    INVESTMENT = "investment"
    OTHER = "other"


# =============================================================================
# TRANSACTIONS
# =============================================================================

def _coerce_boundary_date(v: Any) -> Any:
    """Accept anchored ISO strings; let pydantic handle everything else."""
    if isinstance(v, datetime.datetime):
        return v.date()
    if isinstance(v, str):
        return parse_utc_midnight_iso(v)
    return v


class InstallmentInfo(BaseModel):
    """
    Position of a transaction inside an installment purchase.

    All members of one purchase share `group_id` and `total`.
    """
    model_config = ConfigDict(frozen=True)

    current: int = Field(
        ...,
        ge=1,
        description="1-based position inside the group"
    )
    total: int = Field(
        ...,
        ge=1,
        description="Number of installments in the group"
    )
    group_id: str = Field(
        ...,
        min_length=1,
        description="Identity shared by every installment of one purchase"
    )

    @model_validator(mode='after')
    def validate_position(self) -> 'InstallmentInfo':
        if self.current > self.total:
            raise ValueError(
                f"Installment {self.current} is past the group size {self.total}"
            )
        return self

    @property
    def suffix(self) -> str:
        """Description suffix, e.g. " (2/10)"."""
        return f" ({self.current}/{self.total})"


class NewTransaction(BaseModel):
    """
    A transaction as entered by the user, before it has an identity.

    The installment expander turns one of these into one or more
    Transaction records.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = Field(
        ...,
        description="Income or expense"
    )
    category: Category = Field(
        ...,
        description="Transaction category"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
        description="What the money was for"
    )
    date: datetime.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    fixed_expense_id: Optional[str] = Field(
        default=None,
        description="FixedExpense this was generated from (lookup only, not ownership)"
    )

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _coerce_boundary_date(v)

    @field_serializer('date', when_used='json')
    def serialize_date(self, v: datetime.date) -> str:
        return to_utc_midnight_iso(v)

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Decimal) -> str:
        return str(v)


class Transaction(NewTransaction):
    """
    A persisted transaction.

    `id` never changes after creation. Everything else may be edited;
    edits to installment members go through the group propagator.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Unique transaction ID"
    )
    installment_info: Optional[InstallmentInfo] = Field(
        default=None,
        description="Set when this transaction is one installment of a purchase"
    )

    @property
    def is_installment(self) -> bool:
        return self.installment_info is not None

    @property
    def group_id(self) -> Optional[str]:
        return self.installment_info.group_id if self.installment_info else None


# =============================================================================
# FIXED EXPENSES
# =============================================================================

class NewFixedExpense(BaseModel):
    """A recurring monthly obligation as entered by the user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(
        ...,
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
        description="Name of the obligation (e.g., rent)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount charged every month"
    )
    category: Category = Field(
        ...,
        description="Category of the generated transactions"
    )
    day_of_month: int = Field(
        ...,
        ge=1,
        le=31,
        description="Due day; clamped to the month's length at generation time"
    )

    @field_serializer('amount', when_used='json')
    def serialize_amount(self, v: Decimal) -> str:
        return str(v)


class FixedExpense(NewFixedExpense):
    """
    A stored fixed expense definition.

    This is not a transaction. Transactions generated from it point back
    through `fixed_expense_id`; deleting the definition leaves them alone.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Unique fixed expense ID"
    )


# =============================================================================
# BUDGETS
# =============================================================================

class Budget(BaseModel):
    """
    Monthly spending limit for one category.

    At most one budget exists per category. Spend against the limit is
    computed from transactions, never stored.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Unique budget ID"
    )
    category: Category = Field(
        ...,
        description="Category this limit applies to"
    )
    limit: Decimal = Field(
        ...,
        gt=0,
        description="Monthly limit"
    )

    @field_serializer('limit', when_used='json')
    def serialize_limit(self, v: Decimal) -> str:
        return str(v)
