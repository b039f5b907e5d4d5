"""
Monthly Reports

Deterministic aggregation over stored transactions:
- income / expenses / balance for one month
- spend per category, largest first
- spend against each budget

Budgets hold only a limit. What has been spent is always recomputed
from the month's expense transactions.
"""

from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel, Field

from finflow.models.transaction import Budget, Category, Transaction, TransactionType
from finflow.scheduling.calendar import in_month

DEFAULT_WARNING_RATIO = Decimal("0.8")


class CategoryTotal(BaseModel):
    category: Category
    amount: Decimal


class MonthlySummary(BaseModel):
    """Income and expenses of one month."""

    month: int = Field(ge=1, le=12)
    year: int
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    expenses_by_category: list[CategoryTotal] = Field(
        default_factory=list,
        description="Expense totals per category, largest first"
    )

    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses


class BudgetStatus(BaseModel):
    """Spend against one budget for one month."""

    budget_id: str
    category: Category
    limit: Decimal
    spent: Decimal
    percentage: Decimal = Field(
        ...,
        description="Spent as a percentage of the limit"
    )
    is_over: bool
    is_near_limit: bool = Field(
        ...,
        description="Above the warning ratio but not over the limit"
    )

    @property
    def remaining(self) -> Decimal:
        return self.limit - self.spent


def transactions_in_month(
    transactions: Iterable[Transaction],
    month: int,
    year: int,
) -> list[Transaction]:
    """Transactions dated inside month/year (month is 1-12)."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    return [t for t in transactions if in_month(t.date, month, year)]


def expenses_by_category(transactions: Iterable[Transaction]) -> dict[Category, Decimal]:
    totals: dict[Category, Decimal] = {}
    for t in transactions:
        if t.type == TransactionType.EXPENSE:
            totals[t.category] = totals.get(t.category, Decimal("0")) + t.amount
    return totals


def summarize_month(
    transactions: Iterable[Transaction],
    month: int,
    year: int,
) -> MonthlySummary:
    monthly = transactions_in_month(transactions, month, year)

    income = sum(
        (t.amount for t in monthly if t.type == TransactionType.INCOME),
        Decimal("0"),
    )
    expenses = sum(
        (t.amount for t in monthly if t.type == TransactionType.EXPENSE),
        Decimal("0"),
    )
    by_category = sorted(
        (
            CategoryTotal(category=category, amount=amount)
            for category, amount in expenses_by_category(monthly).items()
        ),
        key=lambda c: c.amount,
        reverse=True,
    )

    return MonthlySummary(
        month=month,
        year=year,
        income=income,
        expenses=expenses,
        expenses_by_category=by_category,
    )


def budget_statuses(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    month: int,
    year: int,
    warning_ratio: Decimal = DEFAULT_WARNING_RATIO,
) -> list[BudgetStatus]:
    """
    Compare each budget with the month's expenses in its category.

    Returned in the budgets' order.
    """
    spending = expenses_by_category(transactions_in_month(transactions, month, year))

    statuses = []
    for budget in budgets:
        spent = spending.get(budget.category, Decimal("0"))
        is_over = spent > budget.limit
        statuses.append(BudgetStatus(
            budget_id=budget.id,
            category=budget.category,
            limit=budget.limit,
            spent=spent,
            percentage=(spent / budget.limit * 100).quantize(Decimal("0.01")),
            is_over=is_over,
            is_near_limit=not is_over and spent > budget.limit * warning_ratio,
        ))
    return statuses
