"""Reporting package."""

from finflow.reports.summary import (
    BudgetStatus,
    CategoryTotal,
    MonthlySummary,
    budget_statuses,
    summarize_month,
    transactions_in_month,
)

__all__ = [
    "BudgetStatus",
    "CategoryTotal",
    "MonthlySummary",
    "budget_statuses",
    "summarize_month",
    "transactions_in_month",
]
