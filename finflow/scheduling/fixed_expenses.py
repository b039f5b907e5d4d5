"""
Fixed Expense Generation

Turns recurring monthly obligations (rent, subscriptions, ...) into the
transactions of one specific month.

DESIGN DECISION: Generation is idempotent per (definition, month, year).
A definition counts as generated when any existing transaction points
back to it and falls inside the target month, so running "generate this
month" twice never double-books.

Months are 1-based (1 = January) everywhere in FinFlow.
"""

from datetime import date
from typing import Iterable, Optional

from finflow.ids import IdGenerator, UUIDGenerator
from finflow.models.transaction import FixedExpense, Transaction, TransactionType
from finflow.scheduling.calendar import clamp_day, in_month


class FixedExpenseGenerator:
    """Generates a month's fixed expense transactions exactly once."""

    def __init__(self, id_generator: Optional[IdGenerator] = None):
        self._new_id = id_generator or UUIDGenerator()

    def generate(
        self,
        definitions: Iterable[FixedExpense],
        month: int,
        year: int,
        existing_transactions: Iterable[Transaction],
    ) -> list[Transaction]:
        """
        Emit one expense per definition not yet generated for month/year.

        The due day is clamped to the month's length: day 31 in February
        2025 becomes 2025-02-28.

        Returns:
            The new transactions, in definition order. Empty when the month
            was already generated.
        """
        if not 1 <= month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {month}")

        already_generated = {
            t.fixed_expense_id
            for t in existing_transactions
            if t.fixed_expense_id is not None and in_month(t.date, month, year)
        }

        generated: list[Transaction] = []
        for definition in definitions:
            if definition.id in already_generated:
                continue
            already_generated.add(definition.id)
            generated.append(
                Transaction(
                    id=self._new_id(),
                    type=TransactionType.EXPENSE,
                    category=definition.category,
                    amount=definition.amount,
                    description=definition.description,
                    date=date(year, month, clamp_day(year, month, definition.day_of_month)),
                    fixed_expense_id=definition.id,
                )
            )
        return generated
