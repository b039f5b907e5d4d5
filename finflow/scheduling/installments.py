"""
Installment Expansion

Turns one purchase into the dated monthly transactions that record it.

A purchase of 1000 on 2024-01-31 split in 3 becomes:
    2024-01-31  333.33  "Laptop (1/3)"
    2024-02-29  333.33  "Laptop (2/3)"
    2024-03-31  333.34  "Laptop (3/3)"

DESIGN DECISION: The per-installment amount is rounded DOWN to the currency
quantum and the LAST installment absorbs the remainder, so the group
always sums to exactly the purchase total.
"""

from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import Optional

from finflow.ids import IdGenerator, UUIDGenerator
from finflow.models.transaction import (
    DESCRIPTION_MAX_LENGTH,
    InstallmentInfo,
    NewTransaction,
    Transaction,
    TransactionType,
)
from finflow.scheduling.calendar import add_months_to_date

DEFAULT_QUANTUM = Decimal("0.01")


class InstallmentError(ValueError):
    """Installment request that cannot be expanded."""
    pass


class CalculationMode(str, Enum):
    """How the amount typed by the user should be read."""
    TOTAL = "total"                      # amount is the whole purchase
    PER_INSTALLMENT = "per_installment"  # amount is charged every month


def resolve_total_amount(
    amount: Decimal,
    installment_count: int,
    mode: CalculationMode = CalculationMode.TOTAL,
) -> Decimal:
    """
    Resolve the purchase total before expansion.

    In PER_INSTALLMENT mode the total is amount x count; the expander
    only ever receives a total.
    """
    if installment_count < 1:
        raise InstallmentError("installment_count must be at least 1")
    if mode == CalculationMode.PER_INSTALLMENT:
        return amount * installment_count
    return amount


def check_description_fits(description: str, installment_count: int) -> None:
    """
    Make sure every "(i/n)" description of the group stays within the limit.

    The longest suffix is the last one, " (n/n)".
    """
    suffix = InstallmentInfo(
        current=installment_count,
        total=installment_count,
        group_id="-",
    ).suffix
    if len(description) + len(suffix) > DESCRIPTION_MAX_LENGTH:
        raise InstallmentError(
            f"Description is too long for {installment_count} installments: "
            f"at most {DESCRIPTION_MAX_LENGTH - len(suffix)} characters allowed"
        )


class InstallmentExpander:
    """
    Expands a new expense into installment transactions.

    Pure: returns records, never persists them.
    """

    def __init__(
        self,
        id_generator: Optional[IdGenerator] = None,
        quantum: Decimal = DEFAULT_QUANTUM,
    ):
        """
        Args:
            id_generator: Source of transaction and group ids.
            quantum: Smallest currency unit (0.01 for cents).
        """
        self._new_id = id_generator or UUIDGenerator()
        self._quantum = quantum

    def expand(
        self,
        base: NewTransaction,
        installment_count: int = 1,
    ) -> list[Transaction]:
        """
        Produce the transactions for `base` split into `installment_count`.

        A count of 1 yields a single plain transaction (no installment
        info, amount unchanged). Larger counts require an expense: an
        income with more than one installment is rejected rather than
        silently recorded as one plain transaction.

        Raises:
            InstallmentError: invalid count, income split, a description
                with no room for the " (i/n)" suffix, or a total too small
                to give every installment a positive amount.
        """
        if installment_count < 1:
            raise InstallmentError(
                f"installment_count must be at least 1, got {installment_count}"
            )

        if installment_count == 1:
            return [Transaction(id=self._new_id(), **base.model_dump())]

        if base.type != TransactionType.EXPENSE:
            raise InstallmentError("Only expenses can be split into installments")

        check_description_fits(base.description, installment_count)

        amounts = self.split_amount(base.amount, installment_count)
        group_id = self._new_id()
        fields = base.model_dump(exclude={"amount", "description", "date"})

        return [
            Transaction(
                id=self._new_id(),
                amount=amount,
                description=f"{base.description} ({index + 1}/{installment_count})",
                date=add_months_to_date(base.date, index),
                installment_info=InstallmentInfo(
                    current=index + 1,
                    total=installment_count,
                    group_id=group_id,
                ),
                **fields,
            )
            for index, amount in enumerate(amounts)
        ]

    def split_amount(self, total: Decimal, installment_count: int) -> list[Decimal]:
        """Split `total` into equal parts rounded down; the last part takes the remainder."""
        per_installment = (total / installment_count).quantize(
            self._quantum, rounding=ROUND_DOWN
        )
        last = total - per_installment * (installment_count - 1)
        if per_installment <= 0 or last <= 0:
            raise InstallmentError(
                f"Amount {total} is too small to split into {installment_count} installments"
            )
        return [per_installment] * (installment_count - 1) + [last]
