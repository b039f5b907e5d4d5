"""Tests for installment expansion."""

import pytest
from datetime import date
from decimal import Decimal

from finflow.ids import SequentialIdGenerator
from finflow.models.transaction import Category, NewTransaction, TransactionType
from finflow.scheduling.calendar import add_months_to_date
from finflow.scheduling.installments import (
    CalculationMode,
    InstallmentError,
    InstallmentExpander,
    resolve_total_amount,
)


def make_purchase(
    amount: str = "1000",
    on: date = date(2024, 1, 31),
    description: str = "Laptop",
    type: TransactionType = TransactionType.EXPENSE,
) -> NewTransaction:
    return NewTransaction(
        type=type,
        category=Category.EDUCATION,
        amount=Decimal(amount),
        description=description,
        date=on,
    )


@pytest.fixture
def expander():
    return InstallmentExpander(SequentialIdGenerator("tx"))


class TestExpand:
    """Tests for InstallmentExpander.expand."""

    def test_three_installments_from_january_31(self, expander):
        """1000 on 2024-01-31 in 3: clamped dates, last installment takes the cent."""
        group = expander.expand(make_purchase(), 3)

        assert [t.date for t in group] == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
        ]
        assert [t.amount for t in group] == [
            Decimal("333.33"),
            Decimal("333.33"),
            Decimal("333.34"),
        ]
        assert [t.description for t in group] == [
            "Laptop (1/3)",
            "Laptop (2/3)",
            "Laptop (3/3)",
        ]

    def test_members_share_group_identity(self, expander):
        group = expander.expand(make_purchase(), 3)

        assert {t.installment_info.group_id for t in group} == {"tx-1"}
        assert [t.id for t in group] == ["tx-2", "tx-3", "tx-4"]
        assert [t.installment_info.current for t in group] == [1, 2, 3]
        assert all(t.installment_info.total == 3 for t in group)
        assert all(t.category == Category.EDUCATION for t in group)
        assert all(t.type == TransactionType.EXPENSE for t in group)

    def test_single_installment_is_plain_transaction(self, expander):
        [tx] = expander.expand(make_purchase(amount="99.99"), 1)

        assert tx.id == "tx-1"
        assert tx.amount == Decimal("99.99")
        assert tx.description == "Laptop"
        assert tx.installment_info is None

    def test_income_allowed_as_single(self, expander):
        [tx] = expander.expand(make_purchase(type=TransactionType.INCOME), 1)
        assert tx.type == TransactionType.INCOME

    def test_income_cannot_be_split(self, expander):
        with pytest.raises(InstallmentError, match="Only expenses"):
            expander.expand(make_purchase(type=TransactionType.INCOME), 2)

    def test_rejects_zero_installments(self, expander):
        with pytest.raises(InstallmentError):
            expander.expand(make_purchase(), 0)

    def test_rejects_description_without_room_for_suffix(self, expander):
        """A 198-character description cannot take " (1/3)"."""
        with pytest.raises(InstallmentError, match="too long"):
            expander.expand(make_purchase(description="x" * 198), 3)

    def test_description_filling_the_limit_exactly(self, expander):
        group = expander.expand(make_purchase(description="x" * 194), 3)
        assert [len(t.description) for t in group] == [200, 200, 200]

    def test_suffix_room_depends_on_group_size(self, expander):
        """" (10/10)" is two characters longer than " (3/3)"."""
        with pytest.raises(InstallmentError):
            expander.expand(make_purchase(description="x" * 193), 10)

    def test_long_description_allowed_without_split(self, expander):
        [tx] = expander.expand(make_purchase(description="x" * 200), 1)
        assert len(tx.description) == 200

    def test_rejects_amount_too_small_to_split(self, expander):
        with pytest.raises(InstallmentError, match="too small"):
            expander.expand(make_purchase(amount="0.02"), 3)

    def test_sum_and_count_match_the_purchase(self, expander):
        for amount in ("1000", "100", "0.10", "999.99", "1234.57", "50000"):
            for count in (2, 3, 6, 7, 10, 12, 24):
                if Decimal(amount) < Decimal("0.01") * count:
                    continue
                group = expander.expand(make_purchase(amount=amount), count)
                assert len(group) == count
                assert sum(t.amount for t in group) == Decimal(amount)
                assert all(t.amount > 0 for t in group)

    def test_dates_step_one_month_each(self, expander):
        base = date(2024, 1, 31)
        group = expander.expand(make_purchase(on=base), 24)

        for index, tx in enumerate(group):
            assert tx.date == add_months_to_date(base, index)
        for earlier, later in zip(group, group[1:]):
            assert earlier.date < later.date
            assert (later.date.year * 12 + later.date.month) - (
                earlier.date.year * 12 + earlier.date.month
            ) == 1

    def test_year_rollover(self, expander):
        group = expander.expand(make_purchase(on=date(2024, 11, 30)), 4)
        assert [t.date for t in group] == [
            date(2024, 11, 30),
            date(2024, 12, 30),
            date(2025, 1, 30),
            date(2025, 2, 28),
        ]

    def test_custom_quantum(self):
        expander = InstallmentExpander(SequentialIdGenerator("tx"), quantum=Decimal("1"))
        group = expander.expand(make_purchase(amount="100"), 3)
        assert [t.amount for t in group] == [Decimal("33"), Decimal("33"), Decimal("34")]


class TestResolveTotalAmount:
    """Tests for the amount entry modes."""

    def test_total_mode_keeps_amount(self):
        assert resolve_total_amount(Decimal("900"), 3) == Decimal("900")

    def test_per_installment_mode_multiplies(self):
        total = resolve_total_amount(
            Decimal("150"), 4, CalculationMode.PER_INSTALLMENT
        )
        assert total == Decimal("600")

    def test_per_installment_round_trips_through_expand(self, expander):
        total = resolve_total_amount(Decimal("150"), 4, CalculationMode.PER_INSTALLMENT)
        group = expander.expand(make_purchase(amount=str(total)), 4)
        assert all(t.amount == Decimal("150.00") for t in group)

    def test_rejects_zero_count(self):
        with pytest.raises(InstallmentError):
            resolve_total_amount(Decimal("10"), 0)
