"""Tests for fixed expense generation."""

import pytest
from datetime import date
from decimal import Decimal

from finflow.ids import SequentialIdGenerator
from finflow.models.transaction import (
    Category,
    FixedExpense,
    Transaction,
    TransactionType,
)
from finflow.scheduling.fixed_expenses import FixedExpenseGenerator


@pytest.fixture
def generator():
    return FixedExpenseGenerator(SequentialIdGenerator("gen"))


@pytest.fixture
def definitions() -> list[FixedExpense]:
    return [
        FixedExpense(
            id="rent",
            description="Rent",
            amount=Decimal("1200"),
            category=Category.HOUSING,
            day_of_month=5,
        ),
        FixedExpense(
            id="gym",
            description="Gym",
            amount=Decimal("45.90"),
            category=Category.HEALTH,
            day_of_month=31,
        ),
    ]


class TestGenerate:
    """Tests for FixedExpenseGenerator.generate."""

    def test_generates_one_expense_per_definition(self, generator, definitions):
        generated = generator.generate(definitions, 3, 2025, [])

        assert [t.fixed_expense_id for t in generated] == ["rent", "gym"]
        assert [t.date for t in generated] == [date(2025, 3, 5), date(2025, 3, 31)]
        assert [t.id for t in generated] == ["gen-1", "gen-2"]
        rent = generated[0]
        assert rent.type == TransactionType.EXPENSE
        assert rent.amount == Decimal("1200")
        assert rent.category == Category.HOUSING
        assert rent.description == "Rent"
        assert rent.installment_info is None

    def test_day_31_in_february_is_clamped(self, generator, definitions):
        [_, gym] = generator.generate(definitions, 2, 2025, [])
        assert gym.date == date(2025, 2, 28)

    def test_leap_february(self, generator, definitions):
        [_, gym] = generator.generate(definitions, 2, 2024, [])
        assert gym.date == date(2024, 2, 29)

    def test_second_run_generates_nothing(self, generator, definitions):
        first = generator.generate(definitions, 6, 2025, [])
        second = generator.generate(definitions, 6, 2025, first)
        assert len(first) == 2
        assert second == []

    def test_idempotent_for_every_month(self, generator, definitions):
        for year in (2024, 2025):
            for month in range(1, 13):
                first = generator.generate(definitions, month, year, [])
                assert generator.generate(definitions, month, year, first) == []

    def test_other_months_do_not_count(self, generator, definitions):
        january = generator.generate(definitions, 1, 2025, [])
        february = generator.generate(definitions, 2, 2025, january)
        assert len(february) == 2

    def test_same_month_other_year_does_not_count(self, generator, definitions):
        last_year = generator.generate(definitions, 1, 2024, [])
        assert len(generator.generate(definitions, 1, 2025, last_year)) == 2

    def test_only_missing_definitions_are_generated(self, generator, definitions):
        manual_rent = Transaction(
            id="manual",
            type=TransactionType.EXPENSE,
            category=Category.HOUSING,
            amount=Decimal("1200"),
            description="Rent paid early",
            date=date(2025, 4, 1),
            fixed_expense_id="rent",
        )
        generated = generator.generate(definitions, 4, 2025, [manual_rent])
        assert [t.fixed_expense_id for t in generated] == ["gym"]

    def test_unlinked_transactions_do_not_count(self, generator, definitions):
        lookalike = Transaction(
            id="manual",
            type=TransactionType.EXPENSE,
            category=Category.HOUSING,
            amount=Decimal("1200"),
            description="Rent",
            date=date(2025, 4, 5),
        )
        assert len(generator.generate(definitions, 4, 2025, [lookalike])) == 2

    def test_duplicate_definitions_emitted_once(self, generator, definitions):
        generated = generator.generate(definitions + definitions[:1], 5, 2025, [])
        assert [t.fixed_expense_id for t in generated] == ["rent", "gym"]

    def test_no_definitions(self, generator):
        assert generator.generate([], 5, 2025, []) == []

    def test_rejects_invalid_month(self, generator, definitions):
        with pytest.raises(ValueError):
            generator.generate(definitions, 0, 2025, [])
        with pytest.raises(ValueError):
            generator.generate(definitions, 13, 2025, [])
