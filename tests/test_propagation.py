"""
Tests for installment group edit propagation.

Editing one installment's amount sets that amount on EVERY installment
of the purchase. It does not spread a new total over the group.
"""

import pytest
from datetime import date
from decimal import Decimal

from finflow.ids import SequentialIdGenerator
from finflow.models.transaction import (
    Category,
    InstallmentInfo,
    NewTransaction,
    Transaction,
    TransactionType,
)
from finflow.scheduling.installments import InstallmentError, InstallmentExpander
from finflow.scheduling.propagation import (
    GroupConsistencyError,
    propagate,
    strip_installment_suffix,
)


@pytest.fixture
def group() -> list[Transaction]:
    purchase = NewTransaction(
        type=TransactionType.EXPENSE,
        category=Category.ENTERTAINMENT,
        amount=Decimal("900"),
        description="Console",
        date=date(2024, 1, 31),
    )
    return InstallmentExpander(SequentialIdGenerator("tx")).expand(purchase, 3)


class TestPropagate:
    """Tests for propagate."""

    def test_amount_overwrites_every_member(self, group):
        edited = group[1].model_copy(update={"amount": Decimal("400")})

        updated = propagate(edited, group)

        assert [t.amount for t in updated] == [Decimal("400")] * 3

    def test_shared_fields_and_description(self, group):
        edited = group[1].model_copy(update={
            "category": Category.EDUCATION,
            "description": "Gaming PC (2/3)",
        })

        updated = propagate(edited, group)

        assert [t.description for t in updated] == [
            "Gaming PC (1/3)",
            "Gaming PC (2/3)",
            "Gaming PC (3/3)",
        ]
        assert all(t.category == Category.EDUCATION for t in updated)

    def test_description_without_suffix(self, group):
        edited = group[0].model_copy(update={"description": "Gaming PC"})
        updated = propagate(edited, group)
        assert updated[2].description == "Gaming PC (3/3)"

    def test_only_edited_member_moves_date(self, group):
        before = {t.id: t.date for t in group}
        edited = group[1].model_copy(update={"date": date(2024, 2, 10)})

        updated = propagate(edited, group)

        for tx in updated:
            if tx.id == edited.id:
                assert tx.date == date(2024, 2, 10)
            else:
                assert tx.date == before[tx.id]

    def test_type_is_shared(self, group):
        edited = group[0].model_copy(update={"type": TransactionType.INCOME})
        updated = propagate(edited, group)
        assert all(t.type == TransactionType.INCOME for t in updated)

    def test_keeps_ids_and_installment_info(self, group):
        edited = group[2].model_copy(update={"amount": Decimal("1")})
        updated = propagate(edited, group)
        assert [t.id for t in updated] == [t.id for t in group]
        assert [t.installment_info for t in updated] == [t.installment_info for t in group]

    def test_does_not_mutate_inputs(self, group):
        snapshot = [t.model_copy() for t in group]
        edited = group[0].model_copy(update={"amount": Decimal("5")})

        propagate(edited, group)

        assert group == snapshot

    def test_result_ordered_by_position(self, group):
        edited = group[0].model_copy(update={"amount": Decimal("5")})
        updated = propagate(edited, list(reversed(group)))
        assert [t.installment_info.current for t in updated] == [1, 2, 3]

    def test_rejects_description_without_room_for_suffix(self, group):
        edited = group[0].model_copy(update={"description": "y" * 199})

        with pytest.raises(InstallmentError, match="too long"):
            propagate(edited, group)

    def test_description_filling_the_limit_exactly(self, group):
        edited = group[0].model_copy(update={"description": "y" * 194 + " (1/3)"})
        updated = propagate(edited, group)
        assert [len(t.description) for t in updated] == [200, 200, 200]

    def test_invalid_edited_amount_is_rejected(self, group):
        edited = group[0].model_copy(update={"amount": Decimal("-5")})
        with pytest.raises(ValueError):
            propagate(edited, group)

    def test_edited_must_be_a_member(self, group):
        stranger = group[0].model_copy(update={"id": "not-in-group"})
        with pytest.raises(GroupConsistencyError):
            propagate(stranger, group)

    def test_rejects_foreign_member(self, group):
        foreign = group[0].model_copy(update={
            "id": "other",
            "installment_info": InstallmentInfo(current=1, total=3, group_id="other-group"),
        })
        with pytest.raises(GroupConsistencyError, match="does not belong"):
            propagate(group[0], group + [foreign])

    def test_rejects_member_without_installments(self, group):
        single = group[0].model_copy(update={"id": "single", "installment_info": None})
        with pytest.raises(GroupConsistencyError):
            propagate(group[0], group + [single])


class TestStripInstallmentSuffix:

    def test_strips_suffix(self):
        assert strip_installment_suffix("Laptop (2/10)") == "Laptop"

    def test_keeps_plain_description(self):
        assert strip_installment_suffix("Laptop") == "Laptop"

    def test_only_trailing_suffix(self):
        assert strip_installment_suffix("Rent (May) (1/2)") == "Rent (May)"
        assert strip_installment_suffix("(1/2) deposit") == "(1/2) deposit"
