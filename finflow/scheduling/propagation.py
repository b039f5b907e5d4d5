"""
Installment Group Edit Propagation

When the user edits one installment, the purchase as a whole changes:
category, type, amount and base description are rewritten on every
member of the group. Dates are different: only the edited installment
moves, the others keep the dates they were generated with.

NOTE: The amount is overwritten on ALL members with the edited value.
Editing installment 2/3 from 333.33 to 400 sets every installment to
400; it does not redistribute a new total across the group.
"""

import re
from typing import Iterable

from finflow.models.transaction import Transaction
from finflow.scheduling.installments import check_description_fits

INSTALLMENT_SUFFIX = re.compile(r"\s*\(\d+/\d+\)$")


class GroupConsistencyError(Exception):
    """The given members do not form a valid group around the edited transaction."""
    pass


def strip_installment_suffix(description: str) -> str:
    """'Laptop (2/3)' -> 'Laptop'."""
    return INSTALLMENT_SUFFIX.sub("", description).strip()


def propagate(
    edited: Transaction,
    group_members: Iterable[Transaction],
) -> list[Transaction]:
    """
    Apply `edited` to every member of its installment group.

    Args:
        edited: The transaction as changed by the user. Its own
            installment info is not trusted; the stored member with the
            same id decides which group is being edited.
        group_members: Every stored transaction of the group.

    Returns:
        Updated copies of the members, ordered by installment position.
        The inputs are not modified.

    Raises:
        GroupConsistencyError: the edited transaction is not among the
            members, or the members do not all belong to its group.
        InstallmentError: the new base description leaves no room for
            the " (i/n)" suffix.
        ValidationError: an edited field is invalid. Members are
            re-validated, so nothing invalid ever reaches storage.
    """
    members = list(group_members)
    anchor = next((m for m in members if m.id == edited.id), None)
    if anchor is None:
        raise GroupConsistencyError(
            f"Transaction {edited.id} is not a member of the given group"
        )
    if anchor.installment_info is None:
        raise GroupConsistencyError(
            f"Transaction {edited.id} is not part of an installment group"
        )

    group_id = anchor.installment_info.group_id
    for member in members:
        if member.installment_info is None or member.installment_info.group_id != group_id:
            raise GroupConsistencyError(
                f"Transaction {member.id} does not belong to group {group_id}"
            )

    base_description = strip_installment_suffix(edited.description)
    check_description_fits(base_description, anchor.installment_info.total)

    updated = [
        Transaction.model_validate({
            **member.model_dump(),
            "category": edited.category,
            "type": edited.type,
            "amount": edited.amount,
            "description": f"{base_description}{member.installment_info.suffix}",
            "date": edited.date if member.id == edited.id else member.date,
        })
        for member in members
    ]
    updated.sort(key=lambda t: t.installment_info.current)
    return updated
