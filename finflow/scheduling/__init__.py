"""
Scheduling engine.

- calendar: month arithmetic with day clamping
- installments: split one purchase into dated monthly installments
- propagation: apply an edit to every member of an installment group
- fixed_expenses: generate a month's recurring obligations exactly once

Import from the submodules directly; the models package depends on
`calendar`, so this package does not re-export anything.
"""
