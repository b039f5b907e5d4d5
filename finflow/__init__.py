"""
FinFlow - Source Package

Personal finance tracking core: transactions, installment purchases,
recurring fixed expenses and monthly budgets.

DESIGN PRINCIPLES:
1. Calendar arithmetic is pure and total
2. Generation is idempotent
3. Installment groups stay consistent after edits
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinFlow Team"
