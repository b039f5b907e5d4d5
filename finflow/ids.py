"""
Identity Generation

DESIGN DECISION: Components never call uuid4() directly for new
transactions, installment groups or budgets. They receive an IdGenerator
so tests can assert on exact, predictable ids.
"""

from typing import Protocol
from uuid import uuid4


class IdGenerator(Protocol):
    """Anything that returns a fresh unique string id when called."""

    def __call__(self) -> str:
        ...


class UUIDGenerator:
    """Random UUID4 ids (production default)."""

    def __call__(self) -> str:
        return str(uuid4())


class SequentialIdGenerator:
    """
    Deterministic ids: "<prefix>-1", "<prefix>-2", ...

    Used in tests and for reproducible seed data.
    """

    def __init__(self, prefix: str = "id", start: int = 1):
        self._prefix = prefix
        self._next = start

    def __call__(self) -> str:
        value = f"{self._prefix}-{self._next}"
        self._next += 1
        return value
