"""
Time-ordered identifiers for funds and transactions.
"""

from __future__ import annotations

import time


class MonotonicIdGenerator:
    """
    Produces ``<prefix>_<n>`` ids where ``n`` is wall-clock microseconds,
    bumped when needed so ids from one process are strictly increasing.
    """

    def __init__(self) -> None:
        self._last = 0

    def next_value(self) -> int:
        now = time.time_ns() // 1_000
        if now <= self._last:
            now = self._last + 1
        self._last = now
        return now

    def new_id(self, prefix: str) -> str:
        # Zero-padded so lexicographic order matches numeric order
        return f"{prefix}_{self.next_value():017d}"


_generator = MonotonicIdGenerator()


def new_fund_id() -> str:
    return _generator.new_id("fund")


def new_transaction_id() -> str:
    return _generator.new_id("txn")
