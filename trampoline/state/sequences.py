"""
Sequence table for replay protection.

We track, per solver address, the *next expected* sequence number. Unseen
addresses start at 0. The only mutation is `advance()`, which bumps a counter
by exactly one; counters never decrease except when an open transaction is
rolled back.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Tuple

from .canonical import UINT256_MAX, canonical_address


@dataclass
class SequenceTable:
    """
    Mutable mapping: solver address -> next expected sequence.

    Mutations performed inside `transaction()` are journaled; if the block
    raises, they are undone in reverse order. Transactions nest: a committed
    inner transaction hands its journal to the enclosing one, so a later
    failure of the outer block also undoes the inner advance.
    """

    _next: Dict[str, int] = field(default_factory=dict)
    _journals: List[List[Tuple[str, int]]] = field(default_factory=list, repr=False)

    def get(self, address: str) -> int:
        key = canonical_address(address)
        v = self._next.get(key, 0)
        if not isinstance(v, int) or isinstance(v, bool) or v < 0:
            raise ValueError(f"invalid stored sequence for {address!r}: {v!r}")
        return int(v)

    def advance(self, address: str) -> int:
        """Bump the counter for `address`; returns the sequence that was consumed."""
        key = canonical_address(address)
        current = self._next.get(key, 0)
        if current >= UINT256_MAX:
            raise OverflowError("sequence exhausted")
        if self._journals:
            self._journals[-1].append((key, current))
        self._next[key] = current + 1
        return current

    def seed(self, address: str, next_sequence: int) -> None:
        """Raise a counter to `next_sequence` (restore path); never lowers it."""
        if not isinstance(next_sequence, int) or isinstance(next_sequence, bool) or next_sequence < 0:
            raise TypeError("next_sequence must be a non-negative int")
        if next_sequence > UINT256_MAX:
            raise ValueError("next_sequence must fit in uint256")
        key = canonical_address(address)
        current = self._next.get(key, 0)
        if next_sequence < current:
            raise ValueError(f"refusing to lower sequence for {key}: {current} -> {next_sequence}")
        if self._journals:
            self._journals[-1].append((key, current))
        self._next[key] = int(next_sequence)

    @property
    def in_transaction(self) -> bool:
        return bool(self._journals)

    @contextmanager
    def transaction(self) -> Iterator["SequenceTable"]:
        journal: List[Tuple[str, int]] = []
        self._journals.append(journal)
        try:
            yield self
        except BaseException:
            self._journals.pop()
            for key, previous in reversed(journal):
                if previous == 0:
                    self._next.pop(key, None)
                else:
                    self._next[key] = previous
            raise
        self._journals.pop()
        if self._journals:
            self._journals[-1].extend(journal)

    def get_all(self) -> Mapping[str, int]:
        # Return a shallow copy to avoid accidental mutation during iteration.
        return dict(self._next)
