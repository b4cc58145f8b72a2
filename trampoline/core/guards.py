"""Guard predicates for settlement submission.

One pure function per check. Each returns True iff the submission may proceed
past that check; the relay maps a False to the matching typed error.
"""

from __future__ import annotations

from typing import Callable, Optional

from ..state.canonical import is_zero_address


def guard_authorized(solver: str, is_authorized: Callable[[str], bool]) -> bool:
    # The zero address is what a failed recovery produces; it never passes,
    # and the oracle is not consulted for it.
    if is_zero_address(solver):
        return False
    return bool(is_authorized(solver))


def guard_sequence(expected: int, got: int) -> bool:
    return got == expected


def guard_not_expired(deadline: Optional[int], position: int) -> bool:
    """Deadline is the last valid position (inclusive)."""
    if deadline is None:
        return True
    return position <= deadline
