"""Data types for the trampoline.

All types are frozen dataclasses (immutable).

Conventions:
- addresses are EIP-55 checksummed 0x-hex strings (20 bytes).
- `sequence` and `deadline` are uint256 integers.
- `deadline` is an execution-context position (block number or unix seconds,
  whatever the relay's position source reports).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional

from ..state.canonical import require_bytes, require_uint256


@dataclass(frozen=True)
class Signature:
    """Detached secp256k1 signature in `(v, r, s)` form."""

    v: int
    r: int
    s: int

    def to_bytes(self) -> bytes:
        """65-byte `r || s || v` encoding (the usual wallet output)."""
        if not (0 <= self.v <= 0xFF):
            raise ValueError("v must fit in one byte")
        r = require_uint256(self.r, name="r")
        s = require_uint256(self.s, name="s")
        return r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([self.v])

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()


@dataclass(frozen=True)
class Authorization:
    """
    The signed payload: an opaque action plus its replay/expiry envelope.

    Never stored by the relay; only its effect (a sequence advance) persists.
    """

    action: bytes
    sequence: int
    deadline: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "action", require_bytes(self.action, name="action"))
        require_uint256(self.sequence, name="sequence")
        if self.deadline is not None:
            require_uint256(self.deadline, name="deadline")


@unique
class Event(Enum):
    """Observable notifications emitted by the relay."""
    DISPATCHED = "TrampolinedSettlement"
    SEQUENCE_CANCELLED = "SequenceCancelled"


@dataclass(frozen=True)
class RelayEvent:
    event: Event
    solver: str
    sequence: int
