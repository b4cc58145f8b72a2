"""Exception types for the trampoline dispatch guard.

Every rejection of ``settle()`` is one of these, so off-line tooling can tell
"wrong signer", "stale message", "expired" and "target rejected it" apart.
Malformed inputs (bad hex, out-of-range integers) still raise ``ValueError`` /
``TypeError`` before any check runs.
"""

from __future__ import annotations


class TrampolineError(Exception):
    """Base class for settlement rejections."""


class Unauthorized(TrampolineError):
    """Recovered signer is the zero address or is not an authorized solver."""

    def __init__(self, solver: str) -> None:
        self.solver = solver
        super().__init__(f"unauthorized solver: {solver}")


class InvalidSequence(TrampolineError):
    """Submitted sequence is not the solver's next expected one."""

    def __init__(self, solver: str, expected: int, got: int) -> None:
        self.solver = solver
        self.expected = expected
        self.got = got
        super().__init__(f"invalid sequence for {solver}: expected {expected}, got {got}")


class Expired(TrampolineError):
    """Current execution-context position is past the message deadline."""

    def __init__(self, deadline: int, position: int) -> None:
        self.deadline = deadline
        self.position = position
        super().__init__(f"settlement expired: deadline {deadline}, position {position}")


class TargetFailed(TrampolineError):
    """The settlement target rejected the forwarded action.

    ``reason`` is the target's exception object, untouched; it is also the
    ``__cause__`` of this error.
    """

    def __init__(self, reason: BaseException) -> None:
        self.reason = reason
        super().__init__(str(reason))
