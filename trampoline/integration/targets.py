"""
Settlement targets: whatever actually performs the forwarded action.

A target receives the opaque action bytes and the relay's address (the
"sender" from the target's point of view). Returning normally means success;
raising means the whole settlement is rolled back.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol


class SettlementTarget(Protocol):
    def execute(self, action: bytes, *, sender: str) -> Any:
        ...


class CallableTarget:
    """Adapt a plain `fn(action, sender)` callable to `SettlementTarget`."""

    def __init__(self, fn: Callable[[bytes, str], Any], *, name: str = "") -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "callable")

    def execute(self, action: bytes, *, sender: str) -> Any:
        return self._fn(action, sender)

    def __repr__(self) -> str:
        return f"CallableTarget({self.name})"
