"""
Authority oracle: "is this address currently allowed to settle?"

The relay holds no copy of the answer; it asks on every submission, so a
revocation takes effect for the very next `settle()`.
"""

from __future__ import annotations

import threading
from typing import Iterable, Protocol, Set

import structlog

from ..state.canonical import canonical_address

logger = structlog.get_logger("trampoline.integration.authority")


class AuthorityOracle(Protocol):
    def is_authorized(self, address: str) -> bool:
        ...


class AllowListAuthority:
    """In-memory allow-list of solver addresses."""

    def __init__(self, solvers: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._solvers: Set[str] = {canonical_address(s, name="solver") for s in solvers}

    def is_authorized(self, address: str) -> bool:
        key = canonical_address(address)
        with self._lock:
            return key in self._solvers

    def add_solver(self, address: str) -> None:
        key = canonical_address(address, name="solver")
        with self._lock:
            self._solvers.add(key)
        logger.info("trampoline.solver_added", solver=key)

    def remove_solver(self, address: str) -> None:
        key = canonical_address(address, name="solver")
        with self._lock:
            self._solvers.discard(key)
        logger.info("trampoline.solver_removed", solver=key)

    def solvers(self) -> frozenset:
        with self._lock:
            return frozenset(self._solvers)
