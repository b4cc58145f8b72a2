from __future__ import annotations

from typing import Any, Callable, List, Tuple

import pytest

from trampoline.core.typed_data import DomainDescriptor, SettlementSchema
from trampoline.integration.authority import AllowListAuthority
from trampoline.integration.clock import ManualClock
from trampoline.integration.relay import SolverTrampoline

# Well-known development keys (hardhat/anvil accounts #0 and #1).
SOLVER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
SOLVER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
NOT_SOLVER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
NOT_SOLVER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

RELAY_ADDRESS = "0x" + "5f" * 20
CHAIN_ID = 31337


class RecordingTarget:
    """Settlement target that records calls and reverts on `b"revert"`."""

    def __init__(self) -> None:
        self.calls: List[Tuple[bytes, str]] = []

    def execute(self, action: bytes, *, sender: str) -> Any:
        if action == b"revert":
            raise RuntimeError("test settlement reverted")
        self.calls.append((action, sender))
        return len(self.calls)


@pytest.fixture
def solver_key() -> str:
    return SOLVER_KEY


@pytest.fixture
def solver_address() -> str:
    return SOLVER_ADDRESS


@pytest.fixture
def not_solver_key() -> str:
    return NOT_SOLVER_KEY


@pytest.fixture
def not_solver_address() -> str:
    return NOT_SOLVER_ADDRESS


@pytest.fixture
def domain() -> DomainDescriptor:
    return DomainDescriptor(chain_id=CHAIN_ID, verifying_contract=RELAY_ADDRESS)


@pytest.fixture
def authority() -> AllowListAuthority:
    return AllowListAuthority([SOLVER_ADDRESS])


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(position=100)


@pytest.fixture
def target() -> RecordingTarget:
    return RecordingTarget()


@pytest.fixture
def relay(domain, authority, clock, target) -> SolverTrampoline:
    return SolverTrampoline(
        domain=domain,
        authority=authority,
        target=target,
        schema=SettlementSchema.WITH_DEADLINE,
        clock=clock,
    )


@pytest.fixture
def make_relay() -> Callable[..., SolverTrampoline]:
    def _make(
        *,
        address: str = RELAY_ADDRESS,
        chain_id: int = CHAIN_ID,
        target: Any = None,
        schema: SettlementSchema = SettlementSchema.WITH_DEADLINE,
        position: int = 100,
    ) -> SolverTrampoline:
        return SolverTrampoline(
            domain=DomainDescriptor(chain_id=chain_id, verifying_contract=address),
            authority=AllowListAuthority([SOLVER_ADDRESS]),
            target=target,
            schema=schema,
            clock=ManualClock(position=position),
        )

    return _make
