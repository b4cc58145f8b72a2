"""
Relay configuration.

Construction-time settings for a `SolverTrampoline`. Values can be given
directly or read from the environment with `TrampolineConfig.from_env()`:

  TRAMPOLINE_CHAIN_ID          execution-context id (default 1)
  TRAMPOLINE_ADDRESS           relay address used for domain binding (required by from_env)
  TRAMPOLINE_REQUIRE_DEADLINE  1/0: message schema with or without a deadline (default 1)
  TRAMPOLINE_POSITION_SOURCE   "wall" (unix seconds) or "manual" (default "wall")
  TRAMPOLINE_LOG_LEVEL         default INFO
  TRAMPOLINE_LOG_JSON          1/0 (default 0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from ..core.typed_data import DomainDescriptor, SettlementSchema
from ..state.canonical import UINT256_MAX, canonical_address


def _bool_env(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return bool(default)
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip(), 0)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if v < lo or v > hi:
        raise ValueError(f"{name} must be in [{lo}, {hi}]")
    return v


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


@dataclass(frozen=True)
class TrampolineConfig:
    # Domain binding: signatures are only valid for this (chain, relay) pair.
    chain_id: int
    address: str

    # Message schema: deadline always signed, or never.
    require_deadline: bool = True

    position_source: str = "wall"

    log_level: str = "INFO"
    log_json: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.chain_id, int) or isinstance(self.chain_id, bool):
            raise TypeError("chain_id must be an int")
        if self.chain_id < 0 or self.chain_id > UINT256_MAX:
            raise ValueError("chain_id must fit in uint256")
        object.__setattr__(self, "address", canonical_address(self.address, name="address"))
        if self.position_source not in {"wall", "manual"}:
            raise ValueError(f"unknown position_source: {self.position_source!r}")

    @property
    def schema(self) -> SettlementSchema:
        return SettlementSchema.WITH_DEADLINE if self.require_deadline else SettlementSchema.NO_DEADLINE

    @property
    def domain(self) -> DomainDescriptor:
        return DomainDescriptor(chain_id=self.chain_id, verifying_contract=self.address)

    @classmethod
    def from_env(cls) -> "TrampolineConfig":
        address = _env_str("TRAMPOLINE_ADDRESS", "")
        if not address:
            raise ValueError("TRAMPOLINE_ADDRESS must be set")
        return cls(
            chain_id=_env_int("TRAMPOLINE_CHAIN_ID", 1, lo=0, hi=UINT256_MAX),
            address=address,
            require_deadline=_bool_env("TRAMPOLINE_REQUIRE_DEADLINE", default=True),
            position_source=_env_str("TRAMPOLINE_POSITION_SOURCE", "wall").lower(),
            log_level=_env_str("TRAMPOLINE_LOG_LEVEL", "INFO").upper(),
            log_json=_bool_env("TRAMPOLINE_LOG_JSON", default=False),
        )
