"""
Relay integration layer: the dispatch guard and its collaborators
"""

from .authority import AllowListAuthority, AuthorityOracle
from .clock import ManualClock, PositionSource, WallClock
from .config import TrampolineConfig
from .relay import SolverTrampoline
from .snapshot import RelaySnapshot, restore_sequences, snapshot_from_dict, snapshot_from_relay
from .targets import CallableTarget, SettlementTarget

__all__ = [
    "AllowListAuthority",
    "AuthorityOracle",
    "CallableTarget",
    "ManualClock",
    "PositionSource",
    "RelaySnapshot",
    "SettlementTarget",
    "SolverTrampoline",
    "TrampolineConfig",
    "WallClock",
    "restore_sequences",
    "snapshot_from_dict",
    "snapshot_from_relay",
]
