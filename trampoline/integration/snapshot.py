"""
Relay state snapshots.

Goals:
- Deterministic JSON serialization of the sequence table, for persistence and
  for comparing two relay replicas.
- Bound to the relay's domain separator, so a snapshot taken for one relay
  instance cannot be restored into another.
- Restore never lowers a counter (that would re-open consumed messages).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from eth_utils import keccak

from ..state.canonical import bytes32_hex, canonical_address, canonical_json_bytes, domain_sep_bytes
from .relay import SolverTrampoline


RELAY_SNAPSHOT_VERSION = 1

_DECIMAL_RE = re.compile(r"[0-9]+")


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


@dataclass(frozen=True)
class RelaySnapshot:
    """
    Deterministic, versioned snapshot of a relay's sequence table.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        return keccak(domain_sep_bytes("relay_snapshot", version=self.version) + self.canonical_bytes())

    def commitment_hex(self) -> str:
        return bytes32_hex(self.commitment_bytes())

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "data": self.data}


def snapshot_from_relay(relay: SolverTrampoline, *, version: int = RELAY_SNAPSHOT_VERSION) -> RelaySnapshot:
    if version != RELAY_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    entries = [
        {"solver": solver, "next_sequence": int(seq)}
        for solver, seq in relay.sequence_table().items()
        if seq > 0
    ]
    entries.sort(key=lambda e: e["solver"].lower())

    data = {
        "chain_id": relay.domain.chain_id,
        "relay": relay.address,
        "domain_separator": bytes32_hex(relay.domain_separator()),
        "schema": relay.schema.name,
        # uint256 counters can exceed JSON-safe integers in other decoders.
        "sequences": [{"solver": e["solver"], "next_sequence": str(e["next_sequence"])} for e in entries],
    }
    return RelaySnapshot(version=version, data=data)


def snapshot_from_dict(obj: Mapping[str, Any]) -> RelaySnapshot:
    if not isinstance(obj, Mapping):
        raise TypeError("snapshot must be an object")
    version = _require_int(obj.get("version"), name="version")
    if version != RELAY_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")
    data = obj.get("data")
    if not isinstance(data, Mapping):
        raise TypeError("snapshot.data must be an object")
    return RelaySnapshot(version=version, data=dict(data))


def restore_sequences(relay: SolverTrampoline, snapshot: RelaySnapshot) -> int:
    """
    Raise the relay's counters to the snapshot's values.

    Returns the number of solvers restored. All-or-nothing: a snapshot with
    any bad entry leaves the relay untouched.
    """
    data = snapshot.data
    if data.get("domain_separator") != bytes32_hex(relay.domain_separator()):
        raise ValueError("snapshot was taken for a different relay domain")
    if data.get("schema") != relay.schema.name:
        raise ValueError("snapshot schema does not match relay schema")

    raw_entries = data.get("sequences")
    if not isinstance(raw_entries, list):
        raise TypeError("snapshot.sequences must be a list")

    parsed: Dict[str, int] = {}
    for i, entry in enumerate(raw_entries):
        if not isinstance(entry, Mapping):
            raise TypeError(f"snapshot.sequences[{i}] must be an object")
        solver = canonical_address(entry.get("solver"), name=f"snapshot.sequences[{i}].solver")
        raw_seq = entry.get("next_sequence")
        if not isinstance(raw_seq, str) or not _DECIMAL_RE.fullmatch(raw_seq):
            raise ValueError(f"snapshot.sequences[{i}].next_sequence must be a decimal string")
        if solver in parsed:
            raise ValueError(f"duplicate solver in snapshot: {solver}")
        parsed[solver] = int(raw_seq)

    relay.restore_sequences(parsed)
    return len(parsed)
