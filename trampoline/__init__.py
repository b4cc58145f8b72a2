"""
Solver trampoline: a signature-gated, one-shot settlement relay.

A pre-approved solver signs a settlement off-line (EIP-712); anyone can submit
it later. The relay guarantees the signer is currently authorized, that each
message executes at most once, and that expired messages are rejected.
"""

from .core import (
    DomainDescriptor,
    Expired,
    InvalidSequence,
    SettlementSchema,
    Signature,
    TargetFailed,
    TrampolineError,
    Unauthorized,
)
from .integration import AllowListAuthority, SolverTrampoline, TrampolineConfig

__all__ = [
    "AllowListAuthority",
    "DomainDescriptor",
    "Expired",
    "InvalidSequence",
    "SettlementSchema",
    "Signature",
    "SolverTrampoline",
    "TargetFailed",
    "TrampolineConfig",
    "TrampolineError",
    "Unauthorized",
]
