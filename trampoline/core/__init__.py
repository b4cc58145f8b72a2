"""`core`: pure signature verification and guard logic for the trampoline.

Public API:
- `DomainDescriptor`, `SettlementSchema`, `hash_domain`, `hash_struct`,
  `typed_data_digest`, `settlement_digest` (EIP-712 hashing)
- `recover_signer`, `split_signature` (secp256k1 recovery)
- the error taxonomy (`Unauthorized`, `InvalidSequence`, `Expired`, `TargetFailed`)

Nothing in this package holds state.
"""

from .errors import Expired, InvalidSequence, TargetFailed, TrampolineError, Unauthorized
from .signatures import as_signature, recover_signer, split_signature
from .typed_data import (
    DomainDescriptor,
    SettlementSchema,
    hash_domain,
    hash_struct,
    settlement_digest,
    typed_data_digest,
)
from .types import Authorization, Event, RelayEvent, Signature

__all__ = [
    "Authorization",
    "DomainDescriptor",
    "Event",
    "Expired",
    "InvalidSequence",
    "RelayEvent",
    "SettlementSchema",
    "Signature",
    "TargetFailed",
    "TrampolineError",
    "Unauthorized",
    "as_signature",
    "hash_domain",
    "hash_struct",
    "recover_signer",
    "settlement_digest",
    "split_signature",
    "typed_data_digest",
]
