"""
Solver-side helpers: off-line signing and relaying
"""

from .relayer import (
    RelayOutcome,
    order_for_relay,
    relay_all,
)
from .settlement_signer import (
    SignedSettlement,
    address_of,
    sign_settlement,
    verify_settlement_signature,
)

__all__ = [
    "RelayOutcome",
    "SignedSettlement",
    "address_of",
    "order_for_relay",
    "relay_all",
    "sign_settlement",
    "verify_settlement_signature",
]
