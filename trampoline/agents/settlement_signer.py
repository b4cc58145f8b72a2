"""
Off-line settlement signing for solvers.

The relay itself only verifies; this module is what a solver (or a test) uses to
produce the signature the relay expects.
"""

from dataclasses import dataclass
from typing import Optional, Union

from py_ecc.secp256k1 import ecdsa_raw_sign, privtopub

from ..core.signatures import SECP256K1_N, address_from_public_key, recover_signer
from ..core.typed_data import DomainDescriptor, SettlementSchema, settlement_digest
from ..core.types import Authorization, Signature
from ..state.canonical import hex_to_bytes_allow_0x


PrivateKey = Union[bytes, bytearray, str, int]


@dataclass(frozen=True)
class SignedSettlement:
    """
    A settlement message plus its detached signature.

    Attributes:
        solver: Address the signature recovers to
        authorization: The signed fields (action, sequence, deadline)
        signature: `(v, r, s)` over the domain-bound digest
    """
    solver: str
    authorization: Authorization
    signature: Signature

    @property
    def action(self) -> bytes:
        return self.authorization.action

    @property
    def sequence(self) -> int:
        return self.authorization.sequence

    @property
    def deadline(self) -> Optional[int]:
        return self.authorization.deadline


def _private_key_bytes(private_key: PrivateKey) -> bytes:
    if isinstance(private_key, int) and not isinstance(private_key, bool):
        k = private_key
    elif isinstance(private_key, (bytes, bytearray)):
        if len(private_key) != 32:
            raise ValueError("private key bytes must be length 32")
        k = int.from_bytes(bytes(private_key), "big")
    elif isinstance(private_key, str):
        k = int.from_bytes(hex_to_bytes_allow_0x(private_key, name="private_key", expected_nbytes=32), "big")
    else:
        raise TypeError("private key must be bytes, hex str, or int")
    if not (0 < k < SECP256K1_N):
        raise ValueError("private key out of range (must be in [1, n))")
    return k.to_bytes(32, "big")


def address_of(private_key: PrivateKey) -> str:
    """
    Derive the checksummed address for a private key.

    Args:
        private_key: 32-byte secret as bytes, 0x-hex, or int

    Returns:
        EIP-55 address string
    """
    return address_from_public_key(privtopub(_private_key_bytes(private_key)))


def sign_digest(digest: bytes, private_key: PrivateKey) -> Signature:
    """Deterministic (RFC 6979 style) secp256k1 signature over a 32-byte digest."""
    if not isinstance(digest, (bytes, bytearray)) or len(digest) != 32:
        raise ValueError("digest must be exactly 32 bytes")
    v, r, s = ecdsa_raw_sign(bytes(digest), _private_key_bytes(private_key))
    return Signature(v=v, r=r, s=s)


def sign_settlement(
    private_key: PrivateKey,
    domain: DomainDescriptor,
    action: bytes,
    sequence: int,
    deadline: Optional[int] = None,
    *,
    schema: SettlementSchema = SettlementSchema.WITH_DEADLINE,
) -> SignedSettlement:
    """
    Sign a settlement for one relay instance.

    Args:
        private_key: Solver's secp256k1 key
        domain: Target relay's domain descriptor (chain id + relay address)
        action: Encoded call to forward
        sequence: Solver's next sequence on that relay
        deadline: Last valid position (required iff the schema has a deadline)
        schema: Message schema the relay is configured with

    Returns:
        SignedSettlement ready for `SolverTrampoline.settle()`
    """
    authorization = Authorization(action=action, sequence=sequence, deadline=deadline)
    digest = settlement_digest(domain, schema, authorization.action, sequence, deadline)
    return SignedSettlement(
        solver=address_of(private_key),
        authorization=authorization,
        signature=sign_digest(digest, private_key),
    )


def verify_settlement_signature(
    signed: SignedSettlement,
    domain: DomainDescriptor,
    *,
    schema: SettlementSchema = SettlementSchema.WITH_DEADLINE,
) -> bool:
    """Check off-line that `signed` recovers to its claimed solver for `domain`."""
    digest = settlement_digest(domain, schema, signed.action, signed.sequence, signed.deadline)
    return recover_signer(digest, signed.signature) == signed.solver
