"""
EIP-712 typed-data hashing for trampoline settlements.

This is a canonicalization contract: any client computing the same message
off-line (e.g. `eth_signTypedData_v4` in a wallet) must arrive at the same
32-byte digest.

    domain_separator = keccak(typeHash(EIP712Domain) || enc(chainId) || enc(verifyingContract))
    struct_hash      = keccak(typeHash(Settlement) || keccak(settlement) || enc(nonce) [|| enc(deadline)])
    digest           = keccak(0x19 || 0x01 || domain_separator || struct_hash)

The domain carries only `chainId` and `verifyingContract` (no name/version), so a
signature is bound to exactly one relay instance on exactly one chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional

from eth_utils import keccak

from ..state.canonical import address_bytes, canonical_address, require_bytes, require_uint256


EIP712_DOMAIN_TYPE = "EIP712Domain(uint256 chainId,address verifyingContract)"
EIP712_DOMAIN_TYPEHASH = keccak(text=EIP712_DOMAIN_TYPE)

EIP191_TYPED_DATA_PREFIX = b"\x19\x01"


@unique
class SettlementSchema(Enum):
    """
    Which message schema a relay accepts.

    The deadline is either always part of the signed struct or never; a relay
    never accepts both shapes.
    """
    WITH_DEADLINE = "Settlement(bytes settlement,uint256 nonce,uint256 deadline)"
    NO_DEADLINE = "Settlement(bytes settlement,uint256 nonce)"

    @property
    def has_deadline(self) -> bool:
        return self is SettlementSchema.WITH_DEADLINE

    @property
    def typehash(self) -> bytes:
        return keccak(text=self.value)

    def eip712_types(self) -> dict:
        """Type table in the JSON shape wallets and `eth_account` expect."""
        fields = [
            {"name": "settlement", "type": "bytes"},
            {"name": "nonce", "type": "uint256"},
        ]
        if self.has_deadline:
            fields.append({"name": "deadline", "type": "uint256"})
        return {"Settlement": fields}


@dataclass(frozen=True)
class DomainDescriptor:
    chain_id: int
    verifying_contract: str

    def __post_init__(self) -> None:
        require_uint256(self.chain_id, name="chain_id")
        object.__setattr__(
            self, "verifying_contract", canonical_address(self.verifying_contract, name="verifying_contract")
        )

    def as_eip712_dict(self) -> dict:
        return {"chainId": self.chain_id, "verifyingContract": self.verifying_contract}


def _enc_uint256(value: int, *, name: str) -> bytes:
    return require_uint256(value, name=name).to_bytes(32, "big")


def _enc_address(value: str, *, name: str) -> bytes:
    return b"\x00" * 12 + address_bytes(value, name=name)


def hash_domain(domain: DomainDescriptor) -> bytes:
    return keccak(
        EIP712_DOMAIN_TYPEHASH
        + _enc_uint256(domain.chain_id, name="chain_id")
        + _enc_address(domain.verifying_contract, name="verifying_contract")
    )


def hash_struct(
    schema: SettlementSchema,
    action: bytes,
    sequence: int,
    deadline: Optional[int] = None,
) -> bytes:
    """
    Struct hash of one settlement message.

    Raises ValueError when `deadline` presence does not match the schema.
    """
    action_b = require_bytes(action, name="action")
    encoded = schema.typehash + keccak(action_b) + _enc_uint256(sequence, name="sequence")
    if schema.has_deadline:
        if deadline is None:
            raise ValueError("deadline is required by this settlement schema")
        encoded += _enc_uint256(deadline, name="deadline")
    elif deadline is not None:
        raise ValueError("deadline is not part of this settlement schema")
    return keccak(encoded)


def typed_data_digest(domain_separator: bytes, struct_hash: bytes) -> bytes:
    if len(domain_separator) != 32 or len(struct_hash) != 32:
        raise ValueError("domain_separator and struct_hash must be 32 bytes")
    return keccak(EIP191_TYPED_DATA_PREFIX + domain_separator + struct_hash)


def settlement_digest(
    domain: DomainDescriptor,
    schema: SettlementSchema,
    action: bytes,
    sequence: int,
    deadline: Optional[int] = None,
) -> bytes:
    """Convenience for off-line signers: full digest from the domain descriptor."""
    return typed_data_digest(hash_domain(domain), hash_struct(schema, action, sequence, deadline))
