"""
secp256k1 signer recovery.

`recover_signer()` follows the `ecrecover` precompile contract: any malformed
input (wrong `v`, `r`/`s` out of range, `r` not an x coordinate on the curve)
recovers to the zero address instead of raising. Callers must treat the zero
address as "no signer".
"""

from __future__ import annotations

from typing import Any, Tuple, Union

from eth_utils import keccak, to_checksum_address
from py_ecc.secp256k1 import ecdsa_raw_recover

from ..state.canonical import ZERO_ADDRESS, hex_to_bytes_allow_0x
from .types import Signature


# Group order of secp256k1.
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

SignatureLike = Union[Signature, bytes, bytearray, str]


def split_signature(raw: Union[bytes, bytearray, str]) -> Signature:
    """
    Split a 65-byte `r || s || v` signature.

    Wallets sometimes emit the recovery id as 0/1 instead of 27/28; those are
    normalized here. Any other `v` is kept as-is (and will fail recovery).
    """
    if isinstance(raw, str):
        data = hex_to_bytes_allow_0x(raw, name="signature", expected_nbytes=65)
    elif isinstance(raw, (bytes, bytearray)):
        data = bytes(raw)
        if len(data) != 65:
            raise ValueError("signature must be 65 bytes")
    else:
        raise TypeError("signature must be bytes or a hex string")
    r = int.from_bytes(data[0:32], "big")
    s = int.from_bytes(data[32:64], "big")
    v = data[64]
    if v in (0, 1):
        v += 27
    return Signature(v=v, r=r, s=s)


def as_signature(value: Any) -> Signature:
    if isinstance(value, Signature):
        return value
    if isinstance(value, (tuple, list)) and len(value) == 3:
        v, r, s = value
        return Signature(v=int(v), r=int(r), s=int(s))
    return split_signature(value)


def address_from_public_key(point: Tuple[int, int]) -> str:
    x, y = point
    digest = keccak(int(x).to_bytes(32, "big") + int(y).to_bytes(32, "big"))
    return to_checksum_address(digest[12:])


def recover_signer(digest: bytes, signature: Signature) -> str:
    """Recover the signing address, or the zero address if the input is invalid."""
    if not isinstance(digest, (bytes, bytearray)) or len(digest) != 32:
        raise ValueError("digest must be exactly 32 bytes")
    v, r, s = signature.v, signature.r, signature.s
    if v not in (27, 28):
        return to_checksum_address(ZERO_ADDRESS)
    if not (0 < r < SECP256K1_N) or not (0 < s < SECP256K1_N):
        return to_checksum_address(ZERO_ADDRESS)
    try:
        point = ecdsa_raw_recover(bytes(digest), (v, r, s))
    except (ValueError, ZeroDivisionError):
        return to_checksum_address(ZERO_ADDRESS)
    if not point or tuple(point) == (0, 0):
        return to_checksum_address(ZERO_ADDRESS)
    return address_from_public_key(point)
