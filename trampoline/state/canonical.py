"""
Deterministic canonical encoding primitives.

These helpers normalize the values that flow into signature hashing and state
snapshots (addresses, 32-byte words, uint256 integers, canonical JSON), so that
two encoders never disagree on the bytes being hashed.
"""

from __future__ import annotations

import json
import re
from typing import Any

from eth_utils import to_checksum_address


CANONICAL_ENCODING_VERSION = 1

UINT256_MAX = (1 << 256) - 1

ZERO_ADDRESS = "0x" + "00" * 20

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]+$")


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for k in value.keys():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
        for v in value.values():
            _reject_floats(v)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)
        return


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats rejected (to avoid representation ambiguity)
    """
    _reject_floats(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Create a domain separation prefix.

    The output is ASCII-only and NUL-terminated to make concatenation unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    try:
        label_bytes = label.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("label must be ASCII") from exc
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"trampoline:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"


def require_uint256(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"{name} must fit in uint256")
    return int(value)


def hex_to_bytes_allow_0x(hex_str: str, *, name: str, expected_nbytes: int | None = None) -> bytes:
    """
    Decode hex (with or without `0x`) into bytes.

    `0x` alone decodes to empty bytes; whitespace is rejected explicitly since
    `bytes.fromhex()` would silently skip it.
    """
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a string")
    s = hex_str[2:] if hex_str[:2] in ("0x", "0X") else hex_str

    if expected_nbytes is not None:
        if not isinstance(expected_nbytes, int) or isinstance(expected_nbytes, bool) or expected_nbytes <= 0:
            raise ValueError("expected_nbytes must be a positive int")
        if len(s) != 2 * expected_nbytes:
            raise ValueError(f"{name} must be {expected_nbytes} bytes (hex length {2 * expected_nbytes})")

    if len(s) % 2 != 0:
        raise ValueError(f"{name} must have an even number of hex chars")
    if s and not _HEX_CHARS_RE.fullmatch(s):
        raise ValueError(f"{name} must be valid hex")
    return bytes.fromhex(s)


def require_bytes(value: Any, *, name: str) -> bytes:
    """Accept bytes-like or hex-string input for an opaque byte field."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return hex_to_bytes_allow_0x(value, name=name)
    raise TypeError(f"{name} must be bytes or a hex string")


def canonical_address(value: Any, *, name: str = "address") -> str:
    """
    Canonicalize a 20-byte account address to its EIP-55 checksummed form.

    Accepts 0x-prefixed or raw hex of any case, or 20 raw bytes.
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
        if len(raw) != 20:
            raise ValueError(f"{name} must be 20 bytes")
        return to_checksum_address(raw)
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str")
    raw = hex_to_bytes_allow_0x(value.strip(), name=name, expected_nbytes=20)
    return to_checksum_address(raw)


def address_bytes(value: Any, *, name: str = "address") -> bytes:
    return bytes.fromhex(canonical_address(value, name=name)[2:])


def is_zero_address(value: str) -> bool:
    return canonical_address(value) == canonical_address(ZERO_ADDRESS)


def bytes32_hex(value: bytes) -> str:
    if not isinstance(value, (bytes, bytearray)) or len(value) != 32:
        raise ValueError("value must be exactly 32 bytes")
    return "0x" + bytes(value).hex()
