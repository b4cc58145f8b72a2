"""
State management for the solver trampoline
"""

from .canonical import UINT256_MAX, ZERO_ADDRESS, canonical_address
from .sequences import SequenceTable

__all__ = [
    "UINT256_MAX",
    "ZERO_ADDRESS",
    "canonical_address",
    "SequenceTable",
]
