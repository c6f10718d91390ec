"""Sponge hashing over Goldilocks elements.

The permutation is SHAKE-256 keyed by the sponge width: the state is
serialized as little-endian 64-bit limbs and the XOF output is reduced into
the field, 16 bytes per element. linear_hash and hash_seq keep the usual
Goldilocks sponge shape (rate = width - CAPACITY, CAPACITY output elements)
so the Merkle tree and transcript do not depend on which permutation backs
them.
"""

import hashlib
from typing import List

from primitives.field import GOLDILOCKS_PRIME

CAPACITY = 4
SUPPORTED_WIDTHS = (4, 8, 12, 16)

_DOMAIN_TAG = b"multi-trace-stark/permutation/v1"


def permute(input_data: List[int], width: int = 12) -> List[int]:
    """Apply the width-element permutation to a full sponge state.

    Args:
        input_data: Exactly `width` field elements (as integers)
        width: Sponge width (4, 8, 12, or 16)

    Returns:
        List of `width` field elements
    """
    if width not in SUPPORTED_WIDTHS:
        raise ValueError(f"width must be 4, 8, 12, or 16, got {width}")
    if len(input_data) != width:
        raise ValueError(f"expected {width} elements, got {len(input_data)}")

    h = hashlib.shake_256(_DOMAIN_TAG)
    h.update(width.to_bytes(1, "little"))
    for x in input_data:
        h.update((int(x) % GOLDILOCKS_PRIME).to_bytes(8, "little"))
    digest = h.digest(16 * width)
    return [
        int.from_bytes(digest[16 * i:16 * (i + 1)], "little") % GOLDILOCKS_PRIME
        for i in range(width)
    ]


def linear_hash(input_data: List[int], width: int = 8) -> List[int]:
    """Hash variable-length input using sponge construction.

    Absorbs chunks of size (width - CAPACITY) and squeezes CAPACITY elements.
    Inputs no longer than CAPACITY are returned zero-padded without hashing.
    """
    if width not in SUPPORTED_WIDTHS:
        raise ValueError(f"width must be 4, 8, 12, or 16, got {width}")

    rate = width - CAPACITY
    size = len(input_data)

    if size <= CAPACITY:
        return [int(x) % GOLDILOCKS_PRIME for x in input_data] + [0] * (CAPACITY - size)

    state = [0] * width
    remaining = size

    while remaining > 0:
        if remaining != size:
            # Chain the previous output into the capacity part
            for i in range(CAPACITY):
                state[rate + i] = state[i]

        n = min(remaining, rate)
        offset = size - remaining

        for i in range(rate):
            state[i] = 0
        for i in range(n):
            state[i] = int(input_data[offset + i])

        state = permute(state, width)
        remaining -= n

    return state[:CAPACITY]


def hash_seq(input_data: List[int], width: int = 12) -> List[int]:
    """Permute a full state and keep the first CAPACITY elements."""
    return permute(input_data, width)[:CAPACITY]
