"""Primitives - Low-level cryptographic and mathematical building blocks."""

from primitives.domain import (
    LagrangeSelectors,
    TwoAdicCoset,
    natural_domain_for_degree,
)
from primitives.field import (
    FF,
    FF3,
    GOLDILOCKS_PRIME,
    SHIFT,
    batch_inverse,
    ff3,
    ff3_coeffs,
    get_omega,
    get_omega_inv,
    to_ext,
)
from primitives.merkle_tree import (
    HASH_SIZE,
    LeafData,
    MerkleRoot,
    MerkleTree,
    QueryProof,
)
from primitives.ntt import NTT
from primitives.transcript import (
    Challenge,
    Hash,
    Transcript,
)

__all__ = [
    # Field
    "FF",
    "FF3",
    "ff3",
    "ff3_coeffs",
    "to_ext",
    "batch_inverse",
    "GOLDILOCKS_PRIME",
    "SHIFT",
    "get_omega",
    "get_omega_inv",
    # NTT
    "NTT",
    # Domains
    "TwoAdicCoset",
    "LagrangeSelectors",
    "natural_domain_for_degree",
    # Merkle Tree
    "MerkleTree",
    "MerkleRoot",
    "QueryProof",
    "LeafData",
    "HASH_SIZE",
    # Transcript
    "Transcript",
    "Hash",
    "Challenge",
]
