"""Protocol - Core STARK protocol algorithms.

prove and verify live in protocol.prover and protocol.verifier; they depend on
the air package, which in turn depends on the modules exported here.
"""

from protocol.config import StarkConfig
from protocol.errors import (
    ConstraintVerificationFailed,
    ConstraintViolation,
    InvalidProof,
    PcsVerificationFailed,
    StarkError,
    TraceShapeError,
    UnsupportedConfigurationError,
    VerificationError,
    VerificationErrorKind,
)
from protocol.fri import FRI
from protocol.pcs import FriPcs, FriPcsConfig, FriProof, FriQueryProof
from protocol.proof import (
    Proof,
    proof_from_dict,
    proof_from_json,
    proof_to_dict,
    proof_to_json,
)

__all__ = [
    # Configuration
    "StarkConfig",
    # FRI PCS
    "FRI",
    "FriPcs",
    "FriPcsConfig",
    "FriProof",
    "FriQueryProof",
    # Proof
    "Proof",
    "proof_to_dict",
    "proof_from_dict",
    "proof_to_json",
    "proof_from_json",
    # Errors
    "StarkError",
    "TraceShapeError",
    "UnsupportedConfigurationError",
    "ConstraintViolation",
    "VerificationError",
    "VerificationErrorKind",
    "InvalidProof",
    "ConstraintVerificationFailed",
    "PcsVerificationFailed",
]
