"""Errors raised by the prover and results returned by the verifier.

Pairing mistakes between a computation and its trace are raised as
exceptions. Anything a verifier can learn about an untrusted proof is
returned as a VerificationError value instead.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class StarkError(Exception):
    """Base class for fatal proving errors."""


class TraceShapeError(StarkError, ValueError):
    """A trace does not have the width or height its computation declares."""


class UnsupportedConfigurationError(StarkError):
    """A window size, domain or parameter the protocol does not support."""


class ConstraintViolation(StarkError):
    """An assertion evaluated to non-zero on a trace row."""

    def __init__(self, constraint_index: int, row: int):
        self.constraint_index = constraint_index
        self.row = row
        super().__init__(f"constraint {constraint_index} is not satisfied at row {row}")


class VerificationErrorKind(enum.Enum):
    INVALID_PROOF = "invalid_proof"
    CONSTRAINT_VERIFICATION_FAILED = "constraint_verification_failed"
    PCS_VERIFICATION_FAILED = "pcs_verification_failed"


@dataclass(frozen=True)
class VerificationError:
    """Why a proof was rejected."""
    kind: VerificationErrorKind
    reason: Optional[str] = None

    def __str__(self) -> str:
        if self.reason:
            return f"{self.kind.value}: {self.reason}"
        return self.kind.value


def InvalidProof(reason: str) -> VerificationError:
    return VerificationError(VerificationErrorKind.INVALID_PROOF, reason)


def ConstraintVerificationFailed() -> VerificationError:
    return VerificationError(VerificationErrorKind.CONSTRAINT_VERIFICATION_FAILED)


def PcsVerificationFailed(reason: Optional[str] = None) -> VerificationError:
    return VerificationError(VerificationErrorKind.PCS_VERIFICATION_FAILED, reason)
