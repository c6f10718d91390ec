"""STARK proof verification.

The verifier checks that a proof demonstrates knowledge of a main trace (and,
for computations that declare one, an auxiliary trace derived from transcript
challenges) satisfying the computation's constraints.

Verification consists of four phases:
1. Structural checks - the proof has exactly the artifacts the computation implies
2. Fiat-Shamir transcript reconstruction - re-derive challenges in prover order
3. Evaluation check - C(zeta) == Z(zeta) * Q(zeta), Q rebuilt from its chunks
4. Opening check - the commitment scheme confirms every opened value

The verifier is non-interactive: all randomness comes from hashing proof elements.
"""

import logging
from typing import List, Optional, Sequence

from air.base import MultiTraceAir, TraceWindow
from air.folder import VerifierFolder
from primitives.field import FF3, FIELD_EXTENSION_DEGREE, GOLDILOCKS_PRIME, TWO_ADICITY
from primitives.merkle_tree import HASH_SIZE
from protocol.config import StarkConfig
from protocol.errors import (
    ConstraintVerificationFailed,
    InvalidProof,
    PcsVerificationFailed,
    UnsupportedConfigurationError,
    VerificationError,
)
from protocol.proof import Proof

logger = logging.getLogger(__name__)


def verify(
    config: StarkConfig,
    air: MultiTraceAir,
    proof: Proof,
    public_values: Sequence = (),
) -> Optional[VerificationError]:
    """Verify a proof.

    Args:
        config: Protocol configuration the proof was produced with
        air: Computation the proof claims to satisfy
        proof: Untrusted proof
        public_values: Base field values the prover bound into the transcript

    Returns:
        None if the proof is accepted, otherwise the reason it was rejected
    """
    # --- Structural checks ---
    structural = _check_structure(config, air, proof)
    if structural is not None:
        logger.warning("ERROR: %s", structural)
        return structural

    pcs = config.pcs
    transcript = config.challenger()
    publics = [int(v) % GOLDILOCKS_PRIME for v in public_values]
    trace_domain = pcs.natural_domain_for_degree(proof.degree)

    # --- Reconstruct transcript ---
    transcript.observe_commitment(proof.main_commit)
    transcript.observe_slice(publics)

    challenges: List[FF3] = []
    if proof.aux_commit is not None:
        challenges = transcript.sample_vec(air.num_challenges())
        transcript.observe_commitment(proof.aux_commit)

    alpha = transcript.sample()

    for commit in proof.quotient_commits:
        transcript.observe_commitment(commit)

    zeta = transcript.sample()
    zeta_next = trace_domain.next_point(zeta)
    if zeta_next is None:
        raise UnsupportedConfigurationError("trace domain has no next-point map")

    # --- Evaluation check ---
    logger.info("Verifying evaluations")
    selectors = trace_domain.selectors_at_point(zeta)
    main = TraceWindow(list(proof.main_local), list(proof.main_next))
    aux = None
    if proof.aux_commit is not None:
        aux = TraceWindow(list(proof.aux_local), list(proof.aux_next))
    folder = VerifierFolder(
        main, aux, selectors, alpha, challenges, [FF3(v) for v in publics]
    )
    air.eval(folder)
    constraints_at_zeta = folder.accumulator

    # Q(x) = sum_i x^(i*n) * Q_i(x), n = per-chunk domain size
    zeta_pow_n = zeta ** trace_domain.size
    quotient_at_zeta = FF3(0)
    weight = FF3(1)
    for chunk in proof.quotient_chunks:
        quotient_at_zeta = quotient_at_zeta + weight * chunk[0]
        weight = weight * zeta_pow_n

    vanishing = trace_domain.vanishing_at_point(zeta)
    if constraints_at_zeta != vanishing * quotient_at_zeta:
        logger.warning("ERROR: Invalid evaluations")
        return ConstraintVerificationFailed()

    # --- Opening check ---
    logger.info("Verifying opening proof")
    # Main rows open as one limb per column, aux and quotient rows as three
    rounds = [(proof.main_commit, 1, [(trace_domain, [(zeta, proof.main_local), (zeta_next, proof.main_next)])])]
    if proof.aux_commit is not None:
        rounds.append(
            (proof.aux_commit, FIELD_EXTENSION_DEGREE,
             [(trace_domain, [(zeta, proof.aux_local), (zeta_next, proof.aux_next)])])
        )
    for commit, chunk in zip(proof.quotient_commits, proof.quotient_chunks):
        rounds.append((commit, FIELD_EXTENSION_DEGREE, [(trace_domain, [(zeta, chunk)])]))

    if not pcs.verify(rounds, proof.opening_proof, transcript):
        logger.warning("ERROR: Opening proof verification failed")
        return PcsVerificationFailed("opening proof rejected")

    return None


def _check_structure(config: StarkConfig, air: MultiTraceAir, proof: Proof) -> Optional[VerificationError]:
    """Shape checks that need neither the transcript nor field arithmetic."""
    has_aux = air.aux_width() > 0
    if has_aux and proof.aux_commit is None:
        return InvalidProof("computation has an auxiliary trace but the proof has no aux commitment")
    if not has_aux and proof.aux_commit is not None:
        return InvalidProof("computation has no auxiliary trace but the proof has an aux commitment")

    max_log_degree = TWO_ADICITY - max(config.pcs.config.log_blowup, config.log_quotient_degree)
    if not 0 <= proof.log_degree <= max_log_degree:
        return InvalidProof(f"log_degree {proof.log_degree} out of range")

    for name, root in _commitments(proof):
        if len(root) != HASH_SIZE:
            return InvalidProof(f"{name} commitment has {len(root)} elements, expected {HASH_SIZE}")

    if not _ext_row(proof.main_local, air.width()) or not _ext_row(proof.main_next, air.width()):
        return InvalidProof(f"opened main values must be {air.width()} extension elements")
    if has_aux:
        if not _ext_row(proof.aux_local, air.aux_width()) or not _ext_row(proof.aux_next, air.aux_width()):
            return InvalidProof(f"opened aux values must be {air.aux_width()} extension elements")
    elif proof.aux_local is not None or proof.aux_next is not None:
        return InvalidProof("proof carries aux values without an aux commitment")

    quotient_degree = config.quotient_degree
    if len(proof.quotient_commits) != quotient_degree:
        return InvalidProof(
            f"expected {quotient_degree} quotient commitments, got {len(proof.quotient_commits)}"
        )
    if len(proof.quotient_chunks) != quotient_degree:
        return InvalidProof(
            f"expected {quotient_degree} quotient chunk values, got {len(proof.quotient_chunks)}"
        )
    if not all(_ext_row(chunk, 1) for chunk in proof.quotient_chunks):
        return InvalidProof("each quotient chunk must open to one extension element")

    return None


def _commitments(proof: Proof):
    yield "main", proof.main_commit
    if proof.aux_commit is not None:
        yield "aux", proof.aux_commit
    for i, root in enumerate(proof.quotient_commits):
        yield f"quotient chunk {i}", root


def _ext_row(values, width: int) -> bool:
    return isinstance(values, FF3) and values.ndim == 1 and values.shape[0] == width
