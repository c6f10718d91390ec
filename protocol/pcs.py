"""FRI Polynomial Commitment Scheme.

Matrices are committed by low-degree extending every column onto a shifted
coset and Merkle-committing the rows. An opening batches every claimed
evaluation f(z) = y into one DEEP polynomial

    F(x) = sum_k beta^k * (f_k(x) - y_k) / (x - z_k)

(ordered by batch, matrix, point, column) and proves with FRI that F is a
polynomial of degree below the trace height. F is only low-degree when every
claimed evaluation is correct.
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple

from primitives.domain import TwoAdicCoset, natural_domain_for_degree
from primitives.field import FF, FF3, SHIFT, batch_inverse, ff3, ff3_coeffs, is_canonical, to_ext
from primitives.merkle_tree import MerkleRoot, MerkleTree, QueryProof
from primitives.polynomial import evaluate_at, to_coefficients, to_evaluations
from primitives.transcript import Transcript
from protocol.fri import FRI, fri_round_domains

logger = logging.getLogger(__name__)

# --- Type Aliases ---

# opened[batch][matrix][point] -> FF3 row of column values
OpenedValues = List[List[List[FF3]]]


# --- Configuration ---

@dataclass
class FriPcsConfig:
    """FRI PCS parameters."""
    log_blowup: int = 1
    num_queries: int = 28
    merkle_arity: int = 4

    def __post_init__(self):
        if self.log_blowup < 1:
            raise ValueError(f"log_blowup must be at least 1, got {self.log_blowup}")
        if self.num_queries < 1:
            raise ValueError(f"num_queries must be positive, got {self.num_queries}")
        if self.merkle_arity not in (2, 3, 4):
            raise ValueError(f"merkle_arity must be 2, 3, or 4, got {self.merkle_arity}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FriPcsConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown FriPcsConfig fields: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --- Proof Data ---

@dataclass
class FriQueryProof:
    """Openings for one query: every committed batch, then every FRI round."""
    input_proofs: List[QueryProof] = field(default_factory=list)
    round_proofs: List[QueryProof] = field(default_factory=list)


@dataclass
class FriProof:
    """FRI proof: round roots, final constant, and query proofs."""
    fri_roots: List[MerkleRoot] = field(default_factory=list)
    final_value: FF3 = field(default_factory=lambda: FF3(0))
    query_proofs: List[FriQueryProof] = field(default_factory=list)


@dataclass
class CommittedData:
    """Prover-side data for one commitment. Written once by commit, then read-only."""
    domains: List[TwoAdicCoset]
    coefficients: list
    ldes: list
    tree: MerkleTree
    lde_domain: TwoAdicCoset

    @property
    def widths(self) -> List[int]:
        return [c.shape[1] for c in self.coefficients]


# --- FRI PCS ---

class FriPcs:
    """FRI Polynomial Commitment Scheme."""

    def __init__(self, config: Optional[FriPcsConfig] = None):
        self.config = config if config is not None else FriPcsConfig()

    def natural_domain_for_degree(self, degree: int) -> TwoAdicCoset:
        return natural_domain_for_degree(degree)

    def lde_domain_for(self, domain: TwoAdicCoset) -> TwoAdicCoset:
        return TwoAdicCoset(domain.log_n + self.config.log_blowup, int(SHIFT))

    # --- Commit ---

    def commit(self, evaluations: Sequence[Tuple[TwoAdicCoset, Any]]) -> Tuple[MerkleRoot, CommittedData]:
        """Commit to matrices given by their values over the listed domains.

        All matrices in one commitment must share a height and a field.

        Returns:
            (Merkle root, prover data for later evaluation and opening)
        """
        if not evaluations:
            raise ValueError("Nothing to commit")

        domains, coefficients, ldes = [], [], []
        lde_domain = None
        is_ext = isinstance(evaluations[0][1], FF3)

        for domain, matrix in evaluations:
            if not isinstance(matrix, FF3):
                matrix = FF(matrix)
            if isinstance(matrix, FF3) != is_ext:
                raise ValueError("All matrices in one commitment must share a field")
            if matrix.ndim != 2 or matrix.shape[0] != domain.size:
                raise ValueError(
                    f"Matrix of shape {matrix.shape} does not match a domain of size {domain.size}"
                )
            this_lde = self.lde_domain_for(domain)
            if lde_domain is not None and this_lde.log_n != lde_domain.log_n:
                raise ValueError("All matrices in one commitment must share a height")
            lde_domain = this_lde

            coeffs = to_coefficients(matrix, domain)
            domains.append(domain)
            coefficients.append(coeffs)
            ldes.append(to_evaluations(coeffs, lde_domain))

        tree = MerkleTree(self.config.merkle_arity)
        source = []
        elem_size = 3 if is_ext else 1
        for i in range(lde_domain.size):
            for lde in ldes:
                source.extend(_row_limbs(lde[i]))
        n_cols = sum(c.shape[1] for c in coefficients)
        tree.merkelize(source, lde_domain.size, n_cols * elem_size, n_cols)
        tree.elem_size = elem_size

        logger.debug(
            "Committed %d matrices, %d columns, LDE size %d", len(ldes), n_cols, lde_domain.size
        )
        return tree.get_root(), CommittedData(domains, coefficients, ldes, tree, lde_domain)

    def get_evaluations_on_domain(self, data: CommittedData, index: int, domain: TwoAdicCoset):
        """Values of committed matrix `index` over any two-adic coset at least as large."""
        return to_evaluations(data.coefficients[index], domain)

    # --- Open ---

    def open(
        self,
        rounds: Sequence[Tuple[CommittedData, Sequence[Sequence[FF3]]]],
        transcript: Transcript,
    ) -> Tuple[OpenedValues, FriProof]:
        """Evaluate committed matrices at points and prove the evaluations.

        Args:
            rounds: (prover data, points per matrix) for each commitment
            transcript: Shared transcript; opened values are observed into it

        Returns:
            (opened[batch][matrix][point], FRI proof)
        """
        cfg = self.config
        opened: OpenedValues = []
        for data, points_per_matrix in rounds:
            batch = []
            for coeffs, points in zip(data.coefficients, points_per_matrix):
                values = [evaluate_at(coeffs, z) for z in points]
                for v in values:
                    transcript.observe(v)
                batch.append(values)
            opened.append(batch)

        beta = transcript.sample()

        lde_domain = rounds[0][0].lde_domain
        degree_domain = rounds[0][0].domains[0]
        for data, _ in rounds:
            if data.lde_domain.log_n != lde_domain.log_n:
                raise ValueError("All opened matrices must share a height")

        # --- DEEP polynomial over the LDE domain ---
        xs = to_ext(lde_domain.elements())
        inverses: Dict[Tuple[int, ...], FF3] = {}
        deep = FF3.Zeros(lde_domain.size)
        beta_pow = FF3(1)
        for (data, points_per_matrix), batch in zip(rounds, opened):
            for lde, points, values in zip(data.ldes, points_per_matrix, batch):
                lde_ext = to_ext(lde)
                for z, y in zip(points, values):
                    key = tuple(ff3_coeffs(z))
                    if key not in inverses:
                        inverses[key] = batch_inverse(xs - z)
                    inv = inverses[key]
                    for c in range(lde_ext.shape[1]):
                        deep = deep + beta_pow * (lde_ext[:, c] - y[c]) * inv
                        beta_pow = beta_pow * beta

        # --- Commit-Fold Loop ---
        n_rounds = degree_domain.log_n
        fri_roots: List[MerkleRoot] = []
        fri_trees: List[MerkleTree] = []
        values, domain = deep, lde_domain
        for _ in range(n_rounds):
            tree = MerkleTree(cfg.merkle_arity)
            root = FRI.merkelize(values, tree)
            fri_roots.append(root)
            fri_trees.append(tree)
            transcript.observe_commitment(root)
            gamma = transcript.sample()
            values, domain = FRI.fold(values, domain, gamma)

        final_value = values[0]
        transcript.observe(final_value)

        # --- Query Phase ---
        query_indices = transcript.get_permutations(cfg.num_queries, lde_domain.log_n)
        round_domains = fri_round_domains(lde_domain, n_rounds)
        query_proofs = []
        for idx in query_indices:
            input_proofs = [data.tree.get_query_proof(idx) for data, _ in rounds]
            round_proofs = []
            for r in range(n_rounds):
                leaf, _ = FRI.query_position(idx, round_domains[r].size)
                round_proofs.append(fri_trees[r].get_query_proof(leaf))
            query_proofs.append(FriQueryProof(input_proofs, round_proofs))

        logger.debug("Opened %d commitments with %d FRI rounds", len(rounds), n_rounds)
        return opened, FriProof(fri_roots, final_value, query_proofs)

    # --- Verify ---

    def verify(
        self,
        rounds: Sequence[Tuple[MerkleRoot, int, Sequence[Tuple[TwoAdicCoset, Sequence[Tuple[FF3, FF3]]]]]],
        proof: FriProof,
        transcript: Transcript,
    ) -> bool:
        """Check claimed evaluations against commitments.

        Args:
            rounds: (root, limbs per committed element, [(domain, [(point, values)])
                per matrix]) per commitment; 1 limb for base field matrices, 3 for FF3
            proof: Opening proof produced by open
            transcript: Transcript in the same state the prover's was before open

        Returns:
            True if every Merkle path, fold and the final value check out
        """
        cfg = self.config
        for _, _, matrices in rounds:
            for _, claims in matrices:
                for _, values in claims:
                    transcript.observe(values)
        beta = transcript.sample()

        degree_domain = rounds[0][2][0][0]
        if any(d.log_n != degree_domain.log_n for _, _, mats in rounds for d, _ in mats):
            logger.warning("ERROR: Opened matrices have different heights")
            return False
        lde_domain = self.lde_domain_for(degree_domain)
        n_rounds = degree_domain.log_n

        if len(proof.fri_roots) != n_rounds:
            logger.warning("ERROR: Expected %d FRI roots, got %d", n_rounds, len(proof.fri_roots))
            return False
        gammas = []
        for root in proof.fri_roots:
            transcript.observe_commitment(root)
            gammas.append(transcript.sample())
        transcript.observe(proof.final_value)

        query_indices = transcript.get_permutations(cfg.num_queries, lde_domain.log_n)
        if len(proof.query_proofs) != len(query_indices):
            logger.warning("ERROR: Expected %d query proofs, got %d",
                           len(query_indices), len(proof.query_proofs))
            return False

        round_domains = fri_round_domains(lde_domain, n_rounds)
        tree = MerkleTree(cfg.merkle_arity)
        for q, (idx, qp) in enumerate(zip(query_indices, proof.query_proofs)):
            if len(qp.input_proofs) != len(rounds) or len(qp.round_proofs) != n_rounds:
                logger.warning("ERROR: Query %d has the wrong number of openings", q)
                return False

            deep = self._deep_at_query(rounds, qp.input_proofs, idx, lde_domain, beta, tree)
            if deep is None:
                logger.warning("ERROR: Query %d input opening rejected", q)
                return False

            running = deep
            for r in range(n_rounds):
                leaf, slot = FRI.query_position(idx, round_domains[r].size)
                rp = qp.round_proofs[r]
                if not tree.verify_query_proof(proof.fri_roots[r], rp, leaf, round_domains[r].size // 2):
                    logger.warning("ERROR: Query %d FRI round %d Merkle path rejected", q, r)
                    return False
                ok, running = FRI.verify_fold(rp, running, slot, round_domains[r], leaf, gammas[r])
                if not ok:
                    logger.warning("ERROR: Query %d FRI round %d fold mismatch", q, r)
                    return False

            if running != proof.final_value:
                logger.warning("ERROR: Query %d does not reach the final value", q)
                return False

        return True

    def _deep_at_query(self, rounds, input_proofs, idx, lde_domain, beta, tree) -> Optional[FF3]:
        """Recompute the DEEP polynomial at LDE point idx from opened rows."""
        x = to_ext(FF(lde_domain.shift) * lde_domain.generator ** idx)
        inverses: Dict[Tuple[int, ...], FF3] = {}
        acc = FF3(0)
        beta_pow = FF3(1)
        for (root, elem_size, matrices), ip in zip(rounds, input_proofs):
            if not tree.verify_query_proof(root, ip, idx, lde_domain.size):
                return None
            widths = [len(claims[0][1]) if claims else 0 for _, claims in matrices]
            if len(ip.v) != sum(widths):
                return None
            row = _parse_row(ip.v, elem_size)
            if row is None:
                return None
            offset = 0
            for (_, claims), w in zip(matrices, widths):
                for z, values in claims:
                    if len(values) != w:
                        return None
                    key = tuple(ff3_coeffs(z))
                    if key not in inverses:
                        inverses[key] = (x - z) ** -1
                    inv = inverses[key]
                    for c in range(w):
                        acc = acc + beta_pow * (row[offset + c] - values[c]) * inv
                        beta_pow = beta_pow * beta
                offset += w
        return acc


# --- Helpers ---

def _row_limbs(row) -> List[int]:
    if isinstance(row, FF3):
        out = []
        for v in row:
            out.extend(ff3_coeffs(v))
        return out
    return [int(v) for v in row]


def _parse_row(columns: List[List[int]], elem_size: int) -> Optional[List[FF3]]:
    """Opened leaf columns as FF3 values, or None unless every column holds
    exactly elem_size canonical limbs.

    The leaf hash reduces limbs and zero-pads short leaves, so neither the limb
    range nor the column split is bound by the Merkle path alone.
    """
    row = []
    for col in columns:
        if len(col) != elem_size or not is_canonical(col):
            return None
        row.append(FF3(col[0]) if elem_size == 1 else ff3(col))
    return row
