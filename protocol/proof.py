"""Proof data structure and serialization."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from primitives.field import FF3, ff3, ff3_coeffs
from primitives.merkle_tree import MerkleRoot, QueryProof
from protocol.pcs import FriProof, FriQueryProof


# --- Proof Data Structure ---

@dataclass(frozen=True, eq=False)
class Proof:
    """Everything the verifier needs besides the computation and public values.

    Attributes:
        main_commit: Merkle root of the main trace LDE.
        aux_commit: Merkle root of the auxiliary trace LDE; None iff the
                    computation has no auxiliary columns.
        quotient_commits: One root per quotient chunk, in chunk order.
        main_local: Main trace columns opened at zeta (FF3, shape (width,)).
        main_next: Main trace columns opened at zeta * g.
        aux_local: Auxiliary columns opened at zeta, or None.
        aux_next: Auxiliary columns opened at zeta * g, or None.
        quotient_chunks: Each chunk opened at zeta (FF3, shape (1,)).
        opening_proof: Commitment scheme proof for all of the above openings.
        log_degree: log2 of the trace height.
    """
    main_commit: MerkleRoot
    aux_commit: Optional[MerkleRoot]
    quotient_commits: List[MerkleRoot]
    main_local: FF3
    main_next: FF3
    aux_local: Optional[FF3]
    aux_next: Optional[FF3]
    quotient_chunks: List[FF3]
    opening_proof: FriProof = field(default_factory=FriProof)
    log_degree: int = 0

    @property
    def degree(self) -> int:
        return 1 << self.log_degree


# --- JSON Serialization ---
# Field elements are written as decimal strings, extension elements as
# [c0, c1, c2] in ascending order.

def _ext_list(values: FF3) -> List[List[str]]:
    return [[str(c) for c in ff3_coeffs(v)] for v in values]


def _ext_array(data: List[List[Any]]) -> FF3:
    return FF3([int(ff3([int(c) for c in v])) for v in data])


def _root(data: List[Any]) -> MerkleRoot:
    return [int(x) for x in data]


def _query_to_dict(q: QueryProof) -> Dict[str, Any]:
    return {
        "v": [[str(x) for x in col] for col in q.v],
        "mp": [[str(x) for x in level] for level in q.mp],
    }


def _query_from_dict(data: Dict[str, Any]) -> QueryProof:
    return QueryProof(
        v=[[int(x) for x in col] for col in data["v"]],
        mp=[[int(x) for x in level] for level in data["mp"]],
    )


def proof_to_dict(proof: Proof) -> Dict[str, Any]:
    """Convert a proof to a JSON-serializable dictionary."""
    j: Dict[str, Any] = {
        "log_degree": proof.log_degree,
        "main_commit": [str(r) for r in proof.main_commit],
        "quotient_commits": [[str(r) for r in root] for root in proof.quotient_commits],
        "main_local": _ext_list(proof.main_local),
        "main_next": _ext_list(proof.main_next),
        "quotient_chunks": [_ext_list(chunk) for chunk in proof.quotient_chunks],
    }

    if proof.aux_commit is not None:
        j["aux_commit"] = [str(r) for r in proof.aux_commit]
        j["aux_local"] = _ext_list(proof.aux_local)
        j["aux_next"] = _ext_list(proof.aux_next)

    fri = proof.opening_proof
    j["fri"] = {
        "roots": [[str(r) for r in root] for root in fri.fri_roots],
        "final_value": [str(c) for c in ff3_coeffs(fri.final_value)],
        "queries": [
            {
                "inputs": [_query_to_dict(q) for q in qp.input_proofs],
                "rounds": [_query_to_dict(q) for q in qp.round_proofs],
            }
            for qp in fri.query_proofs
        ],
    }
    return j


def proof_from_dict(data: Dict[str, Any]) -> Proof:
    """Rebuild a proof from proof_to_dict output."""
    has_aux = "aux_commit" in data
    fri = data["fri"]
    opening_proof = FriProof(
        fri_roots=[_root(r) for r in fri["roots"]],
        final_value=ff3([int(c) for c in fri["final_value"]]),
        query_proofs=[
            FriQueryProof(
                input_proofs=[_query_from_dict(q) for q in qp["inputs"]],
                round_proofs=[_query_from_dict(q) for q in qp["rounds"]],
            )
            for qp in fri["queries"]
        ],
    )
    return Proof(
        main_commit=_root(data["main_commit"]),
        aux_commit=_root(data["aux_commit"]) if has_aux else None,
        quotient_commits=[_root(r) for r in data["quotient_commits"]],
        main_local=_ext_array(data["main_local"]),
        main_next=_ext_array(data["main_next"]),
        aux_local=_ext_array(data["aux_local"]) if has_aux else None,
        aux_next=_ext_array(data["aux_next"]) if has_aux else None,
        quotient_chunks=[_ext_array(c) for c in data["quotient_chunks"]],
        opening_proof=opening_proof,
        log_degree=int(data["log_degree"]),
    )


def proof_to_json(proof: Proof) -> str:
    return json.dumps(proof_to_dict(proof))


def proof_from_json(text: str) -> Proof:
    return proof_from_dict(json.loads(text))


def load_proof_from_json(path: str) -> Proof:
    """Load a proof written with proof_to_json."""
    with open(path) as f:
        return proof_from_dict(json.load(f))
