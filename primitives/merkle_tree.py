"""Merkle tree commitment over Goldilocks rows.

Leaves are rows of limbs hashed with linear_hash; each parent hashes `arity`
children, the last group of a level padded with zero digests. Openings carry
the row split into columns of elem_size limbs plus, per level, the digests of
the other children in the queried group.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from primitives.hashing import CAPACITY, hash_seq, linear_hash

# --- Constants ---

HASH_SIZE = CAPACITY

# --- Type Aliases ---

MerkleRoot = List[int]
LeafData = List[int]
Digest = List[int]

_ZERO_DIGEST: Digest = [0] * HASH_SIZE


# --- Data Classes ---

@dataclass
class QueryProof:
    """Opened row and its authentication path.

    Attributes:
        v: Row values as columns of limbs; [[x], ...] for base field rows,
           [[c0, c1, c2], ...] (ascending) for extension rows
        mp: Sibling digests per level from leaf to root, (arity - 1) * HASH_SIZE each
    """
    v: List[List[int]] = field(default_factory=list)
    mp: List[List[int]] = field(default_factory=list)

    def leaf(self) -> LeafData:
        return [x for col in self.v for x in col]


# --- Merkle Tree ---

class MerkleTree:
    """Variable-arity Merkle tree over rows of field elements."""

    def __init__(self, arity: int = 4):
        if arity not in (2, 3, 4):
            raise ValueError(f"arity must be 2, 3, or 4, got {arity}")
        self.arity = arity
        self.sponge_width = HASH_SIZE * arity

        self.rows: List[LeafData] = []
        self.levels: List[List[Digest]] = []
        self.n_cols = 0
        self.elem_size = 1

    @property
    def height(self) -> int:
        return len(self.rows)

    def merkelize(self, source: LeafData, height: int, width: int, n_cols: int = 0) -> None:
        """Build the tree from row-major limbs.

        Args:
            source: height * width limbs
            height: Number of leaves
            width: Limbs per leaf (n_cols * elem_size)
            n_cols: Columns per row, used to split opened rows
        """
        if len(source) != height * width:
            raise ValueError(f"Expected {height * width} limbs, got {len(source)}")
        self.rows = [[int(x) for x in source[i * width:(i + 1) * width]] for i in range(height)]
        self.n_cols = n_cols if n_cols > 0 else width

        level = [linear_hash(row, self.sponge_width) for row in self.rows]
        self.levels = [level]
        while len(level) > 1:
            level = [
                self._hash_group(level[i:i + self.arity])
                for i in range(0, len(level), self.arity)
            ]
            self.levels.append(level)

    def get_root(self) -> MerkleRoot:
        if not self.levels or not self.levels[-1]:
            return list(_ZERO_DIGEST)
        return list(self.levels[-1][0])

    def get_query_proof(self, idx: int) -> QueryProof:
        """Opened row idx with its authentication path."""
        if idx < 0 or idx >= self.height:
            raise ValueError(f"Query index {idx} out of range [0, {self.height})")

        row = self.rows[idx]
        size = self.elem_size
        v = [row[c * size:(c + 1) * size] for c in range(self.n_cols)]

        mp = []
        for level in self.levels[:-1]:
            start = idx - idx % self.arity
            siblings: List[int] = []
            for j in range(start, start + self.arity):
                if j != idx:
                    siblings.extend(level[j] if j < len(level) else _ZERO_DIGEST)
            mp.append(siblings)
            idx //= self.arity
        return QueryProof(v=v, mp=mp)

    def verify_query_proof(self, root: MerkleRoot, query: QueryProof, idx: int, height: int) -> bool:
        """Check an opening of row idx against root for a tree of the given height."""
        if not 0 <= idx < height or len(query.mp) != self.get_merkle_proof_length(height):
            return False

        digest = linear_hash([int(x) for x in query.leaf()], self.sponge_width)
        for siblings in query.mp:
            if len(siblings) != (self.arity - 1) * HASH_SIZE:
                return False
            group = [[int(x) for x in siblings[k:k + HASH_SIZE]]
                     for k in range(0, len(siblings), HASH_SIZE)]
            group.insert(idx % self.arity, digest)
            digest = self._hash_group(group)
            idx //= self.arity
        return digest == [int(x) for x in root]

    def get_merkle_proof_length(self, height: Optional[int] = None) -> int:
        """Number of levels in an authentication path."""
        if height is None:
            height = self.height
        levels = 0
        while height > 1:
            height = (height + self.arity - 1) // self.arity
            levels += 1
        return levels

    def _hash_group(self, children: List[Digest]) -> Digest:
        padded = list(children) + [_ZERO_DIGEST] * (self.arity - len(children))
        return hash_seq([x for child in padded for x in child], self.sponge_width)
