"""FRI folding protocol.

Each round halves the evaluation domain. For values f on the coset
s * <w> of size N, points x_g and x_{g + N/2} = -x_g fold into

    f'(x_g^2) = (f(x_g) + f(-x_g)) / 2 + gamma * (f(x_g) - f(-x_g)) / (2 x_g)

on the coset s^2 * <w^2>. Round trees commit leaf g = [f[g], f[g + N/2]] so a
single opening serves both halves of a fold.
"""

from typing import List, Tuple

from primitives.domain import TwoAdicCoset
from primitives.field import FF, FF3, ff3, ff3_coeffs, is_canonical, to_ext
from primitives.merkle_tree import MerkleRoot, MerkleTree, QueryProof

_TWO_INV = FF(2) ** -1


class FRI:
    """FRI protocol: folding, commitment, and verification."""

    @staticmethod
    def fold(values: FF3, domain: TwoAdicCoset, challenge: FF3) -> Tuple[FF3, TwoAdicCoset]:
        """Fold evaluations over domain by 2 with challenge.

        Returns:
            (folded values, folded domain)
        """
        half = domain.size // 2
        lo = values[:half]
        hi = values[half:]
        xs = domain.elements()[:half]
        inv_two_x = to_ext((xs * FF(2)) ** -1)
        folded = (lo + hi) * to_ext(_TWO_INV) + challenge * (lo - hi) * inv_two_x
        next_domain = TwoAdicCoset(domain.log_n - 1, int(FF(domain.shift) ** 2))
        return folded, next_domain

    @staticmethod
    def fold_pair(lo: FF3, hi: FF3, x: FF, challenge: FF3) -> FF3:
        """Fold one (f(x), f(-x)) pair; scalar version of fold."""
        inv_two_x = to_ext((FF(x) * FF(2)) ** -1)
        return (lo + hi) * to_ext(_TWO_INV) + challenge * (lo - hi) * inv_two_x

    @staticmethod
    def merkelize(values: FF3, tree: MerkleTree) -> MerkleRoot:
        """Commit to a round: leaf g holds [values[g], values[g + N/2]]."""
        half = len(values) // 2
        source = []
        for g in range(half):
            source.extend(ff3_coeffs(values[g]))
            source.extend(ff3_coeffs(values[g + half]))
        tree.merkelize(source, half, 6, n_cols=2)
        tree.elem_size = 3
        return tree.get_root()

    @staticmethod
    def query_position(idx: int, domain_size: int) -> Tuple[int, int]:
        """Leaf index and slot (0 = low half, 1 = high half) of idx in a round."""
        half = domain_size // 2
        idx %= domain_size
        return idx % half, int(idx >= half)

    @staticmethod
    def verify_fold(
        query: QueryProof,
        expected: FF3,
        slot: int,
        domain: TwoAdicCoset,
        leaf_index: int,
        challenge: FF3,
    ) -> Tuple[bool, FF3]:
        """Check the opened pair against the running value and fold it.

        Returns:
            (whether the pair is canonical and expected sits in the given slot,
             folded value)
        """
        if len(query.v) != 2 or any(len(c) != 3 or not is_canonical(c) for c in query.v):
            return False, FF3(0)
        lo = ff3(query.v[0])
        hi = ff3(query.v[1])
        opened = lo if slot == 0 else hi
        if opened != expected:
            return False, FF3(0)
        x = FF(domain.shift) * domain.generator ** leaf_index
        return True, FRI.fold_pair(lo, hi, x, challenge)


def fri_round_domains(lde_domain: TwoAdicCoset, n_rounds: int) -> List[TwoAdicCoset]:
    """Domains of every FRI round, starting with the LDE domain."""
    domains = [lde_domain]
    for _ in range(n_rounds):
        d = domains[-1]
        domains.append(TwoAdicCoset(d.log_n - 1, int(FF(d.shift) ** 2)))
    return domains
