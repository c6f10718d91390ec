"""Two-adic evaluation domains and Lagrange selectors.

A TwoAdicCoset is the set shift * <omega_n> for n = 2^log_n. The trace domain
is the plain subgroup (shift 1); quotient and LDE domains are shifted by the
field generator so they never meet the trace domain.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from primitives.field import FF, FF3, SHIFT, get_omega, to_ext


@dataclass
class LagrangeSelectors:
    """Selector values over a coset (FF arrays) or at one point (FF3 scalars).

    With Z(x) = x^n - 1 and g the trace generator:
        is_first_row  = Z(x) / (x - 1)
        is_last_row   = Z(x) / (x - g^-1)
        is_transition = x - g^-1          (zero for a single-row trace)
        inv_vanishing = 1 / Z(x)
    """
    is_first_row: Union[FF, FF3]
    is_last_row: Union[FF, FF3]
    is_transition: Union[FF, FF3]
    inv_vanishing: Union[FF, FF3]


@dataclass(frozen=True)
class TwoAdicCoset:
    """The coset shift * <omega_{2^log_n}>."""
    log_n: int
    shift: int = 1

    @property
    def size(self) -> int:
        return 1 << self.log_n

    @property
    def generator(self) -> FF:
        return get_omega(self.log_n)

    def elements(self) -> FF:
        """All domain points in natural order: shift * g^i."""
        g = self.generator
        out = FF.Ones(self.size) * FF(self.shift)
        for i in range(1, self.size):
            out[i] = out[i - 1] * g
        return out

    def next_point(self, x: FF3) -> Optional[FF3]:
        """The point one trace row after x."""
        return x * to_ext(self.generator)

    def vanishing_at_point(self, x: FF3) -> FF3:
        """Z(x) = (x / shift)^n - 1."""
        unshifted = x * to_ext(FF(self.shift) ** -1)
        return unshifted ** self.size - FF3(1)

    def create_disjoint_domain(self, min_size: int) -> "TwoAdicCoset":
        """A coset of at least min_size points that avoids this domain."""
        log_size = max(min_size - 1, 0).bit_length()
        return TwoAdicCoset(log_size, int(FF(self.shift) * SHIFT))

    def split_domains(self, num_chunks: int) -> List["TwoAdicCoset"]:
        """Partition into num_chunks cosets of size n / num_chunks.

        Sub-domain i is shift * g^i * <g^num_chunks>, matching split_evals.
        """
        log_chunks = _exact_log2(num_chunks)
        if log_chunks > self.log_n:
            raise ValueError(f"Cannot split {self.size} points into {num_chunks} chunks")
        g = self.generator
        return [
            TwoAdicCoset(self.log_n - log_chunks, int(FF(self.shift) * g ** i))
            for i in range(num_chunks)
        ]

    def split_evals(self, num_chunks: int, evals):
        """Rows of evals belonging to each of split_domains(num_chunks)."""
        return [evals[i::num_chunks] for i in range(num_chunks)]

    def selectors_on_coset(self, coset: "TwoAdicCoset") -> LagrangeSelectors:
        """Selectors of this (trace) domain at every point of coset."""
        shift_inv = FF(self.shift) ** -1
        xs = coset.elements() * shift_inv
        g_inv = self.generator ** -1
        z_h = xs ** self.size - FF(1)
        if self.log_n == 0:
            is_transition = FF.Zeros(coset.size)
        else:
            is_transition = xs - g_inv
        return LagrangeSelectors(
            is_first_row=z_h / (xs - FF(1)),
            is_last_row=z_h / (xs - g_inv),
            is_transition=is_transition,
            inv_vanishing=z_h ** -1,
        )

    def selectors_at_point(self, point: FF3) -> LagrangeSelectors:
        """Selectors of this (trace) domain at a single out-of-domain point."""
        x = point * to_ext(FF(self.shift) ** -1)
        g_inv = to_ext(self.generator ** -1)
        z_h = x ** self.size - FF3(1)
        if self.log_n == 0:
            is_transition = FF3(0)
        else:
            is_transition = x - g_inv
        return LagrangeSelectors(
            is_first_row=z_h / (x - FF3(1)),
            is_last_row=z_h / (x - g_inv),
            is_transition=is_transition,
            inv_vanishing=z_h ** -1,
        )


def natural_domain_for_degree(degree: int) -> TwoAdicCoset:
    """The subgroup of size degree, where a trace of that height lives."""
    return TwoAdicCoset(_exact_log2(degree), 1)


def _exact_log2(n: int) -> int:
    if n <= 0 or n & (n - 1):
        raise ValueError(f"{n} is not a power of two")
    return n.bit_length() - 1
