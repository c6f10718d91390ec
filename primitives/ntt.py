"""Number Theoretic Transform for Goldilocks field."""

from typing import Dict, Tuple

import numpy as np

from primitives.field import FF, FF3, get_omega, get_omega_inv, powers

# --- NTT Engine ---


class NTT:
    """Radix-2 NTT engine over a 2^n_bits-point subgroup.

    Transforms run along axis 0 and broadcast over every trailing axis, so a
    (N, n_cols) matrix is transformed column-wise in one pass. FF3 inputs are
    transformed limb by limb over the base field.
    """

    def __init__(self, domain_size: int) -> None:
        if domain_size <= 0 or domain_size & (domain_size - 1):
            raise ValueError(f"Domain size must be a positive power of 2, got {domain_size}")

        self.n = domain_size
        self.n_bits = _log2(domain_size)
        self._rev = _bit_reverse_indices(domain_size)

        # Per-stage twiddles, stage s has block size 2^(s+1)
        self._twiddles = [
            powers(get_omega(s + 1), 1 << s) for s in range(self.n_bits)
        ]
        self._twiddles_inv = [
            powers(get_omega_inv(s + 1), 1 << s) for s in range(self.n_bits)
        ]
        self._n_inv = FF(domain_size) ** -1

    def coset_ntt(self, coeffs, shift=1):
        """Evaluate on the coset shift * <omega_n>; shift 1 is the subgroup itself."""
        r = powers(FF(shift), self.n)
        return _per_limb(coeffs, lambda a: self._transform(_scale_rows(a, r), self._twiddles))

    def coset_intt(self, evals, shift=1):
        """Interpolate values given on the coset shift * <omega_n>."""
        r_inv = powers(FF(shift) ** -1, self.n) * self._n_inv
        return _per_limb(evals, lambda a: _scale_rows(self._transform(a, self._twiddles_inv), r_inv))

    def _transform(self, a: FF, twiddles) -> FF:
        if a.shape[0] != self.n:
            raise ValueError(f"Expected {self.n} rows, got {a.shape[0]}")
        trailing = a.shape[1:]
        out = a[self._rev].copy()
        for s in range(self.n_bits):
            half = 1 << s
            blocks = out.reshape((self.n // (2 * half), 2, half) + trailing)
            tw = twiddles[s].reshape((1, half) + (1,) * len(trailing))
            lo = blocks[:, 0]
            hi = blocks[:, 1] * tw
            stage = FF.Zeros(blocks.shape)
            stage[:, 0] = lo + hi
            stage[:, 1] = lo - hi
            out = stage.reshape(a.shape)
        return out


_ENGINES: Dict[int, NTT] = {}


def get_ntt(domain_size: int) -> NTT:
    """Shared engine per domain size; engines are read-only after construction."""
    engine = _ENGINES.get(domain_size)
    if engine is None:
        engine = NTT(domain_size)
        _ENGINES[domain_size] = engine
    return engine


# --- Helpers ---

def _per_limb(values, fn):
    """Apply a base-field linear map along axis 0, limb-wise for FF3."""
    if isinstance(values, FF3):
        limbs = values.vector()
        return FF3.Vector(fn(limbs))
    return fn(FF(values))


def _scale_rows(values: FF, factors: FF) -> FF:
    """Multiply row i of a base field array by factors[i]."""
    shape: Tuple[int, ...] = (len(factors),) + (1,) * (values.ndim - 1)
    return values * factors.reshape(shape)


def _log2(size: int) -> int:
    """Compute log2 of size (must be power of 2)."""
    res = 0
    while size != 1:
        size >>= 1
        res += 1
    return res


def _bit_reverse_indices(n: int) -> np.ndarray:
    bits = _log2(n)
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.int64)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return rev
