"""Goldilocks field GF(p) and cubic extension GF(p^3).

Uses galois library for all field arithmetic. FF and FF3 are the field types.

Building FF3 through galois.GF() takes several seconds. If a pickled copy of the
class exists next to this module it is loaded instead. To write one:
    python -c "from primitives.field import _regenerate_ff3_cache; _regenerate_ff3_cache()"
"""

import pickle
from pathlib import Path
from typing import List

import galois
import numpy as np

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001
FIELD_EXTENSION_DEGREE = 3

FF = galois.GF(GOLDILOCKS_PRIME)
"""Base field GF(p) - Goldilocks prime field."""

_FF3_CACHE_PATH = Path(__file__).parent / "ff3_cache.pkl"


def _build_ff3():
    _irr_poly = galois.Poly([1, 0, GOLDILOCKS_PRIME - 1, GOLDILOCKS_PRIME - 1], field=FF)
    return galois.GF(GOLDILOCKS_PRIME**3, irreducible_poly=_irr_poly)


if _FF3_CACHE_PATH.exists():
    with open(_FF3_CACHE_PATH, "rb") as _f:
        FF3 = pickle.load(_f)
else:
    FF3 = _build_ff3()
"""Cubic extension field GF(p^3) with irreducible polynomial x^3 - x - 1."""


def _regenerate_ff3_cache():
    """Regenerate the FF3 cache file. Only needed if galois version changes."""
    with open(_FF3_CACHE_PATH, "wb") as f:
        pickle.dump(_build_ff3(), f)


# --- Coefficient Order Conversion ---
# Galois uses descending order [a2, a1, a0], we use ascending [a0, a1, a2].


def ff3(coeffs: List[int]) -> FF3:
    """Construct FF3 element from ascending-order coefficients [a0, a1, a2]."""
    return FF3.Vector(list(coeffs)[::-1])


def ff3_coeffs(elem: FF3) -> List[int]:
    """Extract ascending-order coefficients [a0, a1, a2] from FF3 element."""
    return [int(c) for c in elem.vector()[::-1]]


def ff3_flatten(values: FF3) -> List[int]:
    """Flatten an FF3 array of any shape into ascending-order limbs."""
    vec = values.vector()
    return [int(c) for c in np.asarray(vec[..., ::-1]).reshape(-1)]


def is_canonical(limbs: List[int]) -> bool:
    """Whether every limb is an integer in [0, p)."""
    return all(isinstance(x, int) and 0 <= x < GOLDILOCKS_PRIME for x in limbs)


# --- Embedding ---

def to_ext(values) -> FF3:
    """Embed base field values (scalar or array) into FF3."""
    if isinstance(values, FF3):
        return values
    return FF3(np.asarray(values, dtype=np.uint64).tolist())


# --- Roots of Unity ---

# Domain shift for coset LDE and quotient domains
SHIFT = FF(7)

TWO_ADICITY = 32

# Precomputed roots of unity: W[n] is a primitive 2^n-th root of unity
W: List[int] = [
    1,
    18446744069414584320,
    281474976710656,
    16777216,
    4096,
    64,
    8,
    2198989700608,
    4404853092538523347,
    6434636298004421797,
    4255134452441852017,
    9113133275150391358,
    4355325209153869931,
    4308460244895131701,
    7126024226993609386,
    1873558160482552414,
    8167150655112846419,
    5718075921287398682,
    3411401055030829696,
    8982441859486529725,
    1971462654193939361,
    6553637399136210105,
    8124823329697072476,
    5936499541590631774,
    2709866199236980323,
    8877499657461974390,
    3757607247483852735,
    4969973714567017225,
    2147253751702802259,
    2530564950562219707,
    1905180297017055339,
    3524815499551269279,
    7277203076849721926,
]


def get_omega(n_bits: int) -> FF:
    """Return primitive 2^n_bits-th root of unity."""
    if not 0 <= n_bits <= TWO_ADICITY:
        raise ValueError(f"no 2^{n_bits}-th root of unity in the Goldilocks field")
    return FF(W[n_bits])


def get_omega_inv(n_bits: int) -> FF:
    """Return inverse of primitive 2^n_bits-th root of unity."""
    return get_omega(n_bits) ** -1


def powers(base, n: int):
    """[1, base, base^2, ..., base^(n-1)] in base's field."""
    field = type(base)
    out = field.Ones(n)
    for i in range(1, n):
        out[i] = out[i - 1] * base
    return out


# --- Montgomery Batch Inversion ---

def batch_inverse(values):
    """Montgomery batch inversion for any galois array.

    Converts N field inversions into 3N-3 multiplications + 1 inversion.
    Works with any galois FieldArray type (FF or FF3).

    Raises:
        ZeroDivisionError: If any element is zero
    """
    n = len(values)
    if n == 0:
        return values
    if n == 1:
        return values ** -1

    field_type = type(values)

    cumprods = field_type.Zeros(n)
    cumprods[0] = values[0]
    for i in range(1, n):
        cumprods[i] = cumprods[i - 1] * values[i]

    z = cumprods[n - 1] ** -1

    results = field_type.Zeros(n)
    for i in range(n - 1, 0, -1):
        results[i] = z * cumprods[i - 1]
        z = z * values[i]
    results[0] = z

    return results
