"""Abstract polynomial operations.

This module provides protocol-level polynomial operations without exposing
implementation details like NTT/INTT. The protocol layer should use these
abstractions rather than directly invoking NTT primitives.

Polynomials are stored column-wise: a (n, n_cols) array holds n coefficients
for each of n_cols columns, lowest degree first. Either field type works.
"""

from primitives.field import FF3, to_ext
from primitives.ntt import get_ntt


def to_coefficients(evaluations, domain):
    """Interpolate values given over a two-adic coset.

    Args:
        evaluations: Values at the domain points, shape (domain.size, ...)
        domain: TwoAdicCoset the values live on

    Returns:
        Coefficients in the same shape and field as the input
    """
    return get_ntt(domain.size).coset_intt(evaluations, domain.shift)


def to_evaluations(coefficients, domain):
    """Evaluate a column-wise polynomial over a two-adic coset.

    Coefficient vectors shorter than the domain are zero-padded; longer ones
    are rejected since the result would not be a plain evaluation.
    """
    n = coefficients.shape[0]
    if n > domain.size:
        raise ValueError(f"Cannot evaluate {n} coefficients on a domain of size {domain.size}")
    if n < domain.size:
        padded = type(coefficients).Zeros((domain.size,) + coefficients.shape[1:])
        padded[:n] = coefficients
        coefficients = padded
    return get_ntt(domain.size).coset_ntt(coefficients, domain.shift)


def evaluate_at(coefficients, point: FF3) -> FF3:
    """Evaluate every column of a coefficient array at a single FF3 point.

    Returns an FF3 array of shape coefficients.shape[1:].
    """
    coeffs = to_ext(coefficients)
    acc = FF3.Zeros(coeffs.shape[1:])
    for i in range(coeffs.shape[0] - 1, -1, -1):
        acc = acc * point + coeffs[i]
    return acc


def split_coefficients(coefficients, n_chunks: int):
    """Cut a coefficient vector into n_chunks contiguous blocks.

    Block i holds coefficients [i*m, (i+1)*m) with m = len / n_chunks, so the
    original polynomial is sum_i x^(i*m) * block_i(x).
    """
    n = coefficients.shape[0]
    if n_chunks <= 0 or n % n_chunks:
        raise ValueError(f"{n} coefficients do not split into {n_chunks} chunks")
    m = n // n_chunks
    return [coefficients[i * m:(i + 1) * m] for i in range(n_chunks)]
