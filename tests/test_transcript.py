"""Tests for the Fiat-Shamir transcript."""

import pytest

from primitives.field import FF, FF3, ff3_coeffs, ff3_flatten
from primitives.transcript import Transcript


def _challenges(observations, n: int = 3):
    t = Transcript(arity=4)
    for value in observations:
        t.observe(value)
    return [ff3_coeffs(t.sample()) for _ in range(n)]


class TestTranscript:

    def test_deterministic(self) -> None:
        """Same observations give the same challenges."""
        observations = [FF(1), FF([2, 3]), FF3(4)]
        assert _challenges(observations) == _challenges(observations)

    def test_diverges_on_different_observation(self) -> None:
        assert _challenges([FF(1), FF(2)]) != _challenges([FF(1), FF(3)])

    def test_diverges_on_order(self) -> None:
        assert _challenges([FF(1), FF(2)]) != _challenges([FF(2), FF(1)])

    def test_consecutive_samples_differ(self) -> None:
        samples = _challenges([FF(7)], n=4)
        assert len({tuple(s) for s in samples}) == 4

    def test_observe_ext_uses_ascending_limbs(self) -> None:
        """Observing an FF3 value is the same as putting its limbs."""
        value = FF3.Random(2)
        a = Transcript()
        a.observe(value)
        b = Transcript()
        b.put(ff3_flatten(value))
        assert ff3_coeffs(a.sample()) == ff3_coeffs(b.sample())

    def test_observe_commitment(self) -> None:
        a = Transcript()
        a.observe_commitment([1, 2, 3, 4])
        b = Transcript()
        b.put([1, 2, 3, 4])
        assert ff3_coeffs(a.sample()) == ff3_coeffs(b.sample())

    def test_observe_slice_absorbs_in_order(self) -> None:
        """Public values go in one limb each, in order."""
        a = Transcript()
        a.observe_slice([3, FF(5), 7])
        b = Transcript()
        b.put([3, 5, 7])
        assert ff3_coeffs(a.sample()) == ff3_coeffs(b.sample())

        c = Transcript()
        c.observe_slice([7, 5, 3])
        d = Transcript()
        d.put([3, 5, 7])
        assert ff3_coeffs(c.sample()) != ff3_coeffs(d.sample())

    def test_sample_vec(self) -> None:
        t = Transcript()
        t.observe(FF(5))
        values = t.sample_vec(3)
        assert len(values) == 3
        assert all(isinstance(v, FF3) for v in values)

    @pytest.mark.parametrize("n_bits", [1, 4, 10])
    def test_get_permutations_range(self, n_bits: int) -> None:
        t = Transcript()
        t.observe(FF(42))
        indices = t.get_permutations(20, n_bits)
        assert len(indices) == 20
        assert all(0 <= i < (1 << n_bits) for i in indices)

    def test_get_permutations_zero_bits(self) -> None:
        assert Transcript().get_permutations(5, 0) == [0] * 5

    def test_invalid_arity(self) -> None:
        with pytest.raises(ValueError):
            Transcript(arity=5)
