"""Tests for the row-wise constraint checker and the example computations."""

import numpy as np
import pytest

from air.check import check_constraints
from air.fibonacci import FibonacciAir
from air.fibonacci_logup import FibonacciLogUpAir
from primitives.field import FF, FF3
from protocol.errors import ConstraintViolation


class TestFibonacciTrace:

    def test_generate_trace_height_8(self) -> None:
        trace, public_values = FibonacciAir.generate_trace(8)
        expected = [[0, 1], [1, 1], [1, 2], [2, 3], [3, 5], [5, 8], [8, 13], [13, 21]]
        assert np.array_equal(trace, FF(expected))
        assert public_values == [21]

    @pytest.mark.parametrize("height", [1, 2, 4, 16])
    def test_honest_trace_passes(self, height: int) -> None:
        trace, public_values = FibonacciAir.generate_trace(height)
        check_constraints(FibonacciAir(), trace, public_values=public_values)

    def test_tampered_cell_reports_first_violation(self) -> None:
        """Row 3 breaks b' = a + b before anything else."""
        trace, public_values = FibonacciAir.generate_trace(8)
        trace[3, 0] = FF(99)

        with pytest.raises(ConstraintViolation) as exc_info:
            check_constraints(FibonacciAir(), trace, public_values=public_values)
        assert exc_info.value.constraint_index == 2
        assert exc_info.value.row == 3

    def test_wrong_public_value(self) -> None:
        trace, _ = FibonacciAir.generate_trace(8)

        with pytest.raises(ConstraintViolation) as exc_info:
            check_constraints(FibonacciAir(), trace, public_values=[22])
        assert exc_info.value.constraint_index == 4
        assert exc_info.value.row == 7


class TestFibonacciLogUp:

    def _setup(self, height: int = 8):
        air = FibonacciLogUpAir()
        trace, public_values = FibonacciAir.generate_trace(height)
        challenges = list(FF3.Random(2))
        aux = air.build_aux_trace(trace, challenges)
        return air, trace, public_values, challenges, aux

    def test_aux_trace_shape(self) -> None:
        _, _, _, _, aux = self._setup()
        assert isinstance(aux, FF3)
        assert aux.shape == (8, 1)

    def test_running_sum(self) -> None:
        """Each step adds 1 / (z - (a + alpha * b))."""
        _, trace, _, (alpha, z), aux = self._setup(4)
        total = FF3(0)
        for i in range(4):
            a, b = FF3(int(trace[i, 0])), FF3(int(trace[i, 1]))
            total = total + (z - (a + alpha * b)) ** -1
            assert aux[i, 0] == total

    def test_honest_traces_pass(self) -> None:
        air, trace, public_values, challenges, aux = self._setup()
        check_constraints(air, trace, aux, challenges, public_values)

    def test_tampered_aux_rejected(self) -> None:
        air, trace, public_values, challenges, aux = self._setup()
        aux[4, 0] = aux[4, 0] + FF3(1)

        with pytest.raises(ConstraintViolation) as exc_info:
            check_constraints(air, trace, aux, challenges, public_values)
        assert exc_info.value.constraint_index == 6
        assert exc_info.value.row == 3

    def test_aux_depends_on_challenges(self) -> None:
        air, trace, _, challenges, aux = self._setup()
        other = air.build_aux_trace(trace, [challenges[0], challenges[1] + FF3(1)])
        assert not np.array_equal(aux, other)
