"""Constraint folders: the prover and verifier implementations of AirBuilder.

Both fold the asserted expressions c_0, c_1, ... of one eval pass into

    c_0 + alpha * c_1 + alpha^2 * c_2 + ...

The prover does this for many quotient-domain points at once using a table of
alpha powers; the verifier does it for the single out-of-domain point with a
running power.
"""

import threading
from typing import List, Optional

from air.base import AirBuilder, Expr, MultiTraceAir, TraceWindow, as_ext
from primitives.domain import LagrangeSelectors
from primitives.field import FF3
from protocol.errors import UnsupportedConfigurationError


def _check_window_size(size: int) -> None:
    if size != 2:
        raise UnsupportedConfigurationError(f"only transition windows of size 2 are supported, got {size}")


class AlphaPowers:
    """Table of alpha^i, grown on demand.

    Sized up front to the computation's assertion count so the per-point
    loop never has to extend it. Growth is guarded for use across threads.
    """

    def __init__(self, alpha: FF3, size: int = 0):
        self.alpha = alpha
        self._powers: List[FF3] = [FF3(1)]
        self._lock = threading.Lock()
        self._extend(size)

    def __len__(self) -> int:
        return len(self._powers)

    def __getitem__(self, i: int) -> FF3:
        if i >= len(self._powers):
            with self._lock:
                self._extend(i + 1)
        return self._powers[i]

    def _extend(self, size: int) -> None:
        while len(self._powers) < size:
            self._powers.append(self._powers[-1] * self.alpha)


class ProverFolder(AirBuilder):
    """Folds constraints over a contiguous slice of the quotient domain.

    Window entries and selectors are FF3 arrays with one entry per point.
    """

    def __init__(
        self,
        main: TraceWindow,
        aux: Optional[TraceWindow],
        selectors: LagrangeSelectors,
        alpha_powers: AlphaPowers,
        challenges: List[FF3],
        public_values: List[FF3],
        n_points: int,
    ):
        self._main = main
        self._aux = aux if aux is not None else TraceWindow.empty()
        self._selectors = selectors
        self._alpha_powers = alpha_powers
        self._challenges = challenges
        self._public_values = public_values
        self.accumulator = FF3.Zeros(n_points)
        self.constraint_index = 0

    def main(self) -> TraceWindow:
        return self._main

    def aux(self) -> TraceWindow:
        return self._aux

    def is_first_row(self) -> Expr:
        return self._selectors.is_first_row

    def is_last_row(self) -> Expr:
        return self._selectors.is_last_row

    def is_transition_window(self, size: int) -> Expr:
        _check_window_size(size)
        return self._selectors.is_transition

    def challenges(self) -> List[FF3]:
        return self._challenges

    def public_values(self) -> List[FF3]:
        return self._public_values

    def assert_zero(self, x: Expr) -> None:
        alpha_power = self._alpha_powers[self.constraint_index]
        self.accumulator = self.accumulator + alpha_power * as_ext(x)
        self.constraint_index += 1


class VerifierFolder(AirBuilder):
    """Folds constraints evaluated at one opened point."""

    def __init__(
        self,
        main: TraceWindow,
        aux: Optional[TraceWindow],
        selectors: LagrangeSelectors,
        alpha: FF3,
        challenges: List[FF3],
        public_values: List[FF3],
    ):
        self._main = main
        self._aux = aux if aux is not None else TraceWindow.empty()
        self._selectors = selectors
        self._alpha = alpha
        self._alpha_power = FF3(1)
        self._challenges = challenges
        self._public_values = public_values
        self.accumulator = FF3(0)
        self.constraint_index = 0

    def main(self) -> TraceWindow:
        return self._main

    def aux(self) -> TraceWindow:
        return self._aux

    def is_first_row(self) -> Expr:
        return self._selectors.is_first_row

    def is_last_row(self) -> Expr:
        return self._selectors.is_last_row

    def is_transition_window(self, size: int) -> Expr:
        _check_window_size(size)
        return self._selectors.is_transition

    def challenges(self) -> List[FF3]:
        return self._challenges

    def public_values(self) -> List[FF3]:
        return self._public_values

    def assert_zero(self, x: Expr) -> None:
        self.accumulator = self.accumulator + self._alpha_power * as_ext(x)
        self._alpha_power = self._alpha_power * self._alpha
        self.constraint_index += 1


def count_constraints(air: MultiTraceAir, num_public_values: int = 0) -> int:
    """Number of assertions one eval pass makes.

    Runs eval once on zero values; computations whose assertion count
    depends on trace data are not supported.
    """
    zero = FF3(0)
    main = TraceWindow([zero] * air.width(), [zero] * air.width())
    aux = TraceWindow([zero] * air.aux_width(), [zero] * air.aux_width())
    selectors = LagrangeSelectors(zero, zero, zero, zero)
    folder = VerifierFolder(
        main, aux, selectors, zero,
        [zero] * air.num_challenges(),
        [zero] * num_public_values,
    )
    air.eval(folder)
    return folder.constraint_index
