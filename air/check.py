"""Row-by-row constraint checking on the trace itself.

Used by the prover once both traces exist, when StarkConfig.check_constraints
is set, and by tests. Evaluates eval() once over all rows, with the next row of
the last row wrapping to row 0, and reports the first assertion that fails.
"""

from typing import List, Optional, Sequence

import numpy as np

from air.base import AirBuilder, Expr, MultiTraceAir, TraceWindow, as_ext
from primitives.field import FF, FF3, GOLDILOCKS_PRIME, to_ext
from protocol.errors import ConstraintViolation, UnsupportedConfigurationError


def _windows(trace: FF3) -> TraceWindow:
    local = [trace[:, c] for c in range(trace.shape[1])]
    return TraceWindow(local, [np.roll(col, -1) for col in local])


class DebugConstraintChecker(AirBuilder):
    """AirBuilder over the trace domain that raises on the first violation."""

    def __init__(
        self,
        main_trace: FF,
        aux_trace: Optional[FF3],
        challenges: List[FF3],
        public_values: List[FF3],
    ):
        height = main_trace.shape[0]
        self._height = height
        self._main = _windows(to_ext(main_trace))
        self._aux = _windows(aux_trace) if aux_trace is not None else TraceWindow.empty()
        self._challenges = challenges
        self._public_values = public_values

        first = [0] * height
        first[0] = 1
        last = [0] * height
        last[-1] = 1
        transition = [1] * (height - 1) + [0]
        self._is_first_row = FF3(first)
        self._is_last_row = FF3(last)
        self._is_transition = FF3(transition)
        self.constraint_index = 0

    def main(self) -> TraceWindow:
        return self._main

    def aux(self) -> TraceWindow:
        return self._aux

    def is_first_row(self) -> Expr:
        return self._is_first_row

    def is_last_row(self) -> Expr:
        return self._is_last_row

    def is_transition_window(self, size: int) -> Expr:
        if size != 2:
            raise UnsupportedConfigurationError(f"only transition windows of size 2 are supported, got {size}")
        return self._is_transition

    def challenges(self) -> List[FF3]:
        return self._challenges

    def public_values(self) -> List[FF3]:
        return self._public_values

    def assert_zero(self, x: Expr) -> None:
        values = np.asarray(as_ext(x)).reshape(-1)
        bad = np.nonzero(values != 0)[0]
        if len(bad) > 0:
            raise ConstraintViolation(self.constraint_index, int(bad[0]))
        self.constraint_index += 1


def check_constraints(
    air: MultiTraceAir,
    main_trace: FF,
    aux_trace: Optional[FF3] = None,
    challenges: Sequence[FF3] = (),
    public_values: Sequence = (),
) -> None:
    """Raise ConstraintViolation unless every assertion holds on every row."""
    publics = [FF3(int(v) % GOLDILOCKS_PRIME) for v in public_values]
    checker = DebugConstraintChecker(FF(main_trace), aux_trace, list(challenges), publics)
    air.eval(checker)
