"""Fibonacci computation over a two-column main trace."""

from typing import List, Tuple

from air.base import AirBuilder, MultiTraceAir
from primitives.field import FF


class FibonacciAir(MultiTraceAir):
    """Columns (a, b) with a[0] = 0, b[0] = 1, a' = b, b' = a + b.

    The public value is b on the last row.
    """

    def width(self) -> int:
        return 2

    def eval(self, builder: AirBuilder) -> None:
        main = builder.main()
        a, b = main.get_local(0), main.get_local(1)
        a_next, b_next = main.get_next(0), main.get_next(1)

        first = builder.when_first_row()
        first.assert_zero(a)
        first.assert_one(b)

        transition = builder.when_transition()
        transition.assert_eq(b_next, a + b)
        transition.assert_eq(a_next, b)

        builder.when_last_row().assert_eq(b, builder.public_values()[0])

    @staticmethod
    def generate_trace(height: int) -> Tuple[FF, List[int]]:
        """Honest trace of the given height and its public values."""
        rows = []
        a, b = FF(0), FF(1)
        for _ in range(height):
            rows.append([int(a), int(b)])
            a, b = b, a + b
        return FF(rows), [rows[-1][1]]
