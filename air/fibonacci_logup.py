"""Fibonacci with a LogUp running sum in an auxiliary column.

With challenges (alpha, z) and d_i = z - (a_i + alpha * b_i), the auxiliary
column holds s_i = sum_{j <= i} 1 / d_j. Its constraints are the
denominator-cleared forms

    s_0 * d_0 = 1
    (s_{i+1} - s_i) * d_{i+1} = 1
"""

from typing import List

from air.base import AirBuilder
from air.fibonacci import FibonacciAir
from primitives.field import FF, FF3, batch_inverse, to_ext


class FibonacciLogUpAir(FibonacciAir):
    """FibonacciAir plus one auxiliary LogUp column."""

    def aux_width(self) -> int:
        return 1

    def num_challenges(self) -> int:
        return 2

    def build_aux_trace(self, main_trace: FF, challenges: List[FF3]) -> FF3:
        alpha, z = challenges
        main = to_ext(main_trace)
        d = z - (main[:, 0] + alpha * main[:, 1])
        inv = batch_inverse(d)

        running = FF3.Zeros((main.shape[0], 1))
        acc = FF3(0)
        for i in range(main.shape[0]):
            acc = acc + inv[i]
            running[i, 0] = acc
        return running

    def eval(self, builder: AirBuilder) -> None:
        super().eval(builder)

        alpha, z = builder.challenges()
        main = builder.main()
        aux = builder.aux()

        d = z - (main.get_local(0) + alpha * main.get_local(1))
        d_next = z - (main.get_next(0) + alpha * main.get_next(1))
        s, s_next = aux.get_local(0), aux.get_next(0)

        builder.when_first_row().assert_one(s * d)
        builder.when_transition().assert_one((s_next - s) * d_next)
