"""Base classes for computations and constraint evaluation.

A MultiTraceAir describes its constraints once, in eval(builder). The builder
is an AirBuilder, and every AirBuilder offers the same surface whether its
values are arrays over many domain points (prover) or single opened values
(verifier). The same eval therefore produces identical constraint lists on
both sides thanks to galois broadcasting.

Example:
    class Counter(MultiTraceAir):
        def width(self):
            return 1

        def eval(self, builder):
            main = builder.main()
            x, x_next = main.get_local(0), main.get_next(0)
            builder.when_first_row().assert_zero(x)
            builder.when_transition().assert_eq(x_next, x + builder.constant(1))
"""

from abc import ABC, abstractmethod
from typing import List, Sequence, Union

from primitives.field import FF, FF3, GOLDILOCKS_PRIME
from protocol.errors import TraceShapeError

# Type aliases for clarity
FF3Poly = FF3  # Array of extension field elements
Expr = Union[FF3Poly, FF3, int]


def as_ext(x: Expr) -> FF3:
    """Lift plain integers into FF3 so they can meet FF3 operands."""
    if isinstance(x, int):
        return FF3(x % GOLDILOCKS_PRIME)
    return x


class TraceWindow:
    """Two consecutive rows of a trace, column by column.

    On the prover side each entry is an FF3 array over a slice of the
    evaluation domain; on the verifier side each entry is one FF3 value.
    """

    def __init__(self, local: Sequence[Expr], next_row: Sequence[Expr]):
        if len(local) != len(next_row):
            raise ValueError("local and next rows must have the same width")
        self.local = list(local)
        self.next = list(next_row)

    @classmethod
    def empty(cls) -> "TraceWindow":
        return cls([], [])

    @property
    def width(self) -> int:
        return len(self.local)

    def row_slice(self, offset: int) -> List[Expr]:
        """Row 0 is the local row, row 1 the next row."""
        if offset == 0:
            return self.local
        if offset == 1:
            return self.next
        raise IndexError(f"window has two rows, got offset {offset}")

    def get_local(self, col: int) -> Expr:
        return self.local[col]

    def get_next(self, col: int) -> Expr:
        return self.next[col]


class AirBuilder(ABC):
    """Uniform interface for constraint evaluation - works for prover and verifier."""

    @abstractmethod
    def main(self) -> TraceWindow:
        """Main trace columns at the current and next row."""

    @abstractmethod
    def aux(self) -> TraceWindow:
        """Auxiliary trace columns; empty when the computation has none."""

    @abstractmethod
    def is_first_row(self) -> Expr:
        pass

    @abstractmethod
    def is_last_row(self) -> Expr:
        pass

    @abstractmethod
    def is_transition_window(self, size: int) -> Expr:
        """Selector for rows that have `size - 1` successors. Only size 2 exists."""

    def is_transition(self) -> Expr:
        return self.is_transition_window(2)

    @abstractmethod
    def challenges(self) -> List[FF3]:
        """Challenges sampled before the auxiliary trace was built."""

    @abstractmethod
    def public_values(self) -> List[FF3]:
        pass

    @abstractmethod
    def assert_zero(self, x: Expr) -> None:
        """Record that x vanishes on every row where the builder is active."""

    def assert_zero_ext(self, x: Expr) -> None:
        """Extension field assertion; every expression already lives in FF3."""
        self.assert_zero(x)

    # --- Conveniences ---

    def constant(self, value: int) -> FF3:
        return FF3(value % GOLDILOCKS_PRIME)

    def assert_eq(self, a: Expr, b: Expr) -> None:
        self.assert_zero(as_ext(a) - as_ext(b))

    def assert_one(self, x: Expr) -> None:
        self.assert_zero(as_ext(x) - FF3(1))

    def when(self, condition: Expr) -> "AirBuilder":
        return FilteredAirBuilder(self, condition)

    def when_first_row(self) -> "AirBuilder":
        return self.when(self.is_first_row())

    def when_last_row(self) -> "AirBuilder":
        return self.when(self.is_last_row())

    def when_transition(self) -> "AirBuilder":
        return self.when(self.is_transition())


class FilteredAirBuilder(AirBuilder):
    """Builder whose assertions are multiplied by a condition."""

    def __init__(self, inner: AirBuilder, condition: Expr):
        self._inner = inner
        self._condition = as_ext(condition)

    def main(self) -> TraceWindow:
        return self._inner.main()

    def aux(self) -> TraceWindow:
        return self._inner.aux()

    def is_first_row(self) -> Expr:
        return self._inner.is_first_row()

    def is_last_row(self) -> Expr:
        return self._inner.is_last_row()

    def is_transition_window(self, size: int) -> Expr:
        return self._inner.is_transition_window(size)

    def challenges(self) -> List[FF3]:
        return self._inner.challenges()

    def public_values(self) -> List[FF3]:
        return self._inner.public_values()

    def assert_zero(self, x: Expr) -> None:
        self._inner.assert_zero(self._condition * as_ext(x))


class MultiTraceAir(ABC):
    """A computation over a main trace and an optional auxiliary trace.

    The auxiliary trace is derived from the main trace and num_challenges()
    transcript challenges drawn after the main trace is committed, which is
    what randomized lookup and permutation arguments need.
    """

    @abstractmethod
    def width(self) -> int:
        """Number of main trace columns."""

    def aux_width(self) -> int:
        """Number of auxiliary (FF3) columns; 0 means no auxiliary trace."""
        return 0

    def num_challenges(self) -> int:
        """Challenges consumed by build_aux_trace."""
        return 0

    def build_aux_trace(self, main_trace: FF, challenges: List[FF3]) -> FF3:
        """Derive the auxiliary trace, shape (height, aux_width()).

        Must depend on nothing but its arguments.
        """
        raise TraceShapeError(f"{type(self).__name__} declares no auxiliary trace builder")

    @abstractmethod
    def eval(self, builder: AirBuilder) -> None:
        """Assert every constraint of the computation against builder."""
