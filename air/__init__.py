"""Computations and the builders that evaluate their constraints.

Each computation subclasses MultiTraceAir and writes its constraints once in
eval(). ProverFolder, VerifierFolder and DebugConstraintChecker run that same
eval over quotient-domain slices, a single opened point, and the raw trace.
"""

from .base import AirBuilder, FilteredAirBuilder, MultiTraceAir, TraceWindow
from .check import DebugConstraintChecker, check_constraints
from .fibonacci import FibonacciAir
from .fibonacci_logup import FibonacciLogUpAir
from .folder import AlphaPowers, ProverFolder, VerifierFolder, count_constraints

__all__ = [
    "AirBuilder",
    "FilteredAirBuilder",
    "MultiTraceAir",
    "TraceWindow",
    "ProverFolder",
    "VerifierFolder",
    "AlphaPowers",
    "count_constraints",
    "DebugConstraintChecker",
    "check_constraints",
    "FibonacciAir",
    "FibonacciLogUpAir",
]
