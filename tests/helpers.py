"""Test-sized configurations and proof helpers shared across test modules."""

from air.fibonacci import FibonacciAir
from protocol.config import StarkConfig
from protocol.pcs import FriPcs, FriPcsConfig
from protocol.prover import prove

# FF3 arithmetic runs through galois object arrays; keep proofs small
TEST_NUM_QUERIES = 6


def make_config(num_queries: int = TEST_NUM_QUERIES, log_blowup: int = 1, **overrides) -> StarkConfig:
    """StarkConfig with a test-sized commitment scheme."""
    pcs_config = FriPcsConfig(log_blowup=log_blowup, num_queries=num_queries)
    return StarkConfig(pcs=FriPcs(pcs_config), **overrides)


def prove_fibonacci(config: StarkConfig, air: FibonacciAir, height: int):
    """Honest trace, public values and proof for a Fibonacci-shaped computation."""
    trace, public_values = FibonacciAir.generate_trace(height)
    proof = prove(config, air, trace, public_values)
    return trace, public_values, proof
