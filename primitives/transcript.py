"""
Fiat-Shamir transcript over a Goldilocks sponge.

The transcript absorbs field elements and produces challenges in a
deterministic, pseudorandom manner. Prover and verifier each own one
transcript per call; any difference in the order or content of observed
values makes every later challenge diverge.
"""

from typing import List

from primitives.field import FF, FF3, GOLDILOCKS_PRIME, ff3, ff3_flatten
from primitives.hashing import CAPACITY, permute

# Hash size (capacity of sponge)
HASH_SIZE = CAPACITY

Hash = List[int]
Challenge = List[int]


class Transcript:
    """
    Fiat-Shamir transcript using a duplex sponge.

    Attributes:
        arity: Determines sponge width (2, 3, or 4 -> 8, 12, 16)
        state: Current sponge state
        pending: Accumulator for absorbing elements
        out: Output buffer from the last permutation
    """

    def __init__(self, arity: int = 4):
        if arity not in [2, 3, 4]:
            raise ValueError(f"arity must be 2, 3, or 4, got {arity}")

        self.arity = arity

        self.transcript_state_size = HASH_SIZE
        self.transcript_pending_size = HASH_SIZE * (arity - 1)  # rate
        self.transcript_out_size = HASH_SIZE * arity

        self.sponge_width = HASH_SIZE * arity

        self.state = [0] * self.transcript_out_size
        self.pending = [0] * self.transcript_out_size
        self.out = [0] * self.transcript_out_size

        self.pending_cursor = 0
        self.out_cursor = 0

    # --- Absorb ---

    def put(self, input_data: List[int]) -> None:
        """Add raw field elements (as integers) to the transcript."""
        for elem in input_data:
            self._add1(int(elem))

    def observe(self, value) -> None:
        """Absorb one FF or FF3 value, or an array of them.

        FF3 values contribute their three ascending limbs.
        """
        if isinstance(value, FF3):
            self.put(ff3_flatten(value))
        elif isinstance(value, FF):
            self.put([int(x) for x in value.reshape(-1)])
        else:
            self.put([int(value)])

    def observe_slice(self, values) -> None:
        """Absorb a sequence of values in order."""
        for value in values:
            self.observe(value)

    def observe_commitment(self, root: Hash) -> None:
        """Absorb a Merkle root."""
        self.put(root)

    def _add1(self, input_elem: int) -> None:
        self.pending[self.pending_cursor] = input_elem % GOLDILOCKS_PRIME
        self.pending_cursor += 1
        self.out_cursor = 0  # Invalidate cached output

        if self.pending_cursor == self.transcript_pending_size:
            self._update_state()

    def _update_state(self) -> None:
        """Absorb pending into the sponge."""
        while self.pending_cursor < self.transcript_pending_size:
            self.pending[self.pending_cursor] = 0
            self.pending_cursor += 1

        # Input: pending (rate) + state (capacity)
        inputs = [0] * self.sponge_width
        for i in range(self.transcript_pending_size):
            inputs[i] = self.pending[i]
        for i in range(HASH_SIZE):
            inputs[self.transcript_pending_size + i] = self.state[i]

        self.out = permute(inputs, self.sponge_width)

        self.out_cursor = self.transcript_out_size
        self.pending = [0] * self.transcript_out_size
        self.pending_cursor = 0

        self.state = list(self.out)

    # --- Squeeze ---

    def _get_fields1(self) -> int:
        """Squeeze one field element from sponge."""
        if self.out_cursor == 0:
            self._update_state()

        # Read output buffer in reverse order
        idx = (self.transcript_out_size - self.out_cursor) % self.transcript_out_size
        result = self.out[idx]
        self.out_cursor -= 1

        return result

    def get_field(self) -> Challenge:
        """Get 3 field elements as a cubic extension challenge."""
        return [self._get_fields1() for _ in range(3)]

    def sample(self) -> FF3:
        """Sample one extension field challenge."""
        return ff3(self.get_field())

    def sample_vec(self, n: int) -> List[FF3]:
        """Sample n extension field challenges in order."""
        return [self.sample() for _ in range(n)]

    def get_permutations(self, n: int, n_bits: int) -> List[int]:
        """
        Generate n values, each using n_bits bits.

        This is used to derive query indices in FRI.

        Returns:
            List of n values, each in range [0, 2^n_bits)
        """
        if n_bits == 0:
            return [0] * n

        # 63 bits per field element
        n_fields = ((n * n_bits - 1) // 63) + 1
        fields = [self._get_fields1() for _ in range(n_fields)]

        result = []
        cur_bit = 0
        cur_field = 0

        for _ in range(n):
            a = 0
            for j in range(n_bits):
                bit = (fields[cur_field] >> cur_bit) & 1
                a += bit << j

                cur_bit += 1
                if cur_bit == 63:
                    cur_bit = 0
                    cur_field += 1

            result.append(a)

        return result
