"""
End-to-end STARK tests: prove with the prover, check with the verifier.

Covers completeness with and without an auxiliary trace, rejection of
tampered proofs, transcript agreement between prover and verifier, and the
prover's input validation.
"""

import copy
import dataclasses

import numpy as np
import pytest

from air.base import AirBuilder
from air.fibonacci import FibonacciAir
from air.fibonacci_logup import FibonacciLogUpAir
from primitives.field import FF, FF3, GOLDILOCKS_PRIME
from primitives.transcript import Transcript
from protocol.config import StarkConfig
from protocol.errors import (
    ConstraintViolation,
    StarkError,
    TraceShapeError,
    UnsupportedConfigurationError,
    VerificationErrorKind,
)
from protocol.prover import prove
from protocol.verifier import verify
from tests.helpers import make_config, prove_fibonacci

AIRS = {
    "fibonacci": FibonacciAir,
    "logup": FibonacciLogUpAir,
}


class RecordingTranscript(Transcript):
    """Transcript that logs every extension challenge it hands out."""

    def __init__(self, log, arity: int = 4):
        super().__init__(arity)
        self.log = log

    def sample(self) -> FF3:
        value = super().sample()
        self.log.append(int(value))
        return value


@dataclasses.dataclass
class RecordingConfig(StarkConfig):
    samples: list = dataclasses.field(default_factory=list)

    def challenger(self) -> Transcript:
        log = []
        self.samples.append(log)
        return RecordingTranscript(log, self.transcript_arity)


@dataclasses.dataclass
class NoTranscriptConfig(StarkConfig):
    """Fails the test if a transcript is ever created."""

    def challenger(self) -> Transcript:
        raise AssertionError("transcript should not be created")


def _recording_config() -> RecordingConfig:
    base = make_config()
    return RecordingConfig(pcs=base.pcs)


class TestCompleteness:

    @pytest.mark.parametrize("air_name", ["fibonacci", "logup"])
    @pytest.mark.parametrize("height", [2, 4, 8, 16])
    def test_honest_proof_verifies(self, config: StarkConfig, air_name: str, height: int) -> None:
        air = AIRS[air_name]()
        _, public_values, proof = prove_fibonacci(config, air, height)

        assert verify(config, air, proof, public_values) is None

    @pytest.mark.parametrize("air_name", ["fibonacci", "logup"])
    def test_single_row_trace(self, config: StarkConfig, air_name: str) -> None:
        """Height 1 has no transitions and still proves."""
        air = AIRS[air_name]()
        _, public_values, proof = prove_fibonacci(config, air, 1)

        assert proof.log_degree == 0
        assert verify(config, air, proof, public_values) is None

    def test_proof_artifacts(self, config: StarkConfig) -> None:
        _, _, proof = prove_fibonacci(config, FibonacciAir(), 8)
        assert proof.aux_commit is None
        assert proof.aux_local is None and proof.aux_next is None
        assert proof.log_degree == 3
        assert proof.main_local.shape == (2,)
        assert len(proof.quotient_commits) == config.quotient_degree
        assert len(proof.quotient_chunks) == config.quotient_degree
        assert all(chunk.shape == (1,) for chunk in proof.quotient_chunks)

    def test_aux_artifacts(self, config: StarkConfig) -> None:
        _, _, proof = prove_fibonacci(config, FibonacciLogUpAir(), 8)
        assert proof.aux_commit is not None
        assert proof.aux_local.shape == (1,)
        assert proof.aux_next.shape == (1,)

    @pytest.mark.parametrize("log_quotient_degree", [1, 3])
    def test_quotient_degree(self, log_quotient_degree: int) -> None:
        """The number of chunks follows the configured quotient degree."""
        config = make_config(log_quotient_degree=log_quotient_degree)
        air = FibonacciLogUpAir()
        _, public_values, proof = prove_fibonacci(config, air, 4)

        assert len(proof.quotient_chunks) == 1 << log_quotient_degree
        assert verify(config, air, proof, public_values) is None

    def test_blowup_two(self) -> None:
        config = make_config(log_blowup=2)
        air = FibonacciAir()
        _, public_values, proof = prove_fibonacci(config, air, 4)
        assert verify(config, air, proof, public_values) is None

    def test_check_constraints_enabled(self) -> None:
        config = make_config(check_constraints=True)
        air = FibonacciLogUpAir()
        _, public_values, proof = prove_fibonacci(config, air, 8)
        assert verify(config, air, proof, public_values) is None

    def test_multiple_workers_same_proof(self) -> None:
        """Sharding the quotient loop does not change the proof."""
        air = FibonacciLogUpAir()
        trace, public_values = FibonacciAir.generate_trace(8)
        single = prove(make_config(), air, trace, public_values)
        threaded = prove(make_config(num_workers=3), air, trace, public_values)

        assert single.quotient_commits == threaded.quotient_commits
        assert np.array_equal(
            FF3([int(c[0]) for c in single.quotient_chunks]),
            FF3([int(c[0]) for c in threaded.quotient_chunks]),
        )
        assert verify(make_config(), air, threaded, public_values) is None


class TestSoundness:

    def test_tampered_trace_rejected(self, config: StarkConfig) -> None:
        """A trace that breaks a transition still proves, but never verifies."""
        air = FibonacciAir()
        trace, public_values = FibonacciAir.generate_trace(8)
        trace[3, 0] = FF(99)

        proof = prove(config, air, trace, public_values)
        assert verify(config, air, proof, public_values) is not None

    def test_tampered_trace_caught_by_checker(self) -> None:
        config = make_config(check_constraints=True)
        trace, public_values = FibonacciAir.generate_trace(8)
        trace[3, 0] = FF(99)

        with pytest.raises(ConstraintViolation) as exc_info:
            prove(config, FibonacciAir(), trace, public_values)
        assert exc_info.value.row == 3

    def test_wrong_public_value_rejected(self, config: StarkConfig) -> None:
        air = FibonacciAir()
        _, public_values, proof = prove_fibonacci(config, air, 8)
        assert verify(config, air, proof, [public_values[0] + 1]) is not None

    @pytest.mark.parametrize("field_name", ["main_local", "main_next", "aux_local", "aux_next"])
    def test_tampered_opened_value(self, config: StarkConfig, field_name: str) -> None:
        air = FibonacciLogUpAir()
        _, public_values, proof = prove_fibonacci(config, air, 8)

        values = getattr(proof, field_name).copy()
        values[0] = values[0] + FF3(1)
        bad = dataclasses.replace(proof, **{field_name: values})

        error = verify(config, air, bad, public_values)
        assert error is not None
        assert error.kind == VerificationErrorKind.CONSTRAINT_VERIFICATION_FAILED

    def test_tampered_quotient_chunk(self, config: StarkConfig) -> None:
        air = FibonacciAir()
        _, public_values, proof = prove_fibonacci(config, air, 8)

        chunks = list(proof.quotient_chunks)
        chunks[1] = chunks[1] + FF3(1)
        bad = dataclasses.replace(proof, quotient_chunks=chunks)

        error = verify(config, air, bad, public_values)
        assert error is not None
        assert error.kind == VerificationErrorKind.CONSTRAINT_VERIFICATION_FAILED

    def test_tampered_opening_proof(self, config: StarkConfig) -> None:
        air = FibonacciLogUpAir()
        _, public_values, proof = prove_fibonacci(config, air, 8)

        opening = copy.deepcopy(proof.opening_proof)
        opening.final_value = opening.final_value + FF3(1)
        bad = dataclasses.replace(proof, opening_proof=opening)

        error = verify(config, air, bad, public_values)
        assert error is not None
        assert error.kind == VerificationErrorKind.PCS_VERIFICATION_FAILED

    @pytest.mark.parametrize("opening", ["input", "round"])
    def test_non_canonical_leaf_limb(self, config: StarkConfig, opening: str) -> None:
        """Limbs outside [0, p) are reported as a failed opening, never raised."""
        air = FibonacciAir()
        _, public_values, proof = prove_fibonacci(config, air, 4)

        bad = copy.deepcopy(proof)
        query = bad.opening_proof.query_proofs[0]
        leaf = query.input_proofs[0] if opening == "input" else query.round_proofs[0]
        leaf.v[0][0] += GOLDILOCKS_PRIME

        error = verify(config, air, bad, public_values)
        assert error is not None
        assert error.kind == VerificationErrorKind.PCS_VERIFICATION_FAILED

    def test_main_leaf_opened_as_extension(self, config: StarkConfig) -> None:
        """Base columns regrouped into an extension column do not open."""
        air = FibonacciAir()
        _, public_values, proof = prove_fibonacci(config, air, 4)

        bad = copy.deepcopy(proof)
        leaf = bad.opening_proof.query_proofs[0].input_proofs[0]
        (a,), (b,) = leaf.v
        leaf.v = [[a, b, 0], [0]]

        error = verify(config, air, bad, public_values)
        assert error is not None
        assert error.kind == VerificationErrorKind.PCS_VERIFICATION_FAILED

    def test_tampered_commitment(self, config: StarkConfig) -> None:
        air = FibonacciAir()
        _, public_values, proof = prove_fibonacci(config, air, 8)

        commit = list(proof.main_commit)
        commit[0] = (commit[0] + 1) % FF.order
        bad = dataclasses.replace(proof, main_commit=commit)

        assert verify(config, air, bad, public_values) is not None

    def test_proof_for_other_computation_rejected(self, config: StarkConfig) -> None:
        """A LogUp proof with its aux parts removed does not pass as plain Fibonacci."""
        _, public_values, proof = prove_fibonacci(config, FibonacciLogUpAir(), 8)
        stripped = dataclasses.replace(proof, aux_commit=None, aux_local=None, aux_next=None)
        assert verify(config, FibonacciAir(), stripped, public_values) is not None


class TestStructure:
    """Malformed proofs are rejected before any transcript work."""

    def _proofs(self, config: StarkConfig):
        _, public_values, plain = prove_fibonacci(config, FibonacciAir(), 4)
        _, _, with_aux = prove_fibonacci(config, FibonacciLogUpAir(), 4)
        return public_values, plain, with_aux

    def test_missing_aux_commit(self, config: StarkConfig) -> None:
        public_values, plain, _ = self._proofs(config)
        error = verify(NoTranscriptConfig(pcs=config.pcs), FibonacciLogUpAir(), plain, public_values)
        assert error.kind == VerificationErrorKind.INVALID_PROOF

    def test_unexpected_aux_commit(self, config: StarkConfig) -> None:
        public_values, _, with_aux = self._proofs(config)
        error = verify(NoTranscriptConfig(pcs=config.pcs), FibonacciAir(), with_aux, public_values)
        assert error.kind == VerificationErrorKind.INVALID_PROOF

    def test_aux_values_without_commit(self, config: StarkConfig) -> None:
        public_values, plain, with_aux = self._proofs(config)
        bad = dataclasses.replace(plain, aux_local=with_aux.aux_local)
        error = verify(NoTranscriptConfig(pcs=config.pcs), FibonacciAir(), bad, public_values)
        assert error.kind == VerificationErrorKind.INVALID_PROOF

    def test_wrong_opened_width(self, config: StarkConfig) -> None:
        public_values, plain, _ = self._proofs(config)
        bad = dataclasses.replace(plain, main_local=plain.main_local[:1])
        error = verify(NoTranscriptConfig(pcs=config.pcs), FibonacciAir(), bad, public_values)
        assert error.kind == VerificationErrorKind.INVALID_PROOF

    def test_wrong_chunk_count(self, config: StarkConfig) -> None:
        public_values, plain, _ = self._proofs(config)
        bad = dataclasses.replace(
            plain,
            quotient_commits=plain.quotient_commits[:-1],
            quotient_chunks=plain.quotient_chunks[:-1],
        )
        error = verify(NoTranscriptConfig(pcs=config.pcs), FibonacciAir(), bad, public_values)
        assert error.kind == VerificationErrorKind.INVALID_PROOF

    def test_short_commitment(self, config: StarkConfig) -> None:
        public_values, plain, _ = self._proofs(config)
        bad = dataclasses.replace(plain, main_commit=plain.main_commit[:3])
        error = verify(NoTranscriptConfig(pcs=config.pcs), FibonacciAir(), bad, public_values)
        assert error.kind == VerificationErrorKind.INVALID_PROOF

    def test_log_degree_out_of_range(self, config: StarkConfig) -> None:
        public_values, plain, _ = self._proofs(config)
        bad = dataclasses.replace(plain, log_degree=40)
        error = verify(NoTranscriptConfig(pcs=config.pcs), FibonacciAir(), bad, public_values)
        assert error.kind == VerificationErrorKind.INVALID_PROOF


class TestTranscriptAgreement:

    @pytest.mark.parametrize("air_name", ["fibonacci", "logup"])
    def test_prover_and_verifier_sample_the_same_challenges(self, air_name: str) -> None:
        config = _recording_config()
        air = AIRS[air_name]()
        _, public_values, proof = prove_fibonacci(config, air, 8)
        assert verify(config, air, proof, public_values) is None

        prover_samples, verifier_samples = config.samples
        assert prover_samples == verifier_samples
        # aux challenges (if any), alpha, zeta, beta, one gamma per FRI round
        assert len(prover_samples) == air.num_challenges() + 3 + proof.log_degree

    def test_proving_is_deterministic(self, config: StarkConfig) -> None:
        air = FibonacciLogUpAir()
        _, _, first = prove_fibonacci(config, air, 8)
        _, _, second = prove_fibonacci(config, air, 8)
        assert first.main_commit == second.main_commit
        assert first.aux_commit == second.aux_commit
        assert first.quotient_commits == second.quotient_commits
        assert first.opening_proof.fri_roots == second.opening_proof.fri_roots


class TestInputValidation:

    def test_wrong_width(self, config: StarkConfig) -> None:
        with pytest.raises(TraceShapeError):
            prove(config, FibonacciAir(), FF.Zeros((8, 3)), [0])

    def test_height_not_power_of_two(self, config: StarkConfig) -> None:
        with pytest.raises(TraceShapeError):
            prove(config, FibonacciAir(), FF.Zeros((6, 2)), [0])

    def test_not_a_matrix(self, config: StarkConfig) -> None:
        with pytest.raises(TraceShapeError):
            prove(config, FibonacciAir(), FF.Zeros(8), [0])

    def test_bad_aux_trace(self, config: StarkConfig) -> None:
        class ShortAux(FibonacciLogUpAir):
            def build_aux_trace(self, main_trace, challenges):
                return FF3.Zeros((main_trace.shape[0] // 2, 1))

        trace, public_values = FibonacciAir.generate_trace(8)
        with pytest.raises(TraceShapeError):
            prove(config, ShortAux(), trace, public_values)

    def test_aux_width_without_builder(self, config: StarkConfig) -> None:
        """Declaring aux columns without a builder raises a StarkError."""
        class MissingBuilder(FibonacciAir):
            def aux_width(self) -> int:
                return 1

        trace, public_values = FibonacciAir.generate_trace(8)
        with pytest.raises(StarkError):
            prove(config, MissingBuilder(), trace, public_values)

    def test_trace_shape_error_is_value_error(self) -> None:
        assert issubclass(TraceShapeError, ValueError)

    def test_unsupported_window(self, config: StarkConfig) -> None:
        class WideWindow(FibonacciAir):
            def eval(self, builder: AirBuilder) -> None:
                builder.when(builder.is_transition_window(3)).assert_zero(builder.main().get_local(0))

        trace, public_values = FibonacciAir.generate_trace(4)
        with pytest.raises(UnsupportedConfigurationError):
            prove(config, WideWindow(), trace, public_values)
