"""STARK proof generation for a main trace plus an optional auxiliary trace.

Transcript order, shared with the verifier:
1. main commitment, public values
2. (aux only) sample num_challenges challenges, aux commitment
3. sample alpha
4. quotient chunk commitments
5. sample zeta
6. opening: opened values, then the commitment scheme's own rounds
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import numpy as np

from air.base import MultiTraceAir, TraceWindow
from air.check import check_constraints
from air.folder import AlphaPowers, ProverFolder, count_constraints
from primitives.domain import LagrangeSelectors, TwoAdicCoset
from primitives.field import FF, FF3, GOLDILOCKS_PRIME, to_ext
from primitives.polynomial import split_coefficients, to_coefficients, to_evaluations
from protocol.config import StarkConfig
from protocol.errors import TraceShapeError, UnsupportedConfigurationError
from protocol.proof import Proof

logger = logging.getLogger(__name__)


def prove(
    config: StarkConfig,
    air: MultiTraceAir,
    main_trace,
    public_values: Sequence = (),
) -> Proof:
    """Generate a proof that main_trace satisfies air.

    Args:
        config: Shared protocol configuration
        air: Computation the trace belongs to
        main_trace: (height, air.width()) base field matrix; height a power of two
        public_values: Base field values bound into the transcript

    Returns:
        Proof

    Raises:
        TraceShapeError: If the main or auxiliary trace has the wrong shape
        UnsupportedConfigurationError: If the trace domain has no next-point map
        ConstraintViolation: If config.check_constraints is set and a row fails
    """
    main_trace = _validate_main_trace(air, main_trace)
    height = main_trace.shape[0]
    publics = [int(v) % GOLDILOCKS_PRIME for v in public_values]
    pcs = config.pcs
    transcript = config.challenger()

    # --- Stage 1: main trace ---
    logger.info("Committing main trace (%d x %d)", height, air.width())
    trace_domain = pcs.natural_domain_for_degree(height)
    main_commit, main_data = pcs.commit([(trace_domain, main_trace)])
    transcript.observe_commitment(main_commit)
    transcript.observe_slice(publics)

    # --- Stage 2: auxiliary trace ---
    challenges: List[FF3] = []
    aux_trace: Optional[FF3] = None
    aux_commit = None
    aux_data = None
    if air.aux_width() > 0:
        logger.info("Building auxiliary trace from %d challenges", air.num_challenges())
        challenges = transcript.sample_vec(air.num_challenges())
        aux_trace = air.build_aux_trace(main_trace, challenges)
        _validate_aux_trace(air, aux_trace, height)
        aux_commit, aux_data = pcs.commit([(trace_domain, aux_trace)])
        transcript.observe_commitment(aux_commit)

    public_ext = [FF3(v) for v in publics]
    if config.check_constraints:
        check_constraints(air, main_trace, aux_trace, challenges, public_values)

    # --- Stage 3: quotient ---
    alpha = transcript.sample()

    quotient_degree = config.quotient_degree
    quotient_domain = trace_domain.create_disjoint_domain(height * quotient_degree)
    logger.info("Computing quotient over %d points", quotient_domain.size)

    main_on_quotient = to_ext(pcs.get_evaluations_on_domain(main_data, 0, quotient_domain))
    aux_on_quotient = None
    if aux_data is not None:
        aux_on_quotient = pcs.get_evaluations_on_domain(aux_data, 0, quotient_domain)

    n_constraints = count_constraints(air, len(public_ext))
    alpha_powers = AlphaPowers(alpha, n_constraints)
    selectors = trace_domain.selectors_on_coset(quotient_domain)

    quotient_values = _quotient_values(
        air,
        quotient_domain,
        quotient_degree,
        main_on_quotient,
        aux_on_quotient,
        selectors,
        alpha_powers,
        challenges,
        public_ext,
        config.num_workers,
    )

    # --- Stage 4: quotient chunks ---
    chunk_domains = quotient_domain.split_domains(quotient_degree)
    quotient_coeffs = to_coefficients(quotient_values, quotient_domain)
    quotient_commits = []
    quotient_data = []
    for chunk_coeffs, chunk_domain in zip(split_coefficients(quotient_coeffs, quotient_degree), chunk_domains):
        chunk = to_evaluations(chunk_coeffs.reshape(-1, 1), chunk_domain)
        commit, data = pcs.commit([(chunk_domain, chunk)])
        quotient_commits.append(commit)
        quotient_data.append(data)
    for commit in quotient_commits:
        transcript.observe_commitment(commit)

    # --- Stage 5: opening ---
    zeta = transcript.sample()
    zeta_next = trace_domain.next_point(zeta)
    if zeta_next is None:
        raise UnsupportedConfigurationError("trace domain has no next-point map")

    rounds = [(main_data, [[zeta, zeta_next]])]
    if aux_data is not None:
        rounds.append((aux_data, [[zeta, zeta_next]]))
    rounds.extend((data, [[zeta]]) for data in quotient_data)

    logger.info("Opening %d commitments", len(rounds))
    opened, opening_proof = pcs.open(rounds, transcript)

    main_local, main_next = opened[0][0]
    aux_local = aux_next = None
    if aux_data is not None:
        aux_local, aux_next = opened[1][0]
    first_chunk = 2 if aux_data is not None else 1
    quotient_chunks = [batch[0][0] for batch in opened[first_chunk:]]

    return Proof(
        main_commit=main_commit,
        aux_commit=aux_commit,
        quotient_commits=quotient_commits,
        main_local=main_local,
        main_next=main_next,
        aux_local=aux_local,
        aux_next=aux_next,
        quotient_chunks=quotient_chunks,
        opening_proof=opening_proof,
        log_degree=trace_domain.log_n,
    )


# --- Quotient ---

def _quotient_values(
    air: MultiTraceAir,
    quotient_domain: TwoAdicCoset,
    quotient_degree: int,
    main_on_quotient: FF3,
    aux_on_quotient: Optional[FF3],
    selectors: LagrangeSelectors,
    alpha_powers: AlphaPowers,
    challenges: List[FF3],
    public_values: List[FF3],
    num_workers: int,
) -> FF3:
    """C(x) / Z(x) at every quotient domain point, in domain order.

    The next row of point i is point i + quotient_degree, one trace step
    further along the coset. The domain is sharded into contiguous index
    ranges that are evaluated independently and concatenated in order.
    """
    size = quotient_domain.size
    # Rows i + quotient_degree for every i, wrapping around
    main_next = np.roll(main_on_quotient, -quotient_degree, axis=0)
    aux_next = None
    if aux_on_quotient is not None:
        aux_next = np.roll(aux_on_quotient, -quotient_degree, axis=0)

    sel = LagrangeSelectors(
        is_first_row=to_ext(selectors.is_first_row),
        is_last_row=to_ext(selectors.is_last_row),
        is_transition=to_ext(selectors.is_transition),
        inv_vanishing=to_ext(selectors.inv_vanishing),
    )

    def evaluate(start: int, stop: int) -> FF3:
        main = _window(main_on_quotient, main_next, start, stop)
        aux = None
        if aux_on_quotient is not None:
            aux = _window(aux_on_quotient, aux_next, start, stop)
        chunk_selectors = LagrangeSelectors(
            sel.is_first_row[start:stop],
            sel.is_last_row[start:stop],
            sel.is_transition[start:stop],
            sel.inv_vanishing[start:stop],
        )
        folder = ProverFolder(
            main, aux, chunk_selectors, alpha_powers, challenges, public_values, stop - start
        )
        air.eval(folder)
        return folder.accumulator * chunk_selectors.inv_vanishing

    bounds = _shard_bounds(size, num_workers)
    if len(bounds) == 1:
        return evaluate(*bounds[0])

    out = FF3.Zeros(size)
    with ThreadPoolExecutor(max_workers=len(bounds)) as executor:
        futures = [executor.submit(evaluate, start, stop) for start, stop in bounds]
        for (start, stop), future in zip(bounds, futures):
            out[start:stop] = future.result()
    return out


def _window(local: FF3, next_rows: FF3, start: int, stop: int) -> TraceWindow:
    width = local.shape[1]
    return TraceWindow(
        [local[start:stop, c] for c in range(width)],
        [next_rows[start:stop, c] for c in range(width)],
    )


def _shard_bounds(size: int, num_workers: int):
    """Split [0, size) into at most num_workers contiguous ranges."""
    n = max(1, min(num_workers, size))
    step = -(-size // n)
    return [(s, min(s + step, size)) for s in range(0, size, step)]


# --- Validation ---

def _validate_main_trace(air: MultiTraceAir, main_trace) -> FF:
    if not isinstance(main_trace, FF):
        main_trace = FF(main_trace)
    if main_trace.ndim != 2:
        raise TraceShapeError(f"main trace must be 2D, got {main_trace.ndim}D")
    height, width = main_trace.shape
    if width != air.width():
        raise TraceShapeError(f"main trace has width {width}, computation declares {air.width()}")
    if height == 0 or height & (height - 1):
        raise TraceShapeError(f"trace height must be a power of two, got {height}")
    return main_trace


def _validate_aux_trace(air: MultiTraceAir, aux_trace, height: int) -> None:
    if not isinstance(aux_trace, FF3) or aux_trace.ndim != 2:
        raise TraceShapeError("auxiliary trace must be a 2D FF3 matrix")
    if aux_trace.shape[1] != air.aux_width():
        raise TraceShapeError(
            f"auxiliary trace has width {aux_trace.shape[1]}, computation declares {air.aux_width()}"
        )
    if aux_trace.shape[0] != height:
        raise TraceShapeError(
            f"auxiliary trace has height {aux_trace.shape[0]}, main trace has {height}"
        )
