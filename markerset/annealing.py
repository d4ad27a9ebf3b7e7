"""
Simulated Annealing Marker Panel Optimizer

Searches fixed-size marker panels for the best weighted combination of
within-group diversity and between-group differentiation.

A run moves through three phases:
    INITIALIZED: draw a uniform random panel, score it, make it current and best
    RUNNING:     propose a single swap, accept it by the Metropolis rule,
                 keep the best panel seen, cool T <- T * alpha
    TERMINATED:  iteration budget, temperature floor, time budget or
                 cancellation reached; return the best panel

Every random draw comes from one numpy Generator seeded per run, so a seed
and configuration fully determine the trajectory.
"""

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

import numpy as np

from .candidate_set import CandidateMarkerSet, RandomMoveGenerator
from .errors import ConfigurationError
from .frequency_matrix import AlleleFrequencyMatrix, MarkerPool
from .scoring import Evaluator, Score


class RunPhase(Enum):
    """Phases of an optimizer run"""
    INITIALIZED = "initialized"
    RUNNING = "running"
    TERMINATED = "terminated"


class StopReason(Enum):
    """Why a run terminated"""
    MAX_ITERATIONS = "max_iterations"
    MIN_TEMPERATURE = "min_temperature"
    TIME_BUDGET = "time_budget"
    CANCELLED = "cancelled"
    NO_LEGAL_MOVE = "no_legal_move"


@dataclass
class AnnealingConfig:
    """
    Parameters of one annealing run

    Attributes:
        panel_size: Number of markers to select (M)
        initial_temperature: Starting temperature T0 (> 0)
        cooling_factor: Geometric cooling factor alpha in (0, 1)
        max_iterations: Number of proposals before stopping
        min_temperature: Optional temperature floor that ends the run
        max_seconds: Optional wall-clock budget that ends the run
        diversity_weight: Weight w of the diversity term in [0, 1]
        random_seed: Seed for the run's random generator
        record_trace: Keep a per-iteration trace in the result
    """
    panel_size: int
    initial_temperature: float = 1.0
    cooling_factor: float = 0.95
    max_iterations: int = 1000
    min_temperature: Optional[float] = None
    max_seconds: Optional[float] = None
    diversity_weight: float = 0.5
    random_seed: Optional[int] = 0
    record_trace: bool = True

    def validate(self, pool_size: int):
        """Raise ConfigurationError for any parameter outside its domain"""
        if self.panel_size <= 0:
            raise ConfigurationError(f"Panel size must be positive, got {self.panel_size}")
        if self.panel_size > pool_size:
            raise ConfigurationError(
                f"Panel size ({self.panel_size}) exceeds marker pool size ({pool_size})"
            )
        if not self.initial_temperature > 0:
            raise ConfigurationError(
                f"Initial temperature must be positive, got {self.initial_temperature}"
            )
        if not 0.0 < self.cooling_factor < 1.0:
            raise ConfigurationError(
                f"Cooling factor must lie in (0, 1), got {self.cooling_factor}"
            )
        if self.max_iterations < 0:
            raise ConfigurationError(
                f"Maximum iterations must be non-negative, got {self.max_iterations}"
            )
        if self.min_temperature is not None and self.min_temperature < 0:
            raise ConfigurationError(
                f"Minimum temperature must be non-negative, got {self.min_temperature}"
            )
        if self.max_seconds is not None and self.max_seconds <= 0:
            raise ConfigurationError(
                f"Time budget must be positive, got {self.max_seconds}"
            )
        if not 0.0 <= self.diversity_weight <= 1.0:
            raise ConfigurationError(
                f"Diversity weight must lie in [0, 1], got {self.diversity_weight}"
            )


@dataclass
class TraceEntry:
    """One row of the annealing trace"""
    iteration: int
    temperature: float
    current_objective: float
    best_objective: float
    accepted: bool


@dataclass
class OptimizationState:
    """Mutable search state owned by a single run"""
    current: CandidateMarkerSet
    current_objective: float
    current_score: Score
    temperature: float
    best_members: Tuple[int, ...]
    best_objective: float
    best_score: Score
    initial_objective: float
    iteration: int = 0
    accepted_moves: int = 0
    improving_moves: int = 0
    phase: RunPhase = RunPhase.INITIALIZED
    trace: List[TraceEntry] = field(default_factory=list)


@dataclass
class OptimizationResult:
    """Best panel found by a run"""
    marker_ids: List[str]
    rows: Tuple[int, ...]
    score: Score
    objective: float
    initial_objective: float
    iterations: int
    accepted_moves: int
    improving_moves: int
    final_temperature: float
    stop_reason: StopReason
    random_seed: Optional[int]
    elapsed_seconds: float
    trace: List[TraceEntry] = field(default_factory=list)
    config: Optional[AnnealingConfig] = None

    @property
    def acceptance_rate(self) -> float:
        return self.accepted_moves / self.iterations if self.iterations else 0.0

    def summary(self) -> dict:
        """Plain-dict view for logs and JSON metadata"""
        return {
            'marker_ids': list(self.marker_ids),
            'diversity': self.score.diversity,
            'differentiation': self.score.differentiation,
            'objective': self.objective,
            'initial_objective': self.initial_objective,
            'iterations': self.iterations,
            'accepted_moves': self.accepted_moves,
            'improving_moves': self.improving_moves,
            'acceptance_rate': self.acceptance_rate,
            'final_temperature': self.final_temperature,
            'stop_reason': self.stop_reason.value,
            'random_seed': self.random_seed,
            'elapsed_seconds': self.elapsed_seconds,
        }


def metropolis_accept(delta: float, temperature: float, rng: np.random.Generator) -> bool:
    """
    Metropolis acceptance for a move that changes the objective by delta

    Moves that do not worsen the objective are always accepted and consume
    no random draw; a worse move is accepted when a uniform draw falls below
    exp(delta / T).
    """
    if delta >= 0:
        return True
    return rng.random() < math.exp(delta / temperature)


class MarkerSetOptimizer:
    """Simulated annealing over fixed-size marker panels"""

    def __init__(self,
                 matrix: AlleleFrequencyMatrix,
                 config: AnnealingConfig,
                 pool: Optional[MarkerPool] = None):
        """
        Initialize the optimizer

        Args:
            matrix: Read-only allele frequency table
            config: Annealing parameters
            pool: Markers eligible for selection (defaults to every matrix row)
        """
        self.matrix = matrix
        self.pool = pool if pool is not None else MarkerPool.from_matrix(matrix)
        self.config = config
        config.validate(len(self.pool))

        self.evaluator = Evaluator(matrix, config.diversity_weight)
        self.move_generator = RandomMoveGenerator()

    def evaluate_positions(self, positions) -> Tuple[float, Score]:
        """Objective and score of a panel given as pool positions"""
        return self.evaluator.evaluate(self.pool.rows[np.asarray(positions, dtype=int)])

    def optimize(self, cancel_event: Any = None) -> OptimizationResult:
        """
        Run the search to termination

        Args:
            cancel_event: Optional object with an ``is_set()`` method (e.g.
                threading.Event); checked once per iteration boundary

        Returns:
            OptimizationResult holding the best panel seen
        """
        start_time = time.monotonic()
        rng = np.random.default_rng(self.config.random_seed)

        state = self._initialize(rng)
        state.phase = RunPhase.RUNNING
        stop_reason = self._run(state, rng, start_time, cancel_event)
        state.phase = RunPhase.TERMINATED

        return self._build_result(state, stop_reason, time.monotonic() - start_time)

    def _initialize(self, rng: np.random.Generator) -> OptimizationState:
        current = CandidateMarkerSet.random(self.config.panel_size, len(self.pool), rng)
        objective, score = self.evaluate_positions(current.members)

        state = OptimizationState(
            current=current,
            current_objective=objective,
            current_score=score,
            temperature=float(self.config.initial_temperature),
            best_members=current.members,
            best_objective=objective,
            best_score=score,
            initial_objective=objective
        )
        self._record(state, accepted=True)
        return state

    def _run(self,
             state: OptimizationState,
             rng: np.random.Generator,
             start_time: float,
             cancel_event: Any) -> StopReason:
        while True:
            stop_reason = self._check_stop(state, start_time, cancel_event)
            if stop_reason is not None:
                return stop_reason

            move = self.move_generator.propose(state.current, rng)
            candidate_members = state.current.members_with(move)
            objective, score = self.evaluate_positions(candidate_members)

            delta = objective - state.current_objective
            accepted = metropolis_accept(delta, state.temperature, rng)

            if accepted:
                state.current.apply(move)
                state.current_objective = objective
                state.current_score = score
                state.accepted_moves += 1
                if delta > 0:
                    state.improving_moves += 1

                if objective > state.best_objective:
                    state.best_members = tuple(candidate_members)
                    state.best_objective = objective
                    state.best_score = score

            state.temperature *= self.config.cooling_factor
            state.iteration += 1
            self._record(state, accepted)

    def _check_stop(self,
                    state: OptimizationState,
                    start_time: float,
                    cancel_event: Any) -> Optional[StopReason]:
        config = self.config

        if state.current.n_outsiders == 0:
            return StopReason.NO_LEGAL_MOVE
        if state.iteration >= config.max_iterations:
            return StopReason.MAX_ITERATIONS
        # a temperature that underflowed to zero ends the run like a floor
        if state.temperature <= 0.0:
            return StopReason.MIN_TEMPERATURE
        if config.min_temperature is not None and state.temperature < config.min_temperature:
            return StopReason.MIN_TEMPERATURE
        if config.max_seconds is not None and time.monotonic() - start_time >= config.max_seconds:
            return StopReason.TIME_BUDGET
        if cancel_event is not None and cancel_event.is_set():
            return StopReason.CANCELLED
        return None

    def _record(self, state: OptimizationState, accepted: bool):
        if not self.config.record_trace:
            return
        state.trace.append(TraceEntry(
            iteration=state.iteration,
            temperature=state.temperature,
            current_objective=state.current_objective,
            best_objective=state.best_objective,
            accepted=accepted
        ))

    def _build_result(self,
                      state: OptimizationState,
                      stop_reason: StopReason,
                      elapsed: float) -> OptimizationResult:
        positions = sorted(state.best_members)

        return OptimizationResult(
            marker_ids=self.pool.ids_at(positions),
            rows=tuple(int(r) for r in self.pool.rows[positions]),
            score=state.best_score,
            objective=state.best_objective,
            initial_objective=state.initial_objective,
            iterations=state.iteration,
            accepted_moves=state.accepted_moves,
            improving_moves=state.improving_moves,
            final_temperature=state.temperature,
            stop_reason=stop_reason,
            random_seed=self.config.random_seed,
            elapsed_seconds=elapsed,
            trace=state.trace,
            config=self.config
        )
