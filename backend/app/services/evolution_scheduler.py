from __future__ import annotations

from concurrent.futures import Executor, ProcessPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass, field
import logging
import random
import threading
from time import perf_counter

from app.core.exceptions import SchedulerError
from app.schemas.catalog import ClassroomOut, FacultyOut, StudentOut, SubjectOut
from app.schemas.constraints import ScheduleConstraints
from app.schemas.generator import GenerationSettingsBase, TerminationState
from app.schemas.schedule import UnmetRequirement
from app.services.fitness import EvaluationResult, FitnessEvaluator, ReservedBookings, ViolationReport
from app.services.genetic_operators import (
    EligibilityIndex,
    crossover,
    initialize_candidate,
    mutate,
    tournament_select,
)
from app.services.schedule_grid import Candidate, WeekGrid

logger = logging.getLogger(__name__)

PROGRESS_LOG_INTERVAL = 10

_worker_evaluator: FitnessEvaluator | None = None


def _install_worker_evaluator(evaluator: FitnessEvaluator) -> None:
    global _worker_evaluator
    _worker_evaluator = evaluator


def _evaluate_in_worker(candidate: Candidate) -> EvaluationResult:
    if _worker_evaluator is None:
        raise RuntimeError("Worker evaluator was not installed")
    return _worker_evaluator.evaluate(candidate)


@dataclass
class OptimizationResult:
    best: Candidate | None
    best_fitness: float
    initial_fitness: float
    report: ViolationReport | None
    history: list[float] = field(default_factory=list)
    generations_run: int = 0
    state: TerminationState = "generation_limit_reached"
    unmet: list[UnmetRequirement] = field(default_factory=list)
    runtime_ms: int = 0


class GeneticScheduler:
    """Evolves a population of candidate timetables for one department and semester."""

    def __init__(
        self,
        *,
        grid: WeekGrid,
        subjects: list[SubjectOut],
        faculty: list[FacultyOut],
        classrooms: list[ClassroomOut],
        students: list[StudentOut] | None = None,
        constraints: ScheduleConstraints | None = None,
        settings: GenerationSettingsBase | None = None,
        reserved: ReservedBookings | None = None,
        workers: int = 1,
        deadline_seconds: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.settings = settings or GenerationSettingsBase()
        if grid.cell_count == 0:
            raise SchedulerError(message="Timetable grid has no usable slots")
        if workers < 1:
            raise SchedulerError(message="Worker count must be at least 1")

        self.grid = grid
        self.subjects = subjects
        self.faculty = faculty
        self.classrooms = classrooms
        self.constraints = constraints or ScheduleConstraints()
        self.workers = workers
        self.deadline_seconds = deadline_seconds
        self.cancel_event = cancel_event
        self.random = random.Random(self.settings.random_seed)

        self.eligibility = EligibilityIndex.build(subjects, faculty, classrooms)
        self.evaluator = FitnessEvaluator(
            grid=grid,
            subjects=subjects,
            faculty=faculty,
            classrooms=classrooms,
            students=students or [],
            constraints=self.constraints,
            weights=self.settings.objective_weights,
            reserved=reserved,
        )

    def _build_initial_population(self) -> tuple[list[Candidate], list[UnmetRequirement]]:
        population: list[Candidate] = []
        unmet: list[UnmetRequirement] = []
        for index in range(self.settings.population_size):
            member_rng = random.Random(self.random.getrandbits(64))
            candidate, member_unmet = initialize_candidate(
                self.grid,
                self.subjects,
                self.faculty,
                self.classrooms,
                self.constraints,
                member_rng,
                eligibility=self.eligibility,
            )
            if index == 0:
                # Placement order is fixed, so every member leaves the same hours unmet.
                unmet = member_unmet
            population.append(candidate)
        return population, unmet

    def _executor(self):
        if self.workers <= 1:
            return nullcontext(None)
        return ProcessPoolExecutor(
            max_workers=self.workers,
            initializer=_install_worker_evaluator,
            initargs=(self.evaluator,),
        )

    def _evaluate_population(
        self,
        population: list[Candidate],
        executor: Executor | None,
    ) -> list[EvaluationResult]:
        if executor is None:
            return [self.evaluator.evaluate(item) for item in population]
        chunksize = max(1, len(population) // (self.workers * 4))
        return list(executor.map(_evaluate_in_worker, population, chunksize=chunksize))

    def _next_generation(self, ranked_population: list[Candidate], ranked_fitness: list[float]) -> list[Candidate]:
        next_population = ranked_population[: self.settings.elite_count]
        while len(next_population) < self.settings.population_size:
            parent_a = tournament_select(ranked_population, ranked_fitness, self.random, self.settings.tournament_size)
            parent_b = tournament_select(ranked_population, ranked_fitness, self.random, self.settings.tournament_size)
            child = crossover(parent_a, parent_b, self.random)
            mutate(child, self.random, self.settings.mutation_rate, self.eligibility)
            next_population.append(child)
        return next_population

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def run(self) -> OptimizationResult:
        start = perf_counter()
        if not self.subjects:
            logger.warning("No subjects supplied; skipping optimization")
            return OptimizationResult(
                best=None,
                best_fitness=0.0,
                initial_fitness=0.0,
                report=None,
                state="empty_input",
            )

        deadline = start + self.deadline_seconds if self.deadline_seconds else None
        population, unmet = self._build_initial_population()
        best: Candidate | None = None
        best_fitness = float("-inf")
        best_report: ViolationReport | None = None
        initial_fitness = 0.0
        history: list[float] = []
        stagnant = 0
        state: TerminationState = "generation_limit_reached"
        convergence_patience = max(1, self.settings.stagnation_limit // 2)

        with self._executor() as executor:
            for generation in range(self.settings.generations):
                evaluations = self._evaluate_population(population, executor)
                ranked_indices = sorted(range(len(population)), key=lambda idx: evaluations[idx].fitness, reverse=True)
                ranked_population = [population[idx] for idx in ranked_indices]
                ranked_fitness = [evaluations[idx].fitness for idx in ranked_indices]

                generation_best = evaluations[ranked_indices[0]]
                if generation == 0:
                    initial_fitness = generation_best.fitness
                if generation_best.fitness > best_fitness:
                    best = ranked_population[0].clone()
                    best_fitness = generation_best.fitness
                    best_report = generation_best.report
                    stagnant = 0
                else:
                    stagnant += 1
                history.append(best_fitness)

                if generation % PROGRESS_LOG_INTERVAL == 0:
                    logger.info(
                        "Generation %s: best fitness %.2f, hard %s, soft %s",
                        generation,
                        best_fitness,
                        best_report.hard_violations,
                        best_report.soft_violations,
                    )

                if (
                    best_report.hard_violations == 0
                    and best_report.soft_violations == 0
                    and stagnant >= convergence_patience
                ):
                    state = "converged"
                    break
                if stagnant > self.settings.stagnation_limit:
                    state = "stagnant_terminated"
                    break
                if self._cancelled():
                    state = "cancelled"
                    break
                if deadline is not None and perf_counter() >= deadline:
                    state = "deadline_reached"
                    break
                if generation + 1 < self.settings.generations:
                    population = self._next_generation(ranked_population, ranked_fitness)

        runtime_ms = int((perf_counter() - start) * 1000)
        logger.info(
            "Optimization finished: state=%s generations=%s fitness=%.2f runtime_ms=%s",
            state,
            len(history),
            best_fitness,
            runtime_ms,
        )
        return OptimizationResult(
            best=best,
            best_fitness=best_fitness,
            initial_fitness=initial_fitness,
            report=best_report,
            history=history,
            generations_run=len(history),
            state=state,
            unmet=unmet,
            runtime_ms=runtime_ms,
        )
