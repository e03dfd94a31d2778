from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.schemas.constraints import ScheduleConstraints
from app.schemas.schedule import ScheduleMetrics, ScheduleOut, UnmetRequirement
from app.schemas.settings import GridDefinition


class ObjectiveWeights(BaseModel):
    base_score: float = Field(default=1000.0, ge=0.0, le=1_000_000.0)
    faculty_conflict: float = Field(default=100.0, ge=0.0, le=10_000.0)
    classroom_conflict: float = Field(default=100.0, ge=0.0, le=10_000.0)
    subject_overlap: float = Field(default=50.0, ge=0.0, le=10_000.0)
    back_to_back: float = Field(default=10.0, ge=0.0, le=1000.0)
    lunch_break: float = Field(default=20.0, ge=0.0, le=1000.0)
    preference: float = Field(default=5.0, ge=0.0, le=1000.0)
    workload_imbalance: float = Field(default=15.0, ge=0.0, le=1000.0)
    consecutive_overflow: float = Field(default=10.0, ge=0.0, le=1000.0)
    hour_deviation: float = Field(default=50.0, ge=0.0, le=10_000.0)
    even_distribution: float = Field(default=20.0, ge=0.0, le=1000.0)
    subject_spacing: float = Field(default=10.0, ge=0.0, le=1000.0)
    faculty_utilization: float = Field(default=15.0, ge=0.0, le=1000.0)
    classroom_utilization: float = Field(default=10.0, ge=0.0, le=1000.0)


class GenerationSettingsBase(BaseModel):
    population_size: int = Field(default=50, ge=2, le=2000)
    generations: int = Field(default=100, ge=1, le=5000)
    mutation_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    elite_count: int = Field(default=10, ge=0, le=500)
    tournament_size: int = Field(default=5, ge=1, le=100)
    stagnation_limit: int = Field(default=20, ge=1, le=1000)
    random_seed: int | None = Field(default=None, ge=0, le=2**63 - 1)
    workers: int | None = Field(default=None, ge=1, le=64)
    deadline_seconds: float | None = Field(default=None, gt=0.0, le=3600.0)
    objective_weights: ObjectiveWeights = Field(default_factory=ObjectiveWeights)

    @model_validator(mode="after")
    def validate_relationships(self) -> "GenerationSettingsBase":
        if self.elite_count >= self.population_size:
            raise ValueError("elite_count must be less than population_size")
        return self


class GenerateScheduleRequest(BaseModel):
    admin_id: str = Field(min_length=1, max_length=36)
    department: str = Field(min_length=1, max_length=200)
    semester: int = Field(ge=1, le=20)
    constraints: ScheduleConstraints | None = None
    grid: GridDefinition | None = None
    settings_override: GenerationSettingsBase | None = None


TerminationState = Literal[
    "converged",
    "stagnant_terminated",
    "generation_limit_reached",
    "deadline_reached",
    "cancelled",
    "empty_input",
]


class GenerateScheduleResponse(BaseModel):
    schedule: ScheduleOut
    metrics: ScheduleMetrics
    warnings: list[UnmetRequirement] = Field(default_factory=list)
    fitness: float
    initial_fitness: float
    generations_run: int
    termination: TerminationState
    settings_used: GenerationSettingsBase
    runtime_ms: int
