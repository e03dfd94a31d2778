from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.models.schedule import ScheduleStatus
from app.schemas.settings import TIME_PATTERN


class ScheduleEntry(BaseModel):
    startTime: str
    endTime: str
    subject: str = Field(min_length=1, max_length=200)
    faculty: str = Field(min_length=1, max_length=200)
    classroom: str = Field(min_length=1, max_length=100)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value


WeeklySchedule = dict[str, list[ScheduleEntry]]


class UnmetRequirement(BaseModel):
    subject_id: str
    subject_name: str
    hours_unassigned: int = Field(ge=1)
    reason: Literal["no_eligible_faculty", "no_eligible_classroom", "grid_full"]


class ScheduleMetrics(BaseModel):
    faculty_conflicts: int = 0
    classroom_conflicts: int = 0
    total_conflicts: int = 0
    constraint_violations: int = 0
    lunch_break_violations: int = 0
    back_to_back_violations: int = 0
    workload_overflow_hours: int = 0
    consecutive_overflow_hours: int = 0
    hour_deviation: int = 0
    preference_violations: int = 0
    faculty_utilization: float = Field(default=0.0, ge=0.0, le=100.0)
    classroom_utilization: float = Field(default=0.0, ge=0.0, le=100.0)
    balance_score: float = Field(default=0.0, ge=0.0, le=100.0)
    assigned_hours: int = 0
    unassigned_hours: int = 0


class ScheduleOut(BaseModel):
    id: str
    admin_id: str
    department: str
    semester: int
    weekly_schedule: WeeklySchedule
    status: ScheduleStatus
    generated_by: str
    constraints: dict = Field(default_factory=dict)
    metrics: ScheduleMetrics | None = None
    warnings: list[UnmetRequirement] = Field(default_factory=list)
    fitness: float = 0.0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("metrics", mode="before")
    @classmethod
    def empty_metrics(cls, value: dict | ScheduleMetrics | None) -> dict | ScheduleMetrics | None:
        return value or None


class ScheduleAnalysis(BaseModel):
    schedule_id: str
    metrics: ScheduleMetrics
    suggestions: list[str] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class ScheduleStatusUpdate(BaseModel):
    status: ScheduleStatus
