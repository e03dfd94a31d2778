from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from app.schemas.constraints import FacultyPreferences

DEFAULT_HOURS_PER_WEEK = 3


class DepartmentOut(BaseModel):
    id: str
    name: str
    code: str = ""

    model_config = {"from_attributes": True}


class SubjectOut(BaseModel):
    id: str
    name: str
    code: str = ""
    department: str
    semester: int = Field(ge=1, le=20)
    hours_per_week: int = Field(default=DEFAULT_HOURS_PER_WEEK, ge=0, le=40)
    requires_lab: bool = False

    model_config = {"from_attributes": True}

    @field_validator("hours_per_week", mode="before")
    @classmethod
    def default_hours(cls, value: int | None) -> int:
        # Unset or zero hours fall back to the institutional default.
        return value or DEFAULT_HOURS_PER_WEEK


class FacultyOut(BaseModel):
    id: str
    name: str
    department: str
    subjects: list[str] = Field(default_factory=list)
    preferences: FacultyPreferences = Field(default_factory=FacultyPreferences)

    model_config = {"from_attributes": True}

    @field_validator("preferences", mode="before")
    @classmethod
    def default_preferences(cls, value: dict | FacultyPreferences | None) -> dict | FacultyPreferences:
        return value or {}


class ClassroomOut(BaseModel):
    id: str
    name: str
    department: str | None = None
    capacity: int = Field(default=30, ge=0)
    is_lab: bool = False

    model_config = {"from_attributes": True}


class StudentOut(BaseModel):
    id: str
    name: str
    department: str
    semester: int

    model_config = {"from_attributes": True}
