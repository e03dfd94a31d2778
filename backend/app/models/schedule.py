import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Float, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class ScheduleStatus(str, Enum):
    draft = "draft"
    published = "published"


class Schedule(Base):
    __tablename__ = "schedules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    admin_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    department: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    semester: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    weekly_schedule: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # Id-level placements backing weekly_schedule; used to reserve resources for later runs.
    assignments: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"),
        nullable=False,
        default=ScheduleStatus.draft,
    )
    generated_by: Mapped[str] = mapped_column(String(20), nullable=False, default="AI")
    constraints: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    grid: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    metrics: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    warnings: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    fitness: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
