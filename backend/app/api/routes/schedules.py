import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.exceptions import ScheduleNotFoundError, SchedulePublishedError
from app.models.schedule import Schedule, ScheduleStatus
from app.schemas.generator import GenerateScheduleRequest, GenerateScheduleResponse
from app.schemas.schedule import ScheduleAnalysis, ScheduleOut, ScheduleStatusUpdate
from app.services.schedule_analysis import analyze_schedule
from app.services.schedule_service import generate_schedule

router = APIRouter()
logger = logging.getLogger(__name__)


def _load_schedule(db: Session, schedule_id: str) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise ScheduleNotFoundError(schedule_id)
    return schedule


@router.post("/generate", response_model=GenerateScheduleResponse, status_code=status.HTTP_201_CREATED)
def generate(payload: GenerateScheduleRequest, db: Session = Depends(get_db)) -> GenerateScheduleResponse:
    return generate_schedule(
        db,
        admin_id=payload.admin_id,
        department=payload.department,
        semester=payload.semester,
        constraints=payload.constraints,
        settings=payload.settings_override,
        grid=payload.grid,
    )


@router.get("", response_model=list[ScheduleOut])
def list_schedules(
    admin_id: str = Query(min_length=1),
    department: str | None = Query(default=None),
    semester: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
) -> list[Schedule]:
    query = select(Schedule).where(Schedule.admin_id == admin_id)
    if department is not None:
        query = query.where(Schedule.department == department)
    if semester is not None:
        query = query.where(Schedule.semester == semester)
    return list(db.execute(query.order_by(Schedule.created_at.desc())).scalars().all())


@router.get("/{schedule_id}", response_model=ScheduleOut)
def get_schedule(schedule_id: str, db: Session = Depends(get_db)) -> Schedule:
    return _load_schedule(db, schedule_id)


@router.get("/{schedule_id}/analysis", response_model=ScheduleAnalysis)
def get_schedule_analysis(schedule_id: str, db: Session = Depends(get_db)) -> ScheduleAnalysis:
    return analyze_schedule(db, schedule_id)


@router.patch("/{schedule_id}/status", response_model=ScheduleOut)
def update_schedule_status(
    schedule_id: str,
    payload: ScheduleStatusUpdate,
    db: Session = Depends(get_db),
) -> Schedule:
    schedule = _load_schedule(db, schedule_id)
    schedule.status = payload.status
    db.commit()
    db.refresh(schedule)
    logger.info("Schedule %s marked %s", schedule_id, payload.status.value)
    return schedule


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(schedule_id: str, db: Session = Depends(get_db)) -> None:
    schedule = _load_schedule(db, schedule_id)
    if schedule.status == ScheduleStatus.published:
        raise SchedulePublishedError(schedule_id)
    db.delete(schedule)
    db.commit()
