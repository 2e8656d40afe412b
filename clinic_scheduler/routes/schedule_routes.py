from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.database import get_db
from clinic_scheduler.models.date_exception import DateException
from clinic_scheduler.models.weekly_template import WeeklyTemplate
from clinic_scheduler.routes.availability_routes import ensure_database_ready
from clinic_scheduler.services.slots.clock import normalize_clock, parse_date, to_minutes
from clinic_scheduler.services.slots.errors import InvalidFormat
from clinic_scheduler.services.slots.invalidator import invalidate_dates, invalidate_weekday
from clinic_scheduler.services.slots.resolver import get_date_exception, get_weekly_template

router = APIRouter(tags=['schedule'])


def _clock_or_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    try:
        return normalize_clock(value)
    except InvalidFormat as exc:
        raise ValueError(str(exc)) from exc


def _validate_break(start_time: str, end_time: str, break_enabled: bool, break_start, break_duration) -> None:
    if not break_enabled:
        return
    if break_start is None:
        raise ValueError('break_start is required when the break is enabled.')
    if not break_duration or break_duration <= 0:
        raise ValueError('break_duration_minutes must be positive when the break is enabled.')
    if not to_minutes(start_time) <= to_minutes(break_start) < to_minutes(end_time):
        raise ValueError('break_start must fall inside the working window.')


class WeeklyTemplateRequest(BaseModel):
    start_time: str
    end_time: str
    break_enabled: bool = False
    break_start: str | None = None
    break_duration_minutes: int = 0

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_clock(cls, value: str) -> str:
        normalized = _clock_or_none(value)
        if normalized is None:
            raise ValueError('Time is required.')
        return normalized

    @field_validator('break_start')
    @classmethod
    def validate_break_start(cls, value: str | None) -> str | None:
        return _clock_or_none(value)

    @model_validator(mode='after')
    def validate_window(self):
        if to_minutes(self.start_time) >= to_minutes(self.end_time):
            raise ValueError('start_time must be before end_time.')
        _validate_break(
            self.start_time,
            self.end_time,
            self.break_enabled,
            self.break_start,
            self.break_duration_minutes,
        )
        return self


class WeeklyTemplateResponse(BaseModel):
    id: int
    provider_id: str
    day_of_week: int
    start_time: str
    end_time: str
    break_enabled: bool
    break_start: str | None = None
    break_duration_minutes: int | None = None

    class Config:
        from_attributes = True


class DateExceptionRequest(BaseModel):
    is_unavailable: bool = False
    override_start_time: str | None = None
    override_end_time: str | None = None
    break_enabled: bool = False
    break_start: str | None = None
    break_duration_minutes: int = 0

    @field_validator('override_start_time', 'override_end_time', 'break_start')
    @classmethod
    def validate_clock(cls, value: str | None) -> str | None:
        return _clock_or_none(value)

    @model_validator(mode='after')
    def validate_window(self):
        if self.is_unavailable:
            return self
        if self.override_start_time is None or self.override_end_time is None:
            raise ValueError('An available exception needs override_start_time and override_end_time.')
        if to_minutes(self.override_start_time) >= to_minutes(self.override_end_time):
            raise ValueError('override_start_time must be before override_end_time.')
        _validate_break(
            self.override_start_time,
            self.override_end_time,
            self.break_enabled,
            self.break_start,
            self.break_duration_minutes,
        )
        return self


class DateExceptionResponse(BaseModel):
    id: int
    provider_id: str
    date: str
    is_unavailable: bool
    override_start_time: str | None = None
    override_end_time: str | None = None
    break_enabled: bool
    break_start: str | None = None
    break_duration_minutes: int | None = None


def _exception_response(exception: DateException) -> DateExceptionResponse:
    return DateExceptionResponse(
        id=exception.id,
        provider_id=exception.provider_id,
        date=exception.date.isoformat(),
        is_unavailable=exception.is_unavailable,
        override_start_time=exception.override_start_time,
        override_end_time=exception.override_end_time,
        break_enabled=exception.break_enabled,
        break_start=exception.break_start,
        break_duration_minutes=exception.break_duration_minutes,
    )


def _parse_date_or_400(value: str):
    try:
        return parse_date(value)
    except InvalidFormat as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get('/{provider_id}/weekly', response_model=list[WeeklyTemplateResponse])
def list_weekly_templates(provider_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return db.query(WeeklyTemplate).filter(
            WeeklyTemplate.provider_id == provider_id,
        ).order_by(WeeklyTemplate.day_of_week.asc()).all()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


@router.put('/{provider_id}/weekly/{day_of_week}', response_model=WeeklyTemplateResponse)
def save_weekly_template(
    provider_id: str,
    data: WeeklyTemplateRequest,
    day_of_week: int = Path(..., ge=0, le=6),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        template = get_weekly_template(db, provider_id, day_of_week)
        if template is None:
            template = WeeklyTemplate(provider_id=provider_id, day_of_week=day_of_week)
            db.add(template)

        template.start_time = data.start_time
        template.end_time = data.end_time
        template.break_enabled = data.break_enabled
        template.break_start = data.break_start if data.break_enabled else None
        template.break_duration_minutes = data.break_duration_minutes if data.break_enabled else 0

        db.commit()
        db.refresh(template)

        invalidate_weekday(db, provider_id, day_of_week)
        return template
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


@router.delete('/{provider_id}/weekly/{day_of_week}', status_code=status.HTTP_204_NO_CONTENT)
def remove_weekly_template(
    provider_id: str,
    day_of_week: int = Path(..., ge=0, le=6),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        template = get_weekly_template(db, provider_id, day_of_week)
        if template is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Weekly template not found.',
            )

        db.delete(template)
        db.commit()
        invalidate_weekday(db, provider_id, day_of_week)
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


@router.put('/{provider_id}/exceptions/{exception_date}', response_model=DateExceptionResponse)
def save_date_exception(
    provider_id: str,
    exception_date: str,
    data: DateExceptionRequest,
    db: Session = Depends(get_db),
):
    target_date = _parse_date_or_400(exception_date)
    ensure_database_ready()

    try:
        exception = get_date_exception(db, provider_id, target_date)
        if exception is None:
            exception = DateException(provider_id=provider_id, date=target_date)
            db.add(exception)

        exception.is_unavailable = data.is_unavailable
        exception.override_start_time = None if data.is_unavailable else data.override_start_time
        exception.override_end_time = None if data.is_unavailable else data.override_end_time
        exception.break_enabled = data.break_enabled and not data.is_unavailable
        exception.break_start = data.break_start if exception.break_enabled else None
        exception.break_duration_minutes = data.break_duration_minutes if exception.break_enabled else 0

        db.commit()
        db.refresh(exception)

        invalidate_dates(db, provider_id, [target_date])
        return _exception_response(exception)
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


@router.delete('/{provider_id}/exceptions/{exception_date}', status_code=status.HTTP_204_NO_CONTENT)
def remove_date_exception(provider_id: str, exception_date: str, db: Session = Depends(get_db)):
    target_date = _parse_date_or_400(exception_date)
    ensure_database_ready()

    try:
        exception = get_date_exception(db, provider_id, target_date)
        if exception is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Date exception not found.',
            )

        db.delete(exception)
        db.commit()
        invalidate_dates(db, provider_id, [target_date])
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc
