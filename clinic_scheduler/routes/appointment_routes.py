from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.database import get_db
from clinic_scheduler.routes.availability_routes import ensure_database_ready
from clinic_scheduler.services.slots.clock import normalize_clock
from clinic_scheduler.services.slots.errors import Conflict, InvalidFormat, NotFound
from clinic_scheduler.services.slots.reservation import (
    cancel_appointment,
    reschedule_appointment,
    reserve_slot,
    set_appointment_status,
)

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


class ReserveSlotRequest(BaseModel):
    provider_id: str
    date: date
    time: str
    patient_id: str | None = None
    notes: str | None = None

    @field_validator('provider_id')
    @classmethod
    def validate_provider_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Provider is required.')
        return normalized

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        try:
            return normalize_clock(value)
        except InvalidFormat as exc:
            raise ValueError(str(exc)) from exc

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class RescheduleRequest(BaseModel):
    date: date
    time: str

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        try:
            return normalize_clock(value)
        except InvalidFormat as exc:
            raise ValueError(str(exc)) from exc


class AppointmentStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in config.APPOINTMENT_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(config.APPOINTMENT_STATUSES)}.")
        return normalized


class AppointmentResponse(BaseModel):
    id: int
    provider_id: str
    patient_id: str | None = None
    date: date
    time: str
    status: str
    notes: str | None = None

    class Config:
        from_attributes = True


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: ReserveSlotRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return reserve_slot(
            db,
            data.provider_id,
            data.date,
            data.time,
            patient_id=data.patient_id,
            notes=data.notes,
        )
    except Conflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidFormat as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


@router.post('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_booked_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return cancel_appointment(db, appointment_id)
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


@router.post('/{appointment_id}/reschedule', response_model=AppointmentResponse)
def reschedule_booked_appointment(appointment_id: int, data: RescheduleRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return reschedule_appointment(db, appointment_id, data.date, data.time)
    except Conflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


@router.put('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(appointment_id: int, data: AppointmentStatusRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return set_appointment_status(db, appointment_id, data.status)
    except Conflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except NotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidFormat as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc
