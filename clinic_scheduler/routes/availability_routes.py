from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.database import ensure_scheduling_schema, get_db
from clinic_scheduler.services.slots.availability import AvailabilityService
from clinic_scheduler.services.slots.clock import parse_date
from clinic_scheduler.services.slots.errors import InvalidFormat

router = APIRouter(tags=['availability'])


class SlotWindowResponse(BaseModel):
    start_time: str
    end_time: str


class AvailableSlotsResponse(BaseModel):
    provider_id: str
    date: str
    slots: list[str]
    windows: list[SlotWindowResponse]


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc


@router.get('/slots/{provider_id}/{slot_date}', response_model=AvailableSlotsResponse)
def list_available_slots(
    provider_id: str,
    slot_date: str,
    now: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        target_date = parse_date(slot_date)
    except InvalidFormat as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    ensure_database_ready()

    try:
        windows = AvailabilityService(db).get_available_windows(provider_id, target_date, now=now)
    except InvalidFormat as exc:
        # A stored schedule with an unparseable time; the request itself was fine.
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f'Provider schedule is misconfigured: {exc}',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc

    return AvailableSlotsResponse(
        provider_id=provider_id,
        date=target_date.isoformat(),
        slots=[start_time for start_time, _ in windows],
        windows=[SlotWindowResponse(start_time=start_time, end_time=end_time) for start_time, end_time in windows],
    )
