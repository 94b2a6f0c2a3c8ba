from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field
from sqlalchemy.orm import Session

from rehearsal_scheduler.api.common import CamelModel, availability_to_dict, send_json
from rehearsal_scheduler.auth import get_current_user
from rehearsal_scheduler.db import get_db, models, safe_commit
from rehearsal_scheduler.utils import parse_hhmm

router = APIRouter(prefix="/api/availability", tags=["Availability"])


class AvailabilityBody(CamelModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str


@router.get("")
def list_availability(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    slots = (
        db.query(models.Availability)
        .filter_by(user_id=user.id)
        .order_by(models.Availability.day_of_week.asc(), models.Availability.start_time.asc())
        .all()
    )
    return send_json(data=[availability_to_dict(s) for s in slots])


@router.post("", status_code=status.HTTP_201_CREATED)
def add_availability(
    body: AvailabilityBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    start = parse_hhmm(body.start_time)
    end = parse_hhmm(body.end_time)
    if start is None or end is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Times must use the HH:MM format')
    if start >= end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Start time must be before end time')
    slot = models.Availability(
        user_id=user.id,
        day_of_week=body.day_of_week,
        start_time=start.strftime('%H:%M'),
        end_time=end.strftime('%H:%M'),
    )
    db.add(slot)
    safe_commit(db)
    db.refresh(slot)
    return send_json(status.HTTP_201_CREATED, availability_to_dict(slot), 'Availability added')


@router.delete("/{slot_id}")
def delete_availability(
    slot_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    slot = db.get(models.Availability, slot_id)
    if slot is None or slot.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Availability not found')
    db.delete(slot)
    safe_commit(db)
    return send_json(message='Availability removed')
