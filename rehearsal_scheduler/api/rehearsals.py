import datetime as dt
import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import Field
from sqlalchemy.orm import Session

from rehearsal_scheduler.access import (
    active_band_ids,
    active_members,
    band_leaders,
    get_band_or_404,
    get_rehearsal_or_404,
    require_band_access,
)
from rehearsal_scheduler.api.common import (
    CamelModel,
    attendance_to_dict,
    material_to_dict,
    rehearsal_to_dict,
    send_json,
)
from rehearsal_scheduler.auth import get_current_user
from rehearsal_scheduler.db import get_db, models, safe_commit
from rehearsal_scheduler.db.models import DECLINED, LEADER, PENDING, utcnow
from rehearsal_scheduler.notifications import notify_users
from rehearsal_scheduler.scheduling import suggest_rehearsal_times
from rehearsal_scheduler.utils import to_utc_naive

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rehearsals", tags=["Rehearsals"])

INVALID_TIME_RANGE = 'Start time must be before end time'


class RehearsalBody(CamelModel):
    band_id: int
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    location: str = Field(min_length=1, max_length=200)
    start_datetime: dt.datetime
    end_datetime: dt.datetime
    is_recurring: bool = False
    recurrence_pattern: str | None = Field(default=None, max_length=200)


class RehearsalUpdateBody(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    location: str | None = Field(default=None, min_length=1, max_length=200)
    start_datetime: dt.datetime | None = None
    end_datetime: dt.datetime | None = None
    is_recurring: bool | None = None
    recurrence_pattern: str | None = Field(default=None, max_length=200)


class AttendanceBody(CamelModel):
    status: Literal['CONFIRMED', 'MAYBE', 'DECLINED']
    reason: str | None = Field(default=None, max_length=1000)


def _check_time_range(start: dt.datetime, end: dt.datetime) -> None:
    if start >= end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_TIME_RANGE)


def _when(value: dt.datetime) -> str:
    return value.strftime('%Y-%m-%d %H:%M')


def _attendee_ids(db: Session, rehearsal_id: int) -> list[int]:
    rows = (
        db.query(models.RehearsalAttendance.user_id)
        .filter_by(rehearsal_id=rehearsal_id)
        .all()
    )
    return [row.user_id for row in rows]


def _attendance_rows(db: Session, rehearsal_id: int) -> list[models.RehearsalAttendance]:
    return (
        db.query(models.RehearsalAttendance)
        .filter_by(rehearsal_id=rehearsal_id)
        .order_by(models.RehearsalAttendance.id.asc())
        .all()
    )


@router.get("/suggested-times")
def suggested_times(
    band_id: int | None = Query(default=None, alias='bandId'),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if band_id is not None:
        band = get_band_or_404(db, band_id)
        require_band_access(db, user, band.id)
    return send_json(data=suggest_rehearsal_times(utcnow()))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_rehearsal(
    body: RehearsalBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Schedule a rehearsal.

    Every currently active member gets a ``PENDING`` attendance row and,
    except for the creator, a notification.  Members who join later get
    neither.  Rehearsal, attendance and notifications are committed
    together."""
    start = to_utc_naive(body.start_datetime)
    end = to_utc_naive(body.end_datetime)
    _check_time_range(start, end)
    band = get_band_or_404(db, body.band_id)
    require_band_access(db, user, band.id, LEADER, message='You must be a band leader to create rehearsals')

    rehearsal = models.Rehearsal(
        band_id=band.id,
        title=body.title.strip(),
        description=body.description,
        location=body.location.strip(),
        start_datetime=start,
        end_datetime=end,
        is_recurring=body.is_recurring,
        recurrence_pattern=body.recurrence_pattern,
        created_by_id=user.id,
    )
    db.add(rehearsal)
    db.flush()

    member_ids = [m.user_id for m in active_members(db, band.id)]
    for member_id in member_ids:
        db.add(models.RehearsalAttendance(rehearsal_id=rehearsal.id, user_id=member_id, status=PENDING))
    notify_users(
        db,
        member_ids,
        'NEW_REHEARSAL',
        f'New rehearsal: {rehearsal.title} on {_when(start)}',
        rehearsal.id,
        exclude=user.id,
    )
    safe_commit(db)
    db.refresh(rehearsal)
    logger.info('User %s scheduled rehearsal %s for band %s (%d attendees)',
                user.id, rehearsal.id, band.id, len(member_ids))

    data = rehearsal_to_dict(rehearsal)
    data['attendance'] = [attendance_to_dict(a) for a in _attendance_rows(db, rehearsal.id)]
    return send_json(status.HTTP_201_CREATED, data, 'Rehearsal created successfully')


@router.get("")
def list_rehearsals(
    band_id: int | None = Query(default=None, alias='bandId'),
    from_: dt.datetime | None = Query(default=None, alias='from'),
    to: dt.datetime | None = Query(default=None),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    band_ids = active_band_ids(db, user.id)
    if band_id is not None:
        if band_id not in band_ids:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='You are not a member of this band')
        band_ids = [band_id]
    if not band_ids:
        return send_json(data=[])

    query = db.query(models.Rehearsal).filter(models.Rehearsal.band_id.in_(band_ids))
    if from_ is not None:
        query = query.filter(models.Rehearsal.start_datetime >= to_utc_naive(from_))
    if to is not None:
        query = query.filter(models.Rehearsal.start_datetime <= to_utc_naive(to))
    rehearsals = query.order_by(models.Rehearsal.start_datetime.asc(), models.Rehearsal.id.asc()).all()

    mine = {}
    if rehearsals:
        rows = (
            db.query(models.RehearsalAttendance)
            .filter(
                models.RehearsalAttendance.user_id == user.id,
                models.RehearsalAttendance.rehearsal_id.in_([r.id for r in rehearsals]),
            )
            .all()
        )
        mine = {row.rehearsal_id: row.status for row in rows}

    result = []
    for rehearsal in rehearsals:
        data = rehearsal_to_dict(rehearsal)
        data['band'] = {'id': rehearsal.band.id, 'name': rehearsal.band.name}
        data['myAttendance'] = mine.get(rehearsal.id)
        result.append(data)
    return send_json(data=result)


@router.get("/{rehearsal_id}")
def get_rehearsal(
    rehearsal_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rehearsal = get_rehearsal_or_404(db, rehearsal_id)
    require_band_access(db, user, rehearsal.band_id, active_only=False,
                        message='You are not authorized to access this rehearsal')
    data = rehearsal_to_dict(rehearsal)
    data['band'] = {'id': rehearsal.band.id, 'name': rehearsal.band.name}
    data['attendance'] = [attendance_to_dict(a) for a in _attendance_rows(db, rehearsal.id)]
    data['materials'] = [material_to_dict(m) for m in rehearsal.materials]
    return send_json(data=data)


@router.put("/{rehearsal_id}")
def update_rehearsal(
    rehearsal_id: int,
    body: RehearsalUpdateBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rehearsal = get_rehearsal_or_404(db, rehearsal_id)
    require_band_access(db, user, rehearsal.band_id, LEADER,
                        message='You must be a band leader to edit rehearsals')
    changes = body.model_dump(exclude_unset=True)
    start = to_utc_naive(changes['start_datetime']) if changes.get('start_datetime') else rehearsal.start_datetime
    end = to_utc_naive(changes['end_datetime']) if changes.get('end_datetime') else rehearsal.end_datetime
    _check_time_range(start, end)

    rehearsal.start_datetime = start
    rehearsal.end_datetime = end
    for field in ('title', 'location'):
        if changes.get(field) is not None:
            value = changes[field].strip()
            if not value:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f'{field.capitalize()} is required')
            setattr(rehearsal, field, value)
    if 'description' in changes:
        rehearsal.description = changes['description']
    if changes.get('is_recurring') is not None:
        rehearsal.is_recurring = changes['is_recurring']
    if 'recurrence_pattern' in changes:
        rehearsal.recurrence_pattern = changes['recurrence_pattern']

    notify_users(
        db,
        _attendee_ids(db, rehearsal.id),
        'REHEARSAL_UPDATED',
        f'Rehearsal updated: {rehearsal.title} on {_when(rehearsal.start_datetime)}',
        rehearsal.id,
        exclude=user.id,
    )
    safe_commit(db)
    db.refresh(rehearsal)
    return send_json(data=rehearsal_to_dict(rehearsal), message='Rehearsal updated successfully')


@router.delete("/{rehearsal_id}")
def delete_rehearsal(
    rehearsal_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rehearsal = get_rehearsal_or_404(db, rehearsal_id)
    require_band_access(db, user, rehearsal.band_id, LEADER,
                        message='You must be a band leader to cancel rehearsals')
    notify_users(
        db,
        _attendee_ids(db, rehearsal.id),
        'REHEARSAL_CANCELLED',
        f'Rehearsal cancelled: {rehearsal.title} on {_when(rehearsal.start_datetime)}',
        rehearsal.id,
        exclude=user.id,
    )
    db.delete(rehearsal)
    safe_commit(db)
    logger.info('User %s cancelled rehearsal %s', user.id, rehearsal_id)
    return send_json(message='Rehearsal deleted successfully')


@router.get("/{rehearsal_id}/attendance")
def list_attendance(
    rehearsal_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rehearsal = get_rehearsal_or_404(db, rehearsal_id)
    require_band_access(db, user, rehearsal.band_id, active_only=False,
                        message='You are not authorized to access this rehearsal')
    return send_json(data=[attendance_to_dict(a) for a in _attendance_rows(db, rehearsal.id)])


@router.api_route("/{rehearsal_id}/attendance", methods=["PUT", "POST"])
def update_attendance(
    rehearsal_id: int,
    body: AttendanceBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Record the caller's RSVP.  Declining notifies the band's leaders."""
    rehearsal = get_rehearsal_or_404(db, rehearsal_id)
    require_band_access(db, user, rehearsal.band_id, active_only=False,
                        message='You are not authorized to access this rehearsal')
    attendance = (
        db.query(models.RehearsalAttendance)
        .filter_by(rehearsal_id=rehearsal.id, user_id=user.id)
        .one_or_none()
    )
    if attendance is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Attendance record not found')

    attendance.status = body.status
    attendance.reason = body.reason
    attendance.response_time = utcnow()

    if body.status == DECLINED:
        content = f"{user.name} can't make it to \"{rehearsal.title}\""
        if body.reason:
            content += f': {body.reason}'
        notify_users(
            db,
            [leader.user_id for leader in band_leaders(db, rehearsal.band_id)],
            'ATTENDANCE_UPDATE',
            content,
            rehearsal.id,
            exclude=user.id,
        )
    safe_commit(db)
    db.refresh(attendance)
    return send_json(data=attendance_to_dict(attendance), message='Attendance updated successfully')
