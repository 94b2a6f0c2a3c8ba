import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import EmailStr, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from rehearsal_scheduler.access import (
    ensure_leader_remains,
    get_band_or_404,
    get_membership,
    require_band_access,
)
from rehearsal_scheduler.api.auth import find_user_by_email
from rehearsal_scheduler.api.common import (
    CamelModel,
    band_to_dict,
    member_to_dict,
    rehearsal_to_dict,
    send_json,
)
from rehearsal_scheduler.auth import get_current_user
from rehearsal_scheduler.db import get_db, models, safe_commit
from rehearsal_scheduler.db.models import ACTIVE, INACTIVE, INVITED, LEADER, MEMBER, utcnow
from rehearsal_scheduler.notifications import notify_users

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bands", tags=["Bands"])

UPCOMING_REHEARSALS_LIMIT = 5


class BandBody(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = None
    genre: str | None = Field(default=None, max_length=80)


class BandUpdateBody(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    genre: str | None = Field(default=None, max_length=80)


class InviteBody(CamelModel):
    email: EmailStr
    role: Literal['LEADER', 'MEMBER'] = MEMBER


class MemberUpdateBody(CamelModel):
    role: Literal['LEADER', 'MEMBER'] | None = None
    status: Literal['ACTIVE', 'INACTIVE'] | None = None


class MembershipResponseBody(CamelModel):
    status: Literal['ACTIVE', 'INACTIVE']


def _band_members(db: Session, band_id: int) -> list[models.BandMember]:
    return (
        db.query(models.BandMember)
        .filter_by(band_id=band_id)
        .order_by(models.BandMember.joined_at.asc(), models.BandMember.id.asc())
        .all()
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_band(
    body: BandBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Band name is required')
    band = models.Band(name=name, description=body.description, genre=body.genre)
    band.members.append(models.BandMember(user_id=user.id, role=LEADER, status=ACTIVE))
    db.add(band)
    safe_commit(db)
    db.refresh(band)
    logger.info('User %s created band %s', user.id, band.id)
    data = band_to_dict(band)
    data['members'] = [member_to_dict(m) for m in band.members]
    return send_json(status.HTTP_201_CREATED, data, 'Band created successfully')


@router.get("")
def list_bands(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Bands in which the caller holds an active membership, newest first."""
    rows = (
        db.query(models.Band, models.BandMember.role)
        .join(models.BandMember, models.BandMember.band_id == models.Band.id)
        .filter(models.BandMember.user_id == user.id, models.BandMember.status == ACTIVE)
        .order_by(models.Band.created_at.desc(), models.Band.id.desc())
        .all()
    )
    band_ids = [band.id for band, _ in rows]
    counts = {}
    if band_ids:
        counts = dict(
            db.query(models.BandMember.band_id, func.count(models.BandMember.id))
            .filter(models.BandMember.band_id.in_(band_ids), models.BandMember.status == ACTIVE)
            .group_by(models.BandMember.band_id)
            .all()
        )
    result = []
    for band, role in rows:
        data = band_to_dict(band)
        data['memberCount'] = counts.get(band.id, 0)
        data['myRole'] = role
        result.append(data)
    return send_json(data=result)


@router.get("/{band_id}")
def get_band(
    band_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    band = get_band_or_404(db, band_id)
    require_band_access(db, user, band.id)
    upcoming = (
        db.query(models.Rehearsal)
        .filter(models.Rehearsal.band_id == band.id, models.Rehearsal.start_datetime >= utcnow())
        .order_by(models.Rehearsal.start_datetime.asc())
        .limit(UPCOMING_REHEARSALS_LIMIT)
        .all()
    )
    data = band_to_dict(band)
    data['members'] = [member_to_dict(m) for m in _band_members(db, band.id)]
    data['upcomingRehearsals'] = [rehearsal_to_dict(r) for r in upcoming]
    return send_json(data=data)


@router.put("/{band_id}")
def update_band(
    band_id: int,
    body: BandUpdateBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    band = get_band_or_404(db, band_id)
    require_band_access(db, user, band.id, LEADER, message='Only band leaders can edit the band')
    changes = body.model_dump(exclude_unset=True)
    if 'name' in changes:
        name = (changes['name'] or '').strip()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Band name is required')
        band.name = name
    if 'description' in changes:
        band.description = changes['description']
    if 'genre' in changes:
        band.genre = changes['genre']
    safe_commit(db)
    db.refresh(band)
    return send_json(data=band_to_dict(band), message='Band updated successfully')


@router.delete("/{band_id}")
def delete_band(
    band_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    band = get_band_or_404(db, band_id)
    require_band_access(db, user, band.id, LEADER, message='Only band leaders can delete the band')
    db.delete(band)
    safe_commit(db)
    logger.info('User %s deleted band %s', user.id, band_id)
    return send_json(message='Band deleted successfully')


@router.get("/{band_id}/members")
def list_members(
    band_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    band = get_band_or_404(db, band_id)
    require_band_access(db, user, band.id)
    return send_json(data=[member_to_dict(m) for m in _band_members(db, band.id)])


@router.post("/{band_id}/members", status_code=status.HTTP_201_CREATED)
def invite_member(
    band_id: int,
    body: InviteBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Invite a registered user to the band by email.

    New invitations start in the ``INVITED`` state until the invitee answers
    through ``PUT /api/bands/{id}/membership``.  Inviting an inactive former
    member reopens their invitation; inviting an active or already invited
    member is a conflict."""
    band = get_band_or_404(db, band_id)
    require_band_access(db, user, band.id, LEADER, message='Only band leaders can add members')
    target = find_user_by_email(db, body.email)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
    existing = get_membership(db, target.id, band.id)
    if existing is not None:
        if existing.status != INACTIVE:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='User is already a member of this band',
            )
        existing.status = INVITED
        existing.role = body.role
        notify_users(db, [target.id], 'BAND_INVITATION',
                     f'You have been invited back to {band.name}', band.id)
        safe_commit(db)
        db.refresh(existing)
        return send_json(status.HTTP_200_OK, member_to_dict(existing), 'Member reactivated successfully')
    membership = models.BandMember(band_id=band.id, user_id=target.id, role=body.role, status=INVITED)
    db.add(membership)
    notify_users(db, [target.id], 'BAND_INVITATION',
                 f'You have been invited to join {band.name}', band.id)
    safe_commit(db)
    db.refresh(membership)
    logger.info('User %s invited user %s to band %s', user.id, target.id, band.id)
    return send_json(status.HTTP_201_CREATED, member_to_dict(membership), 'Member invited successfully')


@router.put("/{band_id}/members/{user_id}")
def update_member(
    band_id: int,
    user_id: int,
    body: MemberUpdateBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    band = get_band_or_404(db, band_id)
    require_band_access(db, user, band.id, LEADER, message='Only band leaders can manage members')
    membership = get_membership(db, user_id, band.id)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Membership not found')
    new_role = body.role or membership.role
    new_status = body.status or membership.status
    # Only the invitee can turn an invitation or a past membership into an active one
    if new_status == ACTIVE and membership.status != ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Members join a band by accepting an invitation',
        )
    ensure_leader_remains(db, membership, new_role, new_status)
    membership.role = new_role
    membership.status = new_status
    safe_commit(db)
    db.refresh(membership)
    return send_json(data=member_to_dict(membership), message='Member updated')


@router.delete("/{band_id}/members/{user_id}")
def remove_member(
    band_id: int,
    user_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Deactivate a membership.  Leaders only; members leave through
    ``PUT /api/bands/{id}/membership``."""
    band = get_band_or_404(db, band_id)
    caller = require_band_access(db, user, band.id, LEADER, message='Only band leaders can remove members')
    membership = caller if user_id == user.id else get_membership(db, user_id, band.id)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Membership not found')
    ensure_leader_remains(db, membership, membership.role, INACTIVE)
    membership.status = INACTIVE
    safe_commit(db)
    if user_id == user.id:
        return send_json(message='Left band')
    return send_json(message='Member removed')


@router.put("/{band_id}/membership")
def respond_to_membership(
    band_id: int,
    body: MembershipResponseBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Accept an invitation (``ACTIVE``) or decline it / leave (``INACTIVE``)."""
    band = get_band_or_404(db, band_id)
    membership = get_membership(db, user.id, band.id)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Membership not found')
    if body.status == ACTIVE and membership.status == INACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='A new invitation is required to rejoin this band',
        )
    ensure_leader_remains(db, membership, membership.role, body.status)
    membership.status = body.status
    safe_commit(db)
    db.refresh(membership)
    return send_json(data=member_to_dict(membership), message='Membership updated')
