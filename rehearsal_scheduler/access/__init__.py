"""Membership lookups and the role/status checks shared by the routers.

Every check re-reads the caller's membership row; nothing is cached between
requests."""

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from rehearsal_scheduler.db import models
from rehearsal_scheduler.db.models import ACTIVE, INVITED, LEADER, MEMBER

ROLE_LEVELS = {MEMBER: 1, LEADER: 2}


def get_membership(db: Session, user_id: int, band_id: int) -> models.BandMember | None:
    """Retrieve the membership for a user/band pair, whatever its status."""
    return (
        db.query(models.BandMember)
        .filter_by(user_id=user_id, band_id=band_id)
        .one_or_none()
    )


def verify_band_access(
    db: Session,
    user_id: int,
    band_id: int,
    required_role: str = MEMBER,
    active_only: bool = True,
) -> models.BandMember | None:
    """Return the membership if the user may act on the band with
    ``required_role``.  Otherwise return ``None``.

    With ``active_only`` false a former (``INACTIVE``) member keeps
    ``MEMBER`` level access; an outstanding invitation never grants access,
    and role requirements above ``MEMBER`` always need an active row."""
    membership = get_membership(db, user_id, band_id)
    if membership is None:
        return None
    if membership.status == INVITED:
        return None
    if (active_only or required_role != MEMBER) and membership.status != ACTIVE:
        return None
    if ROLE_LEVELS.get(membership.role, 0) < ROLE_LEVELS.get(required_role, 0):
        return None
    return membership


def get_band_or_404(db: Session, band_id: int) -> models.Band:
    band = db.get(models.Band, band_id)
    if band is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Band not found')
    return band


def get_rehearsal_or_404(db: Session, rehearsal_id: int) -> models.Rehearsal:
    rehearsal = db.get(models.Rehearsal, rehearsal_id)
    if rehearsal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Rehearsal not found')
    return rehearsal


def require_band_access(
    db: Session,
    user: models.User,
    band_id: int,
    required_role: str = MEMBER,
    active_only: bool = True,
    message: str = 'You are not a member of this band',
) -> models.BandMember:
    """Like :func:`verify_band_access` but raises 403 instead of returning
    ``None``."""
    membership = verify_band_access(db, user.id, band_id, required_role, active_only)
    if membership is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
    return membership


def active_band_ids(db: Session, user_id: int) -> list[int]:
    rows = (
        db.query(models.BandMember.band_id)
        .filter_by(user_id=user_id, status=ACTIVE)
        .all()
    )
    return [row.band_id for row in rows]


def active_members(db: Session, band_id: int) -> list[models.BandMember]:
    return (
        db.query(models.BandMember)
        .filter_by(band_id=band_id, status=ACTIVE)
        .order_by(models.BandMember.joined_at.asc(), models.BandMember.id.asc())
        .all()
    )


def band_leaders(db: Session, band_id: int, active_only: bool = True) -> list[models.BandMember]:
    query = db.query(models.BandMember).filter_by(band_id=band_id, role=LEADER)
    if active_only:
        query = query.filter_by(status=ACTIVE)
    return query.all()


def ensure_leader_remains(
    db: Session,
    membership: models.BandMember,
    new_role: str,
    new_status: str,
) -> None:
    """Raise 409 if changing ``membership`` to ``new_role``/``new_status``
    would leave its band without an active leader."""
    was_active_leader = membership.role == LEADER and membership.status == ACTIVE
    stays_active_leader = new_role == LEADER and new_status == ACTIVE
    if not was_active_leader or stays_active_leader:
        return
    others = [m for m in band_leaders(db, membership.band_id) if m.id != membership.id]
    if not others:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='A band must keep at least one active leader',
        )
