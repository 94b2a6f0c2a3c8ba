from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field
from sqlalchemy.orm import Session

from rehearsal_scheduler.access import (
    active_members,
    get_membership,
    get_rehearsal_or_404,
    require_band_access,
)
from rehearsal_scheduler.api.common import CamelModel, material_to_dict, send_json
from rehearsal_scheduler.auth import get_current_user
from rehearsal_scheduler.db import get_db, models, safe_commit
from rehearsal_scheduler.db.models import ACTIVE, LEADER
from rehearsal_scheduler.notifications import notify_users
from rehearsal_scheduler.utils import sanitize_name

router = APIRouter(prefix="/api", tags=["Materials"])


class MaterialBody(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    type: Literal['SHEET_MUSIC', 'AUDIO', 'VIDEO', 'LINK', 'NOTE', 'OTHER'] = 'OTHER'
    file_name: str | None = Field(default=None, max_length=255)
    url: str | None = Field(default=None, max_length=2048)
    content: str | None = None


@router.get("/rehearsals/{rehearsal_id}/materials")
def list_materials(
    rehearsal_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rehearsal = get_rehearsal_or_404(db, rehearsal_id)
    require_band_access(db, user, rehearsal.band_id, active_only=False,
                        message='You are not authorized to access this rehearsal')
    materials = (
        db.query(models.RehearsalMaterial)
        .filter_by(rehearsal_id=rehearsal.id)
        .order_by(models.RehearsalMaterial.created_at.asc(), models.RehearsalMaterial.id.asc())
        .all()
    )
    return send_json(data=[material_to_dict(m) for m in materials])


@router.post("/rehearsals/{rehearsal_id}/materials", status_code=status.HTTP_201_CREATED)
def add_material(
    rehearsal_id: int,
    body: MaterialBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rehearsal = get_rehearsal_or_404(db, rehearsal_id)
    require_band_access(db, user, rehearsal.band_id,
                        message='Only active band members can add materials')
    if not body.url and not body.content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='A url or inline content is required')
    file_name = None
    if body.file_name is not None:
        file_name = sanitize_name(body.file_name)
        if file_name is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid file name')

    material = models.RehearsalMaterial(
        rehearsal_id=rehearsal.id,
        title=body.title.strip(),
        type=body.type,
        file_name=file_name,
        url=body.url,
        content=body.content,
        uploaded_by_id=user.id,
    )
    db.add(material)
    db.flush()
    notify_users(
        db,
        [m.user_id for m in active_members(db, rehearsal.band_id)],
        'NEW_MATERIAL',
        f'{user.name} added "{material.title}" to {rehearsal.title}',
        rehearsal.id,
        exclude=user.id,
    )
    safe_commit(db)
    db.refresh(material)
    return send_json(status.HTTP_201_CREATED, material_to_dict(material), 'Material added successfully')


@router.delete("/materials/{material_id}")
def delete_material(
    material_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    material = db.get(models.RehearsalMaterial, material_id)
    if material is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Material not found')
    if material.uploaded_by_id != user.id:
        membership = get_membership(db, user.id, material.rehearsal.band_id)
        if membership is None or membership.role != LEADER or membership.status != ACTIVE:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail='Only the uploader or a band leader can delete this material')
    db.delete(material)
    safe_commit(db)
    return send_json(message='Material deleted successfully')
