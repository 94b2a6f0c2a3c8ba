from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field
from sqlalchemy.orm import Session

from rehearsal_scheduler.api.common import CamelModel, send_json, user_to_dict
from rehearsal_scheduler.auth import get_current_user, hash_password, verify_password
from rehearsal_scheduler.db import get_db, models, safe_commit

router = APIRouter(prefix="/api/users", tags=["Users"])


class ProfileBody(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    instrument: str | None = Field(default=None, max_length=120)
    profile_image_url: str | None = Field(default=None, max_length=2048)


class PasswordBody(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)


@router.get("/me")
def get_me(user: models.User = Depends(get_current_user)):
    return send_json(data=user_to_dict(user))


@router.put("/me")
def update_me(
    body: ProfileBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True)
    if 'name' in changes:
        name = (changes['name'] or '').strip()
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Name is required')
        user.name = name
    if 'instrument' in changes:
        user.instrument = changes['instrument']
    if 'profile_image_url' in changes:
        user.profile_image_url = changes['profile_image_url']
    safe_commit(db)
    db.refresh(user)
    return send_json(data=user_to_dict(user), message='Profile updated')


@router.put("/me/password")
def update_password(
    body: PasswordBody,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not verify_password(body.current_password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Current password is incorrect')
    user.password_hash = hash_password(body.new_password)
    safe_commit(db)
    return send_json(message='Password updated')
