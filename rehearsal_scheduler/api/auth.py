import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import EmailStr, Field, field_validator
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rehearsal_scheduler.api.common import CamelModel, send_json, user_to_dict
from rehearsal_scheduler.auth import create_token, dummy_verify, get_current_user, hash_password, verify_password
from rehearsal_scheduler.db import get_db, models, safe_commit
from rehearsal_scheduler.db.models import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

INVALID_CREDENTIALS = 'Invalid credentials'


class RegisterBody(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator('name')
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('Name is required')
        return value


class LoginBody(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


def find_user_by_email(db: Session, email: str) -> models.User | None:
    """Case-insensitive lookup by email."""
    return (
        db.query(models.User)
        .filter(func.lower(models.User.email) == email.strip().lower())
        .one_or_none()
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterBody, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    if find_user_by_email(db, email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Email already in use')
    user = models.User(
        name=body.name,
        email=email,
        password_hash=hash_password(body.password),
        role='USER',
    )
    db.add(user)
    try:
        safe_commit(db)
    except IntegrityError:
        # Lost a race against a concurrent registration of the same email
        logger.warning("Registration conflict for '%s'", email)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Email already in use') from None
    db.refresh(user)
    logger.info('Registered user %s', user.id)
    return send_json(
        status.HTTP_201_CREATED,
        {'user': user_to_dict(user), 'token': create_token(user.id)},
        'User registered successfully',
    )


@router.post("/login")
def login(body: LoginBody, db: Session = Depends(get_db)):
    user = find_user_by_email(db, body.email)
    if user is None:
        dummy_verify()
        logger.warning("Login failed for '%s': unknown email", body.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    if not verify_password(body.password, user.password_hash):
        logger.warning("Login failed for user %s: invalid password", user.id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    user.last_login_at = utcnow()
    safe_commit(db)
    db.refresh(user)
    return send_json(
        status.HTTP_200_OK,
        {'user': user_to_dict(user), 'token': create_token(user.id)},
        'Login successful',
    )


@router.get("/me")
def me(user: models.User = Depends(get_current_user)):
    return send_json(data=user_to_dict(user))
