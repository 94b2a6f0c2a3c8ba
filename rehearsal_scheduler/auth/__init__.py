"""Password hashing and signed bearer tokens.

Passwords are salted and hashed with PBKDF2-SHA256 through passlib.  Tokens
are HS256 JWTs whose ``sub`` claim carries the user id; they expire after
``JWT_EXPIRES_DAYS`` days.  ``get_current_user`` is the FastAPI dependency
every authenticated route depends on."""

import datetime as dt
import logging
import os

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from rehearsal_scheduler.db import get_db
from rehearsal_scheduler.db import models

logger = logging.getLogger(__name__)

_DEV_SECRET = 'dev-only-secret-change-me-before-deploying-0123456789'

JWT_SECRET = os.environ.get('JWT_SECRET', _DEV_SECRET)
JWT_ALGORITHM = os.environ.get('JWT_ALGORITHM', 'HS256')
JWT_EXPIRES_DAYS = int(os.environ.get('JWT_EXPIRES_DAYS', 7))

if JWT_SECRET == _DEV_SECRET:
    logger.warning('JWT_SECRET is not set; using the development secret')

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Return a salted hash of ``password``."""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a stored hash.  Never raises on mismatch."""
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False


def dummy_verify() -> None:
    """Spend the time of one hash check without a stored hash, so unknown
    accounts answer as slowly as wrong passwords."""
    pwd_context.dummy_verify()


def create_token(user_id: int, expires_days: int | None = None) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    days = JWT_EXPIRES_DAYS if expires_days is None else expires_days
    payload = {
        'sub': str(user_id),
        'iat': now,
        'exp': now + dt.timedelta(days=days),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> int:
    """Return the user id embedded in ``token``.

    Raises ``jwt.InvalidTokenError`` (or its ``ExpiredSignatureError``
    subclass) when the token cannot be trusted."""
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    try:
        return int(payload['sub'])
    except (KeyError, TypeError, ValueError):
        raise jwt.InvalidTokenError('Token has no valid subject') from None


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={'WWW-Authenticate': 'Bearer'},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    if credentials is None or credentials.scheme.lower() != 'bearer':
        raise _unauthorized('Authentication required. No token provided.')
    try:
        user_id = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized('Token expired. Please log in again.') from None
    except jwt.InvalidTokenError:
        raise _unauthorized('Invalid token. Please log in again.') from None
    user = db.get(models.User, user_id)
    if user is None:
        raise _unauthorized('The user associated with this token no longer exists.')
    return user
