"""Authentication helpers and FastAPI security dependency.

This module decodes admin JWT tokens and provides the FastAPI
dependency `get_current_admin` that validates the bearer token and
returns the corresponding `AdminUser` from the database.

Token verification raises HTTPExceptions on failure so it can be used
directly inside route dependencies.
"""

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlmodel import Session
from .config import settings
from .database import get_session
from . import models, repositories

bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Returns the decoded payload on success or raises an HTTPException
    with status 401 on failure.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail='token expired')
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail='invalid token')


def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
    db: Session = Depends(get_session),
) -> models.AdminUser:
    """FastAPI dependency that returns the authenticated admin.

    Raises HTTPException(401) for a missing, expired or invalid token,
    a token without the admin role, or a user that no longer exists.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail='not authenticated', headers={'WWW-Authenticate': 'Bearer'})
    payload = decode_token(credentials.credentials)
    if payload.get('role') != 'admin':
        raise HTTPException(status_code=401, detail='invalid token payload')
    try:
        user_id = int(payload.get('sub', ''))
    except ValueError:
        raise HTTPException(status_code=401, detail='invalid token payload')
    user = repositories.AdminUserRepository(db).get(user_id)
    if not user:
        raise HTTPException(status_code=401, detail='user not found')
    return user
