"""
Authentication dependencies shared by the routers.

The chain is get_current_user → get_current_verified_user → role gates.
Roles are always read from the database row, never trusted from the token.
"""
import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jwt.exceptions import InvalidTokenError

from app.database import get_db
from app.core.security import decode_access_token
from app.core.exceptions import CredentialsException, UnverifiedAccountException
from app.core.permissions import require_role
from app.models.user import User, Role

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolves the bearer token to a User. Any of these yields 401:
    bad signature or expiry, a refresh token used as an access token,
    a missing/non-UUID "sub", or a user that no longer exists.
    """
    try:
        user_id = uuid.UUID(str(decode_access_token(token).get("sub")))
    except (InvalidTokenError, ValueError):
        raise CredentialsException()

    user = db.get(User, user_id)
    if user is None:
        raise CredentialsException()
    return user


def get_current_verified_user(user: User = Depends(get_current_user)) -> User:
    """403 for accounts that have not completed OTP verification."""
    if not user.is_active:
        raise UnverifiedAccountException()
    return user


def get_current_instructor(user: User = Depends(get_current_verified_user)) -> User:
    # Admins may author and manage courses too
    return require_role(user, Role.INSTRUCTOR, Role.ADMIN, detail="Instructor access required")


def get_current_admin(user: User = Depends(get_current_verified_user)) -> User:
    return require_role(user, Role.ADMIN, detail="Admin access required")
