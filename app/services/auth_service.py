"""
Auth service: account registration, OTP verification, login and token refresh.
Keeps routers thin — routers only handle HTTP, services handle logic.

Account states:
    PENDING (no live challenge)  ──register/resend──▶  PENDING (live challenge)
    PENDING (live challenge)     ──verify OK────────▶  ACTIVE (terminal)

Registering an email that is still PENDING is treated as a retry: the name,
password and role are overwritten and a fresh code replaces the old one.
Registering an ACTIVE email is a conflict and changes nothing.
"""
import logging
import uuid
from typing import Optional

from jwt.exceptions import InvalidTokenError
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User, Role, UserStatus
from app.core.security import (
    PasswordPolicy,
    enforce_password_policy,
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    pwd_context,
)
from app.core.exceptions import (
    ConflictException,
    CredentialsException,
    InvalidOTPException,
    InvalidStateException,
    NotFoundException,
    RateLimitedException,
    UnverifiedAccountException,
    ValidationException,
)
from app.services import otp_service

logger = logging.getLogger(__name__)

# Pre-computed bcrypt hash used ONLY for constant-time comparison when the user
# doesn't exist, so response time does not reveal which emails are registered.
_DUMMY_HASH: str = pwd_context.hash("__dummy_timing_prevention__")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str, for_update: bool = False) -> Optional[User]:
    stmt = select(User).where(func.lower(User.email) == normalize_email(email))
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def issue_tokens(user: User) -> tuple[str, str]:
    return create_access_token(str(user.id), user.role.value), create_refresh_token(str(user.id))


def register_user(
    db: Session,
    email: str,
    password: str,
    name: Optional[str] = None,
    role: Optional[Role] = None,
    password_policy: PasswordPolicy = enforce_password_policy,
) -> tuple[User, str]:
    """
    Creates (or re-arms) a PENDING account and issues a verification code.
    Returns (user, raw_otp). The raw code is for the email sender only.
    """
    try:
        password_policy(password)
    except ValueError as exc:
        raise ValidationException("Password does not meet requirements", errors=str(exc).split("; "))

    email = normalize_email(email)
    user = get_user_by_email(db, email, for_update=True)

    if user is not None and user.is_active:
        raise ConflictException("User already exists and is active")

    hashed = hash_password(password)
    if user is None:
        user = User(
            email=email,
            hashed_password=hashed,
            name=name,
            role=role or Role.STUDENT,
            status=UserStatus.PENDING,
        )
        db.add(user)
        try:
            db.flush()  # assigns user.id; surfaces a concurrent insert of the same email
        except IntegrityError:
            db.rollback()
            raise ConflictException("A registration for this email is already in progress")
    else:
        user.hashed_password = hashed
        user.name = name
        if role is not None:
            user.role = role

    raw_otp = otp_service.issue_challenge(db, user)
    db.commit()
    db.refresh(user)

    logger.info(f"Verification code issued for user {user.id}")
    return user, raw_otp


def resend_otp(db: Session, email: str) -> tuple[User, str]:
    """
    Issues a fresh code for a PENDING user, at most once per cooldown window.
    Returns (user, raw_otp).
    """
    user = get_user_by_email(db, email, for_update=True)
    if user is None:
        raise NotFoundException("User")
    if user.is_active:
        raise InvalidStateException("User is already active")

    wait = otp_service.resend_wait_seconds(otp_service.get_challenge(db, user))
    if wait > 0:
        raise RateLimitedException(retry_after=wait)

    raw_otp = otp_service.issue_challenge(db, user)
    db.commit()

    logger.info(f"Verification code re-issued for user {user.id}")
    return user, raw_otp


def verify_registration(db: Session, email: str, otp: str) -> tuple[User, str, str]:
    """
    Verifies the OTP. Activation and challenge deletion share one commit.
    Returns (user, access_token, refresh_token).
    """
    user = get_user_by_email(db, email, for_update=True)
    if user is None:
        raise NotFoundException("User")
    if user.is_active:
        raise InvalidStateException("User is already active")

    if not otp_service.consume_challenge(db, user, otp):
        raise InvalidOTPException()

    user.status = UserStatus.ACTIVE
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.id} verified and activated")
    access_token, refresh_token = issue_tokens(user)
    return user, access_token, refresh_token


def authenticate_user(db: Session, email: str, password: str) -> User:
    """
    Validates credentials and returns the user.

    Security: always use the same error message regardless of whether
    the email exists or the password is wrong (prevents user enumeration).
    """
    user = get_user_by_email(db, email)
    # Always run verify_password so "unknown email" and "wrong password" take
    # the same time.
    password_ok = verify_password(password, user.hashed_password if user else _DUMMY_HASH)

    if not user or not password_ok:
        raise CredentialsException("Invalid email or password")
    if not user.is_active:
        raise UnverifiedAccountException()
    return user


def refresh_tokens(db: Session, refresh_token: str) -> tuple[str, str]:
    """
    Exchange a valid refresh token for a new access + refresh token pair.
    Stateless: old refresh tokens are not revoked.
    """
    try:
        payload = decode_refresh_token(refresh_token)
        user_id = uuid.UUID(str(payload.get("sub")))
    except (InvalidTokenError, ValueError):
        raise CredentialsException("Invalid or expired refresh token")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise CredentialsException()
    return issue_tokens(user)
