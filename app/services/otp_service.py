"""
OTP service: generation, storage (hashed), expiry, resend throttling and verification.

Security design decisions:
  1. Raw OTP is NEVER stored — only the bcrypt hash. If DB is breached, OTPs are useless.
  2. One challenge row per user. Issuing a new code overwrites the row in place,
     so only the most recently issued code can verify.
  3. Expiry is decided by is_live() at the moment of use; nothing sweeps old rows.
  4. secrets.randbelow() is cryptographically secure (unlike random.randint).
  5. Resend is throttled per user (issued_at + cooldown), on top of the per-IP
     slowapi limit at the HTTP layer.

None of these functions commit. The caller owns the transaction so the
challenge write lands in the same commit as the user-row change it belongs to.
"""
import math
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.core.security import pwd_context
from app.models.otp import OTPChallenge
from app.models.user import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_otp(length: Optional[int] = None) -> str:
    """
    Fixed-length numeric code, zero-padded, drawn uniformly from 0 .. 10**length - 1.
    """
    length = length or settings.otp_length
    return str(secrets.randbelow(10 ** length)).zfill(length)


def is_live(challenge: Optional[OTPChallenge], now: Optional[datetime] = None) -> bool:
    """The only expiry rule: a challenge is usable strictly before its expires_at."""
    if challenge is None:
        return False
    now = now or utcnow()
    return now < _as_utc(challenge.expires_at)


def resend_wait_seconds(
    challenge: Optional[OTPChallenge],
    now: Optional[datetime] = None,
    cooldown_seconds: Optional[int] = None,
) -> int:
    """
    Seconds the user must still wait before another code may be issued.
    0 when there is no previous challenge or the cooldown has elapsed.
    """
    if challenge is None:
        return 0
    now = now or utcnow()
    cooldown = settings.otp_resend_cooldown_seconds if cooldown_seconds is None else cooldown_seconds
    elapsed = (now - _as_utc(challenge.issued_at)).total_seconds()
    return max(0, math.ceil(cooldown - elapsed))


def get_challenge(db: Session, user: User, for_update: bool = False) -> Optional[OTPChallenge]:
    stmt = select(OTPChallenge).where(OTPChallenge.user_id == user.id)
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def issue_challenge(db: Session, user: User, now: Optional[datetime] = None) -> str:
    """
    Replaces the user's challenge with a fresh one and returns the raw code.

    The user must already be flushed (user.id assigned). The raw code is
    returned so the caller can hand it to the email sender; it is never
    stored and never sent back to the API client.
    """
    now = now or utcnow()
    raw_otp = generate_otp()

    challenge = get_challenge(db, user, for_update=True)
    if challenge is None:
        challenge = OTPChallenge(user_id=user.id)
        db.add(challenge)

    challenge.code_hash = pwd_context.hash(raw_otp)
    challenge.issued_at = now
    challenge.expires_at = now + timedelta(minutes=settings.otp_expiry_minutes)
    return raw_otp


def consume_challenge(db: Session, user: User, otp: str, now: Optional[datetime] = None) -> bool:
    """
    Checks the submitted code against the user's live challenge.

    On a match the challenge is deleted (one-time use) and True is returned.
    A missing, expired or mismatching challenge returns False and leaves the
    row untouched.
    """
    challenge = get_challenge(db, user, for_update=True)
    if not is_live(challenge, now):
        return False
    if not pwd_context.verify(otp, challenge.code_hash):
        return False

    db.delete(challenge)
    return True
