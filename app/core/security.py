"""
Security utilities: credential hashing, password policy and JWT token management.
Uses PyJWT (not python-jose) — actively maintained, no known CVEs.

The same bcrypt context hashes passwords and OTP codes, so both get a per-value
salt and a constant-time comparison.
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from app.config import settings

# ── Hashing ───────────────────────────────────────────────────────────────────
# deprecated="auto" means passlib will auto-upgrade old hashes on next login.
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# ── Password Policy ───────────────────────────────────────────────────────────
# A policy is any callable that returns None for an acceptable password and
# raises ValueError (one message per violated rule, joined by "; ") otherwise.
PasswordPolicy = Callable[[str], None]

_PASSWORD_RULES = (
    (lambda p: len(p) >= 6, "Password must be at least 6 characters long"),
    (lambda p: re.search(r"[A-Z]", p) is not None, "Password must contain at least one uppercase letter"),
    (lambda p: re.search(r"[a-z]", p) is not None, "Password must contain at least one lowercase letter"),
    (lambda p: re.search(r"\d", p) is not None, "Password must contain at least one number"),
)


def enforce_password_policy(password: str) -> None:
    violations = [message for check, message in _PASSWORD_RULES if not check(password)]
    if violations:
        raise ValueError("; ".join(violations))


# ── JWT Token Creation ────────────────────────────────────────────────────────

def create_access_token(user_id: str, role: str) -> str:
    """
    Short-lived access token (default 30 min).
    Carries the role for clients; the server always re-reads it from the DB.

    PyJWT 2.x note: jwt.encode() returns str directly — no need to call .decode().
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def create_refresh_token(user_id: str) -> str:
    """Long-lived refresh token (default 7 days). Carries no role."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": "refresh",
        "iat": now,
        "exp": now + timedelta(days=settings.refresh_token_expire_days),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def _decode(token: str, expected_type: str) -> dict:
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    if payload.get("type") != expected_type:
        raise InvalidTokenError(f"Not an {expected_type} token")
    return payload


def decode_access_token(token: str) -> dict:
    """
    Decodes and validates an access token.
    Raises jwt.exceptions.InvalidTokenError (or subclass) on any failure.
    The caller is responsible for converting this into an HTTPException.
    """
    return _decode(token, "access")


def decode_refresh_token(token: str) -> dict:
    return _decode(token, "refresh")
