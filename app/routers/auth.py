"""
Auth router: registration, OTP verification, resend, login and token refresh.

OTP flow for registration:
  1. POST /auth/register    → create (or re-arm) PENDING user + email a code
  2. POST /auth/verify-otp  → verify code → ACTIVE → return tokens
  3. POST /auth/resend-otp  → new code, at most once per cooldown window

The code is emailed from a BackgroundTask, so the HTTP response is returned
before SMTP completes and never contains the code itself.
"""
from fastapi import APIRouter, Depends, BackgroundTasks, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.rate_limiter import limiter
from app.schemas.auth import (
    RegisterRequest, VerifyOTPRequest, ResendOTPRequest,
    LoginRequest, RefreshTokenRequest, TokenResponse, AuthResult,
)
from app.schemas.common import ApiResponse, MessageResponse
from app.schemas.user import UserOut
from app.services import auth_service
from app.services.email_service import OTPSender, get_otp_sender

router = APIRouter()


def _auth_result(user, access_token: str, refresh_token: str) -> AuthResult:
    return AuthResult(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserOut.model_validate(user),
    )


# ── Register ──────────────────────────────────────────────────────────────────

@router.post("/register", response_model=MessageResponse)
@limiter.limit("5/minute")
def register(
    request: Request,
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    send_otp: OTPSender = Depends(get_otp_sender),
):
    """
    Step 1 of registration.
    A first attempt and a retry for a still-PENDING email get the same 200
    response. An already-active email is rejected with 409.
    """
    user, raw_otp = auth_service.register_user(
        db,
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
    )
    background_tasks.add_task(send_otp, user.email, raw_otp)
    return MessageResponse(message="Verification code sent")


@router.post("/verify-otp", response_model=ApiResponse[AuthResult])
@limiter.limit("10/minute")
def verify_otp(
    request: Request,
    body: VerifyOTPRequest,
    db: Session = Depends(get_db),
):
    """Step 2 of registration: verify OTP and receive auth tokens."""
    user, access_token, refresh_token = auth_service.verify_registration(
        db, email=body.email, otp=body.code
    )
    return ApiResponse(
        message="Account verified successfully",
        data=_auth_result(user, access_token, refresh_token),
    )


# ── OTP Resend ────────────────────────────────────────────────────────────────

@router.post("/resend-otp", response_model=MessageResponse)
@limiter.limit("3/minute")
def resend_otp(
    request: Request,
    body: ResendOTPRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    send_otp: OTPSender = Depends(get_otp_sender),
):
    user, raw_otp = auth_service.resend_otp(db, email=body.email)
    background_tasks.add_task(send_otp, user.email, raw_otp)
    return MessageResponse(message="New verification code sent")


# ── Login ─────────────────────────────────────────────────────────────────────

@router.post("/login", response_model=ApiResponse[AuthResult])
@limiter.limit("10/minute")
def login(
    request: Request,
    body: LoginRequest,
    db: Session = Depends(get_db),
):
    """Login with email and password. Only verified (ACTIVE) accounts may log in."""
    user = auth_service.authenticate_user(db, email=body.email, password=body.password)
    access_token, refresh_token = auth_service.issue_tokens(user)
    return ApiResponse(
        message="Login successful",
        data=_auth_result(user, access_token, refresh_token),
    )


# ── Token Refresh ─────────────────────────────────────────────────────────────

@router.post("/refresh", response_model=ApiResponse[TokenResponse])
@limiter.limit("20/minute")
def refresh_token(
    request: Request,
    body: RefreshTokenRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange a valid refresh token for a new access token + refresh token.
    Stateless JWTs: the old refresh token stays valid until it expires.
    """
    access_token, new_refresh = auth_service.refresh_tokens(db, body.refresh_token)
    return ApiResponse(
        message="Token refreshed",
        data=TokenResponse(access_token=access_token, refresh_token=new_refresh),
    )
