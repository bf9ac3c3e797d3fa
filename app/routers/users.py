"""
Users router: profile management.

Endpoints:
  GET  /users/me  → current user's profile
  PUT  /users/me  → update display name
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.dependencies import get_current_verified_user
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.user import UserOut, UserUpdateRequest
from app.services import user_service

router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserOut])
def get_me(current_user: User = Depends(get_current_verified_user)):
    """No DB call needed — the dependency already fetched the user."""
    return ApiResponse(message="Profile retrieved successfully", data=UserOut.model_validate(current_user))


@router.put("/me", response_model=ApiResponse[UserOut])
def update_me(
    body: UserUpdateRequest,
    current_user: User = Depends(get_current_verified_user),
    db: Session = Depends(get_db),
):
    user = user_service.update_profile(db, current_user, name=body.name)
    return ApiResponse(message="Profile updated successfully", data=UserOut.model_validate(user))
