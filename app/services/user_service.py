"""
User service: profile edits and admin role management.
"""
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundException, ValidationException
from app.middleware.audit_middleware import log_admin_action
from app.models.user import User, Role


def get_user_or_404(db: Session, user_id: uuid.UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundException("User")
    return user


def update_profile(db: Session, user: User, name: Optional[str]) -> User:
    """Only the display name is editable. Email and role have their own flows."""
    user.name = name.strip() if name and name.strip() else None
    db.commit()
    db.refresh(user)
    return user


def update_user_role(db: Session, admin: User, target_user_id: uuid.UUID, new_role: Role) -> User:
    """
    Admin-only role change. The role update and its audit record share a commit.
    An admin cannot demote themselves — that would lock the last admin out.
    """
    user = get_user_or_404(db, target_user_id)
    if user.id == admin.id and new_role != Role.ADMIN:
        raise ValidationException("Admins cannot remove their own admin role")

    previous_role = user.role
    user.role = new_role
    log_admin_action(
        db,
        admin_id=admin.id,
        action="UPDATE_USER_ROLE",
        target_type="user",
        target_id=str(user.id),
        details={"previous_role": previous_role.value, "new_role": new_role.value},
    )
    db.commit()
    db.refresh(user)
    return user
