"""
Admin router: user management and the audit trail.

Every endpoint depends on get_current_admin (role ADMIN). State-changing
operations write their audit entry in the same commit as the change.

  GET  /admin/users              → paginated users, optional search / status
  PUT  /admin/users/{id}/role    → change a user's role
  GET  /admin/audit-logs         → paginated audit trail
"""
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Query as OrmQuery, Session

from app.database import get_db
from app.core.dependencies import get_current_admin
from app.models.audit_log import AuditLog
from app.models.user import User, UserStatus
from app.schemas.admin import AuditLogOut
from app.schemas.common import ApiResponse, Page
from app.schemas.user import UserOut, RoleUpdateRequest
from app.services import user_service

router = APIRouter()


def _page_of(query: OrmQuery, newest_first, page: int, limit: int) -> tuple[int, list]:
    total = query.count()
    rows = query.order_by(newest_first.desc()).offset((page - 1) * limit).limit(limit).all()
    return total, rows


@router.get("/users", response_model=ApiResponse[Page[UserOut]])
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Case-insensitive match on name or email"),
    status: Optional[UserStatus] = Query(None),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    query = db.query(User)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(func.lower(User.email).like(pattern), func.lower(User.name).like(pattern)))
    if status is not None:
        query = query.filter(User.status == status)

    total, users = _page_of(query, User.created_at, page, limit)
    items = [UserOut.model_validate(u) for u in users]
    return ApiResponse(message="Users retrieved successfully", data=Page[UserOut].build(items, total, page, limit))


@router.put("/users/{user_id}/role", response_model=ApiResponse[UserOut])
def update_user_role(
    user_id: uuid.UUID,
    body: RoleUpdateRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    user = user_service.update_user_role(db, admin, user_id, body.role)
    return ApiResponse(message="User role updated successfully", data=UserOut.model_validate(user))


@router.get("/audit-logs", response_model=ApiResponse[Page[AuditLogOut]])
def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    action: Optional[str] = Query(None, description="e.g. UPDATE_USER_ROLE, DELETE_COURSE"),
    target_type: Optional[str] = Query(None, description="e.g. user, course"),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    """Newest entries first. Filters are case-insensitive."""
    query = db.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action.strip().upper())
    if target_type:
        query = query.filter(AuditLog.target_type == target_type.strip().lower())

    total, logs = _page_of(query, AuditLog.created_at, page, limit)
    items = [AuditLogOut.model_validate(log) for log in logs]
    return ApiResponse(message="Audit logs retrieved successfully", data=Page[AuditLogOut].build(items, total, page, limit))
