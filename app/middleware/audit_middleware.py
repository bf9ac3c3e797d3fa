"""
Audit trail helper. Despite the package name this is not ASGI middleware:
services call log_admin_action explicitly, before their own commit, so an
action that rolls back leaves no audit entry behind.

    previous = user.role
    user.role = new_role
    log_admin_action(db, admin.id, "UPDATE_USER_ROLE", "user", str(user.id),
                     {"previous_role": previous.value, "new_role": new_role.value})
    db.commit()
"""
import uuid
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog


def log_admin_action(
    db: Session,
    admin_id: uuid.UUID,
    action: str,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> AuditLog:
    """Stages an AuditLog row on the caller's session. Does not commit."""
    entry = AuditLog(
        admin_id=admin_id,
        action=action.upper(),
        target_type=target_type.lower() if target_type else None,
        target_id=target_id,
        details=details,
    )
    db.add(entry)
    return entry
