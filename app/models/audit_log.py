import uuid
from sqlalchemy import Column, String, TIMESTAMP, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class AuditLog(Base):
    """
    Immutable audit trail for admin actions.
    Records are INSERT-only — never updated or deleted.

    Actions recorded: UPDATE_USER_ROLE, DELETE_COURSE (when an admin removes
    a course they don't own).
    """
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    admin_id = Column(
        Uuid,
        # SET NULL: preserve log even if admin account is deleted
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action = Column(String(100), nullable=False, index=True)
    target_type = Column(String(50), nullable=True)
    target_id = Column(String(100), nullable=True, index=True)
    # e.g. {"previous_role": "STUDENT", "new_role": "INSTRUCTOR"}
    details = Column(JSON, nullable=True)
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    # ── Relationships ──────────────────────────────────────────────────────────
    admin = relationship("User", back_populates="audit_logs", foreign_keys=[admin_id])
