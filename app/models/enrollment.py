import enum
import uuid
from sqlalchemy import Column, ForeignKey, TIMESTAMP, UniqueConstraint, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"   # row kept; frees the seat and can be reactivated


class Enrollment(Base):
    __tablename__ = "enrollments"
    # One enrollment per (user, course): enforced at DB level so concurrent
    # captures or double-clicked enroll buttons cannot create a second row.
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_id = Column(
        Uuid,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(
        SAEnum(EnrollmentStatus, name="enrollment_status"),
        nullable=False,
        default=EnrollmentStatus.ACTIVE,
    )
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    # ── Relationships ──────────────────────────────────────────────────────────
    user = relationship("User", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")
    # A reactivated enrollment can be paid for more than once
    payments = relationship("Payment", back_populates="enrollment")
