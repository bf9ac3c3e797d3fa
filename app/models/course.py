import uuid
from sqlalchemy import (
    Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text, TIMESTAMP, Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Course(Base):
    """
    A course offered by an instructor.

    Price is a Numeric(10, 2) — never a float. A price of 0 marks a free course
    that students can enroll in directly; anything above 0 goes through checkout.
    capacity=None means unlimited seats.
    """
    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_courses_price_non_negative"),
        CheckConstraint("capacity IS NULL OR capacity > 0", name="ck_courses_capacity_positive"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    instructor_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    capacity = Column(Integer, nullable=True)
    is_published = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────────
    instructor = relationship("User", back_populates="courses")
    enrollments = relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")
    # No delete cascade: a course with payments cannot be deleted
    payments = relationship("Payment", back_populates="course")
