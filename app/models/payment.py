import enum
import uuid
from sqlalchemy import Column, ForeignKey, Numeric, String, TIMESTAMP, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"   # terminal
    FAILED = "FAILED"         # provider refused the capture; may be captured again


class Payment(Base):
    """
    One checkout attempt for a course.

    provider_order_id is the id the payment provider assigned to the order and
    is unique — two rows with the same id indicate corruption and are rejected.
    enrollment_id stays NULL until the capture completes; the payment row and
    the enrollment row are written in the same commit.
    """
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_id = Column(
        Uuid,
        ForeignKey("courses.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    enrollment_id = Column(
        Uuid,
        ForeignKey("enrollments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Copied from course.price at order creation; later price edits don't apply
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    provider = Column(String(30), nullable=False, default="razorpay")
    provider_order_id = Column(String(100), unique=True, nullable=False, index=True)
    status = Column(
        SAEnum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    failure_reason = Column(String(255), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    completed_at = Column(TIMESTAMP(timezone=True), nullable=True)

    # ── Relationships ──────────────────────────────────────────────────────────
    user = relationship("User", back_populates="payments")
    course = relationship("Course", back_populates="payments")
    enrollment = relationship("Enrollment", back_populates="payments")
