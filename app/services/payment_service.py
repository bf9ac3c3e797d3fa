"""
Payment service: course checkout and settlement.

Payment states:
    PENDING ──capture confirmed──▶ COMPLETED (terminal)
       │  ▲
       ▼  │ capture retried
     FAILED

CRITICAL: completing a payment and creating the enrollment happen in ONE
commit. The payment row is read with SELECT FOR UPDATE during capture, so two
concurrent capture calls for the same order are serialized — the second one
sees COMPLETED and is rejected with a conflict instead of enrolling twice.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.config import settings
from app.core.exceptions import (
    ConflictException,
    ExternalServiceException,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
    ValidationException,
)
from app.core.permissions import ensure_course_access
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.payment import Payment, PaymentStatus
from app.models.user import User
from app.services.course_service import get_course_or_404, get_published_course_or_404
from app.services.enrollment_service import (
    ensure_not_enrolled,
    ensure_seat_available,
    find_enrollment,
    get_enrollment_for_viewer,
)
from app.services.otp_service import utcnow
from app.services.razorpay_service import (
    CAPTURE_COMPLETED,
    PaymentGateway,
    PaymentProviderError,
    ProviderOrder,
)

logger = logging.getLogger(__name__)


def get_payment_by_provider_order(
    db: Session, provider_order_id: str, for_update: bool = False
) -> Optional[Payment]:
    stmt = select(Payment).where(Payment.provider_order_id == provider_order_id)
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def create_order(
    db: Session,
    gateway: PaymentGateway,
    user: User,
    course_id: uuid.UUID,
) -> tuple[Payment, ProviderOrder, Course]:
    """
    Opens a provider order for the course at its current price and records a
    PENDING payment. Nothing is written if the provider call fails.
    """
    course = get_published_course_or_404(db, course_id)
    if course.price <= 0:
        raise ValidationException("This course is free, enroll directly instead")
    ensure_not_enrolled(db, user.id, course.id)
    ensure_seat_available(db, course)

    amount = course.price
    currency = settings.payment_currency
    try:
        order = gateway.create_order(
            amount=amount,
            currency=currency,
            description=course.title,
            return_url=settings.payment_return_url,
            cancel_url=settings.payment_cancel_url,
            receipt=f"course_{course.id.hex[:16]}",
        )
    except PaymentProviderError as exc:
        logger.warning(f"Order creation failed for user {user.id}, course {course.id}: {exc}")
        raise ExternalServiceException("Failed to create payment order")

    # A provider id we already hold means corrupt data on one side; never
    # attach a second checkout to an existing payment
    if get_payment_by_provider_order(db, order.provider_order_id) is not None:
        logger.error(f"Duplicate provider order id {order.provider_order_id} returned by {gateway.name}")
        raise InternalServerException("Duplicate payment provider order id")

    payment = Payment(
        user_id=user.id,
        course_id=course.id,
        amount=amount,
        currency=currency,
        provider=gateway.name,
        provider_order_id=order.provider_order_id,
        status=PaymentStatus.PENDING,
    )
    db.add(payment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.error(f"Duplicate provider order id {order.provider_order_id} rejected by database")
        raise InternalServerException("Duplicate payment provider order id")
    db.refresh(payment)

    logger.info(f"Payment {payment.id} opened: order {order.provider_order_id}, {amount} {currency}")
    return payment, order, course


def _mark_failed(db: Session, payment: Payment, reason: str) -> None:
    payment.status = PaymentStatus.FAILED
    payment.failure_reason = reason[:255]
    db.commit()
    logger.warning(f"Payment {payment.id} capture failed: {reason}")


def capture_order(
    db: Session,
    gateway: PaymentGateway,
    user: User,
    provider_order_id: str,
) -> tuple[Payment, Enrollment]:
    """
    Confirms the order with the provider and materializes the enrollment.

    Rejections (no provider call): 404 unknown order, 403 someone else's order,
    409 already completed, 409 buyer already enrolled through another order
    (that payment is marked FAILED and left uncaptured). A provider refusal
    marks the payment FAILED and raises; a FAILED payment can be captured
    again. A cancelled enrollment for the course is reactivated.
    """
    payment = get_payment_by_provider_order(db, provider_order_id, for_update=True)
    if payment is None:
        raise NotFoundException("Payment")
    if payment.user_id != user.id:
        raise ForbiddenException("Payment does not belong to you")
    if payment.status == PaymentStatus.COMPLETED:
        raise ConflictException("Payment already completed")

    # Orders are opened with manual capture, so stopping here charges nothing
    existing = find_enrollment(db, payment.user_id, payment.course_id)
    if existing is not None and existing.status != EnrollmentStatus.CANCELLED:
        _mark_failed(db, payment, "Buyer already enrolled in this course")
        raise ConflictException("You are already enrolled in this course")

    try:
        result = gateway.capture_order(provider_order_id)
    except PaymentProviderError as exc:
        _mark_failed(db, payment, str(exc))
        raise ExternalServiceException("Failed to capture payment")

    if result.status != CAPTURE_COMPLETED:
        _mark_failed(db, payment, f"Provider reported status {result.status}")
        raise ExternalServiceException("Payment not completed")

    if existing is not None:
        enrollment = existing
        enrollment.status = EnrollmentStatus.ACTIVE
    else:
        enrollment = Enrollment(
            user_id=payment.user_id,
            course_id=payment.course_id,
            status=EnrollmentStatus.ACTIVE,
        )
        db.add(enrollment)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        # Money was captured but the seat already exists: needs a refund by hand
        logger.error(f"Payment {payment.id} captured for an existing enrollment; refund required")
        raise ConflictException("You are already enrolled in this course")

    payment.status = PaymentStatus.COMPLETED
    payment.completed_at = utcnow()
    payment.failure_reason = None
    payment.enrollment_id = enrollment.id
    db.commit()
    db.refresh(payment)
    db.refresh(enrollment)

    logger.info(f"Payment {payment.id} completed; enrollment {enrollment.id} created")
    return payment, enrollment


def get_user_payments(db: Session, user: User) -> list[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.user_id == user.id)
        .order_by(Payment.created_at.desc())
        .all()
    )


def get_course_payments(db: Session, user: User, course_id: uuid.UUID) -> list[Payment]:
    """Admin or the course's instructor only."""
    course = get_course_or_404(db, course_id)
    ensure_course_access(user, course, action="view payments for")
    return (
        db.query(Payment)
        .options(joinedload(Payment.user))
        .filter(Payment.course_id == course.id)
        .order_by(Payment.created_at.desc())
        .all()
    )


def get_payment_for_viewer(db: Session, user: User, payment_id: uuid.UUID) -> Payment:
    """The buyer, the course's instructor or an admin; everyone else gets 403."""
    payment = (
        db.query(Payment)
        .options(joinedload(Payment.course))
        .filter(Payment.id == payment_id)
        .first()
    )
    if payment is None:
        raise NotFoundException("Payment")
    if payment.user_id != user.id:
        ensure_course_access(user, payment.course, action="view payments for")
    return payment


def get_enrollment_payment(db: Session, user: User, enrollment_id: uuid.UUID) -> Payment:
    """
    The completed payment that paid for the enrollment. A reactivated
    enrollment may have several; the latest one wins. Free enrollments have
    none and get 404.
    """
    enrollment = get_enrollment_for_viewer(db, user, enrollment_id)
    payment = (
        db.query(Payment)
        .filter(
            Payment.enrollment_id == enrollment.id,
            Payment.status == PaymentStatus.COMPLETED,
        )
        .order_by(Payment.completed_at.desc())
        .first()
    )
    if payment is None:
        raise NotFoundException("Payment")
    return payment
