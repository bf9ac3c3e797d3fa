"""
Enrollment service: direct (free) enrollment, enrollment lookups and status
changes.

Paid courses are enrolled through payment_service.capture_order, which
creates the Enrollment in the same commit that completes the Payment.

There is one enrollment row per (user, course). Cancelling keeps the row with
status CANCELLED; it frees the seat, and enrolling again (free enrollment or a
captured payment) reactivates the same row.
"""
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from app.core.permissions import can_manage_course, ensure_course_access
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.user import Role, User
from app.services.course_service import get_course_or_404, get_published_course_or_404


def find_enrollment(db: Session, user_id: uuid.UUID, course_id: uuid.UUID) -> Optional[Enrollment]:
    return db.query(Enrollment).filter(
        Enrollment.user_id == user_id,
        Enrollment.course_id == course_id,
    ).first()


def ensure_not_enrolled(db: Session, user_id: uuid.UUID, course_id: uuid.UUID) -> None:
    existing = find_enrollment(db, user_id, course_id)
    if existing and existing.status != EnrollmentStatus.CANCELLED:
        raise ConflictException("You are already enrolled in this course")


def ensure_seat_available(db: Session, course: Course) -> None:
    """capacity=None means unlimited. Cancelled enrollments don't hold a seat."""
    if course.capacity is None:
        return
    taken = db.query(Enrollment).filter(
        Enrollment.course_id == course.id,
        Enrollment.status != EnrollmentStatus.CANCELLED,
    ).count()
    if taken >= course.capacity:
        raise ConflictException("Course is full")


def enroll_in_free_course(db: Session, user: User, course_id: uuid.UUID) -> Enrollment:
    """
    Enrolls the user directly. Only free (price 0) published courses qualify.
    The course row is locked so two last-seat requests can't both pass the
    capacity check.
    """
    course = get_published_course_or_404(db, course_id, for_update=True)
    if course.price > 0:
        raise ValidationException("This course requires payment")

    ensure_not_enrolled(db, user.id, course.id)
    ensure_seat_available(db, course)

    enrollment = find_enrollment(db, user.id, course.id)
    if enrollment is not None:
        enrollment.status = EnrollmentStatus.ACTIVE
    else:
        enrollment = Enrollment(user_id=user.id, course_id=course.id, status=EnrollmentStatus.ACTIVE)
        db.add(enrollment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictException("You are already enrolled in this course")
    db.refresh(enrollment)
    return enrollment


def get_user_enrollments(db: Session, user: User) -> list[Enrollment]:
    return (
        db.query(Enrollment)
        .options(joinedload(Enrollment.course))
        .filter(Enrollment.user_id == user.id)
        .order_by(Enrollment.created_at.desc())
        .all()
    )


def get_course_enrollments(db: Session, user: User, course_id: uuid.UUID) -> list[Enrollment]:
    """Admin or the course's instructor only."""
    course = get_course_or_404(db, course_id)
    ensure_course_access(user, course, action="view enrollments for")
    return (
        db.query(Enrollment)
        .options(joinedload(Enrollment.user))
        .filter(Enrollment.course_id == course.id)
        .order_by(Enrollment.created_at.desc())
        .all()
    )


def _get_enrollment_or_404(db: Session, enrollment_id: uuid.UUID) -> Enrollment:
    enrollment = (
        db.query(Enrollment)
        .options(joinedload(Enrollment.course))
        .filter(Enrollment.id == enrollment_id)
        .first()
    )
    if enrollment is None:
        raise NotFoundException("Enrollment")
    return enrollment


def get_enrollment_for_viewer(db: Session, user: User, enrollment_id: uuid.UUID) -> Enrollment:
    """The enrolled student, the course's instructor or an admin."""
    enrollment = _get_enrollment_or_404(db, enrollment_id)
    if enrollment.user_id != user.id and not can_manage_course(user, enrollment.course):
        raise ForbiddenException("You do not have permission to view this enrollment")
    return enrollment


def check_enrollment(db: Session, user: User, course_id: uuid.UUID) -> Optional[Enrollment]:
    """The caller's live enrollment in the course, or None (cancelled counts as none)."""
    get_course_or_404(db, course_id)
    enrollment = find_enrollment(db, user.id, course_id)
    if enrollment is None or enrollment.status == EnrollmentStatus.CANCELLED:
        return None
    return enrollment


def cancel_enrollment(db: Session, user: User, enrollment_id: uuid.UUID) -> Enrollment:
    """The student cancels their own enrollment; an admin may cancel anyone's. No refund is issued."""
    enrollment = _get_enrollment_or_404(db, enrollment_id)
    if enrollment.user_id != user.id and user.role != Role.ADMIN:
        raise ForbiddenException("You can only cancel your own enrollments")
    if enrollment.status == EnrollmentStatus.CANCELLED:
        raise InvalidStateException("Enrollment is already cancelled")

    enrollment.status = EnrollmentStatus.CANCELLED
    db.commit()
    db.refresh(enrollment)
    return enrollment


def update_enrollment_status(
    db: Session,
    user: User,
    enrollment_id: uuid.UUID,
    new_status: EnrollmentStatus,
) -> Enrollment:
    """
    Admin or the course's instructor sets the status directly. Moving a
    cancelled enrollment back to a live status takes a seat again, so the
    course row is locked and capacity re-checked.
    """
    enrollment = _get_enrollment_or_404(db, enrollment_id)
    ensure_course_access(user, enrollment.course, action="manage enrollments for")
    if enrollment.status == new_status:
        raise InvalidStateException(f"Enrollment is already {new_status.value.lower()}")

    if enrollment.status == EnrollmentStatus.CANCELLED:
        course = get_course_or_404(db, enrollment.course_id, for_update=True)
        ensure_seat_available(db, course)

    enrollment.status = new_status
    db.commit()
    db.refresh(enrollment)
    return enrollment
