"""
Dashboard service: read-only aggregates for students, instructors and admins.

Revenue only ever counts COMPLETED payments. "Recent" means the last
RECENT_DAYS days, measured on completed_at for payments and created_at for
users.
"""
from datetime import timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.payment import Payment, PaymentStatus
from app.models.user import Role, User, UserStatus
from app.services.otp_service import utcnow

RECENT_DAYS = 30
RECENT_ITEMS = 5


def _completed_revenue(db: Session, *criteria) -> float:
    total = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.status == PaymentStatus.COMPLETED, *criteria)
        .scalar()
    )
    return float(total)


def _recent_cutoff():
    return utcnow() - timedelta(days=RECENT_DAYS)


def student_dashboard(db: Session, user: User) -> dict:
    enrollments = db.query(Enrollment).filter(Enrollment.user_id == user.id)
    cancelled = enrollments.filter(Enrollment.status == EnrollmentStatus.CANCELLED).count()
    total = enrollments.count()

    return {
        "total_enrollments": total,
        "active_enrollments": total - cancelled,
        "cancelled_enrollments": cancelled,
        "completed_payments": db.query(Payment).filter(
            Payment.user_id == user.id,
            Payment.status == PaymentStatus.COMPLETED,
        ).count(),
        "total_spent": _completed_revenue(db, Payment.user_id == user.id),
        "recent_enrollments": (
            enrollments.options(joinedload(Enrollment.course))
            .order_by(Enrollment.created_at.desc())
            .limit(RECENT_ITEMS)
            .all()
        ),
        "recent_payments": (
            db.query(Payment)
            .filter(Payment.user_id == user.id)
            .order_by(Payment.created_at.desc())
            .limit(RECENT_ITEMS)
            .all()
        ),
    }


def instructor_dashboard(db: Session, instructor: User) -> dict:
    """Covers only the caller's own courses, admins included."""
    courses = (
        db.query(Course)
        .filter(Course.instructor_id == instructor.id)
        .order_by(Course.created_at.desc())
        .all()
    )

    seats = dict(
        db.query(Enrollment.course_id, func.count(Enrollment.id))
        .join(Course, Course.id == Enrollment.course_id)
        .filter(
            Course.instructor_id == instructor.id,
            Enrollment.status != EnrollmentStatus.CANCELLED,
        )
        .group_by(Enrollment.course_id)
        .all()
    )
    revenue = dict(
        db.query(Payment.course_id, func.sum(Payment.amount))
        .join(Course, Course.id == Payment.course_id)
        .filter(
            Course.instructor_id == instructor.id,
            Payment.status == PaymentStatus.COMPLETED,
        )
        .group_by(Payment.course_id)
        .all()
    )

    own_courses = Payment.course_id.in_([course.id for course in courses])
    return {
        "total_courses": len(courses),
        "published_courses": sum(1 for course in courses if course.is_published),
        "total_enrollments": sum(seats.values()),
        "total_revenue": float(sum(revenue.values(), 0)),
        "monthly_revenue": _completed_revenue(db, own_courses, Payment.completed_at >= _recent_cutoff()),
        "course_stats": [
            {
                "id": str(course.id),
                "title": course.title,
                "is_published": course.is_published,
                "enrollments": seats.get(course.id, 0),
                "revenue": float(revenue.get(course.id) or 0),
            }
            for course in courses
        ],
    }


def admin_dashboard(db: Session) -> dict:
    cutoff = _recent_cutoff()

    # Every role/status is reported, zero counts included
    users_by_role = {role.value: 0 for role in Role}
    for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all():
        users_by_role[role.value] = count
    users_by_status = {status.value: 0 for status in UserStatus}
    for status, count in db.query(User.status, func.count(User.id)).group_by(User.status).all():
        users_by_status[status.value] = count

    return {
        "total_users": sum(users_by_role.values()),
        "users_by_role": users_by_role,
        "users_by_status": users_by_status,
        "new_users_last_30_days": db.query(User).filter(User.created_at >= cutoff).count(),
        "total_courses": db.query(Course).count(),
        "published_courses": db.query(Course).filter(Course.is_published == True).count(),  # noqa: E712
        "total_enrollments": db.query(Enrollment).count(),
        "active_enrollments": db.query(Enrollment).filter(
            Enrollment.status == EnrollmentStatus.ACTIVE
        ).count(),
        "completed_payments": db.query(Payment).filter(Payment.status == PaymentStatus.COMPLETED).count(),
        "total_revenue": _completed_revenue(db),
        "recent_revenue": _completed_revenue(db, Payment.completed_at >= cutoff),
    }
