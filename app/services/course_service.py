"""
Course service: catalogue CRUD and publication.

Ownership rules go through core.permissions.ensure_course_access — an ADMIN
or the course's instructor may modify a course, nobody else.
"""
import uuid
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictException, NotFoundException
from app.core.permissions import ensure_course_access
from app.middleware.audit_middleware import log_admin_action
from app.models.course import Course
from app.models.user import User
from app.schemas.course import CourseCreateRequest, CourseUpdateRequest


def get_course_or_404(db: Session, course_id: uuid.UUID, for_update: bool = False) -> Course:
    stmt = select(Course).where(Course.id == course_id)
    if for_update:
        stmt = stmt.with_for_update()
    course = db.execute(stmt).scalar_one_or_none()
    if not course:
        raise NotFoundException("Course")
    return course


def get_published_course_or_404(db: Session, course_id: uuid.UUID, for_update: bool = False) -> Course:
    """Unpublished courses are invisible to buyers — same 404 as a missing one."""
    course = get_course_or_404(db, course_id, for_update=for_update)
    if not course.is_published:
        raise NotFoundException("Course")
    return course


def create_course(db: Session, instructor: User, data: CourseCreateRequest) -> Course:
    course = Course(
        instructor_id=instructor.id,
        title=data.title,
        description=data.description,
        category=data.category,
        price=data.price,
        capacity=data.capacity,
        is_published=False,
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def list_published_courses(
    db: Session,
    page: int = 1,
    limit: int = 10,
    category: Optional[str] = None,
) -> tuple[int, list[Course]]:
    """Paginated public catalogue, newest first. Returns (total_count, courses)."""
    query = db.query(Course).filter(Course.is_published == True)  # noqa: E712
    if category:
        query = query.filter(func.lower(Course.category) == category.strip().lower())
    total = query.count()
    courses = (
        query.order_by(Course.created_at.desc(), Course.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return total, courses


def list_instructor_courses(db: Session, instructor: User) -> list[Course]:
    return (
        db.query(Course)
        .filter(Course.instructor_id == instructor.id)
        .order_by(Course.created_at.desc())
        .all()
    )


def update_course(db: Session, user: User, course_id: uuid.UUID, data: CourseUpdateRequest) -> Course:
    course = get_course_or_404(db, course_id)
    ensure_course_access(user, course, action="update")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(course, field, value)

    db.commit()
    db.refresh(course)
    return course


def set_published(db: Session, user: User, course_id: uuid.UUID, published: bool) -> Course:
    course = get_course_or_404(db, course_id)
    ensure_course_access(user, course, action="publish" if published else "unpublish")
    course.is_published = published
    db.commit()
    db.refresh(course)
    return course


def delete_course(db: Session, user: User, course_id: uuid.UUID) -> None:
    course = get_course_or_404(db, course_id)
    ensure_course_access(user, course, action="delete")
    if course.enrollments:
        raise ConflictException("Course has enrollments; unpublish it instead")
    if course.payments:
        raise ConflictException("Course has payments; unpublish it instead")

    if course.instructor_id != user.id:
        # Only an admin gets past ensure_course_access without owning the course
        log_admin_action(
            db,
            admin_id=user.id,
            action="DELETE_COURSE",
            target_type="course",
            target_id=str(course.id),
            details={"title": course.title, "instructor_id": str(course.instructor_id)},
        )
    db.delete(course)
    db.commit()
