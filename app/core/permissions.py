"""
Role and ownership checks.

All authorization decisions go through these two functions so the rules live
in one place:
  - require_role: the caller's role must be one of the allowed roles.
  - ensure_course_access: the caller is an ADMIN or the course's instructor.
"""
from app.core.exceptions import ForbiddenException
from app.models.course import Course
from app.models.user import Role, User


def require_role(user: User, *roles: Role, detail: str | None = None) -> User:
    if user.role not in roles:
        allowed = ", ".join(role.value for role in roles)
        raise ForbiddenException(detail or f"This action requires one of the roles: {allowed}")
    return user


def can_manage_course(user: User, course: Course) -> bool:
    return user.role == Role.ADMIN or course.instructor_id == user.id


def ensure_course_access(user: User, course: Course, action: str = "manage") -> None:
    if not can_manage_course(user, course):
        raise ForbiddenException(f"You do not have permission to {action} this course")
