from pydantic import BaseModel, field_validator, ConfigDict
from typing import Optional
from datetime import datetime
import uuid

from app.models.enrollment import EnrollmentStatus
from app.schemas.course import CourseOut
from app.schemas.user import UserSummary


class EnrollRequest(BaseModel):
    course_id: uuid.UUID


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    course_id: str
    status: EnrollmentStatus
    created_at: datetime

    @field_validator("id", "user_id", "course_id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> str:
        return str(v)


class MyEnrollmentOut(EnrollmentOut):
    """A student's enrollment with the course it grants access to."""
    course: CourseOut


class CourseEnrollmentOut(EnrollmentOut):
    """Instructor/admin view: who is enrolled."""
    user: UserSummary


class EnrollmentSummary(BaseModel):
    """Embedded in capture results; kept small on purpose."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    course_id: str
    status: EnrollmentStatus
    created_at: Optional[datetime] = None

    @field_validator("id", "course_id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> str:
        return str(v)


class EnrollmentCheckOut(BaseModel):
    enrolled: bool
    enrollment: Optional[EnrollmentOut] = None


class EnrollmentStatusUpdate(BaseModel):
    status: EnrollmentStatus
