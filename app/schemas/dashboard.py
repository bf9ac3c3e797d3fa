from pydantic import BaseModel
from typing import List

from app.schemas.enrollment import MyEnrollmentOut
from app.schemas.payment import PaymentOut


class StudentDashboard(BaseModel):
    total_enrollments: int
    active_enrollments: int
    cancelled_enrollments: int
    completed_payments: int
    total_spent: float                    # sum of COMPLETED payments
    recent_enrollments: List[MyEnrollmentOut]
    recent_payments: List[PaymentOut]


class CourseStats(BaseModel):
    id: str
    title: str
    is_published: bool
    enrollments: int                      # cancelled ones excluded
    revenue: float


class InstructorDashboard(BaseModel):
    total_courses: int
    published_courses: int
    total_enrollments: int
    total_revenue: float
    monthly_revenue: float                # completed in the last 30 days
    course_stats: List[CourseStats]


class AdminDashboard(BaseModel):
    """Platform-wide overview for the admin panel."""
    total_users: int
    users_by_role: dict[str, int]
    users_by_status: dict[str, int]
    new_users_last_30_days: int
    total_courses: int
    published_courses: int
    total_enrollments: int
    active_enrollments: int
    completed_payments: int
    total_revenue: float
    recent_revenue: float                 # completed in the last 30 days
