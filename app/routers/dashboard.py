"""
Dashboard router: one overview per role.

  GET /dashboard/student     → own enrollments, spend, recent activity
  GET /dashboard/instructor  → own courses, seats taken, revenue
  GET /dashboard/admin       → platform-wide counts and revenue
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.dependencies import get_current_admin, get_current_instructor, get_current_verified_user
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.dashboard import AdminDashboard, InstructorDashboard, StudentDashboard
from app.schemas.enrollment import MyEnrollmentOut
from app.schemas.payment import PaymentOut
from app.services import dashboard_service

router = APIRouter()


@router.get("/student", response_model=ApiResponse[StudentDashboard])
def student_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user),
):
    stats = dashboard_service.student_dashboard(db, current_user)
    stats["recent_enrollments"] = [MyEnrollmentOut.model_validate(e) for e in stats["recent_enrollments"]]
    stats["recent_payments"] = [PaymentOut.model_validate(p) for p in stats["recent_payments"]]
    return ApiResponse(message="Dashboard retrieved successfully", data=StudentDashboard(**stats))


@router.get("/instructor", response_model=ApiResponse[InstructorDashboard])
def instructor_dashboard(
    db: Session = Depends(get_db),
    instructor: User = Depends(get_current_instructor),
):
    stats = dashboard_service.instructor_dashboard(db, instructor)
    return ApiResponse(message="Dashboard retrieved successfully", data=InstructorDashboard(**stats))


@router.get("/admin", response_model=ApiResponse[AdminDashboard])
def admin_dashboard(
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin),
):
    return ApiResponse(
        message="Dashboard retrieved successfully",
        data=AdminDashboard(**dashboard_service.admin_dashboard(db)),
    )
