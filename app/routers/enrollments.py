"""
Enrollments router.

POST /enrollments only covers free courses; paid courses are enrolled by
capturing a payment (see routers/payments.py).
"""
import uuid
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.dependencies import get_current_instructor, get_current_verified_user
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.enrollment import (
    EnrollRequest,
    EnrollmentCheckOut,
    EnrollmentOut,
    EnrollmentStatusUpdate,
    MyEnrollmentOut,
)
from app.services import enrollment_service

router = APIRouter()


@router.post("", response_model=ApiResponse[EnrollmentOut], status_code=201)
def enroll(
    body: EnrollRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user),
):
    enrollment = enrollment_service.enroll_in_free_course(db, current_user, body.course_id)
    return ApiResponse(message="Enrolled successfully", data=EnrollmentOut.model_validate(enrollment))


@router.get("/me", response_model=ApiResponse[List[MyEnrollmentOut]])
def my_enrollments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user),
):
    enrollments = enrollment_service.get_user_enrollments(db, current_user)
    return ApiResponse(
        message="Enrollments retrieved successfully",
        data=[MyEnrollmentOut.model_validate(e) for e in enrollments],
    )


@router.get("/check/{course_id}", response_model=ApiResponse[EnrollmentCheckOut])
def check_enrollment(
    course_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user),
):
    enrollment = enrollment_service.check_enrollment(db, current_user, course_id)
    return ApiResponse(
        message="Enrollment check completed",
        data=EnrollmentCheckOut(
            enrolled=enrollment is not None,
            enrollment=EnrollmentOut.model_validate(enrollment) if enrollment else None,
        ),
    )


@router.get("/{enrollment_id}", response_model=ApiResponse[MyEnrollmentOut])
def get_enrollment(
    enrollment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user),
):
    enrollment = enrollment_service.get_enrollment_for_viewer(db, current_user, enrollment_id)
    return ApiResponse(message="Enrollment retrieved successfully", data=MyEnrollmentOut.model_validate(enrollment))


@router.patch("/{enrollment_id}/cancel", response_model=ApiResponse[EnrollmentOut])
def cancel_enrollment(
    enrollment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user),
):
    enrollment = enrollment_service.cancel_enrollment(db, current_user, enrollment_id)
    return ApiResponse(message="Enrollment cancelled", data=EnrollmentOut.model_validate(enrollment))


# Instructor of the course or admin; the ownership check is in the service
@router.patch("/{enrollment_id}/status", response_model=ApiResponse[EnrollmentOut])
def update_enrollment_status(
    enrollment_id: uuid.UUID,
    body: EnrollmentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_instructor),
):
    enrollment = enrollment_service.update_enrollment_status(db, current_user, enrollment_id, body.status)
    return ApiResponse(message="Enrollment status updated", data=EnrollmentOut.model_validate(enrollment))
