"""
Courses router: public catalogue plus instructor/admin management.

Public reads (list, detail) are served from the in-process course cache.
Every write that can change what a buyer sees drops the course's detail
entry and all cached listing pages.
"""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.cache import CacheBackend, get_course_cache
from app.core.dependencies import get_current_instructor, get_current_verified_user
from app.models.user import User
from app.schemas.common import ApiResponse, MessageResponse, Page
from app.schemas.course import CourseOut, CourseCreateRequest, CourseUpdateRequest
from app.schemas.enrollment import CourseEnrollmentOut
from app.schemas.payment import CoursePaymentOut
from app.services import course_service, enrollment_service, payment_service

router = APIRouter()

LIST_PREFIX = "courses:list:"


def _detail_key(course_id) -> str:
    return f"courses:detail:{course_id}"


def _invalidate(cache: CacheBackend, course_id) -> None:
    cache.invalidate(_detail_key(course_id))
    cache.invalidate_prefix(LIST_PREFIX)


# ── Public catalogue ──────────────────────────────────────────────────────────

@router.get("", response_model=ApiResponse[Page[CourseOut]])
def list_courses(
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_course_cache),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: Optional[str] = Query(None, description="Filter by category (case-insensitive)"),
):
    """Published courses only. Public endpoint."""
    key = f"{LIST_PREFIX}{page}:{limit}:{(category or '').strip().lower()}"
    data = cache.get(key)
    if data is None:
        total, courses = course_service.list_published_courses(db, page=page, limit=limit, category=category)
        data = Page[CourseOut].build(
            [CourseOut.model_validate(c) for c in courses], total, page, limit
        ).model_dump(mode="json")
        cache.set(key, data)
    return ApiResponse(message="Courses retrieved successfully", data=data)


@router.post("", response_model=ApiResponse[CourseOut], status_code=201)
def create_course(
    body: CourseCreateRequest,
    db: Session = Depends(get_db),
    instructor: User = Depends(get_current_instructor),
):
    """New courses start unpublished, so the public cache is unaffected."""
    course = course_service.create_course(db, instructor, body)
    return ApiResponse(message="Course created successfully", data=CourseOut.model_validate(course))


@router.get("/mine", response_model=ApiResponse[List[CourseOut]])
def list_my_courses(
    db: Session = Depends(get_db),
    instructor: User = Depends(get_current_instructor),
):
    """The caller's own courses, published or not."""
    courses = course_service.list_instructor_courses(db, instructor)
    return ApiResponse(
        message="Courses retrieved successfully",
        data=[CourseOut.model_validate(c) for c in courses],
    )


@router.get("/{course_id}", response_model=ApiResponse[CourseOut])
def get_course(
    course_id: uuid.UUID,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_course_cache),
):
    key = _detail_key(course_id)
    data = cache.get(key)
    if data is None:
        course = course_service.get_published_course_or_404(db, course_id)
        data = CourseOut.model_validate(course).model_dump(mode="json")
        cache.set(key, data)
    return ApiResponse(message="Course retrieved successfully", data=data)


# ── Management (owner instructor or admin) ────────────────────────────────────

@router.put("/{course_id}", response_model=ApiResponse[CourseOut])
def update_course(
    course_id: uuid.UUID,
    body: CourseUpdateRequest,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_course_cache),
    user: User = Depends(get_current_instructor),
):
    course = course_service.update_course(db, user, course_id, body)
    _invalidate(cache, course_id)
    return ApiResponse(message="Course updated successfully", data=CourseOut.model_validate(course))


@router.post("/{course_id}/publish", response_model=ApiResponse[CourseOut])
def publish_course(
    course_id: uuid.UUID,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_course_cache),
    user: User = Depends(get_current_instructor),
):
    course = course_service.set_published(db, user, course_id, True)
    _invalidate(cache, course_id)
    return ApiResponse(message="Course published", data=CourseOut.model_validate(course))


@router.post("/{course_id}/unpublish", response_model=ApiResponse[CourseOut])
def unpublish_course(
    course_id: uuid.UUID,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_course_cache),
    user: User = Depends(get_current_instructor),
):
    course = course_service.set_published(db, user, course_id, False)
    _invalidate(cache, course_id)
    return ApiResponse(message="Course unpublished", data=CourseOut.model_validate(course))


@router.delete("/{course_id}", response_model=MessageResponse)
def delete_course(
    course_id: uuid.UUID,
    db: Session = Depends(get_db),
    cache: CacheBackend = Depends(get_course_cache),
    user: User = Depends(get_current_instructor),
):
    course_service.delete_course(db, user, course_id)
    _invalidate(cache, course_id)
    return MessageResponse(message="Course deleted successfully")


@router.get("/{course_id}/enrollments", response_model=ApiResponse[List[CourseEnrollmentOut]])
def list_course_enrollments(
    course_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_verified_user),
):
    enrollments = enrollment_service.get_course_enrollments(db, user, course_id)
    return ApiResponse(
        message="Enrollments retrieved successfully",
        data=[CourseEnrollmentOut.model_validate(e) for e in enrollments],
    )


@router.get("/{course_id}/payments", response_model=ApiResponse[List[CoursePaymentOut]])
def list_course_payments(
    course_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_verified_user),
):
    payments = payment_service.get_course_payments(db, user, course_id)
    return ApiResponse(
        message="Payments retrieved successfully",
        data=[CoursePaymentOut.model_validate(p) for p in payments],
    )
