"""
Payments router: checkout for paid courses.

  1. POST /payments/orders                          → PENDING payment + checkout URL
  2. buyer approves on the provider's page
  3. POST /payments/orders/{provider_order_id}/capture → COMPLETED + enrollment

GET /payments/{id} and /payments/enrollment/{id} are readable by the buyer,
the course's instructor and admins.

The gateway comes from the get_payment_gateway dependency so tests can swap
in a fake provider.
"""
import uuid
from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.dependencies import get_current_verified_user
from app.core.rate_limiter import limiter
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.enrollment import EnrollmentSummary
from app.schemas.payment import CreateOrderRequest, OrderCreatedOut, PaymentOut, CaptureResult
from app.services import payment_service
from app.services.razorpay_service import PaymentGateway, get_payment_gateway

router = APIRouter()


@router.post("/orders", response_model=ApiResponse[OrderCreatedOut], status_code=201)
@limiter.limit("10/minute")
def create_order(
    request: Request,
    body: CreateOrderRequest,
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    current_user: User = Depends(get_current_verified_user),
):
    payment, order, course = payment_service.create_order(db, gateway, current_user, body.course_id)
    return ApiResponse(
        message="Payment order created",
        data=OrderCreatedOut(
            payment_id=str(payment.id),
            provider=payment.provider,
            provider_order_id=order.provider_order_id,
            approval_url=order.approval_url,
            amount=float(payment.amount),
            currency=payment.currency,
            course_title=course.title,
        ),
    )


@router.post("/orders/{provider_order_id}/capture", response_model=ApiResponse[CaptureResult])
@limiter.limit("10/minute")
def capture_order(
    request: Request,
    provider_order_id: str,
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    current_user: User = Depends(get_current_verified_user),
):
    payment, enrollment = payment_service.capture_order(db, gateway, current_user, provider_order_id)
    return ApiResponse(
        message="Payment completed, you are now enrolled",
        data=CaptureResult(
            payment=PaymentOut.model_validate(payment),
            enrollment=EnrollmentSummary.model_validate(enrollment),
        ),
    )


@router.get("/me", response_model=ApiResponse[List[PaymentOut]])
def my_payments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user),
):
    payments = payment_service.get_user_payments(db, current_user)
    return ApiResponse(
        message="Payments retrieved successfully",
        data=[PaymentOut.model_validate(p) for p in payments],
    )


@router.get("/enrollment/{enrollment_id}", response_model=ApiResponse[PaymentOut])
def enrollment_payment(
    enrollment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user),
):
    payment = payment_service.get_enrollment_payment(db, current_user, enrollment_id)
    return ApiResponse(message="Payment retrieved successfully", data=PaymentOut.model_validate(payment))


# Declared after /me so that path is matched first
@router.get("/{payment_id}", response_model=ApiResponse[PaymentOut])
def get_payment(
    payment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user),
):
    payment = payment_service.get_payment_for_viewer(db, current_user, payment_id)
    return ApiResponse(message="Payment retrieved successfully", data=PaymentOut.model_validate(payment))
