from pydantic import BaseModel, field_validator, ConfigDict
from typing import Optional
from datetime import datetime
import uuid

from app.models.payment import PaymentStatus
from app.schemas.enrollment import EnrollmentSummary
from app.schemas.user import UserSummary


class CreateOrderRequest(BaseModel):
    course_id: uuid.UUID


class OrderCreatedOut(BaseModel):
    """Returned to the frontend so it can send the buyer to the provider checkout."""
    payment_id: str
    provider: str
    provider_order_id: str
    approval_url: str
    amount: float
    currency: str
    course_title: str


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    course_id: str
    enrollment_id: Optional[str] = None
    amount: float
    currency: str
    provider: str
    provider_order_id: str
    status: PaymentStatus
    failure_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @field_validator("id", "user_id", "course_id", "enrollment_id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> Optional[str]:
        return str(v) if v is not None else None


class CoursePaymentOut(PaymentOut):
    user: UserSummary


class CaptureResult(BaseModel):
    payment: PaymentOut
    enrollment: EnrollmentSummary
