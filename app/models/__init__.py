# models/__init__.py
# Import all models here so that:
# 1. Alembic's env.py can import this single module and detect all tables.
# 2. SQLAlchemy relationship() calls resolve correctly (all classes in same metadata).
# Order matters: models with no foreign keys first, then dependents.

from app.models.user import User, Role, UserStatus
from app.models.otp import OTPChallenge
from app.models.course import Course
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.payment import Payment, PaymentStatus
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "Role",
    "UserStatus",
    "OTPChallenge",
    "Course",
    "Enrollment",
    "EnrollmentStatus",
    "Payment",
    "PaymentStatus",
    "AuditLog",
]
