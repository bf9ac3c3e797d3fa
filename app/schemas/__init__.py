from app.schemas.common import ApiResponse, MessageResponse, Page
from app.schemas.user import UserOut, UserSummary, UserUpdateRequest, RoleUpdateRequest
from app.schemas.auth import (
    RegisterRequest, VerifyOTPRequest, ResendOTPRequest,
    LoginRequest, RefreshTokenRequest, TokenResponse, AuthResult,
)
from app.schemas.course import CourseOut, CourseCreateRequest, CourseUpdateRequest
from app.schemas.enrollment import (
    EnrollRequest, EnrollmentOut, MyEnrollmentOut, CourseEnrollmentOut, EnrollmentSummary,
    EnrollmentCheckOut, EnrollmentStatusUpdate,
)
from app.schemas.payment import (
    CreateOrderRequest, OrderCreatedOut, PaymentOut, CoursePaymentOut, CaptureResult,
)
from app.schemas.admin import AuditLogOut
from app.schemas.dashboard import (
    StudentDashboard, InstructorDashboard, CourseStats, AdminDashboard,
)
