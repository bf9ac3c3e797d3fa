"""
Shared fixtures for the API tests.

Every test gets a fresh app, a fresh in-memory SQLite database and fresh
fakes for the two outside collaborators (the OTP mailer and the payment
provider). StaticPool keeps the single in-memory connection alive across
sessions.
"""
import unittest
import uuid
from datetime import timedelta
from typing import Optional

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.rate_limiter import limiter
from app.database import Base, get_db
from app.main import create_app
from app.models import OTPChallenge, User, Role
from app.services.email_service import get_otp_sender
from app.services.otp_service import utcnow
from app.services.razorpay_service import (
    CAPTURE_COMPLETED,
    ProviderCapture,
    ProviderOrder,
    get_payment_gateway,
)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "Secret1"


class OTPRecorder:
    """Stands in for the mailer and keeps every code it was asked to send."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    async def __call__(self, email_to: str, otp: str) -> bool:
        self.sent.append((email_to, otp))
        return True

    def last_code(self, email: str) -> str:
        for email_to, otp in reversed(self.sent):
            if email_to == email.lower():
                return otp
        raise AssertionError(f"no code sent to {email}")


class FakeGateway:
    """
    In-memory payment provider.

    capture_outcomes maps an order id to the status capture_order reports, or
    to an exception it raises. Orders not listed capture successfully.
    """
    name = "fake"

    def __init__(self):
        self.created: list[dict] = []
        self.capture_calls: list[str] = []
        self.capture_outcomes: dict = {}
        self.create_error: Optional[Exception] = None
        self.fixed_order_id: Optional[str] = None

    def create_order(self, amount, currency, description, return_url, cancel_url, receipt=None):
        if self.create_error is not None:
            raise self.create_error
        order_id = self.fixed_order_id or f"ORDER-{len(self.created) + 1}"
        self.created.append({"id": order_id, "amount": amount, "currency": currency})
        return ProviderOrder(provider_order_id=order_id, approval_url=f"https://checkout.test/{order_id}")

    def capture_order(self, provider_order_id):
        self.capture_calls.append(provider_order_id)
        outcome = self.capture_outcomes.get(provider_order_id, CAPTURE_COMPLETED)
        if isinstance(outcome, Exception):
            raise outcome
        return ProviderCapture(status=outcome, provider_payment_id=f"pay_{provider_order_id}")


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        Base.metadata.create_all(bind=engine)
        limiter.enabled = False

        self.app = create_app()
        self.otp_sender = OTPRecorder()
        self.gateway = FakeGateway()

        def override_get_db():
            db = TestingSessionLocal()
            try:
                yield db
            finally:
                db.close()

        self.app.dependency_overrides[get_db] = override_get_db
        self.app.dependency_overrides[get_otp_sender] = lambda: self.otp_sender
        self.app.dependency_overrides[get_payment_gateway] = lambda: self.gateway

        self.client = TestClient(self.app)

    def tearDown(self):
        self.client.close()
        Base.metadata.drop_all(bind=engine)

    # ── DB access ─────────────────────────────────────────────────────────────

    def session(self):
        return TestingSessionLocal()

    def get_user(self, email: str) -> Optional[User]:
        with self.session() as db:
            user = db.query(User).filter(User.email == email.lower()).first()
            if user is not None:
                db.expunge(user)
            return user

    def get_challenge(self, email: str) -> Optional[OTPChallenge]:
        with self.session() as db:
            challenge = (
                db.query(OTPChallenge)
                .join(User, OTPChallenge.user_id == User.id)
                .filter(User.email == email.lower())
                .first()
            )
            if challenge is not None:
                db.expunge(challenge)
            return challenge

    def shift_challenge(self, email: str, seconds: int) -> None:
        """Moves the challenge's issue and expiry times `seconds` into the past."""
        with self.session() as db:
            user = db.query(User).filter(User.email == email.lower()).one()
            challenge = db.query(OTPChallenge).filter(OTPChallenge.user_id == user.id).one()
            challenge.issued_at = challenge.issued_at - timedelta(seconds=seconds)
            challenge.expires_at = challenge.expires_at - timedelta(seconds=seconds)
            db.commit()

    def expire_challenge(self, email: str) -> None:
        with self.session() as db:
            user = db.query(User).filter(User.email == email.lower()).one()
            challenge = db.query(OTPChallenge).filter(OTPChallenge.user_id == user.id).one()
            challenge.expires_at = utcnow() - timedelta(seconds=1)
            db.commit()

    def set_role(self, email: str, role: Role) -> None:
        with self.session() as db:
            user = db.query(User).filter(User.email == email.lower()).one()
            user.role = role
            db.commit()

    # ── API helpers ───────────────────────────────────────────────────────────

    def register(self, email: str, password: str = PASSWORD, name: Optional[str] = "Ann", role: Optional[str] = None):
        body = {"email": email, "password": password, "name": name}
        if role is not None:
            body["role"] = role
        return self.client.post("/auth/register", json=body)

    def verify(self, email: str, code: str):
        return self.client.post("/auth/verify-otp", json={"email": email, "code": code})

    def create_user(self, role: Role = Role.STUDENT, email: Optional[str] = None) -> tuple[dict, dict]:
        """Registers, verifies and (if needed) promotes a user. Returns (user, headers)."""
        email = email or f"{role.value.lower()}_{uuid.uuid4().hex[:8]}@example.com"
        register_role = Role.INSTRUCTOR.value if role == Role.INSTRUCTOR else None
        self.assertEqual(self.register(email, role=register_role).status_code, 200)
        resp = self.verify(email, self.otp_sender.last_code(email))
        self.assertEqual(resp.status_code, 200, resp.text)
        data = resp.json()["data"]
        if role == Role.ADMIN:
            self.set_role(email, Role.ADMIN)
        return data["user"], {"Authorization": f"Bearer {data['access_token']}"}

    def create_course(
        self,
        headers: dict,
        price: str = "99.99",
        publish: bool = True,
        capacity: Optional[int] = None,
        title: str = "Intro to Python",
        category: Optional[str] = "programming",
    ) -> dict:
        body = {"title": title, "price": price, "category": category}
        if capacity is not None:
            body["capacity"] = capacity
        resp = self.client.post("/courses", json=body, headers=headers)
        self.assertEqual(resp.status_code, 201, resp.text)
        course = resp.json()["data"]
        if publish:
            resp = self.client.post(f"/courses/{course['id']}/publish", headers=headers)
            self.assertEqual(resp.status_code, 200, resp.text)
            course = resp.json()["data"]
        return course
