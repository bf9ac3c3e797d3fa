import inspect
import re
from unittest.mock import patch

from app.models import UserStatus
from app.routers import auth as auth_router
from tests.base import ApiTestCase, PASSWORD


class TestRegister(ApiTestCase):
    def test_fresh_email_creates_pending_user_with_one_live_challenge(self):
        resp = self.register("A@X.com")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True, "message": "Verification code sent"})

        user = self.get_user("a@x.com")
        self.assertEqual(user.email, "a@x.com")
        self.assertEqual(user.status, UserStatus.PENDING)
        self.assertEqual(user.name, "Ann")

        challenge = self.get_challenge("a@x.com")
        self.assertIsNotNone(challenge)
        self.assertTrue(challenge.code_hash.startswith("$2"))
        self.assertNotEqual(challenge.code_hash, self.otp_sender.last_code("a@x.com"))

    def test_response_never_contains_the_code(self):
        resp = self.register("a@x.com")
        self.assertNotIn(self.otp_sender.last_code("a@x.com"), resp.text)

    def test_reregister_pending_replaces_challenge(self):
        with patch("app.services.otp_service.generate_otp", side_effect=["111111", "222222"]):
            self.assertEqual(self.register("a@x.com", name="Ann").status_code, 200)
            resp = self.register("a@x.com", password="Other22", name="Annie")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "Verification code sent")

        user = self.get_user("a@x.com")
        self.assertEqual(user.name, "Annie")

        self.assertEqual(self.verify("a@x.com", "111111").status_code, 400)
        self.assertEqual(self.verify("a@x.com", "222222").status_code, 200)

        # the second registration's password is the one that counts
        resp = self.client.post("/auth/login", json={"email": "a@x.com", "password": "Other22"})
        self.assertEqual(resp.status_code, 200)

    def test_register_active_email_conflicts_and_changes_nothing(self):
        self.create_user(email="a@x.com")
        before = self.get_user("a@x.com")

        resp = self.register("a@x.com", password="Another9", name="Mallory", role="INSTRUCTOR")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["message"], "User already exists and is active")
        self.assertFalse(resp.json()["success"])

        after = self.get_user("a@x.com")
        for field in ("email", "hashed_password", "name", "role", "status", "updated_at"):
            self.assertEqual(getattr(before, field), getattr(after, field), field)
        self.assertIsNone(self.get_challenge("a@x.com"))

    def test_weak_password_rejected_with_rule_list(self):
        resp = self.register("a@x.com", password="abc")
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertEqual(body["message"], "Password does not meet requirements")
        self.assertIn("Password must be at least 6 characters long", body["errors"])
        self.assertIn("Password must contain at least one number", body["errors"])
        self.assertIsNone(self.get_user("a@x.com"))

    def test_invalid_email_is_validation_error(self):
        resp = self.register("not-an-email")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Validation failed")

    def test_admin_role_cannot_be_self_assigned(self):
        resp = self.register("a@x.com", role="ADMIN")
        self.assertEqual(resp.status_code, 400)
        self.assertIsNone(self.get_user("a@x.com"))

    def test_instructor_role_on_registration(self):
        self.register("teach@x.com", role="INSTRUCTOR")
        resp = self.verify("teach@x.com", self.otp_sender.last_code("teach@x.com"))
        self.assertEqual(resp.json()["data"]["user"]["role"], "INSTRUCTOR")


class TestVerify(ApiTestCase):
    def test_wrong_then_correct_code(self):
        self.register("a@x.com", password="Secret1", name="Ann")
        code = self.otp_sender.last_code("a@x.com")
        wrong = "000000" if code != "000000" else "999999"

        resp = self.verify("a@x.com", wrong)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Invalid or expired OTP")
        self.assertEqual(self.get_user("a@x.com").status, UserStatus.PENDING)
        self.assertIsNotNone(self.get_challenge("a@x.com"))

        resp = self.verify("a@x.com", code)
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["user"]["status"], "ACTIVE")
        self.assertTrue(data["access_token"])
        self.assertTrue(data["refresh_token"])
        self.assertEqual(data["token_type"], "bearer")

        self.assertEqual(self.get_user("a@x.com").status, UserStatus.ACTIVE)
        self.assertIsNone(self.get_challenge("a@x.com"))

    def test_second_verification_with_same_code_is_invalid_state(self):
        self.register("a@x.com")
        code = self.otp_sender.last_code("a@x.com")
        self.assertEqual(self.verify("a@x.com", code).status_code, 200)

        resp = self.verify("a@x.com", code)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "User is already active")

    def test_expired_code_rejected(self):
        self.register("a@x.com")
        code = self.otp_sender.last_code("a@x.com")
        self.expire_challenge("a@x.com")

        resp = self.verify("a@x.com", code)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Invalid or expired OTP")
        self.assertEqual(self.get_user("a@x.com").status, UserStatus.PENDING)

    def test_unknown_email(self):
        resp = self.verify("nobody@x.com", "123456")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["message"], "User not found")

    def test_code_must_be_six_digits(self):
        self.register("a@x.com")
        for bad in ("12345", "1234567", "12a456"):
            resp = self.verify("a@x.com", bad)
            self.assertEqual(resp.status_code, 400, bad)
            self.assertEqual(resp.json()["message"], "Validation failed")


class TestResend(ApiTestCase):
    def test_resend_within_cooldown_is_rate_limited(self):
        self.register("a@x.com")
        self.shift_challenge("a@x.com", 61)

        first = self.client.post("/auth/resend-otp", json={"email": "a@x.com"})
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json()["message"], "New verification code sent")

        second = self.client.post("/auth/resend-otp", json={"email": "a@x.com"})
        self.assertEqual(second.status_code, 429)
        self.assertRegex(second.json()["message"], r"^Please wait \d+ seconds before requesting another OTP$")
        wait = int(re.search(r"\d+", second.json()["message"]).group())
        self.assertTrue(0 < wait <= 60)
        self.assertEqual(second.headers["Retry-After"], str(wait))

    def test_resend_right_after_register_is_rate_limited(self):
        self.register("a@x.com")
        resp = self.client.post("/auth/resend-otp", json={"email": "a@x.com"})
        self.assertEqual(resp.status_code, 429)
        self.assertEqual(len(self.otp_sender.sent), 1)

    def test_resend_after_cooldown_invalidates_previous_code(self):
        with patch("app.services.otp_service.generate_otp", side_effect=["111111", "222222"]):
            self.register("a@x.com")
            self.shift_challenge("a@x.com", 61)
            resp = self.client.post("/auth/resend-otp", json={"email": "a@x.com"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.otp_sender.last_code("a@x.com"), "222222")

        self.assertEqual(self.verify("a@x.com", "111111").status_code, 400)
        self.assertEqual(self.verify("a@x.com", "222222").status_code, 200)

    def test_resend_for_active_user(self):
        self.create_user(email="a@x.com")
        resp = self.client.post("/auth/resend-otp", json={"email": "a@x.com"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "User is already active")

    def test_resend_unknown_email(self):
        resp = self.client.post("/auth/resend-otp", json={"email": "nobody@x.com"})
        self.assertEqual(resp.status_code, 404)


class TestLoginAndRefresh(ApiTestCase):
    def test_login_success(self):
        self.create_user(email="a@x.com")
        resp = self.client.post("/auth/login", json={"email": "A@x.com", "password": PASSWORD})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "Login successful")
        self.assertEqual(resp.json()["data"]["user"]["email"], "a@x.com")

    def test_login_wrong_password_and_unknown_email_look_the_same(self):
        self.create_user(email="a@x.com")
        wrong = self.client.post("/auth/login", json={"email": "a@x.com", "password": "Wrong123"})
        unknown = self.client.post("/auth/login", json={"email": "b@x.com", "password": PASSWORD})
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.json(), unknown.json())

    def test_login_pending_user_forbidden(self):
        self.register("a@x.com")
        resp = self.client.post("/auth/login", json={"email": "a@x.com", "password": PASSWORD})
        self.assertEqual(resp.status_code, 403)

    def test_refresh_issues_new_pair(self):
        self.register("a@x.com")
        tokens = self.verify("a@x.com", self.otp_sender.last_code("a@x.com")).json()["data"]

        resp = self.client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        self.assertEqual(resp.status_code, 200)
        new_access = resp.json()["data"]["access_token"]

        me = self.client.get("/users/me", headers={"Authorization": f"Bearer {new_access}"})
        self.assertEqual(me.status_code, 200)

    def test_access_token_is_not_a_refresh_token(self):
        self.register("a@x.com")
        tokens = self.verify("a@x.com", self.otp_sender.last_code("a@x.com")).json()["data"]

        resp = self.client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
        self.assertEqual(resp.status_code, 401)

        resp = self.client.get("/users/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
        self.assertEqual(resp.status_code, 401)


class TestAuthRoutes(ApiTestCase):
    def test_handlers_run_in_threadpool(self):
        # Blocking DB and bcrypt work must not run on the event loop
        endpoints = {route.path: route.endpoint for route in auth_router.router.routes}
        self.assertEqual(
            set(endpoints),
            {"/register", "/verify-otp", "/resend-otp", "/login", "/refresh"},
        )
        for path, endpoint in endpoints.items():
            self.assertFalse(inspect.iscoroutinefunction(endpoint), path)
