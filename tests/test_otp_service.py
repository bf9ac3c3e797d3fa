import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from app.models import OTPChallenge
from app.services import otp_service


def _challenge(issued_at: datetime, expires_at: datetime) -> OTPChallenge:
    return OTPChallenge(code_hash="x", issued_at=issued_at, expires_at=expires_at)


class TestGenerateOTP(unittest.TestCase):
    def test_fixed_length_digits(self):
        for _ in range(50):
            code = otp_service.generate_otp()
            self.assertEqual(len(code), 6)
            self.assertTrue(code.isdigit())

    def test_zero_padded(self):
        with patch("app.services.otp_service.secrets.randbelow", return_value=42):
            self.assertEqual(otp_service.generate_otp(6), "000042")

    def test_drawn_from_full_range(self):
        with patch("app.services.otp_service.secrets.randbelow", return_value=0) as randbelow:
            otp_service.generate_otp(4)
        randbelow.assert_called_once_with(10_000)


class TestIsLive(unittest.TestCase):
    now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_missing_challenge(self):
        self.assertFalse(otp_service.is_live(None, self.now))

    def test_before_expiry(self):
        challenge = _challenge(self.now, self.now + timedelta(seconds=1))
        self.assertTrue(otp_service.is_live(challenge, self.now))

    def test_expiry_instant_is_not_live(self):
        challenge = _challenge(self.now - timedelta(minutes=5), self.now)
        self.assertFalse(otp_service.is_live(challenge, self.now))

    def test_naive_timestamps_are_utc(self):
        naive_expiry = (self.now + timedelta(minutes=1)).replace(tzinfo=None)
        challenge = _challenge(self.now, naive_expiry)
        self.assertTrue(otp_service.is_live(challenge, self.now))


class TestResendWait(unittest.TestCase):
    now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def _wait(self, seconds_ago: float) -> int:
        issued = self.now - timedelta(seconds=seconds_ago)
        challenge = _challenge(issued, issued + timedelta(minutes=5))
        return otp_service.resend_wait_seconds(challenge, self.now, cooldown_seconds=60)

    def test_no_previous_challenge(self):
        self.assertEqual(otp_service.resend_wait_seconds(None, self.now), 0)

    def test_remaining_seconds(self):
        self.assertEqual(self._wait(10), 50)

    def test_partial_second_rounds_up(self):
        self.assertEqual(self._wait(0.5), 60)

    def test_cooldown_elapsed(self):
        self.assertEqual(self._wait(60), 0)
        self.assertEqual(self._wait(3600), 0)
