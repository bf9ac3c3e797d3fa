import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from app.services import email_service


class TestSendOTPEmail(unittest.TestCase):
    def test_success(self):
        with patch.object(email_service.fast_mail, "send_message", new=AsyncMock()) as send:
            self.assertTrue(asyncio.run(email_service.send_otp_email("a@example.com", "123456")))
        message = send.await_args.args[0]
        self.assertIn("123456", message.body)

    def test_smtp_failure_is_not_raised(self):
        failing = AsyncMock(side_effect=ConnectionError("smtp down"))
        with patch.object(email_service.fast_mail, "send_message", new=failing):
            with self.assertLogs("app.services.email_service", level="WARNING"):
                self.assertFalse(asyncio.run(email_service.send_otp_email("a@example.com", "123456")))
