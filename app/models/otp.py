import uuid
from sqlalchemy import Column, String, TIMESTAMP, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.database import Base


class OTPChallenge(Base):
    """
    The single outstanding email-verification challenge for a PENDING user.

    Security notes:
    - Raw OTP is NEVER stored — only the bcrypt hash.
    - user_id is unique: a user has zero or one challenge. Issuing a new code
      overwrites this row in place, so the previous code stops verifying.
    - Expiry is not swept in the background. A row past expires_at is treated
      as absent (see otp_service.is_live) until it is replaced or consumed.
    - issued_at drives the resend cooldown.
    """
    __tablename__ = "otp_challenges"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    code_hash = Column(String, nullable=False)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)
    issued_at = Column(TIMESTAMP(timezone=True), nullable=False)

    # ── Relationships ──────────────────────────────────────────────────────────
    user = relationship("User", back_populates="otp_challenge")
