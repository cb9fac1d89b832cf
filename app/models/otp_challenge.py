# app/models/otp_challenge.py
from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime

from app.database import Base


class OtpChallenge(Base):
    """
    The single outstanding one-time code for an email address.

    Rows are overwritten on re-issue and never deleted; expiry and
    consumption are enforced by the verification predicate.
    """
    __tablename__ = "otp_challenges"

    email = Column(String(255), primary_key=True)
    code = Column(String(6), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)
    consumed = Column(Boolean, nullable=False, default=False)
    consumed_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<OtpChallenge email={self.email} consumed={self.consumed}>"
