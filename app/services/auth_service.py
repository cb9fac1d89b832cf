from dataclasses import dataclass
import logging
import re

from sqlalchemy.orm import Session

from app.config import Settings
from app.exceptions import DeliveryError, InvalidOrExpiredCode, ValidationError
from app.models.account import Account
from app.models.otp_challenge import OtpChallenge
from app.services.email_service import Notifier
from app.services.identity_service import get_account_by_email, resolve_identity, supplied_profile_values
from app.utils.email_validator import EmailValidator
from app.utils.jwt_handler import issue_session
from app.utils.otp import OTP_LENGTH, check_challenge, issue_challenge, normalize_email, verify_challenge

logger = logging.getLogger(__name__)


@dataclass
class AuthenticationResult:
    account: Account
    session_token: str


def validate_email(email: str) -> str:
    valid, message = EmailValidator.is_valid_format(email)
    if not valid:
        raise ValidationError(message)
    return normalize_email(email)


def validate_code(code: str, length: int = OTP_LENGTH) -> str:
    code = (code or "").strip()
    if not re.fullmatch(rf"\d{{{length}}}", code):
        raise ValidationError(f"OTP must be {length} digits")
    return code


async def request_challenge(db: Session, settings: Settings, notifier: Notifier, email: str) -> OtpChallenge:
    """
    Issue a fresh code for ``email`` and email it.

    If delivery fails the stored challenge is left to expire unused and the
    caller gets ``DeliveryError``.
    """
    email = validate_email(email)

    challenge = issue_challenge(
        db,
        email,
        expiry_minutes=settings.OTP_EXPIRY_MINUTES,
    )

    delivered = await notifier.send_otp(email, challenge.code)
    if not delivered:
        logger.error(f"❌ OTP delivery failed for {email}")
        raise DeliveryError()

    logger.info(f"✅ OTP sent to {email}, expires at {challenge.expires_at}")
    return challenge


def verify_and_authenticate(db: Session, settings: Settings, email: str, code: str, profile=None) -> AuthenticationResult:
    """
    Exchange a valid code for an account and a session token.

    Every verification failure surfaces as the same ``InvalidOrExpiredCode``;
    the specific reason is only logged.
    """
    email = validate_email(email)
    code = validate_code(code)

    # An incomplete signup is only reported for a correct code, which stays unspent
    if not supplied_profile_values(profile).get("name") and get_account_by_email(db, email) is None:
        result = check_challenge(db, email, code)
        if result.valid:
            raise ValidationError("name_required")
    else:
        result = verify_challenge(db, email, code)

    if not result.valid:
        logger.warning(f"OTP verification failed for {email}: {result.reason}")
        raise InvalidOrExpiredCode()

    account = resolve_identity(db, email, profile)
    token = issue_session(account, settings)
    return AuthenticationResult(account=account, session_token=token)

