# app/utils/otp.py
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import logging
import secrets

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.models.otp_challenge import OtpChallenge

logger = logging.getLogger(__name__)

# Failure reasons, internal only; callers see one generic error
NOT_FOUND = "not_found"
EXPIRED = "expired"
ALREADY_USED = "already_used"
MISMATCH = "mismatch"

OTP_LENGTH = 6


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    reason: Optional[str] = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


# -------------------- OTP GENERATOR --------------------
def generate_otp(length: int = OTP_LENGTH) -> str:
    """Generate a numeric OTP of given length, uniform over [10^(n-1), 10^n - 1]."""
    lower = 10 ** (length - 1)
    return str(lower + secrets.randbelow(9 * lower))


# -------------------- STORE OTP --------------------
def _challenge_upsert(db: Session, values: dict):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Unsupported database dialect for OTP storage: {dialect}")

    stmt = insert(OtpChallenge).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=[OtpChallenge.email],
        set_={
            "code": stmt.excluded.code,
            "created_at": stmt.excluded.created_at,
            "expires_at": stmt.excluded.expires_at,
            "consumed": False,
            "consumed_at": None,
        },
    )


def issue_challenge(
    db: Session,
    email: str,
    expiry_minutes: int = 10,
    now: Optional[datetime] = None,
) -> OtpChallenge:
    """
    Generate a code for ``email`` and store it, replacing any earlier one.

    A single upsert keyed on email: concurrent issuers for the same address
    race safely and the last write wins.
    """
    normalized_email = normalize_email(email)
    now = now or datetime.utcnow()

    values = {
        "email": normalized_email,
        "code": generate_otp(),
        "created_at": now,
        "expires_at": now + timedelta(minutes=expiry_minutes),
        "consumed": False,
        "consumed_at": None,
    }
    try:
        db.execute(_challenge_upsert(db, values))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"[OTP STORAGE ERROR] Could not store challenge for {normalized_email}")
        raise

    challenge = db.execute(
        select(OtpChallenge)
        .where(OtpChallenge.email == normalized_email)
        .execution_options(populate_existing=True)
    ).scalar_one()

    logger.info(f"[OTP STORAGE] Stored for {normalized_email} | Expires: {challenge.expires_at}")
    return challenge


# -------------------- VERIFY OTP --------------------
def verify_challenge(
    db: Session,
    email: str,
    submitted_code: str,
    now: Optional[datetime] = None,
) -> VerificationResult:
    """
    Verify and consume the outstanding code for ``email``.

    The conditional UPDATE is the test-and-set: only the caller whose
    statement flips ``consumed`` succeeds. The follow-up read only
    classifies the failure.
    """
    normalized_email = normalize_email(email)
    now = now or datetime.utcnow()

    result = db.execute(
        update(OtpChallenge)
        .where(
            OtpChallenge.email == normalized_email,
            OtpChallenge.code == submitted_code,
            OtpChallenge.consumed.is_(False),
            OtpChallenge.expires_at > now,
        )
        .values(consumed=True, consumed_at=now)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 1:
        db.commit()
        logger.info(f"[OTP VERIFICATION] ✅ Consumed challenge for {normalized_email}")
        return VerificationResult(valid=True)

    db.rollback()
    reason = _failure_reason(_load_challenge(db, normalized_email), submitted_code, now) or MISMATCH

    logger.warning(f"[OTP VERIFICATION] ❌ Rejected for {normalized_email}: {reason}")
    return VerificationResult(valid=False, reason=reason)


def _load_challenge(db: Session, normalized_email: str) -> Optional[OtpChallenge]:
    return db.execute(
        select(OtpChallenge)
        .where(OtpChallenge.email == normalized_email)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def _failure_reason(challenge: Optional[OtpChallenge], submitted_code: str, now: datetime) -> Optional[str]:
    if challenge is None:
        return NOT_FOUND
    if challenge.consumed:
        return ALREADY_USED
    if challenge.expires_at <= now:
        return EXPIRED
    if challenge.code != submitted_code:
        return MISMATCH
    return None


def check_challenge(
    db: Session,
    email: str,
    submitted_code: str,
    now: Optional[datetime] = None,
) -> VerificationResult:
    """
    Report whether ``submitted_code`` would verify, without consuming it.

    Only a hint for rejecting a request before the code is spent;
    ``verify_challenge`` remains the authoritative check.
    """
    normalized_email = normalize_email(email)
    reason = _failure_reason(_load_challenge(db, normalized_email), submitted_code, now or datetime.utcnow())
    return VerificationResult(valid=reason is None, reason=reason)
