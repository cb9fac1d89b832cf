from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import Conflict, ValidationError
from app.models.account import Account
from app.utils.otp import normalize_email

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "phone", "address", "city", "state", "postal_code")


def supplied_profile_values(profile) -> dict:
    """Non-empty, stripped profile values; absent or blank fields are left out."""
    if profile is None:
        return {}
    values = {}
    for field in PROFILE_FIELDS:
        value = getattr(profile, field, None)
        if isinstance(value, str) and value.strip():
            values[field] = value.strip()
    return values


def get_account_by_email(db: Session, email: str) -> Optional[Account]:
    return db.query(Account).filter(Account.email == normalize_email(email)).first()


def get_account_by_id(db: Session, account_id: str) -> Optional[Account]:
    return db.query(Account).filter(Account.id == account_id).first()


def phone_in_use(db: Session, phone: str, exclude_account_id: Optional[str] = None) -> bool:
    query = db.query(Account.id).filter(Account.phone == phone)
    if exclude_account_id:
        query = query.filter(Account.id != exclude_account_id)
    return query.first() is not None


def _conflict_after_integrity_error(db: Session, email: str, phone: Optional[str], account_id: Optional[str]):
    if phone and phone_in_use(db, phone, exclude_account_id=account_id):
        return Conflict("phone_in_use")
    if account_id is None and get_account_by_email(db, email) is not None:
        return Conflict("email_in_use")
    return None


def create_account(db: Session, email: str, values: dict) -> Account:
    if not values.get("name"):
        raise ValidationError("name_required")

    phone = values.get("phone")
    if phone and phone_in_use(db, phone):
        raise Conflict("phone_in_use")

    account = Account(email=email, **values)
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        # The unique constraints are authoritative; the pre-check can lose a race
        db.rollback()
        conflict = _conflict_after_integrity_error(db, email, phone, None)
        if conflict is None:
            raise
        logger.warning(f"Signup for {email} rejected: {conflict.detail}")
        raise conflict

    db.refresh(account)
    logger.info(f"✅ Created account {account.id} for {email}")
    return account


def update_account(db: Session, account: Account, values: dict) -> Account:
    if not values:
        return account

    phone = values.get("phone")
    if phone and phone != account.phone and phone_in_use(db, phone, exclude_account_id=account.id):
        raise Conflict("phone_in_use")

    for field, value in values.items():
        setattr(account, field, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        conflict = _conflict_after_integrity_error(db, account.email, phone, account.id)
        if conflict is None:
            raise
        raise conflict

    db.refresh(account)
    logger.info(f"Updated profile fields {sorted(values)} for account {account.id}")
    return account


def resolve_identity(db: Session, email: str, profile=None) -> Account:
    """
    Map a verified email to its account, creating it on first sign-in.

    New accounts require ``profile.name``. For existing accounts only the
    profile fields supplied with a non-empty value are overwritten.
    """
    normalized_email = normalize_email(email)
    values = supplied_profile_values(profile)

    account = get_account_by_email(db, normalized_email)
    if account is None:
        return create_account(db, normalized_email, values)
    return update_account(db, account, values)
