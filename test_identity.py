"""
Tests for account provisioning and profile updates after verification.
"""
from types import SimpleNamespace

import pytest

from app.exceptions import Conflict, ValidationError
from app.models.account import Account
from app.services import identity_service
from app.services.identity_service import create_account, resolve_identity, update_account


def profile(**fields):
    values = dict.fromkeys(["name", "phone", "address", "city", "state", "postal_code"])
    values.update(fields)
    return SimpleNamespace(**values)


@pytest.fixture
def miss_next_phone_check(monkeypatch):
    """After arming, the next phone pre-check passes as if a concurrent signup had not committed yet."""
    real_phone_in_use = identity_service.phone_in_use

    def arm():
        calls = []

        def phone_in_use(db, phone, exclude_account_id=None):
            calls.append(phone)
            if len(calls) == 1:
                return False
            return real_phone_in_use(db, phone, exclude_account_id=exclude_account_id)

        monkeypatch.setattr(identity_service, "phone_in_use", phone_in_use)
        return calls

    return arm


def test_new_identity_requires_name(db):
    with pytest.raises(ValidationError) as exc_info:
        resolve_identity(db, "new@example.com", profile(name="   "))
    assert exc_info.value.detail == "name_required"
    assert db.query(Account).count() == 0


def test_new_identity_without_profile_fails(db):
    with pytest.raises(ValidationError):
        resolve_identity(db, "new@example.com")


def test_new_identity_is_created_with_profile(db):
    account = resolve_identity(
        db,
        "Asha@Example.com",
        profile(name=" Asha ", phone="9876543210", city="Pune", postal_code="411001"),
    )

    assert account.id
    assert account.email == "asha@example.com"
    assert account.name == "Asha"
    assert account.phone == "9876543210"
    assert account.city == "Pune"
    assert account.address is None


def test_new_identity_with_taken_phone_conflicts(db):
    resolve_identity(db, "first@example.com", profile(name="First", phone="9000000001"))

    with pytest.raises(Conflict) as exc_info:
        resolve_identity(db, "asha@example.com", profile(name="Asha", phone="9000000001"))

    assert exc_info.value.detail == "phone_in_use"
    assert isinstance(exc_info.value, ValidationError)
    assert db.query(Account).filter(Account.email == "asha@example.com").first() is None


def test_existing_identity_keeps_fields_not_supplied(db):
    resolve_identity(db, "asha@example.com", profile(name="Asha", phone="9000000002", city="Pune"))

    account = resolve_identity(db, "asha@example.com", profile(name="", city="Mumbai"))

    assert account.name == "Asha"
    assert account.phone == "9000000002"
    assert account.city == "Mumbai"
    assert db.query(Account).count() == 1


def test_existing_identity_without_profile_is_returned_unchanged(db):
    created = resolve_identity(db, "asha@example.com", profile(name="Asha"))
    account = resolve_identity(db, "ASHA@example.com")
    assert account.id == created.id
    assert account.name == "Asha"


def test_existing_identity_phone_update_rechecks_uniqueness(db):
    resolve_identity(db, "other@example.com", profile(name="Other", phone="9000000003"))
    resolve_identity(db, "asha@example.com", profile(name="Asha", phone="9000000004"))

    with pytest.raises(Conflict) as exc_info:
        resolve_identity(db, "asha@example.com", profile(phone="9000000003"))
    assert exc_info.value.detail == "phone_in_use"

    # Re-submitting one's own phone is not a conflict
    account = resolve_identity(db, "asha@example.com", profile(phone="9000000004", name="Asha K"))
    assert account.phone == "9000000004"
    assert account.name == "Asha K"


def test_unique_phone_constraint_catches_missed_pre_check(db, miss_next_phone_check):
    resolve_identity(db, "first@example.com", profile(name="First", phone="9000000005"))
    calls = miss_next_phone_check()

    with pytest.raises(Conflict) as exc_info:
        create_account(db, "second@example.com", {"name": "Second", "phone": "9000000005"})

    assert exc_info.value.detail == "phone_in_use"
    assert db.query(Account).filter(Account.email == "second@example.com").first() is None
    assert len(calls) == 2


def test_unique_email_constraint_catches_concurrent_signup(application, db):
    other = application.state.session_factory()
    try:
        create_account(other, "asha@example.com", {"name": "Asha"})
    finally:
        other.close()

    # Lost the race: the lookup in resolve_identity found nothing, the insert collides
    with pytest.raises(Conflict) as exc_info:
        create_account(db, "asha@example.com", {"name": "Asha again"})

    assert exc_info.value.detail == "email_in_use"
    assert db.query(Account).filter(Account.email == "asha@example.com").count() == 1


def test_unique_phone_constraint_catches_missed_pre_check_on_update(db, miss_next_phone_check):
    resolve_identity(db, "other@example.com", profile(name="Other", phone="9000000006"))
    account = resolve_identity(db, "asha@example.com", profile(name="Asha", phone="9000000007"))
    calls = miss_next_phone_check()

    with pytest.raises(Conflict) as exc_info:
        update_account(db, account, {"phone": "9000000006"})

    assert exc_info.value.detail == "phone_in_use"
    db.refresh(account)
    assert account.phone == "9000000007"
    assert len(calls) == 2
