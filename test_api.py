"""
End-to-end tests through the HTTP surface.
"""
from datetime import datetime, timedelta
from types import SimpleNamespace

from jose import jwt

from app.services.email_service import MockNotifier
from app.utils import otp
from app.utils.jwt_handler import decode_session, issue_session


class FailingNotifier(MockNotifier):
    async def deliver(self, to_email, subject, html):
        return False


def order_payload(product, **overrides):
    payload = {
        "item_id": product.id,
        "quantity": 1,
        "total_amount": "249.00",
        "delivery_address": {"address": "12 MG Road", "city": "Bengaluru", "state": "Karnataka", "postal_code": "560001"},
    }
    payload.update(overrides)
    return payload


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["database"]["status"] == "connected"
    assert response.json()["email"]["mode"] == "mock"


def test_request_otp_rejects_malformed_email(client):
    response = client.post("/api/auth/request-otp", json={"email": "not-an-email"})
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_request_otp_rejects_disposable_domain(client, application):
    response = client.post("/api/auth/request-otp", json={"email": "someone@mailinator.com"})
    assert response.status_code == 400
    assert application.state.notifier.outbox == []


def test_request_otp_sends_code_by_email(client, application):
    response = client.post("/api/auth/request-otp", json={"email": "A@B.com"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["expires_in_minutes"] == 10

    notifier = application.state.notifier
    assert notifier.last_codes["a@b.com"] == body["mock_otp"]
    assert body["mock_otp"] in notifier.outbox[-1].html


def test_request_otp_delivery_failure(client, application, settings):
    application.state.notifier = FailingNotifier(settings)

    response = client.post("/api/auth/request-otp", json={"email": "a@b.com"})

    assert response.status_code == 503
    assert response.json()["error"] == "delivery_failed"


def test_round_trip_session_claims_match_new_account(client, settings):
    code = client.post("/api/auth/request-otp", json={"email": "a@b.com"}).json()["mock_otp"]

    response = client.post("/api/auth/verify-otp", json={"email": "a@b.com", "otp": code, "name": "A"})

    assert response.status_code == 200
    body = response.json()
    claims = decode_session(body["token"], settings)
    assert claims.account_id == body["user"]["id"]
    assert claims.email == "a@b.com"
    assert body["user"]["name"] == "A"
    assert claims.expires_at - claims.issued_at == timedelta(days=30)


def test_verify_failures_share_one_error(client):
    code = client.post("/api/auth/request-otp", json={"email": "a@b.com"}).json()["mock_otp"]
    wrong = "000000" if code != "000000" else "111111"

    mismatch = client.post("/api/auth/verify-otp", json={"email": "a@b.com", "otp": wrong, "name": "A"})
    never_issued = client.post("/api/auth/verify-otp", json={"email": "z@b.com", "otp": code, "name": "Z"})
    assert client.post("/api/auth/verify-otp", json={"email": "a@b.com", "otp": code, "name": "A"}).status_code == 200
    replay = client.post("/api/auth/verify-otp", json={"email": "a@b.com", "otp": code, "name": "A"})

    for response in (mismatch, never_issued, replay):
        assert response.status_code == 400
        assert response.json() == {"error": "invalid_or_expired_code", "detail": "Invalid or expired OTP"}


def test_first_code_invalid_after_reissue(client, monkeypatch):
    codes = iter(["111111", "222222"])
    monkeypatch.setattr(otp, "generate_otp", lambda length=6: next(codes))

    client.post("/api/auth/request-otp", json={"email": "a@b.com"})
    client.post("/api/auth/request-otp", json={"email": "a@b.com"})

    response = client.post("/api/auth/verify-otp", json={"email": "a@b.com", "otp": "111111", "name": "A"})
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_or_expired_code"

    response = client.post("/api/auth/verify-otp", json={"email": "a@b.com", "otp": "222222", "name": "A"})
    assert response.status_code == 200


def test_verify_rejects_malformed_code(client):
    response = client.post("/api/auth/verify-otp", json={"email": "a@b.com", "otp": "12ab", "name": "A"})
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_signup_without_name_keeps_code_usable(client):
    code = client.post("/api/auth/request-otp", json={"email": "new@b.com"}).json()["mock_otp"]

    response = client.post("/api/auth/verify-otp", json={"email": "new@b.com", "otp": code})
    assert response.status_code == 400
    assert response.json() == {"error": "validation_error", "detail": "name_required"}

    response = client.post("/api/auth/verify-otp", json={"email": "new@b.com", "otp": code, "name": "New"})
    assert response.status_code == 200


def test_wrong_code_without_name_does_not_reveal_account(client, sign_in, monkeypatch):
    monkeypatch.setattr(otp, "generate_otp", lambda length=6: "654321")
    sign_in("known@b.com")
    client.post("/api/auth/request-otp", json={"email": "known@b.com"})
    client.post("/api/auth/request-otp", json={"email": "unknown@b.com"})

    known = client.post("/api/auth/verify-otp", json={"email": "known@b.com", "otp": "123456"})
    unknown = client.post("/api/auth/verify-otp", json={"email": "unknown@b.com", "otp": "123456"})
    never_issued = client.post("/api/auth/verify-otp", json={"email": "nobody@b.com", "otp": "123456"})

    for response in (known, unknown, never_issued):
        assert response.status_code == 400
        assert response.json() == {"error": "invalid_or_expired_code", "detail": "Invalid or expired OTP"}


def test_signup_with_taken_phone_conflicts(client, sign_in):
    sign_in("first@b.com", phone="9000000001")
    code = client.post("/api/auth/request-otp", json={"email": "asha@b.com"}).json()["mock_otp"]

    response = client.post(
        "/api/auth/verify-otp",
        json={"email": "asha@b.com", "otp": code, "name": "Asha", "phone": "9000000001"},
    )

    assert response.status_code == 409
    assert response.json() == {"error": "conflict", "detail": "phone_in_use"}


def test_me_requires_session(client, sign_in, settings):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers=auth("garbage")).status_code == 401

    token = sign_in("a@b.com", name="A")
    response = client.get("/api/auth/me", headers=auth(token))
    assert response.status_code == 200
    assert response.json()["user"]["email"] == "a@b.com"


def test_expired_session_is_rejected(client, sign_in, settings):
    user = client.get("/api/auth/me", headers=auth(sign_in("a@b.com"))).json()["user"]
    account = SimpleNamespace(id=user["id"], email=user["email"])

    stale = issue_session(account, settings, now=datetime.utcnow() - timedelta(days=31))
    response = client.get("/api/auth/me", headers=auth(stale))
    assert response.status_code == 401


def test_token_signed_with_other_key_is_rejected(client, sign_in, settings):
    token = sign_in("a@b.com")
    claims = jwt.get_unverified_claims(token)
    forged = jwt.encode(claims, "not-the-server-key", algorithm=settings.ALGORITHM)

    assert client.get("/api/auth/me", headers=auth(forged)).status_code == 401


def test_create_order_requires_session(client, product):
    response = client.post("/api/orders", json=order_payload(product, payment_proof="TXN123"))
    assert response.status_code == 401


def test_create_paid_order_is_confirmed_and_emailed(client, sign_in, product, application):
    token = sign_in("a@b.com", name="A")

    response = client.post("/api/orders", json=order_payload(product, payment_proof="TXN123"), headers=auth(token))

    assert response.status_code == 201
    body = response.json()
    assert body["order"]["status"] == "confirmed"
    assert body["order"]["payment_proof"] == "TXN123"
    assert body["warnings"] == []

    last_email = application.state.notifier.outbox[-1]
    assert last_email.to_email == "a@b.com"
    assert body["order"]["order_id"] in last_email.subject
    assert "Millet Breakfast Bowl" in last_email.html


def test_create_unpaid_order_is_pending(client, sign_in, product):
    token = sign_in("a@b.com")
    response = client.post("/api/orders", json=order_payload(product), headers=auth(token))
    assert response.status_code == 201
    assert response.json()["order"]["status"] == "pending"


def test_confirmation_email_failure_does_not_fail_order(client, sign_in, product, application, settings):
    token = sign_in("a@b.com")
    application.state.notifier = FailingNotifier(settings)

    response = client.post("/api/orders", json=order_payload(product, payment_proof="TXN123"), headers=auth(token))

    assert response.status_code == 201
    assert response.json()["warnings"] == ["confirmation_email_failed"]
    assert response.json()["order"]["status"] == "confirmed"


def test_create_order_for_unknown_item(client, sign_in, product):
    token = sign_in("a@b.com")
    response = client.post("/api/orders", json=order_payload(product, item_id="missing"), headers=auth(token))
    assert response.status_code == 404
    assert response.json()["detail"] == "item_not_found"


def test_status_transitions_over_http(client, sign_in, product):
    token = sign_in("a@b.com")
    order_id = client.post("/api/orders", json=order_payload(product), headers=auth(token)).json()["order"]["order_id"]

    skipped = client.patch(f"/api/orders/{order_id}/status", json={"status": "processing"}, headers=auth(token))
    assert skipped.status_code == 409
    assert skipped.json()["error"] == "invalid_transition"
    assert skipped.json()["current_status"] == "pending"
    assert skipped.json()["requested_status"] == "processing"

    confirmed = client.patch(f"/api/orders/{order_id}/status", json={"status": "confirmed"}, headers=auth(token))
    assert confirmed.status_code == 200
    assert confirmed.json()["order"]["status"] == "confirmed"


def test_non_owner_cannot_read_or_transition(client, sign_in, product):
    owner = sign_in("owner@b.com", name="Owner")
    other = sign_in("other@b.com", name="Other")
    order_id = client.post("/api/orders", json=order_payload(product), headers=auth(owner)).json()["order"]["order_id"]

    patch = client.patch(f"/api/orders/{order_id}/status", json={"status": "cancelled"}, headers=auth(other))
    read = client.get(f"/api/orders/{order_id}", headers=auth(other))
    missing = client.get("/api/orders/MOYO0000", headers=auth(other))

    for response in (patch, read):
        assert response.status_code == 404
        assert "order" not in response.json()
        assert response.json() == missing.json()

    assert client.get(f"/api/orders/{order_id}", headers=auth(owner)).json()["order"]["status"] == "pending"


def test_my_orders(client, sign_in, product):
    token = sign_in("a@b.com")
    client.post("/api/orders", json=order_payload(product), headers=auth(token))
    client.post("/api/orders", json=order_payload(product, payment_proof="TXN1"), headers=auth(token))
    sign_in_other = sign_in("b@b.com")
    client.post("/api/orders", json=order_payload(product), headers=auth(sign_in_other))

    response = client.get("/api/orders/my-orders", headers=auth(token))
    assert response.status_code == 200
    assert len(response.json()["orders"]) == 2


def test_products(client, product):
    listing = client.get("/api/products")
    assert listing.status_code == 200
    assert [p["id"] for p in listing.json()["products"]] == [product.id]

    assert client.get(f"/api/products/{product.id}").json()["product"]["name"] == "Millet Breakfast Bowl"
    assert client.get("/api/products/missing").status_code == 404
