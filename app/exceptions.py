# app/exceptions.py
"""
Error taxonomy shared by services, utilities and routes.

Every error carries an HTTP status and a stable machine-readable ``error``
code; the handler registered in ``app.main`` renders them as
``{"error": ..., "detail": ...}``.
"""
from typing import Optional


class MoyoClubError(Exception):
    status_code = 400
    error = "bad_request"
    default_detail = "Bad request"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"error": self.error, "detail": self.detail}


class ValidationError(MoyoClubError):
    status_code = 400
    error = "validation_error"
    default_detail = "Invalid input"


class Conflict(ValidationError):
    """Uniqueness violation; ``detail`` names the field, e.g. ``phone_in_use``."""

    status_code = 409
    error = "conflict"
    default_detail = "Resource already exists"


class InvalidOrExpiredCode(MoyoClubError):
    status_code = 400
    error = "invalid_or_expired_code"
    default_detail = "Invalid or expired OTP"


class Unauthorized(MoyoClubError):
    status_code = 401
    error = "unauthorized"
    default_detail = "Could not validate credentials"


class NotFound(MoyoClubError):
    status_code = 404
    error = "not_found"
    default_detail = "Not found"


class InvalidTransition(MoyoClubError):
    status_code = 409
    error = "invalid_transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from '{current}' to '{requested}'")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"current_status": self.current, "requested_status": self.requested})
        return data


class DeliveryError(MoyoClubError):
    status_code = 503
    error = "delivery_failed"
    default_detail = "Could not deliver the verification code. Please request a new one."
