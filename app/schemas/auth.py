# app/schemas/auth.py
from typing import Optional
from pydantic import BaseModel

from app.schemas.account import AccountResponse


class RequestOtpRequest(BaseModel):
    # Syntax is checked by the auth service so failures share its error shape
    email: str


class RequestOtpResponse(BaseModel):
    success: bool
    message: str
    expires_in_minutes: int
    mock_otp: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    email: str
    otp: str
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None


class VerifyOtpResponse(BaseModel):
    success: bool
    token: str
    token_type: str = "bearer"
    user: AccountResponse


class MeResponse(BaseModel):
    success: bool
    user: AccountResponse
