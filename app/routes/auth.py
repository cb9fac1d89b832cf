# app/routes/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_account, get_notifier, get_settings
from app.config import Settings
from app.database import get_db
from app.models.account import Account
from app.schemas.auth import (
    RequestOtpRequest,
    RequestOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
    MeResponse,
)
from app.services.auth_service import request_challenge, verify_and_authenticate
from app.services.email_service import MockNotifier, Notifier

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/request-otp", response_model=RequestOtpResponse)
async def request_otp(
    payload: RequestOtpRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    notifier: Notifier = Depends(get_notifier),
):
    challenge = await request_challenge(db, settings, notifier, payload.email)
    return RequestOtpResponse(
        success=True,
        message="OTP sent successfully to your email",
        expires_in_minutes=settings.OTP_EXPIRY_MINUTES,
        # Only echoed back when nothing is really sent
        mock_otp=challenge.code if isinstance(notifier, MockNotifier) else None,
    )


@router.post("/verify-otp", response_model=VerifyOtpResponse)
def verify_otp(
    payload: VerifyOtpRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    result = verify_and_authenticate(db, settings, payload.email, payload.otp, profile=payload)
    return VerifyOtpResponse(success=True, token=result.session_token, user=result.account)


@router.get("/me", response_model=MeResponse)
def me(account: Account = Depends(get_current_account)):
    return MeResponse(success=True, user=account)
