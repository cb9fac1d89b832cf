# app/auth/dependencies.py
from typing import Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import Settings
from app.database import get_db
from app.exceptions import Unauthorized
from app.models.account import Account
from app.services.email_service import Notifier
from app.services.identity_service import get_account_by_id
from app.utils.jwt_handler import SessionClaims, decode_session

logger = logging.getLogger(__name__)

# auto_error is off so a missing header becomes our 401, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_session_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> SessionClaims:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing bearer token")
    return decode_session(credentials.credentials, settings)


def get_current_account(
    claims: SessionClaims = Depends(get_session_claims),
    db: Session = Depends(get_db),
) -> Account:
    account = get_account_by_id(db, claims.account_id)
    if account is None:
        logger.error(f"❌ Session for unknown account {claims.account_id}")
        raise Unauthorized("Account not found")
    return account
