# app/utils/jwt_handler.py
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
import logging

from jose import JWTError, jwt

from app.config import Settings
from app.exceptions import Unauthorized

logger = logging.getLogger(__name__)

SESSION_TOKEN_TYPE = "session"


@dataclass(frozen=True)
class SessionClaims:
    account_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


def issue_session(account, settings: Settings, now: Optional[datetime] = None) -> str:
    """
    Create a signed session token for ``account``.

    Stateless: nothing is stored, and the token stays valid until it expires.
    """
    now = now or datetime.utcnow()
    expire = now + timedelta(days=settings.SESSION_EXPIRE_DAYS)

    to_encode = {
        "sub": account.id,
        "email": account.email,
        "iat": now,
        "exp": expire,
        "type": SESSION_TOKEN_TYPE,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session(token: str, settings: Settings) -> SessionClaims:
    """
    Verify signature and expiry of a session token.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"Session verification failed: {str(e)}")
        raise Unauthorized("Invalid or expired session")

    account_id = payload.get("sub")
    email = payload.get("email")
    if payload.get("type") != SESSION_TOKEN_TYPE or not account_id or not email:
        logger.warning(f"Session token rejected: type={payload.get('type')}, sub={account_id}")
        raise Unauthorized("Invalid session token")

    return SessionClaims(
        account_id=account_id,
        email=email,
        issued_at=datetime.utcfromtimestamp(payload["iat"]),
        expires_at=datetime.utcfromtimestamp(payload["exp"]),
    )
