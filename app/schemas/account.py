# app/schemas/account.py
from typing import Optional
from pydantic import BaseModel, EmailStr
from datetime import datetime


class AccountResponse(BaseModel):
    id: str
    email: EmailStr
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
