# app/models/account.py
from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from app.database import Base


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = {'comment': 'Customer identities created through email OTP signup'}

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Profile
    name = Column(String(100), nullable=False)
    phone = Column(String(20), unique=True, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)

    orders = relationship("Order", back_populates="account", order_by="Order.created_at.desc()")

    def __repr__(self):
        return f"<Account {self.email}>"
