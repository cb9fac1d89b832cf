# app/models/order.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
import uuid

from app.database import Base


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(40), unique=True, index=True, nullable=False)  # e.g. MOYO1718000000000A1B2
    account_id = Column(String(36), ForeignKey("accounts.id", name="fk_order_account"), nullable=False, index=True)
    item_id = Column(String(36), ForeignKey("products.id", name="fk_order_product"), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    delivery_address = Column(JSON, nullable=True)
    payment_proof = Column(String(100), nullable=True)  # gateway transaction id
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)

    # Set explicitly so every status change stamps updated_at
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    account = relationship("Account", back_populates="orders")
    item = relationship("Product")

    def __repr__(self):
        return f"<Order {self.order_id}: {self.status}>"
