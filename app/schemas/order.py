# app/schemas/order.py
from typing import List, Optional
from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import datetime

from app.models.order import OrderStatus


class DeliveryAddress(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None


class OrderCreate(BaseModel):
    item_id: str
    quantity: int = Field(..., ge=1)
    total_amount: Decimal = Field(..., gt=0)
    payment_proof: Optional[str] = Field(default=None, description="Gateway transaction id; omit for unpaid orders")
    delivery_address: Optional[DeliveryAddress] = None

    class Config:
        json_schema_extra = {
            "example": {
                "item_id": "0b6f3c1e-2f59-4c0e-9a51-7b3f0c7c2d11",
                "quantity": 2,
                "total_amount": "998.00",
                "payment_proof": "TXN123",
                "delivery_address": {
                    "address": "12 MG Road",
                    "city": "Bengaluru",
                    "state": "Karnataka",
                    "postal_code": "560001"
                }
            }
        }


class OrderStatusUpdate(BaseModel):
    status: str
    payment_proof: Optional[str] = None


class OrderResponse(BaseModel):
    order_id: str
    account_id: str
    item_id: str
    quantity: int
    total_amount: Decimal
    delivery_address: Optional[DeliveryAddress] = None
    payment_proof: Optional[str] = None
    status: OrderStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderEnvelope(BaseModel):
    success: bool
    order: OrderResponse
    warnings: List[str] = []


class OrderListResponse(BaseModel):
    success: bool
    orders: List[OrderResponse]
