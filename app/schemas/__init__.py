# app/schemas/__init__.py
from .account import AccountResponse
from .auth import (
    RequestOtpRequest,
    RequestOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
    MeResponse
)
from .order import (
    DeliveryAddress,
    OrderCreate,
    OrderStatusUpdate,
    OrderResponse,
    OrderEnvelope,
    OrderListResponse
)
from .product import (
    ProductResponse,
    ProductListResponse,
    ProductDetailResponse
)

__all__ = [
    "AccountResponse",
    "RequestOtpRequest",
    "RequestOtpResponse",
    "VerifyOtpRequest",
    "VerifyOtpResponse",
    "MeResponse",
    "DeliveryAddress",
    "OrderCreate",
    "OrderStatusUpdate",
    "OrderResponse",
    "OrderEnvelope",
    "OrderListResponse",
    "ProductResponse",
    "ProductListResponse",
    "ProductDetailResponse"
]
