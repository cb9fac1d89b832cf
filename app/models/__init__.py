# app/models/__init__.py

from .account import Account
from .otp_challenge import OtpChallenge
from .order import Order, OrderStatus
from .product import Product

__all__ = ["Account", "OtpChallenge", "Order", "OrderStatus", "Product"]
