# app/schemas/product.py
from typing import List, Optional
from pydantic import BaseModel
from decimal import Decimal
from datetime import datetime


class ProductResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    success: bool
    products: List[ProductResponse]


class ProductDetailResponse(BaseModel):
    success: bool
    product: ProductResponse
