# app/routes/products.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import NotFound
from app.models.product import Product
from app.schemas.product import ProductListResponse, ProductDetailResponse

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("", response_model=ProductListResponse)
def list_products(db: Session = Depends(get_db)):
    products = (
        db.query(Product)
        .filter(Product.active.is_(True))
        .order_by(Product.created_at.desc())
        .all()
    )
    return {"success": True, "products": products}


@router.get("/{product_id}", response_model=ProductDetailResponse)
def get_product(product_id: str, db: Session = Depends(get_db)):
    product = db.query(Product).filter(Product.id == product_id, Product.active.is_(True)).first()
    if not product:
        raise NotFound("Product not found")
    return {"success": True, "product": product}
