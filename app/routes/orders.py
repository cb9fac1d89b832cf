# app/routes/orders.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_account, get_notifier, get_session_claims
from app.database import get_db
from app.models.account import Account
from app.schemas.order import OrderCreate, OrderStatusUpdate, OrderEnvelope, OrderListResponse
from app.services.email_service import Notifier
from app.services.order_service import (
    create_order,
    get_order_for_account,
    list_orders_for_account,
    transition_order,
)
from app.utils.jwt_handler import SessionClaims

router = APIRouter(prefix="/api/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

CONFIRMATION_EMAIL_FAILED = "confirmation_email_failed"


@router.post("", response_model=OrderEnvelope, status_code=status.HTTP_201_CREATED)
async def place_order(
    data: OrderCreate,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    order = create_order(
        db,
        account_id=account.id,
        item_id=data.item_id,
        quantity=data.quantity,
        total_amount=data.total_amount,
        delivery_address=data.delivery_address.model_dump() if data.delivery_address else None,
        payment_proof=data.payment_proof,
    )

    # Confirmation email is best effort and never fails the order
    warnings = []
    try:
        sent = await notifier.send_order_confirmation(account, order, order.item)
    except Exception as e:
        logger.error(f"Error sending confirmation for order {order.order_id}: {str(e)}")
        sent = False
    if not sent:
        logger.warning(f"⚠️ Order {order.order_id} created but confirmation email failed")
        warnings.append(CONFIRMATION_EMAIL_FAILED)

    return {"success": True, "order": order, "warnings": warnings}


@router.get("/my-orders", response_model=OrderListResponse)
def my_orders(claims: SessionClaims = Depends(get_session_claims), db: Session = Depends(get_db)):
    return {"success": True, "orders": list_orders_for_account(db, claims.account_id)}


@router.get("/{order_id}", response_model=OrderEnvelope)
def get_order(order_id: str, claims: SessionClaims = Depends(get_session_claims), db: Session = Depends(get_db)):
    return {"success": True, "order": get_order_for_account(db, order_id, claims.account_id)}


@router.patch("/{order_id}/status", response_model=OrderEnvelope)
def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    claims: SessionClaims = Depends(get_session_claims),
    db: Session = Depends(get_db),
):
    order = transition_order(
        db,
        order_id,
        data.status,
        requesting_account_id=claims.account_id,
        payment_proof=data.payment_proof,
    )
    return {"success": True, "order": order}
