from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import logging
import secrets
import time

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.exceptions import InvalidTransition, NotFound, ValidationError
from app.models.order import Order, OrderStatus
from app.models.product import Product

logger = logging.getLogger(__name__)

# The only legal status edges; everything else is rejected server-side
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING},
    OrderStatus.PROCESSING: {OrderStatus.PACKED},
    OrderStatus.PACKED: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid status '{value}'. Valid statuses: {', '.join(s.value for s in OrderStatus)}")


def generate_order_id() -> str:
    """Human-legible id: MOYO + epoch millis + random suffix."""
    return f"MOYO{int(time.time() * 1000)}{secrets.token_hex(2).upper()}"


def get_active_product(db: Session, item_id: str) -> Product:
    product = db.query(Product).filter(Product.id == item_id, Product.active.is_(True)).first()
    if not product:
        raise NotFound("item_not_found")
    return product


def create_order(
    db: Session,
    account_id: str,
    item_id: str,
    quantity: int,
    total_amount: Decimal,
    delivery_address: Optional[dict] = None,
    payment_proof: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Create an order owned by ``account_id``.

    The order starts ``confirmed`` when a payment proof (gateway transaction
    id) is supplied and ``pending`` otherwise.
    """
    if quantity is None or quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    if total_amount is None or Decimal(total_amount) <= 0:
        raise ValidationError("Total amount must be greater than zero")

    get_active_product(db, item_id)

    proof = payment_proof.strip() if payment_proof and payment_proof.strip() else None
    status = OrderStatus.CONFIRMED if proof else OrderStatus.PENDING
    now = now or datetime.utcnow()

    order = Order(
        order_id=generate_order_id(),
        account_id=account_id,
        item_id=item_id,
        quantity=quantity,
        total_amount=Decimal(total_amount),
        delivery_address=delivery_address,
        payment_proof=proof,
        status=status.value,
        created_at=now,
        updated_at=now,
    )
    db.add(order)
    db.commit()
    db.refresh(order)

    logger.info(f"🧾 Order {order.order_id} created for account {account_id} with status {order.status}")
    return order


def get_order_for_account(db: Session, order_id: str, account_id: str) -> Order:
    """
    Load an order owned by ``account_id``.

    Orders owned by someone else are reported exactly like missing ones.
    """
    order = db.query(Order).filter(Order.order_id == order_id).first()
    if order is None:
        raise NotFound("Order not found")
    if order.account_id != account_id:
        logger.warning(f"Account {account_id} attempted to access order {order_id} it does not own")
        raise NotFound("Order not found")
    return order


def list_orders_for_account(db: Session, account_id: str) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.account_id == account_id)
        .order_by(Order.created_at.desc())
        .all()
    )


def transition_order(
    db: Session,
    order_id: str,
    new_status,
    requesting_account_id: str,
    payment_proof: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Move an order along the status state machine.

    The write is a compare-and-set on the current status, so of two
    concurrent transitions from the same state only one applies.
    """
    order = get_order_for_account(db, order_id, requesting_account_id)
    target = parse_status(new_status)
    current = OrderStatus(order.status)

    if not can_transition(current, target):
        raise InvalidTransition(current.value, target.value)

    values = {"status": target.value, "updated_at": now or datetime.utcnow()}
    if target == OrderStatus.CONFIRMED and payment_proof and payment_proof.strip():
        values["payment_proof"] = payment_proof.strip()

    result = db.execute(
        update(Order)
        .where(Order.id == order.id, Order.status == current.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        db.refresh(order)
        logger.warning(f"Order {order_id} changed concurrently; now {order.status}")
        raise InvalidTransition(order.status, target.value)

    db.commit()
    db.refresh(order)
    logger.info(f"Order {order_id}: {current.value} -> {target.value}")
    return order
