"""Turning a cart into an order.

Both payment paths end in :func:`commit_checkout`, which writes the order,
adjusts inventory and deletes the cart inside a single transaction. The cart
delete is conditional: when it removes nothing, another checkout already
claimed the cart and the whole transaction is rolled back, so one cart can
never produce two orders or decrement stock twice.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from kafka.errors import KafkaError
from sqlalchemy import bindparam, delete, select, update
from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.core.errors import (
    CheckoutConflictError,
    EmptyCartError,
    NotFoundError,
    PaymentEventError,
)
from storefront.core.logging import get_logger
from storefront.db.models import Cart, CartItem, Order, OrderItem, Product, User
from storefront.events.producer import order_created, send
from storefront.services.cart import money
from storefront.services.payments import (
    CHECKOUT_COMPLETED,
    StripeGateway,
    from_minor_units,
    to_minor_units,
)
from storefront.services.processed_events import ProcessedEvents

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineItem:
    product_id: int
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class CartSnapshot:
    cart_id: int
    user_id: int
    total_price: Decimal
    total_price_after_discount: Optional[Decimal]
    items: List[LineItem] = field(default_factory=list)

    @property
    def resolved_total(self) -> Decimal:
        # a stored discounted total wins, even when it is zero
        if self.total_price_after_discount is not None:
            return money(self.total_price_after_discount)
        return money(self.total_price)


def load_cart_snapshot(db: Session, cart_id: int) -> CartSnapshot:
    cart = db.get(Cart, cart_id)
    if not cart:
        raise NotFoundError("Cart was not found")
    return CartSnapshot(
        cart_id=cart.id,
        user_id=cart.user_id,
        total_price=cart.total_price,
        total_price_after_discount=cart.total_price_after_discount,
        items=[LineItem(i.product_id, i.quantity, money(i.price)) for i in cart.items],
    )


def materialize_order(
    db: Session,
    snapshot: CartSnapshot,
    user_id: int,
    payment_method: str,
    shipping_address: Optional[dict],
    total: Decimal,
    paid: bool = False,
) -> Order:
    order = Order(
        user_id=user_id,
        total_order_price=total,
        shipping_address=shipping_address,
        payment_method=payment_method,
        is_paid=paid,
        paid_at=datetime.utcnow() if paid else None,
        items=[OrderItem(product_id=i.product_id, quantity=i.quantity, price=i.price) for i in snapshot.items],
    )
    db.add(order)
    db.flush()
    return order


_adjust_stock = (
    update(Product.__table__)
    .where(Product.__table__.c.id == bindparam("pid"))
    .values(
        quantity=Product.__table__.c.quantity - bindparam("qty"),
        sold=Product.__table__.c.sold + bindparam("qty"),
    )
)


def adjust_inventory(db: Session, items: List[LineItem]) -> None:
    """One executemany for the whole order: stock down, sold up.

    No stock check happens here, quantities can go negative.
    """
    if not items:
        return
    db.execute(_adjust_stock, [{"pid": i.product_id, "qty": i.quantity} for i in items])


def retire_cart(db: Session, cart_id: Optional[int] = None, user_id: Optional[int] = None) -> int:
    if cart_id is not None:
        criteria = Cart.id == cart_id
    elif user_id is not None:
        criteria = Cart.user_id == user_id
    else:
        raise ValueError("cart_id or user_id is required")
    cart_ids = select(Cart.id).where(criteria)
    db.execute(
        delete(CartItem).where(CartItem.cart_id.in_(cart_ids)).execution_options(synchronize_session=False)
    )
    result = db.execute(delete(Cart).where(criteria).execution_options(synchronize_session=False))
    return result.rowcount


def commit_checkout(
    db: Session,
    snapshot: CartSnapshot,
    user_id: int,
    payment_method: str,
    shipping_address: Optional[dict],
    total: Decimal,
    paid: bool = False,
    retire_by_user: bool = False,
) -> Order:
    try:
        order = materialize_order(db, snapshot, user_id, payment_method, shipping_address, total, paid)
        adjust_inventory(db, snapshot.items)
        if retire_by_user:
            claimed = retire_cart(db, user_id=snapshot.user_id)
        else:
            claimed = retire_cart(db, cart_id=snapshot.cart_id)
        if claimed == 0:
            raise CheckoutConflictError("Cart was already checked out")
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)
    logger.info(
        "Order %s created (%s, total %s), inventory adjusted for %d items, cart %s retired",
        order.id, payment_method, order.total_order_price, len(snapshot.items), snapshot.cart_id,
    )
    publish_order_created(order)
    return order


def publish_order_created(order: Order) -> None:
    try:
        send(settings.EVENTS_TOPIC, key=str(order.id), value=order_created(order))
    except KafkaError:
        # the order is committed at this point, a lost event must not fail the request
        logger.exception("Could not publish order.created for order %s", order.id)


def _owned_snapshot(db: Session, cart_id: int, user: User) -> CartSnapshot:
    snapshot = load_cart_snapshot(db, cart_id)
    if snapshot.user_id != user.id:
        raise NotFoundError("Cart was not found")
    if not snapshot.items:
        raise EmptyCartError("Cart is empty")
    return snapshot


def create_cash_order(db: Session, cart_id: int, user: User, shipping_address: dict) -> Order:
    snapshot = _owned_snapshot(db, cart_id, user)
    return commit_checkout(
        db,
        snapshot,
        user_id=user.id,
        payment_method="cash",
        shipping_address=shipping_address,
        total=snapshot.resolved_total,
    )


def create_checkout_session(
    db: Session, cart_id: int, user: User, shipping_address: dict, gateway: StripeGateway
) -> dict:
    snapshot = _owned_snapshot(db, cart_id, user)
    params = {
        "line_items": [
            {
                "price_data": {
                    "currency": settings.CHECKOUT_CURRENCY,
                    "unit_amount": to_minor_units(snapshot.resolved_total),
                    "product_data": {"name": user.name},
                },
                "quantity": 1,
            }
        ],
        "mode": "payment",
        "success_url": settings.CHECKOUT_SUCCESS_URL,
        "cancel_url": settings.CHECKOUT_CANCEL_URL,
        "customer_email": user.email,
        "client_reference_id": str(snapshot.cart_id),
        "metadata": {
            "shippingAddress": json.dumps(shipping_address),
            "cartId": str(snapshot.cart_id),
        },
    }
    session = gateway.create_session(params)
    logger.info("Checkout session %s opened for cart %s", session.get("id"), snapshot.cart_id)
    return session


def _shipping_from_metadata(metadata: dict) -> Optional[dict]:
    raw = (metadata or {}).get("shippingAddress")
    if raw is None or isinstance(raw, dict):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Unparseable shipping address in payment metadata")
        return {"raw": raw}


def _card_order(db: Session, session: dict) -> Order:
    try:
        cart_id = int(session.get("client_reference_id"))
    except (TypeError, ValueError):
        raise NotFoundError("Cart was not found")
    amount_total = session.get("amount_total")
    if not isinstance(amount_total, int):
        raise PaymentEventError("Webhook Error: malformed payload")

    snapshot = load_cart_snapshot(db, cart_id)
    user = db.query(User).filter(User.email == session.get("customer_email")).first()
    if not user:
        raise NotFoundError("User was not found")
    if snapshot.user_id != user.id:
        raise NotFoundError("Cart was not found")

    return commit_checkout(
        db,
        snapshot,
        user_id=user.id,
        payment_method="card",
        shipping_address=_shipping_from_metadata(session.get("metadata")),
        total=from_minor_units(amount_total),
        paid=True,
        retire_by_user=True,
    )


def handle_payment_event(
    db: Session,
    payload: bytes,
    sig_header: Optional[str],
    gateway: StripeGateway,
    processed: ProcessedEvents,
) -> Optional[Order]:
    """Returns the created order, or None when the event needs no action."""
    event = gateway.parse_event(payload, sig_header)
    event_type = event.get("type")
    if event_type != CHECKOUT_COMPLETED:
        logger.info("Unhandled event type %s", event_type)
        return None

    event_id = event.get("id")
    if event_id and processed.seen(event_id):
        logger.info("Payment event %s already processed", event_id)
        return None

    session = (event.get("data") or {}).get("object") or {}
    order = _card_order(db, session)
    if event_id:
        processed.remember(event_id)
    return order
