from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload
from typing import List

from storefront.api.deps import get_db, require_role
from storefront.api.pagination import Page
from storefront.db.models import Order, User
from storefront.schemas import CashOrderPayload, CheckoutPayload, OrderRead, OrderResponse
from storefront.services import checkout
from storefront.services.payments import StripeGateway, get_payment_gateway

router = APIRouter()

@router.get("/", response_model=List[OrderRead])
def my_orders(user: User = Depends(require_role("user")), db: Session = Depends(get_db)):
    q = db.query(Order).options(selectinload(Order.items)).filter(Order.user_id == user.id)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()

@router.get("/all", response_model=List[OrderRead], dependencies=[Depends(require_role("admin"))])
def all_orders(page: Page = Depends(), db: Session = Depends(get_db)):
    q = db.query(Order).options(selectinload(Order.items)).order_by(Order.id)
    return page.apply(q).all()

@router.post("/checkout/{cart_id}")
def create_checkout_session(
    cart_id: int,
    payload: CheckoutPayload,
    user: User = Depends(require_role("user")),
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    session = checkout.create_checkout_session(db, cart_id, user, payload.shipping_address.model_dump(), gateway)
    return {"message": "success", "session": session}

@router.post("/{cart_id}", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_cash_order(
    cart_id: int,
    payload: CashOrderPayload,
    user: User = Depends(require_role("user")),
    db: Session = Depends(get_db),
):
    order = checkout.create_cash_order(db, cart_id, user, payload.shipping_address.model_dump())
    return OrderResponse(order=OrderRead.model_validate(order))
