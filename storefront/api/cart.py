from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, require_role
from storefront.db.models import User
from storefront.schemas import CartItemAdd, CartItemUpdate, ApplyCoupon, CartRead
from storefront.services import cart as carts

router = APIRouter()

@router.get("/", response_model=CartRead)
def get_my_cart(user: User = Depends(require_role("user")), db: Session = Depends(get_db)):
    cart = carts.get_user_cart(db, user)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart was not found")
    return cart

@router.post("/", response_model=CartRead, status_code=201)
def add_item(payload: CartItemAdd, user: User = Depends(require_role("user")), db: Session = Depends(get_db)):
    return carts.add_product(db, user, payload.product_id, payload.quantity)

@router.post("/apply-coupon", response_model=CartRead)
def apply_coupon(payload: ApplyCoupon, user: User = Depends(require_role("user")), db: Session = Depends(get_db)):
    return carts.apply_coupon(db, user, payload.code)

@router.put("/{product_id}", response_model=CartRead)
def update_item(product_id: int, payload: CartItemUpdate, user: User = Depends(require_role("user")), db: Session = Depends(get_db)):
    return carts.update_quantity(db, user, product_id, payload.quantity)

@router.delete("/{product_id}", response_model=CartRead)
def remove_item(product_id: int, user: User = Depends(require_role("user")), db: Session = Depends(get_db)):
    return carts.remove_product(db, user, product_id)
