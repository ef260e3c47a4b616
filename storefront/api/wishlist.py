from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from storefront.api.deps import get_db, require_role
from storefront.db.models import Product, User
from storefront.schemas import WishlistChange, ProductRead

router = APIRouter()

@router.get('/', response_model=List[ProductRead])
def my_wishlist(user: User = Depends(require_role('user'))):
    return user.wishlist

@router.patch('/', response_model=List[ProductRead])
def add_to_wishlist(payload: WishlistChange, user: User = Depends(require_role('user')), db: Session = Depends(get_db)):
    product = db.get(Product, payload.product_id)
    if not product: raise HTTPException(status_code=404, detail='Product not found')
    if product not in user.wishlist:
        user.wishlist.append(product)
        db.commit(); db.refresh(user)
    return user.wishlist

@router.delete('/', response_model=List[ProductRead])
def remove_from_wishlist(payload: WishlistChange, user: User = Depends(require_role('user')), db: Session = Depends(get_db)):
    product = next((p for p in user.wishlist if p.id == payload.product_id), None)
    if not product: raise HTTPException(status_code=404, detail='Product is not in the wishlist')
    user.wishlist.remove(product)
    db.commit(); db.refresh(user)
    return user.wishlist
