from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from storefront.api.deps import get_db, require_role
from storefront.api.pagination import Page
from storefront.db.models import Coupon
from storefront.schemas import CouponCreate, CouponUpdate, CouponRead

router = APIRouter()

def _get_coupon(db: Session, coupon_id: int) -> Coupon:
    obj = db.get(Coupon, coupon_id)
    if not obj: raise HTTPException(status_code=404, detail='Coupon not found')
    return obj

@router.get('/', response_model=List[CouponRead])
def list_coupons(page: Page = Depends(), db: Session = Depends(get_db)):
    return page.apply(db.query(Coupon).order_by(Coupon.id)).all()

@router.get('/{coupon_id}', response_model=CouponRead)
def get_coupon(coupon_id: int, db: Session = Depends(get_db)):
    return _get_coupon(db, coupon_id)

@router.post('/', response_model=CouponRead, status_code=201, dependencies=[Depends(require_role('admin', 'user'))])
def create_coupon(payload: CouponCreate, db: Session = Depends(get_db)):
    if db.query(Coupon).filter(Coupon.code == payload.code).first():
        raise HTTPException(status_code=409, detail='Coupon code already exists')
    obj = Coupon(**payload.model_dump())
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.put('/{coupon_id}', response_model=CouponRead, dependencies=[Depends(require_role('admin', 'user'))])
def update_coupon(coupon_id: int, payload: CouponUpdate, db: Session = Depends(get_db)):
    obj = _get_coupon(db, coupon_id)
    for k, v in payload.model_dump(exclude_unset=True).items(): setattr(obj, k, v)
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.delete('/{coupon_id}', status_code=204, dependencies=[Depends(require_role('admin', 'user'))])
def delete_coupon(coupon_id: int, db: Session = Depends(get_db)):
    db.delete(_get_coupon(db, coupon_id)); db.commit()
