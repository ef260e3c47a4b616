from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List
from storefront.api.deps import get_db, require_role
from storefront.api.pagination import Page
from storefront.db.models import Review, Product, User
from storefront.schemas import ReviewCreate, ReviewUpdate, ReviewRead

router = APIRouter()

def refresh_rating(db: Session, product_id: int):
    avg, count = db.query(func.avg(Review.rate), func.count(Review.id)).filter(Review.product_id == product_id).one()
    product = db.get(Product, product_id)
    if product:
        product.rating_avg = round(float(avg or 0), 2)
        product.rating_count = count
        db.add(product)

def _get_review(db: Session, review_id: int) -> Review:
    obj = db.get(Review, review_id)
    if not obj: raise HTTPException(status_code=404, detail='Review not found')
    return obj

@router.get('/', response_model=List[ReviewRead])
def list_reviews(page: Page = Depends(), db: Session = Depends(get_db)):
    return page.apply(db.query(Review).order_by(Review.id)).all()

@router.get('/{review_id}', response_model=ReviewRead)
def get_review(review_id: int, db: Session = Depends(get_db)):
    return _get_review(db, review_id)

@router.post('/', response_model=ReviewRead, status_code=201)
def create_review(payload: ReviewCreate, user: User = Depends(require_role('user')), db: Session = Depends(get_db)):
    if not db.get(Product, payload.product_id):
        raise HTTPException(status_code=404, detail='Product not found')
    if db.query(Review).filter(Review.user_id == user.id, Review.product_id == payload.product_id).first():
        raise HTTPException(status_code=409, detail='You already reviewed this product')
    obj = Review(user_id=user.id, **payload.model_dump())
    db.add(obj); db.flush()
    refresh_rating(db, payload.product_id)
    db.commit(); db.refresh(obj)
    return obj

@router.put('/{review_id}', response_model=ReviewRead)
def update_review(review_id: int, payload: ReviewUpdate, user: User = Depends(require_role('user')), db: Session = Depends(get_db)):
    obj = _get_review(db, review_id)
    if obj.user_id != user.id:
        raise HTTPException(status_code=404, detail='Review not found')
    for k, v in payload.model_dump(exclude_unset=True).items(): setattr(obj, k, v)
    db.add(obj); db.flush()
    refresh_rating(db, obj.product_id)
    db.commit(); db.refresh(obj)
    return obj

@router.delete('/{review_id}', status_code=204)
def delete_review(review_id: int, user: User = Depends(require_role('admin', 'user')), db: Session = Depends(get_db)):
    obj = _get_review(db, review_id)
    if obj.user_id != user.id and user.role != 'admin':
        raise HTTPException(status_code=404, detail='Review not found')
    product_id = obj.product_id
    db.delete(obj); db.flush()
    refresh_rating(db, product_id)
    db.commit()
