from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select
from storefront.api.deps import get_db, require_role
from storefront.api.pagination import Page
from storefront.core.text import slugify
from storefront.db import models
from storefront.schemas import ProductCreate, ProductUpdate, ProductRead

router = APIRouter()

def _get_product(db: Session, product_id: int) -> models.Product:
    obj = db.get(models.Product, product_id)
    if not obj: raise HTTPException(status_code=404, detail='Product not found')
    return obj

@router.get('/', response_model=List[ProductRead])
def list_products(db: Session = Depends(get_db), page: Page = Depends(), q: Optional[str] = None,
                  category_id: Optional[int] = None, brand_id: Optional[int] = None):
    stmt = select(models.Product)
    if q:
        stmt = stmt.where(models.Product.title.ilike(f"%{q.lower()}%"))
    if category_id is not None: stmt = stmt.where(models.Product.category_id == category_id)
    if brand_id is not None: stmt = stmt.where(models.Product.brand_id == brand_id)
    stmt = stmt.order_by(models.Product.id).offset(page.offset).limit(page.limit)
    return db.execute(stmt).scalars().all()

@router.get('/{product_id}', response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_product(db, product_id)

@router.post('/', response_model=ProductRead, status_code=201, dependencies=[Depends(require_role('admin', 'user'))])
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    if db.query(models.Product).filter(models.Product.title == payload.title).first():
        raise HTTPException(status_code=409, detail='Product title already exists')
    obj = models.Product(**payload.model_dump(), slug=slugify(payload.title), sold=0)
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.put('/{product_id}', response_model=ProductRead, dependencies=[Depends(require_role('admin'))])
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    obj = _get_product(db, product_id)
    changes = payload.model_dump(exclude_unset=True)
    if 'title' in changes:
        changes['slug'] = slugify(changes['title'])
    for k, v in changes.items(): setattr(obj, k, v)
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.delete('/{product_id}', status_code=204, dependencies=[Depends(require_role('admin'))])
def delete_product(product_id: int, db: Session = Depends(get_db)):
    db.delete(_get_product(db, product_id)); db.commit()
