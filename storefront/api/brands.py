from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from storefront.api.deps import get_db, require_role
from storefront.api.pagination import Page
from storefront.core.text import slugify
from storefront.db.models import Brand
from storefront.schemas import BrandCreate, BrandRead

router = APIRouter()

def _get_brand(db: Session, brand_id: int) -> Brand:
    obj = db.get(Brand, brand_id)
    if not obj: raise HTTPException(status_code=404, detail='Brand not found')
    return obj

@router.get('/', response_model=List[BrandRead])
def list_brands(page: Page = Depends(), db: Session = Depends(get_db)):
    return page.apply(db.query(Brand).order_by(Brand.name)).all()

@router.post('/', response_model=BrandRead, status_code=201, dependencies=[Depends(require_role('admin', 'user'))])
def create_brand(payload: BrandCreate, db: Session = Depends(get_db)):
    if db.query(Brand).filter(Brand.name == payload.name).first():
        raise HTTPException(status_code=409, detail='Brand already exists')
    obj = Brand(name=payload.name, slug=slugify(payload.name))
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.put('/{brand_id}', response_model=BrandRead, dependencies=[Depends(require_role('admin'))])
def update_brand(brand_id: int, payload: BrandCreate, db: Session = Depends(get_db)):
    obj = _get_brand(db, brand_id)
    if db.query(Brand).filter(Brand.name == payload.name, Brand.id != brand_id).first():
        raise HTTPException(status_code=409, detail='Brand already exists')
    obj.name = payload.name; obj.slug = slugify(payload.name)
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.delete('/{brand_id}', status_code=204, dependencies=[Depends(require_role('admin'))])
def delete_brand(brand_id: int, db: Session = Depends(get_db)):
    db.delete(_get_brand(db, brand_id)); db.commit()
