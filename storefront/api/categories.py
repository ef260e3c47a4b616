from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from storefront.api.deps import get_db, require_role
from storefront.api.pagination import Page
from storefront.core.text import slugify
from storefront.db.models import Category, SubCategory
from storefront.schemas import CategoryCreate, CategoryRead, SubCategoryCreate, SubCategoryRead

router = APIRouter()

def _get_category(db: Session, category_id: int) -> Category:
    obj = db.get(Category, category_id)
    if not obj: raise HTTPException(status_code=404, detail='Category not found')
    return obj

@router.get('/', response_model=List[CategoryRead])
def list_categories(page: Page = Depends(), db: Session = Depends(get_db)):
    return page.apply(db.query(Category).order_by(Category.name)).all()

@router.post('/', response_model=CategoryRead, status_code=201, dependencies=[Depends(require_role('admin'))])
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    if db.query(Category).filter(Category.name == payload.name).first():
        raise HTTPException(status_code=409, detail='Category already exists')
    obj = Category(name=payload.name, slug=slugify(payload.name))
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.put('/{category_id}', response_model=CategoryRead, dependencies=[Depends(require_role('admin'))])
def update_category(category_id: int, payload: CategoryCreate, db: Session = Depends(get_db)):
    obj = _get_category(db, category_id)
    if db.query(Category).filter(Category.name == payload.name, Category.id != category_id).first():
        raise HTTPException(status_code=409, detail='Category already exists')
    obj.name = payload.name; obj.slug = slugify(payload.name)
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.delete('/{category_id}', status_code=204, dependencies=[Depends(require_role('admin'))])
def delete_category(category_id: int, db: Session = Depends(get_db)):
    db.delete(_get_category(db, category_id)); db.commit()

# subcategories, mounted under a category
@router.get('/{category_id}/subcategories', response_model=List[SubCategoryRead])
def list_subcategories(category_id: int, page: Page = Depends(), db: Session = Depends(get_db)):
    _get_category(db, category_id)
    q = db.query(SubCategory).filter(SubCategory.category_id == category_id).order_by(SubCategory.name)
    return page.apply(q).all()

@router.post('/{category_id}/subcategories', response_model=SubCategoryRead, status_code=201,
             dependencies=[Depends(require_role('admin', 'user'))])
def create_subcategory(category_id: int, payload: SubCategoryCreate, db: Session = Depends(get_db)):
    _get_category(db, category_id)
    obj = SubCategory(name=payload.name, slug=slugify(payload.name), category_id=category_id)
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

def _get_subcategory(db: Session, category_id: int, subcategory_id: int) -> SubCategory:
    obj = db.get(SubCategory, subcategory_id)
    if not obj or obj.category_id != category_id:
        raise HTTPException(status_code=404, detail='Subcategory not found')
    return obj

@router.put('/{category_id}/subcategories/{subcategory_id}', response_model=SubCategoryRead,
            dependencies=[Depends(require_role('admin', 'user'))])
def update_subcategory(category_id: int, subcategory_id: int, payload: SubCategoryCreate, db: Session = Depends(get_db)):
    obj = _get_subcategory(db, category_id, subcategory_id)
    obj.name = payload.name; obj.slug = slugify(payload.name)
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.delete('/{category_id}/subcategories/{subcategory_id}', status_code=204,
               dependencies=[Depends(require_role('admin', 'user'))])
def delete_subcategory(category_id: int, subcategory_id: int, db: Session = Depends(get_db)):
    db.delete(_get_subcategory(db, category_id, subcategory_id)); db.commit()
