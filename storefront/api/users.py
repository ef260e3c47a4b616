from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from storefront.api.deps import get_db, require_role
from storefront.api.pagination import Page
from storefront.db.models import User, Order
from storefront.schemas import UserCreate, UserUpdate, UserRead, PasswordChange
from storefront.security.utils import hash_password, now_utc

router = APIRouter(dependencies=[Depends(require_role("admin"))])

def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user: raise HTTPException(status_code=404, detail="User not found")
    return user

@router.get("/", response_model=List[UserRead])
def list_users(page: Page = Depends(), db: Session = Depends(get_db)):
    return page.apply(db.query(User).order_by(User.id)).all()

@router.post("/", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == str(payload.email)).first():
        raise HTTPException(status_code=409, detail="Account already exists")
    user = User(name=payload.name, email=str(payload.email), password_hash=hash_password(payload.password), role=payload.role)
    db.add(user); db.commit(); db.refresh(user)
    return user

@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return _get_user(db, user_id)

@router.put("/{user_id}", response_model=UserRead)
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    changes = payload.model_dump(exclude_unset=True)
    if "email" in changes:
        changes["email"] = str(changes["email"])
        clash = db.query(User).filter(User.email == changes["email"], User.id != user_id).first()
        if clash: raise HTTPException(status_code=409, detail="Email already in use")
    for k, v in changes.items(): setattr(user, k, v)
    db.add(user); db.commit(); db.refresh(user)
    return user

@router.patch("/{user_id}/change-password", response_model=UserRead)
def change_password(user_id: int, payload: PasswordChange, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    user.password_hash = hash_password(payload.password)
    user.password_changed_at = now_utc()
    db.add(user); db.commit(); db.refresh(user)
    return user

@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: int, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    if db.query(Order).filter(Order.user_id == user_id).first():
        raise HTTPException(status_code=409, detail="User has placed orders")
    db.delete(user); db.commit()
