from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.api.deps import get_db
from storefront.db.models import User
from storefront.schemas import SignUpPayload, SignInPayload, AuthResponse, UserRead
from storefront.security.utils import hash_password, verify_password, create_access_token

router = APIRouter()  # main.py mounts at /api/v1/auth


def issue_token(user: User) -> str:
    token, _ = create_access_token(user.id, user.email, user.name, user.role)
    return token


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignUpPayload, db: Session = Depends(get_db)) -> AuthResponse:
    if db.query(User).filter(User.email == str(payload.email)).first():
        raise HTTPException(status_code=409, detail="Account already exists")

    user = User(
        name=payload.name,
        email=str(payload.email),
        password_hash=hash_password(payload.password),
        role="user",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return AuthResponse(user=UserRead.model_validate(user), token=issue_token(user))


@router.post("/signin", response_model=AuthResponse)
def signin(payload: SignInPayload, db: Session = Depends(get_db)) -> AuthResponse:
    user = db.query(User).filter(User.email == str(payload.email)).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return AuthResponse(user=UserRead.model_validate(user), token=issue_token(user))
