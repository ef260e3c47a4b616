from datetime import datetime
from typing import Iterator
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
import jwt
from storefront.db.session import SessionLocal
from storefront.db.models import User
from storefront.core.auth import has_role
from storefront.security.utils import decode_token

bearer = HTTPBearer(auto_error=False)

def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try: yield db
    finally: db.close()

def _claims(creds: HTTPAuthorizationCredentials | None) -> dict:
    if not creds: raise HTTPException(status_code=401, detail='Token was not provided')
    try:
        claims = decode_token(creds.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail='Invalid token')
    if claims.get('type') != 'access':
        raise HTTPException(status_code=401, detail='Invalid access token')
    return claims

def _issued_before_password_change(user: User, claims: dict) -> bool:
    if user.password_changed_at is None:
        return False
    return user.password_changed_at > datetime.utcfromtimestamp(claims.get('iat', 0))

def get_current_user(creds: HTTPAuthorizationCredentials = Depends(bearer), db: Session = Depends(get_db)) -> User:
    claims = _claims(creds)
    owner = db.query(User).filter(User.email == claims.get('sub')).one_or_none()
    if owner is None:
        raise HTTPException(status_code=401, detail='The user that belongs to this token no longer exists')
    if _issued_before_password_change(owner, claims):
        raise HTTPException(status_code=401, detail='Token issued before password change')
    return owner

def identity_of(user: User) -> dict:
    return {'sub': user.email, 'uid': user.id, 'name': user.name, 'role': user.role}

def require_role(*allowed: str):
    """Dependency factory: the current user, provided their role is one of `allowed`."""
    def _checker(user: User = Depends(get_current_user)) -> User:
        if not has_role(identity_of(user), allowed):
            raise HTTPException(status_code=403, detail=f'Not allowed for role {user.role}')
        return user
    return _checker
