from passlib.context import CryptContext
from datetime import datetime, timedelta
import jwt, calendar
from typing import Tuple
from storefront.core.config import settings

pwd_ctx = CryptContext(schemes=['bcrypt'], deprecated='auto')

class TokenConfigError(RuntimeError):
    pass

def hash_password(p: str) -> str: return pwd_ctx.hash(p)

def verify_password(p: str, h: str) -> bool: return pwd_ctx.verify(p, h)

def now_utc() -> datetime: return datetime.utcnow()

def _secret() -> str:
    if not settings.JWT_SECRET:
        raise TokenConfigError('JWT_SECRET is not configured')
    return settings.JWT_SECRET

def create_access_token(user_id: int, email: str, name: str, role: str) -> Tuple[str, datetime]:
    iat = now_utc()
    exp = iat + timedelta(seconds=settings.ACCESS_TOKEN_EXPIRES_SECONDS)
    # fractional iat so a password change in the same second still invalidates the token
    iat_ts = calendar.timegm(iat.utctimetuple()) + iat.microsecond / 1_000_000
    payload = {'sub': email, 'uid': user_id, 'name': name, 'role': role, 'iat': iat_ts, 'exp': exp, 'type': 'access'}
    return jwt.encode(payload, _secret(), algorithm=settings.JWT_ALGORITHM), exp

def decode_token(token: str) -> dict:
    return jwt.decode(token, _secret(), algorithms=[settings.JWT_ALGORITHM])
