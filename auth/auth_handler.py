from passlib.context import CryptContext
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from datetime import datetime, timedelta
from typing import Optional

from config import settings
from utils.errors import AuthError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)

USER_ROLE = "user"
ADMIN_ROLE = "admin"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(subject: str, role: str = USER_ROLE) -> str:
    """Sign a self-contained token.

    Claims: ``sub`` (user id, or the admin email), ``role`` and ``exp``.
    Nothing is stored server side, so a token stays valid until it expires.
    """
    if not settings.jwt_secret_key:
        raise AuthError("Token signing is not configured")
    expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": subject, "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise AuthError("Not Authorized Login Again")
    if not payload.get("sub"):
        raise AuthError("Not Authorized Login Again")
    return payload


def _token_payload(credentials: Optional[HTTPAuthorizationCredentials]) -> dict:
    if credentials is None or not credentials.credentials:
        raise AuthError("Not Authorized Login Again")
    return decode_access_token(credentials.credentials)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Resolve the caller's user id from the bearer token."""
    payload = _token_payload(credentials)
    if payload.get("role") != USER_ROLE:
        raise AuthError("Not Authorized Login Again")
    return payload["sub"]


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    payload = _token_payload(credentials)
    if payload.get("role") != ADMIN_ROLE or payload["sub"] != settings.admin_email:
        raise AuthError("Not Authorized Login Again")
    return payload["sub"]
