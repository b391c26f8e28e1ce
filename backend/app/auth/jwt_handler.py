"""
JWT token creation and verification
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from pydantic import BaseModel

from ..config import settings


class TokenData(BaseModel):
    user_id: int


class InvalidTokenError(Exception):
    pass


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed access token for a user"""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {"sub": str(user_id), "exp": expire, "type": "access"}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def verify_token(token: str) -> TokenData:
    """
    Decode and validate an access token

    Raises:
        InvalidTokenError: if the token is expired, malformed or not an access token
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.PyJWTError as e:
        raise InvalidTokenError(str(e)) from e

    if payload.get("type") != "access" or "sub" not in payload:
        raise InvalidTokenError("Not an access token")

    try:
        return TokenData(user_id=int(payload["sub"]))
    except ValueError as e:
        raise InvalidTokenError("Invalid subject") from e
