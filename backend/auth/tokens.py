# backend/auth/tokens.py
# Session token (JWT) helpers

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from pydantic import BaseModel

from core.errors import AuthError

JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = "authenticated"


class TokenPayload(BaseModel):
    """JWT payload"""
    sub: str  # user id
    exp: int
    iat: int
    email: Optional[str] = None
    aud: Optional[str] = None


def create_access_token(
    user_id: str,
    secret: str,
    email: Optional[str] = None,
    expiry_hours: int = 24,
) -> str:
    """Issue an HS256 session token"""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "aud": JWT_AUDIENCE,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=expiry_hours)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, secret: str) -> TokenPayload:
    """Verify a session token; raises AuthError"""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")
    return TokenPayload(**payload)
