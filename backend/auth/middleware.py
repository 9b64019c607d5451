# backend/auth/middleware.py
# Session auth dependencies (identity delegated to the BaaS auth provider)

import re
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.errors import AuthError
from store.models import AuthUser

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
MIN_PASSWORD_LENGTH = 8

bearer_scheme = HTTPBearer(auto_error=False)


def validate_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Optional[AuthUser]:
    """Resolve the bearer token, None when absent or invalid"""
    if not credentials:
        return None
    backend = request.app.state.backend
    try:
        return await backend.get_user(credentials.credentials)
    except AuthError:
        return None


async def require_user(user: Optional[AuthUser] = Depends(get_current_user)) -> AuthUser:
    """Authentication required"""
    if not user:
        raise AuthError("Authentication required")
    return user
