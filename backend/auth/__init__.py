# backend/auth/__init__.py
# Auth module

from .middleware import (
    get_current_user,
    require_user,
    validate_email,
    EMAIL_PATTERN,
    MIN_PASSWORD_LENGTH,
)
from .tokens import (
    create_access_token,
    decode_access_token,
    TokenPayload,
)

__all__ = [
    "get_current_user",
    "require_user",
    "validate_email",
    "EMAIL_PATTERN",
    "MIN_PASSWORD_LENGTH",
    "create_access_token",
    "decode_access_token",
    "TokenPayload",
]
