# backend/auth/api.py
# Auth API router (sign-up / sign-in delegated to the BaaS auth provider)

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.errors import AuthError, BackendError, ValidationError
from store import AuthSession, AuthUser, BackendClient, get_backend
from store import repository as repo

from .middleware import MIN_PASSWORD_LENGTH, require_user, validate_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


class CredentialsRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    avatar_url: Optional[str] = None


def _check_email(email: str) -> None:
    if not validate_email(email):
        raise ValidationError("Please enter a valid email address.")


@router.post("/auth/signup", response_model=AuthSession)
async def signup(req: CredentialsRequest, backend: BackendClient = Depends(get_backend)):
    """
    Register and create the users row

    New users start on the free tier with one integration. If the row
    cannot be written the account still exists; signing in restores it.
    """
    _check_email(req.email)
    if len(req.password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    session = await backend.sign_up(req.email, req.password)
    try:
        await repo.create_user_row(backend, session.user.id, session.user.email)
    except BackendError as e:
        logger.error("Profile setup failed for %s: %s", session.user.id, e.message)
        raise BackendError("Your account was created but setup did not finish. Please sign in to continue.")
    await repo.log_activity(backend, session.user.id, "Signed up")
    logger.info("New account %s", session.user.id)
    return session


@router.post("/auth/login", response_model=AuthSession)
async def login(req: CredentialsRequest, backend: BackendClient = Depends(get_backend)):
    _check_email(req.email)
    if not req.password:
        raise ValidationError("Password is required.")
    try:
        session = await backend.sign_in(req.email, req.password)
    except AuthError:
        raise AuthError("Incorrect email or password.")
    await repo.ensure_user_row(backend, session.user.id, session.user.email)
    return session


@router.get("/auth/me")
async def get_me(
    user: AuthUser = Depends(require_user),
    backend: BackendClient = Depends(get_backend),
):
    """Current identity + profile row"""
    profile = await repo.ensure_user_row(backend, user.id, user.email)
    return {
        "authenticated": True,
        "user": profile.model_dump(mode="json"),
    }


@router.patch("/profile")
async def update_profile(
    req: ProfileUpdate,
    user: AuthUser = Depends(require_user),
    backend: BackendClient = Depends(get_backend),
):
    profile = await repo.update_user(backend, user.id, {"avatar_url": req.avatar_url})
    await repo.log_activity(backend, user.id, "Updated profile", {"avatar_url": req.avatar_url})
    return profile.model_dump(mode="json")
