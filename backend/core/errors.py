# backend/core/errors.py
# Error taxonomy + FastAPI handlers

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error rendered as {"error": message}"""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Bad input from the caller"""
    status_code = 400


class SignatureError(AppError):
    """Webhook signature could not be verified"""
    status_code = 400


class AuthError(AppError):
    status_code = 401


class QuotaExceededError(AppError):
    """Integration limit reached"""
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class WizardStateError(AppError):
    """Action not allowed in the current wizard step"""
    status_code = 409


class BackendError(AppError):
    """Remote store / auth provider call failed"""
    status_code = 500


class ConfigError(AppError):
    status_code = 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
