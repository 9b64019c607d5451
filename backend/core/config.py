# backend/core/config.py
# Environment configuration

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    """Runtime settings read from the environment"""

    # BaaS (Supabase)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""

    # Stripe
    stripe_secret_key: str = ""
    stripe_publishable_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_price_basic: str = "price_basic123"
    stripe_price_pro: str = "price_pro456"
    stripe_price_enterprise: str = "price_enterprise789"

    # App
    app_url: str = "http://localhost:3000"
    session_secret: str = "integration_hub_dev_secret_change_in_production"
    session_expiry_hours: int = 24
    log_level: str = "INFO"
    log_format: str = "plain"
    connectivity_check: str = "simulated"  # simulated | http
    cors_origins: list = field(default_factory=lambda: ["*"])

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def write_key(self) -> str:
        """Service role key for privileged writes, anon key otherwise"""
        return self.supabase_service_role_key or self.supabase_anon_key


def _env(name: str, default: Optional[str] = None) -> str:
    value = os.getenv(name)
    return value if value not in (None, "") else (default or "")


def get_settings() -> Settings:
    """Build settings from the current environment"""
    defaults = Settings()
    origins = _env("CORS_ORIGINS", "*")
    return Settings(
        supabase_url=_env("SUPABASE_URL", _env("NEXT_PUBLIC_SUPABASE_URL")).rstrip("/"),
        supabase_anon_key=_env("SUPABASE_ANON_KEY", _env("NEXT_PUBLIC_SUPABASE_ANON_KEY")),
        supabase_service_role_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
        supabase_jwt_secret=_env("SUPABASE_JWT_SECRET"),
        stripe_secret_key=_env("STRIPE_SECRET_KEY"),
        stripe_publishable_key=_env("STRIPE_PUBLISHABLE_KEY", _env("NEXT_PUBLIC_STRIPE_PUBLISHABLE_KEY")),
        stripe_webhook_secret=_env("STRIPE_WEBHOOK_SECRET"),
        stripe_price_basic=_env("STRIPE_PRICE_BASIC", defaults.stripe_price_basic),
        stripe_price_pro=_env("STRIPE_PRICE_PRO", defaults.stripe_price_pro),
        stripe_price_enterprise=_env("STRIPE_PRICE_ENTERPRISE", defaults.stripe_price_enterprise),
        app_url=_env("APP_URL", defaults.app_url).rstrip("/"),
        session_secret=_env("SESSION_SECRET", defaults.session_secret),
        session_expiry_hours=int(_env("SESSION_EXPIRY_HOURS", str(defaults.session_expiry_hours))),
        log_level=_env("LOG_LEVEL", defaults.log_level).upper(),
        log_format=_env("LOG_FORMAT", defaults.log_format).lower(),
        connectivity_check=_env("CONNECTIVITY_CHECK", defaults.connectivity_check).lower(),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )
