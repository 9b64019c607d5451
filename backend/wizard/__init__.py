# backend/wizard/__init__.py
# Integration wizard module

from .catalog import AuthType, Platform, PlatformField, PlatformCatalog, PLATFORMS
from .mapping import FieldMapper, Side
from .connectivity import (
    ConnectivityChecker,
    ConnectivityResult,
    SimulatedConnectivityChecker,
    HttpConnectivityChecker,
)
from .state import IntegrationWizard, WizardStep, check_api_key
from .sessions import WizardSessionStore

__all__ = [
    "AuthType",
    "Platform",
    "PlatformField",
    "PlatformCatalog",
    "PLATFORMS",
    "FieldMapper",
    "Side",
    "ConnectivityChecker",
    "ConnectivityResult",
    "SimulatedConnectivityChecker",
    "HttpConnectivityChecker",
    "IntegrationWizard",
    "WizardStep",
    "check_api_key",
    "WizardSessionStore",
]
