# backend/dashboard/api.py
# Dashboard + integrations management API

import logging

from fastapi import APIRouter, Depends, Request

from auth.middleware import require_user
from store import AuthUser, BackendClient, IntegrationStatus, get_backend
from store import repository as repo
from wizard.catalog import PlatformCatalog
from wizard.connectivity import ConnectivityChecker, ConnectivityResult

from .aggregator import RECENT_ACTIVITY_LIMIT, DashboardAggregator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])


def get_checker(request: Request) -> ConnectivityChecker:
    return request.app.state.connectivity


@router.get("/dashboard")
async def get_dashboard(
    user: AuthUser = Depends(require_user),
    backend: BackendClient = Depends(get_backend),
):
    """User, integrations, usage and latest activity"""
    snapshot = await DashboardAggregator(backend, user.id).load()
    return snapshot.model_dump(mode="json")


@router.get("/integrations")
async def list_integrations(
    user: AuthUser = Depends(require_user),
    backend: BackendClient = Depends(get_backend),
):
    integrations = await repo.list_integrations(backend, user.id)
    return {
        "integrations": [i.model_dump(mode="json") for i in integrations],
        "count": len(integrations),
    }


@router.post("/integrations/{integration_id}/retry")
async def retry_integration(
    integration_id: str,
    user: AuthUser = Depends(require_user),
    backend: BackendClient = Depends(get_backend),
    checker: ConnectivityChecker = Depends(get_checker),
):
    """
    Re-run the connectivity check

    Failure → error_logs row + status Error; success → status Active.
    """
    integration = await repo.fetch_integration(backend, integration_id, user.id)

    source = PlatformCatalog.get(integration.source_platform or integration.platform)
    target = PlatformCatalog.get(integration.platform)
    if not source or not target:
        result = ConnectivityResult(success=False, message=f"Unknown platform: {integration.platform}")
    else:
        result = await checker.check(source, target)

    if result.success:
        integration = await repo.set_integration_status(backend, integration_id, IntegrationStatus.ACTIVE)
    else:
        logger.warning("Retry failed for integration %s: %s", integration_id, result.message)
        await repo.log_error(backend, integration_id, result.message, error_code="connectivity")
        integration = await repo.set_integration_status(
            backend, integration_id, IntegrationStatus.ERROR, error_message=result.message
        )

    await repo.log_activity(backend, user.id, "Retried integration", {
        "integration_id": integration_id,
        "success": result.success,
    })
    return {
        "success": result.success,
        "message": result.message,
        "integration": integration.model_dump(mode="json"),
    }


@router.get("/integrations/{integration_id}/errors")
async def integration_errors(
    integration_id: str,
    user: AuthUser = Depends(require_user),
    backend: BackendClient = Depends(get_backend),
):
    await repo.fetch_integration(backend, integration_id, user.id)
    errors = await repo.error_logs_for(backend, integration_id)
    return {"errors": [e.model_dump(mode="json") for e in errors]}


@router.get("/activity")
async def activity(
    user: AuthUser = Depends(require_user),
    backend: BackendClient = Depends(get_backend),
):
    """Latest activity, newest first"""
    entries = await repo.recent_activity(backend, user.id, limit=RECENT_ACTIVITY_LIMIT)
    return {"activity": [e.model_dump(mode="json") for e in entries]}
