# backend/wizard/api.py
# Integration wizard API router

from typing import Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from auth.middleware import require_user
from store import AuthUser, BackendClient, get_backend

from .catalog import PlatformCatalog
from .mapping import Side
from .sessions import WizardSessionStore
from .state import IntegrationWizard

router = APIRouter(prefix="/wizard", tags=["Integration Wizard"])


class SelectPlatformsRequest(BaseModel):
    source: Optional[str] = None
    target: Optional[str] = None


class AuthenticateRequest(BaseModel):
    credentials: Dict[str, str] = {}


class DropFieldRequest(BaseModel):
    field_id: str
    side: Side


class FinishRequest(BaseModel):
    name: Optional[str] = None


def get_wizards(request: Request) -> WizardSessionStore:
    return request.app.state.wizards


def get_wizard(
    wizard_id: str,
    user: AuthUser = Depends(require_user),
    wizards: WizardSessionStore = Depends(get_wizards),
) -> IntegrationWizard:
    return wizards.get(wizard_id, user.id)


def respond(wizard: IntegrationWizard, ok: bool):
    """Step failures keep the wizard open; quota failures are blocking (403)"""
    if ok:
        return wizard.view()
    status = 403 if wizard.blocking else 400
    return JSONResponse(status_code=status, content={"error": wizard.error, "wizard": wizard.view()})


@router.get("/platforms")
async def list_platforms():
    """Platform catalog"""
    return {
        "platforms": [p.model_dump() for p in PlatformCatalog.get_all().values()],
    }


@router.post("")
async def open_wizard(
    user: AuthUser = Depends(require_user),
    backend: BackendClient = Depends(get_backend),
    wizards: WizardSessionStore = Depends(get_wizards),
):
    wizard = wizards.open(backend, user.id)
    return wizard.view()


@router.get("/{wizard_id}")
async def get_wizard_state(wizard: IntegrationWizard = Depends(get_wizard)):
    return wizard.view()


@router.post("/{wizard_id}/platforms")
async def select_platforms(req: SelectPlatformsRequest, wizard: IntegrationWizard = Depends(get_wizard)):
    return respond(wizard, wizard.select_platforms(req.source, req.target))


@router.get("/{wizard_id}/authorize")
async def authorization_urls(
    redirect_uri: Optional[str] = None,
    wizard: IntegrationWizard = Depends(get_wizard),
):
    """OAuth redirect URLs; the code exchange happens on the platform side"""
    return {"urls": wizard.authorization_urls(redirect_uri)}


@router.post("/{wizard_id}/authenticate")
async def authenticate(req: AuthenticateRequest, wizard: IntegrationWizard = Depends(get_wizard)):
    return respond(wizard, wizard.authenticate(req.credentials))


@router.post("/{wizard_id}/mappings")
async def drop_field(req: DropFieldRequest, wizard: IntegrationWizard = Depends(get_wizard)):
    """Drop a field; pairs with the first free field on the other side or does nothing"""
    wizard.drop_field(req.field_id, req.side)
    return wizard.view()


@router.delete("/{wizard_id}/mappings/{source_id}")
async def remove_mapping(source_id: str, wizard: IntegrationWizard = Depends(get_wizard)):
    wizard.remove_mapping(source_id)
    return wizard.view()


@router.post("/{wizard_id}/start-test")
async def start_test(wizard: IntegrationWizard = Depends(get_wizard)):
    return respond(wizard, wizard.start_test())


@router.post("/{wizard_id}/test")
async def test_integration(wizard: IntegrationWizard = Depends(get_wizard)):
    return respond(wizard, await wizard.test_integration())


@router.post("/{wizard_id}/finish")
async def finish(req: FinishRequest, wizard: IntegrationWizard = Depends(get_wizard)):
    return respond(wizard, await wizard.finish(req.name))


@router.post("/{wizard_id}/close")
async def close_wizard(
    wizard: IntegrationWizard = Depends(get_wizard),
    wizards: WizardSessionStore = Depends(get_wizards),
):
    wizard.close()
    wizards.discard_closed(wizard)
    return wizard.view()


@router.post("/{wizard_id}/cancel")
async def cancel_wizard(
    wizard: IntegrationWizard = Depends(get_wizard),
    wizards: WizardSessionStore = Depends(get_wizards),
):
    wizard.cancel()
    wizards.discard_closed(wizard)
    return wizard.view()
