# backend/wizard/state.py
# Integration wizard state machine

import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from core.errors import BackendError, QuotaExceededError, WizardStateError
from store import BackendClient, Integration
from store import repository as repo

from .catalog import AuthType, Platform, PlatformCatalog
from .connectivity import ConnectivityChecker, ConnectivityResult, SimulatedConnectivityChecker
from .mapping import FieldMapper, Side

logger = logging.getLogger(__name__)

MIN_API_KEY_LENGTH = 16


class WizardStep(str, Enum):
    SELECT_PLATFORMS = "select_platforms"
    AUTHENTICATE = "authenticate"
    MAP_FIELDS = "map_fields"
    TEST_INTEGRATION = "test_integration"
    COMPLETE = "complete"
    CLOSED = "closed"


def check_api_key(key: Optional[str]) -> bool:
    """Format heuristic only; the platform itself is the real validator"""
    if not key or any(c.isspace() for c in key):
        return False
    return len(key) >= MIN_API_KEY_LENGTH


class IntegrationWizard:
    """
    Multi-step flow producing one Integration

    SELECT_PLATFORMS → AUTHENTICATE → MAP_FIELDS → TEST_INTEGRATION → COMPLETE,
    CLOSED from anywhere via cancel(). Actions return True on success; a
    failed action leaves the step unchanged and sets `error`. Calling an
    action in the wrong step raises WizardStateError.
    """

    def __init__(
        self,
        backend: BackendClient,
        user_id: str,
        checker: Optional[ConnectivityChecker] = None,
        wizard_id: Optional[str] = None,
    ):
        self.id = wizard_id or str(uuid.uuid4())
        self.backend = backend
        self.user_id = user_id
        self.checker = checker or SimulatedConnectivityChecker()

        self.step = WizardStep.SELECT_PLATFORMS
        self.source: Optional[Platform] = None
        self.target: Optional[Platform] = None
        self.mapper: Optional[FieldMapper] = None
        self.test_result: Optional[ConnectivityResult] = None
        self.integration: Optional[Integration] = None
        self.error: Optional[str] = None
        self.blocking = False
        self._finishing = False
        # platform id -> api key / authorization code; never persisted
        self._credentials: Dict[str, str] = {}

    # ── helpers ────────────────────────────────────────────────

    def _require(self, *steps: WizardStep) -> None:
        if self.step not in steps:
            allowed = ", ".join(s.value for s in steps)
            raise WizardStateError(
                f"Action not allowed in step '{self.step.value}' (expected {allowed})"
            )

    def _fail(self, message: str, blocking: bool = False) -> bool:
        self.error = message
        self.blocking = blocking
        return False

    def _ok(self, step: Optional[WizardStep] = None) -> bool:
        self.error = None
        self.blocking = False
        if step:
            self.step = step
        return True

    @property
    def platforms(self) -> List[Platform]:
        return [p for p in (self.source, self.target) if p]

    @property
    def mappings(self):
        return self.mapper.mappings if self.mapper else []

    # ── SELECT_PLATFORMS ───────────────────────────────────────

    def select_platforms(self, source_id: Optional[str], target_id: Optional[str]) -> bool:
        self._require(WizardStep.SELECT_PLATFORMS)
        if not source_id or not target_id:
            return self._fail("Select both a source and a target platform")

        source = PlatformCatalog.get(source_id)
        target = PlatformCatalog.get(target_id)
        if not source or not target:
            unknown = source_id if not source else target_id
            return self._fail(f"Unknown platform: {unknown}")

        self.source, self.target = source, target
        return self._ok(WizardStep.AUTHENTICATE)

    # ── AUTHENTICATE ───────────────────────────────────────────

    def authorization_urls(self, redirect_uri: Optional[str] = None) -> Dict[str, str]:
        """Authorize redirects for the OAuth platforms; state carries the wizard id"""
        self._require(WizardStep.AUTHENTICATE)
        urls = {}
        for platform in self.platforms:
            if platform.auth_type != AuthType.OAUTH or not platform.authorize_url:
                continue
            params = {"response_type": "code", "state": self.id}
            if redirect_uri:
                params["redirect_uri"] = redirect_uri
            urls[platform.id] = f"{platform.authorize_url}?{urlencode(params)}"
        return urls

    def authenticate(self, credentials: Dict[str, str]) -> bool:
        """
        credentials: platform id → api key (api_key platforms) or
        authorization code (oauth platforms)
        """
        self._require(WizardStep.AUTHENTICATE)
        credentials = credentials or {}

        for platform in self.platforms:
            value = credentials.get(platform.id)
            if platform.auth_type == AuthType.OAUTH:
                if not value:
                    return self._fail(f"Authorize {platform.name} to continue")
            elif not check_api_key(value):
                return self._fail(f"Invalid API key for {platform.name}")

        self._credentials = {p.id: credentials[p.id] for p in self.platforms}
        self.mapper = FieldMapper(
            [f.id for f in self.source.fields],
            [f.id for f in self.target.fields],
        )
        return self._ok(WizardStep.MAP_FIELDS)

    # ── MAP_FIELDS ─────────────────────────────────────────────

    def drop_field(self, field_id: str, side: Side) -> bool:
        self._require(WizardStep.MAP_FIELDS)
        return self.mapper.drop(field_id, side) is not None

    def remove_mapping(self, source_id: str) -> bool:
        self._require(WizardStep.MAP_FIELDS)
        return self.mapper.remove(source_id)

    def start_test(self) -> bool:
        self._require(WizardStep.MAP_FIELDS)
        if not self.mappings:
            return self._fail("Map at least one field before testing")
        return self._ok(WizardStep.TEST_INTEGRATION)

    # ── TEST_INTEGRATION ───────────────────────────────────────

    async def test_integration(self) -> bool:
        self._require(WizardStep.TEST_INTEGRATION)
        result = await self.checker.check(self.source, self.target)
        self.test_result = result

        await repo.log_activity(self.backend, self.user_id, "Tested integration", {
            "source": self.source.id,
            "target": self.target.id,
            "success": result.success,
            "message": result.message,
        })

        if not result.success:
            return self._fail(f"Integration test failed: {result.message}")
        return self._ok(WizardStep.COMPLETE)

    # ── COMPLETE ───────────────────────────────────────────────

    async def finish(self, name: Optional[str] = None) -> bool:
        """Create the Integration; quota is checked atomically by the store"""
        self._require(WizardStep.COMPLETE)
        if self.integration:
            return self._ok()
        if self._finishing:
            raise WizardStateError("Integration is already being created")

        self._finishing = True
        try:
            return await self._create(name)
        finally:
            self._finishing = False

    async def _create(self, name: Optional[str]) -> bool:
        row = {
            "name": name or f"{self.source.name} to {self.target.name}",
            "platform": self.target.id,
            "source_platform": self.source.id,
            "field_mappings": [m.model_dump() for m in self.mappings],
            "status": "Active",
        }
        try:
            self.integration = await repo.create_integration(self.backend, self.user_id, row)
        except QuotaExceededError as e:
            logger.info("Wizard %s blocked by quota for user %s", self.id, self.user_id)
            return self._fail(e.message, blocking=True)
        except BackendError as e:
            logger.error("Wizard %s failed to create integration: %s", self.id, e.message)
            return self._fail("Failed to create integration. Please try again.")

        await repo.log_activity(self.backend, self.user_id, "Created integration", {
            "integration_id": self.integration.id,
            "name": self.integration.name,
        })
        return self._ok()

    def close(self) -> bool:
        """Return to dashboard"""
        self._require(WizardStep.COMPLETE)
        return self._ok(WizardStep.CLOSED)

    def cancel(self) -> bool:
        self._require(*[s for s in WizardStep if s != WizardStep.CLOSED])
        return self._ok(WizardStep.CLOSED)

    # ── view ───────────────────────────────────────────────────

    def view(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "step": self.step.value,
            "source": self.source.model_dump(mode="json") if self.source else None,
            "target": self.target.model_dump(mode="json") if self.target else None,
            "authenticated": sorted(self._credentials),
            "mappings": [m.model_dump() for m in self.mappings],
            "test_result": self.test_result.model_dump() if self.test_result else None,
            "integration": self.integration.model_dump(mode="json") if self.integration else None,
            "error": self.error,
            "blocking": self.blocking,
        }
