# backend/wizard/sessions.py
# In-process wizard sessions (no persistence, no resume across restarts)

import logging
import time
from typing import Callable, Dict, List, Optional

from core.errors import NotFoundError
from store import BackendClient

from .connectivity import ConnectivityChecker
from .state import IntegrationWizard, WizardStep

logger = logging.getLogger(__name__)

MAX_OPEN_PER_USER = 5
IDLE_TIMEOUT_SECONDS = 60 * 60


class WizardSessionStore:
    """
    Open wizards keyed by id; a wizard is only visible to its owner

    Wizards idle longer than `idle_timeout` are dropped. Opening one more
    than `max_per_user` replaces the owner's least recently used wizard.
    """

    def __init__(
        self,
        checker: Optional[ConnectivityChecker] = None,
        max_per_user: int = MAX_OPEN_PER_USER,
        idle_timeout: float = IDLE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.checker = checker
        self.max_per_user = max_per_user
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._wizards: Dict[str, IntegrationWizard] = {}
        self._last_seen: Dict[str, float] = {}

    def _drop(self, wizard_id: str) -> None:
        self._wizards.pop(wizard_id, None)
        self._last_seen.pop(wizard_id, None)

    def expire_idle(self) -> int:
        cutoff = self.clock() - self.idle_timeout
        stale = [wid for wid, seen in self._last_seen.items() if seen < cutoff]
        for wid in stale:
            self._drop(wid)
        if stale:
            logger.info("Expired %d idle wizard(s)", len(stale))
        return len(stale)

    def open(self, backend: BackendClient, user_id: str) -> IntegrationWizard:
        self.expire_idle()

        owned = self.for_user(user_id)
        while len(owned) >= self.max_per_user:
            oldest = owned.pop(0)
            self._drop(oldest.id)
            logger.info("Replaced wizard %s for user %s", oldest.id, user_id)

        wizard = IntegrationWizard(backend, user_id, checker=self.checker)
        self._wizards[wizard.id] = wizard
        self._last_seen[wizard.id] = self.clock()
        return wizard

    def get(self, wizard_id: str, user_id: str) -> IntegrationWizard:
        self.expire_idle()
        wizard = self._wizards.get(wizard_id)
        if not wizard or wizard.user_id != user_id:
            raise NotFoundError("Wizard not found")
        self._last_seen[wizard_id] = self.clock()
        return wizard

    def discard_closed(self, wizard: IntegrationWizard) -> None:
        if wizard.step == WizardStep.CLOSED:
            self._drop(wizard.id)

    def for_user(self, user_id: str) -> List[IntegrationWizard]:
        """Owner's wizards, least recently used first"""
        owned = [w for w in self._wizards.values() if w.user_id == user_id]
        return sorted(owned, key=lambda w: self._last_seen[w.id])

    def __len__(self) -> int:
        return len(self._wizards)
