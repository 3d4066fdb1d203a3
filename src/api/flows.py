"""
Flow registry - keeps flow instances alive between HTTP requests.

Each opened action link becomes one flow instance, addressed by an opaque
flow id. Navigation requested by the flow is recorded on the instance and
returned to the client, which performs it.
"""

import logging
import secrets
from collections import OrderedDict
from dataclasses import dataclass, field

from src.domain.links import ActionRequest
from src.domain.password_reset import PasswordResetController
from src.domain.ports import IdentityGateway, ProfileStore
from src.domain.redirect import RedirectScheduler
from src.domain.session import Session
from src.domain.verification import VerificationFlow

logger = logging.getLogger(__name__)


class RecordingNavigator:
    """Implements Navigator protocol by remembering the target for the client."""

    def __init__(self) -> None:
        self.target: str | None = None
        self.navigations = 0

    def navigate(self, target: str) -> None:
        self.target = target
        self.navigations += 1


@dataclass
class FlowRecord:
    """One flow instance plus the request-scoped pieces it needs."""

    flow_id: str
    flow: VerificationFlow
    reset: PasswordResetController
    navigator: RecordingNavigator
    request: ActionRequest | None = None
    session: Session | None = field(default=None, repr=False)


class FlowRegistry:
    """
    In-memory store of flow instances.

    Bounded: when full, the oldest instance is closed (its redirect timer
    torn down) and dropped.
    """

    def __init__(
        self,
        gateway: IdentityGateway,
        profile_store: ProfileStore,
        *,
        verified_redirect: str = "/Dashboard",
        reset_redirect: str = "/",
        redirect_delay: float = 4.0,
        max_flows: int = 1000,
    ) -> None:
        self._gateway = gateway
        self._profile_store = profile_store
        self._verified_redirect = verified_redirect
        self._reset_redirect = reset_redirect
        self._redirect_delay = redirect_delay
        if max_flows < 1:
            raise ValueError("max_flows must be at least 1")
        self._max_flows = max_flows
        self._records: OrderedDict[str, FlowRecord] = OrderedDict()

    def __len__(self) -> int:
        return len(self._records)

    def create(self, session: Session | None = None) -> FlowRecord:
        """Create and register a fresh flow instance in LOADING."""
        while len(self._records) >= self._max_flows:
            _, oldest = self._records.popitem(last=False)
            oldest.flow.close()
            logger.info("Evicted flow %s", oldest.flow_id)

        navigator = RecordingNavigator()
        flow = VerificationFlow(
            self._gateway,
            self._profile_store,
            RedirectScheduler(navigator),
            verified_redirect=self._verified_redirect,
            reset_redirect=self._reset_redirect,
            redirect_delay=self._redirect_delay,
        )
        record = FlowRecord(
            flow_id=secrets.token_urlsafe(16),
            flow=flow,
            reset=PasswordResetController(flow, self._gateway),
            navigator=navigator,
            session=session,
        )
        self._records[record.flow_id] = record
        return record

    def get(self, flow_id: str) -> FlowRecord:
        """
        Raises:
            KeyError: unknown or removed flow id
        """
        return self._records[flow_id]

    def remove(self, flow_id: str) -> None:
        """Close and drop a flow instance (client left the page)."""
        record = self._records.pop(flow_id)
        record.flow.close()

    def close_all(self) -> None:
        for record in self._records.values():
            record.flow.close()
        self._records.clear()
