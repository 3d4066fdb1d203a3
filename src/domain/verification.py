"""
Verification flow - state machine for one inbound action link.

One VerificationFlow instance corresponds to one opened link. It owns the
authoritative VerificationStatus and drives the identity provider and the
profile store for that link.

Flow State Machine (Forward-Only Transitions)
=============================================

States:
- LOADING: Initial state, link not processed yet
- PASSWORD_RESET_PENDING: Reset link accepted, waiting for the new password
- SUCCESS: Terminal, code applied or password reset
- EXPIRED: Terminal, verification code invalid, expired or already used
- ERROR: Terminal, malformed link or provider failure

Valid Transitions:
    LOADING -> SUCCESS | EXPIRED | ERROR | PASSWORD_RESET_PENDING
    PASSWORD_RESET_PENDING -> SUCCESS

Link processing runs at most once per instance. The latch is set before the
first attempt, so repeated triggers with the same link never consume a
single-use code twice. Results that arrive after the instance left LOADING,
or after it was closed, are discarded.

Validation is asymmetric: verification codes are applied (and can expire) on
load, while reset codes are only checked when the new password is submitted.
"""

import logging

from .exceptions import ErrorKind, GatewayError, classify_gateway_error
from .links import ActionRequest
from .ports import (
    ActionMode,
    GatewayErrorCode,
    IdentityGateway,
    ProfileStore,
    VerificationStatus,
)
from .profile_sync import EMAIL_LINK_METHOD, record_email_verified
from .redirect import RedirectScheduler
from .session import Session

logger = logging.getLogger(__name__)

NO_CODE_MESSAGE = "Invalid link - no action code found"
NO_MODE_MESSAGE = "Invalid link - no mode specified"
UNSUPPORTED_MODE_MESSAGE = "Invalid link - unsupported mode: {mode}"
EXPIRED_MESSAGE = "This link has expired or has already been used."
EXPIRED_CODE_MESSAGE = "This link has expired. Please request a new one."
GENERIC_ERROR_MESSAGE = "Failed to process the link. Please try again."

_ALLOWED = {
    VerificationStatus.LOADING: {
        VerificationStatus.PASSWORD_RESET_PENDING,
        VerificationStatus.SUCCESS,
        VerificationStatus.EXPIRED,
        VerificationStatus.ERROR,
    },
    VerificationStatus.PASSWORD_RESET_PENDING: {VerificationStatus.SUCCESS},
}


class VerificationFlow:
    """
    State machine for one action link.

    Collaborators are injected; the flow never reaches for global state.
    Navigation after success is delegated to the RedirectScheduler: a
    countdown for email verification, immediate for password reset.
    """

    def __init__(
        self,
        gateway: IdentityGateway,
        profile_store: ProfileStore,
        scheduler: RedirectScheduler,
        *,
        verified_redirect: str = "/Dashboard",
        reset_redirect: str = "/",
        redirect_delay: float = 4.0,
    ) -> None:
        self._gateway = gateway
        self._profile_store = profile_store
        self._scheduler = scheduler
        self._verified_redirect = verified_redirect
        self._reset_redirect = reset_redirect
        self._redirect_delay = redirect_delay

        self.status = VerificationStatus.LOADING
        self.request: ActionRequest | None = None
        self.message = ""
        self.error_kind: ErrorKind | None = None
        self.form_error: str | None = None
        self._processed = False
        self._closed = False

    @property
    def mode(self) -> ActionMode | None:
        return self.request.mode if self.request else None

    @property
    def scheduler(self) -> RedirectScheduler:
        return self._scheduler

    @property
    def closed(self) -> bool:
        return self._closed

    async def process(
        self, request: ActionRequest, session: Session | None = None
    ) -> VerificationStatus:
        """
        Process the inbound link once.

        Later calls are no-ops that return the current status.

        Args:
            request: Parsed action link
            session: Signed-in identity, if the browser has one

        Returns:
            Status after processing
        """
        if self._processed:
            logger.info("Link already processed, skipping (status=%s)", self.status.value)
            return self.status
        self._processed = True
        self.request = request

        logger.info("Processing %s link code=%s", request.raw_mode or "<none>", request.code_prefix)

        if not request.action_code:
            self._fail(ErrorKind.MALFORMED_LINK, NO_CODE_MESSAGE)
        elif request.mode == ActionMode.VERIFY_EMAIL:
            await self._verify_email(request, session)
        elif request.mode == ActionMode.RESET_PASSWORD:
            self._transition(VerificationStatus.PASSWORD_RESET_PENDING)
        elif not request.raw_mode:
            self._fail(ErrorKind.MALFORMED_LINK, NO_MODE_MESSAGE)
        else:
            self._fail(
                ErrorKind.MALFORMED_LINK, UNSUPPORTED_MODE_MESSAGE.format(mode=request.raw_mode)
            )

        return self.status

    def complete_password_reset(self) -> bool:
        """
        Mark the reset as done; called once the provider accepted the new password.

        Returns:
            False if the flow was closed or no longer pending, so nothing changed
        """
        if not self._transition(VerificationStatus.SUCCESS):
            return False
        self.form_error = None
        return True

    def set_form_error(self, message: str | None) -> None:
        self.form_error = message

    def continue_now(self) -> bool:
        """Manual continuation after success; navigates at most once."""
        return self._scheduler.continue_now()

    def close(self) -> None:
        """Tear the instance down; pending timers stop and late results are dropped."""
        self._closed = True
        self._scheduler.close()

    async def _verify_email(self, request: ActionRequest, session: Session | None) -> None:
        try:
            applied = await self._gateway.apply_verification_code(request.action_code)
        except GatewayError as e:
            kind = classify_gateway_error(e)
            logger.warning("Verification code rejected: %s (%s)", kind.value, e)
            if kind == ErrorKind.INVALID_OR_REUSED_CODE:
                message = (
                    EXPIRED_CODE_MESSAGE
                    if e.code == GatewayErrorCode.EXPIRED_CODE
                    else EXPIRED_MESSAGE
                )
                self._fail(kind, message, VerificationStatus.EXPIRED)
            else:
                self._fail(kind, GENERIC_ERROR_MESSAGE)
            return

        logger.info("Verification code applied for %s", applied.email or "<unknown>")

        uid = applied.uid
        if session is not None:
            uid = await self._refresh_session(session) or uid

        if uid and not self._closed:
            synced = await record_email_verified(self._profile_store, uid, EMAIL_LINK_METHOD)
            if not synced:
                self.error_kind = ErrorKind.PROFILE_SYNC_FAILURE
        elif not uid:
            logger.warning("No uid available after verification, profile not synced")

        self._transition(VerificationStatus.SUCCESS)

    async def _refresh_session(self, session: Session) -> str | None:
        try:
            user = await self._gateway.reload_user(session)
        except GatewayError as e:
            logger.warning("Reload after verification failed: %s", e)
            return session.uid
        session.pending_user = user
        logger.info("User reloaded, email_verified=%s", user.email_verified)
        return user.uid

    def _fail(
        self,
        kind: ErrorKind,
        message: str,
        status: VerificationStatus = VerificationStatus.ERROR,
    ) -> None:
        if self._transition(status):
            self.error_kind = kind
            self.message = message

    def _transition(self, status: VerificationStatus) -> bool:
        if self._closed:
            logger.info("Flow closed, discarding transition to %s", status.value)
            return False
        if status not in _ALLOWED.get(self.status, ()):
            logger.warning("Discarding transition %s -> %s", self.status.value, status.value)
            return False

        self.status = status
        logger.info("Flow status -> %s", status.value)

        if status == VerificationStatus.SUCCESS:
            if self.mode == ActionMode.RESET_PASSWORD:
                self._scheduler.navigate_now(self._reset_redirect)
            else:
                self._scheduler.schedule(self._verified_redirect, self._redirect_delay)
        return True
