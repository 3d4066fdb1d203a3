"""
Resend controller - sends verification emails for a pending user.

Reachable only while a just-created or signed-in account is still
unverified. The first send after account creation seeds the profile with
the unverified flag; each later resend bumps ``resend_count``. Both record
``verification_email_sent_at``. The counter is advisory: nothing here
limits how often a user may resend.
"""

import logging
from dataclasses import dataclass
from typing import Any

from .exceptions import (
    EmailNotVerified,
    GatewayError,
    NoPendingUser,
    ProfileStoreError,
    ResendFailed,
)
from .links import build_continue_url
from .ports import ActionCodeSettings, IdentityGateway, Increment, ProfileStore
from .profile_sync import MANUAL_CHECK_METHOD, record_email_verified, utcnow
from .session import PendingCredentialUser, Session

logger = logging.getLogger(__name__)

NOT_VERIFIED_MESSAGE = (
    "Please check your email and click the verification link before continuing."
)


@dataclass
class ResendController:
    """
    Send, resend and verification-check operations for the session's pending user.

    The enriched request embeds a continue URL carrying the user's email and
    name so the landing page can greet them. Providers may refuse it (for
    example an unauthorized continue domain); the controller then falls back
    to a plain request and only reports the final outcome.
    """

    gateway: IdentityGateway
    profile_store: ProfileStore
    session: Session
    continue_origin: str
    continue_path: str = "/email-verified"

    async def send_initial(self) -> None:
        """
        Send the first verification email for a just-created account.

        Seeds the profile with ``email_verified=False`` and the send time;
        ``resend_count`` is left alone.

        Raises:
            NoPendingUser: no unverified user in the session
            ResendFailed: the provider refused both the enriched and the
                minimal request
        """
        user = self._pending_user()
        await self._send_with_fallback(user)
        await self._record_send(
            user,
            {"email_verified": False, "verification_email_sent_at": utcnow()},
        )

    async def resend(self) -> None:
        """
        Send another verification email and record the attempt.

        Raises:
            NoPendingUser: no unverified user in the session
            ResendFailed: the provider refused both the enriched and the
                minimal request
        """
        user = self._pending_user()
        await self._send_with_fallback(user)
        await self._record_send(
            user,
            {"resend_count": Increment(1), "verification_email_sent_at": utcnow()},
        )

    async def confirm_verified(self) -> PendingCredentialUser:
        """
        Check with the provider whether the pending user has verified.

        On success the profile is marked verified and the pending user is
        released from the session.

        Returns:
            Refreshed user

        Raises:
            NoPendingUser: no unverified user in the session
            EmailNotVerified: provider still reports the email unverified
        """
        self._pending_user()
        refreshed = await self.gateway.reload_user(self.session)
        if not refreshed.email_verified:
            self.session.pending_user = refreshed
            raise EmailNotVerified(NOT_VERIFIED_MESSAGE)

        await record_email_verified(self.profile_store, refreshed.uid, MANUAL_CHECK_METHOD)
        self.session.discard_pending_user()
        return refreshed

    async def _send_with_fallback(self, user: PendingCredentialUser) -> None:
        settings = ActionCodeSettings(
            url=build_continue_url(
                self.continue_origin, self.continue_path, user.email, user.display_name
            ),
        )

        try:
            await self.gateway.send_verification_email(self.session, settings)
            logger.info("Verification email sent with continue URL to uid=%s", user.uid)
        except GatewayError as e:
            logger.warning("Enriched verification email refused, retrying minimal: %s", e)
            try:
                await self.gateway.send_verification_email(self.session)
            except GatewayError as fallback_error:
                logger.error("Verification email send failed for uid=%s", user.uid)
                raise ResendFailed(user.uid) from fallback_error
            logger.info("Verification email sent with basic settings to uid=%s", user.uid)

    async def _record_send(self, user: PendingCredentialUser, fields: dict[str, Any]) -> None:
        try:
            await self.profile_store.merge_update(user.uid, fields)
        except ProfileStoreError as e:
            logger.error("Could not record verification email for uid=%s: %s", user.uid, e)

    def _pending_user(self) -> PendingCredentialUser:
        user = self.session.pending_user
        if user is None or user.email_verified:
            raise NoPendingUser()
        return user
