"""
Password reset form - validates and submits a new password.

Active only while the flow is PASSWORD_RESET_PENDING. Provider failures are
local form errors: the reset code stays valid until consumed or expired, so
the user can correct the password and submit again from the same link.
"""

import logging
import re

from .exceptions import (
    ErrorKind,
    FlowStateError,
    GatewayError,
    classify_gateway_error,
)
from .ports import IdentityGateway, VerificationStatus
from .verification import VerificationFlow

logger = logging.getLogger(__name__)

# At least one digit, one special character, only letters/digits/specials
_PASSWORD_PATTERN = re.compile(r"(?=.*[0-9])(?=.*[!?&%#$])[A-Za-z0-9!?&%#$]{10,}")

EMPTY_PASSWORD_MESSAGE = "Please enter a new password"
POLICY_MESSAGE = (
    "Password must be at least 10 characters with one number "
    "and one special character (!?&%#$)"
)
MISMATCH_MESSAGE = "Passwords do not match"
RESET_EXPIRED_MESSAGE = "This reset link has expired or has already been used."
WEAK_PASSWORD_MESSAGE = "Password is too weak. Please choose a stronger password."
RESET_FAILED_MESSAGE = "Failed to reset password. Please try again."

_FAILURE_MESSAGES = {
    ErrorKind.INVALID_OR_REUSED_CODE: RESET_EXPIRED_MESSAGE,
    ErrorKind.WEAK_PASSWORD: WEAK_PASSWORD_MESSAGE,
}


def meets_password_policy(password: str) -> bool:
    return _PASSWORD_PATTERN.fullmatch(password) is not None


def validate_new_password(password: str, confirmation: str) -> str | None:
    """
    Check a new password and its confirmation.

    Returns:
        Message describing the first problem found, or None if valid
    """
    if not password:
        return EMPTY_PASSWORD_MESSAGE
    if not meets_password_policy(password):
        return POLICY_MESSAGE
    if password != confirmation:
        return MISMATCH_MESSAGE
    return None


class PasswordResetController:
    """Submits a new password for a flow's reset code, one submission at a time."""

    def __init__(self, flow: VerificationFlow, gateway: IdentityGateway) -> None:
        self._flow = flow
        self._gateway = gateway
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    async def submit(self, new_password: str, confirm_password: str) -> bool:
        """
        Validate and submit the new password.

        Returns:
            True if the provider accepted it and the flow moved to SUCCESS,
            False if a form error was recorded on the flow, or the flow was
            closed while the provider call was in flight

        Raises:
            FlowStateError: flow not waiting for a password, or a submission
                is already in flight
        """
        if self._flow.status != VerificationStatus.PASSWORD_RESET_PENDING:
            raise FlowStateError(f"Cannot reset password in status {self._flow.status.value}")
        if self._busy:
            raise FlowStateError("Password reset already in progress")

        problem = validate_new_password(new_password, confirm_password)
        if problem:
            self._flow.set_form_error(problem)
            return False

        self._busy = True
        self._flow.set_form_error(None)
        try:
            await self._gateway.confirm_password_reset(
                self._flow.request.action_code, new_password
            )
        except GatewayError as e:
            kind = classify_gateway_error(e)
            logger.warning("Password reset rejected: %s (%s)", kind.value, e)
            self._flow.set_form_error(_FAILURE_MESSAGES.get(kind, RESET_FAILED_MESSAGE))
            return False
        finally:
            self._busy = False

        if not self._flow.complete_password_reset():
            logger.info("Password reset accepted but flow already closed")
            return False
        logger.info("Password reset accepted")
        return True
