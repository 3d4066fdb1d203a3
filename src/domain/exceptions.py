"""
Domain exceptions - Semantic error types for the action-link flow.

This module defines domain-specific exceptions and the error taxonomy that
communicate failures without leaking infrastructure details.
"""

from enum import Enum

from .ports import GatewayErrorCode


class ErrorKind(Enum):
    """Classified failure kinds; each provider failure maps to exactly one."""

    MALFORMED_LINK = "malformed_link"
    INVALID_OR_REUSED_CODE = "invalid_or_reused_code"
    WEAK_PASSWORD = "weak_password"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PROFILE_SYNC_FAILURE = "profile_sync_failure"


class ActionFlowError(Exception):
    """Base class for action-link flow domain errors."""

    pass


class GatewayError(ActionFlowError):
    """The identity provider rejected a request or could not be reached."""

    def __init__(self, code: GatewayErrorCode, message: str = "") -> None:
        super().__init__(message or code.value)
        self.code = code


class ProfileStoreError(ActionFlowError):
    """A profile merge-update could not be written."""

    pass


class FlowStateError(ActionFlowError):
    """Operation not allowed in the flow's current status, or already running."""

    pass


class NoPendingUser(ActionFlowError):
    """Resend or check requested without an unverified pending user."""

    pass


class EmailNotVerified(ActionFlowError):
    """The provider still reports the pending user as unverified."""

    pass


class ResendFailed(ActionFlowError):
    """Neither the enriched nor the minimal verification email could be sent."""

    pass


def classify_gateway_error(error: GatewayError) -> ErrorKind:
    """Map a provider failure to its error kind."""
    if error.code in (GatewayErrorCode.INVALID_CODE, GatewayErrorCode.EXPIRED_CODE):
        return ErrorKind.INVALID_OR_REUSED_CODE
    if error.code == GatewayErrorCode.WEAK_PASSWORD:
        return ErrorKind.WEAK_PASSWORD
    return ErrorKind.PROVIDER_UNAVAILABLE
