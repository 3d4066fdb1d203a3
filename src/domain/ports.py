"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the action-link flow requires
from the identity provider, the profile store and the navigation surface.
Adapters implement these protocols.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from .session import PendingCredentialUser, Session


class ActionMode(str, Enum):
    """Kind of out-of-band action carried by an inbound link."""

    VERIFY_EMAIL = "verifyEmail"
    RESET_PASSWORD = "resetPassword"
    UNKNOWN = "unknown"


class VerificationStatus(str, Enum):
    """
    Status of one flow instance.

    State Transitions (forward-only):
    - LOADING -> SUCCESS                  (verification code applied)
    - LOADING -> EXPIRED                  (code invalid, expired or reused)
    - LOADING -> ERROR                    (malformed link or provider failure)
    - LOADING -> PASSWORD_RESET_PENDING   (reset link, validated on submit)
    - PASSWORD_RESET_PENDING -> SUCCESS   (new password accepted)

    Terminal States:
    - SUCCESS, EXPIRED, ERROR

    A failed reset submission leaves the flow in PASSWORD_RESET_PENDING with
    a local form error; it never moves the flow to a terminal failure.
    """

    LOADING = "loading"
    PASSWORD_RESET_PENDING = "password_reset_pending"
    SUCCESS = "success"
    EXPIRED = "expired"
    ERROR = "error"


TERMINAL_STATUSES = frozenset(
    {VerificationStatus.SUCCESS, VerificationStatus.EXPIRED, VerificationStatus.ERROR}
)


class GatewayErrorCode(Enum):
    """Provider-side failure reasons, as reported by an IdentityGateway."""

    INVALID_CODE = "invalid_code"
    EXPIRED_CODE = "expired_code"
    WEAK_PASSWORD = "weak_password"
    OTHER = "other"


@dataclass(frozen=True)
class AppliedCode:
    """Identity the provider reports for an applied verification code."""

    email: str = ""
    uid: str | None = None


@dataclass(frozen=True)
class ActionCodeSettings:
    """Optional settings sent along with a verification email request."""

    url: str
    handle_code_in_app: bool = False


@dataclass(frozen=True)
class Increment:
    """Merge-update value that adds ``amount`` to the stored number."""

    amount: int = 1


class IdentityGateway(Protocol):
    """Port interface for the external identity provider."""

    async def apply_verification_code(self, code: str) -> AppliedCode:
        """
        Apply an email-verification action code.

        Raises:
            GatewayError: code rejected or provider unreachable
        """
        ...

    async def confirm_password_reset(self, code: str, new_password: str) -> None:
        """
        Validate and consume a password-reset code, setting the new password.

        Raises:
            GatewayError: INVALID_CODE, EXPIRED_CODE, WEAK_PASSWORD or OTHER
        """
        ...

    async def reload_user(self, session: Session) -> PendingCredentialUser:
        """Fetch a fresh view of the signed-in user, including emailVerified."""
        ...

    async def send_verification_email(
        self, session: Session, settings: ActionCodeSettings | None = None
    ) -> None:
        """
        Ask the provider to (re-)issue a verification email.

        Raises:
            GatewayError: provider refused the request
        """
        ...


class ProfileStore(Protocol):
    """Port interface for the per-user profile record store."""

    async def merge_update(self, uid: str, fields: dict[str, Any]) -> None:
        """
        Update only the given fields of the profile record for ``uid``.

        Field values are written as-is except ``Increment`` values, which are
        added to the stored number. Fields not named are left untouched.

        Raises:
            ProfileStoreError: write failed
        """
        ...


class Navigator(Protocol):
    """Port interface for moving the user to another location."""

    def navigate(self, target: str) -> None:
        """Send the user to ``target``."""
        ...
