"""
Domain layer - Pure business logic with zero framework imports.

This package contains the action-link flow: link parsing, the verification
state machine, the password reset form, the resend controller and the
auto-redirect scheduler. It defines its own port interfaces for the identity
provider and the profile store, keeping hexagonal architecture decoupling.
"""

from .exceptions import (
    ActionFlowError,
    EmailNotVerified,
    ErrorKind,
    FlowStateError,
    GatewayError,
    NoPendingUser,
    ProfileStoreError,
    ResendFailed,
)
from .links import ActionRequest, build_continue_url, parse_action_link
from .password_reset import PasswordResetController, validate_new_password
from .ports import (
    ActionCodeSettings,
    ActionMode,
    AppliedCode,
    GatewayErrorCode,
    IdentityGateway,
    Increment,
    Navigator,
    ProfileStore,
    VerificationStatus,
)
from .redirect import RedirectScheduler
from .resend import ResendController
from .session import PendingCredentialUser, Session
from .verification import VerificationFlow

__all__ = [
    "ActionCodeSettings",
    "ActionFlowError",
    "ActionMode",
    "ActionRequest",
    "AppliedCode",
    "EmailNotVerified",
    "ErrorKind",
    "FlowStateError",
    "GatewayError",
    "GatewayErrorCode",
    "IdentityGateway",
    "Increment",
    "Navigator",
    "NoPendingUser",
    "PasswordResetController",
    "PendingCredentialUser",
    "ProfileStore",
    "ProfileStoreError",
    "RedirectScheduler",
    "ResendController",
    "ResendFailed",
    "Session",
    "VerificationFlow",
    "VerificationStatus",
    "build_continue_url",
    "parse_action_link",
    "validate_new_password",
]
