"""
Session context - explicit identity handle passed to controllers.

Holds the provider credential of the signed-in user and, while a freshly
created account is waiting for email verification, the pending user.
"""

from dataclasses import dataclass


@dataclass
class PendingCredentialUser:
    """Just-created (or signed-in) account that may not be verified yet."""

    uid: str
    email: str
    display_name: str = ""
    email_verified: bool = False


@dataclass
class Session:
    """Current authenticated identity for one flow instance."""

    id_token: str
    pending_user: PendingCredentialUser | None = None

    @property
    def uid(self) -> str | None:
        return self.pending_user.uid if self.pending_user else None

    def discard_pending_user(self) -> None:
        """Forget the pending user once it is verified."""
        self.pending_user = None
