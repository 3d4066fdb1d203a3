"""
Action link parsing - turns an inbound query string into an ActionRequest.

The provider's links carry ``mode``, ``oobCode`` and an optional
``continueUrl``. The continue URL is the redirect target we asked the provider
to embed when the email was sent; its own query string carries ``email`` and
``name`` hints for display. Hints are never used for authorization.
"""

import logging
from dataclasses import dataclass
from urllib.parse import parse_qs, unquote, urlencode, urlsplit

from .ports import ActionMode

logger = logging.getLogger(__name__)

_MODES = {mode.value: mode for mode in (ActionMode.VERIFY_EMAIL, ActionMode.RESET_PASSWORD)}


@dataclass(frozen=True)
class ActionRequest:
    """Structured description of one inbound action link."""

    mode: ActionMode
    action_code: str = ""
    email: str = ""
    display_name: str = ""
    raw_mode: str = ""

    @property
    def is_actionable(self) -> bool:
        return bool(self.action_code) and self.mode != ActionMode.UNKNOWN

    @property
    def code_prefix(self) -> str:
        """Loggable prefix of the action code."""
        return f"{self.action_code[:8]}..." if self.action_code else "<none>"


def _first(params: dict[str, list[str]], name: str) -> str:
    values = params.get(name)
    return values[0].strip() if values else ""


def _continue_url_hints(continue_url: str) -> dict[str, list[str]]:
    """Parse the query string nested inside a continue URL."""
    try:
        decoded = unquote(continue_url)
        return parse_qs(urlsplit(decoded).query)
    except ValueError:
        logger.warning("Ignoring unparseable continueUrl")
        return {}


def parse_action_link(query_string: str) -> ActionRequest:
    """
    Decode an inbound link's query string.

    Never raises: a missing code yields an empty ``action_code`` and an
    unsupported or missing mode yields ``ActionMode.UNKNOWN``.

    Args:
        query_string: Raw query string, with or without the leading ``?``

    Returns:
        ActionRequest for the link
    """
    params = parse_qs(query_string.lstrip("?"), keep_blank_values=True)

    raw_mode = _first(params, "mode")
    email = _first(params, "email")
    name = _first(params, "name")

    continue_url = _first(params, "continueUrl")
    if continue_url:
        hints = _continue_url_hints(continue_url)
        email = _first(hints, "email") or email
        name = _first(hints, "name") or name

    return ActionRequest(
        mode=_MODES.get(raw_mode, ActionMode.UNKNOWN),
        action_code=_first(params, "oobCode"),
        email=email,
        display_name=name,
        raw_mode=raw_mode,
    )


def build_continue_url(origin: str, path: str, email: str, name: str = "") -> str:
    """
    Build the redirect target embedded in a verification email.

    ``parse_action_link`` recovers ``email`` and ``name`` from it when the
    user follows the link.
    """
    query = urlencode({"email": email, "name": name})
    return f"{origin.rstrip('/')}{path}?{query}"
