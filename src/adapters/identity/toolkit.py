"""
Identity Toolkit gateway adapter - Implements IdentityGateway protocol.

Talks to the Google Identity Toolkit REST API (the backend of Firebase
Authentication) with aiohttp. Provider error messages are translated into
GatewayErrorCode values here, so the domain never sees HTTP details.

Endpoints used:
- accounts:update        apply an email-verification oobCode
- accounts:resetPassword consume a password-reset oobCode
- accounts:lookup        reload the signed-in user from an ID token
- accounts:sendOobCode   (re-)send a verification email
"""

import logging
from typing import Any

import aiohttp

from src.domain.exceptions import GatewayError
from src.domain.ports import ActionCodeSettings, AppliedCode, GatewayErrorCode
from src.domain.session import PendingCredentialUser, Session

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://identitytoolkit.googleapis.com/v1"

_ERROR_CODES = {
    "INVALID_OOB_CODE": GatewayErrorCode.INVALID_CODE,
    "EXPIRED_OOB_CODE": GatewayErrorCode.EXPIRED_CODE,
    "WEAK_PASSWORD": GatewayErrorCode.WEAK_PASSWORD,
}


def map_provider_error(message: str) -> GatewayErrorCode:
    """
    Map an Identity Toolkit error message to a GatewayErrorCode.

    Messages look like ``INVALID_OOB_CODE`` or
    ``WEAK_PASSWORD : Password should be at least 6 characters``.
    """
    token = message.split(":", 1)[0].strip().upper()
    return _ERROR_CODES.get(token, GatewayErrorCode.OTHER)


class IdentityToolkitGateway:
    """
    Implements IdentityGateway protocol via the Identity Toolkit REST API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The aiohttp ClientSession is owned by the caller (created in the app
    lifespan) and shared across requests.
    """

    def __init__(
        self,
        http: aiohttp.ClientSession,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    async def apply_verification_code(self, code: str) -> AppliedCode:
        data = await self._post("accounts:update", {"oobCode": code})
        return AppliedCode(email=data.get("email", ""), uid=data.get("localId"))

    async def confirm_password_reset(self, code: str, new_password: str) -> None:
        await self._post("accounts:resetPassword", {"oobCode": code, "newPassword": new_password})

    async def reload_user(self, session: Session) -> PendingCredentialUser:
        data = await self._post("accounts:lookup", {"idToken": session.id_token})
        users = data.get("users") or []
        if not users:
            raise GatewayError(GatewayErrorCode.OTHER, "USER_NOT_FOUND")
        user = users[0]
        if not user.get("localId"):
            raise GatewayError(GatewayErrorCode.OTHER, "USER_NOT_FOUND")
        return PendingCredentialUser(
            uid=user["localId"],
            email=user.get("email", ""),
            display_name=user.get("displayName", ""),
            email_verified=bool(user.get("emailVerified", False)),
        )

    async def send_verification_email(
        self, session: Session, settings: ActionCodeSettings | None = None
    ) -> None:
        payload: dict[str, Any] = {"requestType": "VERIFY_EMAIL", "idToken": session.id_token}
        if settings is not None:
            payload["continueUrl"] = settings.url
            payload["canHandleCodeInApp"] = settings.handle_code_in_app
        await self._post("accounts:sendOobCode", payload)

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """
        POST to an Identity Toolkit endpoint and return the decoded body.

        Raises:
            GatewayError: provider rejected the request or was unreachable
        """
        url = f"{self._base_url}/{endpoint}"
        try:
            async with self._http.post(url, params={"key": self._api_key}, json=payload) as response:
                body = await response.json(content_type=None)
                status = response.status
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error("Identity provider unreachable on %s: %s", endpoint, e)
            raise GatewayError(GatewayErrorCode.OTHER, "provider unavailable") from e
        except ValueError as e:
            raise GatewayError(GatewayErrorCode.OTHER, "invalid provider response") from e

        if status >= 400:
            error = (body or {}).get("error", {}) if isinstance(body, dict) else {}
            message = str(error.get("message") or error.get("status") or status)
            logger.warning("Identity provider %s failed (%s): %s", endpoint, status, message)
            raise GatewayError(map_provider_error(message), message)

        return body if isinstance(body, dict) else {}
