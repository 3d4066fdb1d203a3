"""
Profile sync - best-effort cache of the provider's verification state.

The identity provider's verified flag is authoritative. The profile record
only mirrors it, so a failed write is logged and swallowed; the record is
repaired the next time any flow writes it.
"""

import logging
from datetime import datetime, timezone

from .exceptions import ProfileStoreError
from .ports import ProfileStore

logger = logging.getLogger(__name__)

EMAIL_LINK_METHOD = "email_link"
MANUAL_CHECK_METHOD = "manual_check"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def record_email_verified(store: ProfileStore, uid: str, method: str) -> bool:
    """
    Merge the verified flag, timestamp and method into the profile of ``uid``.

    Returns:
        True if the write succeeded, False if it failed and was swallowed
    """
    fields = {
        "email_verified": True,
        "email_verified_at": utcnow(),
        "verification_method": method,
    }
    try:
        await store.merge_update(uid, fields)
    except ProfileStoreError as e:
        logger.error("Profile sync failed for uid=%s: %s", uid, e)
        return False
    logger.info("Profile marked verified for uid=%s via %s", uid, method)
    return True
