"""
Auto-redirect scheduler - one deferred, cancellable navigation.

After a successful email verification the user is sent on after a short
countdown unless they continue manually first. Whichever happens first wins;
navigation is performed at most once per scheduler.
"""

import asyncio
import logging

from .ports import Navigator

logger = logging.getLogger(__name__)


class RedirectScheduler:
    """Single countdown that ends in exactly one navigation."""

    def __init__(self, navigator: Navigator) -> None:
        self._navigator = navigator
        self._handle: asyncio.TimerHandle | None = None
        self._target: str | None = None
        self._deadline: float | None = None
        self._navigated = False
        self._closed = False

    @property
    def navigated(self) -> bool:
        return self._navigated

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def target(self) -> str | None:
        return self._target

    @property
    def remaining_seconds(self) -> int:
        """Whole seconds left on the countdown, 0 when none is running."""
        if self._handle is None or self._deadline is None:
            return 0
        remaining = self._deadline - asyncio.get_running_loop().time()
        return max(0, int(remaining + 0.999))

    def schedule(self, target: str, delay: float) -> None:
        """
        Start the countdown on the running event loop.

        Ignored if a countdown is already running or navigation already
        happened.
        """
        if self._closed or self._navigated or self._handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._target = target
        self._deadline = loop.time() + delay
        self._handle = loop.call_later(delay, self._fire)
        logger.info("Redirect to %s scheduled in %.1fs", target, delay)

    def navigate_now(self, target: str) -> None:
        """Navigate immediately, cancelling any pending countdown."""
        self._target = target
        self._go()

    def continue_now(self) -> bool:
        """
        Manual continuation: cancel the countdown and navigate at once.

        Returns:
            True if this call navigated, False if nothing was pending
        """
        if self._target is None or self._navigated or self._closed:
            return False
        self._go()
        return True

    def close(self) -> None:
        """Tear down without navigating."""
        self._cancel_timer()
        self._closed = True

    def _fire(self) -> None:
        self._handle = None
        self._go()

    def _go(self) -> None:
        if self._navigated or self._closed or self._target is None:
            return
        self._cancel_timer()
        self._navigated = True
        logger.info("Navigating to %s", self._target)
        self._navigator.navigate(self._target)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._deadline = None
