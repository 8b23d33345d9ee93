"""
Translates SIGINT/SIGTERM into a single graceful-shutdown event.
"""

import asyncio
import logging
import signal
from typing import Any, Dict, Optional

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownCoordinator:
    """Observes termination signals and exposes them as an awaitable event."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._event = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._installed: Dict[int, Any] = {}
        self.reason: Optional[str] = None

    def install(self):
        """Register handlers for the shutdown signals on the running loop."""
        self._loop = asyncio.get_running_loop()
        for signum in SHUTDOWN_SIGNALS:
            try:
                self._loop.add_signal_handler(signum, self._handle_signal, signum)
                self._installed[signum] = None
            except (NotImplementedError, RuntimeError):
                # add_signal_handler is unavailable on some platforms
                self._installed[signum] = signal.signal(signum, self._handle_signal_threadsafe)

    def uninstall(self):
        """Restore the handlers that were active before install()."""
        for signum, previous in self._installed.items():
            if previous is None:
                self._loop.remove_signal_handler(signum)
            else:
                signal.signal(signum, previous)
        self._installed.clear()

    def _handle_signal(self, signum: int):
        self.request(f"received signal {signal.Signals(signum).name}")

    def _handle_signal_threadsafe(self, signum, frame):
        self._loop.call_soon_threadsafe(self._handle_signal, signum)

    def request(self, reason: str = "requested"):
        """Trigger shutdown. Later requests are ignored."""
        if self._event.is_set():
            return
        self.reason = reason
        self.logger.info(f"Shutdown {reason}, saving state...")
        self._event.set()

    @property
    def requested(self) -> bool:
        return self._event.is_set()

    async def wait(self):
        await self._event.wait()
