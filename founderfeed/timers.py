import asyncio
from typing import Callable, Optional


class DebounceTimer:
    """
    Restartable one-shot timer on the running asyncio loop.

    ``start`` (re)arms the timer, so a burst of calls fires the callback once,
    ``delay`` seconds after the last call. ``cancel`` disarms it; call it on
    teardown so nothing fires after disposal.
    """

    def __init__(self, delay: float):
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self, callback: Callable[[], None]):
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, callback)

    reset = start

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, callback: Callable[[], None]):
        self._handle = None
        callback()
