"""Fixed pause after model calls to stay under the API rate limit."""

from __future__ import annotations

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class CallThrottle:
    """Sleeps a fixed delay after each successful model call.

    A delay of 0 disables the pause (tests, --no-delay).
    """

    def __init__(self, delay_seconds: float, sleep: Callable[[float], None] = time.sleep) -> None:
        self.delay_seconds = max(0.0, delay_seconds)
        self._sleep = sleep
        self.pauses = 0

    def pause(self) -> None:
        if self.delay_seconds <= 0:
            return
        self.pauses += 1
        logger.debug(f"Throttling {self.delay_seconds:.1f}s after model call")
        self._sleep(self.delay_seconds)
