"""
Request throttling for the log service.

Limits how many append requests are issued per wall-clock second.
"""

import math
import time
from typing import Callable, Dict, Optional

from logshipper.utils.logging import get_logger

logger = get_logger(__name__)

# Requests per second the service accepts per stream.
RPS_LIMIT = 5


class RateLimiter:
    """
    Fixed-window request limiter.

    Each whole second of wall-clock time gets a budget of
    ``requests_per_second`` acquisitions. When the budget is spent the
    caller is blocked until the next second starts. Bursts across a
    window boundary are allowed.
    """

    def __init__(
        self,
        requests_per_second: int = RPS_LIMIT,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize rate limiter.

        Args:
            requests_per_second: Requests allowed per whole second
            clock: Returns current time in seconds (defaults to time.time)
            sleep: Blocks for the given seconds (defaults to time.sleep)
        """
        if requests_per_second < 1:
            raise ValueError("requests_per_second must be at least 1")

        self.requests_per_second = requests_per_second
        self._clock = clock or time.time
        self._sleep = sleep or time.sleep

        self.remaining_requests = requests_per_second
        self.window_start = self._clock()

        # Statistics
        self.total_acquired = 0
        self.total_waits = 0
        self.total_wait_time_ms = 0

        logger.debug(
            "RateLimiter initialized",
            requests_per_second=requests_per_second,
        )

    def acquire(self) -> None:
        """
        Take one request from the current second's budget.

        Blocks until the next second boundary when the budget is spent.
        """
        now = self._clock()
        same_second = math.floor(now) == math.floor(self.window_start)

        if same_second and self.remaining_requests > 0:
            self.remaining_requests -= 1
        elif same_second:
            wait = math.floor(now) + 1 - now
            self._sleep(wait)

            self.total_waits += 1
            self.total_wait_time_ms += int(wait * 1000)

            logger.debug(
                "Request budget exhausted, waited for next window",
                wait_ms=int(wait * 1000),
            )

            now = self._clock()
            self.remaining_requests = self.requests_per_second - 1
        else:
            self.remaining_requests = self.requests_per_second - 1

        self.window_start = now
        self.total_acquired += 1

    def get_stats(self) -> Dict:
        """
        Get throttling statistics.

        Returns:
            Statistics dict
        """
        return {
            "requests_per_second": self.requests_per_second,
            "remaining_requests": self.remaining_requests,
            "total_acquired": self.total_acquired,
            "total_waits": self.total_waits,
            "total_wait_time_ms": self.total_wait_time_ms,
        }
