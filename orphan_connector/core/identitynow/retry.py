"""Bounded exponential-backoff retry for outbound IdentityNow calls."""
from __future__ import annotations
import logging
import random
import time
from typing import Callable, TypeVar

from .exceptions import TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 5
BASE_DELAY_SECONDS = 2.0
JITTER_RATIO = 0.2


class RetryPolicy:
    """Retry a call on TransientError with exponential backoff.

    The delay before retry ``n`` (1-based) is ``base_delay * 2**n`` plus up to
    ``jitter`` of that value. After ``max_retries`` retries the last error is
    re-raised as-is. Any other exception propagates on the first attempt.

    Usage:
        policy = RetryPolicy()
        response = policy.call(lambda: session.get(url), description=url)
    """

    def __init__(
        self,
        max_retries: int = MAX_RETRIES,
        base_delay: float = BASE_DELAY_SECONDS,
        jitter: float = JITTER_RATIO,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.jitter = jitter
        self._sleep = sleep

    def delay_for(self, retry_number: int) -> float:
        """Return the backoff delay in seconds before the given retry."""
        delay = self.base_delay * (2 ** retry_number)
        if self.jitter:
            delay += delay * self.jitter * random.random()
        return delay

    def call(self, fn: Callable[[], T], description: str = "") -> T:
        """Invoke fn, retrying transient failures up to max_retries times."""
        retry_number = 0
        while True:
            try:
                return fn()
            except TransientError as exc:
                if retry_number >= self.max_retries:
                    raise
                retry_number += 1
                logger.debug(
                    "Retrying API [%s] due to request error: [%s]. Retry number [%d]",
                    description or exc.endpoint,
                    exc,
                    retry_number,
                )
                logger.error(exc)
                self._sleep(self.delay_for(retry_number))

