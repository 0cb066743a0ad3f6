"""Blocking poll-until helper used for environment readiness barriers."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeVar

import click

from beandeploy.lib.errors import PollTimeoutError
from beandeploy.lib.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_POLL_DELAY = 3.0


def dot_progress(attempt: int) -> None:
    """Print a single progress dot without a newline."""
    click.echo(".", nl=False)


def poll_until(
    predicate: Callable[[T], bool],
    poll: Callable[[], T],
    delay: float = DEFAULT_POLL_DELAY,
    *,
    timeout: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    progress: Callable[[int], None] | None = dot_progress,
    operation: str = "poll",
) -> T:
    """Poll a function until its value matches a predicate.

    The loop sleeps ``delay`` seconds before every observation, including the
    first one, then reports progress and calls ``poll``. The first value for
    which ``predicate`` holds is returned.

    Exceptions raised by ``poll`` are not caught: a transport failure ends
    the wait instead of being retried.

    Args:
        predicate: Test applied to every observed value
        poll: Zero-argument callable producing a fresh observation
        delay: Seconds to sleep before each observation
        timeout: Optional deadline in seconds. ``None`` waits indefinitely.
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock used for the deadline
        progress: Called with the attempt number before each observation
        operation: Operation name reported in ``PollTimeoutError``

    Returns:
        The first observed value satisfying ``predicate``

    Raises:
        PollTimeoutError: If ``timeout`` is set and elapses before the
            predicate is satisfied
    """
    deadline = clock() + timeout if timeout is not None else None
    attempt = 0

    while True:
        sleep(delay)
        attempt += 1
        if progress is not None:
            progress(attempt)

        value = poll()
        if predicate(value):
            logger.debug(f"{operation}: condition met after {attempt} attempt(s)")
            return value

        if deadline is not None and clock() >= deadline:
            logger.debug(f"{operation}: deadline passed after {attempt} attempt(s)")
            raise PollTimeoutError(
                operation=operation,
                timeout=timeout or 0.0,
                last_value=value,
                attempts=attempt,
            )
