from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from .connection import Connection
from .errors import TargetProcessUnavailable

RECONNECT_MODES = {"block", "retry", "fail-fast"}


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    """How a dropped connection is brought back before a query is sent.

    ``block`` waits on one ``reconnect()`` call with no timeout. ``retry``
    makes bounded attempts with exponential backoff. ``fail-fast`` never
    reconnects.

    Example:
        ```python
        policy = ReconnectPolicy(mode="retry", max_attempts=3, backoff_seconds=0.25)
        ```
    """

    mode: str = "block"
    max_attempts: int = 5
    backoff_seconds: float = 0.5
    max_backoff_seconds: float = 10.0

    def __post_init__(self) -> None:
        """Validate mode and retry bounds.

        Example:
            ```python
            ReconnectPolicy(mode="block")
            ```
        """
        if self.mode not in RECONNECT_MODES:
            raise ValueError("mode must be 'block', 'retry' or 'fail-fast'")
        if self.max_attempts < 1:
            raise ValueError("'max_attempts' must be at least 1")
        if self.backoff_seconds < 0 or self.max_backoff_seconds < 0:
            raise ValueError("backoff values must not be negative")


def backoff_delays(policy: ReconnectPolicy) -> list[float]:
    """Return the sleeps taken between ``retry`` attempts.

    Example:
        ```python
        assert backoff_delays(ReconnectPolicy(mode="retry", max_attempts=3, backoff_seconds=1)) == [1, 2]
        ```
    """
    return [
        min(policy.backoff_seconds * (2**attempt), policy.max_backoff_seconds)
        for attempt in range(policy.max_attempts - 1)
    ]


def ensure_connected(
    connection: Connection,
    policy: ReconnectPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Make sure ``connection`` is live, reconnecting according to ``policy``.

    Under ``block`` whatever ``reconnect()`` raises propagates unchanged.

    Example:
        ```python
        ensure_connected(connection, ReconnectPolicy())
        ```
    """
    if connection.is_connected():
        return

    process = connection.remote_process
    if policy.mode == "fail-fast":
        raise TargetProcessUnavailable(process, "connection is down and reconnect is disabled")

    logger.warning(
        "Underlying connection to the kdb+ process ({}) has disconnected. Attempting to reconnect.",
        process,
    )
    if policy.mode == "block":
        logger.warning("Query (and calling thread) will be pending until the process reconnects.")
        connection.reconnect()
        return

    delays = backoff_delays(policy)
    for attempt in range(1, policy.max_attempts + 1):
        try:
            connection.reconnect()
        except OSError as exc:
            logger.warning(
                "Reconnect attempt {}/{} to {} failed: {}",
                attempt,
                policy.max_attempts,
                process,
                exc,
            )
        else:
            if connection.is_connected():
                logger.info("Reconnected to {} after {} attempt(s)", process, attempt)
                return
            logger.warning(
                "Reconnect attempt {}/{} to {} returned without a live connection",
                attempt,
                policy.max_attempts,
                process,
            )
        if attempt <= len(delays):
            sleep(delays[attempt - 1])

    raise TargetProcessUnavailable(process, f"gave up after {policy.max_attempts} reconnect attempt(s)")
