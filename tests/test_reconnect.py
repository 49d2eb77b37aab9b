from __future__ import annotations

import pytest

from kdb_query import ReconnectPolicy, RemoteProcess, SyncQueryExecutor, TargetProcessUnavailable
from kdb_query.reconnect import backoff_delays, ensure_connected


class _FlakyConnection:
    def __init__(self, succeed_on: int | None, *, raise_on_failure: bool = True) -> None:
        self.succeed_on = succeed_on
        self.raise_on_failure = raise_on_failure
        self.attempts = 0
        self.live = False
        self.sent: list[str] = []

    @property
    def remote_process(self):
        return RemoteProcess("hdb.local", 5012)

    def is_connected(self) -> bool:
        return self.live

    def reconnect(self) -> None:
        self.attempts += 1
        if self.succeed_on is not None and self.attempts >= self.succeed_on:
            self.live = True
            return
        if self.raise_on_failure:
            raise ConnectionRefusedError(111, "Connection refused")

    def disconnect(self) -> None:
        self.live = False

    def send_query(self, query, record=None):
        self.sent.append(query)
        return "ok"


def test_policy_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError, match="mode"):
        ReconnectPolicy(mode="forever")


def test_policy_rejects_zero_attempts() -> None:
    with pytest.raises(ValueError, match="max_attempts"):
        ReconnectPolicy(mode="retry", max_attempts=0)


def test_backoff_doubles_and_caps() -> None:
    policy = ReconnectPolicy(mode="retry", max_attempts=5, backoff_seconds=1.0, max_backoff_seconds=5.0)
    assert backoff_delays(policy) == [1.0, 2.0, 4.0, 5.0]


def test_live_connection_is_left_alone(make_connection) -> None:
    connection = make_connection(live=True)
    ensure_connected(connection, ReconnectPolicy(mode="fail-fast"))
    assert connection.calls == []


def test_block_mode_propagates_reconnect_error() -> None:
    connection = _FlakyConnection(succeed_on=None)
    with pytest.raises(ConnectionRefusedError):
        ensure_connected(connection, ReconnectPolicy())
    assert connection.attempts == 1


def test_retry_mode_recovers_with_backoff() -> None:
    connection = _FlakyConnection(succeed_on=3)
    sleeps: list[float] = []
    policy = ReconnectPolicy(mode="retry", max_attempts=5, backoff_seconds=0.5)

    ensure_connected(connection, policy, sleep=sleeps.append)

    assert connection.is_connected() is True
    assert connection.attempts == 3
    assert sleeps == [0.5, 1.0]


def test_retry_mode_counts_silent_failures() -> None:
    connection = _FlakyConnection(succeed_on=None, raise_on_failure=False)
    sleeps: list[float] = []
    policy = ReconnectPolicy(mode="retry", max_attempts=3, backoff_seconds=0.1)

    with pytest.raises(TargetProcessUnavailable, match="3 reconnect attempt"):
        ensure_connected(connection, policy, sleep=sleeps.append)
    assert connection.attempts == 3
    assert len(sleeps) == 2


def test_retry_exhaustion_fails_executor_without_sending() -> None:
    connection = _FlakyConnection(succeed_on=None)
    executor = SyncQueryExecutor(
        connection,
        reconnect_policy=ReconnectPolicy(mode="retry", max_attempts=2, backoff_seconds=0),
    )

    with pytest.raises(TargetProcessUnavailable) as info:
        executor.execute("til 5")
    assert str(info.value.process) == "hdb.local:5012"
    assert connection.sent == []


def test_fail_fast_never_reconnects() -> None:
    connection = _FlakyConnection(succeed_on=1)
    executor = SyncQueryExecutor(connection, reconnect_policy=ReconnectPolicy(mode="fail-fast"))

    with pytest.raises(TargetProcessUnavailable, match="reconnect is disabled"):
        executor.execute("til 5")
    assert connection.attempts == 0
    assert connection.sent == []
