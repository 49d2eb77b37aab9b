from __future__ import annotations

from typing import Any, Callable

import pytest
from loguru import logger

from kdb_query import NativeRecord, RemoteProcess, RemoteQueryError


class FakeConnection:
    def __init__(
        self,
        *,
        live: bool = True,
        results: dict[str, Any] | None = None,
        q_errors: dict[str, str] | None = None,
        io_errors: dict[str, OSError] | None = None,
    ) -> None:
        self.live = live
        self.results = results or {}
        self.q_errors = q_errors or {}
        self.io_errors = io_errors or {}
        self.calls: list[tuple[Any, ...]] = []

    @property
    def remote_process(self) -> RemoteProcess:
        return RemoteProcess("localhost", 5000)

    def is_connected(self) -> bool:
        return self.live

    def reconnect(self) -> None:
        self.calls.append(("reconnect",))
        self.live = True

    def disconnect(self) -> None:
        self.calls.append(("disconnect",))
        self.live = False

    def send_query(self, query: str, record: NativeRecord | None = None) -> Any:
        self.calls.append(("send", query, record) if record is not None else ("send", query))
        if query in self.q_errors:
            raise RemoteQueryError(self.q_errors[query])
        if query in self.io_errors:
            raise self.io_errors[query]
        return self.results.get(query)

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture
def make_connection() -> Callable[..., FakeConnection]:
    return FakeConnection


@pytest.fixture
def log_messages() -> list[str]:
    messages: list[str] = []
    sink_id = logger.add(lambda msg: messages.append(msg.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)
