from __future__ import annotations

from typing import Any, Mapping, Protocol

from .types import NativeRecord, RemoteProcess


class Connection(Protocol):
    """Long-lived link to a remote kdb+ process.

    Owned by the caller. ``send_query`` raises ``RemoteQueryError`` when the
    process reports a q error and ``OSError`` on low-level I/O faults.
    """

    @property
    def remote_process(self) -> RemoteProcess:
        """Return the identity of the process this connection targets.

        Example:
            ```python
            print(connection.remote_process)
            ```
        """
        ...

    def is_connected(self) -> bool:
        """Return whether the underlying transport is live.

        Example:
            ```python
            if not connection.is_connected():
                connection.reconnect()
            ```
        """
        ...

    def reconnect(self) -> None:
        """Re-establish the transport, blocking until the process is reachable.

        Example:
            ```python
            connection.reconnect()
            ```
        """
        ...

    def disconnect(self) -> None:
        """Close or abandon the transport so the next liveness check is false.

        Example:
            ```python
            connection.disconnect()
            ```
        """
        ...

    def send_query(self, query: str, record: NativeRecord | None = None) -> Any:
        """Send a query (with an optional argument record) and wait for the reply.

        Example:
            ```python
            result = connection.send_query("til 5")
            ```
        """
        ...


class RecordConverter(Protocol):
    def to_native_record(self, arguments: Mapping[str, Any]) -> NativeRecord:
        """Convert an argument mapping into the transport's native record.

        Example:
            ```python
            record = converter.to_native_record({"sym": "AAPL"})
            ```
        """
        ...
