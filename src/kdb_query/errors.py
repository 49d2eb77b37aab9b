from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import RemoteProcess


class KdbQueryError(Exception):
    """Base exception for all kdb-query errors."""


class SettingsError(KdbQueryError, ValueError):
    """Invalid client configuration."""


class RemoteQueryError(KdbQueryError):
    """Error reported by the remote kdb+ process while evaluating a query.

    Connections raise this for q-level errors (``'type``, ``'length``, parse
    errors). Low-level I/O faults are raised as ``OSError`` instead.
    """

    def __init__(self, message: str) -> None:
        """Store the q error text.

        Example:
            ```python
            raise RemoteQueryError("type")
            ```
        """
        self.q_message = message
        super().__init__(f"q error: {message}")


@dataclass(frozen=True, slots=True)
class ApplicationFailure:
    """The remote process understood the query but reported an error.

    Example:
        ```python
        failure = ApplicationFailure("type")
        ```
    """

    message: str

    @property
    def kind(self) -> str:
        """Return the failure tag.

        Example:
            ```python
            assert ApplicationFailure("type").kind == "application"
            ```
        """
        return "application"

    @property
    def is_transport(self) -> bool:
        """Return whether the connection was lost.

        Example:
            ```python
            assert ApplicationFailure("type").is_transport is False
            ```
        """
        return False


@dataclass(frozen=True, slots=True)
class TransportFailure:
    """A low-level I/O fault occurred while sending or receiving.

    Example:
        ```python
        failure = TransportFailure(BrokenPipeError(32, "Broken pipe"))
        ```
    """

    cause: OSError

    @property
    def kind(self) -> str:
        """Return the failure tag.

        Example:
            ```python
            assert TransportFailure(OSError()).kind == "transport"
            ```
        """
        return "transport"

    @property
    def message(self) -> str:
        """Return the I/O error text, falling back to the exception type name.

        Example:
            ```python
            text = TransportFailure(ConnectionResetError(104, "reset")).message
            ```
        """
        return str(self.cause) or type(self.cause).__name__

    @property
    def is_transport(self) -> bool:
        """Return whether the connection was lost.

        Example:
            ```python
            assert TransportFailure(OSError()).is_transport is True
            ```
        """
        return True


QueryFailure = ApplicationFailure | TransportFailure


class QueryExecutionFailed(KdbQueryError):
    """Uniform error raised when a query could not be executed.

    Inspect ``failure`` (or ``is_transport``) to decide whether re-sending the
    query makes sense. The underlying exception is chained as ``__cause__``.
    """

    def __init__(self, process: RemoteProcess, failure: QueryFailure) -> None:
        """Bind the remote process identity and the classified cause.

        Example:
            ```python
            err = QueryExecutionFailed(RemoteProcess("localhost", 5000), ApplicationFailure("type"))
            ```
        """
        self.process = process
        self.failure = failure
        super().__init__(f"Query failed on {process} ({failure.kind}): {failure.message}")

    @property
    def is_transport(self) -> bool:
        """Return whether the failure was a transport-level fault.

        Example:
            ```python
            if err.is_transport:
                resend()
            ```
        """
        return self.failure.is_transport


class TargetProcessUnavailable(KdbQueryError):
    """No live connection to the remote process could be obtained."""

    def __init__(self, process: RemoteProcess, reason: str) -> None:
        """Bind the remote process identity and the reason.

        Example:
            ```python
            err = TargetProcessUnavailable(RemoteProcess("localhost", 5000), "gave up after 3 attempts")
            ```
        """
        self.process = process
        self.reason = reason
        super().__init__(f"kdb+ process {process} unavailable: {reason}")
