from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class RemoteProcess:
    """Identity of a remote kdb+ process, used for diagnostics and error context.

    Example:
        ```python
        process = RemoteProcess("tickerplant.local", 5010)
        ```
    """

    host: str
    port: int

    def __post_init__(self) -> None:
        """Validate host and port after dataclass initialization.

        Example:
            ```python
            RemoteProcess("localhost", 5000)
            ```
        """
        if not self.host.strip():
            raise ValueError("RemoteProcess requires a non-empty 'host'")
        if not 0 < int(self.port) < 65536:
            raise ValueError(f"'port' must be between 1 and 65535, got {self.port}")

    def __str__(self) -> str:
        """Render as ``host:port``.

        Example:
            ```python
            assert str(RemoteProcess("localhost", 5000)) == "localhost:5000"
            ```
        """
        return f"{self.host}:{self.port}"

    @classmethod
    def parse(cls, value: str) -> "RemoteProcess":
        """Create a process identity from a ``host:port`` string.

        Example:
            ```python
            process = RemoteProcess.parse("rdb.local:5011")
            ```
        """
        host, sep, port = value.strip().rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"Expected 'host:port', got {value!r}")
        return cls(host=host, port=int(port))


@dataclass(frozen=True, slots=True)
class QueryRequest:
    """One query with its optional arguments, built per call.

    The argument mapping is copied into a read-only view so the caller's
    dictionary is never touched. Only ``None`` means no arguments; an empty
    mapping is still sent as an (empty) record.

    Example:
        ```python
        request = QueryRequest("select from trade where sym=s", {"s": "AAPL"})
        ```
    """

    query: str
    arguments: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        """Validate the query and freeze the arguments.

        Example:
            ```python
            QueryRequest("til 5")
            ```
        """
        if not isinstance(self.query, str):
            raise TypeError(f"query must be a string, got {type(self.query).__name__}")
        if self.arguments is None:
            return
        if not isinstance(self.arguments, Mapping):
            raise TypeError("arguments must be a mapping of parameter name to value")
        object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))

    @property
    def has_arguments(self) -> bool:
        """Return whether the query+record send path applies.

        Example:
            ```python
            assert QueryRequest("2+2").has_arguments is False
            ```
        """
        return self.arguments is not None


@dataclass(frozen=True, slots=True)
class QueryTiming:
    """Elapsed time of one successful transport call.

    Example:
        ```python
        timing = QueryTiming(elapsed_seconds=0.0042)
        ```
    """

    elapsed_seconds: float

    @property
    def elapsed_ms(self) -> float:
        """Return the elapsed time in milliseconds.

        Example:
            ```python
            assert QueryTiming(0.5).elapsed_ms == 500.0
            ```
        """
        return self.elapsed_seconds * 1000.0

    def __str__(self) -> str:
        """Render the elapsed time for log lines.

        Example:
            ```python
            assert str(QueryTiming(0.0015)) == "1.500 ms"
            ```
        """
        return f"{self.elapsed_ms:.3f} ms"


@dataclass(frozen=True, slots=True)
class NativeRecord:
    """Key/value record sent alongside a query, in kdb+ dictionary form.

    Example:
        ```python
        record = NativeRecord(keys=("sym", "size"), values=("AAPL", 100))
        ```
    """

    keys: tuple[str, ...] = field(default_factory=tuple)
    values: tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Check that keys and values line up.

        Example:
            ```python
            NativeRecord(("a",), (1,))
            ```
        """
        if len(self.keys) != len(self.values):
            raise ValueError("NativeRecord keys and values must have the same length")

    def __len__(self) -> int:
        """Return the number of entries.

        Example:
            ```python
            assert len(NativeRecord(("a",), (1,))) == 1
            ```
        """
        return len(self.keys)
