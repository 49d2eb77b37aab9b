from __future__ import annotations

import time
from typing import Any, Callable, Mapping

from loguru import logger

from .connection import Connection, RecordConverter
from .convert import DictRecordConverter
from .errors import ApplicationFailure, QueryExecutionFailed, RemoteQueryError, TransportFailure
from .reconnect import ReconnectPolicy, ensure_connected
from .types import QueryRequest, QueryTiming


class SyncQueryExecutor:
    """Run synchronous queries against an externally owned kdb+ connection.

    A dropped connection is reconnected before sending. A query is sent at most
    once per call; after a transport failure the connection is marked down
    and the caller decides whether to re-send.

    Example:
        ```python
        executor = SyncQueryExecutor(connection)
        result = executor.execute("til 5")
        ```
    """

    def __init__(
        self,
        connection: Connection,
        *,
        converter: RecordConverter | None = None,
        reconnect_policy: ReconnectPolicy | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Bind the executor to a connection it does not own.

        Example:
            ```python
            executor = SyncQueryExecutor(connection, reconnect_policy=ReconnectPolicy(mode="retry"))
            ```
        """
        self._connection = connection
        self._converter = converter or DictRecordConverter()
        self._reconnect_policy = reconnect_policy or ReconnectPolicy()
        self._clock = clock
        self.last_timing: QueryTiming | None = None

    @property
    def connection(self) -> Connection:
        """Return the connection this executor sends through.

        Example:
            ```python
            process = executor.connection.remote_process
            ```
        """
        return self._connection

    def execute(self, query: str, arguments: Mapping[str, Any] | None = None) -> Any:
        """Send ``query`` and return the raw result.

        Raises ``QueryExecutionFailed`` for both q errors and I/O faults. After
        an I/O fault the connection is disconnected so the next call
        reconnects. The query is not re-sent.

        Example:
            ```python
            rows = executor.execute("select from trade where sym=s", {"s": "AAPL"})
            ```
        """
        request = QueryRequest(query, arguments)
        connection = self._connection
        ensure_connected(connection, self._reconnect_policy)

        process = connection.remote_process
        started = self._clock()
        try:
            if request.arguments is None:
                logger.debug("Running synchronous query [ Process: {} ] [ Query: {} ]", process, query)
                result = connection.send_query(request.query)
            else:
                logger.debug(
                    "Running synchronous query [ Process: {} ] [ Query: {} ] [ Args: {} ]",
                    process,
                    query,
                    dict(request.arguments),
                )
                record = self._converter.to_native_record(request.arguments)
                result = connection.send_query(request.query, record)
            timing = QueryTiming(self._clock() - started)
        except RemoteQueryError as exc:
            logger.error(
                "Failed to execute synchronous query [ Process: {} ] [ Query: {} ]. Error - {}",
                process,
                query,
                exc.q_message,
            )
            raise QueryExecutionFailed(process, ApplicationFailure(exc.q_message)) from exc
        except OSError as exc:
            failure = TransportFailure(exc)
            logger.error(
                "Low level I/O error during synchronous query. Will reconnect on next query. "
                "[ Process: {} ] [ Query: {} ]. Error - {}",
                process,
                query,
                failure.message,
            )
            try:
                connection.disconnect()
            except OSError as close_exc:
                logger.warning(
                    "Error while closing broken connection [ Process: {} ]. Error - {}",
                    process,
                    close_exc,
                )
            raise QueryExecutionFailed(process, failure) from exc

        self.last_timing = timing
        logger.debug(
            "Query returned OK [ Process: {} ] [ Result: {} ] [ Query Time: {} ]",
            process,
            result,
            timing,
        )
        return result

    def query(self, query: str, arguments: Mapping[str, Any] | None = None) -> Any:
        """Alias of ``execute``.

        Example:
            ```python
            total = executor.query("sum 1 2 3")
            ```
        """
        return self.execute(query, arguments)
