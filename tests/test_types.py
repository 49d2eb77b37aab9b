from __future__ import annotations

import pytest

from kdb_query import (
    ApplicationFailure,
    DictRecordConverter,
    NativeRecord,
    QueryExecutionFailed,
    QueryRequest,
    QueryTiming,
    RemoteProcess,
    RemoteQueryError,
    TransportFailure,
)


def test_remote_process_renders_host_port() -> None:
    assert str(RemoteProcess("tp.local", 5010)) == "tp.local:5010"


def test_remote_process_parse() -> None:
    assert RemoteProcess.parse("rdb.local:5011") == RemoteProcess("rdb.local", 5011)


@pytest.mark.parametrize("value", ["rdb.local", "rdb.local:abc", ":5000"])
def test_remote_process_parse_rejects_garbage(value: str) -> None:
    with pytest.raises(ValueError):
        RemoteProcess.parse(value)


def test_remote_process_rejects_bad_port() -> None:
    with pytest.raises(ValueError, match="port"):
        RemoteProcess("localhost", 70000)


def test_request_freezes_copy_of_arguments() -> None:
    arguments = {"sym": "AAPL"}
    request = QueryRequest("select from trade where sym=sym", arguments)
    arguments["sym"] = "MSFT"

    assert request.arguments == {"sym": "AAPL"}
    with pytest.raises(TypeError):
        request.arguments["sym"] = "IBM"  # type: ignore[index]


def test_empty_arguments_still_count_as_arguments() -> None:
    assert QueryRequest("til 5").has_arguments is False
    assert QueryRequest("til 5", {}).has_arguments is True
    assert QueryRequest("til 5", {}).arguments == {}
    assert QueryRequest("til 5", {"x": 1}).has_arguments is True


def test_request_rejects_non_mapping_arguments() -> None:
    with pytest.raises(TypeError, match="mapping"):
        QueryRequest("f", [("x", 1)])  # type: ignore[arg-type]


def test_timing_renders_milliseconds() -> None:
    assert str(QueryTiming(0.0015)) == "1.500 ms"


def test_record_requires_matching_lengths() -> None:
    with pytest.raises(ValueError):
        NativeRecord(("a", "b"), (1,))


def test_converter_rejects_non_symbol_keys() -> None:
    converter = DictRecordConverter()
    with pytest.raises(TypeError):
        converter.to_native_record({1: "x"})  # type: ignore[dict-item]
    with pytest.raises(ValueError):
        converter.to_native_record({"": "x"})


def test_remote_query_error_keeps_q_message() -> None:
    err = RemoteQueryError("length")
    assert err.q_message == "length"
    assert str(err) == "q error: length"


def test_failure_variants_are_tagged() -> None:
    app = ApplicationFailure("type")
    io = TransportFailure(ConnectionResetError(104, "Connection reset by peer"))

    assert (app.kind, app.is_transport) == ("application", False)
    assert (io.kind, io.is_transport) == ("transport", True)
    assert "Connection reset" in io.message
    assert TransportFailure(OSError()).message == "OSError"


def test_query_execution_failed_message() -> None:
    err = QueryExecutionFailed(RemoteProcess("localhost", 5000), ApplicationFailure("type"))
    assert str(err) == "Query failed on localhost:5000 (application): type"
