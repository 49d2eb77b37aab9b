from .connection import Connection, RecordConverter
from .convert import DictRecordConverter
from .errors import (
    ApplicationFailure,
    KdbQueryError,
    QueryExecutionFailed,
    RemoteQueryError,
    SettingsError,
    TargetProcessUnavailable,
    TransportFailure,
)
from .executor import SyncQueryExecutor
from .reconnect import ReconnectPolicy
from .settings import ClientSettings
from .types import NativeRecord, QueryRequest, QueryTiming, RemoteProcess

__all__ = [
    "ApplicationFailure",
    "ClientSettings",
    "Connection",
    "DictRecordConverter",
    "KdbQueryError",
    "NativeRecord",
    "QueryExecutionFailed",
    "QueryRequest",
    "QueryTiming",
    "ReconnectPolicy",
    "RecordConverter",
    "RemoteProcess",
    "RemoteQueryError",
    "SettingsError",
    "SyncQueryExecutor",
    "TargetProcessUnavailable",
    "TransportFailure",
]
