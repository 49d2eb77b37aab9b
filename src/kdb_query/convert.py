from __future__ import annotations

from typing import Any, Mapping

from .types import NativeRecord


class DictRecordConverter:
    """Convert a flat Python mapping into a kdb+ dictionary record.

    Keys become symbols, so they must be non-empty strings. Values are passed
    through; encoding them is left to the transport.

    Example:
        ```python
        record = DictRecordConverter().to_native_record({"sym": "AAPL", "size": 100})
        ```
    """

    def to_native_record(self, arguments: Mapping[str, Any]) -> NativeRecord:
        """Build a record preserving the mapping's insertion order.

        Example:
            ```python
            record = DictRecordConverter().to_native_record({"x": 1})
            ```
        """
        keys: list[str] = []
        values: list[Any] = []
        for key, value in arguments.items():
            if not isinstance(key, str):
                raise TypeError(f"Argument names must be strings, got {type(key).__name__}")
            if not key:
                raise ValueError("Argument names must be non-empty")
            keys.append(key)
            values.append(value)
        return NativeRecord(keys=tuple(keys), values=tuple(values))
