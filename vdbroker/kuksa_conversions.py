"""Conversions between data point values and the kuksa.val.v2 wire form."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from vdbroker.v1_conversions import narrow_int
from vdbroker.values import (
    DataPointValue,
    Failure,
    InvalidTypeError,
    InvalidValueError,
    RpcError,
    Timestamp,
    ValueType,
    timestamp_from_message,
)

SELECT_STATEMENT = "SELECT "
WHERE_STATEMENT = " WHERE "

# Outgoing: which field of the value union carries a value of each type.
# Small integers travel widened to 32 bits.
_FIELD_FOR_TYPE: dict[ValueType, str] = {
    ValueType.BOOL: "bool",
    ValueType.BOOL_ARRAY: "bool_array",
    ValueType.INT8: "int32",
    ValueType.INT8_ARRAY: "int32_array",
    ValueType.INT16: "int32",
    ValueType.INT16_ARRAY: "int32_array",
    ValueType.INT32: "int32",
    ValueType.INT32_ARRAY: "int32_array",
    ValueType.INT64: "int64",
    ValueType.INT64_ARRAY: "int64_array",
    ValueType.UINT8: "uint32",
    ValueType.UINT8_ARRAY: "uint32_array",
    ValueType.UINT16: "uint32",
    ValueType.UINT16_ARRAY: "uint32_array",
    ValueType.UINT32: "uint32",
    ValueType.UINT32_ARRAY: "uint32_array",
    ValueType.UINT64: "uint64",
    ValueType.UINT64_ARRAY: "uint64_array",
    ValueType.FLOAT: "float",
    ValueType.FLOAT_ARRAY: "float_array",
    ValueType.DOUBLE: "double",
    ValueType.DOUBLE_ARRAY: "double_array",
    ValueType.STRING: "string",
    ValueType.STRING_ARRAY: "string_array",
}

# Incoming: which value type a populated field of the value union yields.
_TYPE_FOR_FIELD: dict[str, ValueType] = {
    "string": ValueType.STRING,
    "bool": ValueType.BOOL,
    "int32": ValueType.INT32,
    "int64": ValueType.INT64,
    "uint32": ValueType.UINT32,
    "uint64": ValueType.UINT64,
    "float": ValueType.FLOAT,
    "double": ValueType.DOUBLE,
    "string_array": ValueType.STRING_ARRAY,
    "bool_array": ValueType.BOOL_ARRAY,
    "int32_array": ValueType.INT32_ARRAY,
    "int64_array": ValueType.INT64_ARRAY,
    "uint32_array": ValueType.UINT32_ARRAY,
    "uint64_array": ValueType.UINT64_ARRAY,
    "float_array": ValueType.FLOAT_ARRAY,
    "double_array": ValueType.DOUBLE_ARRAY,
}

_NON_INT_CASTS = {
    ValueType.BOOL: bool,
    ValueType.FLOAT: float,
    ValueType.DOUBLE: float,
    ValueType.STRING: str,
}

_NOT_SPACE = re.compile(r"[^ ]")
_SEPARATOR = re.compile(r"[, ]")


@dataclass
class KuksaValue:
    """A typed value of the v2 broker; ``kind`` names the populated union field."""

    kind: str | None = None
    value: Any = None


@dataclass
class KuksaDatapoint:
    """A data point of the v2 broker: a timestamp and an optional value."""

    value: KuksaValue | None = None
    timestamp: Timestamp = field(default_factory=Timestamp)


def _convert_scalar(item: Any, value_type: ValueType) -> Any:
    cast = _NON_INT_CASTS.get(value_type)
    if cast is not None:
        return cast(item)
    return narrow_int(item, value_type)


def convert_to_grpc_value(data_point: DataPointValue) -> KuksaValue:
    """Build the wire value of a typed data point value.

    Raises InvalidTypeError for data points without a transferable type.
    """
    kind = _FIELD_FOR_TYPE.get(data_point.type)
    if kind is None:
        raise InvalidTypeError("")
    value_type = data_point.type
    if value_type.is_array:
        element = value_type.element_type
        value: Any = [_convert_scalar(item, element) for item in data_point.value]
    else:
        value = _convert_scalar(data_point.value, value_type)
    return KuksaValue(kind=kind, value=value)


def convert_from_grpc_value(path: str, value: KuksaValue, timestamp: Timestamp) -> DataPointValue:
    """Build a data point value for ``path`` from a wire value.

    Raises RpcError if the populated field is not known.
    """
    value_type = _TYPE_FOR_FIELD.get(value.kind) if value.kind is not None else None
    if value_type is None:
        raise RpcError("Unknown value case!")
    payload = list(value.value) if value_type.is_array else value.value
    return DataPointValue(value_type, path, timestamp, value=payload)


def convert_from_grpc_datapoint(path: str, datapoint: KuksaDatapoint) -> DataPointValue:
    """Build a data point value for ``path`` from a wire data point.

    A data point without a value is reported as not available.
    """
    timestamp = timestamp_from_message(datapoint.timestamp)
    if datapoint.value is not None:
        return convert_from_grpc_value(path, datapoint.value, timestamp)
    return DataPointValue(
        ValueType.INVALID, path, timestamp, failure=Failure.NOT_AVAILABLE
    )


def parse_query(query: str) -> list[str]:
    """Extract the signal paths of a ``SELECT a, b, c`` query.

    Raises InvalidValueError for queries not starting with ``SELECT ``,
    containing a WHERE clause or selecting nothing.
    """
    if not query.startswith(SELECT_STATEMENT):
        raise InvalidValueError('Mallformed query not starting with "SELECT "!')
    if WHERE_STATEMENT in query:
        raise InvalidValueError(
            "Queries (containing WHERE clauses) not allowd with kuksa.val.v2 API!"
        )

    signal_paths: list[str] = []
    position = len(SELECT_STATEMENT)
    while (start_match := _NOT_SPACE.search(query, position)) is not None:
        start = start_match.start()
        end_match = _SEPARATOR.search(query, start + 1)
        end = end_match.start() if end_match is not None else len(query)
        signal_paths.append(query[start:end])
        position = end + 1

    if not signal_paths:
        raise InvalidValueError("Mallformed query selecting no signals!")
    return signal_paths