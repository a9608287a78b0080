"""Conversions between data point values and the sdv.databroker.v1 wire form."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from vdbroker.values import (
    DataPointValue,
    Failure,
    InvalidTypeError,
    InvalidValueError,
    RpcError,
    Timestamp,
    ValueType,
)

logger = logging.getLogger(__name__)

FAILURE_VALUE = "failure_value"

_FAILURE_NAMES: dict[Failure, str] = {
    Failure.INVALID_VALUE: "INVALID_VALUE",
    Failure.NOT_AVAILABLE: "NOT_AVAILABLE",
    Failure.UNKNOWN_DATAPOINT: "UNKNOWN_DATAPOINT",
    Failure.ACCESS_DENIED: "ACCESS_DENIED",
    Failure.INTERNAL_ERROR: "INTERNAL_ERROR",
}
_FAILURES_BY_NAME: dict[str, Failure] = {name: failure for failure, name in _FAILURE_NAMES.items()}

# Outgoing: which field of the wire data point carries a value of each type.
# Small unsigned integers travel as signed 32-bit integers.
_FIELD_FOR_TYPE: dict[ValueType, str] = {
    ValueType.BOOL: "bool_value",
    ValueType.BOOL_ARRAY: "bool_array",
    ValueType.DOUBLE: "double_value",
    ValueType.DOUBLE_ARRAY: "double_array",
    ValueType.FLOAT: "float_value",
    ValueType.FLOAT_ARRAY: "float_array",
    ValueType.INT8: "int32_value",
    ValueType.INT8_ARRAY: "int32_array",
    ValueType.INT16: "int32_value",
    ValueType.INT16_ARRAY: "int32_array",
    ValueType.INT32: "int32_value",
    ValueType.INT32_ARRAY: "int32_array",
    ValueType.INT64: "int64_value",
    ValueType.INT64_ARRAY: "int64_array",
    ValueType.STRING: "string_value",
    ValueType.STRING_ARRAY: "string_array",
    ValueType.UINT8: "int32_value",
    ValueType.UINT8_ARRAY: "int32_array",
    ValueType.UINT16: "int32_value",
    ValueType.UINT16_ARRAY: "int32_array",
    ValueType.UINT32: "uint32_value",
    ValueType.UINT32_ARRAY: "uint32_array",
    ValueType.UINT64: "uint64_value",
    ValueType.UINT64_ARRAY: "uint64_array",
}

# Incoming: which value type a populated wire field yields.
_TYPE_FOR_FIELD: dict[str, ValueType] = {
    "string_value": ValueType.STRING,
    "bool_value": ValueType.BOOL,
    "int32_value": ValueType.INT32,
    "int64_value": ValueType.INT64,
    "uint32_value": ValueType.UINT32,
    "uint64_value": ValueType.UINT64,
    "float_value": ValueType.FLOAT,
    "double_value": ValueType.DOUBLE,
    "string_array": ValueType.STRING_ARRAY,
    "bool_array": ValueType.BOOL_ARRAY,
    "int32_array": ValueType.INT32_ARRAY,
    "int64_array": ValueType.INT64_ARRAY,
    "uint32_array": ValueType.UINT32_ARRAY,
    "uint64_array": ValueType.UINT64_ARRAY,
    "float_array": ValueType.FLOAT_ARRAY,
    "double_array": ValueType.DOUBLE_ARRAY,
}

_INT_RANGES: dict[ValueType, tuple[int, int]] = {
    ValueType.INT8: (-(2**7), 2**7 - 1),
    ValueType.INT16: (-(2**15), 2**15 - 1),
    ValueType.INT32: (-(2**31), 2**31 - 1),
    ValueType.INT64: (-(2**63), 2**63 - 1),
    ValueType.UINT8: (0, 2**8 - 1),
    ValueType.UINT16: (0, 2**16 - 1),
    ValueType.UINT32: (0, 2**32 - 1),
    ValueType.UINT64: (0, 2**64 - 1),
}

_SCALAR_CASTS = {
    ValueType.BOOL: bool,
    ValueType.FLOAT: float,
    ValueType.DOUBLE: float,
    ValueType.STRING: str,
}


@dataclass
class V1Datapoint:
    """A data point as exchanged with the v1 broker.

    ``kind`` names the populated field of the value union (for example
    ``"int32_value"`` or ``"failure_value"``) or is None when no field is set.
    """

    kind: str | None = None
    value: Any = None
    timestamp: Timestamp = field(default_factory=Timestamp)

    @property
    def has_failure_value(self) -> bool:
        return self.kind == FAILURE_VALUE


def failure_from_grpc(code: str | None) -> Failure:
    """Map a wire failure name to a Failure; None means no failure."""
    if code is None:
        return Failure.NONE
    failure = _FAILURES_BY_NAME.get(code)
    if failure is None:
        logger.error("Unknown 'DataPointValue::Failure': %s", code)
        return Failure.INTERNAL_ERROR
    return failure


def failure_to_grpc(failure: Failure) -> str:
    """Map a Failure to its wire name."""
    name = _FAILURE_NAMES.get(failure)
    if name is None:
        logger.error("Unknown 'DataPointValue::Failure': %s", failure.value)
        return _FAILURE_NAMES[Failure.INTERNAL_ERROR]
    return name


def narrow_int(value: int, value_type: ValueType) -> int:
    """Check that an integer fits the given integer type (or array element type).

    Raises InvalidValueError if it does not fit, InvalidTypeError if the type
    is not an integer type.
    """
    bounds = _INT_RANGES.get(value_type.element_type)
    if bounds is None:
        raise InvalidTypeError(f"{value_type.value} is not an integer type")
    low, high = bounds
    number = int(value)
    if not low <= number <= high:
        raise InvalidValueError(f"{number} out of range for {value_type.element_type.value}")
    return number


def _convert_scalar(value: Any, value_type: ValueType) -> Any:
    if value_type in _INT_RANGES:
        return narrow_int(value, value_type)
    return _SCALAR_CASTS[value_type](value)


def convert_to_grpc_datapoint(data_point: DataPointValue) -> V1Datapoint:
    """Build the wire form of a typed data point value."""
    kind = _FIELD_FOR_TYPE.get(data_point.type)
    if kind is None:
        raise InvalidTypeError("")
    value_type = data_point.type
    if value_type.is_array:
        element = value_type.element_type
        value: Any = [_convert_scalar(item, element) for item in data_point.value]
    else:
        value = _convert_scalar(data_point.value, value_type)
    return V1Datapoint(kind=kind, value=value)


def convert_datapoint_to_internal(name: str, datapoint: V1Datapoint) -> DataPointValue:
    """Build a data point value for signal ``name`` from its wire form."""
    timestamp = datapoint.timestamp
    if datapoint.has_failure_value:
        return DataPointValue(
            ValueType.INVALID,
            name,
            timestamp,
            failure=failure_from_grpc(datapoint.value),
        )
    value_type = _TYPE_FOR_FIELD.get(datapoint.kind) if datapoint.kind is not None else None
    if value_type is None:
        raise RpcError("Unknown value case!")
    value = list(datapoint.value) if value_type.is_array else datapoint.value
    return DataPointValue(value_type, name, timestamp, value=value)