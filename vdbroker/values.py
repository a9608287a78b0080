"""Core value types shared by the data broker clients."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, order=True)
class Timestamp:
    """Point in time as seconds and nanoseconds since the epoch."""

    seconds: int = 0
    nanos: int = 0


class ValueType(enum.Enum):
    """Data type of a data point value."""

    INVALID = "invalid"
    BOOL = "bool"
    BOOL_ARRAY = "bool[]"
    INT8 = "int8"
    INT8_ARRAY = "int8[]"
    INT16 = "int16"
    INT16_ARRAY = "int16[]"
    INT32 = "int32"
    INT32_ARRAY = "int32[]"
    INT64 = "int64"
    INT64_ARRAY = "int64[]"
    UINT8 = "uint8"
    UINT8_ARRAY = "uint8[]"
    UINT16 = "uint16"
    UINT16_ARRAY = "uint16[]"
    UINT32 = "uint32"
    UINT32_ARRAY = "uint32[]"
    UINT64 = "uint64"
    UINT64_ARRAY = "uint64[]"
    FLOAT = "float"
    FLOAT_ARRAY = "float[]"
    DOUBLE = "double"
    DOUBLE_ARRAY = "double[]"
    STRING = "string"
    STRING_ARRAY = "string[]"

    @property
    def is_array(self) -> bool:
        """True for the array variants."""
        return self.value.endswith("[]")

    @property
    def element_type(self) -> ValueType:
        """The scalar type of an array type, or the type itself."""
        if self.is_array:
            return ValueType(self.value[:-2])
        return self


class Failure(enum.Enum):
    """Reason why a data point carries no valid value."""

    NONE = 0
    INVALID_VALUE = 1
    NOT_AVAILABLE = 2
    UNKNOWN_DATAPOINT = 3
    ACCESS_DENIED = 4
    INTERNAL_ERROR = 5


class StatusCode(enum.IntEnum):
    """Status codes of a remote call."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


@dataclass(frozen=True)
class CallStatus:
    """Outcome of a remote call."""

    code: StatusCode = StatusCode.OK
    message: str = ""
    details: str = ""

    @property
    def ok(self) -> bool:
        return self.code == StatusCode.OK


@dataclass
class DataPointValue:
    """Value of a single signal, or the reason why there is none."""

    type: ValueType
    path: str
    timestamp: Timestamp = field(default_factory=Timestamp)
    value: Any = None
    failure: Failure = Failure.NONE
    is_updated: bool = True

    @property
    def is_valid(self) -> bool:
        return self.failure is Failure.NONE and self.type is not ValueType.INVALID

    def clear_update_status(self) -> None:
        """Mark the value as already delivered."""
        self.is_updated = False


class BrokerError(Exception):
    """Base class of the errors raised by this package."""


class InvalidTypeError(BrokerError):
    """A value has a type that cannot be handled."""


class InvalidValueError(BrokerError):
    """A value or argument is not acceptable."""


class RpcError(BrokerError):
    """A remote call delivered something that cannot be handled."""


def timestamp_from_message(message: Any) -> Timestamp:
    """Build a Timestamp from a message with ``seconds`` and ``nanos``."""
    if message is None:
        return Timestamp()
    if isinstance(message, Mapping):
        return Timestamp(int(message.get("seconds", 0)), int(message.get("nanos", 0)))
    return Timestamp(int(getattr(message, "seconds", 0)), int(getattr(message, "nanos", 0)))