import pytest

from vdbroker.v1_conversions import (
    V1Datapoint,
    convert_datapoint_to_internal,
    convert_to_grpc_datapoint,
    failure_from_grpc,
    failure_to_grpc,
    narrow_int,
)
from vdbroker.values import (
    DataPointValue,
    Failure,
    InvalidTypeError,
    InvalidValueError,
    RpcError,
    Timestamp,
    ValueType,
)

PATH = "Vehicle.Speed"


@pytest.mark.parametrize(
    "failure",
    [f for f in Failure if f is not Failure.NONE],
)
def test_failure_round_trip(failure):
    assert failure_from_grpc(failure_to_grpc(failure)) is failure


def test_failure_none_maps_to_internal_error():
    assert failure_to_grpc(Failure.NONE) == "INTERNAL_ERROR"


def test_unknown_failure_name_is_internal_error():
    assert failure_from_grpc("NO_SUCH_FAILURE") is Failure.INTERNAL_ERROR


def test_absent_failure_is_none():
    assert failure_from_grpc(None) is Failure.NONE


def test_narrow_int_in_range():
    assert narrow_int(127, ValueType.INT8) == 127
    assert narrow_int(-32768, ValueType.INT16) == -32768
    assert narrow_int(255, ValueType.UINT8_ARRAY) == 255


@pytest.mark.parametrize(
    "value, value_type",
    [(128, ValueType.INT8), (-1, ValueType.UINT8), (65536, ValueType.UINT16), (-32769, ValueType.INT16)],
)
def test_narrow_int_out_of_range(value, value_type):
    with pytest.raises(InvalidValueError):
        narrow_int(value, value_type)


def test_narrow_int_rejects_non_integer_type():
    with pytest.raises(InvalidTypeError):
        narrow_int(1, ValueType.STRING)


@pytest.mark.parametrize(
    "value_type, value",
    [
        (ValueType.BOOL, True),
        (ValueType.INT32, -42),
        (ValueType.INT64, 2**40),
        (ValueType.UINT32, 4000000000),
        (ValueType.UINT64, 2**63),
        (ValueType.FLOAT, 1.5),
        (ValueType.DOUBLE, 3.25),
        (ValueType.STRING, "hello"),
        (ValueType.BOOL_ARRAY, [True, False]),
        (ValueType.INT32_ARRAY, [1, -2, 3]),
        (ValueType.INT64_ARRAY, [2**40]),
        (ValueType.UINT32_ARRAY, [7, 8]),
        (ValueType.UINT64_ARRAY, [9]),
        (ValueType.FLOAT_ARRAY, [0.5]),
        (ValueType.DOUBLE_ARRAY, [0.25, 0.75]),
        (ValueType.STRING_ARRAY, ["a", "b"]),
    ],
)
def test_round_trip_preserves_type_and_value(value_type, value):
    wire = convert_to_grpc_datapoint(DataPointValue(value_type, PATH, value=value))
    back = convert_datapoint_to_internal(PATH, wire)
    assert back.type is value_type
    assert back.value == value
    assert back.path == PATH
    assert back.failure is Failure.NONE


@pytest.mark.parametrize(
    "value_type",
    [ValueType.INT8, ValueType.INT16, ValueType.UINT8, ValueType.UINT16],
)
def test_small_integers_travel_as_int32(value_type):
    wire = convert_to_grpc_datapoint(DataPointValue(value_type, PATH, value=100))
    assert wire.kind == "int32_value"
    back = convert_datapoint_to_internal(PATH, wire)
    assert back.type is ValueType.INT32
    assert back.value == 100


def test_small_unsigned_arrays_travel_as_int32_array():
    wire = convert_to_grpc_datapoint(DataPointValue(ValueType.UINT16_ARRAY, PATH, value=[1, 2]))
    assert wire.kind == "int32_array"
    assert wire.value == [1, 2]


def test_out_of_range_value_is_rejected():
    with pytest.raises(InvalidValueError):
        convert_to_grpc_datapoint(DataPointValue(ValueType.INT8_ARRAY, PATH, value=[1, 300]))


def test_invalid_type_cannot_be_sent():
    with pytest.raises(InvalidTypeError):
        convert_to_grpc_datapoint(DataPointValue(ValueType.INVALID, PATH))


def test_failure_datapoint_becomes_invalid_value():
    stamp = Timestamp(12, 34)
    wire = V1Datapoint(kind="failure_value", value="ACCESS_DENIED", timestamp=stamp)
    result = convert_datapoint_to_internal(PATH, wire)
    assert result.type is ValueType.INVALID
    assert result.failure is Failure.ACCESS_DENIED
    assert result.timestamp == stamp
    assert not result.is_valid


def test_timestamp_is_carried_over():
    stamp = Timestamp(5, 6)
    result = convert_datapoint_to_internal(PATH, V1Datapoint("double_value", 2.0, stamp))
    assert result.timestamp == stamp


@pytest.mark.parametrize("kind", [None, "unexpected_field"])
def test_unknown_value_case_raises(kind):
    with pytest.raises(RpcError):
        convert_datapoint_to_internal(PATH, V1Datapoint(kind=kind, value=1))