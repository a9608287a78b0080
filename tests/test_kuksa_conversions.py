import pytest

from vdbroker.kuksa_conversions import (
    KuksaDatapoint,
    KuksaValue,
    convert_from_grpc_datapoint,
    convert_from_grpc_value,
    convert_to_grpc_value,
    parse_query,
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
    "value_type, value",
    [
        (ValueType.BOOL, True),
        (ValueType.BOOL_ARRAY, [True, False]),
        (ValueType.INT32, -12),
        (ValueType.INT32_ARRAY, [1, -2]),
        (ValueType.INT64, -(2**40)),
        (ValueType.INT64_ARRAY, [2**40]),
        (ValueType.UINT32, 2**32 - 1),
        (ValueType.UINT32_ARRAY, [0, 7]),
        (ValueType.UINT64, 2**63),
        (ValueType.UINT64_ARRAY, [2**64 - 1]),
        (ValueType.FLOAT, 1.5),
        (ValueType.FLOAT_ARRAY, [1.5, 2.5]),
        (ValueType.DOUBLE, 3.25),
        (ValueType.DOUBLE_ARRAY, [3.25]),
        (ValueType.STRING, "abc"),
        (ValueType.STRING_ARRAY, ["a", "b"]),
    ],
)
def test_round_trip_keeps_type_and_value(value_type, value):
    timestamp = Timestamp(10, 20)
    wire = convert_to_grpc_value(DataPointValue(value_type, PATH, value=value))
    back = convert_from_grpc_value(PATH, wire, timestamp)
    assert back.type is value_type
    assert back.value == value
    assert back.path == PATH
    assert back.timestamp == timestamp
    assert back.is_valid


@pytest.mark.parametrize(
    "value_type, kind",
    [
        (ValueType.INT8, "int32"),
        (ValueType.INT16, "int32"),
        (ValueType.UINT8, "uint32"),
        (ValueType.UINT16, "uint32"),
    ],
)
def test_small_integers_are_widened(value_type, kind):
    wire = convert_to_grpc_value(DataPointValue(value_type, PATH, value=5))
    assert wire.kind == kind
    assert wire.value == 5


def test_small_integer_arrays_are_widened():
    wire = convert_to_grpc_value(DataPointValue(ValueType.INT8_ARRAY, PATH, value=[1, -1]))
    assert wire.kind == "int32_array"
    assert wire.value == [1, -1]


def test_out_of_range_integer_is_rejected():
    with pytest.raises(InvalidValueError):
        convert_to_grpc_value(DataPointValue(ValueType.UINT8, PATH, value=256))


def test_invalid_type_cannot_be_sent():
    with pytest.raises(InvalidTypeError):
        convert_to_grpc_value(DataPointValue(ValueType.INVALID, PATH))


def test_unknown_value_case_is_rejected():
    with pytest.raises(RpcError):
        convert_from_grpc_value(PATH, KuksaValue(kind="bytes", value=b""), Timestamp())
    with pytest.raises(RpcError):
        convert_from_grpc_value(PATH, KuksaValue(), Timestamp())


def test_datapoint_with_value():
    datapoint = KuksaDatapoint(KuksaValue("double", 42.0), Timestamp(3, 4))
    result = convert_from_grpc_datapoint(PATH, datapoint)
    assert result.type is ValueType.DOUBLE
    assert result.value == 42.0
    assert result.timestamp == Timestamp(3, 4)


def test_datapoint_without_value_is_not_available():
    result = convert_from_grpc_datapoint(PATH, KuksaDatapoint(timestamp=Timestamp(7, 8)))
    assert result.type is ValueType.INVALID
    assert result.failure is Failure.NOT_AVAILABLE
    assert result.timestamp == Timestamp(7, 8)
    assert not result.is_valid


def test_parse_single_signal():
    assert parse_query("SELECT Vehicle.Speed") == ["Vehicle.Speed"]


def test_parse_several_signals_with_commas_and_spaces():
    query = "SELECT Vehicle.Speed, Vehicle.Cabin.Seat,Vehicle.Width"
    assert parse_query(query) == ["Vehicle.Speed", "Vehicle.Cabin.Seat", "Vehicle.Width"]


def test_parse_ignores_extra_spaces():
    assert parse_query("SELECT   a   b  ") == ["a", "b"]


@pytest.mark.parametrize("query", ["select a", "a, b", " SELECT a", ""])
def test_query_must_start_with_select(query):
    with pytest.raises(InvalidValueError):
        parse_query(query)


def test_where_clause_is_rejected():
    with pytest.raises(InvalidValueError):
        parse_query("SELECT a WHERE a > 1")


@pytest.mark.parametrize("query", ["SELECT ", "SELECT    "])
def test_query_without_signals_is_rejected(query):
    with pytest.raises(InvalidValueError):
        parse_query(query)