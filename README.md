# vdbroker

`vdbroker` provides building blocks for clients of vehicle data brokers. It
covers two broker APIs, `sdv.databroker.v1` and `kuksa.val.v2`, and contains:

* signal value types, failures and call status codes (`vdbroker.values`)
* conversions between values and each API's wire messages
  (`vdbroker.v1_conversions`, `vdbroker.kuksa_conversions`)
* parsing of `SELECT` subscription queries (`vdbroker.kuksa_conversions`)
* a metadata cache that maps signal paths to the broker's numeric ids
  (`vdbroker.metadata`)
* channel arguments read from a JSON configuration file
  (`vdbroker.channel_config`)

The package has no third-party dependencies.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Values

`vdbroker.values` contains the following:

* `DataPointValue` holds a `type` (`ValueType`), a `path`, a `timestamp`
  (`Timestamp`), a `value`, a `failure` (`Failure`) and an `is_updated` flag.
  `is_valid` is true when there is no failure and the type is not
  `ValueType.INVALID`. `clear_update_status()` resets `is_updated`.
* `ValueType` lists the scalar and array types (`BOOL`, `INT8` … `UINT64`,
  `FLOAT`, `DOUBLE`, `STRING` and their `_ARRAY` variants). It offers
  `is_array` and `element_type`.
* `Failure` has the members `NONE`, `INVALID_VALUE`, `NOT_AVAILABLE`,
  `UNKNOWN_DATAPOINT`, `ACCESS_DENIED` and `INTERNAL_ERROR`.
* `StatusCode` holds the remote call status codes. `CallStatus` combines a
  code, a message and details, and its `ok` property tells whether the call
  succeeded.
* `timestamp_from_message(message)` builds a `Timestamp` from anything that
  has `seconds` and `nanos`, either as a mapping or as attributes.
* Errors derive from `BrokerError`: `InvalidTypeError`, `InvalidValueError`
  and `RpcError`.

## sdv.databroker.v1 conversions

`vdbroker.v1_conversions.V1Datapoint` represents a wire data point. Its
`kind` names the populated field, for example `"int32_value"`,
`"string_array"` or `"failure_value"`.

* `convert_to_grpc_datapoint(data_point)` builds the wire form. Small
  integer types (`INT8`, `INT16`, `UINT8`, `UINT16`) travel as
  `int32_value` / `int32_array`. An integer that does not fit its type raises
  `InvalidValueError`. A type that cannot be transferred raises
  `InvalidTypeError`.
* `convert_datapoint_to_internal(name, datapoint)` builds a
  `DataPointValue`. A failure value becomes an `INVALID` value that carries
  the mapped `Failure`. An unknown `kind` raises `RpcError`.
* `failure_from_grpc(code)` and `failure_to_grpc(failure)` map between
  `Failure` and the wire failure names.
* `narrow_int(value, value_type)` checks that an integer fits an integer
  type.

```python
from vdbroker.values import DataPointValue, ValueType
from vdbroker.v1_conversions import convert_to_grpc_datapoint

wire = convert_to_grpc_datapoint(DataPointValue(ValueType.UINT8, "Vehicle.X", value=200))
# V1Datapoint(kind='int32_value', value=200, ...)
```

## kuksa.val.v2 conversions and queries

`vdbroker.kuksa_conversions` uses `KuksaValue` (the `kind` plus `value` of
the value union) and `KuksaDatapoint` (an optional `KuksaValue` plus a
timestamp).

* `convert_to_grpc_value(data_point)` builds the wire value. Signed small
  integers are widened to `int32` and unsigned ones to `uint32`.
* `convert_from_grpc_value(path, value, timestamp)` builds a
  `DataPointValue`. An unknown `kind` raises `RpcError`.
* `convert_from_grpc_datapoint(path, datapoint)` converts a data point. If
  the data point has no value, the result is an `INVALID` value with
  `Failure.NOT_AVAILABLE`.
* `parse_query(query)` splits a `SELECT` query into signal paths. It raises
  `InvalidValueError` if the query does not start with `SELECT `, if it
  contains a ` WHERE ` clause, or if it selects nothing.

```python
from vdbroker.kuksa_conversions import parse_query

parse_query("SELECT Vehicle.Speed, Vehicle.Cabin.Light")
# ['Vehicle.Speed', 'Vehicle.Cabin.Light']
```

## Metadata cache

`vdbroker.metadata.MetadataAgent(list_metadata, schedule=None)` resolves
signal paths to `Metadata(signal_path, id, is_known)`. You supply the lookup
yourself as `list_metadata(path, on_response, on_error)`. It must call
`on_response` with the returned entries, each of which has an `id`, or call
`on_error` with a `CallStatus`. `schedule` runs each lookup job; by default
the job runs immediately.

* `query(signal_paths, on_success, on_error)` passes the list of metadata to
  `on_success` once every path is resolved. If all paths are cached, this
  happens before the call returns. At most five lookups run at the same time.
  A path for which the broker returns no entry or several entries, or
  answers `NOT_FOUND` or `PERMISSION_DENIED`, is recorded as unknown. Any
  other error fails the queries that wait for that path.
* `invalidate(status_code=StatusCode.UNAVAILABLE)` clears the cache, cancels
  running lookups and fails every waiting query.
* `get_by_numeric_id(numeric_id)` returns cached metadata, or `None`.

```python
from vdbroker.metadata import MetadataAgent

def list_metadata(path, on_response, on_error):
    on_response([{"id": 42}])

agent = MetadataAgent(list_metadata)
agent.query(["Vehicle.Speed"], print, print)
# [Metadata(signal_path='Vehicle.Speed', id=42, is_known=True)]
```

## Channel configuration

`vdbroker.channel_config.get_channel_arguments(environ=None)` reads the JSON
file named by `SDV_VDB_CHANNEL_CONFIG_PATH`. It uses `os.environ` when no
mapping is given. The file looks like this:

```json
{"channelArguments": {"grpc.max_receive_message_length": 4194304, "grpc.primary_user_agent": "my-app"}}
```

Only integer and string arguments are returned. Other arguments are logged
and skipped. `load_channel_arguments(path)` logs a missing or malformed file
and returns an empty dict. `parse_channel_arguments(config)` works on an
already parsed object and raises `ValueError` if that object is not a JSON
object.

## What the package does not do

The package contains no broker client. It does not open network
connections, and it has no ready-made classes for reading, writing or
subscribing to signals. It does not choose an API from the environment, and
it has no subscription object or resubscription logic. To build a working
client, combine these modules with your own transport.