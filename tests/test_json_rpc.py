import pytest

from rpcproxy.json_rpc import (
    JSON_RPC_VERSION,
    ErrorResponse,
    JsonRpcError,
    JsonRpcParseError,
    JsonRpcRequest,
    JsonRpcResult,
    parse_payload,
    to_json,
)


def test_request():
    payload = JsonRpcRequest(1, "eth_chainId")
    serialized = to_json(payload)
    assert serialized == '{"id":1,"jsonrpc":"2.0","method":"eth_chainId"}'
    assert parse_payload(serialized) == payload


def test_response_result():
    payload = JsonRpcResult(id=1, jsonrpc=JSON_RPC_VERSION, result="some result")
    serialized = to_json(payload)
    assert serialized == '{"id":1,"jsonrpc":"2.0","result":"some result"}'
    assert parse_payload(serialized) == payload


def test_response_error():
    payload = JsonRpcError(
        id=1,
        jsonrpc=JSON_RPC_VERSION,
        error=ErrorResponse(code=32, message="some message", data=None),
    )
    serialized = to_json(payload)
    assert serialized == (
        '{"id":1,"jsonrpc":"2.0","error":{"code":32,"message":"some message"}}'
    )
    assert parse_payload(serialized) == payload


def test_deserialize_iridium_method():
    serialized = (
        '{"id":1,"jsonrpc":"2.0","method":"iridium_subscription","params"'
        ':{"id":"test_id","data":{"topic":"test_topic","message":"'
        'test_message"}}}'
    )
    payload = parse_payload(serialized)
    assert payload == JsonRpcRequest(1, "iridium_subscription")


def test_message_id_from_string():
    payload = parse_payload({"id": "1", "jsonrpc": "2.0", "method": "eth_chainId"})
    assert payload.id == 1


def test_error_data_round_trip():
    payload = JsonRpcError(1, JSON_RPC_VERSION, ErrorResponse(32, "some message", "extra"))
    assert parse_payload(to_json(payload)) == payload
    assert payload.to_dict()["error"]["data"] == "extra"


def test_bytes_input():
    payload = parse_payload(b'{"id":1,"jsonrpc":"2.0","result":null}')
    assert payload == JsonRpcResult(1, "2.0", None)


@pytest.mark.parametrize(
    "data",
    [
        "not json",
        "[]",
        '{"jsonrpc":"2.0","method":"eth_chainId"}',
        '{"id":true,"jsonrpc":"2.0","method":"eth_chainId"}',
        '{"id":-1,"jsonrpc":"2.0","method":"eth_chainId"}',
        '{"id":"abc","jsonrpc":"2.0","method":"eth_chainId"}',
        '{"id":1,"jsonrpc":"2.0"}',
    ],
)
def test_invalid_payloads(data):
    with pytest.raises(JsonRpcParseError):
        parse_payload(data)