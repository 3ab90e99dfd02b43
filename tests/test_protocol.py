from http import HTTPStatus

import pytest

from rpcproxy.errors import InvalidScheme
from rpcproxy.protocol import Protocol, health_message, protocol_from_scheme


@pytest.mark.parametrize("scheme", ["http", "https", "HTTP", "Https"])
def test_http_schemes(scheme):
    protocol = protocol_from_scheme(scheme)
    assert protocol == Protocol.HTTP
    assert protocol.is_http
    assert not protocol.is_websocket


@pytest.mark.parametrize("scheme", ["ws", "wss", "WS", "Wss"])
def test_websocket_schemes(scheme):
    protocol = protocol_from_scheme(scheme)
    assert protocol == Protocol.WEBSOCKET
    assert protocol.is_websocket


def test_other_scheme_is_kept_lowercased():
    protocol = protocol_from_scheme("FTP")
    assert protocol == Protocol("other", "ftp")
    assert not protocol.is_http
    assert not protocol.is_websocket


@pytest.mark.parametrize("scheme", [None, ""])
def test_missing_scheme_raises(scheme):
    with pytest.raises(InvalidScheme):
        protocol_from_scheme(scheme)


def test_missing_scheme_response():
    with pytest.raises(InvalidScheme) as info:
        protocol_from_scheme(None)
    status, body = info.value.to_response()
    assert status == HTTPStatus.BAD_REQUEST
    assert body["reasons"][0]["description"] == "Invalid scheme used. Try http(s):// or ws(s)://"


def test_health_message():
    message = health_message("1.2.3", "abc1234", "default", 42)
    assert message == "OK v1.2.3, commit hash: abc1234, features: default, uptime: 42 seconds"


def test_health_message_truncates_uptime():
    message = health_message("1.0.0", "deadbee", "", 7.9)
    assert message.endswith("uptime: 7 seconds")
    assert message.startswith("OK v1.0.0, commit hash: deadbee")