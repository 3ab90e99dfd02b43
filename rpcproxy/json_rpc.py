"""JSON-RPC 2.0 message types exchanged between clients and providers."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping, Union

JSON_RPC_VERSION = "2.0"

_U64_MAX = 2**64 - 1
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1
_DIGITS = re.compile(r"\+?[0-9]+")


class JsonRpcParseError(ValueError):
    """Raised when data is not a valid JSON-RPC payload."""


@dataclass(frozen=True)
class JsonRpcRequest:
    """A request to the server."""

    id: int
    method: str
    jsonrpc: str = JSON_RPC_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "jsonrpc": self.jsonrpc, "method": self.method}


@dataclass(frozen=True)
class ErrorResponse:
    """The error object carried by a JSON-RPC error response."""

    code: int
    message: str
    data: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass(frozen=True)
class JsonRpcResult:
    """A response carrying a result."""

    id: int
    jsonrpc: str
    result: Any

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "jsonrpc": self.jsonrpc, "result": self.result}


@dataclass(frozen=True)
class JsonRpcError:
    """A response carrying an error."""

    id: int
    jsonrpc: str
    error: ErrorResponse

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "jsonrpc": self.jsonrpc, "error": self.error.to_dict()}


JsonRpcPayload = Union[JsonRpcRequest, JsonRpcResult, JsonRpcError]


def _message_id(value: Any) -> int:
    if isinstance(value, str):
        if not _DIGITS.fullmatch(value):
            raise JsonRpcParseError(f"invalid message id: {value!r}")
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise JsonRpcParseError(f"invalid message id: {value!r}")
    if not 0 <= value <= _U64_MAX:
        raise JsonRpcParseError(f"message id out of range: {value}")
    return value


def _field(obj: Mapping[str, Any], key: str) -> Any:
    try:
        return obj[key]
    except KeyError:
        raise JsonRpcParseError(f"missing field `{key}`") from None


def _string(obj: Mapping[str, Any], key: str) -> str:
    value = _field(obj, key)
    if not isinstance(value, str):
        raise JsonRpcParseError(f"field `{key}` must be a string")
    return value


def _error_object(value: Any) -> ErrorResponse:
    if not isinstance(value, Mapping):
        raise JsonRpcParseError("field `error` must be an object")
    code = _field(value, "code")
    if isinstance(code, bool) or not isinstance(code, int) or not _I32_MIN <= code <= _I32_MAX:
        raise JsonRpcParseError("field `code` must be a 32-bit integer")
    data = value.get("data")
    if data is not None and not isinstance(data, str):
        raise JsonRpcParseError("field `data` must be a string")
    return ErrorResponse(code=code, message=_string(value, "message"), data=data)


def _as_request(obj: Mapping[str, Any]) -> JsonRpcRequest:
    return JsonRpcRequest(
        id=_message_id(_field(obj, "id")),
        jsonrpc=_string(obj, "jsonrpc"),
        method=_string(obj, "method"),
    )


def _as_result(obj: Mapping[str, Any]) -> JsonRpcResult:
    return JsonRpcResult(
        id=_message_id(_field(obj, "id")),
        jsonrpc=_string(obj, "jsonrpc"),
        result=_field(obj, "result"),
    )


def _as_error(obj: Mapping[str, Any]) -> JsonRpcError:
    return JsonRpcError(
        id=_message_id(_field(obj, "id")),
        jsonrpc=_string(obj, "jsonrpc"),
        error=_error_object(_field(obj, "error")),
    )


def parse_payload(data: str | bytes | bytearray | Mapping[str, Any]) -> JsonRpcPayload:
    """Parse a request, result or error from JSON text or a decoded object."""
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise JsonRpcParseError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise JsonRpcParseError("payload must be a JSON object")
    for parse in (_as_request, _as_result, _as_error):
        try:
            return parse(data)
        except JsonRpcParseError:
            continue
    raise JsonRpcParseError("data did not match any JSON-RPC payload variant")


def to_json(payload: JsonRpcPayload) -> str:
    """Serialize a payload to compact JSON text."""
    return json.dumps(payload.to_dict(), separators=(",", ":"), ensure_ascii=False)