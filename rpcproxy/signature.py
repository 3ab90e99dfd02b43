"""Name registration requests and Ethereum personal-message signature checks."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping

from Crypto.Hash import keccak as _keccak

_U64_MAX = 2**64 - 1
_HEX = re.compile(r"(?:[0-9a-fA-F]{2})*")
_ADDRESS_HEX = re.compile(r"[0-9a-fA-F]{40}")

# secp256k1 domain parameters
_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)

_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"


class SignatureError(ValueError):
    """Raised when a signature cannot be parsed or no key can be recovered from it."""


def _json_object(data: str | bytes | bytearray | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(data, (str, bytes, bytearray)):
        data = json.loads(data)
    if not isinstance(data, Mapping):
        raise ValueError("expected a JSON object")
    return data


def _string_field(obj: Mapping[str, Any], key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


@dataclass(frozen=True)
class RegisterPayload:
    """The signed message of a name registration."""

    name: str
    address: str
    timestamp: int

    @classmethod
    def from_json(cls, data: str | bytes | bytearray | Mapping[str, Any]) -> RegisterPayload:
        """Parse the payload; raise ValueError if it is malformed."""
        obj = _json_object(data)
        timestamp = obj.get("timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int) or not (
            0 <= timestamp <= _U64_MAX
        ):
            raise ValueError("field `timestamp` must be an unsigned integer")
        return cls(
            name=_string_field(obj, "name"),
            address=_string_field(obj, "address"),
            timestamp=timestamp,
        )


@dataclass(frozen=True)
class RegisterRequest:
    """A request to register a name: the payload as JSON text and its signature."""

    message: str
    signature: str
    address: str

    @classmethod
    def from_json(cls, data: str | bytes | bytearray | Mapping[str, Any]) -> RegisterRequest:
        """Parse the request; raise ValueError if it is malformed."""
        obj = _json_object(data)
        return cls(
            message=_string_field(obj, "message"),
            signature=_string_field(obj, "signature"),
            address=_string_field(obj, "address"),
        )


def keccak256(data: bytes | bytearray | str) -> bytes:
    """The Keccak-256 digest of the data (text is UTF-8 encoded)."""
    if isinstance(data, str):
        data = data.encode()
    return _keccak.new(digest_bits=256, data=bytes(data)).digest()


def parse_address(text: str) -> bytes:
    """Parse a 20-byte hex address with an optional ``0x`` prefix."""
    digits = text[2:] if text.startswith("0x") else text
    if not _ADDRESS_HEX.fullmatch(digits):
        raise ValueError(f"invalid address: {text!r}")
    return bytes.fromhex(digits)


def _parse_signature(signature: str | bytes | bytearray) -> tuple[int, int, int]:
    if isinstance(signature, str):
        digits = signature[2:] if signature.startswith("0x") else signature
        if not _HEX.fullmatch(digits):
            raise SignatureError("signature is not valid hex")
        raw = bytes.fromhex(digits)
    else:
        raw = bytes(signature)
    if len(raw) != 65:
        raise SignatureError(f"invalid signature length, got {len(raw)}, expected 65")
    return int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:64], "big"), raw[64]


def _recovery_id(v: int) -> int:
    if v in (0, 1):
        return v
    if v in (27, 28):
        return v - 27
    if v >= 35:
        return (v - 1) % 2
    raise SignatureError(f"invalid recovery id: {v}")


def _add(p1, p2):
    if p1 is None:
        return p2
    if p2 is None:
        return p1
    x1, y1 = p1
    x2, y2 = p2
    if x1 == x2:
        if (y1 + y2) % _P == 0:
            return None
        slope = 3 * x1 * x1 * pow(2 * y1, -1, _P) % _P
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, _P) % _P
    x3 = (slope * slope - x1 - x2) % _P
    return x3, (slope * (x1 - x3) - y1) % _P


def _multiply(k: int, point):
    result = None
    while k:
        if k & 1:
            result = _add(result, point)
        point = _add(point, point)
        k >>= 1
    return result


def _recover(message_hash: bytes, r: int, s: int, v: int) -> bytes:
    recid = _recovery_id(v)
    if not (0 < r < _N and 0 < s < _N):
        raise SignatureError("signature scalar out of range")
    x = r + _N if recid & 2 else r
    if x >= _P:
        raise SignatureError("signature does not match a curve point")
    alpha = (pow(x, 3, _P) + 7) % _P
    beta = pow(alpha, (_P + 1) // 4, _P)
    if beta * beta % _P != alpha:
        raise SignatureError("signature does not match a curve point")
    y = beta if beta % 2 == recid & 1 else _P - beta
    e = int.from_bytes(message_hash, "big") % _N
    r_inv = pow(r, -1, _N)
    public = _add(_multiply(-e * r_inv % _N, _G), _multiply(s * r_inv % _N, (x, y)))
    if public is None:
        raise SignatureError("recovered the point at infinity")
    return keccak256(public[0].to_bytes(32, "big") + public[1].to_bytes(32, "big"))[12:]


def recover_address(message_hash: bytes, signature: str | bytes | bytearray) -> bytes:
    """Recover the 20-byte address that signed a 32-byte hash."""
    if len(message_hash) != 32:
        raise SignatureError("message hash must be 32 bytes")
    return _recover(bytes(message_hash), *_parse_signature(signature))


def verify_message_signature(
    message: str, signature: str | bytes | bytearray, owner: str | bytes
) -> bool:
    """Check that ``owner`` signed ``message`` as an Ethereum personal message.

    A signature that cannot be parsed raises SignatureError; one that parses
    but was not made by the owner gives False.
    """
    body = message.encode()
    digest = keccak256(_MESSAGE_PREFIX + str(len(body)).encode() + body)
    r, s, v = _parse_signature(signature)
    owner_bytes = parse_address(owner) if isinstance(owner, str) else bytes(owner)
    try:
        return _recover(digest, r, s, v) == owner_bytes
    except SignatureError:
        return False