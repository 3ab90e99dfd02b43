"""Name profile endpoints: forward lookup, registration and reverse lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

from rpcproxy.database import (
    Address,
    SupportedNamespace,
    get_name_and_addresses_by_name,
    get_names_by_address,
    insert_name,
)
from rpcproxy.errors import NameNotFound
from rpcproxy.signature import (
    RegisterPayload,
    RegisterRequest,
    SignatureError,
    parse_address,
    verify_message_signature,
)

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    """An HTTP status with a body: plain text, or JSON-ready data."""

    status: HTTPStatus
    body: Any = ""


def _internal_error(body: str = "") -> Response:
    return Response(HTTPStatus.INTERNAL_SERVER_ERROR, body)


def lookup_profile(name: str, conn: Any) -> Response:
    """Return the name record and its addresses, or 404 if it is not registered."""
    try:
        record = get_name_and_addresses_by_name(name, conn)
    except NameNotFound:
        return Response(HTTPStatus.NOT_FOUND, "Name is not registered")
    except Exception as err:
        _log.error("Failed to lookup name: %s", err)
        return _internal_error()
    return Response(HTTPStatus.OK, record.to_dict())


def register_profile(name: str, body: str | bytes | bytearray, conn: Any) -> Response:
    """Register a name for the address that signed the registration payload."""
    try:
        request = RegisterRequest.from_json(body)
    except ValueError as err:
        _log.info("Failed to deserialize register request: %s", err)
        return Response(HTTPStatus.BAD_REQUEST, "")

    raw_payload = request.message
    try:
        payload = RegisterPayload.from_json(raw_payload)
    except ValueError as err:
        _log.info("Failed to deserialize register payload: %s", err)
        return Response(HTTPStatus.BAD_REQUEST, "")

    if payload.name != name:
        return Response(HTTPStatus.BAD_REQUEST, "Name in payload and path are not equal")

    if payload.address != request.address:
        return Response(
            HTTPStatus.BAD_REQUEST,
            "Address in payload request and message are not equal",
        )

    try:
        get_name_and_addresses_by_name(name, conn)
    except Exception:
        pass
    else:
        _log.info("Registration request for registered name %s", name)
        return Response(HTTPStatus.BAD_REQUEST, "Name is already registered")

    try:
        owner = parse_address(request.address)
    except ValueError as err:
        _log.info("Failed to parse H160 address: %s", err)
        return Response(HTTPStatus.BAD_REQUEST, "Invalid H160 address format")

    try:
        signature_ok = verify_message_signature(raw_payload, request.signature, owner)
    except SignatureError as err:
        _log.info("Invalid signature: %s", err)
        return Response(HTTPStatus.UNAUTHORIZED, "Invalid signature or message format")
    if not signature_ok:
        return Response(HTTPStatus.UNAUTHORIZED, "Signature verification error")

    addresses = [
        Address(
            namespace=SupportedNamespace("eip155"),
            chain_id=None,
            address=request.address,
            created_at=None,
        )
    ]
    try:
        insert_name(name, {}, addresses, conn)
    except Exception as err:
        _log.error("Failed to insert new name: %s", err)
        return _internal_error()

    try:
        record = get_name_and_addresses_by_name(name, conn)
    except NameNotFound as err:
        _log.error("New registered name is not found in the database: %s", err)
        return _internal_error("Name is not registered")
    except Exception as err:
        _log.error("Error on lookup new registered name: %s", err)
        return _internal_error("Name is not registered")
    return Response(HTTPStatus.OK, record.to_dict())


def reverse_lookup(address: str, conn: Any) -> Response:
    """Return every name registered for an address, with their addresses."""
    try:
        names = get_names_by_address(address, conn)
    except Exception as err:
        _log.error("Error on get names by address: %s", err)
        return _internal_error()

    if not names:
        return Response(HTTPStatus.NOT_FOUND, "No rigistered names for the address")

    result = []
    for name in names:
        try:
            result.append(get_name_and_addresses_by_name(name.name, conn).to_dict())
        except Exception as err:
            _log.error(
                "Unexpected behavior when looking up a name for an address: %s", err
            )
            return _internal_error()
    return Response(HTTPStatus.OK, result)