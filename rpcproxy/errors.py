"""Errors raised by the service and their HTTP responses."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

_log = logging.getLogger(__name__)


@dataclass
class ErrorReason:
    """One field-level reason for a failed request."""

    field: str
    description: str


@dataclass
class ErrorResponse:
    """The JSON body returned for client-facing errors."""

    status: str
    reasons: list[ErrorReason]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "reasons": [
                {"field": reason.field, "description": reason.description}
                for reason in self.reasons
            ],
        }


def new_error_response(field: str, description: str) -> ErrorResponse:
    """Build a failed response with a single reason."""
    return ErrorResponse(status="FAILED", reasons=[ErrorReason(field, description)])


_UNREACHABLE = "We failed to reach the provider for your request"


class RpcError(Exception):
    """Base of all errors that end a request with an HTTP response."""

    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.message if message is None else message)

    def _reason(self) -> tuple[str, str] | None:
        return None

    def to_response(self) -> tuple[HTTPStatus, dict[str, Any] | str]:
        """Return the HTTP status and body (a JSON object or plain text)."""
        reason = self._reason()
        if reason is None:
            _log.error("Internal server error: %s", self)
            return HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error"
        return self.status, new_error_response(*reason).to_dict()


class InvalidConfiguration(RpcError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid configuration: {detail}")


class ChainNotFound(RpcError):
    message = "Chain not found despite previous validation"


class UnsupportedChain(RpcError):
    status = HTTPStatus.BAD_REQUEST

    def __init__(self, chain_id: str) -> None:
        self.chain_id = chain_id
        super().__init__(
            f"Specified chain is not supported by any of the providers: {chain_id}"
        )

    def _reason(self) -> tuple[str, str]:
        return "chainId", f"We don't support the chainId you provided: {self.chain_id}"


class UnsupportedProvider(RpcError):
    status = HTTPStatus.BAD_REQUEST

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Specified provider is not supported: {provider}")

    def _reason(self) -> tuple[str, str]:
        return "provider", f"Provider {self.provider} is not supported"


class ProviderUnreachable(RpcError):
    status = HTTPStatus.BAD_GATEWAY
    message = "Failed to reach the provider"

    def _reason(self) -> tuple[str, str]:
        return "unreachable", _UNREACHABLE


class Throttled(RpcError):
    status = HTTPStatus.BAD_GATEWAY
    message = "Provider is throttling the requests"

    def _reason(self) -> tuple[str, str]:
        return (
            "throttled",
            "Our provider for this chain this chain is currently throttling our requests. "
            "Please try again.",
        )


class TransportError(RpcError):
    status = HTTPStatus.BAD_GATEWAY

    def __init__(self, detail: str) -> None:
        super().__init__(f"Transport error: {detail}")

    def _reason(self) -> tuple[str, str]:
        return "transport", _UNREACHABLE


class InvalidScheme(RpcError):
    status = HTTPStatus.BAD_REQUEST
    message = "Invalid scheme used. Try http(s):// or ws(s)://"

    def _reason(self) -> tuple[str, str]:
        return "scheme", self.message


class AuthenticationError(RpcError):
    """Project registry, access or project data failures."""

    status = HTTPStatus.UNAUTHORIZED
    message = "Authentication failed"

    def _reason(self) -> tuple[str, str]:
        return "authentication", "We failed to authenticate your request"


class IdentityInvalidAddress(RpcError):
    status = HTTPStatus.BAD_REQUEST
    message = "Invalid address"

    def _reason(self) -> tuple[str, str]:
        return "address", "The address provided is invalid"


class QuotaLimitReached(RpcError):
    status = HTTPStatus.TOO_MANY_REQUESTS
    message = "Quota limit reached"

    def _reason(self) -> tuple[str, str]:
        return "address", "Project's quota limit reached"


class DatabaseError(Exception):
    """Failure in a database helper."""


class BadArgument(DatabaseError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Bad argument were provided for the database helper: {detail}")


class AddressRequired(DatabaseError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Address required: {detail}")


class NameNotFound(DatabaseError):
    """No row exists for the requested name."""

    def __init__(self, name: str) -> None:
        self.missing_name = name
        super().__init__(f"Name not found: {name}")