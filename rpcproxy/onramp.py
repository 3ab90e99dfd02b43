"""Building Coinbase Pay on-ramp URLs from client requests."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import quote, quote_plus, urlsplit

CB_PAY_HOST = "https://pay.coinbase.com"
CB_PAY_PATH = "/buy/select-asset"

_PARTNER_ID_MIN = 32
_PARTNER_ID_MAX = 50


class OnRampValidationError(ValueError):
    """Raised when an on-ramp request is malformed or fails validation."""


class ExperienceType(enum.Enum):
    """The screen the on-ramp flow opens with."""

    SEND = "send"
    BUY = "buy"

    def __str__(self) -> str:
        return self.value


@dataclass
class DestinationWallet:
    """A wallet that purchased assets are sent to."""

    address: str
    blockchains: list[str] | None = None
    assets: list[str] | None = None
    supported_networks: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"address": self.address}
        for key in ("blockchains", "assets", "supported_networks"):
            value = getattr(self, key)
            if value is not None:
                result[key] = list(value)
        return result


@dataclass
class OnRampURLRequest:
    """Parameters of an on-ramp URL, as taken by the pay SDK."""

    destination_wallets: list[DestinationWallet]
    partner_user_id: str
    app_id: str = ""
    default_network: str | None = None
    preset_crypto_amount: int | None = None
    preset_fiat_amount: int | None = None
    default_experience: ExperienceType | None = None
    handling_requested_urls: bool | None = None
    _extra: dict = field(default_factory=dict, repr=False, compare=False)

    def validate(self) -> None:
        """Raise OnRampValidationError if the request breaks a field constraint."""
        if len(self.destination_wallets) < 1:
            raise OnRampValidationError("destinationWallets: at least one wallet is required")
        length = len(self.partner_user_id)
        if not _PARTNER_ID_MIN <= length <= _PARTNER_ID_MAX:
            raise OnRampValidationError(
                f"partnerUserId: length must be between {_PARTNER_ID_MIN} "
                f"and {_PARTNER_ID_MAX}, got {length}"
            )


def _required(obj: Mapping[str, Any], key: str) -> Any:
    value = obj.get(key)
    if value is None:
        raise OnRampValidationError(f"missing field `{key}`")
    return value


def _string(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise OnRampValidationError(f"field `{key}` must be a string")
    return value


def _optional_string(obj: Mapping[str, Any], key: str) -> str | None:
    value = obj.get(key)
    return None if value is None else _string(value, key)


def _optional_strings(obj: Mapping[str, Any], key: str) -> list[str] | None:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise OnRampValidationError(f"field `{key}` must be an array")
    return [_string(item, key) for item in value]


def _optional_amount(obj: Mapping[str, Any], key: str) -> int | None:
    value = obj.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise OnRampValidationError(f"field `{key}` must be a non-negative integer")
    return value


def _wallet(value: Any) -> DestinationWallet:
    if not isinstance(value, Mapping):
        raise OnRampValidationError("destination wallet must be an object")
    return DestinationWallet(
        address=_string(_required(value, "address"), "address"),
        blockchains=_optional_strings(value, "blockchains"),
        assets=_optional_strings(value, "assets"),
        supported_networks=_optional_strings(value, "supported_networks"),
    )


def parse_on_ramp_request(
    data: str | bytes | bytearray | Mapping[str, Any], app_id: str
) -> OnRampURLRequest:
    """Read a request body and attach the configured app id (any appId in the body is ignored)."""
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise OnRampValidationError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise OnRampValidationError("request body must be a JSON object")

    wallets = _required(data, "destinationWallets")
    if not isinstance(wallets, list):
        raise OnRampValidationError("field `destinationWallets` must be an array")

    experience = data.get("defaultExperience")
    if experience is not None:
        try:
            experience = ExperienceType(experience)
        except ValueError:
            raise OnRampValidationError(
                f"unknown variant `{experience}`, expected `send` or `buy`"
            ) from None

    handling = data.get("handlingRequestedUrls")
    if handling is not None and not isinstance(handling, bool):
        raise OnRampValidationError("field `handlingRequestedUrls` must be a boolean")

    return OnRampURLRequest(
        destination_wallets=[_wallet(item) for item in wallets],
        partner_user_id=_string(_required(data, "partnerUserId"), "partnerUserId"),
        app_id=app_id,
        default_network=_optional_string(data, "defaultNetwork"),
        preset_crypto_amount=_optional_amount(data, "presetCryptoAmount"),
        preset_fiat_amount=_optional_amount(data, "presetFiatAmount"),
        default_experience=experience,
        handling_requested_urls=handling,
    )


def _form_encode(text: str) -> str:
    return quote_plus(text, safe="*").replace("~", "%7E")


def generate_on_ramp_url(host: str, path: str, parameters: OnRampURLRequest) -> str:
    """Build the on-ramp URL with the request's parameters in the query string."""
    base = urlsplit(host)
    if not base.scheme or not base.netloc:
        raise ValueError(f"invalid base URL: {host!r}")
    if not path.startswith("/"):
        path = "/" + path

    wallets = json.dumps(
        [wallet.to_dict() for wallet in parameters.destination_wallets],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    pairs: list[tuple[str, str]] = [
        ("appId", parameters.app_id),
        ("destinationWallets", wallets),
        ("partnerUserId", parameters.partner_user_id),
    ]
    if parameters.default_network is not None:
        pairs.append(("defaultNetwork", parameters.default_network))
    if parameters.preset_crypto_amount is not None:
        pairs.append(("presetCryptoAmount", str(parameters.preset_crypto_amount)))
    if parameters.preset_fiat_amount is not None:
        pairs.append(("presetFiatAmount", str(parameters.preset_fiat_amount)))
    if parameters.default_experience is not None:
        pairs.append(("defaultExperience", str(parameters.default_experience)))
    if parameters.handling_requested_urls is not None:
        pairs.append(
            ("handlingRequestedUrls", "true" if parameters.handling_requested_urls else "false")
        )

    query = "&".join(f"{_form_encode(key)}={_form_encode(value)}" for key, value in pairs)
    if base.query:
        query = f"{base.query}&{query}"
    url = f"{base.scheme.lower()}://{base.netloc}{quote(path, safe="/:@!$&'()*+,;=%~")}?{query}"
    if base.fragment:
        url = f"{url}#{base.fragment}"
    return url