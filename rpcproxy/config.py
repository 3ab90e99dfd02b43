"""Service configuration read from prefixed environment variables."""

from __future__ import annotations

import ipaddress
import os
import re
from dataclasses import dataclass, field
from typing import Callable, Mapping, TypeVar

from rpcproxy.errors import InvalidConfiguration

SERVER_PREFIX = "RPC_PROXY_"
POSTGRES_PREFIX = "RPC_PROXY_POSTGRES_"
ANALYTICS_PREFIX = "RPC_PROXY_ANALYTICS_"

DEFAULT_MAX_CONNECTIONS = 10

_UNSIGNED = re.compile(r"\+?[0-9]+")
_U16_MAX = 2**16 - 1

IpAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
_T = TypeVar("_T")


@dataclass(frozen=True)
class ChainId:
    """A CAIP-2 style chain identifier such as ``eip155:1``."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass
class ServerConfig:
    """Listening addresses, logging and geo-blocking settings."""

    host: str = "127.0.0.1"
    port: int = 3000
    prometheus_port: int = 4000
    log_level: str = "INFO"
    external_ip: IpAddress | None = None
    s3_endpoint: str | None = None
    blocked_countries: list[str] = field(default_factory=list)
    geoip_db_bucket: str | None = None
    geoip_db_key: str | None = None


@dataclass
class PostgresConfig:
    """Database connection settings."""

    uri: str
    max_connections: int = DEFAULT_MAX_CONNECTIONS


@dataclass
class AnalyticsConfig:
    """Where analytics records are exported, if anywhere."""

    s3_endpoint: str | None = None
    export_bucket: str | None = None


@dataclass
class Config:
    """The complete service configuration."""

    server: ServerConfig
    postgres: PostgresConfig
    analytics: AnalyticsConfig


def _environ(environ: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def _prefixed(environ: Mapping[str, str], prefix: str) -> dict[str, str]:
    """Variables under a prefix, keyed by the lower-cased remainder of their name."""
    return {
        key[len(prefix):].lower(): value
        for key, value in environ.items()
        if key.startswith(prefix)
    }


def _port(key: str, text: str) -> int:
    if not _UNSIGNED.fullmatch(text):
        raise InvalidConfiguration(f"{key}: invalid digit found in string {text!r}")
    value = int(text)
    if value > _U16_MAX:
        raise InvalidConfiguration(f"{key}: number too large to fit in target type")
    return value


def _ip(key: str, text: str) -> IpAddress:
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        raise InvalidConfiguration(f"{key}: invalid IP address syntax {text!r}") from None


def _list(_key: str, text: str) -> list[str]:
    return [item.strip() for item in text.split(",")]


def _get(
    values: Mapping[str, str],
    key: str,
    convert: Callable[[str, str], _T],
    default: _T,
) -> _T:
    text = values.get(key)
    return default if text is None else convert(key, text)


def load_server_config(environ: Mapping[str, str] | None = None) -> ServerConfig:
    """Read the server settings; unset values keep their defaults."""
    values = _prefixed(_environ(environ), SERVER_PREFIX)
    defaults = ServerConfig()
    return ServerConfig(
        host=values.get("host", defaults.host),
        port=_get(values, "port", _port, defaults.port),
        prometheus_port=_get(values, "prometheus_port", _port, defaults.prometheus_port),
        log_level=values.get("log_level", defaults.log_level),
        external_ip=_get(values, "external_ip", _ip, defaults.external_ip),
        s3_endpoint=values.get("s3_endpoint", defaults.s3_endpoint),
        blocked_countries=_get(values, "blocked_countries", _list, []),
        geoip_db_bucket=values.get("geoip_db_bucket", defaults.geoip_db_bucket),
        geoip_db_key=values.get("geoip_db_key", defaults.geoip_db_key),
    )


def load_postgres_config(environ: Mapping[str, str] | None = None) -> PostgresConfig:
    """Read the database settings; the URI is required."""
    values = _prefixed(_environ(environ), POSTGRES_PREFIX)
    try:
        uri = values["uri"]
    except KeyError:
        raise InvalidConfiguration(f"missing value for field {POSTGRES_PREFIX}URI") from None
    return PostgresConfig(
        uri=uri,
        max_connections=_get(values, "max_connections", _port, DEFAULT_MAX_CONNECTIONS),
    )


def load_analytics_config(environ: Mapping[str, str] | None = None) -> AnalyticsConfig:
    """Read the analytics export settings."""
    values = _prefixed(_environ(environ), ANALYTICS_PREFIX)
    return AnalyticsConfig(
        s3_endpoint=values.get("s3_endpoint"),
        export_bucket=values.get("export_bucket"),
    )


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Read the whole configuration from the environment (or a given mapping)."""
    env = _environ(environ)
    return Config(
        server=load_server_config(env),
        postgres=load_postgres_config(env),
        analytics=load_analytics_config(env),
    )