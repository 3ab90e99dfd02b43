"""Name and address records and the helpers that store them."""

from __future__ import annotations

import enum
import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from rpcproxy.errors import AddressRequired, BadArgument, DatabaseError, NameNotFound


class SupportedNamespace(enum.Enum):
    """Blockchain namespaces that names can hold addresses in."""

    EIP155 = "eip155"

    @property
    def serialized(self) -> str:
        return _NAMESPACE_NAMES[self]


_NAMESPACE_NAMES = {SupportedNamespace.EIP155: "Eip155"}


def _iso(moment: datetime | None) -> str | None:
    if moment is None:
        return None
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Name:
    """A registered name record."""

    name: str
    registered_at: datetime
    updated_at: datetime
    attributes: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "registered_at": _iso(self.registered_at),
            "updated_at": _iso(self.updated_at),
            "attributes": self.attributes,
        }


@dataclass
class Address:
    """An address attached to a name."""

    namespace: SupportedNamespace
    chain_id: str | None
    address: str
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace.serialized,
            # An empty chain id is stored for "no chain" and reported as null.
            "chain_id": self.chain_id or None,
            "address": self.address,
            "created_at": _iso(self.created_at),
        }


@dataclass
class NameAndAddresses:
    """A name record together with all of its addresses."""

    name: str
    registered_at: datetime
    updated_at: datetime
    attributes: dict[str, str] | None = None
    addresses: list[Address] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "registered_at": _iso(self.registered_at),
            "updated_at": _iso(self.updated_at),
            "attributes": self.attributes,
            "addresses": [address.to_dict() for address in self.addresses],
        }


def hashmap_to_hstore(mapping: Mapping[str, str]) -> str:
    """Render a mapping as hstore literal text."""
    return ", ".join(f'"{key}" => "{value}"' for key, value in mapping.items())


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS names (
        name TEXT PRIMARY KEY,
        registered_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        attributes TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS addresses (
        name TEXT NOT NULL,
        namespace TEXT NOT NULL,
        chain_id TEXT NOT NULL DEFAULT '',
        address TEXT NOT NULL,
        created_at TEXT NOT NULL,
        PRIMARY KEY (name, namespace, chain_id, address)
    )
    """,
)

_NAME_COLUMNS = "n.name, n.registered_at, n.updated_at, n.attributes"


def _ensure_schema(conn: sqlite3.Connection) -> None:
    for statement in _SCHEMA:
        conn.execute(statement)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _name_from_row(row: tuple) -> Name:
    name, registered_at, updated_at, attributes = row
    return Name(
        name=name,
        registered_at=datetime.fromisoformat(registered_at),
        updated_at=datetime.fromisoformat(updated_at),
        attributes=None if attributes is None else json.loads(attributes),
    )


def _insert_address_row(
    conn: sqlite3.Connection,
    name: str,
    namespace: SupportedNamespace,
    chain_id: str | None,
    address: str,
) -> int:
    cursor = conn.execute(
        "INSERT INTO addresses (name, namespace, chain_id, address, created_at)"
        " VALUES (?, ?, ?, ?, ?)",
        (name, namespace.value, chain_id or "", address, _now()),
    )
    return cursor.rowcount


def insert_name(
    name: str,
    attributes: Mapping[str, str],
    addresses: Iterable[Address],
    conn: sqlite3.Connection,
) -> None:
    """Register a name with its first addresses in one transaction."""
    addresses = list(addresses)
    if not addresses:
        raise BadArgument("At least one address is required for the new name")
    _ensure_schema(conn)
    now = _now()
    try:
        with conn:
            conn.execute(
                "INSERT INTO names (name, registered_at, updated_at, attributes)"
                " VALUES (?, ?, ?, ?)",
                (name, now, now, json.dumps(dict(attributes))),
            )
            for entry in addresses:
                _insert_address_row(
                    conn, name, entry.namespace, entry.chain_id, entry.address
                )
    except sqlite3.Error as exc:
        raise DatabaseError(str(exc)) from exc


def delete_name(name: str, conn: sqlite3.Connection) -> int:
    """Delete a name; return the number of rows removed."""
    _ensure_schema(conn)
    with conn:
        return conn.execute("DELETE FROM names WHERE name = ?", (name,)).rowcount


def update_name(name: str, attributes: Mapping[str, str], conn: sqlite3.Connection) -> int:
    """Replace a name's attributes; return the number of rows updated."""
    _ensure_schema(conn)
    with conn:
        return conn.execute(
            "UPDATE names SET attributes = ?, updated_at = ? WHERE name = ?",
            (json.dumps(dict(attributes)), _now(), name),
        ).rowcount


def get_name(name: str, conn: sqlite3.Connection) -> Name:
    """Fetch one name record, raising NameNotFound when absent."""
    _ensure_schema(conn)
    row = conn.execute(
        f"SELECT {_NAME_COLUMNS} FROM names n WHERE n.name = ?", (name,)
    ).fetchone()
    if row is None:
        raise NameNotFound(name)
    return _name_from_row(row)


def get_names_by_address(address: str, conn: sqlite3.Connection) -> list[Name]:
    """Return every name that holds the address."""
    _ensure_schema(conn)
    rows = conn.execute(
        f"SELECT {_NAME_COLUMNS} FROM names n"
        " INNER JOIN addresses a ON n.name = a.name WHERE a.address = ?",
        (address,),
    )
    return [_name_from_row(row) for row in rows]


def get_addresses_by_name(name: str, conn: sqlite3.Connection) -> list[Address]:
    """Return all addresses attached to a name."""
    _ensure_schema(conn)
    rows = conn.execute(
        "SELECT namespace, chain_id, address, created_at FROM addresses WHERE name = ?",
        (name,),
    )
    return [
        Address(
            namespace=SupportedNamespace(namespace),
            chain_id=chain_id,
            address=address,
            created_at=None if created_at is None else datetime.fromisoformat(created_at),
        )
        for namespace, chain_id, address, created_at in rows
    ]


def get_names_by_address_and_namespace(
    address: str, namespace: SupportedNamespace, conn: sqlite3.Connection
) -> list[Name]:
    """Return names holding the address within one namespace."""
    _ensure_schema(conn)
    rows = conn.execute(
        f"SELECT {_NAME_COLUMNS} FROM names n"
        " INNER JOIN addresses a ON n.name = a.name"
        " WHERE a.address = ? AND a.namespace = ?",
        (address, namespace.value),
    )
    return [_name_from_row(row) for row in rows]


def get_name_and_addresses_by_name(name: str, conn: sqlite3.Connection) -> NameAndAddresses:
    """Fetch a name record together with its addresses."""
    record = get_name(name, conn)
    return NameAndAddresses(
        name=record.name,
        registered_at=record.registered_at,
        updated_at=record.updated_at,
        attributes=record.attributes,
        addresses=get_addresses_by_name(name, conn),
    )


def delete_address(
    name: str,
    namespace: SupportedNamespace,
    chain_id: str | None,
    address: str,
    conn: sqlite3.Connection,
) -> int:
    """Remove one address from a name, keeping at least one in place."""
    if len(get_addresses_by_name(name, conn)) == 1:
        raise AddressRequired("At least one address is required to exist for the name")
    try:
        with conn:
            return conn.execute(
                "DELETE FROM addresses WHERE name = ? AND namespace = ?"
                " AND chain_id = ? AND address = ?",
                (name, namespace.value, chain_id or "", address),
            ).rowcount
    except sqlite3.Error as exc:
        raise DatabaseError(str(exc)) from exc


def insert_address(
    name: str,
    namespace: SupportedNamespace,
    chain_id: str | None,
    address: str,
    conn: sqlite3.Connection,
) -> int:
    """Attach an address to a name; return the number of rows inserted."""
    _ensure_schema(conn)
    with conn:
        return _insert_address_row(conn, name, namespace, chain_id, address)