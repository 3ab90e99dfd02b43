"""Transaction history of an account as returned by the history providers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

_U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class HistoryQueryParams:
    """Query parameters of a history request."""

    project_id: str
    currency: str | None = None
    cursor: str | None = None
    onramp: str | None = None


@dataclass(frozen=True)
class _MediaItem:
    url: str
    content_type: str | None = None


@dataclass(frozen=True)
class _NFTContent:
    preview: _MediaItem | None = None
    detail: _MediaItem | None = None


@dataclass(frozen=True)
class HistoryTransactionFungibleInfo:
    """Token details of a fungible transfer."""

    name: str | None = None
    symbol: str | None = None
    icon_url: str | None = None


@dataclass(frozen=True)
class HistoryTransactionNFTInfo:
    """Token details of an NFT transfer."""

    name: str | None = None
    content: _NFTContent | None = None
    is_spam: bool = False


@dataclass(frozen=True)
class HistoryTransactionTransfer:
    """One asset movement within a transaction."""

    direction: str
    quantity: str
    fungible_info: HistoryTransactionFungibleInfo | None = None
    nft_info: HistoryTransactionNFTInfo | None = None
    value: float | None = None
    price: float | None = None


@dataclass(frozen=True)
class HistoryTransactionMetadata:
    """Chain-level facts about a transaction."""

    operation_type: str
    hash: str
    mined_at: str
    sent_from: str
    sent_to: str
    status: str
    nonce: int


@dataclass(frozen=True)
class HistoryTransaction:
    """A transaction and the transfers it made."""

    id: str
    metadata: HistoryTransactionMetadata
    transfers: list[HistoryTransactionTransfer] | None = None


@dataclass(frozen=True)
class HistoryResponseBody:
    """A page of transactions and the cursor of the next page."""

    data: list[HistoryTransaction] = field(default_factory=list)
    next: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [_transaction_to_dict(tx) for tx in self.data],
            "next": self.next,
        }

    def _transfers(self):
        for transaction in self.data:
            yield from transaction.transfers or ()

    def transfers_count(self) -> int:
        """Number of transfers across all transactions."""
        return sum(1 for _ in self._transfers())

    def fungibles_count(self) -> int:
        """Number of transfers that moved a fungible token."""
        return sum(1 for t in self._transfers() if t.fungible_info is not None)

    def nft_count(self) -> int:
        """Number of transfers that moved an NFT."""
        return sum(1 for t in self._transfers() if t.nft_info is not None)


def _media_to_dict(item: _MediaItem | None) -> dict[str, Any] | None:
    if item is None:
        return None
    return {"url": item.url, "content_type": item.content_type}


def _transfer_to_dict(transfer: HistoryTransactionTransfer) -> dict[str, Any]:
    fungible = transfer.fungible_info
    nft = transfer.nft_info
    return {
        "fungible_info": None
        if fungible is None
        else {
            "name": fungible.name,
            "symbol": fungible.symbol,
            "icon": None if fungible.icon_url is None else {"url": fungible.icon_url},
        },
        "nft_info": None
        if nft is None
        else {
            "name": nft.name,
            "content": None
            if nft.content is None
            else {
                "preview": _media_to_dict(nft.content.preview),
                "detail": _media_to_dict(nft.content.detail),
            },
            "flags": {"is_spam": nft.is_spam},
        },
        "direction": transfer.direction,
        "quantity": {"numeric": transfer.quantity},
        "value": transfer.value,
        "price": transfer.price,
    }


def _transaction_to_dict(transaction: HistoryTransaction) -> dict[str, Any]:
    meta = transaction.metadata
    return {
        "id": transaction.id,
        "metadata": {
            "operationType": meta.operation_type,
            "hash": meta.hash,
            "minedAt": meta.mined_at,
            "sentFrom": meta.sent_from,
            "sentTo": meta.sent_to,
            "status": meta.status,
            "nonce": meta.nonce,
        },
        "transfers": None
        if transaction.transfers is None
        else [_transfer_to_dict(t) for t in transaction.transfers],
    }


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"`{what}` must be an object")
    return value


def _required(obj: Mapping[str, Any], key: str) -> Any:
    value = obj.get(key)
    if value is None:
        raise ValueError(f"missing field `{key}`")
    return value


def _text(obj: Mapping[str, Any], key: str, *, optional: bool = False) -> str | None:
    value = obj.get(key) if optional else _required(obj, key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


def _number(obj: Mapping[str, Any], key: str) -> float | None:
    value = obj.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field `{key}` must be a number")
    return float(value)


def _unsigned(obj: Mapping[str, Any], key: str) -> int:
    value = _required(obj, key)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U64_MAX:
        raise ValueError(f"field `{key}` must be an unsigned integer")
    return value


def _flag(obj: Mapping[str, Any], key: str) -> bool:
    value = _required(obj, key)
    if not isinstance(value, bool):
        raise ValueError(f"field `{key}` must be a boolean")
    return value


def _parse_media(value: Any, key: str) -> _MediaItem | None:
    if value is None:
        return None
    obj = _mapping(value, key)
    return _MediaItem(url=_text(obj, "url"), content_type=_text(obj, "content_type", optional=True))


def _parse_fungible(value: Any) -> HistoryTransactionFungibleInfo | None:
    if value is None:
        return None
    obj = _mapping(value, "fungible_info")
    icon = obj.get("icon")
    return HistoryTransactionFungibleInfo(
        name=_text(obj, "name", optional=True),
        symbol=_text(obj, "symbol", optional=True),
        icon_url=None if icon is None else _text(_mapping(icon, "icon"), "url"),
    )


def _parse_nft(value: Any) -> HistoryTransactionNFTInfo | None:
    if value is None:
        return None
    obj = _mapping(value, "nft_info")
    content = obj.get("content")
    if content is not None:
        content_obj = _mapping(content, "content")
        content = _NFTContent(
            preview=_parse_media(content_obj.get("preview"), "preview"),
            detail=_parse_media(content_obj.get("detail"), "detail"),
        )
    flags = _mapping(_required(obj, "flags"), "flags")
    return HistoryTransactionNFTInfo(
        name=_text(obj, "name", optional=True),
        content=content,
        is_spam=_flag(flags, "is_spam"),
    )


def _parse_transfer(value: Any) -> HistoryTransactionTransfer:
    obj = _mapping(value, "transfer")
    quantity = _mapping(_required(obj, "quantity"), "quantity")
    return HistoryTransactionTransfer(
        direction=_text(obj, "direction"),
        quantity=_text(quantity, "numeric"),
        fungible_info=_parse_fungible(obj.get("fungible_info")),
        nft_info=_parse_nft(obj.get("nft_info")),
        value=_number(obj, "value"),
        price=_number(obj, "price"),
    )


def _parse_transaction(value: Any) -> HistoryTransaction:
    obj = _mapping(value, "transaction")
    meta = _mapping(_required(obj, "metadata"), "metadata")
    transfers = obj.get("transfers")
    if transfers is not None:
        if not isinstance(transfers, list):
            raise ValueError("field `transfers` must be an array")
        transfers = [_parse_transfer(item) for item in transfers]
    return HistoryTransaction(
        id=_text(obj, "id"),
        metadata=HistoryTransactionMetadata(
            operation_type=_text(meta, "operationType"),
            hash=_text(meta, "hash"),
            mined_at=_text(meta, "minedAt"),
            sent_from=_text(meta, "sentFrom"),
            sent_to=_text(meta, "sentTo"),
            status=_text(meta, "status"),
            nonce=_unsigned(meta, "nonce"),
        ),
        transfers=transfers,
    )


def parse_history_response(data: str | bytes | bytearray | Mapping[str, Any]) -> HistoryResponseBody:
    """Parse a history page from JSON text or a decoded object; raise ValueError if malformed."""
    if isinstance(data, (str, bytes, bytearray)):
        data = json.loads(data)
    obj = _mapping(data, "response")
    items = _required(obj, "data")
    if not isinstance(items, list):
        raise ValueError("field `data` must be an array")
    return HistoryResponseBody(
        data=[_parse_transaction(item) for item in items],
        next=_text(obj, "next", optional=True),
    )