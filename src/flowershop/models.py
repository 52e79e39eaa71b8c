"""Data models for flowershop."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def _utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: datetime) -> str:
    """Format a datetime as ISO 8601 with a trailing Z."""
    return as_utc(value).isoformat().replace("+00:00", "Z")


class OrderStatus(str, Enum):
    """Delivery lifecycle of an order.

    The forward path is New -> Assembled -> Sent -> Finished. Deleted can be
    reached from any state. Storage accepts any value unconditionally; next()
    only describes the forward path for clients.
    """

    NEW = "New"
    ASSEMBLED = "Assembled"
    SENT = "Sent"
    FINISHED = "Finished"
    DELETED = "Deleted"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.FINISHED, OrderStatus.DELETED)

    def next(self) -> "OrderStatus | None":
        """Return the forward successor, or None for terminal states."""
        return _FORWARD.get(self)


_FORWARD: dict[OrderStatus, OrderStatus] = {
    OrderStatus.NEW: OrderStatus.ASSEMBLED,
    OrderStatus.ASSEMBLED: OrderStatus.SENT,
    OrderStatus.SENT: OrderStatus.FINISHED,
}


@dataclass
class FlowerStock:
    """Warehouse stock for one flower name. The name is the natural key."""

    id: int
    flower: str
    amount: int
    date_time: datetime  # last updated

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "flower": self.flower,
            "amount": self.amount,
            "dateTime": _iso(self.date_time),
        }


@dataclass
class Writeoff:
    """Disposal log entry. References stock by flower name only."""

    id: int
    flower: str
    amount: int
    date_time: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "flower": self.flower,
            "amount": self.amount,
            "dateTime": _iso(self.date_time),
        }


@dataclass
class Note:
    id: int
    title: str
    content: str
    date_time: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "dateTime": _iso(self.date_time),
        }


@dataclass
class Order:
    """A customer order. date_time is the scheduled delivery time."""

    id: int
    from_: str
    to: str
    address: str
    date_time: datetime
    notes: str | None = None
    status: OrderStatus = OrderStatus.NEW

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from": self.from_,
            "to": self.to,
            "address": self.address,
            "dateTime": _iso(self.date_time),
            "notes": self.notes,
            "status": self.status.value,
        }


@dataclass
class OrderItem:
    """A flower line on an order.

    `consumed` is the number of units actually taken from stock for the line.
    It is less than `amount` when stock ran out, and 0 when no stock record
    matched the name.
    """

    id: int
    order_id: int
    flower: str
    amount: int
    consumed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "flower": self.flower,
            "amount": self.amount,
        }


@dataclass
class User:
    id: int
    username: str
    password: str

    def to_dict(self) -> dict[str, Any]:
        # Password is never serialized.
        return {"id": self.id, "username": self.username}


@dataclass(frozen=True)
class LineItem:
    """Requested flower and amount for an order line."""

    flower: str
    amount: int


@dataclass(frozen=True)
class NewOrder:
    """Fields for creating an order."""

    from_: str
    to: str
    address: str
    date_time: datetime
    notes: str | None = None
    status: OrderStatus | None = None


# Order fields that update_order accepts in its changes mapping
ORDER_FIELDS = frozenset({"from_", "to", "address", "date_time", "notes", "status"})
