"""In-memory storage backend for flowershop."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Iterator

from ..errors import (
    DuplicateFlowerError,
    FlowerNotFoundError,
    NoteNotFoundError,
    OrderNotFoundError,
    UserExistsError,
    UserNotFoundError,
)
from ..inventory import consume, restore
from ..models import (
    ORDER_FIELDS,
    FlowerStock,
    LineItem,
    NewOrder,
    Note,
    Order,
    OrderItem,
    OrderStatus,
    User,
    Writeoff,
    _utc_now,
    as_utc,
)

logger = logging.getLogger(__name__)

_TABLES = ("users", "warehouse", "writeoffs", "notes", "orders", "order_items")


class MemStorage:
    """Dict-backed storage. Records live only as long as the instance.

    Ids are assigned per table starting at 1 and are not reused after
    deletion. Returned records are copies, so callers cannot mutate stored
    state.

    Stored records are never modified in place: an update stores a new
    record under the same id. That lets a transaction snapshot a table with
    a shallow dict copy and restore it if anything raises.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tables: dict[str, dict[int, Any]] = {name: {} for name in _TABLES}
        self._next_ids: dict[str, int] = {name: 1 for name in _TABLES}

    @contextmanager
    def _transaction(self, *tables: str) -> Iterator[None]:
        """Run a read-modify-write sequence atomically.

        Every table the sequence writes to must be named.
        """
        with self._lock:
            snapshot = {name: dict(self._tables[name]) for name in tables}
            next_ids = dict(self._next_ids)
            try:
                yield
            except Exception as e:
                self._tables.update(snapshot)
                self._next_ids = next_ids
                logger.debug("transaction rolled back: %s", type(e).__name__)
                raise

    def _next_id(self, table: str) -> int:
        next_id = self._next_ids[table]
        self._next_ids[table] = next_id + 1
        return next_id

    def _put(self, table: str, record: Any) -> Any:
        self._tables[table][record.id] = record
        return replace(record)

    # --- Users ---

    def get_user(self, user_id: int) -> User:
        with self._lock:
            user = self._tables["users"].get(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            return replace(user)

    def get_user_by_username(self, username: str) -> User | None:
        with self._lock:
            for user in self._tables["users"].values():
                if user.username == username:
                    return replace(user)
            return None

    def create_user(self, username: str, password: str) -> User:
        with self._transaction("users"):
            if self.get_user_by_username(username) is not None:
                raise UserExistsError(username)
            user = User(id=self._next_id("users"), username=username, password=password)
            return self._put("users", user)

    # --- Warehouse ---

    def _find_stock(self, name: str) -> FlowerStock | None:
        for stock in self._tables["warehouse"].values():
            if stock.flower == name:
                return stock
        return None

    def list_flowers(self) -> list[FlowerStock]:
        with self._lock:
            return [replace(s) for s in sorted(self._tables["warehouse"].values(), key=lambda s: s.id)]

    def get_flower(self, flower_id: int) -> FlowerStock:
        with self._lock:
            stock = self._tables["warehouse"].get(flower_id)
            if stock is None:
                raise FlowerNotFoundError(flower_id)
            return replace(stock)

    def get_flower_by_name(self, name: str) -> FlowerStock | None:
        with self._lock:
            stock = self._find_stock(name)
            return replace(stock) if stock is not None else None

    def add_flowers(self, name: str, amount: int) -> FlowerStock:
        with self._transaction("warehouse"):
            stock = self._find_stock(name)
            if stock is not None:
                stock = replace(stock, amount=stock.amount + amount, date_time=_utc_now())
                logger.info("Restocked %r: +%d (now %d)", name, amount, stock.amount)
                return self._put("warehouse", stock)

            stock = FlowerStock(
                id=self._next_id("warehouse"),
                flower=name,
                amount=amount,
                date_time=_utc_now(),
            )
            logger.info("Added %r to warehouse with %d unit(s)", name, amount)
            return self._put("warehouse", stock)

    def update_flower(
        self, flower_id: int, flower: str | None = None, amount: int | None = None
    ) -> FlowerStock:
        with self._transaction("warehouse"):
            stock = self._tables["warehouse"].get(flower_id)
            if stock is None:
                raise FlowerNotFoundError(flower_id)
            changes: dict[str, Any] = {"date_time": _utc_now()}
            if flower is not None and flower != stock.flower:
                if self._find_stock(flower) is not None:
                    raise DuplicateFlowerError(flower)
                changes["flower"] = flower
            if amount is not None:
                changes["amount"] = amount
            return self._put("warehouse", replace(stock, **changes))

    def _consume(self, name: str, amount: int, reason: str) -> int:
        """Take stock for `name` and return the units actually removed."""
        stock = self._find_stock(name)
        result = consume(name, stock.amount if stock else None, amount, reason)
        if stock is not None and result.after is not None:
            self._put("warehouse", replace(stock, amount=result.after, date_time=_utc_now()))
        return result.applied

    def _restore(self, name: str, amount: int, reason: str) -> None:
        stock = self._find_stock(name)
        new_amount = restore(name, stock.amount if stock else None, amount, reason)
        if stock is not None and new_amount is not None:
            self._put("warehouse", replace(stock, amount=new_amount, date_time=_utc_now()))

    # --- Write-offs ---

    def list_writeoffs(self) -> list[Writeoff]:
        with self._lock:
            return [replace(w) for w in _newest_first(self._tables["writeoffs"].values())]

    def add_writeoff(self, name: str, amount: int) -> Writeoff:
        with self._transaction("writeoffs", "warehouse"):
            writeoff = Writeoff(
                id=self._next_id("writeoffs"),
                flower=name,
                amount=amount,
                date_time=_utc_now(),
            )
            self._consume(name, amount, f"write-off {writeoff.id}")
            return self._put("writeoffs", writeoff)

    # --- Notes ---

    def list_notes(self) -> list[Note]:
        with self._lock:
            return [replace(n) for n in _newest_first(self._tables["notes"].values())]

    def get_note(self, note_id: int) -> Note:
        with self._lock:
            note = self._tables["notes"].get(note_id)
            if note is None:
                raise NoteNotFoundError(note_id)
            return replace(note)

    def add_note(self, title: str, content: str) -> Note:
        with self._transaction("notes"):
            note = Note(
                id=self._next_id("notes"),
                title=title,
                content=content,
                date_time=_utc_now(),
            )
            return self._put("notes", note)

    def update_note(
        self, note_id: int, title: str | None = None, content: str | None = None
    ) -> Note:
        with self._transaction("notes"):
            note = self._tables["notes"].get(note_id)
            if note is None:
                raise NoteNotFoundError(note_id)
            changes: dict[str, Any] = {"date_time": _utc_now()}
            if title is not None:
                changes["title"] = title
            if content is not None:
                changes["content"] = content
            return self._put("notes", replace(note, **changes))

    def delete_note(self, note_id: int) -> bool:
        with self._transaction("notes"):
            return self._tables["notes"].pop(note_id, None) is not None

    # --- Orders ---

    def list_orders(self) -> list[Order]:
        with self._lock:
            return [replace(o) for o in _newest_first(self._tables["orders"].values())]

    def get_order(self, order_id: int) -> Order:
        with self._lock:
            order = self._tables["orders"].get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            return replace(order)

    def create_order(self, order: NewOrder, items: list[LineItem]) -> Order:
        with self._transaction("orders", "order_items", "warehouse"):
            record = Order(
                id=self._next_id("orders"),
                from_=order.from_,
                to=order.to,
                address=order.address,
                date_time=as_utc(order.date_time),
                notes=order.notes,
                status=order.status or OrderStatus.NEW,
            )
            self._tables["orders"][record.id] = record
            for item in items:
                self._insert_item(record.id, item)
            logger.info("Created order %d with %d item(s)", record.id, len(items))
            return replace(record)

    def update_order_status(self, order_id: int, status: OrderStatus) -> Order:
        with self._transaction("orders"):
            order = self._tables["orders"].get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            return self._put("orders", replace(order, status=OrderStatus(status)))

    def update_order(
        self,
        order_id: int,
        changes: dict[str, Any],
        items: list[LineItem] | None = None,
    ) -> Order:
        unknown = set(changes) - ORDER_FIELDS
        if unknown:
            raise ValueError(f"Unknown order fields: {', '.join(sorted(unknown))}")

        with self._transaction("orders", "order_items", "warehouse"):
            order = self._tables["orders"].get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)

            fields = dict(changes)
            if "date_time" in fields:
                fields["date_time"] = as_utc(fields["date_time"])
            if "status" in fields:
                fields["status"] = OrderStatus(fields["status"])
            order = replace(order, **fields)
            self._tables["orders"][order_id] = order

            if items:
                reason = f"order {order_id} edit"
                old_items = [
                    i for i in self._tables["order_items"].values() if i.order_id == order_id
                ]
                for old in old_items:
                    self._restore(old.flower, old.consumed, reason)
                    del self._tables["order_items"][old.id]
                for item in items:
                    self._insert_item(order_id, item)
                logger.info(
                    "Replaced %d item(s) of order %d with %d item(s)",
                    len(old_items), order_id, len(items),
                )
            return replace(order)

    def delete_order(self, order_id: int) -> Order:
        return self.update_order_status(order_id, OrderStatus.DELETED)

    # --- Order items ---

    def _insert_item(self, order_id: int, item: LineItem) -> OrderItem:
        item_id = self._next_id("order_items")
        consumed = self._consume(item.flower, item.amount, f"order {order_id}")
        record = OrderItem(
            id=item_id,
            order_id=order_id,
            flower=item.flower,
            amount=item.amount,
            consumed=consumed,
        )
        self._tables["order_items"][record.id] = record
        return record

    def list_order_items(self, order_id: int) -> list[OrderItem]:
        with self._lock:
            return [
                replace(i)
                for i in sorted(self._tables["order_items"].values(), key=lambda i: i.id)
                if i.order_id == order_id
            ]

    def create_order_item(self, order_id: int, item: LineItem) -> OrderItem:
        with self._transaction("order_items", "warehouse"):
            if order_id not in self._tables["orders"]:
                raise OrderNotFoundError(order_id)
            return replace(self._insert_item(order_id, item))

    def delete_order_item(self, item_id: int) -> bool:
        with self._transaction("order_items"):
            return self._tables["order_items"].pop(item_id, None) is not None


def _newest_first(records):
    return sorted(records, key=lambda r: (r.date_time, r.id), reverse=True)
