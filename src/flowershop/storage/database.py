"""Relational storage backend for flowershop (SQLAlchemy)."""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..errors import (
    DuplicateFlowerError,
    FlowerNotFoundError,
    NoteNotFoundError,
    OrderNotFoundError,
    StorageError,
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
from .tables import (
    NoteRow,
    OrderItemRow,
    OrderRow,
    UserRow,
    WarehouseRow,
    WriteoffRow,
    create_tables,
    make_engine,
    session_scope,
)

logger = logging.getLogger(__name__)


def _stock(row: WarehouseRow) -> FlowerStock:
    return FlowerStock(id=row.id, flower=row.flower, amount=row.amount, date_time=as_utc(row.date_time))


def _writeoff(row: WriteoffRow) -> Writeoff:
    return Writeoff(id=row.id, flower=row.flower, amount=row.amount, date_time=as_utc(row.date_time))


def _note(row: NoteRow) -> Note:
    return Note(id=row.id, title=row.title, content=row.content, date_time=as_utc(row.date_time))


def _order(row: OrderRow) -> Order:
    return Order(
        id=row.id,
        from_=row.from_,
        to=row.to,
        address=row.address,
        date_time=as_utc(row.date_time),
        notes=row.notes,
        status=OrderStatus(row.status),
    )


def _item(row: OrderItemRow) -> OrderItem:
    return OrderItem(
        id=row.id,
        order_id=row.order_id,
        flower=row.flower,
        amount=row.amount,
        consumed=row.consumed,
    )


def _user(row: UserRow) -> User:
    return User(id=row.id, username=row.username, password=row.password)


class DatabaseStorage:
    """Storage backed by a relational database.

    Each public operation runs in its own transaction, so a composite write
    (order + items + stock updates) commits or rolls back as a whole. Stock
    rows are selected FOR UPDATE on dialects that support it, which
    serializes concurrent deductions from the same flower.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "DatabaseStorage":
        """Create storage for a URL and make sure the tables exist."""
        engine = make_engine(database_url, echo=echo)
        create_tables(engine)
        return cls(engine)

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            with session_scope(self._factory) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("Database error during %s", operation, exc_info=True)
            raise StorageError(operation, type(e).__name__) from e

    # --- Users ---

    def get_user(self, user_id: int) -> User:
        with self._session("get_user") as session:
            row = session.get(UserRow, user_id)
            if row is None:
                raise UserNotFoundError(user_id)
            return _user(row)

    def get_user_by_username(self, username: str) -> User | None:
        with self._session("get_user_by_username") as session:
            row = session.scalars(select(UserRow).where(UserRow.username == username)).first()
            return _user(row) if row is not None else None

    def create_user(self, username: str, password: str) -> User:
        with self._session("create_user") as session:
            exists = session.scalars(select(UserRow).where(UserRow.username == username)).first()
            if exists is not None:
                raise UserExistsError(username)
            row = UserRow(username=username, password=password)
            session.add(row)
            session.flush()
            return _user(row)

    # --- Warehouse ---

    @staticmethod
    def _find_stock(session: Session, name: str, lock: bool = False) -> WarehouseRow | None:
        stmt = select(WarehouseRow).where(WarehouseRow.flower == name)
        if lock:
            stmt = stmt.with_for_update()
        return session.scalars(stmt).first()

    def list_flowers(self) -> list[FlowerStock]:
        with self._session("list_flowers") as session:
            rows = session.scalars(select(WarehouseRow).order_by(WarehouseRow.id))
            return [_stock(r) for r in rows]

    def get_flower(self, flower_id: int) -> FlowerStock:
        with self._session("get_flower") as session:
            row = session.get(WarehouseRow, flower_id)
            if row is None:
                raise FlowerNotFoundError(flower_id)
            return _stock(row)

    def get_flower_by_name(self, name: str) -> FlowerStock | None:
        with self._session("get_flower_by_name") as session:
            row = self._find_stock(session, name)
            return _stock(row) if row is not None else None

    def add_flowers(self, name: str, amount: int) -> FlowerStock:
        with self._session("add_flowers") as session:
            row = self._find_stock(session, name, lock=True)
            if row is not None:
                row.amount += amount
                row.date_time = _utc_now()
                logger.info("Restocked %r: +%d (now %d)", name, amount, row.amount)
            else:
                row = WarehouseRow(flower=name, amount=amount, date_time=_utc_now())
                session.add(row)
                logger.info("Added %r to warehouse with %d unit(s)", name, amount)
            session.flush()
            return _stock(row)

    def update_flower(
        self, flower_id: int, flower: str | None = None, amount: int | None = None
    ) -> FlowerStock:
        with self._session("update_flower") as session:
            row = session.get(WarehouseRow, flower_id, with_for_update=True)
            if row is None:
                raise FlowerNotFoundError(flower_id)
            if flower is not None and flower != row.flower:
                if self._find_stock(session, flower) is not None:
                    raise DuplicateFlowerError(flower)
                row.flower = flower
            if amount is not None:
                row.amount = amount
            row.date_time = _utc_now()
            session.flush()
            return _stock(row)

    def _consume(self, session: Session, name: str, amount: int, reason: str) -> int:
        """Take stock for `name` and return the units actually removed."""
        row = self._find_stock(session, name, lock=True)
        result = consume(name, row.amount if row is not None else None, amount, reason)
        if row is not None and result.after is not None:
            row.amount = result.after
            row.date_time = _utc_now()
        return result.applied

    def _restore(self, session: Session, name: str, amount: int, reason: str) -> None:
        row = self._find_stock(session, name, lock=True)
        new_amount = restore(name, row.amount if row is not None else None, amount, reason)
        if row is not None and new_amount is not None:
            row.amount = new_amount
            row.date_time = _utc_now()

    # --- Write-offs ---

    def list_writeoffs(self) -> list[Writeoff]:
        with self._session("list_writeoffs") as session:
            rows = session.scalars(
                select(WriteoffRow).order_by(WriteoffRow.date_time.desc(), WriteoffRow.id.desc())
            )
            return [_writeoff(r) for r in rows]

    def add_writeoff(self, name: str, amount: int) -> Writeoff:
        with self._session("add_writeoff") as session:
            row = WriteoffRow(flower=name, amount=amount, date_time=_utc_now())
            session.add(row)
            session.flush()
            self._consume(session, name, amount, f"write-off {row.id}")
            return _writeoff(row)

    # --- Notes ---

    def list_notes(self) -> list[Note]:
        with self._session("list_notes") as session:
            rows = session.scalars(
                select(NoteRow).order_by(NoteRow.date_time.desc(), NoteRow.id.desc())
            )
            return [_note(r) for r in rows]

    def get_note(self, note_id: int) -> Note:
        with self._session("get_note") as session:
            row = session.get(NoteRow, note_id)
            if row is None:
                raise NoteNotFoundError(note_id)
            return _note(row)

    def add_note(self, title: str, content: str) -> Note:
        with self._session("add_note") as session:
            row = NoteRow(title=title, content=content, date_time=_utc_now())
            session.add(row)
            session.flush()
            return _note(row)

    def update_note(
        self, note_id: int, title: str | None = None, content: str | None = None
    ) -> Note:
        with self._session("update_note") as session:
            row = session.get(NoteRow, note_id)
            if row is None:
                raise NoteNotFoundError(note_id)
            if title is not None:
                row.title = title
            if content is not None:
                row.content = content
            row.date_time = _utc_now()
            session.flush()
            return _note(row)

    def delete_note(self, note_id: int) -> bool:
        with self._session("delete_note") as session:
            result = session.execute(delete(NoteRow).where(NoteRow.id == note_id))
            return result.rowcount > 0

    # --- Orders ---

    def list_orders(self) -> list[Order]:
        with self._session("list_orders") as session:
            rows = session.scalars(
                select(OrderRow).order_by(OrderRow.date_time.desc(), OrderRow.id.desc())
            )
            return [_order(r) for r in rows]

    def get_order(self, order_id: int) -> Order:
        with self._session("get_order") as session:
            row = session.get(OrderRow, order_id)
            if row is None:
                raise OrderNotFoundError(order_id)
            return _order(row)

    def create_order(self, order: NewOrder, items: list[LineItem]) -> Order:
        with self._session("create_order") as session:
            row = OrderRow(
                from_=order.from_,
                to=order.to,
                address=order.address,
                date_time=as_utc(order.date_time),
                notes=order.notes,
                status=(order.status or OrderStatus.NEW).value,
            )
            session.add(row)
            session.flush()
            for item in items:
                self._insert_item(session, row.id, item)
            logger.info("Created order %d with %d item(s)", row.id, len(items))
            return _order(row)

    def update_order_status(self, order_id: int, status: OrderStatus) -> Order:
        with self._session("update_order_status") as session:
            row = session.get(OrderRow, order_id)
            if row is None:
                raise OrderNotFoundError(order_id)
            row.status = OrderStatus(status).value
            session.flush()
            return _order(row)

    def update_order(
        self,
        order_id: int,
        changes: dict[str, Any],
        items: list[LineItem] | None = None,
    ) -> Order:
        unknown = set(changes) - ORDER_FIELDS
        if unknown:
            raise ValueError(f"Unknown order fields: {', '.join(sorted(unknown))}")

        with self._session("update_order") as session:
            row = session.get(OrderRow, order_id)
            if row is None:
                raise OrderNotFoundError(order_id)

            for key, value in changes.items():
                if key == "date_time":
                    value = as_utc(value)
                elif key == "status":
                    value = OrderStatus(value).value
                setattr(row, key, value)

            if items:
                reason = f"order {order_id} edit"
                old_items = session.scalars(
                    select(OrderItemRow).where(OrderItemRow.order_id == order_id)
                ).all()
                for old in old_items:
                    self._restore(session, old.flower, old.consumed, reason)
                    session.delete(old)
                session.flush()
                for item in items:
                    self._insert_item(session, order_id, item)
                logger.info(
                    "Replaced %d item(s) of order %d with %d item(s)",
                    len(old_items), order_id, len(items),
                )
            session.flush()
            return _order(row)

    def delete_order(self, order_id: int) -> Order:
        return self.update_order_status(order_id, OrderStatus.DELETED)

    # --- Order items ---

    def _insert_item(self, session: Session, order_id: int, item: LineItem) -> OrderItemRow:
        consumed = self._consume(session, item.flower, item.amount, f"order {order_id}")
        row = OrderItemRow(
            order_id=order_id, flower=item.flower, amount=item.amount, consumed=consumed
        )
        session.add(row)
        session.flush()
        return row

    def list_order_items(self, order_id: int) -> list[OrderItem]:
        with self._session("list_order_items") as session:
            rows = session.scalars(
                select(OrderItemRow)
                .where(OrderItemRow.order_id == order_id)
                .order_by(OrderItemRow.id)
            )
            return [_item(r) for r in rows]

    def create_order_item(self, order_id: int, item: LineItem) -> OrderItem:
        with self._session("create_order_item") as session:
            if session.get(OrderRow, order_id) is None:
                raise OrderNotFoundError(order_id)
            return _item(self._insert_item(session, order_id, item))

    def delete_order_item(self, item_id: int) -> bool:
        with self._session("delete_order_item") as session:
            result = session.execute(delete(OrderItemRow).where(OrderItemRow.id == item_id))
            return result.rowcount > 0
