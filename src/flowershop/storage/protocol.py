"""Protocol definition for storage backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..models import (
        FlowerStock,
        LineItem,
        NewOrder,
        Note,
        Order,
        OrderItem,
        OrderStatus,
        User,
        Writeoff,
    )


class Storage(Protocol):
    """Protocol for flowershop storage backends.

    Every read and write of the shop's entities goes through a Storage,
    including the operations that couple stock to orders and write-offs.
    Implementations (MemStorage, DatabaseStorage) run each composite
    operation as one unit: either all of its writes land or none do.

    Lookups by id raise the entity's NotFound error. Stock is referenced by
    flower name from write-offs and order items; an unmatched name is not an
    error.
    """

    # --- Users ---

    def get_user(self, user_id: int) -> User:
        ...

    def get_user_by_username(self, username: str) -> User | None:
        ...

    def create_user(self, username: str, password: str) -> User:
        """Create a user. Raises UserExistsError if the username is taken."""
        ...

    # --- Warehouse ---

    def list_flowers(self) -> list[FlowerStock]:
        """List stock records ordered by id."""
        ...

    def get_flower(self, flower_id: int) -> FlowerStock:
        ...

    def get_flower_by_name(self, name: str) -> FlowerStock | None:
        """Find stock by exact (case-sensitive) flower name."""
        ...

    def add_flowers(self, name: str, amount: int) -> FlowerStock:
        """Add stock, merging into the existing record for `name` if any."""
        ...

    def update_flower(
        self, flower_id: int, flower: str | None = None, amount: int | None = None
    ) -> FlowerStock:
        """Overwrite name and/or amount. Always refreshes the timestamp."""
        ...

    # --- Write-offs ---

    def list_writeoffs(self) -> list[Writeoff]:
        """List write-offs, newest first."""
        ...

    def add_writeoff(self, name: str, amount: int) -> Writeoff:
        """Record a write-off and deduct it from stock, clamped at zero."""
        ...

    # --- Notes ---

    def list_notes(self) -> list[Note]:
        """List notes, newest first."""
        ...

    def get_note(self, note_id: int) -> Note:
        ...

    def add_note(self, title: str, content: str) -> Note:
        ...

    def update_note(
        self, note_id: int, title: str | None = None, content: str | None = None
    ) -> Note:
        ...

    def delete_note(self, note_id: int) -> bool:
        ...

    # --- Orders ---

    def list_orders(self) -> list[Order]:
        """List orders, latest scheduled first."""
        ...

    def get_order(self, order_id: int) -> Order:
        ...

    def create_order(self, order: NewOrder, items: list[LineItem]) -> Order:
        """Create an order with its items and consume each item from stock."""
        ...

    def update_order_status(self, order_id: int, status: OrderStatus) -> Order:
        """Set the status unconditionally."""
        ...

    def update_order(
        self,
        order_id: int,
        changes: dict[str, Any],
        items: list[LineItem] | None = None,
    ) -> Order:
        """
        Merge field changes onto an order.

        Keys of `changes` are Order attribute names. A key that is absent
        leaves the field untouched; `notes` may be explicitly set to None.
        A non-empty `items` list replaces every existing item and re-balances
        stock: old amounts are returned, new amounts consumed.
        """
        ...

    def delete_order(self, order_id: int) -> Order:
        """Soft delete: sets the status to Deleted and keeps the row."""
        ...

    # --- Order items ---

    def list_order_items(self, order_id: int) -> list[OrderItem]:
        ...

    def create_order_item(self, order_id: int, item: LineItem) -> OrderItem:
        """Add one item to an existing order and consume it from stock."""
        ...

    def delete_order_item(self, item_id: int) -> bool:
        ...
