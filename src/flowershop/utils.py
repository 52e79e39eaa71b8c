"""Utility functions for flowershop."""

from collections import Counter

from .models import FlowerStock, Order, OrderItem, OrderStatus, as_utc

# Orders still being prepared in the shop
ACTIVE_STATUSES = frozenset({OrderStatus.NEW, OrderStatus.ASSEMBLED})
# Orders handed over for delivery
DELIVERY_STATUSES = frozenset({OrderStatus.SENT, OrderStatus.FINISHED})

ORDER_VIEWS: dict[str, frozenset[OrderStatus]] = {
    "active": ACTIVE_STATUSES,
    "delivery": DELIVERY_STATUSES,
}


def filter_orders(
    orders: list[Order],
    view: str | None = None,
    status: OrderStatus | None = None,
) -> list[Order]:
    """
    Filter orders by view name and/or exact status.

    Args:
        orders: Orders to filter.
        view: "active" (New, Assembled) or "delivery" (Sent, Finished).
        status: Keep only orders with this status.

    Raises:
        ValueError: If the view name is unknown.
    """
    result = orders
    if view is not None:
        if view not in ORDER_VIEWS:
            raise ValueError(f"Unknown order view: {view}")
        allowed = ORDER_VIEWS[view]
        result = [o for o in result if o.status in allowed]
    if status is not None:
        result = [o for o in result if o.status == status]
    return result


def group_orders_by_date(orders: list[Order]) -> dict[str, list[Order]]:
    """
    Group orders by the UTC calendar day of their scheduled time.

    Days are in ascending order (keys are YYYY-MM-DD), and so are the
    orders within each day.
    """
    grouped: dict[str, list[Order]] = {}
    for order in sorted(orders, key=lambda o: (as_utc(o.date_time), o.id)):
        key = as_utc(order.date_time).date().isoformat()
        grouped.setdefault(key, []).append(order)
    return grouped


def count_orders_by_status(orders: list[Order]) -> dict[str, int]:
    """Count orders per status. Every status is present, zero if unused."""
    counts = Counter(o.status for o in orders)
    return {status.value: counts.get(status, 0) for status in OrderStatus}


def stock_summary(flowers: list[FlowerStock]) -> dict:
    """Summarize warehouse stock: record count, total units, empty records."""
    return {
        "flower_count": len(flowers),
        "total_units": sum(f.amount for f in flowers),
        "out_of_stock": [f.flower for f in flowers if f.amount <= 0],
    }


def format_stock(stock: FlowerStock) -> str:
    """Format a stock record for display."""
    updated = as_utc(stock.date_time).strftime("%Y-%m-%d %H:%M")
    return f"{stock.id:>4}  {stock.flower:<24} {stock.amount:>6}  (updated {updated})"


def format_order(order: Order, items: list[OrderItem] | None = None) -> str:
    """Format an order, and optionally its items, for display."""
    scheduled = as_utc(order.date_time).strftime("%Y-%m-%d %H:%M")
    result = f"#{order.id}  {scheduled}  {order.from_} -> {order.to} ({order.status.value})"
    result += f"\n       Address: {order.address}"
    if order.notes:
        result += f"\n       Notes: {order.notes}"
    if items:
        for item in items:
            result += f"\n         - {item.flower} x{item.amount}"
    return result
