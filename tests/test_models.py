"""Tests for data models."""

from datetime import datetime, timedelta, timezone

from flowershop.models import FlowerStock, Order, OrderItem, OrderStatus, User, as_utc


class TestOrderStatus:
    def test_forward_path(self):
        assert OrderStatus.NEW.next() == OrderStatus.ASSEMBLED
        assert OrderStatus.ASSEMBLED.next() == OrderStatus.SENT
        assert OrderStatus.SENT.next() == OrderStatus.FINISHED

    def test_terminal_states(self):
        assert OrderStatus.FINISHED.next() is None
        assert OrderStatus.DELETED.next() is None
        assert OrderStatus.FINISHED.is_terminal
        assert OrderStatus.DELETED.is_terminal
        assert not OrderStatus.SENT.is_terminal

    def test_values_match_wire_format(self):
        assert [s.value for s in OrderStatus] == ["New", "Assembled", "Sent", "Finished", "Deleted"]
        assert OrderStatus("Sent") is OrderStatus.SENT


class TestAsUtc:
    def test_naive_is_utc(self):
        assert as_utc(datetime(2025, 1, 1, 9, 30)) == datetime(2025, 1, 1, 9, 30, tzinfo=timezone.utc)

    def test_offset_converted(self):
        plus_two = timezone(timedelta(hours=2))
        result = as_utc(datetime(2025, 1, 1, 12, 0, tzinfo=plus_two))

        assert result == datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)


class TestToDict:
    def test_stock(self):
        stock = FlowerStock(
            id=1, flower="Red Roses", amount=24,
            date_time=datetime(2025, 5, 1, 8, 0, tzinfo=timezone.utc),
        )

        assert stock.to_dict() == {
            "id": 1,
            "flower": "Red Roses",
            "amount": 24,
            "dateTime": "2025-05-01T08:00:00Z",
        }

    def test_order_uses_from_key(self):
        order = Order(
            id=3, from_="Alice", to="Bob", address="12 Garden Lane",
            date_time=datetime(2025, 5, 1, 10, 0, tzinfo=timezone.utc),
        )

        data = order.to_dict()
        assert data["from"] == "Alice"
        assert data["to"] == "Bob"
        assert data["notes"] is None
        assert data["status"] == "New"

    def test_item_uses_order_id_key(self):
        item = OrderItem(id=1, order_id=3, flower="Red Roses", amount=5)

        assert item.to_dict()["orderId"] == 3

    def test_user_hides_password(self):
        assert "password" not in User(id=1, username="florist", password="secret").to_dict()
