"""Tests for stock consumption rules."""

import logging

import pytest

from flowershop.inventory import consume, restore


class TestConsume:
    @pytest.mark.parametrize(
        "current,requested,expected",
        [
            (24, 5, 19),
            (5, 5, 0),
            (3, 10, 0),
            (0, 1, 0),
            (7, 0, 7),
        ],
    )
    def test_clamps_at_zero(self, current, requested, expected):
        result = consume("Red Roses", current, requested, "test")

        assert result.after == expected
        assert result.matched is True

    def test_applied_and_shortfall(self):
        result = consume("Red Roses", 3, 10, "test")

        assert result.applied == 3
        assert result.shortfall == 7

    def test_no_shortfall_when_in_stock(self):
        result = consume("Red Roses", 24, 5, "test")

        assert result.applied == 5
        assert result.shortfall == 0

    def test_unmatched_name(self):
        result = consume("Orchids", None, 4, "test")

        assert result.matched is False
        assert result.after is None
        assert result.applied == 0
        assert result.shortfall == 4

    def test_negative_request_rejected(self):
        with pytest.raises(ValueError):
            consume("Red Roses", 10, -1, "test")

    def test_oversell_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="flowershop.inventory"):
            consume("Red Roses", 3, 10, "order 1")

        assert "oversold by 7" in caplog.text
        assert "order 1" in caplog.text

    def test_unmatched_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="flowershop.inventory"):
            consume("Orchids", None, 2, "write-off 4")

        assert "no stock record for 'Orchids'" in caplog.text

    def test_exact_stock_not_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="flowershop.inventory"):
            consume("Red Roses", 5, 5, "order 1")

        assert caplog.text == ""


class TestRestore:
    def test_adds_back(self):
        assert restore("Red Roses", 19, 5, "test") == 24

    def test_unmatched_returns_none(self):
        assert restore("Orchids", None, 5, "test") is None

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            restore("Red Roses", 1, -2, "test")
