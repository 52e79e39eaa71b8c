"""Integration tests for CLI."""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from flowershop.cli import main
from flowershop.models import OrderStatus
from flowershop.storage import DatabaseStorage

from .conftest import make_order, roses


def run_flowershop(args: list[str], env: dict[str, str]) -> subprocess.CompletedProcess:
    """Run flowershop CLI command."""
    return subprocess.run(
        [sys.executable, "-m", "flowershop.cli"] + args,
        env={**os.environ, **env},
        capture_output=True,
        text=True,
    )


@pytest.fixture
def db_env(tmp_path: Path) -> dict[str, str]:
    """Environment pointing the CLI at a SQLite file in a temp directory."""
    return {
        "FLOWERSHOP_STORAGE": "database",
        "FLOWERSHOP_DATA_DIR": str(tmp_path),
        "FLOWERSHOP_DATABASE_URL": f"sqlite:///{tmp_path / 'shop' / 'flowershop.db'}",
        "FLOWERSHOP_LOG_LEVEL": "WARNING",
    }


class TestCLIIntegration:
    """Integration tests for CLI commands."""

    def test_init_db_creates_and_seeds(self, db_env, tmp_path):
        result = run_flowershop(["init-db"], db_env)

        assert result.returncode == 0
        assert "Database ready" in result.stdout
        assert "Seeded" in result.stdout
        assert (tmp_path / "shop" / "flowershop.db").exists()

    def test_init_db_no_seed(self, db_env):
        result = run_flowershop(["init-db", "--no-seed"], db_env)
        assert result.returncode == 0
        assert "Seeded" not in result.stdout

        result = run_flowershop(["stock"], db_env)
        assert result.returncode == 0
        assert "Warehouse is empty." in result.stdout

    def test_seed_only_once(self, db_env):
        first = run_flowershop(["seed"], db_env)
        second = run_flowershop(["seed"], db_env)

        assert "Seeded" in first.stdout
        assert "nothing seeded" in second.stdout

    def test_stock_json(self, db_env):
        run_flowershop(["init-db"], db_env)

        result = run_flowershop(["stock", "--json"], db_env)

        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert {f["flower"]: f["amount"] for f in data} == {
            "Red Roses": 24,
            "White Lilies": 18,
            "Pink Carnations": 30,
            "Yellow Tulips": 15,
        }
        assert "dateTime" in data[0]

    def test_stock_text(self, db_env):
        run_flowershop(["init-db"], db_env)

        result = run_flowershop(["stock"], db_env)

        assert result.returncode == 0
        assert "Stock (4):" in result.stdout
        assert "Red Roses" in result.stdout

    def test_writeoff(self, db_env):
        run_flowershop(["init-db"], db_env)

        result = run_flowershop(["writeoff", "Red Roses", "4"], db_env)

        assert result.returncode == 0
        assert "Recorded write-off #1: Red Roses x4" in result.stdout
        assert "Remaining stock: 20" in result.stdout

    def test_writeoff_floors_at_zero(self, db_env):
        run_flowershop(["init-db"], db_env)

        result = run_flowershop(["writeoff", "Yellow Tulips", "100"], db_env)

        assert result.returncode == 0
        assert "Remaining stock: 0" in result.stdout

    def test_writeoff_unknown_flower(self, db_env):
        run_flowershop(["init-db"], db_env)

        result = run_flowershop(["writeoff", "Orchids", "2"], db_env)

        assert result.returncode == 0
        assert "no stock record" in result.stdout

    def test_writeoff_invalid_amount(self, db_env):
        result = run_flowershop(["writeoff", "Red Roses", "0"], db_env)

        assert result.returncode == 1
        assert "positive integer" in result.stderr

    def test_invalid_storage_backend(self, db_env):
        result = run_flowershop(["stock"], {**db_env, "FLOWERSHOP_STORAGE": "redis"})

        assert result.returncode == 1
        assert "Unknown storage backend" in result.stderr


class TestOrdersCommand:
    """The orders command, reading orders created directly in the database."""

    @pytest.fixture
    def env(self, db_env, tmp_path):
        return {**db_env, "FLOWERSHOP_DATABASE_URL": f"sqlite:///{tmp_path / 'flowershop.db'}"}

    @pytest.fixture
    def shop(self, env):
        storage = DatabaseStorage.from_url(env["FLOWERSHOP_DATABASE_URL"])
        yield storage
        storage.engine.dispose()

    def test_no_orders(self, shop, env):
        result = run_flowershop(["orders"], env)

        assert result.returncode == 0
        assert "No orders found." in result.stdout

    def test_orders_verbose(self, shop, env):
        shop.add_flowers("Red Roses", 10)
        shop.create_order(make_order(notes="ring twice"), [roses(3)])

        result = run_flowershop(["orders", "-v"], env)

        assert result.returncode == 0
        assert "Orders (1):" in result.stdout
        assert "#1  2025-05-01 10:00  Alice -> Bob (New)" in result.stdout
        assert "Notes: ring twice" in result.stdout
        assert "- Red Roses x3" in result.stdout

    def test_orders_json_includes_items(self, shop, env):
        shop.add_flowers("Red Roses", 10)
        shop.create_order(make_order(), [roses(3)])

        result = run_flowershop(["orders", "--json"], env)

        data = json.loads(result.stdout)
        assert data[0]["from"] == "Alice"
        assert data[0]["items"][0]["flower"] == "Red Roses"
        assert data[0]["items"][0]["amount"] == 3

    def test_orders_view(self, shop, env):
        shop.add_flowers("Red Roses", 10)
        order = shop.create_order(make_order(), [roses(1)])
        shop.update_order_status(order.id, OrderStatus.SENT)

        active = run_flowershop(["orders", "--view", "active"], env)
        delivery = run_flowershop(["orders", "--view", "delivery"], env)

        assert "No orders found." in active.stdout
        assert "(Sent)" in delivery.stdout


class TestMainInProcess:
    """Call main() directly for quick argument handling checks."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_memory_backend(self, monkeypatch, capsys):
        monkeypatch.setenv("FLOWERSHOP_STORAGE", "memory")

        assert main(["seed"]) == 0
        assert "Seeded" in capsys.readouterr().out
