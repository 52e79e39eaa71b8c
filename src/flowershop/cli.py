"""Command-line interface for flowershop."""

import argparse
import json
import sys

from . import __version__
from .config import Settings
from .errors import FlowershopError
from .logging_config import configure_logging
from .seed import seed_storage
from .storage import Storage, create_storage
from .utils import ORDER_VIEWS, filter_orders, format_order, format_stock


def get_storage(settings: Settings) -> Storage:
    """Open the storage backend configured by the settings."""
    return create_storage(settings)


def cmd_init_db(args: argparse.Namespace, settings: Settings) -> int:
    """Create the database tables, and seed sample data unless --no-seed."""
    try:
        storage = get_storage(settings)
        print(f"Database ready: {settings.database_url}")
        if not args.no_seed and seed_storage(storage):
            print("Seeded sample flowers and notes.")
        return 0

    except FlowershopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_seed(args: argparse.Namespace, settings: Settings) -> int:
    """Add sample data to an empty warehouse."""
    try:
        storage = get_storage(settings)
        if seed_storage(storage):
            print("Seeded sample flowers and notes.")
        else:
            print("Warehouse already has stock; nothing seeded.")
        return 0

    except FlowershopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stock(args: argparse.Namespace, settings: Settings) -> int:
    """List warehouse stock."""
    try:
        flowers = get_storage(settings).list_flowers()

        if not flowers:
            print("Warehouse is empty.")
            return 0

        if args.json:
            print(json.dumps([f.to_dict() for f in flowers], indent=2))
        else:
            print(f"Stock ({len(flowers)}):")
            for stock in flowers:
                print(format_stock(stock))

        return 0

    except FlowershopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders(args: argparse.Namespace, settings: Settings) -> int:
    """List orders, optionally limited to a view."""
    try:
        storage = get_storage(settings)
        orders = filter_orders(storage.list_orders(), view=args.view)

        if not orders:
            print("No orders found.")
            return 0

        if args.json:
            data = []
            for order in orders:
                entry = order.to_dict()
                entry["items"] = [i.to_dict() for i in storage.list_order_items(order.id)]
                data.append(entry)
            print(json.dumps(data, indent=2))
        else:
            print(f"Orders ({len(orders)}):")
            print()
            for order in orders:
                items = storage.list_order_items(order.id) if args.verbose else None
                print(format_order(order, items))

        return 0

    except FlowershopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_writeoff(args: argparse.Namespace, settings: Settings) -> int:
    """Record a write-off."""
    if args.amount <= 0:
        print("Error: amount must be a positive integer", file=sys.stderr)
        return 1

    try:
        storage = get_storage(settings)
        writeoff = storage.add_writeoff(args.flower, args.amount)
        stock = storage.get_flower_by_name(args.flower)

        print(f"Recorded write-off #{writeoff.id}: {writeoff.flower} x{writeoff.amount}")
        if stock is None:
            print(f"  Warning: no stock record for '{args.flower}'; stock unchanged.")
        else:
            print(f"  Remaining stock: {stock.amount}")
        return 0

    except FlowershopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Start the API server."""
    try:
        import uvicorn

        print("Starting flowershop API server...")
        print(f"Storage: {settings.storage}")
        if settings.storage == "database":
            print(f"Database: {settings.database_url}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "flowershop.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=settings.log_level.lower(),
            workers=1,  # MemStorage lives in-process
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="flowershop",
        description="Track flower stock, write-offs, orders and notes.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init-db
    init_parser = subparsers.add_parser("init-db", help="Create database tables")
    init_parser.add_argument(
        "--no-seed", action="store_true", help="Do not add sample data"
    )

    # seed
    subparsers.add_parser("seed", help="Add sample data to an empty warehouse")

    # stock
    stock_parser = subparsers.add_parser("stock", help="List warehouse stock")
    stock_parser.add_argument(
        "--json", action="store_true", help="Output as JSON"
    )

    # orders
    orders_parser = subparsers.add_parser("orders", help="List orders")
    orders_parser.add_argument(
        "--view", choices=sorted(ORDER_VIEWS), help="Only active or delivery orders"
    )
    orders_parser.add_argument(
        "--json", action="store_true", help="Output as JSON (includes items)"
    )
    orders_parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show order items"
    )

    # writeoff
    writeoff_parser = subparsers.add_parser("writeoff", help="Write off flowers from stock")
    writeoff_parser.add_argument("flower", help="Flower name (exact match)")
    writeoff_parser.add_argument("amount", type=int, help="Number of flowers to write off")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings.log_level)

    commands = {
        "init-db": cmd_init_db,
        "seed": cmd_seed,
        "stock": cmd_stock,
        "orders": cmd_orders,
        "writeoff": cmd_writeoff,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args, settings)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
