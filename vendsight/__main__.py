"""CLI entry point for VendSight.

Usage:
    # Start the API server
    python -m vendsight serve
    VENDSIGHT_DEV_MODE=true python -m vendsight serve

    # Normalize a vendor export and print a summary
    python -m vendsight ingest /path/to/sales.csv
    python -m vendsight ingest /path/to/sales.csv --output normalized.csv
    python -m vendsight ingest /path/to/sales.csv --inventory

    # List supported vendor formats
    python -m vendsight vendors
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path

from .config import get_settings


def _cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server."""
    import uvicorn

    from .app import create_app

    settings = get_settings()
    app = create_app(settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


def _cmd_ingest(args: argparse.Namespace) -> None:
    """Detect and normalize a local CSV file."""
    from .adapters import IngestError, derive_inventory, ingest_file

    source = Path(args.source)
    if not source.is_file():
        print(f"Error: File not found: {source}", file=sys.stderr)
        sys.exit(1)

    try:
        result = ingest_file(source)
    except IngestError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(result.summary)
    print()

    if args.inventory:
        levels = derive_inventory(result.sales)
        print(f"--- Estimated Inventory ({len(levels)} slots) ---")
        for (location_id, product_id), level in levels.items():
            print(
                f"  {location_id:<12} {product_id:<16} "
                f"starting: {level.starting:>6}  current: {level.current:>6}"
            )
        print()

    if args.output:
        _write_output(result, args.output)


def _write_output(result, output_path: str) -> None:
    """Write normalized sales to CSV."""
    path = Path(output_path)
    columns = [
        "location_id",
        "product_id",
        "quantity_sold",
        "sale_date",
        "price",
        "total",
        "source",
        "raw_csv_hash",
    ]

    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns)
        writer.writeheader()
        for sale in result.sales:
            writer.writerow(
                {
                    "location_id": sale.location_id,
                    "product_id": sale.product_id,
                    "quantity_sold": sale.quantity_sold,
                    "sale_date": sale.sale_date_iso,
                    "price": str(sale.price),
                    "total": str(sale.total),
                    "source": sale.source,
                    "raw_csv_hash": sale.raw_csv_hash,
                }
            )
    print(f"Wrote {len(result.sales):,} sales to {path}")


def _cmd_vendors(args: argparse.Namespace) -> None:
    """List supported vendor formats."""
    from .adapters import list_vendors

    for vendor in list_vendors():
        print(f"{vendor['format']:<14} {vendor['name']}")
        print(f"{'':<14} columns: {', '.join(vendor['columns'])}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="vendsight",
        description="VendSight: vending sales CSV ingestion",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Start the API server")

    ingest = subparsers.add_parser("ingest", help="Normalize a vendor CSV export")
    ingest.add_argument("source", help="Path to the CSV file")
    ingest.add_argument("--output", "-o", help="Write normalized sales to this CSV")
    ingest.add_argument(
        "--inventory",
        action="store_true",
        help="Print inventory levels estimated from the sales",
    )

    subparsers.add_parser("vendors", help="List supported vendor formats")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "serve": _cmd_serve,
        "ingest": _cmd_ingest,
        "vendors": _cmd_vendors,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)
    handler(args)


if __name__ == "__main__":
    main()
