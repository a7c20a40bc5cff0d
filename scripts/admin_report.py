#!/usr/bin/env python3
"""
Print the admin earnings rankings for a payment-date window.

Connects to the configured database (run seed_data.py first) and prints
either the best-earning profession or the best-paying clients as JSON.

Usage:
    python3 scripts/admin_report.py best-profession --start 2020-08-01 --end 2020-08-31
    python3 scripts/admin_report.py best-clients --start 2020-08-01 --end 2020-08-31 --limit 3
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def parse_bound(value: str) -> date | datetime:
    """ISO date ("2020-08-01") or datetime ("2020-08-01T10:00:00+00:00")."""
    if "T" in value or " " in value:
        return datetime.fromisoformat(value)
    return date.fromisoformat(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Earnings rankings over paid jobs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python3 scripts/admin_report.py best-profession --start 2020-08-01 --end 2020-08-31\n"
            "  python3 scripts/admin_report.py best-clients --start 2020-08-01 --end 2020-08-31 --limit 3\n"
        ),
    )
    parser.add_argument(
        "report", choices=["best-profession", "best-clients"],
        help="Ranking to print",
    )
    parser.add_argument(
        "--start", type=parse_bound, required=True,
        help="Window start (inclusive), ISO date or datetime",
    )
    parser.add_argument(
        "--end", type=parse_bound, required=True,
        help="Window end (inclusive), ISO date or datetime",
    )
    parser.add_argument(
        "--limit", type=int, default=None,
        help="Number of clients for best-clients (default from config)",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="YAML configuration file (default: ledger_config/sets/default.yaml)",
    )
    return parser


def run_report(orchestrator, args) -> dict | list:
    """Execute the requested ranking and return a JSON-ready payload."""
    if args.report == "best-profession":
        return {"theBestProfession": orchestrator.best_profession(args.start, args.end)}
    clients = orchestrator.best_clients(args.start, args.end, args.limit)
    return [
        {"id": c.id, "fullName": c.full_name, "paid": str(c.paid)}
        for c in clients
    ]


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Suppress library logging on the console
    logging.disable(logging.CRITICAL)

    from ledger_config import get_active_config
    from marketplace_ledger.exceptions import MarketplaceLedgerError
    from marketplace_ledger.services.marketplace_orchestrator import create_orchestrator

    orchestrator = create_orchestrator(get_active_config(args.config))
    try:
        payload = run_report(orchestrator, args)
    except MarketplaceLedgerError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    finally:
        orchestrator.store.dispose()

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
