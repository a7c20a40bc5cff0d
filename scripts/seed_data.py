#!/usr/bin/env python3
"""
Seed the database with the demo marketplace.

Drops all tables, recreates them, and inserts 8 profiles (4 clients,
4 contractors), 9 contracts and 14 jobs, 9 of them already paid in
August 2020.

Usage:
    python3 scripts/seed_data.py
    LEDGER_DATABASE_URL=postgresql://... python3 scripts/seed_data.py
"""

import sys
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

# (key, first_name, last_name, profession, balance, role)
PROFILES = [
    (1, "Harry", "Potter", "Wizard", "1150", "client"),
    (2, "Mr", "Robot", "Hacker", "231.11", "client"),
    (3, "John", "Snow", "Knows nothing", "451.3", "client"),
    (4, "Ash", "Kethcum", "Pokemon master", "1.3", "client"),
    (5, "John", "Lenon", "Musician", "64", "contractor"),
    (6, "Linus", "Torvalds", "Programmer", "1214", "contractor"),
    (7, "Alan", "Turing", "Programmer", "22", "contractor"),
    (8, "Aragorn", "II Elessar Telcontarar", "Fighter", "314", "contractor"),
]

# (key, status, client key, contractor key)
CONTRACTS = [
    (1, "terminated", 1, 5),
    (2, "in_progress", 1, 6),
    (3, "in_progress", 2, 6),
    (4, "in_progress", 2, 7),
    (5, "new", 3, 8),
    (6, "in_progress", 3, 7),
    (7, "in_progress", 4, 7),
    (8, "in_progress", 4, 6),
    (9, "in_progress", 4, 8),
]

# (price, contract key, payment_date or None)
JOBS = [
    ("200", 1, None),
    ("201", 2, None),
    ("202", 3, None),
    ("200", 4, None),
    ("200", 7, None),
    ("2020", 7, datetime(2020, 8, 15, 19, 11, 26, tzinfo=UTC)),
    ("200", 2, datetime(2020, 8, 15, 19, 11, 26, tzinfo=UTC)),
    ("200", 3, datetime(2020, 8, 16, 19, 11, 26, tzinfo=UTC)),
    ("200", 1, datetime(2020, 8, 17, 19, 11, 26, tzinfo=UTC)),
    ("200", 5, datetime(2020, 8, 17, 19, 11, 26, tzinfo=UTC)),
    ("21", 1, datetime(2020, 8, 10, 19, 11, 26, tzinfo=UTC)),
    ("21", 2, datetime(2020, 8, 15, 19, 11, 26, tzinfo=UTC)),
    ("121", 3, datetime(2020, 8, 15, 19, 11, 26, tzinfo=UTC)),
    ("121", 3, datetime(2020, 8, 14, 23, 11, 26, tzinfo=UTC)),
]


def seed_demo_data(session) -> dict[str, dict[int, object]]:
    """Insert the demo profiles, contracts and jobs and flush.

    Rows are inserted in key order, so on freshly created tables the
    database ids equal the keys above.  The caller owns the transaction.

    Returns:
        {"profiles": {key: Profile}, "contracts": {key: Contract}, "jobs": {n: Job}}
    """
    from marketplace_ledger.models import Contract, Job, Profile

    profiles = {}
    for key, first, last, profession, balance, role in PROFILES:
        profiles[key] = Profile(
            first_name=first,
            last_name=last,
            profession=profession,
            balance=Decimal(balance),
            role=role,
        )
        session.add(profiles[key])
        session.flush()

    contracts = {}
    for key, status, client_key, contractor_key in CONTRACTS:
        contracts[key] = Contract(
            terms="bla bla bla",
            status=status,
            client_id=profiles[client_key].id,
            contractor_id=profiles[contractor_key].id,
        )
        session.add(contracts[key])
        session.flush()

    jobs = {}
    for n, (price, contract_key, payment_date) in enumerate(JOBS, start=1):
        jobs[n] = Job(
            description="work",
            price=Decimal(price),
            contract_id=contracts[contract_key].id,
            paid=payment_date is not None,
            payment_date=payment_date,
        )
        session.add(jobs[n])
        session.flush()

    return {"profiles": profiles, "contracts": contracts, "jobs": jobs}


def main() -> int:
    from ledger_config import get_active_config
    from marketplace_ledger.db.engine import LedgerStore
    from marketplace_ledger.logging_config import configure_logging, get_logger

    config = get_active_config()
    configure_logging(level=config.logging.level)
    logger = get_logger("scripts.seed_data")

    store = LedgerStore.from_config(config.database)
    try:
        print("  [1/2] Dropping old tables and recreating schema...")
        store.drop_tables()
        store.create_tables()

        print(
            f"  [2/2] Seeding {len(PROFILES)} profiles, "
            f"{len(CONTRACTS)} contracts, {len(JOBS)} jobs..."
        )
        with store.session_scope() as session:
            seed_demo_data(session)
    except Exception:
        logger.exception("seed_failed")
        return 1
    finally:
        store.dispose()

    logger.info(
        "seed_completed",
        extra={"profiles": len(PROFILES), "contracts": len(CONTRACTS), "jobs": len(JOBS)},
    )
    print("  Done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
