"""
Operations entry point.

    python -m bakery_distribution init-db
    python -m bakery_distribution daily-sales 2025-09-16
    python -m bakery_distribution unpaid
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import config
from .constants import APP_NAME
from .api.facade import ApiError, BackOfficeApi
from .database import get_connection
from .utils.loggers import configure_ledger_log, get_logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bakery_distribution", description=APP_NAME
    )
    parser.add_argument("--db", type=Path, help=f"SQLite database file (default: {config.DB_PATH})")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create or upgrade the database schema")

    p_sales = sub.add_parser("daily-sales", help="Revenue by salesperson for one day")
    p_sales.add_argument("date", help="YYYY-MM-DD")

    sub.add_parser("unpaid", help="Bills not fully paid, with total outstanding")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    log = get_logger("bakery_distribution.cli")
    configure_ledger_log(level=config.LOG_LEVEL)

    conn = get_connection(args.db)
    try:
        if args.command == "init-db":
            log.info("Database ready at %s", args.db or config.DB_PATH)
            return 0

        api = BackOfficeApi(conn)
        try:
            if args.command == "daily-sales":
                out = api.daily_sales_by_salesperson(date=args.date)
            else:
                out = api.unpaid_debts()
        except ApiError as e:
            print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
            return 1
        print(json.dumps(out, indent=2))
        return 0
    finally:
        conn.close()


if __name__ == "__main__":
    sys.exit(main())
