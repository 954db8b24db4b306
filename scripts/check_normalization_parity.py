#!/usr/bin/env python3
"""
Normalization Parity Check
==========================
Runs the golden normalization corpus through the database's normalize_text()
function and through offerscope.parsing.normalizer, and fails if any output
differs. Run it after every change to either implementation.

Usage:
  python scripts/check_normalization_parity.py                 # check against DATABASE_URL
  python scripts/check_normalization_parity.py --install      # (re)create the SQL function first
"""

import argparse
import os
import sys
from pathlib import Path

_ROOT = Path(__file__).resolve().parents[1]

from dotenv import load_dotenv
load_dotenv(_ROOT / ".env")

from sqlalchemy import create_engine, text

from offerscope.parsing.parity import check_normalization_parity

SQL_FUNCTION_PATH = _ROOT / "sql" / "normalize_text.sql"


def install_function(engine) -> None:
    ddl = SQL_FUNCTION_PATH.read_text(encoding="utf-8")
    with engine.begin() as conn:
        conn.execute(text(ddl))
    print(f"Installed normalize_text() from {SQL_FUNCTION_PATH.name}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Check SQL/Python normalization parity")
    parser.add_argument("--database-url", default=os.environ.get("DATABASE_URL"),
                        help="SQLAlchemy URL (default: $DATABASE_URL)")
    parser.add_argument("--install", action="store_true", help="Create or replace the SQL function first")
    args = parser.parse_args()

    if not args.database_url:
        print("ERROR: DATABASE_URL not set. Add it to .env or pass --database-url.", file=sys.stderr)
        return 2

    engine = create_engine(args.database_url)
    if args.install:
        install_function(engine)

    mismatches = check_normalization_parity(engine)
    if not mismatches:
        print("Normalization parity OK")
        return 0

    print(f"{len(mismatches)} mismatch(es):")
    for m in mismatches:
        print(f"  input={m.input!r} expected={m.expected!r} python={m.python_result!r} sql={m.sql_result!r}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
