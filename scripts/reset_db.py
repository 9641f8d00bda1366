#!/usr/bin/env python3
"""
Wipe every stored match snapshot.

Usage:
    python scripts/reset_db.py              # settings.db_path
    python scripts/reset_db.py --db x.db    # another database file
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Allow importing scorebook when run as script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import scorebook.storage.database as db  # noqa: E402


async def wipe(path: Path) -> None:
    db.DB_PATH, db.DB_DIR = path, path.parent
    await db.init_db()
    try:
        await db.reset_db()
    finally:
        await db.close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Drop and recreate the matches table")
    parser.add_argument("--db", type=Path, default=db.DB_PATH)
    args = parser.parse_args()

    if not args.db.exists():
        sys.exit(f"Database not found: {args.db}")
    asyncio.run(wipe(args.db))
    print(f"Cleared {args.db}")


if __name__ == "__main__":
    main()
