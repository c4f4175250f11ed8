"""
Reset Internship Applications

Deletes every application and resets the application ID counter,
so the next submission receives INT-<year>-0001.

This is destructive and cannot be undone.

Usage:
    python scripts/reset_database.py --yes
"""

import argparse
import asyncio
import sys
from datetime import UTC, datetime
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from internship_portal.core.database import async_session_maker, close_db
from internship_portal.modules.applications import repository, sequence


async def reset_database() -> None:
    """Delete all applications and reset the ID counter in one transaction."""
    async with async_session_maker() as db:
        deleted = await repository.delete_all(db)
        await sequence.reset_counter(db, sequence.APPLICATION_ID_COUNTER)
        await db.commit()

    next_id = sequence.format_application_id(datetime.now(UTC).year, 1)
    print(f"[OK] Deleted {deleted} application(s)")
    print("[OK] Application ID counter reset")
    print(f"Next application will be: {next_id}")


async def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete all internship applications.")
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm that every application should be deleted",
    )
    args = parser.parse_args(argv)

    if not args.yes:
        print("Refusing to reset without --yes (this deletes every application).")
        return 2

    try:
        await reset_database()
    except Exception as e:
        print(f"[FAIL] Reset failed: {e}")
        return 1
    finally:
        await close_db()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
