"""
Application ID Sequence

Allocation of public application identifiers (INT-<year>-<seq>).

The sequence lives in the `sequence_counters` table. Every allocation is a
single INSERT ... ON CONFLICT DO UPDATE ... RETURNING statement, so concurrent
callers (across tasks, processes or instances) each receive a distinct value
with no gaps. The counter is global: only the display year changes, the
sequence is never reset per year.

The statement runs in the caller's transaction and is not committed here.
If the surrounding insert fails and the transaction rolls back, the increment
is rolled back with it.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import SequenceCounter

logger = logging.getLogger(__name__)

APPLICATION_ID_COUNTER = "applicationId"
APPLICATION_ID_PREFIX = "INT"
SEQUENCE_MIN_DIGITS = 4

_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}

_counters = SequenceCounter.__table__


class StorageUnavailableError(Exception):
    """Raised when the durable store cannot be reached."""


def format_application_id(year: int, sequence: int) -> str:
    """
    Render a public application identifier.

    The sequence is zero-padded to 4 digits and never truncated:
        format_application_id(2026, 7)     -> "INT-2026-0007"
        format_application_id(2026, 12345) -> "INT-2026-12345"
    """
    return f"{APPLICATION_ID_PREFIX}-{year}-{sequence:0{SEQUENCE_MIN_DIGITS}d}"


def _build_increment(dialect_name: str, counter_name: str):
    """Build the atomic increment-and-fetch statement for a dialect."""
    try:
        insert = _UPSERT_INSERTS[dialect_name]
    except KeyError:
        raise NotImplementedError(
            f"Atomic counter upsert is not supported for dialect '{dialect_name}'"
        ) from None

    return (
        insert(_counters)
        .values(name=counter_name, value=1)
        .on_conflict_do_update(
            index_elements=[_counters.c.name],
            set_={"value": _counters.c.value + 1},
        )
        .returning(_counters.c.value)
    )


async def allocate_next(db: AsyncSession, counter_name: str = APPLICATION_ID_COUNTER) -> int:
    """
    Issue the next value of a named counter.

    The counter row is created on first use, so the first allocation returns 1.

    Args:
        db: Database session (the increment joins its current transaction)
        counter_name: Name of the counter

    Returns:
        The newly allocated value

    Raises:
        StorageUnavailableError: If the store cannot be reached
    """
    stmt = _build_increment(db.get_bind().dialect.name, counter_name)

    try:
        result = await db.execute(stmt)
    except (OperationalError, InterfaceError, OSError) as e:
        logger.error(f"Sequence allocation failed for counter '{counter_name}': {e}")
        raise StorageUnavailableError(f"Unable to allocate from counter '{counter_name}'") from e

    return result.scalar_one()


async def allocate_application_id(db: AsyncSession, now: datetime | None = None) -> str:
    """
    Allocate the next public application identifier.

    The year is the wall-clock (UTC) year at the moment of allocation.
    """
    sequence = await allocate_next(db, APPLICATION_ID_COUNTER)
    year = (now or datetime.now(UTC)).year
    return format_application_id(year, sequence)


async def get_current_value(db: AsyncSession, counter_name: str = APPLICATION_ID_COUNTER) -> int:
    """Return the last value issued by a counter (0 if never used)."""
    result = await db.execute(select(_counters.c.value).where(_counters.c.name == counter_name))
    return result.scalar_one_or_none() or 0


async def reset_counter(db: AsyncSession, counter_name: str = APPLICATION_ID_COUNTER) -> None:
    """
    Reset a counter so the next allocation returns 1.

    Maintenance only; the caller commits.
    """
    await db.execute(delete(_counters).where(_counters.c.name == counter_name))
    logger.warning(f"Sequence counter '{counter_name}' reset")
