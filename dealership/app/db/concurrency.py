"""
Atomic units of work and row-level concurrency guards.

Every cross-entity mutation in the sales workflows runs inside ``atomic()``
and claims the rows it decides on with ``lock_row()``:

1. ``SELECT ... FOR UPDATE`` takes the row lock (PostgreSQL).
2. A version compare-and-swap claims the row. If another unit of work
   committed a change since we read it, zero rows match and the unit fails
   with a retryable ConflictError.

Step 2 is what detects the race on backends that ignore ``FOR UPDATE``.
Lock order across the workflows is always Vehicle -> Sale -> Transaction.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional, Type, TypeVar

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from dealership.app.core.exceptions import ConflictError

logger = logging.getLogger("dealership.db")

ModelT = TypeVar("ModelT")


@asynccontextmanager
async def atomic(db: AsyncSession):
    """
    Run a block as one atomic unit: commit on success, roll back on any error.

    Usage:
        async with atomic(db):
            vehicle = await lock_row(db, Vehicle, vehicle_id)
            ...
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def lock_row(db: AsyncSession, model: Type[ModelT], row_id: int) -> Optional[ModelT]:
    """
    Lock a row for the rest of the current unit of work.

    Args:
        db: Database session
        model: Mapped class with ``id`` and ``version`` columns
        row_id: Primary key to lock

    Returns:
        The freshly loaded row, or None if it does not exist

    Raises:
        ConflictError: If a concurrent unit of work changed the row first
    """
    result = await db.execute(
        select(model)
        .where(model.id == row_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        return None

    await guarded_update(db, row)
    return row


async def guarded_update(db: AsyncSession, row, **values) -> None:
    """
    Write ``values`` to ``row`` only if its version is still the one we read.

    The in-memory instance is updated without marking it dirty, so the ORM
    never issues a second, unguarded UPDATE for the same change.

    Raises:
        ConflictError: If zero rows matched the seen version
    """
    model = type(row)
    seen_version = row.version

    result = await db.execute(
        update(model)
        .where(model.id == row.id, model.version == seen_version)
        .values(version=seen_version + 1, **values)
        .execution_options(synchronize_session=False)
    )

    if result.rowcount != 1:
        logger.warning(
            "Concurrent update detected on %s %s (seen version %s)",
            model.__tablename__, row.id, seen_version
        )
        raise ConflictError(
            message=f"{model.__name__} {row.id} was modified concurrently, retry the operation",
            retryable=True,
            details={"resource": model.__name__, "id": row.id}
        )

    set_committed_value(row, "version", seen_version + 1)
    for key, value in values.items():
        set_committed_value(row, key, value)
