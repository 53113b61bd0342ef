# cultivation/services/sequencing.py
"""
Per-parent sequential numbering.

Batch numbers run 1, 2, 3... within each location and write-up numbers run
1, 2, 3... within each employee. Both are allocated the same way:

1. Lock the parent row (SELECT ... FOR UPDATE on PostgreSQL; SQLite has no
   row locks and the clause is not rendered)
2. Run the caller's ``on_locked`` check, if any, while the lock is held
3. Read max(number) + 1 for that parent
4. Insert and commit; the unique (parent, number) constraint is the final
   arbiter
5. On a unique violation, roll back and try exactly once more (from step 1)

If the retry collides too, SequenceConflictError is raised. Numbers supplied
explicitly by the caller never go through this path and are never retried.

Usage:
    batch = insert_with_next_number(
        db,
        parent_model=Location,
        parent_id=location_id,
        number_column=Batch.number,
        scope_column=Batch.location_id,
        build=lambda number: Batch(location_id=location_id, number=number, ...),
        sequence_name="batch number",
        not_found=LocationNotFoundError,
    )
"""

import logging
import uuid
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import InstrumentedAttribute, Session
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
)

from cultivation.models import Base
from cultivation.services.constants import SEQUENCE_MAX_ATTEMPTS, SEQUENCE_START
from cultivation.services.exceptions import NotFoundError, SequenceConflictError
from cultivation.services.integrity import is_unique_violation

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Base)


class SequenceCollision(Exception):
    """A concurrent writer committed the number we picked."""

    def __init__(self, number: int) -> None:
        self.number = number
        super().__init__(f"Sequence number {number} was taken concurrently")


def lock_parent(db: Session, parent_model: type[Base], parent_id: uuid.UUID) -> Base | None:
    """
    Load the parent row with a row lock held until commit/rollback.

    Returns None when the parent does not exist.
    """
    return db.scalar(
        select(parent_model)
        .where(parent_model.id == parent_id)
        .with_for_update()
    )


def next_sequence_number(
        db: Session,
        number_column: InstrumentedAttribute,
        scope_column: InstrumentedAttribute,
        scope_value: uuid.UUID,
) -> int:
    """
    Compute the next number in a per-parent sequence.

    Args:
        db: Database session
        number_column: Column holding the sequence (e.g., Batch.number)
        scope_column: Column scoping the sequence (e.g., Batch.location_id)
        scope_value: Parent key

    Returns:
        max(number) + 1 for the parent, or 1 for the first row
    """
    current = db.scalar(
        select(func.max(number_column)).where(scope_column == scope_value)
    )
    if current is None:
        return SEQUENCE_START
    return current + 1


def insert_with_next_number(
        db: Session,
        *,
        parent_model: type[Base],
        parent_id: uuid.UUID,
        number_column: InstrumentedAttribute,
        scope_column: InstrumentedAttribute,
        build: Callable[[int], T],
        sequence_name: str,
        not_found: Callable[[uuid.UUID], NotFoundError],
        on_locked: Callable[[Base], None] | None = None,
) -> T:
    """
    Insert a row numbered max+1 within its parent, retrying once on collision.

    Args:
        db: Database session
        parent_model: Model owning the sequence (Location, User)
        parent_id: Parent primary key
        number_column: Sequence column on the child model
        scope_column: Foreign key column on the child model
        build: Called with the allocated number, returns the new (unsaved) row
        sequence_name: Human-readable name used in errors and logs
        not_found: Exception factory used when the parent does not exist
        on_locked: Called with the locked parent on every attempt, before
            numbering. Whatever it raises rolls back and propagates unretried.

    Returns:
        The committed and refreshed row

    Raises:
        NotFoundError: Parent row does not exist
        SequenceConflictError: Both attempts collided with concurrent writers
        IntegrityError: Any other integrity failure (caller translates it)
    """

    @retry(
        stop=stop_after_attempt(SEQUENCE_MAX_ATTEMPTS),
        retry=retry_if_exception_type(SequenceCollision),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _attempt() -> T:
        parent = lock_parent(db, parent_model, parent_id)
        if parent is None:
            db.rollback()
            raise not_found(parent_id)

        if on_locked is not None:
            try:
                on_locked(parent)
            except Exception:
                db.rollback()
                raise

        number = next_sequence_number(db, number_column, scope_column, parent_id)
        instance = build(number)
        db.add(instance)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                logger.warning(f"{sequence_name} {number} for {parent_id} taken concurrently")
                raise SequenceCollision(number) from e
            raise

        db.refresh(instance)
        return instance

    try:
        return _attempt()
    except SequenceCollision as e:
        logger.error(f"Giving up allocating {sequence_name} for {parent_id} after {SEQUENCE_MAX_ATTEMPTS} attempts")
        raise SequenceConflictError(sequence_name, parent_id) from e
