# cultivation/services/work_entry_service.py
"""
Work Entry Service for daily work logging.

One entry records one employee's work on one batch strain for one day:
grams processed (amount) and hours spent. Payroll and productivity
reporting read these rows; this service also offers the grouped totals
they need.

Rules enforced here:
- The batch strain must exist and still be open: not completed, and its
  batch in progress
- The work date cannot be before the batch start date (nor in the future,
  checked by the schema)
- One entry per (user, batch strain, date); a second one is a conflict,
  correct the existing entry instead
- Entries on a closed batch strain can no longer be changed or removed

Usage:
    service = WorkEntryService()
    entry = service.create_entry(db, WorkEntryCreate(
        user_id=ada.id, batch_strain_id=bs.id,
        work_date=date(2024, 1, 1), amount=Decimal("50.25"), hours=Decimal("3.50"),
    ))
    totals = service.summarize(db, group_by="user", filters=WorkEntryFilter(batch_id=batch.id))
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cultivation.models import Batch, BatchStatus, BatchStrain, User, WorkEntry
from cultivation.schemas.work_entries import (
    WorkEntryCreate,
    WorkEntryFilter,
    WorkEntryUpdate,
    WorkSummaryGrouping,
)
from cultivation.services.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from cultivation.services.exceptions import (
    BatchStrainClosedError,
    BatchStrainNotFoundError,
    DuplicateWorkEntryError,
    InvalidReferenceError,
    UserNotFoundError,
    ValidationError,
    WorkEntryNotFoundError,
)
from cultivation.services.integrity import is_foreign_key_violation, is_unique_violation

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class WorkSummary:
    """Totals for one group (a user, a batch or a date)."""

    key: uuid.UUID | date
    total_amount: Decimal
    total_hours: Decimal
    entry_count: int

    @property
    def grams_per_hour(self) -> Decimal | None:
        if not self.total_hours:
            return None
        return (self.total_amount / self.total_hours).quantize(_CENTS)


def _to_decimal(value) -> Decimal:
    # SQLite hands back floats for SUM over numeric columns
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(_CENTS)


# =============================================================================
# SERVICE
# =============================================================================

class WorkEntryService:
    """Service for logging and reading work entries."""

    # =========================================================================
    # READ
    # =========================================================================

    def get_entry(self, db: Session, entry_id: uuid.UUID) -> WorkEntry:
        entry = db.get(WorkEntry, entry_id)
        if entry is None:
            raise WorkEntryNotFoundError(entry_id)
        return entry

    def find_entry(
            self,
            db: Session,
            user_id: uuid.UUID,
            batch_strain_id: uuid.UUID,
            work_date: date,
    ) -> WorkEntry | None:
        """Look up an entry by its natural key."""
        return db.scalar(
            select(WorkEntry).where(
                WorkEntry.user_id == user_id,
                WorkEntry.batch_strain_id == batch_strain_id,
                WorkEntry.work_date == work_date,
            )
        )

    def list_entries(
            self,
            db: Session,
            filters: WorkEntryFilter | None = None,
            skip: int = 0,
            limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[WorkEntry]:
        """List entries, most recent date first."""
        stmt = self._apply_filters(select(WorkEntry), filters or WorkEntryFilter())
        stmt = (
            stmt.order_by(WorkEntry.work_date.desc(), WorkEntry.user_id)
            .offset(skip)
            .limit(min(limit, MAX_LIST_LIMIT))
        )
        return list(db.scalars(stmt))

    def summarize(
            self,
            db: Session,
            group_by: WorkSummaryGrouping,
            filters: WorkEntryFilter | None = None,
    ) -> list[WorkSummary]:
        """
        Total amount, hours and entry count per user, batch or date.

        Args:
            db: Database session
            group_by: "user", "batch" or "date"
            filters: Optional restrictions (same as list_entries)

        Returns:
            One WorkSummary per group, ordered by key
        """
        key_columns = {
            "user": WorkEntry.user_id,
            "batch": BatchStrain.batch_id,
            "date": WorkEntry.work_date,
        }
        if group_by not in key_columns:
            raise ValidationError(f"Cannot group work entries by '{group_by}'", field="group_by")
        key_column = key_columns[group_by]

        stmt = select(
            key_column,
            func.sum(WorkEntry.amount),
            func.sum(WorkEntry.hours),
            func.count(WorkEntry.id),
        ).select_from(WorkEntry)
        stmt = self._apply_filters(stmt, filters or WorkEntryFilter(), force_join=group_by == "batch")
        stmt = stmt.group_by(key_column).order_by(key_column)

        return [
            WorkSummary(
                key=key,
                total_amount=_to_decimal(total_amount),
                total_hours=_to_decimal(total_hours),
                entry_count=count,
            )
            for key, total_amount, total_hours, count in db.execute(stmt)
        ]

    # =========================================================================
    # WRITE
    # =========================================================================

    def create_entry(self, db: Session, data: WorkEntryCreate) -> WorkEntry:
        """
        Log a day of work.

        Raises:
            UserNotFoundError / BatchStrainNotFoundError: Unknown references
            BatchStrainClosedError: Strain completed or batch not in progress
            ValidationError: Date before the batch start
            DuplicateWorkEntryError: Entry already exists for that user, strain and date
        """
        if db.get(User, data.user_id) is None:
            raise UserNotFoundError(data.user_id)

        batch_strain = db.get(BatchStrain, data.batch_strain_id)
        if batch_strain is None:
            raise BatchStrainNotFoundError(data.batch_strain_id)

        self._ensure_open(batch_strain)

        batch = batch_strain.batch
        if data.work_date < batch.start_date:
            raise ValidationError(
                f"work_date {data.work_date} is before batch #{batch.number} started ({batch.start_date})",
                field="work_date",
            )

        if self.find_entry(db, data.user_id, data.batch_strain_id, data.work_date) is not None:
            logger.warning(
                f"Rejected duplicate work entry for user {data.user_id}, "
                f"batch strain {data.batch_strain_id} on {data.work_date}"
            )
            raise DuplicateWorkEntryError(data.user_id, data.batch_strain_id, data.work_date)

        entry = WorkEntry(**data.model_dump())
        db.add(entry)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                raise DuplicateWorkEntryError(data.user_id, data.batch_strain_id, data.work_date) from e
            if is_foreign_key_violation(e):
                raise InvalidReferenceError("User or BatchStrain") from e
            raise

        db.refresh(entry)
        logger.info(
            f"Logged {entry.amount} g / {entry.hours} h for user {entry.user_id} "
            f"on batch strain {entry.batch_strain_id} ({entry.work_date})"
        )
        return entry

    def update_entry(self, db: Session, entry_id: uuid.UUID, data: WorkEntryUpdate) -> WorkEntry:
        """
        Correct amount, hours or notes.

        Raises:
            WorkEntryNotFoundError: Unknown entry
            BatchStrainClosedError: The batch strain is closed
        """
        entry = self.get_entry(db, entry_id)
        self._ensure_open(entry.batch_strain)

        changes = data.model_dump(exclude_unset=True)
        for required in ("amount", "hours"):
            if required in changes and changes[required] is None:
                del changes[required]

        for field, value in changes.items():
            setattr(entry, field, value)

        db.commit()
        db.refresh(entry)
        return entry

    def delete_entry(self, db: Session, entry_id: uuid.UUID) -> None:
        """
        Remove an entry logged by mistake.

        Raises:
            WorkEntryNotFoundError: Unknown entry
            BatchStrainClosedError: The batch strain is closed
        """
        entry = self.get_entry(db, entry_id)
        self._ensure_open(entry.batch_strain)

        db.delete(entry)
        db.commit()
        logger.info(f"Deleted work entry {entry_id}")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _ensure_open(self, batch_strain: BatchStrain) -> None:
        if batch_strain.is_completed:
            raise BatchStrainClosedError(batch_strain.id, "the strain is completed")

        status = batch_strain.batch.status
        if status != BatchStatus.IN_PROGRESS:
            raise BatchStrainClosedError(batch_strain.id, f"the batch is {status.value}")

    def _apply_filters(self, stmt: Select, filters: WorkEntryFilter, force_join: bool = False) -> Select:
        needs_batch_strain = force_join or filters.batch_id is not None or filters.location_id is not None
        if needs_batch_strain:
            stmt = stmt.join(BatchStrain, BatchStrain.id == WorkEntry.batch_strain_id)
        if filters.location_id is not None:
            stmt = stmt.join(Batch, Batch.id == BatchStrain.batch_id).where(
                Batch.location_id == filters.location_id
            )
        if filters.batch_id is not None:
            stmt = stmt.where(BatchStrain.batch_id == filters.batch_id)
        if filters.user_id is not None:
            stmt = stmt.where(WorkEntry.user_id == filters.user_id)
        if filters.start_date is not None:
            stmt = stmt.where(WorkEntry.work_date >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(WorkEntry.work_date <= filters.end_date)
        return stmt
