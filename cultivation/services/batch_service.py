# cultivation/services/batch_service.py
"""
Batch Service for the production batch lifecycle.

This service handles:
- Creating batches with sequential per-location numbers
- Attaching and detaching strains (batch strains)
- Completing strains, which publishes the batch once all are done
- Explicit status transitions and batch deletion

Lifecycle (forward only):

    planned ──► in_progress ──► published
                                 (end_date set)

Rules enforced here:
- A batch is never created as published
- A location runs at most MAX_IN_PROGRESS_BATCHES_PER_LOCATION batches
  in progress at once, counted while the location row is locked
- Publishing needs at least one strain, and every strain completed
- Strains cannot be attached to a published batch, and cannot be detached
  once work has been logged against them

Numbering:
    When no number is given the next one is allocated as max+1 for the
    location under a row lock, with a single retry if a concurrent writer
    took it (see sequencing.py). An explicit number is used as given and a
    clash fails immediately with DuplicateBatchNumberError.

Usage:
    service = BatchService()
    batch = service.create_batch(db, BatchCreate(location_id=site.id, start_date=date.today()))
    bs = service.attach_strain(db, batch.id, og.id)
    service.mark_strain_complete(db, bs.id)   # publishes the batch
"""

import logging
import uuid
from datetime import date

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cultivation.models import Batch, BatchStatus, BatchStrain, Location, Strain, WorkEntry
from cultivation.schemas.batches import BatchCreate, BatchUpdate
from cultivation.services.constants import (
    BATCH_INITIAL_STATUSES,
    BATCH_STATUS_TRANSITIONS,
    DEFAULT_LIST_LIMIT,
    MAX_IN_PROGRESS_BATCHES_PER_LOCATION,
    MAX_LIST_LIMIT,
)
from cultivation.services.exceptions import (
    BatchCapacityError,
    BatchNotFoundError,
    BatchStrainNotFoundError,
    BusinessRuleError,
    DuplicateBatchNumberError,
    DuplicateBatchStrainError,
    InvalidReferenceError,
    InvalidStatusTransitionError,
    LocationNotFoundError,
    ReferenceRestrictedError,
    StrainNotFoundError,
    ValidationError,
)
from cultivation.services.integrity import is_foreign_key_violation, is_unique_violation
from cultivation.services.sequencing import insert_with_next_number, lock_parent

logger = logging.getLogger(__name__)


class BatchService:
    """Service for batches and their strains."""

    # =========================================================================
    # READ
    # =========================================================================

    def get_batch(self, db: Session, batch_id: uuid.UUID) -> Batch:
        batch = db.get(Batch, batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    def get_batch_by_number(self, db: Session, location_id: uuid.UUID, number: int) -> Batch | None:
        return db.scalar(
            select(Batch).where(Batch.location_id == location_id, Batch.number == number)
        )

    def list_batches(
            self,
            db: Session,
            location_id: uuid.UUID | None = None,
            status: BatchStatus | None = None,
            skip: int = 0,
            limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[Batch]:
        """List batches, newest number first within each location."""
        stmt = select(Batch).order_by(Batch.location_id, Batch.number.desc())
        if location_id is not None:
            stmt = stmt.where(Batch.location_id == location_id)
        if status is not None:
            stmt = stmt.where(Batch.status == status)
        stmt = stmt.offset(skip).limit(min(limit, MAX_LIST_LIMIT))
        return list(db.scalars(stmt))

    def count_in_progress(self, db: Session, location_id: uuid.UUID) -> int:
        return db.scalar(
            select(func.count(Batch.id)).where(
                Batch.location_id == location_id,
                Batch.status == BatchStatus.IN_PROGRESS,
            )
        )

    def get_batch_strain(self, db: Session, batch_strain_id: uuid.UUID) -> BatchStrain:
        batch_strain = db.get(BatchStrain, batch_strain_id)
        if batch_strain is None:
            raise BatchStrainNotFoundError(batch_strain_id)
        return batch_strain

    def list_batch_strains(self, db: Session, batch_id: uuid.UUID) -> list[BatchStrain]:
        """
        Strains attached to a batch, ordered by strain name.

        Raises:
            BatchNotFoundError: Unknown batch
        """
        self.get_batch(db, batch_id)
        stmt = (
            select(BatchStrain)
            .join(Strain, Strain.id == BatchStrain.strain_id)
            .where(BatchStrain.batch_id == batch_id)
            .order_by(Strain.name)
        )
        return list(db.scalars(stmt))

    # =========================================================================
    # CREATE / UPDATE / DELETE
    # =========================================================================

    def create_batch(self, db: Session, data: BatchCreate) -> Batch:
        """
        Start a batch at a location.

        Raises:
            LocationNotFoundError / StrainNotFoundError: Unknown references
            BatchCapacityError: Location already has the maximum in progress
            DuplicateBatchNumberError: Explicit number already used at the location
            SequenceConflictError: Auto numbering lost twice to concurrent writers
        """
        if db.get(Location, data.location_id) is None:
            raise LocationNotFoundError(data.location_id)

        if data.status not in BATCH_INITIAL_STATUSES:
            raise ValidationError("A batch must start planned or in progress", field="status")

        for strain_id in data.strain_ids:
            if db.get(Strain, strain_id) is None:
                raise StrainNotFoundError(strain_id)

        def check_capacity(location: Location) -> None:
            # Called with the location row locked
            if data.status == BatchStatus.IN_PROGRESS:
                self._check_capacity(db, location.id)

        def build(number: int) -> Batch:
            return Batch(
                location_id=data.location_id,
                number=number,
                start_date=data.start_date,
                status=data.status,
                notes=data.notes,
                batch_strains=[BatchStrain(strain_id=strain_id) for strain_id in data.strain_ids],
            )

        try:
            if data.number is None:
                batch = insert_with_next_number(
                    db,
                    parent_model=Location,
                    parent_id=data.location_id,
                    number_column=Batch.number,
                    scope_column=Batch.location_id,
                    build=build,
                    sequence_name="batch number",
                    not_found=LocationNotFoundError,
                    on_locked=check_capacity,
                )
            else:
                batch = self._insert_numbered(db, build, data.location_id, data.number, check_capacity)
        except IntegrityError as e:
            if is_foreign_key_violation(e):
                raise InvalidReferenceError("Location or Strain") from e
            raise

        logger.info(
            f"Created batch #{batch.number} at location {batch.location_id} "
            f"({batch.status.value}, {len(data.strain_ids)} strain(s))"
        )
        return batch

    def update_batch(self, db: Session, batch_id: uuid.UUID, data: BatchUpdate) -> Batch:
        """
        Change the start date or notes.

        Raises:
            BatchNotFoundError: Unknown batch
            ValidationError: Start date would fall after logged work or the end date
        """
        batch = self.get_batch(db, batch_id)
        changes = data.model_dump(exclude_unset=True)

        new_start = changes.get("start_date")
        if "start_date" in changes and new_start is None:
            del changes["start_date"]
        elif new_start is not None and new_start != batch.start_date:
            self._validate_start_date(db, batch, new_start)

        for field, value in changes.items():
            setattr(batch, field, value)

        db.commit()
        db.refresh(batch)
        return batch

    def delete_batch(self, db: Session, batch_id: uuid.UUID) -> None:
        """
        Delete a batch together with its batch strains and their work entries.

        Raises:
            BatchNotFoundError: Unknown batch
        """
        batch = self.get_batch(db, batch_id)
        number, location_id = batch.number, batch.location_id
        db.delete(batch)
        db.commit()
        logger.info(f"Deleted batch #{number} at location {location_id} (cascaded to strains and work)")

    # =========================================================================
    # BATCH STRAINS
    # =========================================================================

    def attach_strain(self, db: Session, batch_id: uuid.UUID, strain_id: uuid.UUID) -> BatchStrain:
        """
        Add a strain to a batch.

        Raises:
            BatchNotFoundError / StrainNotFoundError: Unknown references
            BusinessRuleError: The batch is already published
            DuplicateBatchStrainError: Strain already attached
        """
        batch = self.get_batch(db, batch_id)
        if batch.status == BatchStatus.PUBLISHED:
            raise BusinessRuleError(f"Batch {batch_id} is published; strains can no longer be attached")

        if db.get(Strain, strain_id) is None:
            raise StrainNotFoundError(strain_id)

        existing = db.scalar(
            select(BatchStrain).where(BatchStrain.batch_id == batch_id, BatchStrain.strain_id == strain_id)
        )
        if existing is not None:
            raise DuplicateBatchStrainError(batch_id, strain_id)

        batch_strain = BatchStrain(batch_id=batch_id, strain_id=strain_id)
        db.add(batch_strain)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                raise DuplicateBatchStrainError(batch_id, strain_id) from e
            if is_foreign_key_violation(e):
                raise InvalidReferenceError("Batch or Strain") from e
            raise

        db.refresh(batch_strain)
        logger.info(f"Attached strain {strain_id} to batch {batch_id}")
        return batch_strain

    def detach_strain(self, db: Session, batch_id: uuid.UUID, strain_id: uuid.UUID) -> None:
        """
        Remove a strain from a batch.

        Raises:
            BatchStrainNotFoundError: Strain not attached to the batch
            BusinessRuleError: The batch is published
            ReferenceRestrictedError: Work was already logged against it
        """
        batch_strain = db.scalar(
            select(BatchStrain).where(BatchStrain.batch_id == batch_id, BatchStrain.strain_id == strain_id)
        )
        if batch_strain is None:
            raise BatchStrainNotFoundError(f"{batch_id}/{strain_id}")

        if batch_strain.batch.status == BatchStatus.PUBLISHED:
            raise BusinessRuleError(f"Batch {batch_id} is published; strains can no longer be detached")

        has_work = db.scalar(select(exists().where(WorkEntry.batch_strain_id == batch_strain.id)))
        if has_work:
            logger.warning(f"Refused to detach strain {strain_id} from batch {batch_id}: work logged")
            raise ReferenceRestrictedError(
                "BatchStrain",
                batch_strain.id,
                f"Work has been logged for strain {strain_id} in batch {batch_id}",
            )

        db.delete(batch_strain)
        db.commit()
        logger.info(f"Detached strain {strain_id} from batch {batch_id}")

    def mark_strain_complete(
            self,
            db: Session,
            batch_strain_id: uuid.UUID,
            completed_on: date | None = None,
    ) -> BatchStrain:
        """
        Mark a batch strain as completed. Completion cannot be undone.

        When this was the last open strain, the batch is published and its
        end date set to ``completed_on`` (default: today).

        Raises:
            BatchStrainNotFoundError: Unknown batch strain
            BusinessRuleError: The batch is not in progress
        """
        batch_strain = self.get_batch_strain(db, batch_strain_id)
        if batch_strain.is_completed:
            return batch_strain

        batch = self._lock_batch(db, batch_strain.batch_id)
        if batch.status != BatchStatus.IN_PROGRESS:
            db.rollback()
            raise BusinessRuleError(
                f"Batch {batch.id} is {batch.status.value}; strains can only be completed while in progress"
            )

        batch_strain.is_completed = True
        logger.info(f"Completed strain {batch_strain.strain_id} in batch #{batch.number}")

        if all(bs.is_completed for bs in batch.batch_strains):
            try:
                self._publish(batch, completed_on or date.today())
            except ValidationError:
                db.rollback()
                raise

        db.commit()
        db.refresh(batch_strain)
        return batch_strain

    # =========================================================================
    # STATUS
    # =========================================================================

    def transition_status(
            self,
            db: Session,
            batch_id: uuid.UUID,
            new_status: BatchStatus,
            on_date: date | None = None,
    ) -> Batch:
        """
        Move a batch one step forward.

        Args:
            db: Database session
            batch_id: Batch to move
            new_status: Must be the next status after the current one
            on_date: End date when publishing (default: today)

        Raises:
            BatchNotFoundError: Unknown batch
            InvalidStatusTransitionError: Not the next step, or publishing with open strains
            BatchCapacityError: Starting would exceed the in-progress limit
        """
        batch = self._lock_batch(db, batch_id)
        allowed = BATCH_STATUS_TRANSITIONS[batch.status]

        if new_status != allowed:
            db.rollback()
            reason = (
                "published batches are final" if allowed is None
                else f"the only allowed next status is '{allowed.value}'"
            )
            logger.warning(f"Rejected status change of batch {batch_id}: {batch.status.value} -> {new_status.value}")
            raise InvalidStatusTransitionError(batch_id, batch.status.value, new_status.value, reason)

        if new_status == BatchStatus.IN_PROGRESS:
            lock_parent(db, Location, batch.location_id)
            try:
                self._check_capacity(db, batch.location_id)
            except BatchCapacityError:
                db.rollback()
                raise
            batch.status = BatchStatus.IN_PROGRESS

        elif new_status == BatchStatus.PUBLISHED:
            if not batch.batch_strains:
                db.rollback()
                raise InvalidStatusTransitionError(
                    batch_id, batch.status.value, new_status.value, "the batch has no strains"
                )
            open_strains = [bs for bs in batch.batch_strains if not bs.is_completed]
            if open_strains:
                db.rollback()
                raise InvalidStatusTransitionError(
                    batch_id, batch.status.value, new_status.value,
                    f"{len(open_strains)} strain(s) are not completed",
                )
            try:
                self._publish(batch, on_date or date.today())
            except ValidationError:
                db.rollback()
                raise

        db.commit()
        db.refresh(batch)
        logger.info(f"Batch #{batch.number} at location {batch.location_id} is now {batch.status.value}")
        return batch

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _insert_numbered(self, db: Session, build, location_id: uuid.UUID, number: int, on_locked) -> Batch:
        """Insert with a caller-chosen number under the location lock. Never retried."""
        location = lock_parent(db, Location, location_id)
        if location is None:
            db.rollback()
            raise LocationNotFoundError(location_id)

        try:
            on_locked(location)
        except BusinessRuleError:
            db.rollback()
            raise

        if self.get_batch_by_number(db, location_id, number) is not None:
            db.rollback()
            logger.warning(f"Rejected duplicate batch number {number} at location {location_id}")
            raise DuplicateBatchNumberError(location_id, number)

        batch = build(number)
        db.add(batch)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                raise DuplicateBatchNumberError(location_id, number) from e
            raise

        db.refresh(batch)
        return batch

    def _check_capacity(self, db: Session, location_id: uuid.UUID) -> None:
        if self.count_in_progress(db, location_id) >= MAX_IN_PROGRESS_BATCHES_PER_LOCATION:
            logger.warning(f"Location {location_id} is at its in-progress batch limit")
            raise BatchCapacityError(location_id, MAX_IN_PROGRESS_BATCHES_PER_LOCATION)

    def _validate_start_date(self, db: Session, batch: Batch, new_start: date) -> None:
        if batch.end_date is not None and new_start > batch.end_date:
            raise ValidationError(
                f"start_date {new_start} is after the batch end date {batch.end_date}", field="start_date"
            )

        first_work = db.scalar(
            select(func.min(WorkEntry.work_date))
            .join(BatchStrain, BatchStrain.id == WorkEntry.batch_strain_id)
            .where(BatchStrain.batch_id == batch.id)
        )
        if first_work is not None and new_start > first_work:
            raise ValidationError(
                f"start_date {new_start} is after work already logged on {first_work}", field="start_date"
            )

    def _lock_batch(self, db: Session, batch_id: uuid.UUID) -> Batch:
        batch = db.scalar(select(Batch).where(Batch.id == batch_id).with_for_update())
        if batch is None:
            db.rollback()
            raise BatchNotFoundError(batch_id)
        return batch

    def _publish(self, batch: Batch, end_date: date) -> None:
        if end_date < batch.start_date:
            raise ValidationError(
                f"end date {end_date} is before the batch start date {batch.start_date}", field="end_date"
            )
        batch.status = BatchStatus.PUBLISHED
        batch.end_date = end_date
        logger.info(f"Published batch #{batch.number} at location {batch.location_id} on {end_date}")
