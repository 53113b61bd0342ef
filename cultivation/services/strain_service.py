# cultivation/services/strain_service.py
"""
Strain Service for the shared strain registry.

Strains are global (not per location). Once any batch references a strain
its name and bucket weight are frozen, since reports compare work against
the bucket weight that was in force, and the strain cannot be deleted.

Usage:
    service = StrainService()
    og = service.create_strain(db, StrainCreate(name="OG Kush", bucket_weight=Decimal("12.5")))
"""

import logging
import uuid

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cultivation.models import BatchStrain, Strain
from cultivation.schemas.strains import StrainCreate, StrainUpdate
from cultivation.services.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from cultivation.services.exceptions import (
    DuplicateStrainError,
    ImmutableFieldError,
    ReferenceRestrictedError,
    StrainNotFoundError,
)
from cultivation.services.integrity import is_foreign_key_violation, is_unique_violation
from cultivation.utils.sql import name_search_filter

logger = logging.getLogger(__name__)

# Fields frozen once a batch references the strain
LOCKED_WHEN_REFERENCED = ("name", "bucket_weight")


class StrainService:
    """Service for strain CRUD."""

    def get_strain(self, db: Session, strain_id: uuid.UUID) -> Strain:
        strain = db.get(Strain, strain_id)
        if strain is None:
            raise StrainNotFoundError(strain_id)
        return strain

    def get_strain_by_name(self, db: Session, name: str) -> Strain | None:
        return db.scalar(select(Strain).where(Strain.name == name.strip()))

    def list_strains(
            self,
            db: Session,
            search: str | None = None,
            skip: int = 0,
            limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[Strain]:
        stmt = select(Strain).order_by(Strain.name)
        if search:
            stmt = stmt.where(name_search_filter(Strain.name, search))
        stmt = stmt.offset(skip).limit(min(limit, MAX_LIST_LIMIT))
        return list(db.scalars(stmt))

    def is_referenced(self, db: Session, strain_id: uuid.UUID) -> bool:
        """True if any batch has this strain attached."""
        return db.scalar(select(exists().where(BatchStrain.strain_id == strain_id)))

    def create_strain(self, db: Session, data: StrainCreate) -> Strain:
        """
        Register a strain.

        Raises:
            DuplicateStrainError: Name already registered
        """
        if self.get_strain_by_name(db, data.name) is not None:
            logger.warning(f"Rejected duplicate strain name '{data.name}'")
            raise DuplicateStrainError(data.name)

        strain = Strain(**data.model_dump())
        db.add(strain)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                raise DuplicateStrainError(data.name) from e
            raise

        db.refresh(strain)
        logger.info(f"Registered strain '{strain.name}' ({strain.id}), bucket weight {strain.bucket_weight}")
        return strain

    def update_strain(self, db: Session, strain_id: uuid.UUID, data: StrainUpdate) -> Strain:
        """
        Apply the fields explicitly set in ``data``.

        Raises:
            StrainNotFoundError: Unknown strain
            ImmutableFieldError: name or bucket_weight changed on a referenced strain
            DuplicateStrainError: New name already registered
        """
        strain = self.get_strain(db, strain_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            # name and bucket_weight are NOT NULL
            if not (field in LOCKED_WHEN_REFERENCED and value is None)
        }

        changed_locked = [
            field for field in LOCKED_WHEN_REFERENCED
            if field in changes and changes[field] != getattr(strain, field)
        ]
        if changed_locked and self.is_referenced(db, strain_id):
            logger.warning(f"Refused to change {changed_locked} on referenced strain {strain_id}")
            raise ImmutableFieldError("Strain", changed_locked[0], "the strain is used by a batch")

        new_name = changes.get("name")
        if new_name is not None and new_name != strain.name:
            if self.get_strain_by_name(db, new_name) is not None:
                raise DuplicateStrainError(new_name)

        for field, value in changes.items():
            setattr(strain, field, value)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                raise DuplicateStrainError(new_name or strain.name) from e
            raise

        db.refresh(strain)
        return strain

    def delete_strain(self, db: Session, strain_id: uuid.UUID) -> None:
        """
        Delete a strain no batch has used.

        Raises:
            StrainNotFoundError: Unknown strain
            ReferenceRestrictedError: A batch references the strain
        """
        strain = self.get_strain(db, strain_id)
        db.delete(strain)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_foreign_key_violation(e):
                logger.warning(f"Refused to delete strain {strain_id}: used by a batch")
                raise ReferenceRestrictedError(
                    "Strain", strain_id, f"Strain {strain_id} is used by a batch"
                ) from e
            raise

        logger.info(f"Deleted strain {strain_id}")
