# cultivation/services/location_service.py
"""
Location Service for managing operational sites.

This service handles:
- Creating, renaming and annotating locations
- Lookup by id or by unique name, listing with name search
- Deleting locations that nothing references yet

A location cannot be deleted while batches or user assignments point at
it; the database enforces this (ON DELETE RESTRICT) and the service
surfaces it as ReferenceRestrictedError.

Usage:
    from cultivation.services.location_service import LocationService

    service = LocationService()
    site = service.create_location(db, LocationCreate(name="Site A"))
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cultivation.models import Location
from cultivation.schemas.locations import LocationCreate, LocationUpdate
from cultivation.services.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from cultivation.services.exceptions import (
    DuplicateLocationError,
    LocationNotFoundError,
    ReferenceRestrictedError,
)
from cultivation.services.integrity import is_foreign_key_violation, is_unique_violation
from cultivation.utils.sql import name_search_filter

logger = logging.getLogger(__name__)


class LocationService:
    """Service for location CRUD."""

    # =========================================================================
    # READ
    # =========================================================================

    def get_location(self, db: Session, location_id: uuid.UUID) -> Location:
        """
        Get a location by id.

        Raises:
            LocationNotFoundError: If no location has this id
        """
        location = db.get(Location, location_id)
        if location is None:
            raise LocationNotFoundError(location_id)
        return location

    def get_location_by_name(self, db: Session, name: str) -> Location | None:
        return db.scalar(select(Location).where(Location.name == name.strip()))

    def list_locations(
            self,
            db: Session,
            search: str | None = None,
            skip: int = 0,
            limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[Location]:
        """
        List locations ordered by name.

        Args:
            db: Database session
            search: Case-insensitive substring of the name
            skip: Rows to skip
            limit: Maximum rows (capped at MAX_LIST_LIMIT)
        """
        stmt = select(Location).order_by(Location.name)
        if search:
            stmt = stmt.where(name_search_filter(Location.name, search))
        stmt = stmt.offset(skip).limit(min(limit, MAX_LIST_LIMIT))
        return list(db.scalars(stmt))

    # =========================================================================
    # WRITE
    # =========================================================================

    def create_location(self, db: Session, data: LocationCreate) -> Location:
        """
        Create a location.

        Raises:
            DuplicateLocationError: Name already in use
        """
        if self.get_location_by_name(db, data.name) is not None:
            logger.warning(f"Rejected duplicate location name '{data.name}'")
            raise DuplicateLocationError(data.name)

        location = Location(name=data.name, notes=data.notes)
        db.add(location)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                # Lost the race against a concurrent insert
                raise DuplicateLocationError(data.name) from e
            raise

        db.refresh(location)
        logger.info(f"Created location '{location.name}' ({location.id})")
        return location

    def update_location(self, db: Session, location_id: uuid.UUID, data: LocationUpdate) -> Location:
        """
        Apply the fields explicitly set in ``data``.

        Raises:
            LocationNotFoundError: Unknown location
            DuplicateLocationError: New name already in use
        """
        location = self.get_location(db, location_id)
        changes = data.model_dump(exclude_unset=True)

        if "name" in changes and changes["name"] is None:
            # name is NOT NULL; an explicit null means "leave it"
            del changes["name"]

        new_name = changes.get("name")
        if new_name is not None and new_name != location.name:
            existing = self.get_location_by_name(db, new_name)
            if existing is not None and existing.id != location.id:
                raise DuplicateLocationError(new_name)

        for field, value in changes.items():
            setattr(location, field, value)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                raise DuplicateLocationError(new_name or location.name) from e
            raise

        db.refresh(location)
        logger.info(f"Updated location {location.id}: {sorted(changes)}")
        return location

    def delete_location(self, db: Session, location_id: uuid.UUID) -> None:
        """
        Delete a location.

        Raises:
            LocationNotFoundError: Unknown location
            ReferenceRestrictedError: Batches or assignments still reference it
        """
        location = self.get_location(db, location_id)
        db.delete(location)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_foreign_key_violation(e):
                logger.warning(f"Refused to delete location {location_id}: still referenced")
                raise ReferenceRestrictedError(
                    "Location",
                    location_id,
                    f"Location {location_id} still has batches or assigned users",
                ) from e
            raise

        logger.info(f"Deleted location {location_id}")
