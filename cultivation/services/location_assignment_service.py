# cultivation/services/location_assignment_service.py
"""
Location Assignment Service for user/location membership.

The table itself only guarantees one row per (user, location). The
role rules are enforced here, inside the same transaction as the write:

    Role          Min locations   Max locations
    employee      1               unlimited
    admin         1               1
    super_admin   0               unlimited

The user row is locked (SELECT ... FOR UPDATE on PostgreSQL) while the
count is checked so two concurrent assigns cannot both pass the admin limit.

Usage:
    service = LocationAssignmentService()
    service.assign(db, AssignmentCreate(user_id=user.id, location_id=site.id))
    service.revoke(db, user.id, old_site.id)
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cultivation.models import Location, LocationAssignment, Role, User
from cultivation.schemas.assignments import AssignmentCreate
from cultivation.services.constants import (
    ADMIN_MAX_LOCATIONS,
    ASSIGNMENT_EXEMPT_ROLES,
    MIN_LOCATIONS_PER_USER,
)
from cultivation.services.exceptions import (
    AssignmentNotFoundError,
    AssignmentRuleError,
    DuplicateAssignmentError,
    InvalidReferenceError,
    LocationNotFoundError,
    UserNotFoundError,
)
from cultivation.services.integrity import is_foreign_key_violation, is_unique_violation

logger = logging.getLogger(__name__)


def validate_assignment_count(role: Role, count: int, user_id: uuid.UUID | None = None) -> None:
    """
    Check a location count against the rules for a role.

    Args:
        role: The user's role (after any pending change)
        count: Number of locations the user would have
        user_id: For the error message

    Raises:
        AssignmentRuleError: The count breaks the role's limits
    """
    if role in ASSIGNMENT_EXEMPT_ROLES:
        return

    who = f"User {user_id}" if user_id else "A user"

    if count < MIN_LOCATIONS_PER_USER:
        raise AssignmentRuleError(
            f"{who} with role '{role.value}' must be assigned to at least "
            f"{MIN_LOCATIONS_PER_USER} location",
            user_id=user_id,
        )

    if role == Role.ADMIN and count > ADMIN_MAX_LOCATIONS:
        raise AssignmentRuleError(
            f"{who} with role 'admin' can be assigned to at most "
            f"{ADMIN_MAX_LOCATIONS} location (got {count})",
            user_id=user_id,
        )


class LocationAssignmentService:
    """Service for assigning users to locations."""

    # =========================================================================
    # READ
    # =========================================================================

    def get_assignment(
            self,
            db: Session,
            user_id: uuid.UUID,
            location_id: uuid.UUID,
    ) -> LocationAssignment | None:
        return db.scalar(
            select(LocationAssignment).where(
                LocationAssignment.user_id == user_id,
                LocationAssignment.location_id == location_id,
            )
        )

    def count_for_user(self, db: Session, user_id: uuid.UUID) -> int:
        return db.scalar(
            select(func.count(LocationAssignment.id)).where(LocationAssignment.user_id == user_id)
        )

    def list_locations_for_user(self, db: Session, user_id: uuid.UUID) -> list[Location]:
        """
        Locations the user is assigned to, ordered by name.

        Raises:
            UserNotFoundError: Unknown user
        """
        if db.get(User, user_id) is None:
            raise UserNotFoundError(user_id)

        stmt = (
            select(Location)
            .join(LocationAssignment, LocationAssignment.location_id == Location.id)
            .where(LocationAssignment.user_id == user_id)
            .order_by(Location.name)
        )
        return list(db.scalars(stmt))

    def list_users_for_location(
            self,
            db: Session,
            location_id: uuid.UUID,
            role: Role | None = None,
    ) -> list[User]:
        """
        Users assigned to a location, ordered by last then first name.

        Raises:
            LocationNotFoundError: Unknown location
        """
        if db.get(Location, location_id) is None:
            raise LocationNotFoundError(location_id)

        stmt = (
            select(User)
            .join(LocationAssignment, LocationAssignment.user_id == User.id)
            .where(LocationAssignment.location_id == location_id)
            .order_by(User.last_name, User.first_name)
        )
        if role is not None:
            stmt = stmt.where(User.role == role)
        return list(db.scalars(stmt))

    # =========================================================================
    # WRITE
    # =========================================================================

    def assign(self, db: Session, data: AssignmentCreate) -> LocationAssignment:
        """
        Assign a user to a location.

        Raises:
            UserNotFoundError / LocationNotFoundError: Unknown user or location
            DuplicateAssignmentError: Already assigned there
            AssignmentRuleError: An admin already has a location
        """
        user = self._lock_user(db, data.user_id)
        if db.get(Location, data.location_id) is None:
            db.rollback()
            raise LocationNotFoundError(data.location_id)

        if self.get_assignment(db, data.user_id, data.location_id) is not None:
            db.rollback()
            raise DuplicateAssignmentError(data.user_id, data.location_id)

        try:
            validate_assignment_count(user.role, self.count_for_user(db, user.id) + 1, user.id)
        except AssignmentRuleError:
            db.rollback()
            logger.warning(f"Rejected assignment of {user.role.value} {user.id} to location {data.location_id}")
            raise

        assignment = LocationAssignment(user_id=data.user_id, location_id=data.location_id)
        db.add(assignment)
        self._commit(db, data.user_id, data.location_id)

        db.refresh(assignment)
        logger.info(f"Assigned user {data.user_id} to location {data.location_id}")
        return assignment

    def revoke(self, db: Session, user_id: uuid.UUID, location_id: uuid.UUID) -> None:
        """
        Remove a user from a location.

        Raises:
            UserNotFoundError: Unknown user
            AssignmentNotFoundError: The user is not assigned there
            AssignmentRuleError: It is the user's last location (non super admins)
        """
        user = self._lock_user(db, user_id)
        assignment = self.get_assignment(db, user_id, location_id)
        if assignment is None:
            db.rollback()
            raise AssignmentNotFoundError(user_id, location_id)

        try:
            validate_assignment_count(user.role, self.count_for_user(db, user_id) - 1, user_id)
        except AssignmentRuleError:
            db.rollback()
            logger.warning(f"Refused to revoke last location of {user.role.value} {user_id}")
            raise

        db.delete(assignment)
        db.commit()
        logger.info(f"Revoked user {user_id} from location {location_id}")

    def set_locations(
            self,
            db: Session,
            user_id: uuid.UUID,
            location_ids: list[uuid.UUID],
    ) -> list[Location]:
        """
        Replace all of a user's assignments in one transaction.

        This is how an admin moves between sites: adding the new site first
        would break the one-location limit, removing the old one first would
        leave them with none.

        Raises:
            UserNotFoundError / LocationNotFoundError: Unknown user or location
            AssignmentRuleError: The new set breaks the role's limits
        """
        user = self._lock_user(db, user_id)
        wanted = list(dict.fromkeys(location_ids))

        try:
            validate_assignment_count(user.role, len(wanted), user_id)
        except AssignmentRuleError:
            db.rollback()
            raise

        current = {a.location_id: a for a in user.assignments}
        for location_id, assignment in current.items():
            if location_id not in wanted:
                user.assignments.remove(assignment)

        try:
            self.stage_assignments(db, user, [lid for lid in wanted if lid not in current])
        except LocationNotFoundError:
            db.rollback()
            raise

        self._commit(db, user_id, None)
        logger.info(f"Set locations of user {user_id} to {[str(lid) for lid in wanted]}")
        return self.list_locations_for_user(db, user_id)

    # =========================================================================
    # HELPERS (no commit)
    # =========================================================================

    def stage_assignments(self, db: Session, user: User, location_ids: Iterable[uuid.UUID]) -> None:
        """
        Add assignment rows for ``user`` to the session without committing.

        Used by UserService so a user and their initial locations are
        written in one transaction.

        Raises:
            LocationNotFoundError: One of the locations does not exist
        """
        for location_id in location_ids:
            if db.get(Location, location_id) is None:
                raise LocationNotFoundError(location_id)
            user.assignments.append(LocationAssignment(location_id=location_id))

    def _lock_user(self, db: Session, user_id: uuid.UUID) -> User:
        user = db.scalar(select(User).where(User.id == user_id).with_for_update())
        if user is None:
            db.rollback()
            raise UserNotFoundError(user_id)
        return user

    def _commit(self, db: Session, user_id: uuid.UUID, location_id: uuid.UUID | None) -> None:
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e) and location_id is not None:
                raise DuplicateAssignmentError(user_id, location_id) from e
            if is_foreign_key_violation(e):
                raise InvalidReferenceError("Location") from e
            raise
