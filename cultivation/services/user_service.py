# cultivation/services/user_service.py
"""
User Service for employees, admins and super admins.

This service handles:
- Creating a user together with their initial location assignments
- Lookup by id, email or employee ID; listing with filters
- Updating profile fields and role (role changes re-check assignments)
- Deleting users (assignments cascade; work entries and write-ups block it)

Email and employee ID are unique. Emails are compared lower-case.

Usage:
    service = UserService()
    user = service.create_user(db, UserCreate(
        first_name="Ada", last_name="Ng", email="ada@example.com",
        location_ids=[site.id],
    ))
"""

import logging
import uuid

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cultivation.models import LocationAssignment, Role, User
from cultivation.schemas.users import UserCreate, UserUpdate
from cultivation.services.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from cultivation.services.exceptions import (
    AssignmentRuleError,
    DuplicateUserError,
    InvalidReferenceError,
    LocationNotFoundError,
    ReferenceRestrictedError,
    UserNotFoundError,
)
from cultivation.services.integrity import (
    is_foreign_key_violation,
    is_unique_violation,
    violated_constraint,
)
from cultivation.services.location_assignment_service import (
    LocationAssignmentService,
    validate_assignment_count,
)
from cultivation.utils.sql import name_search_filter

logger = logging.getLogger(__name__)


class UserService:
    """
    Service for user CRUD.

    Example:
        service = UserService()
        admin = service.create_user(db, UserCreate(..., role=Role.ADMIN, location_ids=[site.id]))
        service.update_user(db, admin.id, UserUpdate(role=Role.SUPER_ADMIN))
    """

    def __init__(self, assignment_service: LocationAssignmentService | None = None) -> None:
        self.assignments = assignment_service or LocationAssignmentService()

    # =========================================================================
    # READ
    # =========================================================================

    def get_user(self, db: Session, user_id: uuid.UUID) -> User:
        user = db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def get_user_by_email(self, db: Session, email: str) -> User | None:
        return db.scalar(select(User).where(User.email == email.strip().lower()))

    def get_user_by_employee_id(self, db: Session, employee_id: int) -> User | None:
        return db.scalar(select(User).where(User.employee_id == employee_id))

    def list_users(
            self,
            db: Session,
            role: Role | None = None,
            location_id: uuid.UUID | None = None,
            search: str | None = None,
            skip: int = 0,
            limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[User]:
        """
        List users ordered by last then first name.

        Args:
            role: Only users with this role
            location_id: Only users assigned to this location
            search: Case-insensitive substring of first name, last name or email
        """
        stmt = select(User).order_by(User.last_name, User.first_name)
        if role is not None:
            stmt = stmt.where(User.role == role)
        if location_id is not None:
            stmt = stmt.join(LocationAssignment, LocationAssignment.user_id == User.id).where(
                LocationAssignment.location_id == location_id
            )
        if search:
            stmt = stmt.where(or_(
                name_search_filter(User.first_name, search),
                name_search_filter(User.last_name, search),
                name_search_filter(User.email, search),
            ))
        stmt = stmt.offset(skip).limit(min(limit, MAX_LIST_LIMIT))
        return list(db.scalars(stmt))

    # =========================================================================
    # WRITE
    # =========================================================================

    def create_user(self, db: Session, data: UserCreate) -> User:
        """
        Create a user and their location assignments in one transaction.

        Raises:
            DuplicateUserError: Email or employee ID already taken
            AssignmentRuleError: Location count breaks the role's limits
            LocationNotFoundError: One of the locations does not exist
        """
        self._check_unique(db, email=data.email, employee_id=data.employee_id)
        validate_assignment_count(data.role, len(data.location_ids))

        user = User(**data.model_dump(exclude={"location_ids"}))
        db.add(user)

        try:
            self.assignments.stage_assignments(db, user, data.location_ids)
        except LocationNotFoundError:
            db.rollback()
            raise

        self._commit(db, data.email, data.employee_id)
        db.refresh(user)

        logger.info(
            f"Created {user.role.value} {user.full_name} ({user.id}) "
            f"with {len(data.location_ids)} location(s)"
        )
        return user

    def update_user(self, db: Session, user_id: uuid.UUID, data: UserUpdate) -> User:
        """
        Apply the fields explicitly set in ``data``.

        A new role must fit the user's current assignments, e.g. an employee
        on two sites cannot become an admin until one is revoked.

        Raises:
            UserNotFoundError: Unknown user
            DuplicateUserError: New email or employee ID already taken
            AssignmentRuleError: New role does not fit the current assignments
        """
        user = self.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True)

        for required in ("first_name", "last_name", "email", "role"):
            if required in changes and changes[required] is None:
                del changes[required]

        new_email = changes.get("email")
        new_employee_id = changes.get("employee_id")
        self._check_unique(
            db,
            email=new_email if new_email != user.email else None,
            employee_id=new_employee_id if new_employee_id != user.employee_id else None,
            exclude_id=user.id,
        )

        new_role = changes.get("role")
        if new_role is not None and new_role != user.role:
            try:
                validate_assignment_count(new_role, self.assignments.count_for_user(db, user.id), user.id)
            except AssignmentRuleError:
                logger.warning(f"Rejected role change of {user.id} from {user.role.value} to {new_role.value}")
                raise

        for field, value in changes.items():
            setattr(user, field, value)

        self._commit(db, new_email, new_employee_id)
        db.refresh(user)
        return user

    def delete_user(self, db: Session, user_id: uuid.UUID) -> None:
        """
        Delete a user. Their location assignments go with them.

        Raises:
            UserNotFoundError: Unknown user
            ReferenceRestrictedError: The user has work entries, write-ups or audit entries
        """
        user = self.get_user(db, user_id)
        db.delete(user)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_foreign_key_violation(e):
                logger.warning(f"Refused to delete user {user_id}: still referenced")
                raise ReferenceRestrictedError(
                    "User",
                    user_id,
                    f"User {user_id} has work entries, write-ups or audit entries",
                ) from e
            raise

        logger.info(f"Deleted user {user_id}")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _check_unique(
            self,
            db: Session,
            email: str | None = None,
            employee_id: int | None = None,
            exclude_id: uuid.UUID | None = None,
    ) -> None:
        if email is not None:
            existing = self.get_user_by_email(db, email)
            if existing is not None and existing.id != exclude_id:
                raise DuplicateUserError("email", email)

        if employee_id is not None:
            existing = self.get_user_by_employee_id(db, employee_id)
            if existing is not None and existing.id != exclude_id:
                raise DuplicateUserError("employee_id", employee_id)

    def _commit(self, db: Session, email: str | None, employee_id: int | None) -> None:
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                # Concurrent insert won the race
                constraint = (violated_constraint(e) or "").lower()
                if "email" in constraint:
                    raise DuplicateUserError("email", email) from e
                if "employee" in constraint:
                    raise DuplicateUserError("employee_id", employee_id) from e
                raise DuplicateUserError() from e
            if is_foreign_key_violation(e):
                raise InvalidReferenceError("Location") from e
            raise
