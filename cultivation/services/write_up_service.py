# cultivation/services/write_up_service.py
"""
Write-Up Service for disciplinary records.

Write-ups are numbered 1, 2, 3... per employee, allocated the same way as
batch numbers (row lock on the employee, max+1, one retry on collision).
They are never deleted: a write-up is closed by resolving it.

Rules enforced here:
- The issuer and the resolver must be admins or super admins
- Final warnings, suspensions and terminations carry a follow-up date
- Follow-up and resolution dates cannot precede the issue date
- A resolved write-up is closed for edits

Usage:
    service = WriteUpService()
    write_up = service.create_write_up(db, WriteUpCreate(
        employee_id=ada.id, issued_by=boss.id,
        severity=WriteUpSeverity.VERBAL_WARNING,
        incident_date=date(2024, 3, 1), description="Late three days in a row",
    ))
    service.resolve(db, write_up.id, WriteUpResolve(resolved_by=boss.id, resolution_notes="Improved"))
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cultivation.models import User, WriteUp, WriteUpSeverity
from cultivation.schemas.validators import FOLLOW_UP_REQUIRED_SEVERITIES
from cultivation.schemas.write_ups import WriteUpCreate, WriteUpResolve, WriteUpUpdate
from cultivation.services.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT, WRITE_UP_ISSUER_ROLES
from cultivation.services.exceptions import (
    BusinessRuleError,
    DuplicateWriteUpNumberError,
    InvalidReferenceError,
    UserNotFoundError,
    ValidationError,
    WriteUpNotFoundError,
)
from cultivation.services.integrity import is_foreign_key_violation, is_unique_violation
from cultivation.services.sequencing import insert_with_next_number

logger = logging.getLogger(__name__)


class WriteUpService:
    """Service for issuing, amending and resolving write-ups."""

    # =========================================================================
    # READ
    # =========================================================================

    def get_write_up(self, db: Session, write_up_id: uuid.UUID) -> WriteUp:
        write_up = db.get(WriteUp, write_up_id)
        if write_up is None:
            raise WriteUpNotFoundError(write_up_id)
        return write_up

    def list_for_employee(
            self,
            db: Session,
            employee_id: uuid.UUID,
            unresolved_only: bool = False,
    ) -> list[WriteUp]:
        """
        An employee's write-ups in number order.

        Raises:
            UserNotFoundError: Unknown employee
        """
        if db.get(User, employee_id) is None:
            raise UserNotFoundError(employee_id)

        stmt = select(WriteUp).where(WriteUp.employee_id == employee_id).order_by(WriteUp.write_up_number)
        if unresolved_only:
            stmt = stmt.where(WriteUp.resolved_date.is_(None))
        return list(db.scalars(stmt))

    def list_write_ups(
            self,
            db: Session,
            severity: WriteUpSeverity | None = None,
            unresolved_only: bool = False,
            skip: int = 0,
            limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[WriteUp]:
        """All write-ups, most recently issued first."""
        stmt = select(WriteUp).order_by(WriteUp.issue_date.desc(), WriteUp.write_up_number.desc())
        if severity is not None:
            stmt = stmt.where(WriteUp.severity == severity)
        if unresolved_only:
            stmt = stmt.where(WriteUp.resolved_date.is_(None))
        stmt = stmt.offset(skip).limit(min(limit, MAX_LIST_LIMIT))
        return list(db.scalars(stmt))

    # =========================================================================
    # WRITE
    # =========================================================================

    def create_write_up(self, db: Session, data: WriteUpCreate) -> WriteUp:
        """
        Issue a write-up.

        Raises:
            UserNotFoundError: Unknown employee or issuer
            BusinessRuleError: Issuer is not an admin
            DuplicateWriteUpNumberError: Explicit number already used for the employee
            SequenceConflictError: Auto numbering lost twice to concurrent writers
        """
        if db.get(User, data.employee_id) is None:
            raise UserNotFoundError(data.employee_id)
        self._require_admin(db, data.issued_by, "issue")

        fields = data.model_dump(exclude={"write_up_number"})

        def build(number: int) -> WriteUp:
            return WriteUp(write_up_number=number, **fields)

        try:
            if data.write_up_number is None:
                write_up = insert_with_next_number(
                    db,
                    parent_model=User,
                    parent_id=data.employee_id,
                    number_column=WriteUp.write_up_number,
                    scope_column=WriteUp.employee_id,
                    build=build,
                    sequence_name="write-up number",
                    not_found=UserNotFoundError,
                )
            else:
                write_up = self._insert_numbered(db, build, data.employee_id, data.write_up_number)
        except IntegrityError as e:
            if is_foreign_key_violation(e):
                raise InvalidReferenceError("User") from e
            raise

        logger.info(
            f"Issued write-up #{write_up.write_up_number} ({write_up.severity.value}) "
            f"to {write_up.employee_id} by {write_up.issued_by}"
        )
        return write_up

    def update_details(self, db: Session, write_up_id: uuid.UUID, data: WriteUpUpdate) -> WriteUp:
        """
        Fill in follow-up date, corrective action, employee response or witnesses.

        Raises:
            WriteUpNotFoundError: Unknown write-up
            BusinessRuleError: Already resolved
            ValidationError: Follow-up date missing where required, or before the issue date
        """
        write_up = self.get_write_up(db, write_up_id)
        if write_up.is_resolved:
            raise BusinessRuleError(f"Write-up {write_up_id} is resolved and can no longer be edited")

        changes = data.model_dump(exclude_unset=True)

        if "follow_up_date" in changes:
            follow_up = changes["follow_up_date"]
            if follow_up is None and write_up.severity in FOLLOW_UP_REQUIRED_SEVERITIES:
                raise ValidationError(
                    f"A follow_up_date is required for {write_up.severity.value} write-ups",
                    field="follow_up_date",
                )
            if follow_up is not None and follow_up < write_up.issue_date:
                raise ValidationError(
                    f"follow_up_date {follow_up} is before the issue date {write_up.issue_date}",
                    field="follow_up_date",
                )

        for field, value in changes.items():
            setattr(write_up, field, value)

        db.commit()
        db.refresh(write_up)
        return write_up

    def resolve(self, db: Session, write_up_id: uuid.UUID, data: WriteUpResolve) -> WriteUp:
        """
        Close a write-up.

        Raises:
            WriteUpNotFoundError: Unknown write-up
            UserNotFoundError: Unknown resolver
            BusinessRuleError: Already resolved, or resolver is not an admin
            ValidationError: Resolution date before the issue date
        """
        write_up = self.get_write_up(db, write_up_id)
        if write_up.is_resolved:
            raise BusinessRuleError(f"Write-up {write_up_id} was already resolved on {write_up.resolved_date}")

        self._require_admin(db, data.resolved_by, "resolve")

        if data.resolved_date < write_up.issue_date:
            raise ValidationError(
                f"resolved_date {data.resolved_date} is before the issue date {write_up.issue_date}",
                field="resolved_date",
            )

        write_up.resolved_by = data.resolved_by
        write_up.resolved_date = data.resolved_date
        write_up.resolution_notes = data.resolution_notes

        db.commit()
        db.refresh(write_up)
        logger.info(f"Resolved write-up #{write_up.write_up_number} of {write_up.employee_id}")
        return write_up

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _require_admin(self, db: Session, user_id: uuid.UUID, action: str) -> User:
        user = db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        if user.role not in WRITE_UP_ISSUER_ROLES:
            logger.warning(f"Rejected write-up {action} by {user.role.value} {user_id}")
            raise BusinessRuleError(f"Only admins can {action} write-ups (user {user_id} is {user.role.value})")
        return user

    def _insert_numbered(self, db: Session, build, employee_id: uuid.UUID, number: int) -> WriteUp:
        existing = db.scalar(
            select(WriteUp).where(WriteUp.employee_id == employee_id, WriteUp.write_up_number == number)
        )
        if existing is not None:
            raise DuplicateWriteUpNumberError(employee_id, number)

        write_up = build(number)
        db.add(write_up)

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_unique_violation(e):
                raise DuplicateWriteUpNumberError(employee_id, number) from e
            raise

        db.refresh(write_up)
        return write_up
