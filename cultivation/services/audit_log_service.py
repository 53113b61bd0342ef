# cultivation/services/audit_log_service.py
"""
Audit Log Service: append-only record of data changes.

The log is generic: an entry names a table and a row id and carries JSON
snapshots of the row before and/or after the change. Deciding when to
write an entry belongs to whoever performs the mutation; this service only
stores and reads entries. There is no update or delete.

The acting user and client IP default to the values in
cultivation.utils.context, so a request handler sets them once:

    set_actor(user_id=admin.id, ip_address="10.0.0.7")

    before = audit.snapshot(batch)
    batch_service.update_batch(db, batch.id, BatchUpdate(notes="moved to room 2"))
    audit.record_change(db, batch, AuditOperation.UPDATE, old_values=before)
"""

import enum
import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cultivation.models import AuditLog, AuditOperation, Base
from cultivation.schemas.audit_logs import AuditLogCreate
from cultivation.services.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from cultivation.services.exceptions import InvalidReferenceError, ValidationError
from cultivation.services.integrity import (
    is_check_violation,
    is_foreign_key_violation,
    is_not_null_violation,
    violated_constraint,
)
from cultivation.utils.context import get_actor_user_id, get_client_ip

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class AuditLogService:
    """Service for writing and reading audit entries."""

    @staticmethod
    def snapshot(instance: Base) -> dict[str, Any]:
        """
        Column values of an ORM row keyed by their stored column names.

        UUIDs, decimals and dates become strings so the result fits a JSON
        column; enums become their stored value.
        """
        mapper = inspect(instance).mapper
        return {
            attr.columns[0].name: _json_safe(getattr(instance, attr.key))
            for attr in mapper.column_attrs
        }

    def record(self, db: Session, data: AuditLogCreate, commit: bool = True) -> AuditLog:
        """
        Append an entry.

        Args:
            db: Database session
            data: Entry contents; user_id / ip_address fall back to the context
            commit: False to only add the entry to the caller's transaction

        Raises:
            InvalidReferenceError: user_id does not exist
            ValidationError: The store rejected the entry (unknown operation, missing value)
        """
        entry = AuditLog(
            table_name=data.table_name,
            record_id=data.record_id,
            operation=data.operation.value,
            old_values=data.old_values,
            new_values=data.new_values,
            user_id=data.user_id or get_actor_user_id(),
            ip_address=data.ip_address or get_client_ip(),
        )
        db.add(entry)

        if not commit:
            return entry

        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_foreign_key_violation(e):
                raise InvalidReferenceError("User", f"Acting user {entry.user_id} does not exist") from e
            if is_check_violation(e):
                raise ValidationError(
                    f"Audit operation '{entry.operation}' is not INSERT, UPDATE or DELETE", field="operation"
                ) from e
            if is_not_null_violation(e):
                raise ValidationError(f"Audit entry is missing a required value ({violated_constraint(e)})") from e
            raise

        db.refresh(entry)
        logger.debug(f"Audit {entry.operation} {entry.table_name}/{entry.record_id}")
        return entry

    def record_change(
            self,
            db: Session,
            instance: Base,
            operation: AuditOperation,
            old_values: dict[str, Any] | None = None,
            commit: bool = True,
    ) -> AuditLog:
        """
        Record a change to an ORM row, snapshotting its current state.

        For DELETE pass the snapshot taken before deleting as ``old_values``
        (the row itself is only used for its table name and id).
        """
        if operation == AuditOperation.DELETE:
            old_values = old_values if old_values is not None else self.snapshot(instance)
            new_values = None
        else:
            new_values = self.snapshot(instance)

        data = AuditLogCreate(
            table_name=instance.__tablename__,
            record_id=instance.id,
            operation=operation,
            old_values=old_values,
            new_values=new_values,
        )
        return self.record(db, data, commit=commit)

    def list_for_record(self, db: Session, table_name: str, record_id: uuid.UUID) -> list[AuditLog]:
        """History of one row, oldest first."""
        stmt = (
            select(AuditLog)
            .where(AuditLog.table_name == table_name, AuditLog.record_id == record_id)
            .order_by(AuditLog.timestamp, AuditLog.id)
        )
        return list(db.scalars(stmt))

    def list_recent(
            self,
            db: Session,
            table_name: str | None = None,
            user_id: uuid.UUID | None = None,
            limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[AuditLog]:
        """Newest entries first, optionally for one table or one acting user."""
        stmt = select(AuditLog).order_by(AuditLog.timestamp.desc())
        if table_name is not None:
            stmt = stmt.where(AuditLog.table_name == table_name)
        if user_id is not None:
            stmt = stmt.where(AuditLog.user_id == user_id)
        return list(db.scalars(stmt.limit(min(limit, MAX_LIST_LIMIT))))
