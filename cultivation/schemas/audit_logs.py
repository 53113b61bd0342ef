# cultivation/schemas/audit_logs.py
"""
Pydantic schemas for AuditLog entries.

Snapshots follow the operation: an INSERT has no old values, a DELETE has
no new values, an UPDATE carries both.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cultivation.models import AuditOperation


class AuditLogCreate(BaseModel):
    table_name: str = Field(..., min_length=1, examples=["batches"])
    record_id: UUID
    operation: AuditOperation
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    user_id: UUID | None = Field(default=None, description="Acting user (defaults to the current context)")
    ip_address: str | None = Field(default=None, description="Client IP (defaults to the current context)")

    @model_validator(mode="after")
    def validate_snapshots(self) -> "AuditLogCreate":
        if self.operation == AuditOperation.INSERT and self.old_values is not None:
            raise ValueError("INSERT entries cannot carry old_values")
        if self.operation == AuditOperation.DELETE and self.new_values is not None:
            raise ValueError("DELETE entries cannot carry new_values")
        if self.operation == AuditOperation.UPDATE and (self.old_values is None or self.new_values is None):
            raise ValueError("UPDATE entries need both old_values and new_values")
        return self


class AuditLogResponse(BaseModel):
    id: UUID
    table_name: str
    record_id: UUID
    operation: str
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    user_id: UUID | None
    timestamp: datetime
    ip_address: str | None

    model_config = ConfigDict(from_attributes=True)
