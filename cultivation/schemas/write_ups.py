# cultivation/schemas/write_ups.py
"""
Pydantic schemas for WriteUp.

Validation layers:
- Model validators: date ordering, follow-up date for severe write-ups,
  an employee cannot write themselves up
- Service: issuer/resolver role, sequential numbering per employee,
  dates checked against the stored record on update/resolve
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cultivation.models import WriteUpSeverity
from cultivation.schemas.validators import (
    FOLLOW_UP_REQUIRED_SEVERITIES,
    normalize_optional_text,
    validate_not_in_future,
)


class WriteUpCreate(BaseModel):
    employee_id: UUID = Field(..., description="Employee receiving the write-up")
    issued_by: UUID = Field(..., description="Admin issuing it")
    write_up_number: int | None = Field(
        default=None,
        gt=0,
        description="Number within the employee's write-ups (auto-assigned when omitted)",
    )
    severity: WriteUpSeverity
    issue_date: date = Field(default_factory=date.today)
    incident_date: date
    follow_up_date: date | None = None
    description: str = Field(..., min_length=1)
    corrective_action: str | None = None
    employee_response: str | None = None
    witness_information: str | None = None

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v: str) -> str:
        normalized = v.strip()
        if not normalized:
            raise ValueError("Description cannot be blank")
        return normalized

    @field_validator("corrective_action", "employee_response", "witness_information")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)

    @field_validator("incident_date")
    @classmethod
    def incident_not_in_future(cls, v: date) -> date:
        return validate_not_in_future(v, "incident_date")

    @model_validator(mode="after")
    def validate_write_up(self) -> "WriteUpCreate":
        if self.employee_id == self.issued_by:
            raise ValueError("An employee cannot issue a write-up to themselves")

        if self.incident_date > self.issue_date:
            raise ValueError(
                f"incident_date ({self.incident_date}) must be on or before issue_date ({self.issue_date})"
            )

        if self.follow_up_date is not None and self.follow_up_date < self.issue_date:
            raise ValueError(
                f"follow_up_date ({self.follow_up_date}) must be on or after issue_date ({self.issue_date})"
            )

        if self.severity in FOLLOW_UP_REQUIRED_SEVERITIES and self.follow_up_date is None:
            raise ValueError(f"A follow_up_date is required for {self.severity.value} write-ups")

        return self


class WriteUpUpdate(BaseModel):
    """
    Details that may be filled in after issuing.

    Severity, dates of the incident and issue, and the parties involved
    are fixed once the write-up exists.
    """

    follow_up_date: date | None = None
    corrective_action: str | None = None
    employee_response: str | None = None
    witness_information: str | None = None

    @field_validator("corrective_action", "employee_response", "witness_information")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)


class WriteUpResolve(BaseModel):
    resolved_by: UUID
    resolved_date: date = Field(default_factory=date.today)
    resolution_notes: str = Field(..., min_length=1)

    @field_validator("resolution_notes")
    @classmethod
    def normalize_notes(cls, v: str) -> str:
        normalized = v.strip()
        if not normalized:
            raise ValueError("Resolution notes cannot be blank")
        return normalized


class WriteUpResponse(BaseModel):
    id: UUID
    employee_id: UUID
    issued_by: UUID
    write_up_number: int
    severity: WriteUpSeverity
    issue_date: date
    incident_date: date
    follow_up_date: date | None
    description: str
    corrective_action: str | None
    employee_response: str | None
    witness_information: str | None
    resolved_date: date | None
    resolved_by: UUID | None
    resolution_notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
