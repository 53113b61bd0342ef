# cultivation/schemas/users.py
"""
Pydantic schemas for User validation.

Validation layers:
- Field constraints: email format (email-validator), positive employee ID
- Field validators: trimmed names, lower-cased email, unique location ids
- Service: uniqueness, assignment count rules per role
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from cultivation.models import Role
from cultivation.schemas.validators import normalize_name, validate_unique_ids


class UserBase(BaseModel):
    employee_id: int | None = Field(
        default=None,
        gt=0,
        examples=[1042],
        description="Payroll employee number (optional, unique)",
    )
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: Role = Field(default=Role.EMPLOYEE, description="employee, admin or super_admin")
    email: EmailStr = Field(..., description="Unique login email (stored lower-case)")

    @field_validator("first_name", "last_name")
    @classmethod
    def normalize_names(cls, v: str) -> str:
        return normalize_name(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserCreate(UserBase):
    """
    Schema for creating a user together with their initial locations.

    Employees and admins need at least one location (admins at most one);
    super admins may have none. The counts are checked by UserService.
    """

    location_ids: list[UUID] = Field(
        default_factory=list,
        description="Locations the user is assigned to on creation",
    )

    @field_validator("location_ids")
    @classmethod
    def unique_location_ids(cls, v: list[UUID]) -> list[UUID]:
        return validate_unique_ids(v)


class UserUpdate(BaseModel):
    """
    Schema for updating a user. All fields optional.

    A role change is validated against the user's current assignments.
    """

    employee_id: int | None = Field(default=None, gt=0)
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: Role | None = None
    email: EmailStr | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def normalize_names(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return normalize_name(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip().lower()


class UserResponse(UserBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
