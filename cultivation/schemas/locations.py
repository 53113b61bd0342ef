# cultivation/schemas/locations.py
"""
Pydantic schemas for Location validation.

Validation layers:
- Field constraints: length
- Field validators: trimming
- Service: uniqueness, delete restrictions
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cultivation.schemas.validators import normalize_name, normalize_optional_text


class LocationBase(BaseModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        examples=["Site A", "North Greenhouse"],
        description="Unique location name",
    )
    notes: str | None = Field(default=None, description="Free-form notes")

    @field_validator("name")
    @classmethod
    def trim_name(cls, v: str) -> str:
        return normalize_name(v)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)


class LocationCreate(LocationBase):
    """Schema for creating a new location."""
    pass


class LocationUpdate(BaseModel):
    """
    Schema for updating a location.

    All fields are optional. Only fields explicitly sent are applied
    (use model_dump(exclude_unset=True)).
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    notes: str | None = None

    @field_validator("name")
    @classmethod
    def trim_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return normalize_name(v)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)


class LocationResponse(LocationBase):
    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
