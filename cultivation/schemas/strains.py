# cultivation/schemas/strains.py
"""
Pydantic schemas for Strain validation.

bucket_weight mirrors the numeric(6,3) column: up to 3 integer digits and
3 decimals, strictly positive.
"""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cultivation.schemas.validators import (
    BUCKET_WEIGHT_DECIMAL_PLACES,
    BUCKET_WEIGHT_MAX_DIGITS,
    normalize_name,
    normalize_optional_text,
)


class StrainBase(BaseModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        examples=["OG Kush", "Blue Dream"],
        description="Unique strain name",
    )
    description: str | None = None
    bucket_weight: Decimal = Field(
        ...,
        gt=0,
        max_digits=BUCKET_WEIGHT_MAX_DIGITS,
        decimal_places=BUCKET_WEIGHT_DECIMAL_PLACES,
        examples=["12.500"],
        description="Default weight of this strain that fits into one standard bucket",
    )
    notes: str | None = None

    @field_validator("name")
    @classmethod
    def trim_name(cls, v: str) -> str:
        return normalize_name(v)

    @field_validator("description", "notes")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)


class StrainCreate(StrainBase):
    """Schema for registering a new strain."""
    pass


class StrainUpdate(BaseModel):
    """
    Schema for updating a strain.

    name and bucket_weight are locked by the service once any batch
    references the strain; description and notes stay editable.
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    bucket_weight: Decimal | None = Field(
        default=None,
        gt=0,
        max_digits=BUCKET_WEIGHT_MAX_DIGITS,
        decimal_places=BUCKET_WEIGHT_DECIMAL_PLACES,
    )
    notes: str | None = None

    @field_validator("name")
    @classmethod
    def trim_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return normalize_name(v)

    @field_validator("description", "notes")
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)


class StrainResponse(StrainBase):
    id: UUID

    model_config = ConfigDict(from_attributes=True)
