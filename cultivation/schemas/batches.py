# cultivation/schemas/batches.py
"""
Pydantic schemas for Batch and BatchStrain.

Validation layers:
- Field constraints: positive batch number
- Model validators: a batch cannot be created already published
- Service: sequential numbering, in-progress capacity per location,
  status transitions, strain completion
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cultivation.models import BatchStatus
from cultivation.schemas.validators import normalize_optional_text


class BatchCreate(BaseModel):
    """
    Schema for starting a new batch at a location.

    Leave ``number`` empty to get the next number for the location. An
    explicit number is used as-is; if it is taken the create fails.
    """

    location_id: UUID
    number: int | None = Field(
        default=None,
        gt=0,
        description="Batch number within the location (auto-assigned when omitted)",
    )
    start_date: date
    status: BatchStatus = Field(
        default=BatchStatus.IN_PROGRESS,
        description="planned or in_progress",
    )
    notes: str | None = None
    strain_ids: list[UUID] = Field(
        default_factory=list,
        description="Strains to attach right away",
    )

    @field_validator("status")
    @classmethod
    def not_published(cls, v: BatchStatus) -> BatchStatus:
        if v == BatchStatus.PUBLISHED:
            raise ValueError("A batch cannot be created as published")
        return v

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)

    @field_validator("strain_ids")
    @classmethod
    def unique_strain_ids(cls, v: list[UUID]) -> list[UUID]:
        if len(set(v)) != len(v):
            raise ValueError("A strain can only be attached to a batch once")
        return v


class BatchUpdate(BaseModel):
    """
    Mutable batch fields.

    Status has its own operation (BatchService.transition_status) and the
    number and location never change.
    """

    start_date: date | None = None
    notes: str | None = None

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)


class BatchStrainResponse(BaseModel):
    id: UUID
    batch_id: UUID
    strain_id: UUID
    is_completed: bool

    model_config = ConfigDict(from_attributes=True)


class BatchResponse(BaseModel):
    id: UUID
    location_id: UUID
    number: int
    start_date: date
    end_date: date | None
    status: BatchStatus
    notes: str | None
    created_at: datetime
    updated_at: datetime
    batch_strains: list[BatchStrainResponse] = []

    model_config = ConfigDict(from_attributes=True)
