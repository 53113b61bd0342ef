# cultivation/schemas/work_entries.py
"""
Pydantic schemas for WorkEntry.

amount is grams processed (numeric(6,2), never negative); hours is time
spent (numeric(4,2), more than 0 and at most 24). The date cannot be in
the future; the service also checks it against the batch start date.
"""

from datetime import date
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cultivation.schemas.validators import (
    MAX_WORK_HOURS_PER_ENTRY,
    WORK_AMOUNT_MAX_DIGITS,
    WORK_DECIMAL_PLACES,
    WORK_HOURS_MAX_DIGITS,
    normalize_optional_text,
    validate_not_in_future,
)


class WorkEntryCreate(BaseModel):
    user_id: UUID
    batch_strain_id: UUID
    work_date: date = Field(..., description="Day the work was done")
    amount: Decimal = Field(
        ...,
        ge=0,
        max_digits=WORK_AMOUNT_MAX_DIGITS,
        decimal_places=WORK_DECIMAL_PLACES,
        examples=["50.25"],
        description="Grams processed",
    )
    hours: Decimal = Field(
        ...,
        gt=0,
        le=MAX_WORK_HOURS_PER_ENTRY,
        max_digits=WORK_HOURS_MAX_DIGITS,
        decimal_places=WORK_DECIMAL_PLACES,
        examples=["3.50"],
        description="Hours worked",
    )
    notes: str | None = None

    @field_validator("work_date")
    @classmethod
    def not_in_future(cls, v: date) -> date:
        return validate_not_in_future(v, "work_date")

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)


class WorkEntryUpdate(BaseModel):
    """
    Correct a logged entry. The user, batch strain and date identify the
    entry and cannot change; delete and re-create instead.
    """

    amount: Decimal | None = Field(
        default=None,
        ge=0,
        max_digits=WORK_AMOUNT_MAX_DIGITS,
        decimal_places=WORK_DECIMAL_PLACES,
    )
    hours: Decimal | None = Field(
        default=None,
        gt=0,
        le=MAX_WORK_HOURS_PER_ENTRY,
        max_digits=WORK_HOURS_MAX_DIGITS,
        decimal_places=WORK_DECIMAL_PLACES,
    )
    notes: str | None = None

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return normalize_optional_text(v)


class WorkEntryFilter(BaseModel):
    """Optional filters for listing and summarizing work entries."""

    user_id: UUID | None = None
    batch_id: UUID | None = None
    location_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None

    @model_validator(mode="after")
    def validate_date_range(self) -> "WorkEntryFilter":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(f"start_date ({self.start_date}) must be on or before end_date ({self.end_date})")
        return self


WorkSummaryGrouping = Literal["user", "batch", "date"]


class WorkEntryResponse(BaseModel):
    id: UUID
    user_id: UUID
    batch_strain_id: UUID
    work_date: date
    amount: Decimal
    hours: Decimal
    notes: str | None

    model_config = ConfigDict(from_attributes=True)
