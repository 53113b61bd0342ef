# cultivation/schemas/assignments.py
"""Pydantic schemas for LocationAssignment."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AssignmentCreate(BaseModel):
    user_id: UUID
    location_id: UUID


class AssignmentResponse(BaseModel):
    id: UUID
    user_id: UUID
    location_id: UUID

    model_config = ConfigDict(from_attributes=True)
