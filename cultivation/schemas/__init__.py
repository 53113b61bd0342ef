# cultivation/schemas/__init__.py
"""
Pydantic schemas for service input validation.

Organized by domain:
- locations, strains, users: Reference data
- assignments: User/location membership
- batches: Batch lifecycle and batch strains
- work_entries: Daily work logging and summary filters
- write_ups: Disciplinary records
- audit_logs: Change log entries
- validators: Reusable validation functions and column precision

Usage:
    from cultivation.schemas import BatchCreate, WorkEntryCreate
"""

from cultivation.schemas.assignments import AssignmentCreate, AssignmentResponse
from cultivation.schemas.audit_logs import AuditLogCreate, AuditLogResponse
from cultivation.schemas.batches import (
    BatchCreate,
    BatchResponse,
    BatchStrainResponse,
    BatchUpdate,
)
from cultivation.schemas.locations import LocationCreate, LocationResponse, LocationUpdate
from cultivation.schemas.strains import StrainCreate, StrainResponse, StrainUpdate
from cultivation.schemas.users import UserCreate, UserResponse, UserUpdate
from cultivation.schemas.work_entries import (
    WorkEntryCreate,
    WorkEntryFilter,
    WorkEntryResponse,
    WorkEntryUpdate,
    WorkSummaryGrouping,
)
from cultivation.schemas.write_ups import (
    WriteUpCreate,
    WriteUpResolve,
    WriteUpResponse,
    WriteUpUpdate,
)

__all__ = [
    # Locations
    "LocationCreate",
    "LocationUpdate",
    "LocationResponse",
    # Strains
    "StrainCreate",
    "StrainUpdate",
    "StrainResponse",
    # Users
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    # Assignments
    "AssignmentCreate",
    "AssignmentResponse",
    # Batches
    "BatchCreate",
    "BatchUpdate",
    "BatchResponse",
    "BatchStrainResponse",
    # Work entries
    "WorkEntryCreate",
    "WorkEntryUpdate",
    "WorkEntryFilter",
    "WorkEntryResponse",
    "WorkSummaryGrouping",
    # Write-ups
    "WriteUpCreate",
    "WriteUpUpdate",
    "WriteUpResolve",
    "WriteUpResponse",
    # Audit logs
    "AuditLogCreate",
    "AuditLogResponse",
]
