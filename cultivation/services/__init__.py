# cultivation/services/__init__.py
"""
Service layer for the cultivation tracker.

Services:
- Know nothing about transports (no HTTP status codes, no CLI output)
- Receive an open SQLAlchemy session as their first argument
- Commit their own unit of work, rolling back before raising
- Raise domain exceptions from services.exceptions

Usage:
    from cultivation.services import BatchService, WorkEntryService
    from cultivation.services import DuplicateWorkEntryError, SequenceConflictError

Architecture:
    services/
    ├── __init__.py                       # This file - main exports
    ├── exceptions.py                     # Domain exceptions
    ├── constants.py                      # Business limits and transitions
    ├── integrity.py                      # IntegrityError classification
    ├── sequencing.py                     # Per-parent sequential numbering
    ├── location_service.py               # Locations
    ├── strain_service.py                 # Strain registry
    ├── user_service.py                   # Users
    ├── location_assignment_service.py    # User/location membership rules
    ├── batch_service.py                  # Batch lifecycle and batch strains
    ├── work_entry_service.py             # Work logging and totals
    ├── write_up_service.py               # Disciplinary records
    └── audit_log_service.py              # Append-only change log
"""

from cultivation.services.audit_log_service import AuditLogService
from cultivation.services.batch_service import BatchService
from cultivation.services.exceptions import (
    AssignmentNotFoundError,
    AssignmentRuleError,
    BatchCapacityError,
    BatchNotFoundError,
    BatchStrainClosedError,
    BatchStrainNotFoundError,
    BusinessRuleError,
    ConflictError,
    DuplicateAssignmentError,
    DuplicateBatchNumberError,
    DuplicateBatchStrainError,
    DuplicateError,
    DuplicateLocationError,
    DuplicateStrainError,
    DuplicateUserError,
    DuplicateWorkEntryError,
    DuplicateWriteUpNumberError,
    ImmutableFieldError,
    InvalidReferenceError,
    InvalidStatusTransitionError,
    LocationNotFoundError,
    NotFoundError,
    ReferenceRestrictedError,
    SequenceConflictError,
    ServiceError,
    StrainNotFoundError,
    UserNotFoundError,
    ValidationError,
    WorkEntryNotFoundError,
    WriteUpNotFoundError,
)
from cultivation.services.location_assignment_service import (
    LocationAssignmentService,
    validate_assignment_count,
)
from cultivation.services.location_service import LocationService
from cultivation.services.strain_service import StrainService
from cultivation.services.user_service import UserService
from cultivation.services.work_entry_service import WorkEntryService, WorkSummary
from cultivation.services.write_up_service import WriteUpService

__all__ = [
    # Services
    "LocationService",
    "StrainService",
    "UserService",
    "LocationAssignmentService",
    "validate_assignment_count",
    "BatchService",
    "WorkEntryService",
    "WorkSummary",
    "WriteUpService",
    "AuditLogService",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "InvalidReferenceError",
    "NotFoundError",
    "LocationNotFoundError",
    "StrainNotFoundError",
    "UserNotFoundError",
    "AssignmentNotFoundError",
    "BatchNotFoundError",
    "BatchStrainNotFoundError",
    "WorkEntryNotFoundError",
    "WriteUpNotFoundError",
    "ConflictError",
    "DuplicateError",
    "DuplicateLocationError",
    "DuplicateStrainError",
    "DuplicateUserError",
    "DuplicateAssignmentError",
    "DuplicateBatchNumberError",
    "DuplicateBatchStrainError",
    "DuplicateWorkEntryError",
    "DuplicateWriteUpNumberError",
    "SequenceConflictError",
    "ReferenceRestrictedError",
    "BusinessRuleError",
    "AssignmentRuleError",
    "InvalidStatusTransitionError",
    "BatchStrainClosedError",
    "BatchCapacityError",
    "ImmutableFieldError",
]
