# cultivation/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO transport
knowledge. Callers (an API, a CLI, a batch job) map them to their own
responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   └── InvalidReferenceError
    ├── NotFoundError
    │   ├── LocationNotFoundError
    │   ├── StrainNotFoundError
    │   ├── UserNotFoundError
    │   ├── AssignmentNotFoundError
    │   ├── BatchNotFoundError
    │   ├── BatchStrainNotFoundError
    │   ├── WorkEntryNotFoundError
    │   └── WriteUpNotFoundError
    ├── ConflictError
    │   ├── DuplicateError
    │   │   ├── DuplicateLocationError
    │   │   ├── DuplicateStrainError
    │   │   ├── DuplicateUserError
    │   │   ├── DuplicateAssignmentError
    │   │   ├── DuplicateBatchNumberError
    │   │   ├── DuplicateBatchStrainError
    │   │   ├── DuplicateWorkEntryError
    │   │   └── DuplicateWriteUpNumberError
    │   ├── SequenceConflictError
    │   └── ReferenceRestrictedError
    └── BusinessRuleError
        ├── AssignmentRuleError
        ├── InvalidStatusTransitionError
        ├── BatchStrainClosedError
        ├── BatchCapacityError
        └── ImmutableFieldError
"""

from datetime import date
from uuid import UUID


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input fails a check that pydantic cannot do on its own
    (dates relative to a batch, NOT NULL rejected by the store, ...).

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidReferenceError(ValidationError):
    """
    Raised when a write points at a row that does not exist
    (foreign key violation on insert or update).
    """

    def __init__(self, resource_type: str, message: str | None = None) -> None:
        self.resource_type = resource_type
        super().__init__(message or f"Referenced {resource_type} does not exist")


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Location", "Batch")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: UUID | int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class _EntityNotFoundError(NotFoundError):
    resource_type: str = "Resource"

    def __init__(self, resource_id: UUID | int | str) -> None:
        super().__init__(
            f"{self.resource_type} {resource_id} not found",
            resource_type=self.resource_type,
            resource_id=resource_id,
        )


class LocationNotFoundError(_EntityNotFoundError):
    resource_type = "Location"


class StrainNotFoundError(_EntityNotFoundError):
    resource_type = "Strain"


class UserNotFoundError(_EntityNotFoundError):
    resource_type = "User"


class AssignmentNotFoundError(NotFoundError):
    """Raised when a user is not assigned to the given location."""

    def __init__(self, user_id: UUID, location_id: UUID) -> None:
        self.user_id = user_id
        self.location_id = location_id
        super().__init__(
            f"User {user_id} is not assigned to location {location_id}",
            resource_type="LocationAssignment",
        )


class BatchNotFoundError(_EntityNotFoundError):
    resource_type = "Batch"


class BatchStrainNotFoundError(_EntityNotFoundError):
    resource_type = "BatchStrain"


class WorkEntryNotFoundError(_EntityNotFoundError):
    resource_type = "WorkEntry"


class WriteUpNotFoundError(_EntityNotFoundError):
    resource_type = "WriteUp"


# =============================================================================
# CONFLICT ERRORS
# =============================================================================


class ConflictError(ServiceError):
    """
    Base exception for writes the store rejected because of existing data.

    Conflicts are never retried, except sequence assignment which gets a
    single retry before SequenceConflictError is raised.
    """
    pass


class DuplicateError(ConflictError):
    """
    Raised when a business key already exists (unique constraint).

    Attributes:
        resource_type: Entity whose key collided
        key: Human-readable description of the duplicated key
    """

    resource_type: str = "Resource"

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"{self.resource_type} with {key} already exists")


class DuplicateLocationError(DuplicateError):
    resource_type = "Location"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"name '{name}'")


class DuplicateStrainError(DuplicateError):
    resource_type = "Strain"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"name '{name}'")


class DuplicateUserError(DuplicateError):
    """
    Raised when email or employee ID is already taken.

    Attributes:
        field: "email" or "employee_id" (None when the store did not say)
    """

    resource_type = "User"

    def __init__(self, field: str | None = None, value: str | int | None = None) -> None:
        self.field = field
        self.value = value
        key = f"{field} '{value}'" if field else "the same email or employee ID"
        super().__init__(key)


class DuplicateAssignmentError(DuplicateError):
    resource_type = "LocationAssignment"

    def __init__(self, user_id: UUID, location_id: UUID) -> None:
        self.user_id = user_id
        self.location_id = location_id
        super().__init__(
            f"user {user_id} and location {location_id}",
            message=f"User {user_id} is already assigned to location {location_id}",
        )


class DuplicateBatchNumberError(DuplicateError):
    resource_type = "Batch"

    def __init__(self, location_id: UUID, number: int) -> None:
        self.location_id = location_id
        self.number = number
        super().__init__(
            f"number {number}",
            message=f"Batch number {number} already exists at location {location_id}",
        )


class DuplicateBatchStrainError(DuplicateError):
    resource_type = "BatchStrain"

    def __init__(self, batch_id: UUID, strain_id: UUID) -> None:
        self.batch_id = batch_id
        self.strain_id = strain_id
        super().__init__(
            f"strain {strain_id}",
            message=f"Strain {strain_id} is already attached to batch {batch_id}",
        )


class DuplicateWorkEntryError(DuplicateError):
    resource_type = "WorkEntry"

    def __init__(self, user_id: UUID, batch_strain_id: UUID, work_date: date) -> None:
        self.user_id = user_id
        self.batch_strain_id = batch_strain_id
        self.work_date = work_date
        super().__init__(
            f"date {work_date}",
            message=(
                f"User {user_id} already has a work entry for batch strain "
                f"{batch_strain_id} on {work_date}"
            ),
        )


class DuplicateWriteUpNumberError(DuplicateError):
    resource_type = "WriteUp"

    def __init__(self, employee_id: UUID, write_up_number: int) -> None:
        self.employee_id = employee_id
        self.write_up_number = write_up_number
        super().__init__(
            f"number {write_up_number}",
            message=f"Write-up number {write_up_number} already exists for employee {employee_id}",
        )


class SequenceConflictError(ConflictError):
    """
    Raised when a per-parent sequence number could not be allocated
    because concurrent writers kept taking it.

    Attributes:
        sequence: Name of the sequence (e.g., "batch number")
        parent_id: Parent key the sequence is scoped to
    """

    def __init__(self, sequence: str, parent_id: UUID) -> None:
        self.sequence = sequence
        self.parent_id = parent_id
        super().__init__(f"Could not allocate the next {sequence} for {parent_id}: concurrent update")


class ReferenceRestrictedError(ConflictError):
    """
    Raised when a delete is blocked by rows that still reference the record
    (ON DELETE RESTRICT).
    """

    def __init__(self, resource_type: str, resource_id: UUID, message: str | None = None) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message or f"{resource_type} {resource_id} is still referenced and cannot be deleted")


# =============================================================================
# BUSINESS RULE ERRORS
# =============================================================================


class BusinessRuleError(ServiceError):
    """
    Base exception for application-level rules the schema does not enforce.
    """
    pass


class AssignmentRuleError(BusinessRuleError):
    """
    Raised when a user's location assignments would break the role rules
    (admins: at most one location, everyone but super admins: at least one).
    """

    def __init__(self, message: str, user_id: UUID | None = None) -> None:
        self.user_id = user_id
        super().__init__(message)


class InvalidStatusTransitionError(BusinessRuleError):
    """
    Raised when a batch status change is not a single forward step.

    Attributes:
        current: Status the batch is in
        requested: Status that was requested
    """

    def __init__(self, batch_id: UUID, current: str, requested: str, reason: str | None = None) -> None:
        self.batch_id = batch_id
        self.current = current
        self.requested = requested
        message = f"Batch {batch_id} cannot move from '{current}' to '{requested}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class BatchStrainClosedError(BusinessRuleError):
    """
    Raised when work is logged or changed against a batch strain that is
    completed or whose batch is not in progress.
    """

    def __init__(self, batch_strain_id: UUID, reason: str) -> None:
        self.batch_strain_id = batch_strain_id
        self.reason = reason
        super().__init__(f"Batch strain {batch_strain_id} is closed for work: {reason}")


class BatchCapacityError(BusinessRuleError):
    """
    Raised when a location already runs the maximum number of
    in-progress batches.
    """

    def __init__(self, location_id: UUID, limit: int) -> None:
        self.location_id = location_id
        self.limit = limit
        super().__init__(f"Location {location_id} already has {limit} batches in progress")


class ImmutableFieldError(BusinessRuleError):
    """
    Raised when a field is changed after the record became referenced.
    """

    def __init__(self, resource_type: str, field: str, reason: str) -> None:
        self.resource_type = resource_type
        self.field = field
        super().__init__(f"{resource_type}.{field} cannot be changed: {reason}")


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    "InvalidReferenceError",
    # Not Found
    "NotFoundError",
    "LocationNotFoundError",
    "StrainNotFoundError",
    "UserNotFoundError",
    "AssignmentNotFoundError",
    "BatchNotFoundError",
    "BatchStrainNotFoundError",
    "WorkEntryNotFoundError",
    "WriteUpNotFoundError",
    # Conflicts
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
    # Business rules
    "BusinessRuleError",
    "AssignmentRuleError",
    "InvalidStatusTransitionError",
    "BatchStrainClosedError",
    "BatchCapacityError",
    "ImmutableFieldError",
]
