# cultivation/models.py
import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    false,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    # Persist the lowercase values ("in_progress"), not the member names
    return [member.value for member in enum_cls]


# Enums help enforce data integrity at the database level
class Role(str, enum.Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class BatchStatus(str, enum.Enum):
    """
    Lifecycle of a production batch.

    State transitions (forward only, no rollback):
        PLANNED → IN_PROGRESS → PUBLISHED

    A batch is published once every strain attached to it is completed.
    """
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    PUBLISHED = "published"


class WriteUpSeverity(str, enum.Enum):
    VERBAL_WARNING = "verbal_warning"
    WRITTEN_WARNING = "written_warning"
    FINAL_WARNING = "final_warning"
    SUSPENSION = "suspension"
    TERMINATION = "termination"


class AuditOperation(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Location(Base):
    """
    Operational site where batches run and users are assigned.

    Each location keeps its own batch numbering sequence (1, 2, 3...).
    Cannot be deleted while batches or user assignments reference it.
    """
    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, unique=True)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now())

    # passive_deletes="all": never null out children, let the RESTRICT fire
    assignments: Mapped[list["LocationAssignment"]] = relationship(back_populates="location", passive_deletes="all")
    batches: Mapped[list["Batch"]] = relationship(back_populates="location", passive_deletes="all")


class Strain(Base):
    """
    Registry of strains shared by all locations.

    bucket_weight is the default weight of this strain that fits into one
    standard bucket. Strains are permanent once a batch references them.
    """
    __tablename__ = "strains"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(Text, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    bucket_weight: Mapped[Decimal] = mapped_column("bucketWeight", Numeric(6, 3))
    notes: Mapped[str | None] = mapped_column(Text)

    batch_strains: Mapped[list["BatchStrain"]] = relationship(back_populates="strain", passive_deletes="all")


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[int | None] = mapped_column("employeeID", Integer, unique=True)
    first_name: Mapped[str] = mapped_column("firstName", Text)
    last_name: Mapped[str] = mapped_column("lastName", Text)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="role_statuses", values_callable=_enum_values),
        default=Role.EMPLOYEE,
        server_default=Role.EMPLOYEE.value,
    )
    email: Mapped[str] = mapped_column(Text, unique=True)
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now())

    # Assignments are owned by the user (ON DELETE CASCADE)
    assignments: Mapped[list["LocationAssignment"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    work_entries: Mapped[list["WorkEntry"]] = relationship(back_populates="user", passive_deletes="all")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class LocationAssignment(Base):
    """
    Many-to-many membership between users and locations.

    The schema only guarantees one row per (user, location). The remaining
    rules (at least one location per user, at most one for admins, super
    admins exempt) live in LocationAssignmentService.
    """
    __tablename__ = "locationAssignments"
    __table_args__ = (
        UniqueConstraint("userId", "locationId", name="LocationAssignments_userId_locationId_unique"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column("userId", Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    location_id: Mapped[uuid.UUID] = mapped_column("locationId", Uuid, ForeignKey("locations.id", ondelete="RESTRICT"), index=True)

    user: Mapped["User"] = relationship(back_populates="assignments")
    location: Mapped["Location"] = relationship(back_populates="assignments")


class Batch(Base):
    """
    One production cycle at a location, processing one or more strains.

    number is sequential within each location and is assigned by
    BatchService. end_date stays NULL until the batch is published.
    """
    __tablename__ = "batches"
    __table_args__ = (
        # There cannot be two batches with the same number at the same location
        UniqueConstraint("locationId", "number", name="Batches_locationId_number_unique"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    location_id: Mapped[uuid.UUID] = mapped_column("locationId", Uuid, ForeignKey("locations.id", ondelete="RESTRICT"), index=True)
    number: Mapped[int] = mapped_column(Integer)
    start_date: Mapped[date] = mapped_column("startDate", Date)
    end_date: Mapped[date | None] = mapped_column("endDate", Date)
    status: Mapped[BatchStatus] = mapped_column(
        Enum(BatchStatus, name="batch_statuses", values_callable=_enum_values),
        default=BatchStatus.IN_PROGRESS,
        server_default=BatchStatus.IN_PROGRESS.value,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now())

    location: Mapped["Location"] = relationship(back_populates="batches")
    batch_strains: Mapped[list["BatchStrain"]] = relationship(
        back_populates="batch",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class BatchStrain(Base):
    """
    Junction deciding which strains are processed in a batch.

    Work can only be logged against an existing, not yet completed
    batch-strain. Deleting the batch removes its batch-strains (and their
    work entries); a strain cannot be deleted while referenced here.
    """
    __tablename__ = "batchStrains"
    __table_args__ = (
        UniqueConstraint("batchId", "strainId", name="BatchStrains_batchId_strainId_unique"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    batch_id: Mapped[uuid.UUID] = mapped_column("batchId", Uuid, ForeignKey("batches.id", ondelete="CASCADE"), index=True)
    strain_id: Mapped[uuid.UUID] = mapped_column("strainId", Uuid, ForeignKey("strains.id", ondelete="RESTRICT"), index=True)
    is_completed: Mapped[bool] = mapped_column("isCompleted", Boolean, default=False, server_default=false())

    batch: Mapped["Batch"] = relationship(back_populates="batch_strains")
    strain: Mapped["Strain"] = relationship(back_populates="batch_strains")
    work_entries: Mapped[list["WorkEntry"]] = relationship(
        back_populates="batch_strain",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class WorkEntry(Base):
    """
    One employee's work on one batch-strain for one day.

    amount is grams processed, hours is the time it took. This is the fact
    table payroll and productivity reporting read from.
    """
    __tablename__ = "workEntries"
    __table_args__ = (
        # One entry per employee per batch-strain per day
        UniqueConstraint("userId", "batchStrainsId", "date", name="WorkEntries_userId_batchStrainsId_date"),
        Index("ix_work_entries_date", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column("userId", Uuid, ForeignKey("users.id", ondelete="RESTRICT"), index=True)
    batch_strain_id: Mapped[uuid.UUID] = mapped_column(
        "batchStrainsId", Uuid, ForeignKey("batchStrains.id", ondelete="CASCADE"), index=True
    )
    work_date: Mapped[date] = mapped_column("date", Date)
    amount: Mapped[Decimal] = mapped_column(Numeric(6, 2))
    hours: Mapped[Decimal] = mapped_column(Numeric(4, 2))
    notes: Mapped[str | None] = mapped_column(Text)

    user: Mapped["User"] = relationship(back_populates="work_entries")
    batch_strain: Mapped["BatchStrain"] = relationship(back_populates="work_entries")


class WriteUp(Base):
    """
    Disciplinary record issued to an employee by an admin.

    Numbered sequentially per employee. There is no delete path: a write-up
    is closed by filling in the resolution fields.
    """
    __tablename__ = "writeUps"
    __table_args__ = (
        UniqueConstraint("employeeId", "writeUpNumber", name="WriteUps_employeeId_writeUpNumber_unique"),
        Index("WriteUps_severity_idx", "severity"),
        Index("WriteUps_issueDate_idx", "issueDate"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column("employeeId", Uuid, ForeignKey("users.id", ondelete="RESTRICT"), index=True)
    issued_by: Mapped[uuid.UUID] = mapped_column("issuedBy", Uuid, ForeignKey("users.id", ondelete="RESTRICT"))
    write_up_number: Mapped[int] = mapped_column("writeUpNumber", Integer)
    severity: Mapped[WriteUpSeverity] = mapped_column(
        Enum(WriteUpSeverity, name="writeup_severities", values_callable=_enum_values)
    )
    issue_date: Mapped[date] = mapped_column("issueDate", Date)
    incident_date: Mapped[date] = mapped_column("incidentDate", Date)
    follow_up_date: Mapped[date | None] = mapped_column("followUpDate", Date)
    description: Mapped[str] = mapped_column(Text)
    corrective_action: Mapped[str | None] = mapped_column("correctiveAction", Text)
    employee_response: Mapped[str | None] = mapped_column("employeeResponse", Text)
    witness_information: Mapped[str | None] = mapped_column("witnessInformation", Text)
    resolved_date: Mapped[date | None] = mapped_column("resolvedDate", Date)
    resolved_by: Mapped[uuid.UUID | None] = mapped_column("resolvedBy", Uuid, ForeignKey("users.id", ondelete="RESTRICT"))
    resolution_notes: Mapped[str | None] = mapped_column("resolutionNotes", Text)
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now())

    # Explicit foreign_keys required due to multiple FKs pointing to users
    employee: Mapped["User"] = relationship(foreign_keys=[employee_id])
    issuer: Mapped["User"] = relationship(foreign_keys=[issued_by])
    resolver: Mapped["User | None"] = relationship(foreign_keys=[resolved_by])

    @property
    def is_resolved(self) -> bool:
        return self.resolved_date is not None


class AuditLog(Base):
    """
    Generic append-only change log.

    Not tied to a single entity: table_name + record_id identify the mutated
    row. Whoever performs the mutation decides when to write an entry.
    """
    __tablename__ = "auditLogs"
    __table_args__ = (
        CheckConstraint("operation IN ('INSERT', 'UPDATE', 'DELETE')", name="AuditLogs_operation_check"),
        Index("ix_audit_logs_table_record", "tableName", "recordId"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    table_name: Mapped[str] = mapped_column("tableName", Text)
    record_id: Mapped[uuid.UUID] = mapped_column("recordId", Uuid)
    operation: Mapped[str] = mapped_column(String(6))
    old_values: Mapped[dict | None] = mapped_column("oldValues", JSON().with_variant(JSONB(), "postgresql"))
    new_values: Mapped[dict | None] = mapped_column("newValues", JSON().with_variant(JSONB(), "postgresql"))
    user_id: Mapped[uuid.UUID | None] = mapped_column("userId", Uuid, ForeignKey("users.id", ondelete="RESTRICT"), index=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), index=True)
    ip_address: Mapped[str | None] = mapped_column("ipAddress", Text)

    user: Mapped["User | None"] = relationship()
