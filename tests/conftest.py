# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite with foreign keys on)
- Sample data factories that write through the ORM directly
- A driver error stand-in for IntegrityError classification tests
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cultivation.database import enable_sqlite_foreign_keys
from cultivation.models import (
    Base,
    Batch,
    BatchStatus,
    BatchStrain,
    Location,
    LocationAssignment,
    Role,
    Strain,
    User,
    WorkEntry,
    WriteUp,
    WriteUpSeverity,
)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine with FK enforcement."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Iterator[Session]:
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_location(db: Session, name: str = "Site A", notes: str | None = None) -> Location:
    """Factory function for creating Location entities in the database."""
    location = Location(name=name, notes=notes)
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


def create_strain(
        db: Session,
        name: str = "OG Kush",
        bucket_weight: Decimal = Decimal("12.500"),
) -> Strain:
    """Factory function for creating Strain entities in the database."""
    strain = Strain(name=name, bucket_weight=bucket_weight)
    db.add(strain)
    db.commit()
    db.refresh(strain)
    return strain


def create_user(
        db: Session,
        email: str = "worker@example.com",
        first_name: str = "Wren",
        last_name: str = "Worker",
        role: Role = Role.EMPLOYEE,
        employee_id: int | None = None,
        locations: list[Location] | None = None,
) -> User:
    """Factory function for creating User entities (and their assignments)."""
    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        role=role,
        employee_id=employee_id,
    )
    for location in locations or []:
        user.assignments.append(LocationAssignment(location_id=location.id))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_batch(
        db: Session,
        location: Location,
        number: int = 1,
        start_date: date = date(2024, 1, 1),
        status: BatchStatus = BatchStatus.IN_PROGRESS,
) -> Batch:
    """Factory function for creating Batch entities in the database."""
    batch = Batch(location_id=location.id, number=number, start_date=start_date, status=status)
    db.add(batch)
    db.commit()
    db.refresh(batch)
    return batch


def create_batch_strain(db: Session, batch: Batch, strain: Strain, is_completed: bool = False) -> BatchStrain:
    """Factory function for attaching a strain to a batch."""
    batch_strain = BatchStrain(batch_id=batch.id, strain_id=strain.id, is_completed=is_completed)
    db.add(batch_strain)
    db.commit()
    db.refresh(batch_strain)
    return batch_strain


def create_work_entry(
        db: Session,
        user: User,
        batch_strain: BatchStrain,
        work_date: date = date(2024, 1, 1),
        amount: Decimal = Decimal("50.25"),
        hours: Decimal = Decimal("3.50"),
) -> WorkEntry:
    """Factory function for creating WorkEntry entities in the database."""
    entry = WorkEntry(
        user_id=user.id,
        batch_strain_id=batch_strain.id,
        work_date=work_date,
        amount=amount,
        hours=hours,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def create_write_up(
        db: Session,
        employee: User,
        issuer: User,
        number: int = 1,
        severity: WriteUpSeverity = WriteUpSeverity.VERBAL_WARNING,
) -> WriteUp:
    """Factory function for creating WriteUp entities in the database."""
    write_up = WriteUp(
        employee_id=employee.id,
        issued_by=issuer.id,
        write_up_number=number,
        severity=severity,
        issue_date=date(2024, 2, 1),
        incident_date=date(2024, 1, 31),
        description="Missed safety briefing",
    )
    db.add(write_up)
    db.commit()
    db.refresh(write_up)
    return write_up


class FakeDriverError(Exception):
    """Stand-in for a DBAPI error: psycopg2 style when pgcode is set, SQLite style otherwise."""

    def __init__(self, message: str, pgcode: str | None = None, constraint_name: str | None = None):
        super().__init__(message)
        self.pgcode = pgcode
        self.diag = SimpleNamespace(constraint_name=constraint_name)


def make_integrity_error(
        message: str,
        pgcode: str | None = None,
        constraint_name: str | None = None,
) -> IntegrityError:
    """Factory function for IntegrityErrors wrapping a FakeDriverError."""
    return IntegrityError("INSERT ...", {}, FakeDriverError(message, pgcode, constraint_name))


# =============================================================================
# FIXTURE EXPORTS (for convenience imports in tests)
# =============================================================================

@pytest.fixture
def site_a(db: Session) -> Location:
    return create_location(db, "Site A")


@pytest.fixture
def og_kush(db: Session) -> Strain:
    return create_strain(db, "OG Kush")


@pytest.fixture
def employee(db: Session, site_a: Location) -> User:
    return create_user(db, employee_id=1001, locations=[site_a])


@pytest.fixture
def admin(db: Session, site_a: Location) -> User:
    return create_user(
        db,
        email="admin@example.com",
        first_name="Ada",
        last_name="Admin",
        role=Role.ADMIN,
        employee_id=1,
        locations=[site_a],
    )


@pytest.fixture
def batch(db: Session, site_a: Location) -> Batch:
    return create_batch(db, site_a)


@pytest.fixture
def batch_strain(db: Session, batch: Batch, og_kush: Strain) -> BatchStrain:
    return create_batch_strain(db, batch, og_kush)
