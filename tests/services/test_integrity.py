# tests/services/test_integrity.py
"""
Tests for IntegrityError classification.

Covers:
- PostgreSQL SQLSTATE codes (orig.pgcode)
- SQLite message text when no pgcode is present
- Constraint names from psycopg2 diagnostics or the SQLite message
- Errors raised by the real test database
"""

import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from cultivation.models import AuditLog, Location, LocationAssignment
from cultivation.services.integrity import (
    PG_CHECK_VIOLATION,
    PG_FOREIGN_KEY_VIOLATION,
    PG_NOT_NULL_VIOLATION,
    PG_UNIQUE_VIOLATION,
    is_check_violation,
    is_foreign_key_violation,
    is_not_null_violation,
    is_unique_violation,
    violated_constraint,
)
from tests.conftest import make_integrity_error


CLASSIFIERS = [is_unique_violation, is_foreign_key_violation, is_not_null_violation, is_check_violation]


# =============================================================================
# POSTGRESQL (pgcode)
# =============================================================================

class TestPgcodeClassification:
    """Classification by SQLSTATE."""

    @pytest.mark.parametrize("pgcode,expected", [
        (PG_UNIQUE_VIOLATION, is_unique_violation),
        (PG_FOREIGN_KEY_VIOLATION, is_foreign_key_violation),
        (PG_NOT_NULL_VIOLATION, is_not_null_violation),
        (PG_CHECK_VIOLATION, is_check_violation),
    ])
    def test_exactly_one_classifier_matches(self, pgcode, expected):
        """Each SQLSTATE is claimed by its own classifier only."""
        error = make_integrity_error("duplicate key value violates unique constraint", pgcode=pgcode)

        assert [check for check in CLASSIFIERS if check(error)] == [expected]

    def test_pgcode_wins_over_message(self):
        """A foreign key SQLSTATE is not a unique violation even if the text says so."""
        error = make_integrity_error("unique constraint mentioned in detail", pgcode=PG_FOREIGN_KEY_VIOLATION)

        assert is_unique_violation(error) is False
        assert is_foreign_key_violation(error) is True

    def test_unknown_pgcode_matches_nothing(self):
        """Other SQLSTATEs (e.g., exclusion 23P01) are left to the caller."""
        error = make_integrity_error("conflicting key value violates exclusion constraint", pgcode="23P01")

        assert not any(check(error) for check in CLASSIFIERS)


# =============================================================================
# SQLITE (message text)
# =============================================================================

class TestMessageClassification:
    """Classification by SQLite message when there is no pgcode."""

    @pytest.mark.parametrize("message,expected", [
        ("UNIQUE constraint failed: users.email", is_unique_violation),
        ("FOREIGN KEY constraint failed", is_foreign_key_violation),
        ("NOT NULL constraint failed: auditLogs.tableName", is_not_null_violation),
        ("CHECK constraint failed: AuditLogs_operation_check", is_check_violation),
    ])
    def test_message_matches_one_classifier(self, message, expected):
        """Each SQLite message is claimed by its own classifier only."""
        error = make_integrity_error(message)

        assert [check for check in CLASSIFIERS if check(error)] == [expected]


# =============================================================================
# CONSTRAINT NAMES
# =============================================================================

class TestViolatedConstraint:
    """Tests for violated_constraint."""

    def test_psycopg2_diag_name(self):
        """Should prefer the constraint name reported by the driver."""
        error = make_integrity_error(
            "duplicate key value violates unique constraint",
            pgcode=PG_UNIQUE_VIOLATION,
            constraint_name="users_email_unique",
        )

        assert violated_constraint(error) == "users_email_unique"

    def test_sqlite_message_tail(self):
        """Should fall back to the text after the colon."""
        error = make_integrity_error("UNIQUE constraint failed: users.email")

        assert violated_constraint(error) == "users.email"

    def test_nothing_to_report(self):
        """Should return None when the message names nothing."""
        error = make_integrity_error("FOREIGN KEY constraint failed")

        assert violated_constraint(error) is None


# =============================================================================
# REAL DATABASE ERRORS
# =============================================================================

class TestSqliteErrors:
    """Errors produced by the SQLite test database."""

    def test_unique(self, db, site_a):
        """A duplicate location name is a unique violation."""
        db.add(Location(name="Site A"))

        with pytest.raises(IntegrityError) as exc_info:
            db.commit()
        db.rollback()

        assert is_unique_violation(exc_info.value)
        assert violated_constraint(exc_info.value) == "locations.name"

    def test_foreign_key(self, db, employee):
        """An assignment to a missing location is a foreign key violation."""
        db.add(LocationAssignment(user_id=employee.id, location_id=uuid.uuid4()))

        with pytest.raises(IntegrityError) as exc_info:
            db.commit()
        db.rollback()

        assert is_foreign_key_violation(exc_info.value)

    def test_not_null(self, db, site_a):
        """An audit entry without a table name is a NOT NULL violation."""
        db.add(AuditLog(record_id=site_a.id, operation="INSERT"))

        with pytest.raises(IntegrityError) as exc_info:
            db.commit()
        db.rollback()

        assert is_not_null_violation(exc_info.value)

    def test_check(self, db, site_a):
        """An unknown audit operation is a CHECK violation."""
        db.add(AuditLog(table_name="locations", record_id=site_a.id, operation="MERGE"))

        with pytest.raises(IntegrityError) as exc_info:
            db.commit()
        db.rollback()

        assert is_check_violation(exc_info.value)
        assert not is_unique_violation(exc_info.value)
