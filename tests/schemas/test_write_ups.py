# tests/schemas/test_write_ups.py
"""
Tests for write-up schemas.

This module tests:
- Date ordering (incident, issue, follow-up)
- Follow-up date required for severe write-ups
- Self-issued write-ups rejected
"""

import uuid
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from cultivation.models import WriteUpSeverity
from cultivation.schemas.write_ups import WriteUpCreate, WriteUpResolve


def make_write_up(**overrides) -> WriteUpCreate:
    data = {
        "employee_id": uuid.uuid4(),
        "issued_by": uuid.uuid4(),
        "severity": WriteUpSeverity.VERBAL_WARNING,
        "issue_date": date(2024, 3, 2),
        "incident_date": date(2024, 3, 1),
        "description": "Late three days in a row",
    }
    data.update(overrides)
    return WriteUpCreate(**data)


class TestWriteUpCreate:
    """Tests for WriteUpCreate schema."""

    def test_valid(self):
        """Should accept a verbal warning without follow-up."""
        data = make_write_up()

        assert data.follow_up_date is None
        assert data.write_up_number is None

    def test_issue_date_defaults_to_today(self):
        """Issue date defaults to today."""
        data = WriteUpCreate(
            employee_id=uuid.uuid4(),
            issued_by=uuid.uuid4(),
            severity=WriteUpSeverity.VERBAL_WARNING,
            incident_date=date.today(),
            description="x",
        )

        assert data.issue_date == date.today()

    def test_self_issued(self):
        """An employee cannot write themselves up."""
        person = uuid.uuid4()

        with pytest.raises(ValidationError, match="themselves"):
            make_write_up(employee_id=person, issued_by=person)

    def test_incident_after_issue(self):
        """The incident cannot happen after the write-up is issued."""
        with pytest.raises(ValidationError, match="incident_date"):
            make_write_up(incident_date=date(2024, 3, 3))

    def test_incident_in_future(self):
        """The incident cannot be in the future."""
        with pytest.raises(ValidationError, match="cannot be in the future"):
            make_write_up(incident_date=date.today() + timedelta(days=1))

    def test_follow_up_before_issue(self):
        """Follow-up cannot precede the issue date."""
        with pytest.raises(ValidationError, match="follow_up_date"):
            make_write_up(follow_up_date=date(2024, 3, 1))

    @pytest.mark.parametrize("severity", [
        WriteUpSeverity.FINAL_WARNING,
        WriteUpSeverity.SUSPENSION,
        WriteUpSeverity.TERMINATION,
    ])
    def test_severe_requires_follow_up(self, severity):
        """Severe write-ups need a follow-up date."""
        with pytest.raises(ValidationError, match="follow_up_date is required"):
            make_write_up(severity=severity)

    def test_blank_description(self):
        """Should reject whitespace-only descriptions."""
        with pytest.raises(ValidationError):
            make_write_up(description="   ")


class TestWriteUpResolve:
    """Tests for WriteUpResolve schema."""

    def test_defaults_to_today(self):
        """Resolution date defaults to today."""
        data = WriteUpResolve(resolved_by=uuid.uuid4(), resolution_notes="Improved")

        assert data.resolved_date == date.today()

    def test_notes_required(self):
        """Resolution notes cannot be blank."""
        with pytest.raises(ValidationError):
            WriteUpResolve(resolved_by=uuid.uuid4(), resolution_notes="  ")
