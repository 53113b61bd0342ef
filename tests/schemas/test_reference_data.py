# tests/schemas/test_reference_data.py
"""
Tests for location, strain, user and assignment schemas.

This module tests:
- Name trimming and blank rejection
- Bucket weight precision
- Email normalization and format
- Unique location ids on user creation
"""

import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError

from cultivation.models import Role
from cultivation.schemas.locations import LocationCreate, LocationUpdate
from cultivation.schemas.strains import StrainCreate, StrainUpdate
from cultivation.schemas.users import UserCreate, UserUpdate


# =============================================================================
# LOCATIONS
# =============================================================================

class TestLocationSchemas:
    """Tests for LocationCreate / LocationUpdate."""

    def test_trims_name_and_blank_notes(self):
        """Should trim the name and store blank notes as None."""
        data = LocationCreate(name="  Site A  ", notes="   ")

        assert data.name == "Site A"
        assert data.notes is None

    def test_rejects_blank_name(self):
        """Should reject whitespace-only names."""
        with pytest.raises(ValidationError, match="Name cannot be blank"):
            LocationCreate(name="   ")

    def test_update_tracks_sent_fields(self):
        """Only sent fields are reported by exclude_unset."""
        data = LocationUpdate(notes="moved")

        assert data.model_dump(exclude_unset=True) == {"notes": "moved"}


# =============================================================================
# STRAINS
# =============================================================================

class TestStrainSchemas:
    """Tests for StrainCreate / StrainUpdate."""

    def test_valid(self):
        """Should accept a positive weight with up to 3 decimals."""
        data = StrainCreate(name="OG Kush", bucket_weight=Decimal("12.125"))

        assert data.bucket_weight == Decimal("12.125")

    @pytest.mark.parametrize("weight", ["0", "-1", "12.1234", "1000.000"])
    def test_rejects_bad_weight(self, weight):
        """Should reject zero, negatives, extra decimals and too many digits."""
        with pytest.raises(ValidationError):
            StrainCreate(name="OG Kush", bucket_weight=Decimal(weight))

    def test_update_partial(self):
        """All update fields are optional."""
        data = StrainUpdate(description=" Sativa ")

        assert data.model_dump(exclude_unset=True) == {"description": "Sativa"}


# =============================================================================
# USERS
# =============================================================================

class TestUserSchemas:
    """Tests for UserCreate / UserUpdate."""

    def test_defaults(self):
        """Should default to an employee without locations."""
        data = UserCreate(first_name="Tess", last_name="Trimmer", email="tess@example.com")

        assert data.role == Role.EMPLOYEE
        assert data.location_ids == []
        assert data.employee_id is None

    def test_email_lower_cased(self):
        """Should store emails in lower case."""
        data = UserCreate(first_name="Tess", last_name="Trimmer", email="Tess@Example.com")

        assert data.email == "tess@example.com"

    def test_invalid_email(self):
        """Should reject malformed emails."""
        with pytest.raises(ValidationError):
            UserCreate(first_name="Tess", last_name="Trimmer", email="not-an-email")

    def test_employee_id_positive(self):
        """Should reject a zero employee ID."""
        with pytest.raises(ValidationError):
            UserCreate(first_name="Tess", last_name="Trimmer", email="tess@example.com", employee_id=0)

    def test_duplicate_location_ids(self):
        """Should reject naming the same location twice."""
        site = uuid.uuid4()

        with pytest.raises(ValidationError, match="Duplicate ids"):
            UserCreate(first_name="Tess", last_name="Trimmer", email="tess@example.com", location_ids=[site, site])

    def test_update_role_only(self):
        """A role-only update reports just the role."""
        data = UserUpdate(role=Role.ADMIN)

        assert data.model_dump(exclude_unset=True) == {"role": Role.ADMIN}
