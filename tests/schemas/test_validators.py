# tests/schemas/test_validators.py
"""
Tests for reusable validation functions.
"""

import uuid
from datetime import date

import pytest

from cultivation.schemas.validators import (
    normalize_name,
    normalize_optional_text,
    validate_not_in_future,
    validate_unique_ids,
)


class TestNormalizers:
    """Tests for name and free-text normalization."""

    def test_normalize_name(self):
        """Should strip surrounding whitespace."""
        assert normalize_name("  OG Kush ") == "OG Kush"

    def test_normalize_name_blank(self):
        """Should reject blank names."""
        with pytest.raises(ValueError):
            normalize_name(" \t ")

    @pytest.mark.parametrize("value,expected", [
        (None, None),
        ("", None),
        ("   ", None),
        (" room 2 ", "room 2"),
    ])
    def test_normalize_optional_text(self, value, expected):
        """Blank text becomes None."""
        assert normalize_optional_text(value) == expected


class TestDateValidators:
    """Tests for validate_not_in_future."""

    def test_today_allowed(self):
        """Today is not in the future."""
        assert validate_not_in_future(date(2024, 1, 1), today=date(2024, 1, 1)) == date(2024, 1, 1)

    def test_tomorrow_rejected(self):
        """Should name the field in the error."""
        with pytest.raises(ValueError, match="work_date cannot be in the future"):
            validate_not_in_future(date(2024, 1, 2), "work_date", today=date(2024, 1, 1))


class TestValidateUniqueIds:
    """Tests for validate_unique_ids."""

    def test_unique(self):
        """Distinct ids pass through."""
        ids = [uuid.uuid4(), uuid.uuid4()]
        assert validate_unique_ids(ids) == ids

    def test_duplicate(self):
        """Repeated ids are rejected."""
        same = uuid.uuid4()
        with pytest.raises(ValueError):
            validate_unique_ids([same, same])
