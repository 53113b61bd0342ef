# cultivation/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

- Name normalization (trim, reject blank)
- Optional free-text normalization (blank becomes None)
- Date checks shared by work entries and write-ups
- Duplicate id detection in id lists
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from cultivation.models import WriteUpSeverity

# =============================================================================
# CONSTANTS
# =============================================================================

# Column precision: strains.bucketWeight numeric(6,3)
BUCKET_WEIGHT_MAX_DIGITS = 6
BUCKET_WEIGHT_DECIMAL_PLACES = 3

# workEntries.amount numeric(6,2), workEntries.hours numeric(4,2)
WORK_AMOUNT_MAX_DIGITS = 6
WORK_HOURS_MAX_DIGITS = 4
WORK_DECIMAL_PLACES = 2

# An entry covers a single day
MAX_WORK_HOURS_PER_ENTRY = Decimal("24")

# Severities that must carry a follow-up date
FOLLOW_UP_REQUIRED_SEVERITIES = frozenset({
    WriteUpSeverity.FINAL_WARNING,
    WriteUpSeverity.SUSPENSION,
    WriteUpSeverity.TERMINATION,
})


# =============================================================================
# VALIDATORS
# =============================================================================


def normalize_name(value: str) -> str:
    """
    Trim a required name and reject whitespace-only input.

    Raises:
        ValueError: If nothing is left after trimming
    """
    normalized = value.strip()
    if not normalized:
        raise ValueError("Name cannot be blank")
    return normalized


def normalize_optional_text(value: str | None) -> str | None:
    """Trim free text; empty strings are stored as NULL."""
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


def validate_not_in_future(value: date, field_name: str = "date", today: date | None = None) -> date:
    """
    Reject dates after today.

    Args:
        value: Date to check
        field_name: Used in the error message
        today: Override for "today" (tests)

    Raises:
        ValueError: If value is in the future
    """
    today = today or date.today()
    if value > today:
        raise ValueError(f"{field_name} cannot be in the future (got {value}, today is {today})")
    return value


def validate_unique_ids(values: list[UUID]) -> list[UUID]:
    """Reject lists that name the same id twice."""
    if len(set(values)) != len(values):
        raise ValueError("Duplicate ids are not allowed")
    return values
