# cultivation/services/constants.py
"""
Centralized business constants for the cultivation services.

Usage:
    from cultivation.services.constants import (
        MAX_IN_PROGRESS_BATCHES_PER_LOCATION,
        SEQUENCE_MAX_ATTEMPTS,
    )
"""

from cultivation.models import BatchStatus, Role


# =============================================================================
# LOCATION ASSIGNMENTS
# =============================================================================

# Admins manage exactly one site
ADMIN_MAX_LOCATIONS: int = 1

# Everyone except super admins must be assigned somewhere
MIN_LOCATIONS_PER_USER: int = 1

# Roles that skip the assignment count rules entirely
ASSIGNMENT_EXEMPT_ROLES: frozenset[Role] = frozenset({Role.SUPER_ADMIN})

# Roles allowed to issue and resolve write-ups
WRITE_UP_ISSUER_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


# =============================================================================
# BATCH LIFECYCLE
# =============================================================================

# A location runs at most this many batches in progress at once
MAX_IN_PROGRESS_BATCHES_PER_LOCATION: int = 2

# Allowed forward steps; there is no rollback and no skipping
BATCH_STATUS_TRANSITIONS: dict[BatchStatus, BatchStatus | None] = {
    BatchStatus.PLANNED: BatchStatus.IN_PROGRESS,
    BatchStatus.IN_PROGRESS: BatchStatus.PUBLISHED,
    BatchStatus.PUBLISHED: None,
}

# Statuses a batch may be created in
BATCH_INITIAL_STATUSES: frozenset[BatchStatus] = frozenset({BatchStatus.PLANNED, BatchStatus.IN_PROGRESS})


# =============================================================================
# SEQUENCE NUMBERING
# =============================================================================

# First attempt plus one retry when a concurrent writer took the number
SEQUENCE_MAX_ATTEMPTS: int = 2

# Numbers start at 1 for every parent
SEQUENCE_START: int = 1


# =============================================================================
# LISTING
# =============================================================================

DEFAULT_LIST_LIMIT: int = 100
MAX_LIST_LIMIT: int = 1000
