# cultivation/services/integrity.py
"""
Classification of database integrity errors.

The store enforces uniqueness, foreign keys and NOT NULL on its own. When it
rejects a write, SQLAlchemy raises IntegrityError wrapping the driver error.
These helpers tell the kinds apart so services can translate them into
domain exceptions:

- PostgreSQL (psycopg2): SQLSTATE on ``orig.pgcode``
    23505 unique_violation, 23503 foreign_key_violation, 23502 not_null_violation
- SQLite: message text ("UNIQUE constraint failed: ...")

Usage:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if is_unique_violation(e):
            raise DuplicateLocationError(name) from e
        raise
"""

from sqlalchemy.exc import IntegrityError


PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_NOT_NULL_VIOLATION = "23502"
PG_CHECK_VIOLATION = "23514"


def _pgcode(integrity_error: IntegrityError) -> str | None:
    return getattr(integrity_error.orig, "pgcode", None)


def _message(integrity_error: IntegrityError) -> str:
    return str(integrity_error.orig).lower()


def is_unique_violation(integrity_error: IntegrityError) -> bool:
    """
    Check if an IntegrityError is caused by a unique constraint violation.

    Args:
        integrity_error: The SQLAlchemy IntegrityError to check

    Returns:
        True if this is a unique constraint violation, False otherwise
    """
    pgcode = _pgcode(integrity_error)
    if pgcode is not None:
        return pgcode == PG_UNIQUE_VIOLATION
    # Fallback for other database backends (SQLite, etc.)
    return "unique constraint" in _message(integrity_error)


def is_foreign_key_violation(integrity_error: IntegrityError) -> bool:
    """Check if an IntegrityError is caused by a foreign key violation."""
    pgcode = _pgcode(integrity_error)
    if pgcode is not None:
        return pgcode == PG_FOREIGN_KEY_VIOLATION
    return "foreign key constraint" in _message(integrity_error)


def is_not_null_violation(integrity_error: IntegrityError) -> bool:
    """Check if an IntegrityError is caused by a NOT NULL violation."""
    pgcode = _pgcode(integrity_error)
    if pgcode is not None:
        return pgcode == PG_NOT_NULL_VIOLATION
    return "not null constraint" in _message(integrity_error)


def is_check_violation(integrity_error: IntegrityError) -> bool:
    """Check if an IntegrityError is caused by a CHECK constraint."""
    pgcode = _pgcode(integrity_error)
    if pgcode is not None:
        return pgcode == PG_CHECK_VIOLATION
    return "check constraint" in _message(integrity_error)


def violated_constraint(integrity_error: IntegrityError) -> str | None:
    """
    Name of the violated constraint when the driver reports it.

    psycopg2 exposes it as ``orig.diag.constraint_name``. SQLite only reports
    the columns ("UNIQUE constraint failed: users.email"), so the
    message tail is returned instead.
    """
    diag = getattr(integrity_error.orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if constraint_name:
        return constraint_name

    message = str(integrity_error.orig)
    if ":" in message:
        return message.split(":", 1)[1].strip()
    return None
