# cultivation/utils/sql.py
"""
SQL utility functions.

- escape_like_pattern: Escape special characters in LIKE patterns
- name_search_filter: Case-insensitive "contains" filter built on top of it

Usage:
    from cultivation.utils.sql import name_search_filter

    stmt = select(Strain).where(name_search_filter(Strain.name, "og_"))
"""

from sqlalchemy import ColumnElement
from sqlalchemy.orm import InstrumentedAttribute

LIKE_ESCAPE_CHAR = "\\"


def escape_like_pattern(value: str) -> str:
    """
    Escape special characters in a SQL LIKE pattern.

    SQL LIKE patterns use special characters:
    - % matches any sequence of characters
    - _ matches any single character
    - \\ is the escape character

    Args:
        value: The user-provided search string

    Returns:
        The escaped string safe for use in LIKE patterns

    Example:
        >>> escape_like_pattern("100%")
        '100\\\\%'
        >>> escape_like_pattern("og_kush")
        'og\\\\_kush'
    """
    # Backslash first, it is the escape character itself
    return (
        value
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


def name_search_filter(column: InstrumentedAttribute, search: str) -> ColumnElement[bool]:
    """
    Build ``column ILIKE '%search%'`` with wildcards in ``search`` matched literally.

    The ESCAPE clause is explicit because SQLite has no default escape character.
    """
    pattern = f"%{escape_like_pattern(search.strip())}%"
    return column.ilike(pattern, escape=LIKE_ESCAPE_CHAR)
