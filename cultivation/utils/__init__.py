# cultivation/utils/__init__.py
"""
Cross-cutting utilities:
- logging: Logging setup with correlation ID / actor support
- context: Correlation ID, acting user and client IP
- sql: Query construction helpers (LIKE escaping)

Usage:
    from cultivation.utils import setup_logging, get_logger
    from cultivation.utils import set_actor, set_correlation_id
    from cultivation.utils import escape_like_pattern
"""

from cultivation.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    get_request_context,
    set_request_context,
    clear_request_context,
    set_actor,
    get_actor_user_id,
    get_client_ip,
)
from cultivation.utils.logging import setup_logging, get_logger
from cultivation.utils.sql import escape_like_pattern, name_search_filter

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "get_request_context",
    "set_request_context",
    "clear_request_context",
    "set_actor",
    "get_actor_user_id",
    "get_client_ip",
    # SQL
    "escape_like_pattern",
    "name_search_filter",
]
