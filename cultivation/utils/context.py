# cultivation/utils/context.py
"""
Unit-of-work context for the Cultivation Tracker.

Holds data that belongs to whoever is driving the services right now
(a request handler, a script run):
- Correlation ID for tracing log lines
- Acting user and client IP, used as defaults by AuditLogService

Uses contextvars, so values never leak between threads or async tasks.

Usage:
    from cultivation.utils.context import set_actor, set_correlation_id

    set_correlation_id("abc-123")
    set_actor(user_id=admin.id, ip_address="10.0.0.7")

    # Later, anywhere in the same context
    AuditLogService().record(db, ...)  # picks up admin.id and the IP
"""

import uuid
from contextvars import ContextVar
from typing import Any

# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Acting user / client address for audit entries
_ACTOR_USER_ID_KEY = "actor_user_id"
_IP_ADDRESS_KEY = "ip_address"

_request_context_var: ContextVar[dict[str, Any]] = ContextVar("request_context", default={})


# =============================================================================
# CORRELATION ID
# =============================================================================

def get_correlation_id() -> str | None:
    """Return the current correlation ID, or None if not set."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


# =============================================================================
# GENERIC CONTEXT
# =============================================================================

def get_request_context() -> dict[str, Any]:
    """
    Get a copy of the full context dictionary.

    Returns:
        Dictionary containing all context data.
    """
    return _request_context_var.get().copy()


def set_request_context(key: str, value: Any) -> None:
    """
    Set a value in the context.

    The dictionary is copied before writing so the default is never mutated.

    Args:
        key: Context key
        value: Context value
    """
    ctx = _request_context_var.get().copy()
    ctx[key] = value
    _request_context_var.set(ctx)


def clear_request_context() -> None:
    _request_context_var.set({})


# =============================================================================
# ACTOR
# =============================================================================

def set_actor(user_id: uuid.UUID | None, ip_address: str | None = None) -> None:
    """
    Record who is performing the current mutations.

    Args:
        user_id: Acting user's id (None for system jobs)
        ip_address: Client address, if known
    """
    set_request_context(_ACTOR_USER_ID_KEY, user_id)
    set_request_context(_IP_ADDRESS_KEY, ip_address)


def get_actor_user_id() -> uuid.UUID | None:
    return _request_context_var.get().get(_ACTOR_USER_ID_KEY)


def get_client_ip() -> str | None:
    return _request_context_var.get().get(_IP_ADDRESS_KEY)
