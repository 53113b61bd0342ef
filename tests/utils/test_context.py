# tests/utils/test_context.py
"""
Tests for correlation ID and actor context management.
"""

import uuid

import pytest

from cultivation.utils.context import (
    clear_correlation_id,
    clear_request_context,
    get_actor_user_id,
    get_client_ip,
    get_correlation_id,
    get_request_context,
    set_actor,
    set_correlation_id,
    set_request_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    clear_correlation_id()
    clear_request_context()
    yield
    clear_correlation_id()
    clear_request_context()


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        """Should return None when correlation ID is not set."""
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        """Should set and retrieve correlation ID."""
        set_correlation_id("seed-1234")
        assert get_correlation_id() == "seed-1234"

    def test_clear_correlation_id(self):
        """Should clear correlation ID."""
        set_correlation_id("seed-5678")
        clear_correlation_id()
        assert get_correlation_id() is None


class TestRequestContext:
    """Tests for the generic context dictionary."""

    def test_returns_copy(self):
        """Mutating the returned dict should not change the context."""
        set_request_context("job", "nightly-report")
        ctx = get_request_context()
        ctx["job"] = "changed"

        assert get_request_context() == {"job": "nightly-report"}

    def test_clear(self):
        """Should drop all keys."""
        set_request_context("job", "nightly-report")
        clear_request_context()
        assert get_request_context() == {}


class TestActor:
    """Tests for the acting user and client IP."""

    def test_defaults_to_none(self):
        """Should report no actor before one is set."""
        assert get_actor_user_id() is None
        assert get_client_ip() is None

    def test_set_actor(self):
        """Should expose the user id and IP that were set."""
        user_id = uuid.uuid4()
        set_actor(user_id, "10.0.0.7")

        assert get_actor_user_id() == user_id
        assert get_client_ip() == "10.0.0.7"

    def test_set_actor_without_ip(self):
        """Should replace a previous IP with None."""
        set_actor(uuid.uuid4(), "10.0.0.7")
        set_actor(None)

        assert get_actor_user_id() is None
        assert get_client_ip() is None
