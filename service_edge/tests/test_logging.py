"""
Unit tests for the structlog processors.
"""

from shared.logging import (
    ServiceContext,
    add_correlation_context,
    clear_context,
    set_client_context,
    set_request_id,
)


class TestLoggingProcessors:
    """Test cases for the log event processors."""

    def teardown_method(self):
        clear_context()

    def test_service_context(self):
        assert ServiceContext("edge")(None, "info", {"event": "x"}) == {"event": "x", "service": "edge"}

    def test_service_context_keeps_explicit_service(self):
        event = ServiceContext("edge")(None, "info", {"event": "x", "service": "catalog"})

        assert event["service"] == "catalog"

    def test_correlation_context(self):
        set_request_id("req-1")
        set_client_context("ip:1.2.3.4")

        event = add_correlation_context(None, "info", {"event": "x"})

        assert event == {"event": "x", "request_id": "req-1", "client_id": "ip:1.2.3.4"}

    def test_correlation_context_empty_after_clear(self):
        set_request_id("req-1")
        clear_context()

        assert add_correlation_context(None, "info", {"event": "x"}) == {"event": "x"}

    def test_generated_request_id(self):
        request_id = set_request_id()

        assert len(request_id) == 36
        assert add_correlation_context(None, "info", {})["request_id"] == request_id
