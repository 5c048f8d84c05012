"""
Unit tests for shared structured logging.
"""

import logging
from datetime import datetime

import pytest
import structlog

from shared.logging import clear_context, configure_logging, set_client_ip, set_request_id


@pytest.fixture
def processors():
    configure_logging("proxy", "info")
    # filter_by_level and the JSON renderer are left out
    return structlog.get_config()["processors"][1:-1]


def run_chain(processors, event_dict):
    logger = logging.getLogger("proxy.tests")
    for processor in processors:
        event_dict = processor(logger, "info", event_dict)
    return event_dict


class TestLoggingProcessors:
    """Test cases for the configured processor chain."""

    def test_timestamp_is_iso(self, processors):
        event = run_chain(processors, {"event": "HTTP request"})

        assert isinstance(event["timestamp"], str)
        datetime.fromisoformat(event["timestamp"].replace("Z", "+00:00"))

    def test_correlation_context_is_added(self, processors):
        set_request_id("req-123")
        set_client_ip("203.0.113.7")
        try:
            event = run_chain(processors, {"event": "HTTP request"})
        finally:
            clear_context()

        assert event["request_id"] == "req-123"
        assert event["client_ip"] == "203.0.113.7"
        assert event["service"] == "proxy"
