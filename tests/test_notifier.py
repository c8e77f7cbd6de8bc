"""
==============================================================================
Error Notifier Tests
==============================================================================

Tests for the logging and recording notifiers.

==============================================================================
"""

import logging
import threading

import pytest

from storefront.services.notifier import LoggingNotifier, RecordingNotifier


class TestLoggingNotifier:
    """Tests for LoggingNotifier."""

    def test_logs_with_prefix(self, caplog):
        with caplog.at_level(logging.ERROR, logger="storefront.services.notifier"):
            LoggingNotifier(prefix="Catalog").report_error("connection refused")

        assert "Catalog: connection refused" in caplog.text


class TestRecordingNotifier:
    """Tests for RecordingNotifier."""

    def test_keeps_messages_in_order(self):
        notifier = RecordingNotifier()
        notifier.report_error("first")
        notifier.report_error("second")

        assert notifier.messages == ["first", "second"]

    def test_keeps_only_newest_messages(self):
        """Older messages are dropped past the limit."""
        notifier = RecordingNotifier(limit=2)
        for message in ("a", "b", "c"):
            notifier.report_error(message)

        assert notifier.messages == ["b", "c"]

    @pytest.mark.parametrize("limit", [0, -1])
    def test_limit_must_be_positive(self, limit):
        with pytest.raises(ValueError):
            RecordingNotifier(limit=limit)

    def test_clear(self):
        notifier = RecordingNotifier()
        notifier.report_error("boom")
        notifier.clear()

        assert notifier.messages == []

    def test_concurrent_reports_respect_limit(self):
        """Reports from many threads stay within the limit."""
        notifier = RecordingNotifier(limit=25)

        def report(worker: int):
            for i in range(50):
                notifier.report_error(f"{worker}-{i}")

        threads = [threading.Thread(target=report, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert len(notifier.messages) == 25
