"""Tests for repofeed/log.py — tagged events, tally, run report."""

import logging

import pytest

from repofeed.log import (
    EventFormatter,
    event,
    event_counts,
    get_logger,
    log_summary,
    reset_events,
)
from repofeed.summary import RunSummary


@pytest.fixture(autouse=True)
def clean_tally():
    reset_events()
    yield
    reset_events()


def _record(msg, **extra):
    record = logging.LogRecord("repofeed", logging.WARNING, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestEventFormatter:
    def test_tags_event_records(self):
        fmt = EventFormatter("%(tag)s%(message)s")
        assert fmt.format(_record("dedup skipped", event="DedupQueryFailed")) == "[DedupQueryFailed] dedup skipped"

    def test_plain_records_untagged(self):
        assert EventFormatter("%(tag)s%(message)s").format(_record("hello")) == "hello"


class TestEvents:
    def test_counted_by_name(self):
        event("GenerationDegraded", "a/b: timed out")
        event("GenerationDegraded", "c/d: timed out")
        event("DedupQueryFailed", "503")
        assert event_counts() == {"GenerationDegraded": 2, "DedupQueryFailed": 1}

    def test_reset(self):
        event("WriteFailed", "x", level=logging.ERROR)
        reset_events()
        assert event_counts() == {}

    def test_unknown_name_rejected(self):
        with pytest.raises(ValueError):
            event("SomethingElse", "x")
        assert event_counts() == {}

    def test_level_and_attribute(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="repofeed"):
            event("WriteFailed", "could not save %s", "a/b", level=logging.ERROR)
        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.event == "WriteFailed"
        assert record.getMessage() == "could not save a/b"

    def test_plain_messages_not_counted(self):
        get_logger().warning("not an event")
        assert event_counts() == {}


class TestLogSummary:
    def test_writes_report_lines(self, caplog):
        summary = RunSummary(fetched=5, source="ossinsight", events={"SourceFailed": 1})
        summary.complete_stage("discover")

        with caplog.at_level(logging.INFO, logger="repofeed"):
            log_summary(summary)

        messages = [r.getMessage() for r in caplog.records]
        assert "Run summary:" in messages
        assert "  [+] discover" in messages
        assert "  Fetched:      5 (from ossinsight)" in messages
        assert "  Events:       SourceFailed x1" in messages
        assert messages[0] == messages[-1] == "=" * 60
