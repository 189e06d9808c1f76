"""Tests for the Event Log."""

from sleigh_kernel.event_log.store import EventLog
from sleigh_kernel.models.autopilot import LogConfig


class TestEventLog:
    def test_append_returns_entry(self):
        log = EventLog()
        entry = log.append("Autopilot engaged.")
        assert entry.text == "Autopilot engaged."
        assert entry.id.startswith("log_")
        assert log.latest() == entry

    def test_ids_unique(self):
        log = EventLog()
        ids = {log.append(f"line {i}").id for i in range(50)}
        assert len(ids) == 50

    def test_trailing_window(self):
        log = EventLog()
        for i in range(40):
            log.append(f"line {i}")
        recent = log.recent()
        assert len(recent) == 13
        assert recent[0].text == "line 27"
        assert recent[-1].text == "line 39"

    def test_window_with_few_entries(self):
        log = EventLog()
        log.append("only")
        assert [e.text for e in log.recent()] == ["only"]

    def test_explicit_limit(self):
        log = EventLog()
        for i in range(5):
            log.append(f"line {i}")
        assert [e.text for e in log.recent(2)] == ["line 3", "line 4"]

    def test_retention_discards_oldest(self):
        log = EventLog(LogConfig(window=3, retention=5))
        for i in range(12):
            log.append(f"line {i}")
        assert log.count() == 12
        assert [e.text for e in log.recent(100)] == [f"line {i}" for i in range(7, 12)]

    def test_empty(self):
        log = EventLog()
        assert log.latest() is None
        assert log.recent() == []
        assert log.count() == 0

    def test_zero_and_negative_limits_use_window(self):
        log = EventLog(LogConfig(window=3, retention=50))
        for i in range(20):
            log.append(f"line {i}")
        expected = ["line 17", "line 18", "line 19"]
        assert [e.text for e in log.recent(0)] == expected
        assert [e.text for e in log.recent(-5)] == expected
