"""Tests for terminal formatting utilities."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console

from hai.errors import ProviderCommunicationError
from hai.storage.history import History
from hai.storage.models import HistoryEntry
from hai.utils.formatting import format_error, history_table, truncate


class TestTruncate:
    def test_short_text(self):
        assert truncate("ls -la", 10) == "ls -la"

    def test_exact_length(self):
        assert truncate("a" * 10, 10) == "a" * 10

    def test_long_text(self):
        result = truncate("a" * 40, 30)
        assert len(result) == 30
        assert result.endswith("...")

    def test_collapses_whitespace(self):
        assert truncate("find .\n  -name x", 50) == "find . -name x"

    def test_tiny_width(self):
        assert truncate("abcdef", 2) == "ab"


class TestHistoryTable:
    def test_newest_first(self):
        history = History(5)
        history.append(HistoryEntry("first", "echo 1", True, "m", datetime(2024, 1, 1, tzinfo=timezone.utc)))
        history.append(HistoryEntry("second", "echo 2", False, "m", datetime(2024, 1, 2, tzinfo=timezone.utc)))

        table = history_table(history)
        assert table.row_count == 2

        console = Console(width=120, record=True)
        console.print(table)
        text = console.export_text()
        assert text.index("second") < text.index("first")
        assert "2024-01-02" in text
        assert "Yes" in text and "No" in text


class TestFormatError:
    def test_includes_hint(self):
        output = format_error(ProviderCommunicationError("OpenAI API error (401): nope"))
        assert output.startswith("Error: OpenAI API error (401): nope")
        assert "check your internet connection" in output
