"""Text formatting helpers for terminal output."""

from __future__ import annotations

from rich.table import Table

from hai.errors import HINTS, HaiError
from hai.storage.history import History

PROMPT_WIDTH = 30
COMMAND_WIDTH = 50


def truncate(text: str, width: int) -> str:
    """Shorten text to ``width`` characters, marking the cut with an ellipsis."""
    text = " ".join(text.split())
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def history_table(history: History) -> Table:
    """Render history newest first."""
    table = Table(title="Command History")
    table.add_column("Date", style="dim", no_wrap=True)
    table.add_column("Prompt", style="cyan")
    table.add_column("Command", style="green")
    table.add_column("Executed")

    for entry in reversed(history.entries):
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d"),
            truncate(entry.prompt, PROMPT_WIDTH),
            truncate(entry.command, COMMAND_WIDTH),
            "Yes" if entry.executed else "No",
        )
    return table


def format_error(error: HaiError) -> str:
    """Error line followed by the hint for its kind."""
    return f"Error: {error.message}\n\n{HINTS[error.kind]}"
