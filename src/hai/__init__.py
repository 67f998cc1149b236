"""hai - natural language to shell commands."""

__version__ = "0.1.0"
