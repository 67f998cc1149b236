"""Shell command executor service."""

from __future__ import annotations

import asyncio
import logging
import time

from hai.errors import CommandExecutionError

logger = logging.getLogger(__name__)

POWERSHELLS = ("powershell", "pwsh")


def shell_invocation(shell: str, command: str) -> list[str]:
    """Argument vector that runs ``command`` through ``shell``."""
    if shell.lower() in POWERSHELLS:
        return [shell, "-Command", command]
    return [shell, "-c", command]


class ShellRunner:
    """Run a confirmed command attached to the user's terminal."""

    def __init__(self, shell: str) -> None:
        self.shell = shell

    async def execute(self, command: str) -> int:
        """Execute a shell command and return its exit code."""
        args = shell_invocation(self.shell, command)
        logger.info("Executing via %s: %s", self.shell, command)

        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(*args)
        except OSError as e:
            raise CommandExecutionError(f"Failed to execute command with {self.shell}: {e}") from e

        exit_code = await proc.wait()
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("Command finished in %dms with exit code %d", elapsed_ms, exit_code)

        if exit_code != 0:
            raise CommandExecutionError(f"Command exited with non-zero status: {exit_code}")
        return exit_code
