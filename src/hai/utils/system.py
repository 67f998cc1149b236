"""Operating system and shell detection."""

from __future__ import annotations

import platform
import shutil
import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePath

UNKNOWN_VERSION = "unknown version"
OS_RELEASE_FILE = Path("/etc/os-release")
OS_RELEASE_KEYS = ("PRETTY_NAME", "VERSION_ID", "NAME")


@dataclass(frozen=True)
class PlatformInfo:
    name: str
    version: str


def platform_name() -> str:
    """Return a short OS name: linux, macos, windows, or the raw sys.platform."""
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform == "darwin":
        return "macos"
    if sys.platform in ("win32", "cygwin"):
        return "windows"
    return sys.platform


def _command_output(args: list[str]) -> str:
    try:
        result = subprocess.run(args, capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.TimeoutExpired):
        return ""
    return result.stdout.strip()


def parse_os_release(content: str) -> str:
    """Pick the most descriptive version field from an os-release document."""
    values: dict[str, str] = {}
    for line in content.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip()] = value.strip().strip('"')
    for key in OS_RELEASE_KEYS:
        if values.get(key):
            return values[key]
    return ""


def os_version(name: str, os_release: Path = OS_RELEASE_FILE) -> str:
    """Detect the OS version for the given platform name."""
    version = ""
    if name == "linux":
        try:
            version = parse_os_release(os_release.read_text())
        except OSError:
            version = ""
        if not version:
            version = _command_output(["uname", "-r"])
    elif name == "macos":
        version = _command_output(["sw_vers", "-productVersion"])
    elif name == "windows":
        version = platform.version()
    return version or UNKNOWN_VERSION


def detect_platform() -> PlatformInfo:
    name = platform_name()
    return PlatformInfo(name=name, version=os_version(name))


def detect_default_shell(env: Mapping[str, str], name: str | None = None) -> str:
    """Work out the invoking user's shell when the config does not name one."""
    shell_path = env.get("SHELL")
    if shell_path:
        return PurePath(shell_path).name or "bash"

    if (name or platform_name()) == "windows":
        # PowerShell Core first, then Windows PowerShell
        for candidate in ("pwsh", "powershell"):
            if shutil.which(candidate):
                return candidate

    return "bash"
