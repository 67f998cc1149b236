"""Error taxonomy and failure classification."""

from __future__ import annotations

import json
import re
import tomllib
from enum import Enum

import httpx


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    PROVIDER_COMMUNICATION = "provider_communication"
    COMMAND_EXECUTION = "command_execution"
    STORAGE = "storage"
    SERIALIZATION = "serialization"
    UNCLASSIFIED = "unclassified"


class HaiError(Exception):
    """Base error carrying a user-facing kind."""

    kind: ErrorKind = ErrorKind.UNCLASSIFIED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(HaiError):
    kind = ErrorKind.CONFIGURATION


class ProviderCommunicationError(HaiError):
    kind = ErrorKind.PROVIDER_COMMUNICATION


class CommandExecutionError(HaiError):
    kind = ErrorKind.COMMAND_EXECUTION


class StorageError(HaiError):
    kind = ErrorKind.STORAGE


class SerializationError(HaiError):
    kind = ErrorKind.SERIALIZATION


class UnclassifiedError(HaiError):
    kind = ErrorKind.UNCLASSIFIED


ERROR_CLASSES: dict[ErrorKind, type[HaiError]] = {
    ErrorKind.CONFIGURATION: ConfigurationError,
    ErrorKind.PROVIDER_COMMUNICATION: ProviderCommunicationError,
    ErrorKind.COMMAND_EXECUTION: CommandExecutionError,
    ErrorKind.STORAGE: StorageError,
    ErrorKind.SERIALIZATION: SerializationError,
    ErrorKind.UNCLASSIFIED: UnclassifiedError,
}

MESSAGE_RULES: list[tuple[str, ErrorKind]] = [
    (r"no models configured", ErrorKind.CONFIGURATION),
    (r"model\b.*\bnot found in config", ErrorKind.CONFIGURATION),
    (r"configuration file not found", ErrorKind.CONFIGURATION),
    (r"failed to parse config", ErrorKind.CONFIGURATION),
    (r"failed to send request", ErrorKind.PROVIDER_COMMUNICATION),
    (r"failed to parse .*response", ErrorKind.PROVIDER_COMMUNICATION),
    (r"failed to execute command", ErrorKind.COMMAND_EXECUTION),
    (r"exited with non-zero status", ErrorKind.COMMAND_EXECUTION),
]

# Checked in order against each link of the cause chain, outermost first.
CAUSE_RULES: list[tuple[tuple[type[BaseException], ...], ErrorKind]] = [
    ((json.JSONDecodeError, tomllib.TOMLDecodeError, UnicodeDecodeError), ErrorKind.SERIALIZATION),
    ((OSError,), ErrorKind.STORAGE),
    ((httpx.HTTPError,), ErrorKind.PROVIDER_COMMUNICATION),
]

HINTS: dict[ErrorKind, str] = {
    ErrorKind.CONFIGURATION: (
        "Please check your configuration file at ~/.config/hai/config.toml.\n"
        "Make sure you have configured at least one model and that it has a valid API key."
    ),
    ErrorKind.PROVIDER_COMMUNICATION: (
        "There was an issue communicating with the AI service.\n"
        "Please check your internet connection and API key."
    ),
    ErrorKind.COMMAND_EXECUTION: (
        "The command could not be executed.\n"
        "Please check that the required programs are installed."
    ),
    ErrorKind.STORAGE: (
        "A file under ~/.config/hai could not be read or written.\n"
        "Please check the directory permissions and available disk space."
    ),
    ErrorKind.SERIALIZATION: (
        "A data file could not be decoded.\n"
        "Moving ~/.config/hai/history.json aside will start a fresh history."
    ),
    ErrorKind.UNCLASSIFIED: "Run again with --verbose for more details.",
}

_compiled_rules = [(re.compile(pattern, re.IGNORECASE), kind) for pattern, kind in MESSAGE_RULES]


def _cause_chain(failure: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = failure
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def _kind_from_chain(failure: BaseException) -> ErrorKind:
    # The outermost exception wins; transport errors wrap OSError causes.
    for exc in _cause_chain(failure):
        for types, rule_kind in CAUSE_RULES:
            if isinstance(exc, types):
                return rule_kind
    return ErrorKind.UNCLASSIFIED


def classify(failure: BaseException) -> HaiError:
    """Map any failure onto the closed error taxonomy.

    Already-classified errors are returned unchanged. Everything else is
    matched by message first and then by the types along its cause chain;
    anything left over is Unclassified.
    """
    if isinstance(failure, HaiError):
        return failure

    message = str(failure) or failure.__class__.__name__
    kind = ErrorKind.UNCLASSIFIED

    for compiled, rule_kind in _compiled_rules:
        if compiled.search(message):
            kind = rule_kind
            break
    else:
        kind = _kind_from_chain(failure)

    error = ERROR_CLASSES[kind](message)
    error.__cause__ = failure
    return error
