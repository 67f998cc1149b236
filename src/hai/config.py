"""Configuration management using TOML + environment variables."""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import tomli_w

from hai.errors import ConfigurationError, StorageError
from hai.utils.system import detect_default_shell

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "hai"
CONFIG_FILE = CONFIG_DIR / "config.toml"
HISTORY_FILE = CONFIG_DIR / "history.json"

ENV_DEFAULT_MODEL = "HAI_DEFAULT_MODEL"
ENV_LOG_LEVEL = "HAI_LOG_LEVEL"
ENV_SKIP_SETUP = "HAI_SKIP_SETUP"

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_TOKENS = 100
DEFAULT_SHELL = "bash"
DEFAULT_HISTORY_SIZE = 50
DEFAULT_LOG_LEVEL = "WARNING"

DEFAULT_SYSTEM_PROMPT = """\
You are Hai, a helpful AI that converts natural language to shell commands.
Respond with ONLY the shell command, no explanations or markdown formatting.
Make sure commands are compatible with the user's environment and shell.
Your name is Hai.
If the request from the user is not a clear shell command, respond with a witty but nice message using the "echo" command.
Adapt your commands to the specific shell syntax (Bash, Zsh, Fish, PowerShell) that the user is using.
"""

SHELL_DESCRIPTIONS: dict[str, str] = {
    "bash": "Bash shell (bash)",
    "zsh": "Z shell (zsh)",
    "fish": "Fish shell (fish)",
    "powershell": "Windows PowerShell",
    "pwsh": "PowerShell Core (pwsh)",
}


class ProviderKind(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


TOKEN_ENV_VARS: dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "HAI_OPENAI_TOKEN",
    ProviderKind.ANTHROPIC: "HAI_ANTHROPIC_TOKEN",
}

DEFAULT_BINDINGS: dict[ProviderKind, tuple[str, str]] = {
    ProviderKind.OPENAI: ("gpt-4o-mini", "gpt-4o-mini"),
    ProviderKind.ANTHROPIC: ("claude-3", "claude-3-7-sonnet-20250219"),
}


@dataclass(frozen=True)
class ModelBinding:
    provider: str
    model: str | None = None
    auth_token: str = ""
    api_url: str | None = None

    @property
    def kind(self) -> ProviderKind | None:
        try:
            return ProviderKind(self.provider)
        except ValueError:
            return None

    def model_name(self, key: str) -> str:
        """Concrete vendor model name, falling back to the binding key."""
        return self.model or key


@dataclass(frozen=True)
class AppConfig:
    default_model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    shell: str = DEFAULT_SHELL
    history_size: int = DEFAULT_HISTORY_SIZE
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    models: dict[str, ModelBinding] = field(default_factory=dict)
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str | None = None


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Create config directory with secure permissions."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
        os.chmod(directory, 0o700)
    except OSError as e:
        raise StorageError(f"Failed to create config directory {directory}: {e}") from e
    return directory


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Read and parse the TOML configuration document."""
    config_file = path or CONFIG_FILE
    if not config_file.exists():
        raise ConfigurationError(f"Configuration file not found at {config_file}")

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Failed to parse config file {config_file}: {e}") from e
    except OSError as e:
        raise StorageError(f"Failed to read config file at {config_file}: {e}") from e


def _string(data: Mapping[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ConfigurationError(f"Failed to parse config: '{key}' must be a string")
    return value


def _integer(data: Mapping[str, Any], key: str, default: int, minimum: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"Failed to parse config: '{key}' must be an integer")
    if value < minimum:
        raise ConfigurationError(f"Failed to parse config: '{key}' must be at least {minimum}")
    return value


def _temperature(data: Mapping[str, Any]) -> float:
    value = data.get("temperature", DEFAULT_TEMPERATURE)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError("Failed to parse config: 'temperature' must be a number")
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError("Failed to parse config: 'temperature' must be between 0.0 and 1.0")
    return float(value)


def _binding(name: str, raw: Any, env: Mapping[str, str]) -> ModelBinding:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Failed to parse config: models.{name} must be a table")
    provider = raw.get("provider")
    if not isinstance(provider, str) or not provider:
        raise ConfigurationError(f"Failed to parse config: models.{name} is missing 'provider'")

    binding = ModelBinding(
        provider=provider,
        model=_string(raw, "model", "") or None,
        auth_token=_string(raw, "auth-token", ""),
        api_url=_string(raw, "api-url", "") or None,
    )

    # Only the variable for this binding's own provider kind is consulted.
    kind = binding.kind
    if kind is not None and (env_token := env.get(TOKEN_ENV_VARS[kind])):
        binding = ModelBinding(
            provider=binding.provider,
            model=binding.model,
            auth_token=env_token,
            api_url=binding.api_url,
        )
    return binding


def resolve_config(
    data: Mapping[str, Any],
    env: Mapping[str, str],
    model_override: str | None = None,
) -> AppConfig:
    """Merge file data, environment overrides and the CLI model override."""
    default_model = _string(data, "default-model", DEFAULT_MODEL)
    if env_model := env.get(ENV_DEFAULT_MODEL):
        default_model = env_model
    if model_override:
        default_model = model_override

    raw_models = data.get("models", {})
    if not isinstance(raw_models, Mapping):
        raise ConfigurationError("Failed to parse config: 'models' must be a table")
    models = {name: _binding(name, raw, env) for name, raw in raw_models.items()}

    if "shell" in data:
        shell = _string(data, "shell", DEFAULT_SHELL)
    else:
        shell = detect_default_shell(env)

    log_level = _string(data, "log-level", DEFAULT_LOG_LEVEL)
    if env_log_level := env.get(ENV_LOG_LEVEL):
        log_level = env_log_level

    log_file = data.get("log-file")
    if log_file is not None and not isinstance(log_file, str):
        raise ConfigurationError("Failed to parse config: 'log-file' must be a string")

    return AppConfig(
        default_model=default_model,
        temperature=_temperature(data),
        max_tokens=_integer(data, "max-tokens", DEFAULT_MAX_TOKENS, minimum=1),
        shell=shell,
        history_size=_integer(data, "history-size", DEFAULT_HISTORY_SIZE, minimum=0),
        system_prompt=_string(data, "system-prompt", DEFAULT_SYSTEM_PROMPT),
        models=models,
        log_level=log_level.upper(),
        log_file=log_file,
    )


def load_config(
    env: Mapping[str, str] | None = None,
    model_override: str | None = None,
    path: Path | None = None,
) -> AppConfig:
    """Load configuration from TOML file with env var overrides."""
    data = load_config_file(path)
    config = resolve_config(data, dict(os.environ) if env is None else env, model_override)
    logger.debug("Resolved config: model=%s shell=%s models=%s", config.default_model, config.shell, list(config.models))
    return config


def render_system_prompt(base: str, platform_name: str, platform_version: str, shell: str) -> str:
    """Append environment facts to the base prompt."""
    shell_info = SHELL_DESCRIPTIONS.get(shell, shell)
    return (
        f"{base}\n"
        f"Operating System: {platform_name} {platform_version}\n"
        f"Shell: {shell_info}\n"
        "Please ensure all commands are compatible with this environment and shell syntax."
    )


def default_config_data(kind: ProviderKind | None = None, api_key: str = "") -> dict[str, Any]:
    """Build the bootstrap config document.

    With no provider kind both the OpenAI and Anthropic bindings are written
    with empty tokens; otherwise only the chosen one, carrying ``api_key``.
    """
    kinds = [kind] if kind is not None else list(DEFAULT_BINDINGS)
    models: dict[str, dict[str, str]] = {}
    for each in kinds:
        name, model = DEFAULT_BINDINGS[each]
        models[name] = {"provider": each.value, "model": model, "auth-token": api_key}

    return {
        "default-model": DEFAULT_BINDINGS[kinds[0]][0],
        "history-size": DEFAULT_HISTORY_SIZE,
        "models": models,
    }


def save_config_data(data: Mapping[str, Any], path: Path | None = None) -> Path:
    """Save configuration to TOML file."""
    config_file = path or CONFIG_FILE
    ensure_config_dir(config_file.parent)

    try:
        with open(config_file, "wb") as f:
            tomli_w.dump(dict(data), f)
        os.chmod(config_file, 0o600)
    except OSError as e:
        raise StorageError(f"Failed to write config file {config_file}: {e}") from e

    logger.info("Configuration written to %s", config_file)
    return config_file
