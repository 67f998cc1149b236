"""Shared test fixtures."""

from __future__ import annotations

import pytest
import tomli_w

from hai.config import AppConfig, ModelBinding
from hai.utils.system import PlatformInfo

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"

CONFIG_DATA = {
    "default-model": "gpt-4o-mini",
    "temperature": 0.2,
    "max-tokens": 80,
    "shell": "bash",
    "history-size": 5,
    "models": {
        "gpt-4o-mini": {"provider": "openai", "model": "gpt-4o-mini", "auth-token": "sk-file"},
        "claude-3": {"provider": "anthropic", "model": "claude-3-7-sonnet-20250219", "auth-token": "ant-file"},
    },
}


def openai_reply(content: str) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def anthropic_reply(text: str) -> dict:
    return {"type": "message", "role": "assistant", "content": [{"type": "text", "text": text}]}


@pytest.fixture
def config_file(tmp_path):
    """Write a test configuration file."""
    path = tmp_path / "config.toml"
    with open(path, "wb") as f:
        tomli_w.dump(CONFIG_DATA, f)
    return path


@pytest.fixture
def history_file(tmp_path):
    return tmp_path / "history.json"


@pytest.fixture
def platform_info():
    return PlatformInfo(name="linux", version="Test Linux 1.0")


@pytest.fixture
def app_config():
    """Create a test configuration."""
    return AppConfig(
        default_model="gpt-4o-mini",
        temperature=0.2,
        max_tokens=80,
        shell="bash",
        history_size=5,
        models={
            "gpt-4o-mini": ModelBinding(provider="openai", model="gpt-4o-mini", auth_token="sk-test"),
            "claude-3": ModelBinding(provider="anthropic", model="claude-3-7-sonnet-20250219", auth_token="ant-test"),
            "fast": ModelBinding(provider="openai", auth_token="sk-test"),
            "local": ModelBinding(provider="ollama", auth_token=""),
        },
    )
