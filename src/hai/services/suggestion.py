"""Suggestion pipeline: config -> provider -> suggestion -> history."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NoReturn

import httpx

from hai.config import HISTORY_FILE, AppConfig, load_config, render_system_prompt
from hai.errors import HaiError, classify
from hai.services.provider import Provider, create_provider
from hai.storage.history import HistoryStore
from hai.storage.models import HistoryEntry
from hai.utils.system import PlatformInfo, detect_platform

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    CONFIG_RESOLVED = "config_resolved"
    PROVIDER_SELECTED = "provider_selected"
    SUGGESTION_OBTAINED = "suggestion_obtained"
    HISTORY_APPENDED = "history_appended"
    SAVED = "saved"
    FAILED = "failed"


@dataclass(frozen=True)
class Suggestion:
    prompt: str
    command: str
    model: str


class SuggestionPipeline:
    """One run of the assistant.

    Each step may only follow the one before it. Any failure is classified
    once, stored on ``error`` and re-raised, leaving the pipeline FAILED.
    Nothing touches the history file until a suggestion exists.
    """

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        model_override: str | None = None,
        config_path: Path | None = None,
        history_path: Path | None = None,
        platform: PlatformInfo | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.env = dict(os.environ) if env is None else dict(env)
        self.model_override = model_override
        self.config_path = config_path
        self.history_path = history_path
        self.platform = platform
        self.client = client

        self.state = PipelineState.IDLE
        self.error: HaiError | None = None
        self.config: AppConfig | None = None
        self.provider: Provider | None = None
        self.suggestion: Suggestion | None = None

    def _require(self, state: PipelineState) -> None:
        if self.state is not state:
            raise RuntimeError(f"Pipeline is {self.state.value}, expected {state.value}")

    def _fail(self, failure: Exception) -> NoReturn:
        error = classify(failure)
        self.state = PipelineState.FAILED
        self.error = error
        logger.debug("Pipeline failed (%s): %s", error.kind.value, error.message)
        if error is failure:
            raise error
        raise error from failure

    def resolve_config(self) -> AppConfig:
        self._require(PipelineState.IDLE)
        try:
            self.config = load_config(self.env, self.model_override, self.config_path)
        except Exception as e:
            self._fail(e)
        self.state = PipelineState.CONFIG_RESOLVED
        return self.config

    def select_provider(self) -> Provider:
        if self.state is PipelineState.IDLE:
            self.resolve_config()
        self._require(PipelineState.CONFIG_RESOLVED)
        assert self.config is not None
        try:
            self.provider = create_provider(self.config.default_model, self.config, client=self.client)
        except Exception as e:
            self._fail(e)
        self.state = PipelineState.PROVIDER_SELECTED
        return self.provider

    def system_prompt(self) -> str:
        assert self.config is not None
        facts = self.platform or detect_platform()
        return render_system_prompt(self.config.system_prompt, facts.name, facts.version, self.config.shell)

    async def suggest(self, prompt: str) -> Suggestion:
        """Resolve config and provider if needed, then ask for a command."""
        if self.state in (PipelineState.IDLE, PipelineState.CONFIG_RESOLVED):
            self.select_provider()
        self._require(PipelineState.PROVIDER_SELECTED)
        assert self.config is not None and self.provider is not None

        try:
            command = await self.provider.suggest(prompt, self.system_prompt())
        except Exception as e:
            self._fail(e)

        self.suggestion = Suggestion(prompt=prompt, command=command, model=self.config.default_model)
        self.state = PipelineState.SUGGESTION_OBTAINED
        return self.suggestion

    def record(self, executed: bool) -> HistoryEntry:
        """Append exactly one entry for the obtained suggestion and save."""
        self._require(PipelineState.SUGGESTION_OBTAINED)
        assert self.config is not None and self.suggestion is not None

        store = HistoryStore(self.history_path or HISTORY_FILE, self.config.history_size)
        entry = HistoryEntry(
            prompt=self.suggestion.prompt,
            command=self.suggestion.command,
            executed=executed,
            model=self.suggestion.model,
        )
        try:
            history = store.load()
            history.append(entry)
            self.state = PipelineState.HISTORY_APPENDED
            store.save(history)
        except Exception as e:
            self._fail(e)

        self.state = PipelineState.SAVED
        return entry
