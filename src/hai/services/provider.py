"""Remote model providers that turn a prompt into a shell command."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from hai.config import AppConfig, ProviderKind
from hai.errors import ConfigurationError, ProviderCommunicationError

logger = logging.getLogger(__name__)


class Provider(ABC):
    """One vendor's chat API behind a single ``suggest`` call.

    Subclasses supply the endpoint, auth headers, request payload and the
    path to the first textual result; transport and status handling is
    shared here.
    """

    kind: ProviderKind
    vendor: str
    api_url: str

    def __init__(
        self,
        model: str,
        auth_token: str,
        temperature: float,
        max_tokens: int,
        api_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.model = model
        self.auth_token = auth_token
        self.temperature = temperature
        self.max_tokens = max_tokens
        if api_url:
            self.api_url = api_url
        self._client = client

    @abstractmethod
    def build_headers(self) -> dict[str, str]:
        """Vendor authentication and versioning headers."""

    @abstractmethod
    def build_payload(self, prompt: str, system_prompt: str) -> dict[str, Any]:
        """Vendor request body."""

    @abstractmethod
    def extract_text(self, data: Any) -> str:
        """Return the first textual result or raise ProviderCommunicationError."""

    def describe_error(self, response: httpx.Response) -> str:
        """Turn a non-success response into a readable message."""
        try:
            error = response.json().get("error")
        except (ValueError, AttributeError):
            error = None
        if isinstance(error, dict) and error.get("message"):
            return f"{self.vendor} API error ({error.get('type', 'unknown')}): {error['message']}"
        return f"{self.vendor} API error ({response.status_code}): {response.text}"

    async def _post(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> httpx.Response:
        try:
            return await client.post(self.api_url, json=payload, headers=self.build_headers())
        except httpx.HTTPError as e:
            raise ProviderCommunicationError(f"Failed to send request to {self.vendor} API: {e}") from e

    async def suggest(self, prompt: str, system_prompt: str) -> str:
        """Ask the model for a command and return it trimmed."""
        payload = self.build_payload(prompt, system_prompt)
        logger.debug("Requesting %s completion from %s", self.model, self.api_url)

        if self._client is not None:
            response = await self._post(self._client, payload)
        else:
            async with httpx.AsyncClient(timeout=None) as client:
                response = await self._post(client, payload)

        if response.is_error:
            raise ProviderCommunicationError(self.describe_error(response))

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderCommunicationError(
                f"Failed to parse {self.vendor} API response: {e}. Response: {response.text}"
            ) from e

        command = self.extract_text(data).strip()
        logger.info("%s suggested: %s", self.model, command)
        return command


def create_provider(
    model_name: str,
    config: AppConfig,
    client: httpx.AsyncClient | None = None,
) -> Provider:
    """Build the provider bound to ``model_name`` in the resolved config."""
    from hai.services.anthropic_provider import AnthropicProvider
    from hai.services.openai_provider import OpenAIProvider

    providers: dict[ProviderKind, type[Provider]] = {
        ProviderKind.OPENAI: OpenAIProvider,
        ProviderKind.ANTHROPIC: AnthropicProvider,
    }

    if not config.models:
        raise ConfigurationError("No models configured")

    binding = config.models.get(model_name)
    if binding is None:
        raise ConfigurationError(f"Model '{model_name}' not found in config")

    kind = binding.kind
    if kind is None:
        raise ConfigurationError(f"Unsupported provider '{binding.provider}' for model '{model_name}'")

    if not binding.auth_token:
        logger.warning("Model '%s' has no auth token; the %s API will likely reject the request", model_name, kind.value)

    return providers[kind](
        model=binding.model_name(model_name),
        auth_token=binding.auth_token,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        api_url=binding.api_url,
        client=client,
    )
