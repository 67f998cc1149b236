"""Anthropic-compatible messages provider."""

from __future__ import annotations

from typing import Any

from hai.config import ProviderKind
from hai.errors import ProviderCommunicationError
from hai.services.provider import Provider

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(Provider):
    kind = ProviderKind.ANTHROPIC
    vendor = "Anthropic"
    api_url = "https://api.anthropic.com/v1/messages"

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.auth_token,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_payload(self, prompt: str, system_prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "system": system_prompt,
            "messages": [
                {"role": "user", "content": [{"type": "text", "text": prompt}]},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def extract_text(self, data: Any) -> str:
        try:
            blocks = data["content"]
        except (KeyError, TypeError) as e:
            raise ProviderCommunicationError(f"Failed to parse Anthropic API response: missing {e}") from e

        if not blocks:
            raise ProviderCommunicationError("No content in Anthropic response")
        if not isinstance(blocks, list):
            raise ProviderCommunicationError("Failed to parse Anthropic API response: 'content' is not a list")

        # Skip non-text blocks such as thinking or tool use.
        for block in blocks:
            if isinstance(block, dict) and block.get("type", "text") == "text" and isinstance(block.get("text"), str):
                return block["text"]

        raise ProviderCommunicationError("Failed to parse Anthropic API response: no text content")
