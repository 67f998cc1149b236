"""OpenAI-compatible chat completions provider."""

from __future__ import annotations

from typing import Any

from hai.config import ProviderKind
from hai.errors import ProviderCommunicationError
from hai.services.provider import Provider


class OpenAIProvider(Provider):
    kind = ProviderKind.OPENAI
    vendor = "OpenAI"
    api_url = "https://api.openai.com/v1/chat/completions"

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.auth_token}",
        }

    def build_payload(self, prompt: str, system_prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def extract_text(self, data: Any) -> str:
        try:
            choices = data["choices"]
        except (KeyError, TypeError) as e:
            raise ProviderCommunicationError(f"Failed to parse OpenAI API response: missing {e}") from e

        if not choices:
            raise ProviderCommunicationError("No response choices in OpenAI response")

        try:
            content = choices[0]["message"]["content"]
        except (KeyError, TypeError, IndexError) as e:
            raise ProviderCommunicationError(f"Failed to parse OpenAI API response: missing {e}") from e

        if not isinstance(content, str):
            raise ProviderCommunicationError("Failed to parse OpenAI API response: content is not text")
        return content
