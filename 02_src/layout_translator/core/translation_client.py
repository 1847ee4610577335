"""Translation client for OpenAI-compatible chat completion APIs."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from ..schemas.config import TranslatorConfig
from .cancellation import CancellationToken
from .retry import call_with_retry

logger = logging.getLogger(__name__)


class TranslationClientError(RuntimeError):
    """Raised when a translation call fails after all retries."""


class BaseTranslationClient(ABC):
    """Base interface for translation backends.

    All clients return the same dict shape:
        {
            "translated_text": str,
            "input_tokens": int,
            "output_tokens": int,
        }
    """

    @abstractmethod
    def translate(
        self,
        text: str,
        target_language: str,
        system_prompt: str,
        user_prompt: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        """Translate one chunk.

        Args:
            text: Chunk text (may contain placeholder tokens)
            target_language: Target language code
            system_prompt: System instructions
            user_prompt: User instructions; the chunk text is appended to it
            cancel_token: Optional cancellation token
        """
        raise NotImplementedError


def build_user_message(user_prompt: str, text: str) -> str:
    """Append the source text to the user instructions."""
    return f"{user_prompt}\n\n--- Source text ---\n{text}"


class ChatCompletionTranslationClient(BaseTranslationClient):
    """Chat-completions translation client with retry logic.

    Works with any endpoint speaking the OpenAI chat completions protocol.
    Retries rate limits (429) and server errors with exponential backoff.
    """

    def __init__(self, config: TranslatorConfig) -> None:
        """Initialize translation client.

        Args:
            config: Translator configuration
        """
        self.config = config

    def _build_url(self) -> str:
        return f"{self.config.base_url}/chat/completions"

    def _post(self, body: Dict[str, Any]) -> Dict[str, Any]:
        resp = requests.post(
            self._build_url(),
            json=body,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.config.api_key}",
            },
            timeout=self.config.timeout_sec,
        )
        resp.raise_for_status()
        return resp.json()

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> str:
        choices = payload.get("choices") or []
        if not choices:
            raise TranslationClientError(f"No choices in response: {str(payload)[:400]}")

        content = (choices[0].get("message") or {}).get("content")
        if isinstance(content, list):
            parts = []
            for item in content:
                if isinstance(item, dict) and item.get("type") == "text":
                    parts.append(item.get("text", ""))
                elif isinstance(item, str):
                    parts.append(item)
            return "\n".join(parts).strip()
        if isinstance(content, str):
            return content.strip()
        return ""

    def translate(
        self,
        text: str,
        target_language: str,
        system_prompt: str,
        user_prompt: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[str, Any]:
        """Translate one chunk.

        Raises:
            TranslationClientError: If all retry attempts fail or the response is empty
        """
        body: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": build_user_message(user_prompt, text)},
            ],
            "temperature": self.config.temperature,
        }

        start_time = time.monotonic()
        try:
            payload = call_with_retry(
                lambda: self._post(body),
                max_attempts=self.config.max_retries,
                backoff_base=self.config.backoff_base,
                description=f"translation to {target_language}",
                cancel_token=cancel_token,
            )
        except requests.RequestException as exc:
            response = getattr(exc, "response", None)
            detail = response.text[:400] if response is not None else str(exc)
            raise TranslationClientError(f"Translation request failed: {detail}") from exc
        except ValueError as exc:
            raise TranslationClientError(f"Invalid JSON in translation response: {exc}") from exc

        translated = self._extract_text(payload)
        if not translated and text.strip():
            raise TranslationClientError("Empty content in translation response")

        usage = payload.get("usage") or {}
        result = {
            "translated_text": translated,
            "input_tokens": int(usage.get("prompt_tokens", 0)),
            "output_tokens": int(usage.get("completion_tokens", 0)),
        }

        latency_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Translated {len(text)} chars -> {len(translated)} chars ({target_language}) | "
            f"tokens in={result['input_tokens']} out={result['output_tokens']} | latency={latency_ms}ms"
        )
        return result
