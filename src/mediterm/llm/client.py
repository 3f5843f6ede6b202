# -----------------------------------------------------------------------------
# Blocking HTTP adapter for the completion service.
#
# `LLMClient.generate()` turns (config, prompt, system instruction) into one
# text completion. It speaks two protocols:
#
# 1. OpenAI-compatible Chat Completions (provider="openai-compatible", "glm"):
#    POST {base_url}/chat/completions with a bearer token.
#
# 2. Google Gemini generateContent (provider="gemini"):
#    POST {base_url}/models/{model}:generateContent with `x-goog-api-key`,
#    the system instruction sent as `systemInstruction`.
#
# Only the standard library (`urllib.request`) is used. HTTP and network
# failures surface as `ProviderError` carrying the status code, so the
# resilient wrapper can classify them; a missing key is an `AuthError` before
# any request is made. Unit tests patch `_post` and never touch the network.
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any

from mediterm.core.errors import AuthError

from .models import CompletionConfig, ModelConfig, resolve_model

#: Environment variables consulted when the config carries no API key.
API_KEY_ENV: dict[str, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "openai-compatible": ("OPENAI_API_KEY",),
    "glm": ("ZHIPU_API_KEY",),
}


class ProviderError(RuntimeError):
    """Raw provider failure; ``status`` is the HTTP code when there was one."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass(slots=True)
class LLMClient:
    """Multi-provider completion client with a single ``generate()`` call.

    Parameters
    ----------
    timeout_seconds:
        Socket timeout for each HTTP request.
    """

    timeout_seconds: float = 60.0

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def generate(
        self,
        config: CompletionConfig,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        """Return the completion text for ``prompt``.

        Raises
        ------
        AuthError
            If no API key is available for the provider.
        ProviderError
            On HTTP/network failures or an unreadable response payload.
        ValueError
            If the provider is unknown.
        """
        model = resolve_model(config)
        api_key = self._resolve_api_key(config, model.provider)
        if not api_key:
            raise AuthError("API key is required. Please configure it in Settings.")

        if model.provider == "gemini":
            response = self._generate_gemini(
                model=model, api_key=api_key, prompt=prompt, system_instruction=system_instruction
            )
            return self._extract_content_gemini(response)

        response = self._generate_openai_compatible(
            model=model, api_key=api_key, prompt=prompt, system_instruction=system_instruction
        )
        return self._extract_content_openai(response)

    # --------------------------------------------------------------------- #
    # Provider-specific helpers
    # --------------------------------------------------------------------- #
    @staticmethod
    def _resolve_api_key(config: CompletionConfig, provider: str) -> str:
        if config.api_key:
            return config.api_key
        for env_name in API_KEY_ENV.get(provider, ()):
            value = os.getenv(env_name, "")
            if value:
                return value
        return ""

    def _generate_openai_compatible(
        self,
        *,
        model: ModelConfig,
        api_key: str,
        prompt: str,
        system_instruction: str | None,
    ) -> dict[str, Any]:
        """Call ``{base_url}/chat/completions`` (OpenAI, GLM, and look-alikes)."""
        messages: list[dict[str, str]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": prompt})

        payload: MutableMapping[str, Any] = {
            "model": model.name,
            "messages": messages,
            "temperature": model.temperature,
        }
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        return self._post(
            url=f"{model.base_url}/chat/completions",
            headers=headers,
            payload=payload,
            provider=model.provider,
        )

    def _generate_gemini(
        self,
        *,
        model: ModelConfig,
        api_key: str,
        prompt: str,
        system_instruction: str | None,
    ) -> dict[str, Any]:
        """Call ``{base_url}/models/{model}:generateContent``."""
        payload: MutableMapping[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": model.temperature,
                "maxOutputTokens": model.max_tokens,
            },
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "x-goog-api-key": api_key,
        }
        return self._post(
            url=f"{model.base_url}/models/{model.name}:generateContent",
            headers=headers,
            payload=payload,
            provider=model.provider,
        )

    # --------------------------------------------------------------------- #
    # Internal helpers (test seams)
    # --------------------------------------------------------------------- #
    def _post(
        self,
        *,
        url: str,
        headers: Mapping[str, str],
        payload: Mapping[str, Any],
        provider: str,
    ) -> dict[str, Any]:
        """POST ``payload`` as JSON and decode the JSON response.

        This is the seam unit tests patch to avoid real network I/O.

        Raises
        ------
        ProviderError
            With ``status`` set for HTTP errors, ``None`` for network errors,
            timeouts and undecodable bodies.
        """
        body = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(
            url=url,
            data=body,
            headers=dict(headers),
            method="POST",
        )

        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            raise ProviderError(
                f"{provider.upper()} API Error ({exc.code}): {detail or exc.reason}",
                status=exc.code,
            ) from exc
        except (urllib.error.URLError, TimeoutError) as exc:
            raise ProviderError(f"{provider.upper()} network error: {exc}") from exc

        try:
            decoded: dict[str, Any] = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderError(f"{provider.upper()} returned a non-JSON response") from exc

        return decoded

    # --------------------------------------------------------------------- #
    # Response extraction helpers
    # --------------------------------------------------------------------- #
    @staticmethod
    def _extract_content_openai(response: Mapping[str, Any]) -> str:
        """Extract ``choices[0].message.content`` from a Chat Completions payload."""
        choices = response.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ProviderError("API returned unexpected format (no choices)")

        message = choices[0].get("message") if isinstance(choices[0], Mapping) else None
        content = message.get("content") if isinstance(message, Mapping) else None
        if not isinstance(content, str):
            raise ProviderError("API returned unexpected format (no content found)")
        return content

    @staticmethod
    def _extract_content_gemini(response: Mapping[str, Any]) -> str:
        """Concatenate the text parts of the first Gemini candidate.

        A candidate without text parts (e.g. a blocked prompt) is an error
        that names the finish reason.
        """
        candidates = response.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise ProviderError("Gemini response has no candidates")

        first = candidates[0] if isinstance(candidates[0], Mapping) else {}
        content = first.get("content")
        parts = content.get("parts") if isinstance(content, Mapping) else None
        texts = [
            part["text"]
            for part in parts or []
            if isinstance(part, Mapping) and isinstance(part.get("text"), str)
        ]
        if not texts:
            reason = first.get("finishReason", "unknown")
            raise ProviderError(f"Gemini response contains no text (finishReason={reason})")
        return "".join(texts)


__all__ = ["LLMClient", "ProviderError", "API_KEY_ENV"]
