"""OpenAI-compatible chat completions provider."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import ProviderConfig
from ...errors import ModelRequestError
from ..tracing import record_span_error, set_span_output, start_span
from .base import CompletionProvider

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(CompletionProvider):
    """Calls POST {base_url}/chat/completions with a single user message."""

    name = "openai"

    def __init__(
        self,
        cfg: ProviderConfig,
        api_key: str | None,
        http_client: httpx.Client | None = None,
    ):
        if not api_key:
            raise ValueError("Missing OpenAI API key")
        self.cfg = cfg
        self.api_key = api_key
        self._http_client = http_client

    def request_completion(self, prompt: str) -> str:
        payload = {
            "model": self.cfg.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.cfg.temperature,
            "max_tokens": self.cfg.max_output_tokens,
        }
        with start_span(
            "openai.chat_completion",
            input_value=prompt,
            model=self.cfg.model,
            provider="openai",
        ) as span:
            try:
                data = self._post(payload)
            except (httpx.HTTPError, ValueError) as exc:
                record_span_error(span, exc)
                raise ModelRequestError(f"error getting completion: {exc}") from exc
            content = _extract_text(data)
            if not content:
                exc = ModelRequestError("completion response contained no message content")
                record_span_error(span, exc)
                raise exc
            set_span_output(span, content)
        logger.debug("Completion received | model=%s chars=%d", self.cfg.model, len(content))
        return content

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.cfg.base_url.rstrip('/')}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self._http_client is not None:
            resp = self._http_client.post(url, headers=headers, json=payload)
            resp.raise_for_status()
            return resp.json()
        with httpx.Client(timeout=self.cfg.timeout_seconds, trust_env=self.cfg.trust_env) as client:
            resp = client.post(url, headers=headers, json=payload)
            resp.raise_for_status()
            return resp.json()


def _extract_text(data: dict[str, Any]) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content or ""
