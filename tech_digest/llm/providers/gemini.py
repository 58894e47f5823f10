"""Google Gemini generateContent provider."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import ProviderConfig
from ...errors import ModelRequestError
from ..tracing import record_span_error, set_span_output, start_span
from .base import CompletionProvider

logger = logging.getLogger(__name__)


class GeminiProvider(CompletionProvider):
    """Gemini-backed completion provider."""

    name = "gemini"

    def __init__(
        self,
        cfg: ProviderConfig,
        api_key: str | None,
        http_client: httpx.Client | None = None,
    ):
        if not api_key:
            raise ValueError("Missing Google API key")
        self.cfg = cfg
        self.api_key = api_key
        self._http_client = http_client

    def request_completion(self, prompt: str) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.cfg.temperature,
                "maxOutputTokens": self.cfg.max_output_tokens,
            },
        }
        with start_span(
            "gemini.generate_content",
            input_value=prompt,
            model=self.cfg.model,
            provider="gemini",
        ) as span:
            try:
                data = self._post(payload)
            except (httpx.HTTPError, ValueError) as exc:
                record_span_error(span, exc)
                raise ModelRequestError(f"error getting completion: {exc}") from exc
            content = _extract_text(data)
            if not content:
                exc = ModelRequestError("Gemini response contained no text parts")
                record_span_error(span, exc)
                raise exc
            set_span_output(span, content)
        logger.debug("Completion received | model=%s chars=%d", self.cfg.model, len(content))
        return content

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.cfg.base_url.rstrip('/')}/v1beta/models/{self.cfg.model}:generateContent"
        params = {"key": self.api_key}
        if self._http_client is not None:
            resp = self._http_client.post(url, params=params, json=payload)
            resp.raise_for_status()
            return resp.json()
        with httpx.Client(timeout=self.cfg.timeout_seconds, trust_env=self.cfg.trust_env) as client:
            resp = client.post(url, params=params, json=payload)
            resp.raise_for_status()
            return resp.json()


def _extract_text(data: dict[str, Any]) -> str:
    """Join the non-thought text parts of the first candidate.

    Falls back to all text parts when the model only returned thoughts.
    """
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(parts, list):
        return ""

    answer = [p.get("text", "") for p in parts if isinstance(p, dict) and not p.get("thought")]
    text = "".join(answer)
    if text:
        return text
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))
