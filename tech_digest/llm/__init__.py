"""LLM providers, prompts and tracing."""

from .prompts import build_extraction_prompt
from .providers import (
    CompletionProvider,
    GeminiProvider,
    OpenAICompatibleProvider,
    available_providers,
    create_provider,
)
from .tracing import flush, record_span_error, set_span_output, setup_langfuse, start_span

__all__ = [
    "CompletionProvider",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "available_providers",
    "build_extraction_prompt",
    "create_provider",
    "flush",
    "record_span_error",
    "set_span_output",
    "setup_langfuse",
    "start_span",
]
