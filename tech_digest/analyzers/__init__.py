"""Language-model analyzers."""

from .extractor import DigestExtractor, parse_digest_response

__all__ = ["DigestExtractor", "parse_digest_response"]
