from __future__ import annotations

from typing import Optional


class RecognitionError(RuntimeError):
    """Base class for song recognition failures."""


class ConfigurationError(RecognitionError):
    """Raised when the fingerprint provider cannot be used as configured."""


class TransportError(RecognitionError):
    """Raised when a single provider request fails on the wire or times out."""


class ProviderError(RecognitionError):
    """Raised when the provider answers with a non-success status."""

    def __init__(self, message: str, *, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


__all__ = ["RecognitionError", "ConfigurationError", "TransportError", "ProviderError"]
