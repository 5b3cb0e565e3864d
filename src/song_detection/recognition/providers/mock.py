from __future__ import annotations

from ..types import ProviderReply, Segment
from .base import FingerprintProvider


class MockFingerprintProvider(FingerprintProvider):
    """Never matches, so callers exercise their fallback path offline."""

    name = "mock"

    async def identify(self, *, sample: bytes, segment: Segment) -> ProviderReply:
        return ProviderReply(code=1001, message="No result")
