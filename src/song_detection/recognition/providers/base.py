from __future__ import annotations

import abc

from ..types import ProviderReply, Segment


class FingerprintProvider(abc.ABC):
    """Interface for remote fingerprint providers.

    ``identify`` submits one segment and returns a ProviderReply for a match
    or an explicit no-match. Transport failures raise TransportError and
    non-success statuses raise ProviderError.
    """

    name: str

    @abc.abstractmethod
    async def identify(self, *, sample: bytes, segment: Segment) -> ProviderReply:
        raise NotImplementedError

    async def close(self) -> None:
        """Allow provider to cleanup resources if needed."""
        return None
