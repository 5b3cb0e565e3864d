from __future__ import annotations

"""ACRCloud ``/v1/identify`` client."""

import logging
from typing import Any, Optional

import httpx

from ...errors import ProviderError, TransportError
from ..mapper import first_music, is_usable
from ..signing import SignedRequestBuilder
from ..types import ProviderReply, Segment
from .base import FingerprintProvider

logger = logging.getLogger(__name__)

STATUS_SUCCESS = 0
STATUS_NO_RESULT = 1001


class AcrCloudProvider(FingerprintProvider):
    """Submits signed multipart samples and classifies the JSON status."""

    name = "acrcloud"

    def __init__(
        self,
        builder: SignedRequestBuilder,
        *,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._builder = builder
        self._timeout = timeout
        if client is None:
            self._client = httpx.AsyncClient(timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def identify(self, *, sample: bytes, segment: Segment) -> ProviderReply:
        request = self._builder.build(sample, filename=f"segment-{segment.ordinal}.wav")
        try:
            response = await self._client.post(request.url, data=request.data, files=request.files)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(f"provider responded with HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"provider request failed: {exc!r}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError("provider returned invalid JSON") from exc
        return self._classify(payload)

    def _classify(self, payload: Any) -> ProviderReply:
        status = payload.get("status") if isinstance(payload, dict) else None
        code = _status_code(status)
        message = status.get("msg") if isinstance(status, dict) else None
        music = first_music(payload)

        if code == STATUS_NO_RESULT:
            return ProviderReply(code=code, message=message)
        if code not in (None, STATUS_SUCCESS):
            raise ProviderError(str(message or "provider error"), code=code)
        if code is None and music is None:
            raise ProviderError("provider response missing status", code=None)
        if not is_usable(music):
            logger.warning(
                "recognition.mapping.unusable",
                extra={"code": code, "has_music": music is not None},
            )
            return ProviderReply(code=code, message="metadata missing title or artist")
        return ProviderReply(music=music, code=code, message=message)


def _status_code(status: Any) -> Optional[int]:
    if not isinstance(status, dict):
        return None
    try:
        return int(status.get("code"))
    except (TypeError, ValueError):
        return None


__all__ = ["AcrCloudProvider", "STATUS_SUCCESS", "STATUS_NO_RESULT"]
