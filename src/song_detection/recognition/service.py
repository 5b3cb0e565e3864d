from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Sequence

import httpx

from ..audio.types import AudioSnapshot
from ..audio.wav import encode_wav
from ..errors import ConfigurationError, ProviderError, TransportError
from ..settings import ProviderSettings
from .mapper import DEFAULT_CONFIDENCE, map_music
from .providers.acrcloud import AcrCloudProvider
from .providers.base import FingerprintProvider
from .providers.mock import MockFingerprintProvider
from .segments import MAX_SEGMENT_BYTES, MAX_SEGMENTS, OPTIMAL_SEGMENT_BYTES, plan_segments
from .signing import Clock, SignedRequestBuilder
from .types import (
    AttemptOutcome,
    AttemptStatus,
    IdentificationReport,
    IdentifyState,
    ProviderReply,
    Recognition,
    Segment,
)

logger = logging.getLogger(__name__)


class RecognitionService:
    """Identifies a capture by submitting its segments one at a time.

    The first usable match wins and no later segment is submitted. Only
    ConfigurationError reaches the caller; every per-segment failure is
    folded into the returned report.
    """

    def __init__(
        self,
        *,
        provider: FingerprintProvider,
        settings: Optional[ProviderSettings] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._provider = provider
        self._settings = settings
        self._timeout = timeout if timeout is not None else (settings.timeout if settings else 15.0)
        self._optimal = settings.optimal_segment_bytes if settings else OPTIMAL_SEGMENT_BYTES
        self._maximum = settings.max_segment_bytes if settings else MAX_SEGMENT_BYTES
        self._max_segments = settings.max_segments if settings else MAX_SEGMENTS
        self._default_confidence = settings.default_confidence if settings else DEFAULT_CONFIDENCE

    @classmethod
    def from_settings(
        cls,
        cfg: ProviderSettings,
        *,
        clock: Optional[Clock] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "RecognitionService":
        provider_name = (cfg.provider or "acrcloud").strip().lower()
        provider: FingerprintProvider
        if provider_name in {"mock", "fake"}:
            provider = MockFingerprintProvider()
        elif provider_name == "acrcloud":
            provider = _UnconfiguredProvider()
            if cfg.is_configured():
                builder = SignedRequestBuilder(
                    host=cfg.host or "",
                    access_key=cfg.access_key or "",
                    access_secret=cfg.access_secret or "",
                    endpoint_path=cfg.endpoint_path,
                    clock=clock or time.time,
                )
                provider = AcrCloudProvider(builder, timeout=cfg.timeout, client=http_client)
        else:
            raise ConfigurationError(f"unsupported fingerprint provider: {cfg.provider}")
        return cls(provider=provider, settings=cfg)

    @property
    def provider(self) -> FingerprintProvider:
        return self._provider

    @property
    def is_configured(self) -> bool:
        if isinstance(self._provider, _UnconfiguredProvider):
            return False
        if isinstance(self._provider, AcrCloudProvider) and self._settings is not None:
            return self._settings.is_configured()
        return True

    def _ensure_configured(self) -> None:
        if self._optimal <= 0 or self._maximum < self._optimal:
            logger.error(
                "recognition.config.segment_sizes",
                extra={"optimal": self._optimal, "maximum": self._maximum},
            )
            raise ConfigurationError(
                "ACR_OPTIMAL_SEGMENT_BYTES must be > 0 and not exceed ACR_MAX_SEGMENT_BYTES"
            )
        if self.is_configured:
            return
        missing = self._settings.missing_credentials() if self._settings else []
        logger.error("recognition.config.missing", extra={"missing": missing})
        if self._settings is not None:
            self._settings.require_credentials()
        raise ConfigurationError("fingerprint provider credentials are not configured")

    def plan(self, length: int) -> list[Segment]:
        return plan_segments(
            length,
            optimal=self._optimal,
            maximum=self._maximum,
            max_segments=self._max_segments,
        )

    async def identify(self, samples: Sequence[float] | AudioSnapshot, sample_rate: Optional[int] = None) -> Optional[Recognition]:
        self._ensure_configured()
        container = encode_wav(samples, sample_rate)
        return await self.identify_container(container)

    async def identify_container(self, container: bytes) -> Optional[Recognition]:
        report = await self.run(container)
        return report.recognition

    async def run(self, container: bytes) -> IdentificationReport:
        self._ensure_configured()
        segments = self.plan(len(container))
        report = IdentificationReport(container_bytes=len(container))
        index = 0

        while True:
            if report.state is IdentifyState.IDLE:
                report.state = IdentifyState.TRYING_SEGMENT if segments else IdentifyState.FAILED
            elif report.state is IdentifyState.TRYING_SEGMENT:
                outcome = await self._attempt(container, segments[index], total=len(segments))
                report.attempts.append(outcome)
                if outcome.matched:
                    report.state = IdentifyState.MATCHED
                elif index + 1 < len(segments):
                    index += 1
                else:
                    report.state = IdentifyState.FAILED
            elif report.state is IdentifyState.MATCHED:
                matched = report.attempts[-1]
                report.recognition = map_music(matched.music or {}, default_confidence=self._default_confidence)
                logger.info(
                    "recognition.matched",
                    extra={
                        "segment": matched.segment.ordinal,
                        "title": report.recognition.title,
                        "artist": report.recognition.artist,
                        "confidence": report.recognition.confidence,
                    },
                )
                return report
            else:
                logger.info(
                    "recognition.failed",
                    extra={"segments": len(segments), "bytes": len(container)},
                )
                return report

    async def _attempt(self, container: bytes, segment: Segment, *, total: int) -> AttemptOutcome:
        sample = segment.slice(container)
        started = time.perf_counter()
        extra = {"segment": segment.ordinal, "of": total, "bytes": segment.size}
        try:
            async with asyncio.timeout(self._timeout):
                reply = await self._provider.identify(sample=sample, segment=segment)
        except asyncio.TimeoutError:
            outcome = AttemptOutcome(segment, AttemptStatus.TRANSPORT_ERROR, message="timeout")
            logger.warning("recognition.attempt.timeout", extra={**extra, "timeout": self._timeout})
        except TransportError as exc:
            outcome = AttemptOutcome(segment, AttemptStatus.TRANSPORT_ERROR, message=str(exc))
            logger.warning("recognition.attempt.transport_error", extra={**extra, "error": str(exc)})
        except ConfigurationError:
            raise
        except ProviderError as exc:
            outcome = AttemptOutcome(segment, AttemptStatus.PROVIDER_ERROR, code=exc.code, message=exc.message)
            logger.warning(
                "recognition.attempt.provider_error",
                extra={**extra, "code": exc.code, "provider_msg": exc.message},
            )
        except Exception as exc:
            outcome = AttemptOutcome(segment, AttemptStatus.TRANSPORT_ERROR, message=repr(exc))
            logger.exception("recognition.attempt.unexpected_error", extra=extra)
        else:
            if reply.matched:
                outcome = AttemptOutcome(
                    segment,
                    AttemptStatus.MATCHED,
                    music=reply.music,
                    code=reply.code,
                    message=reply.message,
                )
            else:
                outcome = AttemptOutcome(segment, AttemptStatus.NO_MATCH, code=reply.code, message=reply.message)
                logger.info("recognition.attempt.no_match", extra={**extra, "code": reply.code})
        outcome.elapsed_ms = round((time.perf_counter() - started) * 1000.0, 1)
        return outcome

    async def close(self) -> None:
        await self._provider.close()


class _UnconfiguredProvider(FingerprintProvider):
    name = "acrcloud"

    async def identify(self, *, sample: bytes, segment: Segment) -> ProviderReply:
        raise ConfigurationError("fingerprint provider credentials are not configured")


__all__ = ["RecognitionService"]
