import json
import logging
import os
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .audio import AudioIngestor, AudioPreprocessor, AudioSnapshot, IngestLimits, encode_wav
from .detection import resolve_detection
from .errors import ConfigurationError
from .logging_setup import setup_logging
from .recognition import IdentificationReport, RecognitionService
from .recognition.providers import MockFingerprintProvider
from .schemas import AnalyzeRequest, AttemptStats, DetectionResponse, DetectionStats, SongPayload
from .settings import settings as runtime_settings

setup_logging(runtime_settings.logging)

app = FastAPI()
logger = logging.getLogger(__name__)

analyze_cfg = runtime_settings.analyze
provider_cfg = runtime_settings.provider

audio_ingestor = AudioIngestor(limits=IngestLimits(max_bytes=analyze_cfg.max_payload_bytes))
audio_preprocessor = AudioPreprocessor(max_duration_seconds=analyze_cfg.max_duration_seconds)

try:
    recognition_service = RecognitionService.from_settings(provider_cfg)
except ConfigurationError:  # pragma: no cover - fallback to mock provider if config invalid
    logger.exception("audio.provider_init_failed")
    recognition_service = RecognitionService(provider=MockFingerprintProvider())


def _build_response(
    snapshot: AudioSnapshot,
    report: Optional[IdentificationReport],
    *,
    reason: Optional[str],
    started: float,
) -> Dict[str, Any]:
    detection = resolve_detection(report.recognition if report else None, reason=reason)
    attempts = [
        AttemptStats(
            segment=attempt.segment.ordinal,
            status=attempt.status.value,
            code=attempt.code,
            elapsed_ms=attempt.elapsed_ms,
        )
        for attempt in (report.attempts if report else [])
    ]
    response = DetectionResponse(
        song=SongPayload(**detection.song_dict()),
        provenance=detection.provenance.value,
        reason=detection.reason,
        confidence=detection.recognition.confidence,
        sampleRate=snapshot.sample_rate,
        durationSeconds=round(snapshot.duration_seconds, 2),
        stats=DetectionStats(
            latency_ms=round((time.perf_counter() - started) * 1000.0, 1),
            container_bytes=report.container_bytes if report else 0,
            attempts=attempts,
        ),
    )
    return response.model_dump()


async def _detect(snapshot: AudioSnapshot) -> JSONResponse:
    started = time.perf_counter()
    report: Optional[IdentificationReport] = None
    reason: Optional[str] = None

    if snapshot.duration_seconds < analyze_cfg.min_duration_seconds:
        reason = "too_short"
        logger.info(
            "audio.analyze.too_short",
            extra={"seconds": round(snapshot.duration_seconds, 2), "minimum": analyze_cfg.min_duration_seconds},
        )
    else:
        container = encode_wav(snapshot)
        try:
            report = await recognition_service.run(container)
        except ConfigurationError as exc:
            raise HTTPException(status_code=503, detail="recognition provider not configured") from exc

    payload = _build_response(snapshot, report, reason=reason, started=started)
    if payload["provenance"] == "fallback" and not analyze_cfg.fallback_enabled:
        raise HTTPException(status_code=404, detail="no match")
    logger.info(
        "audio.analyze.done",
        extra={"provenance": payload["provenance"], "latency_ms": payload["stats"]["latency_ms"]},
    )
    return JSONResponse(payload)


@app.get("/health")
async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": "song-detection",
        "provider": recognition_service.provider.name,
        "provider_configured": recognition_service.is_configured,
    }


@app.post("/audio/analyze")
async def analyze(request: Request) -> JSONResponse:
    raw = await request.body()
    if len(raw) > analyze_cfg.max_payload_bytes:
        raise HTTPException(status_code=413, detail="audio payload too large")

    try:
        body = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid json")

    try:
        parsed = AnalyzeRequest.model_validate(body)
    except ValidationError:
        raise HTTPException(status_code=400, detail="invalid audio samples")

    sample_rate = parsed.sample_rate or analyze_cfg.default_sample_rate
    snapshot = AudioSnapshot.from_samples(parsed.samples, sample_rate)
    logger.info(
        "audio.analyze.received",
        extra={"samples": len(snapshot), "sample_rate": sample_rate, "seconds": round(snapshot.duration_seconds, 2)},
    )
    return await _detect(snapshot)


@app.post("/audio/identify")
async def identify_upload(request: Request) -> JSONResponse:
    content_type = request.headers.get("content-type", "audio/wav")
    try:
        payload = await audio_ingestor.from_upload(file_reader=request.body, content_type=content_type)
    except ValueError as exc:
        message = str(exc).lower()
        if "limit" in message:
            raise HTTPException(status_code=413, detail="audio payload too large") from exc
        raise HTTPException(status_code=400, detail="audio required") from exc

    try:
        snapshot = await audio_preprocessor.normalize(payload)
    except ValueError as exc:
        is_duration = "duration" in str(exc).lower()
        detail = "audio payload too large" if is_duration else "unsupported audio"
        raise HTTPException(status_code=413 if is_duration else 400, detail=detail) from exc
    return await _detect(snapshot)


@app.on_event("shutdown")
async def _on_shutdown():
    await recognition_service.close()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("song_detection.app:app", host="0.0.0.0", port=int(os.getenv("PORT", "8200")), reload=False)
