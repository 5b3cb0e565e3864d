import dataclasses

import pytest
from fastapi.testclient import TestClient

from song_detection import app as detection_app
from song_detection.audio.wav import encode_wav
from song_detection.errors import ConfigurationError
from song_detection.recognition.providers.base import FingerprintProvider
from song_detection.recognition.service import RecognitionService
from song_detection.recognition.types import ProviderReply


class StaticProvider(FingerprintProvider):
    name = "static"

    def __init__(self, reply):
        self.reply = reply
        self.calls = 0

    async def identify(self, *, sample, segment):
        self.calls += 1
        return self.reply


@pytest.fixture
def client():
    return TestClient(detection_app.app)


@pytest.fixture
def analyze_cfg(monkeypatch):
    cfg = dataclasses.replace(
        detection_app.analyze_cfg,
        min_duration_seconds=1.0,
        max_payload_bytes=1024 * 1024,
        fallback_enabled=True,
    )
    monkeypatch.setattr(detection_app, "analyze_cfg", cfg)
    return cfg


def _use_provider(monkeypatch, provider_settings, reply):
    provider = StaticProvider(reply)
    service = RecognitionService(provider=provider, settings=provider_settings)
    monkeypatch.setattr(detection_app, "recognition_service", service)
    return provider


def _samples(seconds, rate=8000):
    return [0.1] * int(seconds * rate)


def test_health_reports_provider(monkeypatch, client, provider_settings):
    _use_provider(monkeypatch, provider_settings, ProviderReply(code=1001))

    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["provider"] == "static"
    assert body["provider_configured"] is True


def test_analyze_returns_provider_match(monkeypatch, client, analyze_cfg, provider_settings, music_payload):
    music = music_payload["metadata"]["music"][0]
    provider = _use_provider(monkeypatch, provider_settings, ProviderReply(music=music, code=0))

    resp = client.post("/audio/analyze", json={"samples": _samples(1.5), "sampleRate": 8000})

    assert resp.status_code == 200
    body = resp.json()
    assert body["provenance"] == "provider-matched"
    assert body["song"]["title"] == "Wish You Were Here"
    assert body["song"]["source"] == "provider-matched"
    assert body["confidence"] == 97.0
    assert body["sampleRate"] == 8000
    assert body["durationSeconds"] == 1.5
    assert body["stats"]["container_bytes"] == 44 + 2 * 12000
    assert [a["status"] for a in body["stats"]["attempts"]] == ["matched"]
    assert provider.calls == 1


def test_analyze_labels_fallback_on_no_match(monkeypatch, client, analyze_cfg, provider_settings):
    _use_provider(monkeypatch, provider_settings, ProviderReply(code=1001))

    resp = client.post("/audio/analyze", json={"samples": _samples(1.0), "sampleRate": 8000})

    assert resp.status_code == 200
    body = resp.json()
    assert body["provenance"] == "fallback"
    assert body["reason"] == "no_match"
    assert body["song"]["title"] == "Wonderwall"
    assert body["song"]["source"] == "fallback"


def test_analyze_short_capture_skips_provider(monkeypatch, client, analyze_cfg, provider_settings):
    provider = _use_provider(monkeypatch, provider_settings, ProviderReply(code=1001))

    resp = client.post("/audio/analyze", json={"samples": _samples(0.5), "sampleRate": 8000})

    assert resp.status_code == 200
    assert resp.json()["reason"] == "too_short"
    assert provider.calls == 0


def test_analyze_returns_404_when_fallback_disabled(monkeypatch, client, analyze_cfg, provider_settings):
    _use_provider(monkeypatch, provider_settings, ProviderReply(code=1001))
    monkeypatch.setattr(detection_app, "analyze_cfg", dataclasses.replace(analyze_cfg, fallback_enabled=False))

    resp = client.post("/audio/analyze", json={"samples": _samples(1.0), "sampleRate": 8000})

    assert resp.status_code == 404
    assert resp.json()["detail"] == "no match"


def test_analyze_returns_503_when_provider_unconfigured(monkeypatch, client, analyze_cfg, settings_factory):
    service = RecognitionService.from_settings(settings_factory(access_key=None))
    monkeypatch.setattr(detection_app, "recognition_service", service)

    resp = client.post("/audio/analyze", json={"samples": _samples(1.0), "sampleRate": 8000})

    assert resp.status_code == 503
    assert resp.json()["detail"] == "recognition provider not configured"


def test_analyze_maps_configuration_error_from_service(monkeypatch, client, analyze_cfg):
    class Broken:
        async def run(self, container):
            raise ConfigurationError("missing")

    monkeypatch.setattr(detection_app, "recognition_service", Broken())

    resp = client.post("/audio/analyze", json={"samples": _samples(1.0), "sampleRate": 8000})

    assert resp.status_code == 503


def test_analyze_rejects_invalid_json(client, analyze_cfg):
    resp = client.post("/audio/analyze", content=b"{not json", headers={"content-type": "application/json"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "invalid json"


@pytest.mark.parametrize(
    "body",
    [
        {"samples": [], "sampleRate": 8000},
        {"samples": "abc", "sampleRate": 8000},
        {"samples": [0.1], "sampleRate": 100},
        {"sampleRate": 8000},
    ],
)
def test_analyze_rejects_invalid_samples(client, analyze_cfg, body):
    resp = client.post("/audio/analyze", json=body)

    assert resp.status_code == 400
    assert resp.json()["detail"] == "invalid audio samples"


def test_analyze_rejects_oversized_payload(monkeypatch, client, analyze_cfg):
    monkeypatch.setattr(detection_app, "analyze_cfg", dataclasses.replace(analyze_cfg, max_payload_bytes=64))

    resp = client.post("/audio/analyze", json={"samples": _samples(1.0), "sampleRate": 8000})

    assert resp.status_code == 413
    assert resp.json()["detail"] == "audio payload too large"


def test_identify_accepts_wav_upload(monkeypatch, client, analyze_cfg, provider_settings, music_payload):
    music = music_payload["metadata"]["music"][0]
    _use_provider(monkeypatch, provider_settings, ProviderReply(music=music, code=0))

    resp = client.post(
        "/audio/identify",
        content=encode_wav(_samples(1.0, rate=16000), 16000),
        headers={"content-type": "audio/wav"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["provenance"] == "provider-matched"
    assert body["sampleRate"] == 16000


def test_identify_rejects_empty_body(client, analyze_cfg):
    resp = client.post("/audio/identify", content=b"", headers={"content-type": "audio/wav"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "audio required"


def test_identify_rejects_unsupported_audio(client, analyze_cfg):
    resp = client.post("/audio/identify", content=b"definitely not audio", headers={"content-type": "audio/wav"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "unsupported audio"


def test_analyze_returns_503_for_inconsistent_segment_sizes(monkeypatch, client, analyze_cfg, settings_factory):
    cfg = settings_factory(provider="mock", optimal_segment_bytes=6_000_000, max_segment_bytes=5_242_880)
    monkeypatch.setattr(detection_app, "recognition_service", RecognitionService.from_settings(cfg))

    resp = client.post("/audio/analyze", json={"samples": _samples(1.0), "sampleRate": 8000})

    assert resp.status_code == 503
    assert resp.json()["detail"] == "recognition provider not configured"
