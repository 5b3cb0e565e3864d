"""
pytest configuration
Shared fixtures for song-detection tests
"""

import os
import sys
from typing import Any, Dict

import numpy as np
import pytest

# make src/ importable without an editable install
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(__file__)), "src"))

from song_detection.settings import ProviderSettings  # noqa: E402


def make_provider_settings(**overrides: Any) -> ProviderSettings:
    values: Dict[str, Any] = {
        "provider": "acrcloud",
        "host": "identify-eu-west-1.acrcloud.com",
        "access_key": "test-key",
        "access_secret": "test-secret",
        "endpoint_path": "/v1/identify",
        "timeout": 1.0,
        "optimal_segment_bytes": 1_764_000,
        "max_segment_bytes": 5_242_880,
        "max_segments": 3,
        "default_confidence": 90.0,
    }
    values.update(overrides)
    return ProviderSettings(**values)


@pytest.fixture
def provider_settings() -> ProviderSettings:
    """Fully configured provider settings"""
    return make_provider_settings()


@pytest.fixture
def settings_factory():
    """Build provider settings with selected fields overridden"""
    return make_provider_settings


@pytest.fixture
def sine_samples() -> np.ndarray:
    """One second of a 440 Hz tone at 44.1 kHz"""
    t = np.arange(44100, dtype=np.float32) / 44100.0
    return (0.5 * np.sin(2 * np.pi * 440.0 * t)).astype(np.float32)


@pytest.fixture
def music_payload() -> Dict[str, Any]:
    """Successful provider response"""
    return {
        "status": {"code": 0, "msg": "Success", "version": "1.0"},
        "metadata": {
            "music": [
                {
                    "title": "Wish You Were Here",
                    "artists": [{"name": "Pink Floyd"}],
                    "album": {"name": "Wish You Were Here", "coverart": "https://img.example/cover.jpg"},
                    "duration_ms": 334000,
                    "score": 97,
                    "external_metadata": {"spotify": {"track": {"id": "6mFkJmJqdDVQ1REhVfGgd1"}}},
                }
            ]
        },
    }


def pytest_configure(config):
    """pytest configuration"""
    config.addinivalue_line(
        "markers", "unit: unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: integration tests"
    )
