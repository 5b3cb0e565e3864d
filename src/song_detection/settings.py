from __future__ import annotations

"""Runtime configuration helpers for song-detection."""

import os
from dataclasses import dataclass

from .errors import ConfigurationError

_BOOL_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _BOOL_TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _env_str(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class ProviderSettings:
    provider: str
    host: str | None
    access_key: str | None
    access_secret: str | None
    endpoint_path: str
    timeout: float
    optimal_segment_bytes: int
    max_segment_bytes: int
    max_segments: int
    default_confidence: float

    def missing_credentials(self) -> list[str]:
        missing = []
        if not self.host:
            missing.append("ACR_HOST")
        if not self.access_key:
            missing.append("ACR_ACCESS_KEY")
        if not self.access_secret:
            missing.append("ACR_ACCESS_SECRET")
        return missing

    def is_configured(self) -> bool:
        return not self.missing_credentials()

    def require_credentials(self) -> None:
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(f"missing fingerprint provider credentials: {', '.join(missing)}")


@dataclass(frozen=True)
class CaptureSettings:
    sample_rate: int
    max_duration_seconds: float
    block_size: int
    device: str | None


@dataclass(frozen=True)
class AnalyzeSettings:
    min_duration_seconds: float
    max_payload_bytes: int
    max_duration_seconds: float
    default_sample_rate: int
    fallback_enabled: bool


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    format: str


@dataclass(frozen=True)
class Settings:
    provider: ProviderSettings
    capture: CaptureSettings
    analyze: AnalyzeSettings
    logging: LoggingSettings


def load_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""

    provider_settings = ProviderSettings(
        provider=os.getenv("FINGERPRINT_PROVIDER", "acrcloud"),
        host=_env_str("ACR_HOST"),
        access_key=_env_str("ACR_ACCESS_KEY"),
        access_secret=_env_str("ACR_ACCESS_SECRET"),
        endpoint_path=os.getenv("ACR_ENDPOINT_PATH", "/v1/identify"),
        timeout=_env_float("ACR_REQUEST_TIMEOUT", 15.0),
        optimal_segment_bytes=_env_int("ACR_OPTIMAL_SEGMENT_BYTES", 1_764_000),
        max_segment_bytes=_env_int("ACR_MAX_SEGMENT_BYTES", 5 * 1024 * 1024),
        max_segments=_env_int("ACR_MAX_SEGMENTS", 3),
        default_confidence=_env_float("ACR_DEFAULT_CONFIDENCE", 90.0),
    )

    capture_settings = CaptureSettings(
        sample_rate=_env_int("CAPTURE_SAMPLE_RATE", 44100),
        max_duration_seconds=_env_float("CAPTURE_MAX_DURATION_SECONDS", 15.0),
        block_size=_env_int("CAPTURE_BLOCK_SIZE", 4096),
        device=_env_str("CAPTURE_DEVICE"),
    )

    analyze_settings = AnalyzeSettings(
        min_duration_seconds=_env_float("ANALYZE_MIN_DURATION_SECONDS", 5.0),
        max_payload_bytes=_env_int("ANALYZE_MAX_PAYLOAD_BYTES", 20 * 1024 * 1024),
        max_duration_seconds=_env_float("ANALYZE_MAX_DURATION_SECONDS", 300.0),
        default_sample_rate=_env_int("ANALYZE_DEFAULT_SAMPLE_RATE", 44100),
        fallback_enabled=_env_bool("ANALYZE_FALLBACK_ENABLED", True),
    )

    logging_settings = LoggingSettings(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
    )

    return Settings(
        provider=provider_settings,
        capture=capture_settings,
        analyze=analyze_settings,
        logging=logging_settings,
    )


settings = load_settings()

__all__ = [
    "Settings",
    "ProviderSettings",
    "CaptureSettings",
    "AnalyzeSettings",
    "LoggingSettings",
    "settings",
    "load_settings",
]
