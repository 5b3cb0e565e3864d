"""Fingerprint provider implementations."""

from .acrcloud import AcrCloudProvider
from .base import FingerprintProvider
from .mock import MockFingerprintProvider

__all__ = [
    "FingerprintProvider",
    "AcrCloudProvider",
    "MockFingerprintProvider",
]
