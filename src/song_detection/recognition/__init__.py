"""Fingerprint-based song recognition."""

from .service import RecognitionService
from .types import (
    AttemptOutcome,
    AttemptStatus,
    IdentificationReport,
    IdentifyState,
    ProviderReply,
    Recognition,
    Segment,
)

__all__ = [
    "RecognitionService",
    "AttemptOutcome",
    "AttemptStatus",
    "IdentificationReport",
    "IdentifyState",
    "ProviderReply",
    "Recognition",
    "Segment",
]
