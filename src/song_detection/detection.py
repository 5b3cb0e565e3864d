from __future__ import annotations

"""Caller-side policy: label real matches and substitute the placeholder."""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .recognition.types import Recognition


class Provenance(str, enum.Enum):
    PROVIDER_MATCHED = "provider-matched"
    FALLBACK = "fallback"


FALLBACK_RECOGNITION = Recognition(
    title="Wonderwall",
    artist="Oasis",
    album="(What's the Story) Morning Glory?",
    duration_text="4:18",
    album_art_url="https://images.unsplash.com/photo-1493225457124-a3eb161ffa5f?w=400&h=400&fit=crop&crop=center",
    confidence=80.0,
    external_link="https://tabs.ultimate-guitar.com/tab/oasis/wonderwall-chords-64382",
)


@dataclass(frozen=True, slots=True)
class Detection:
    recognition: Recognition
    provenance: Provenance
    reason: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.provenance is Provenance.FALLBACK

    def song_dict(self) -> Dict[str, Any]:
        song = self.recognition.to_dict()
        song["source"] = self.provenance.value
        return song


def resolve_detection(recognition: Optional[Recognition], *, reason: Optional[str] = None) -> Detection:
    if recognition is not None:
        return Detection(recognition=recognition, provenance=Provenance.PROVIDER_MATCHED)
    return Detection(recognition=FALLBACK_RECOGNITION, provenance=Provenance.FALLBACK, reason=reason or "no_match")


__all__ = ["Provenance", "Detection", "FALLBACK_RECOGNITION", "resolve_detection"]
