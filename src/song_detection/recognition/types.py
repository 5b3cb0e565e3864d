from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True, slots=True)
class Segment:
    """Half-open byte range ``[start, end)`` of a container, 1-based ordinal."""

    ordinal: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start

    def slice(self, container: bytes) -> bytes:
        return container[self.start : self.end]


@dataclass(frozen=True, slots=True)
class Recognition:
    title: str
    artist: str
    album: Optional[str] = None
    duration_text: Optional[str] = None
    album_art_url: Optional[str] = None
    confidence: float = 0.0
    external_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration": self.duration_text,
            "albumArt": self.album_art_url,
            "confidence": self.confidence,
            "externalLink": self.external_link,
        }


class AttemptStatus(str, enum.Enum):
    MATCHED = "matched"
    NO_MATCH = "no_match"
    PROVIDER_ERROR = "provider_error"
    TRANSPORT_ERROR = "transport_error"


@dataclass(slots=True)
class AttemptOutcome:
    segment: Segment
    status: AttemptStatus
    music: Optional[Mapping[str, Any]] = None
    code: Optional[int] = None
    message: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def matched(self) -> bool:
        return self.status is AttemptStatus.MATCHED


class IdentifyState(str, enum.Enum):
    IDLE = "idle"
    TRYING_SEGMENT = "trying_segment"
    MATCHED = "matched"
    FAILED = "failed"


@dataclass(slots=True)
class IdentificationReport:
    state: IdentifyState = IdentifyState.IDLE
    attempts: List[AttemptOutcome] = field(default_factory=list)
    recognition: Optional[Recognition] = None
    container_bytes: int = 0

    @property
    def segments_tried(self) -> int:
        return len(self.attempts)


@dataclass(slots=True)
class ProviderReply:
    """A provider response that was not an error: a usable match or no match."""

    music: Optional[Mapping[str, Any]] = None
    code: Optional[int] = None
    message: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.music is not None
