from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalyzeRequest(BaseModel):
    samples: List[float] = Field(min_length=1)
    sample_rate: Optional[int] = Field(default=None, alias="sampleRate", ge=8000, le=96000)

    model_config = ConfigDict(populate_by_name=True)


class SongPayload(BaseModel):
    title: str
    artist: str
    album: Optional[str] = None
    duration: Optional[str] = None
    albumArt: Optional[str] = None
    confidence: float = Field(ge=0, le=100)
    externalLink: Optional[str] = None
    source: Literal["provider-matched", "fallback"]


class AttemptStats(BaseModel):
    segment: int
    status: str
    code: Optional[int] = None
    elapsed_ms: float = 0.0


class DetectionStats(BaseModel):
    latency_ms: float = 0.0
    container_bytes: int = 0
    attempts: List[AttemptStats] = Field(default_factory=list)


class DetectionResponse(BaseModel):
    song: SongPayload
    provenance: Literal["provider-matched", "fallback"]
    reason: Optional[str] = None
    confidence: float = Field(ge=0, le=100)
    sampleRate: int
    durationSeconds: float
    stats: DetectionStats = Field(default_factory=DetectionStats)
