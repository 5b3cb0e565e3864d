from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import numpy as np


@dataclass(frozen=True, slots=True)
class AudioSnapshot:
    """Immutable mono capture: float32 samples in [-1, 1] plus their rate."""

    samples: np.ndarray
    sample_rate: int

    def __len__(self) -> int:
        return int(self.samples.size)

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return float(self.samples.size) / float(self.sample_rate)

    @classmethod
    def from_samples(cls, samples, sample_rate: int) -> "AudioSnapshot":
        array = np.array(samples, dtype=np.float32).reshape(-1)
        array.flags.writeable = False
        return cls(samples=array, sample_rate=int(sample_rate))


@dataclass(frozen=True, slots=True)
class WavHeader:
    """Parsed fields of a canonical 44-byte RIFF/WAVE header."""

    sample_rate: int
    channels: int
    bits_per_sample: int
    byte_rate: int
    block_align: int
    data_size: int


@dataclass(slots=True)
class AudioPayload:
    """Raw uploaded audio before decoding."""

    data: bytes
    content_type: str
    extra: Mapping[str, str] | None = None
