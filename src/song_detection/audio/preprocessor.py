from __future__ import annotations

import io
from typing import Optional

import numpy as np
import soundfile as sf

from .types import AudioPayload, AudioSnapshot
from .wav import decode_wav


class AudioPreprocessor:
    """Decodes uploaded audio into a mono AudioSnapshot."""

    def __init__(self, *, max_duration_seconds: Optional[float] = None) -> None:
        self._max_duration_seconds = max_duration_seconds

    async def normalize(self, payload: AudioPayload) -> AudioSnapshot:
        pcm, sample_rate = self._extract_pcm(payload)
        if pcm.ndim == 2:
            pcm = self._mix_down(pcm)
        snapshot = AudioSnapshot.from_samples(pcm, sample_rate)

        if self._max_duration_seconds and snapshot.duration_seconds > self._max_duration_seconds:
            raise ValueError("audio duration exceeds configured limit")
        return snapshot

    def _extract_pcm(self, payload: AudioPayload) -> tuple[np.ndarray, int]:
        data = payload.data
        try:
            audio_array, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        except Exception as exc:
            try:
                snapshot = decode_wav(data)
            except ValueError:
                raise ValueError("unsupported audio encoding") from exc
            return np.asarray(snapshot.samples), snapshot.sample_rate
        return audio_array, int(sample_rate)

    def _mix_down(self, pcm: np.ndarray) -> np.ndarray:
        if pcm.shape[1] <= 1:
            return pcm[:, 0]
        return np.mean(pcm, axis=1, dtype=np.float32)
