from __future__ import annotations

"""Rolling capture buffer fed by a real-time audio callback."""

import logging
import threading
from typing import Callable, Optional

import numpy as np

from .types import AudioSnapshot

logger = logging.getLogger(__name__)

FrameListener = Callable[[np.ndarray], None]


class RingAccumulator:
    """Keeps the most recent ``max_duration_seconds`` of mono audio.

    ``push`` is called from the capture thread once per frame; ``snapshot``
    may be called from anywhere and always returns a private copy in
    chronological order (oldest -> newest).
    """

    def __init__(self, *, sample_rate: int = 44100, max_duration_seconds: float = 15.0) -> None:
        if max_duration_seconds <= 0:
            raise ValueError("max_duration_seconds must be > 0")
        self._max_duration_seconds = float(max_duration_seconds)
        self._lock = threading.Lock()
        self._listeners: list[FrameListener] = []
        self._level = 0.0
        self._configure(sample_rate)

    def _configure(self, sample_rate: int) -> None:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        capacity = int(round(sample_rate * self._max_duration_seconds))
        if capacity <= 0:
            raise ValueError("computed capacity <= 0; check sample_rate and max_duration_seconds")
        self._sample_rate = int(sample_rate)
        self._capacity = capacity
        self._buf = np.zeros(capacity, dtype=np.float32)
        self._write = 0
        self._filled = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def level(self) -> float:
        """RMS of the most recent frame as a 0-100 percentage."""
        return self._level

    @property
    def duration_seconds(self) -> float:
        return float(self._filled) / float(self._sample_rate)

    def __len__(self) -> int:
        return self._filled

    def set_sample_rate(self, sample_rate: int) -> None:
        """Switch the active rate; buffered audio at the old rate is discarded."""
        with self._lock:
            if sample_rate == self._sample_rate:
                return
            self._configure(sample_rate)
            self._level = 0.0
        logger.info("capture.buffer.rate_changed", extra={"sample_rate": sample_rate})

    def push(self, frame) -> None:
        x = _as_mono_float(frame)
        n = x.size
        if n == 0:
            return

        with self._lock:
            if n >= self._capacity:
                x = x[-self._capacity:]
                n = x.size
            end = self._write + n
            if end <= self._capacity:
                self._buf[self._write:end] = x
            else:
                first = self._capacity - self._write
                self._buf[self._write:] = x[:first]
                self._buf[: end - self._capacity] = x[first:]
            self._write = end % self._capacity
            self._filled = min(self._capacity, self._filled + n)

        self._level = _rms_percent(x)
        self._notify(x)

    def snapshot(self) -> Optional[AudioSnapshot]:
        with self._lock:
            if self._filled == 0:
                return None
            start = (self._write - self._filled) % self._capacity
            if start + self._filled <= self._capacity:
                out = self._buf[start : start + self._filled].copy()
            else:
                out = np.concatenate([self._buf[start:], self._buf[: self._write]])
            sample_rate = self._sample_rate
        out.flags.writeable = False
        return AudioSnapshot(samples=out, sample_rate=sample_rate)

    def clear(self) -> None:
        with self._lock:
            self._buf.fill(0.0)
            self._write = 0
            self._filled = 0
            self._level = 0.0

    def subscribe(self, listener: FrameListener) -> Callable[[], None]:
        """Register a per-frame listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _notify(self, frame: np.ndarray) -> None:
        for listener in list(self._listeners):
            try:
                listener(frame)
            except Exception:
                logger.exception("capture.listener.failed")


def _as_mono_float(frame) -> np.ndarray:
    if frame is None:
        return np.zeros(0, dtype=np.float32)
    array = np.asarray(frame)
    if array.dtype == np.int16:
        array = array.astype(np.float32) / 32768.0
    if array.ndim == 2:
        if array.shape[1] == 1:
            array = array.reshape(-1)
        else:
            array = array.mean(axis=1)
    if array.ndim != 1:
        raise ValueError("RingAccumulator.push expects mono 1D samples")
    return array.astype(np.float32, copy=False)


def _rms_percent(frame: np.ndarray) -> float:
    if frame.size == 0:
        return 0.0
    rms = float(np.sqrt(np.mean(np.square(frame, dtype=np.float64))))
    return max(0.0, min(100.0, rms * 100.0))


__all__ = ["RingAccumulator", "FrameListener"]
