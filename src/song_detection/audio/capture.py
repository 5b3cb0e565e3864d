from __future__ import annotations

"""Microphone capture feeding a RingAccumulator."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .accumulator import RingAccumulator
from .types import AudioSnapshot

try:  # pragma: no cover - optional dependency (needs PortAudio)
    import sounddevice
except Exception:  # pragma: no cover - guard for hosts without an audio stack
    sounddevice = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InputDevice:
    id: str
    name: str
    channels: int
    default_sample_rate: float


def list_input_devices() -> list[InputDevice]:
    if sounddevice is None:
        raise RuntimeError("sounddevice must be installed to capture audio")
    devices: list[InputDevice] = []
    for index, info in enumerate(sounddevice.query_devices()):
        channels = int(info.get("max_input_channels", 0))
        if channels <= 0:
            continue
        devices.append(
            InputDevice(
                id=str(index),
                name=str(info.get("name") or f"Microphone {index}"),
                channels=channels,
                default_sample_rate=float(info.get("default_samplerate", 0.0)),
            )
        )
    return devices


class MicrophoneCapture:
    """Owns a sounddevice input stream whose callback only appends frames."""

    def __init__(
        self,
        accumulator: RingAccumulator,
        *,
        device: Optional[str] = None,
        block_size: int = 4096,
    ) -> None:
        if sounddevice is None:
            raise RuntimeError("sounddevice must be installed to capture audio")
        self._accumulator = accumulator
        self._device = _device_arg(device)
        self._block_size = block_size
        self._stream: Any = None

    @property
    def is_recording(self) -> bool:
        return self._stream is not None

    @property
    def accumulator(self) -> RingAccumulator:
        return self._accumulator

    def start(self) -> None:
        if self._stream is not None:
            return
        self._accumulator.clear()
        stream = sounddevice.InputStream(
            samplerate=self._accumulator.sample_rate,
            channels=1,
            dtype="float32",
            blocksize=self._block_size,
            callback=self._on_audio,
            device=self._device,
        )
        stream.start()
        self._stream = stream
        logger.info(
            "capture.started",
            extra={"device": self._device, "sample_rate": self._accumulator.sample_rate},
        )

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception:
            logger.exception("capture.stop_failed")
        logger.info("capture.stopped", extra={"seconds": round(self._accumulator.duration_seconds, 2)})

    def snapshot(self) -> Optional[AudioSnapshot]:
        return self._accumulator.snapshot()

    def _on_audio(self, indata, frames, time_info, status) -> None:  # noqa: ANN001
        if status:
            logger.debug("capture.status", extra={"status": str(status)})
        self._accumulator.push(indata[:, 0])


def _device_arg(device: Optional[str]):
    if device is None or device == "default":
        return None
    return int(device) if device.isdigit() else device


__all__ = ["MicrophoneCapture", "InputDevice", "list_input_devices"]
