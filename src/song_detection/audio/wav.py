from __future__ import annotations

"""Canonical mono 16-bit PCM WAV container codec."""

import struct
from typing import Optional

import numpy as np

from .types import AudioSnapshot, WavHeader

HEADER_SIZE = 44
CHANNELS = 1
BITS_PER_SAMPLE = 16
BLOCK_ALIGN = CHANNELS * BITS_PER_SAMPLE // 8

# RIFF size, "WAVE", "fmt ", fmt size, format tag, channels, rate, byte rate,
# block align, bits per sample, "data", data size
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def float_to_pcm16(samples) -> np.ndarray:
    """Clamp to [-1, 1] and scale asymmetrically so +1.0 maps to 32767."""
    values = np.asarray(samples, dtype=np.float64).reshape(-1)
    values = np.clip(np.nan_to_num(values, nan=0.0), -1.0, 1.0)
    scaled = np.where(values < 0, values * 32768.0, values * 32767.0)
    return np.rint(scaled).astype("<i2")


def pcm16_to_float(pcm: np.ndarray) -> np.ndarray:
    values = pcm.astype(np.float32)
    return np.where(values < 0, values / 32768.0, values / 32767.0).astype(np.float32)


def encode_wav(samples, sample_rate: Optional[int] = None) -> bytes:
    """Build a RIFF/WAVE container (44-byte header + little-endian int16 data).

    ``samples`` is either an :class:`AudioSnapshot` or any float sequence, in
    which case ``sample_rate`` is required.
    """
    if isinstance(samples, AudioSnapshot):
        rate = sample_rate or samples.sample_rate
        data = samples.samples
    else:
        if sample_rate is None:
            raise ValueError("sample_rate is required when encoding raw samples")
        rate = sample_rate
        data = samples
    if rate <= 0:
        raise ValueError("sample_rate must be > 0")

    pcm = float_to_pcm16(data).tobytes()
    data_size = len(pcm)
    header = _HEADER.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        1,
        CHANNELS,
        int(rate),
        int(rate) * BLOCK_ALIGN,
        BLOCK_ALIGN,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )
    return header + pcm


def read_header(container: bytes) -> WavHeader:
    if len(container) < HEADER_SIZE:
        raise ValueError("container shorter than a WAV header")
    (
        riff,
        _riff_size,
        wave,
        fmt,
        fmt_size,
        format_tag,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        data_tag,
        data_size,
    ) = _HEADER.unpack_from(container, 0)
    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_tag != b"data":
        raise ValueError("not a canonical RIFF/WAVE container")
    if fmt_size != 16 or format_tag != 1:
        raise ValueError("only uncompressed PCM is supported")
    return WavHeader(
        sample_rate=sample_rate,
        channels=channels,
        bits_per_sample=bits_per_sample,
        byte_rate=byte_rate,
        block_align=block_align,
        data_size=data_size,
    )


def decode_wav(container: bytes) -> AudioSnapshot:
    header = read_header(container)
    if header.channels != CHANNELS or header.bits_per_sample != BITS_PER_SAMPLE:
        raise ValueError("only mono 16-bit PCM is supported")
    if HEADER_SIZE + header.data_size > len(container):
        raise ValueError("container data chunk is truncated")
    pcm = np.frombuffer(container, dtype="<i2", count=header.data_size // 2, offset=HEADER_SIZE)
    samples = pcm16_to_float(pcm)
    samples.flags.writeable = False
    return AudioSnapshot(samples=samples, sample_rate=header.sample_rate)


__all__ = [
    "HEADER_SIZE",
    "encode_wav",
    "decode_wav",
    "read_header",
    "float_to_pcm16",
    "pcm16_to_float",
]
