"""Audio capture, decoding and container encoding."""

from .accumulator import RingAccumulator
from .ingest import AudioIngestor, IngestLimits
from .preprocessor import AudioPreprocessor
from .types import AudioPayload, AudioSnapshot, WavHeader
from .wav import decode_wav, encode_wav, read_header

__all__ = [
    "RingAccumulator",
    "AudioIngestor",
    "IngestLimits",
    "AudioPreprocessor",
    "AudioPayload",
    "AudioSnapshot",
    "WavHeader",
    "encode_wav",
    "decode_wav",
    "read_header",
]
