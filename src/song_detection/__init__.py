"""Ambient song detection: capture, WAV encoding and fingerprint lookup."""

__version__ = "0.1.0"
