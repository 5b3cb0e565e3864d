"""
Record ambient audio from a microphone and ask for the playing song.

Usage (defaults target a local dev server):
  song-detect-listen --server http://localhost:8200 --seconds 12

  # identify in-process with ACR_* credentials from the environment
  song-detect-listen --local --seconds 12

  # list capture devices
  song-detect-listen --list-devices
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

import httpx

from .audio.accumulator import RingAccumulator
from .audio.capture import MicrophoneCapture, list_input_devices
from .audio.types import AudioSnapshot
from .detection import resolve_detection
from .errors import ConfigurationError
from .logging_setup import setup_logging
from .recognition import RecognitionService
from .settings import load_settings

logger = logging.getLogger(__name__)


async def record(capture: MicrophoneCapture, seconds: float) -> Optional[AudioSnapshot]:
    capture.start()
    try:
        await asyncio.sleep(seconds)
    finally:
        capture.stop()
    return capture.snapshot()


async def post_snapshot(server: str, snapshot: AudioSnapshot, *, timeout: float = 60.0) -> Dict[str, Any]:
    payload = {"samples": snapshot.samples.tolist(), "sampleRate": snapshot.sample_rate}
    async with httpx.AsyncClient(timeout=timeout, trust_env=False) as client:
        resp = await client.post(f"{server.rstrip('/')}/audio/analyze", json=payload)
        resp.raise_for_status()
        return resp.json()


async def identify_locally(snapshot: AudioSnapshot) -> Dict[str, Any]:
    cfg = load_settings()
    service = RecognitionService.from_settings(cfg.provider)
    try:
        recognition = await service.identify(snapshot)
    finally:
        await service.close()
    detection = resolve_detection(recognition)
    return {"song": detection.song_dict(), "provenance": detection.provenance.value}


async def main(argv: Optional[list[str]] = None) -> int:
    cfg = load_settings()
    parser = argparse.ArgumentParser(description="Identify the song playing nearby")
    parser.add_argument("--server", default="http://localhost:8200")
    parser.add_argument("--seconds", type=float, default=cfg.capture.max_duration_seconds)
    parser.add_argument("--device", default=cfg.capture.device)
    parser.add_argument("--local", action="store_true", help="call the provider directly instead of the server")
    parser.add_argument("--list-devices", action="store_true")
    args = parser.parse_args(argv)

    setup_logging(cfg.logging)

    if args.list_devices:
        try:
            devices = list_input_devices()
        except RuntimeError as exc:
            print(f"audio capture unavailable: {exc}", file=sys.stderr)
            return 1
        for device in devices:
            print(f"{device.id}\t{device.name}\t{device.channels}ch\t{device.default_sample_rate:.0f}Hz")
        return 0

    accumulator = RingAccumulator(
        sample_rate=cfg.capture.sample_rate,
        max_duration_seconds=cfg.capture.max_duration_seconds,
    )
    try:
        capture = MicrophoneCapture(accumulator, device=args.device, block_size=cfg.capture.block_size)
        snapshot = await record(capture, args.seconds)
    except RuntimeError as exc:
        print(f"audio capture unavailable: {exc}", file=sys.stderr)
        return 1
    if snapshot is None:
        print("no audio captured", file=sys.stderr)
        return 1

    try:
        if args.local:
            result = await identify_locally(snapshot)
        else:
            result = await post_snapshot(args.server, snapshot)
    except ConfigurationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2
    except httpx.HTTPError as exc:
        print(f"request failed: {exc!r}", file=sys.stderr)
        return 1

    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
