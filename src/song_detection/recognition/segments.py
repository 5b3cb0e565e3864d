from __future__ import annotations

"""Chooses which byte ranges of a capture to submit for fingerprinting.

Captures up to ``optimal`` bytes go up whole. Longer ones are split into at
most three provider-sized windows covering the start, a centred middle and
the end, since the song may sit anywhere in the capture window.
"""

import math

from .types import Segment

OPTIMAL_SEGMENT_BYTES = 1_764_000
MAX_SEGMENT_BYTES = 5_242_880
MAX_SEGMENTS = 3


def plan_segments(
    length: int,
    *,
    optimal: int = OPTIMAL_SEGMENT_BYTES,
    maximum: int = MAX_SEGMENT_BYTES,
    max_segments: int = MAX_SEGMENTS,
) -> list[Segment]:
    if length <= 0:
        return []
    if optimal <= 0 or maximum < optimal:
        raise ValueError("segment sizes must satisfy 0 < optimal <= maximum")
    if length <= optimal:
        return [Segment(1, 0, length)]

    count = min(max(1, min(max_segments, MAX_SEGMENTS)), math.ceil(length / optimal))
    if count == 1:
        return [Segment(1, 0, min(length, maximum))]
    if count == 2:
        return [
            Segment(1, 0, min(optimal, length)),
            Segment(2, max(length - optimal, optimal), length),
        ]
    mid = (length - optimal) // 2
    return [
        Segment(1, 0, optimal),
        Segment(2, mid, mid + optimal),
        Segment(3, length - optimal, length),
    ]


__all__ = ["plan_segments", "OPTIMAL_SEGMENT_BYTES", "MAX_SEGMENT_BYTES", "MAX_SEGMENTS"]
