from __future__ import annotations

"""Maps provider music metadata onto Recognition values."""

import logging
from typing import Any, Mapping, Optional

from .types import Recognition

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 90.0


def _get(obj: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None on any missing or mistyped hop."""
    current = obj
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
            current = current[key]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(key)
        if current is None:
            return None
    return current


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def first_music(payload: Any) -> Optional[Mapping[str, Any]]:
    music = _get(payload, "metadata", "music", 0)
    return music if isinstance(music, Mapping) else None


def artist_name(music: Mapping[str, Any]) -> Optional[str]:
    return _text(_get(music, "artists", 0, "name")) or _text(_get(music, "artist", "name"))


def is_usable(music: Optional[Mapping[str, Any]]) -> bool:
    if not isinstance(music, Mapping):
        return False
    return bool(_text(music.get("title")) and artist_name(music))


def format_duration(duration_ms: Any) -> Optional[str]:
    """Render milliseconds as ``m:ss``."""
    if isinstance(duration_ms, bool):
        return None
    try:
        total_seconds = int(float(duration_ms)) // 1000
    except (TypeError, ValueError, OverflowError):
        return None
    if total_seconds < 0:
        return None
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def resolve_album_art(music: Mapping[str, Any]) -> Optional[str]:
    return (
        _text(_get(music, "album", "coverart"))
        or _text(_get(music, "album", "covers", 0, "url"))
        or _text(_get(music, "external_metadata", "spotify", "album", "images", 0, "url"))
    )


def resolve_external_link(music: Mapping[str, Any]) -> Optional[str]:
    spotify_id = _text(_get(music, "external_metadata", "spotify", "track", "id"))
    if spotify_id:
        return f"https://open.spotify.com/track/{spotify_id}"
    youtube_id = _text(_get(music, "external_metadata", "youtube", "vid"))
    if youtube_id:
        return f"https://www.youtube.com/watch?v={youtube_id}"
    deezer_id = _text(_get(music, "external_metadata", "deezer", "track", "id"))
    if deezer_id:
        return f"https://www.deezer.com/track/{deezer_id}"
    return None


def resolve_confidence(score: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    fallback = max(0.0, min(100.0, float(default)))
    if isinstance(score, bool):
        return fallback
    try:
        value = float(score)
    except (TypeError, ValueError):
        return fallback
    if value != value:  # NaN
        return fallback
    return max(0.0, min(100.0, value))


def map_music(music: Mapping[str, Any], *, default_confidence: float = DEFAULT_CONFIDENCE) -> Recognition:
    """Build a Recognition from a usable ``metadata.music[0]`` entry.

    Optional fields that are missing or mistyped come back as ``None``.
    """
    title = _text(music.get("title")) or ""
    artist = artist_name(music) or ""

    recognition = Recognition(
        title=title,
        artist=artist,
        album=_text(_get(music, "album", "name")),
        duration_text=format_duration(music.get("duration_ms")),
        album_art_url=resolve_album_art(music),
        confidence=resolve_confidence(music.get("score"), default_confidence),
        external_link=resolve_external_link(music),
    )

    absent = [name for name in ("album", "duration_text", "album_art_url") if getattr(recognition, name) is None]
    if absent:
        logger.debug("recognition.mapping.partial", extra={"absent": absent, "title": title})
    return recognition


__all__ = [
    "DEFAULT_CONFIDENCE",
    "first_music",
    "artist_name",
    "is_usable",
    "format_duration",
    "resolve_album_art",
    "resolve_external_link",
    "resolve_confidence",
    "map_music",
]
