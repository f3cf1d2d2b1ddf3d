from __future__ import annotations

import logging
from typing import Sequence

from feature_radar.models import Collection, FeatureVector

logger = logging.getLogger(__name__)


def _float(record: dict, key: str, default: float = 0.0) -> float:
    value = record.get(key)
    return default if value is None else float(value)


def build_feature_vector(track: dict, audio_features: dict | None) -> FeatureVector | None:
    """Merge a catalogue track with its audio-feature record.

    Returns ``None`` when the feature record is missing; such a track has
    nothing to plot.
    """
    if not audio_features:
        return None

    duration_ms = track.get("duration_ms") or audio_features.get("duration_ms") or 0

    return FeatureVector(
        track_id=track["id"],
        name=track.get("name", ""),
        danceability=_float(audio_features, "danceability"),
        energy=_float(audio_features, "energy"),
        valence=_float(audio_features, "valence"),
        acousticness=_float(audio_features, "acousticness"),
        instrumentalness=_float(audio_features, "instrumentalness"),
        liveness=_float(audio_features, "liveness"),
        loudness=_float(audio_features, "loudness", -60.0),
        tempo=_float(audio_features, "tempo"),
        duration_ms=int(duration_ms),
        key=int(_float(audio_features, "key", -1)),
    )


def build_collection(
    label: str,
    tracks: Sequence[dict],
    audio_features: Sequence[dict | None],
) -> Collection:
    """Pair tracks with feature records by position and build a collection."""
    if len(tracks) != len(audio_features):
        raise ValueError(
            f"Got {len(audio_features)} feature records for {len(tracks)} tracks"
        )

    vectors: list[FeatureVector] = []
    skipped = 0
    for track, features in zip(tracks, audio_features):
        vector = build_feature_vector(track, features)
        if vector is None:
            skipped += 1
            continue
        vectors.append(vector)

    if skipped:
        logger.warning("%s: %d of %d tracks have no audio features", label, skipped, len(tracks))
    return Collection.from_tracks(label, vectors)
