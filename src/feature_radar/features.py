"""Chart axes: the closed, ordered set of features plotted on the radar.

Axis order matters. Position ``i`` in ``FEATURES`` decides the angle of that
axis, so reordering the tuple rotates every projected path.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from feature_radar.models import FeatureVector

# Reference constants shared by every chart in a session.
DURATION_REFERENCE_MS = 300_000
LOUDNESS_FLOOR_DB = -60.0
TEMPO_MIN_BPM = 40.0
TEMPO_SPAN_BPM = 160.0


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def normalize_duration(duration_ms: float) -> float:
    # Not clamped: long tracks legitimately reach past the outer ring.
    return duration_ms / DURATION_REFERENCE_MS


def normalize_loudness(loudness_db: float) -> float:
    return (loudness_db - LOUDNESS_FLOOR_DB) / -LOUDNESS_FLOOR_DB


def normalize_tempo(bpm: float) -> float:
    return clamp01((bpm - TEMPO_MIN_BPM) / TEMPO_SPAN_BPM)


def _percent(value: float) -> str:
    return f"{value * 100:.0f}%"


@dataclass(frozen=True, slots=True)
class FeatureDescriptor:
    name: str
    label: str
    raw: Callable[[FeatureVector], float]
    scale: Callable[[float], float]
    formatter: Callable[[float], str]

    def normalize(self, vector: FeatureVector) -> float:
        return self.scale(self.raw(vector))

    def format(self, vector: FeatureVector) -> str:
        return self.formatter(self.raw(vector))


def _unit(name: str) -> FeatureDescriptor:
    return FeatureDescriptor(
        name=name,
        label=name.capitalize(),
        raw=lambda v: getattr(v, name),
        scale=lambda x: x,
        formatter=_percent,
    )


TEMPO = FeatureDescriptor(
    name="tempo",
    label="BPM",
    raw=lambda v: v.tempo,
    scale=normalize_tempo,
    formatter=lambda x: f"{round(x)} BPM",
)
DANCEABILITY = _unit("danceability")
ENERGY = _unit("energy")
ACOUSTICNESS = _unit("acousticness")
INSTRUMENTALNESS = _unit("instrumentalness")
LIVENESS = _unit("liveness")
LOUDNESS = FeatureDescriptor(
    name="loudness",
    label="Loudness",
    raw=lambda v: v.loudness,
    scale=normalize_loudness,
    formatter=lambda x: f"{x:.1f} dB",
)
VALENCE = _unit("valence")
DURATION = FeatureDescriptor(
    name="duration",
    label="Duration",
    raw=lambda v: v.duration_ms,
    scale=normalize_duration,
    formatter=lambda x: f"{round(x / 1000)}s",
)

FEATURES: tuple[FeatureDescriptor, ...] = (
    TEMPO,
    DANCEABILITY,
    ENERGY,
    ACOUSTICNESS,
    INSTRUMENTALNESS,
    LOUDNESS,
    VALENCE,
    DURATION,
)


def normalize(vector: FeatureVector, feature: FeatureDescriptor) -> float:
    """Map one feature of ``vector`` onto the chart's [0, 1] radial scale.

    Total over the reals: out-of-range inputs give out-of-range outputs for
    every feature except tempo, which is clamped.
    """
    return feature.normalize(vector)


def format_value(vector: FeatureVector, feature: FeatureDescriptor) -> str:
    return feature.format(vector)
