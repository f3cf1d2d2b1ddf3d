from __future__ import annotations

import math
from typing import Sequence

from feature_radar.features import FEATURES, TEMPO, FeatureDescriptor
from feature_radar.models import FeatureVector, OpacityScale, ProjectedPath, TrackStyle

WARM_COLORS = ("#FF6B6B", "#FF8E72", "#FFA07A", "#FFB347", "#FFD700")
LEFT_COLORS = ("#FF6B6B", "#FF8E72", "#FFA07A")
RIGHT_COLORS = ("#4169E1", "#6495ED", "#87CEEB")
HOVER_COLOR = "rgba(255, 255, 255, 0.95)"

SINGLE_FILL_FACTOR = 0.4
COMPARISON_FILL_FACTOR = 0.3

_OPACITY_FLOOR = 0.008
_OPACITY_EXPONENT = 0.6
_HOVER_FILL = 0.08
_HOVER_STROKE = 0.5

GRID_LEVELS = (0.2, 0.4, 0.6, 0.8, 1.0)
LABEL_OFFSET = 1.15


def axis_angle(index: int, count: int) -> float:
    return index * (2 * math.pi / count)


def polar_to_cartesian(angle: float, radius: float) -> tuple[float, float]:
    # Rotated a quarter turn so axis 0 points up.
    return (
        radius * math.cos(angle - math.pi / 2),
        radius * math.sin(angle - math.pi / 2),
    )


def project_values(values: Sequence[float], radius: float) -> ProjectedPath:
    count = len(values)
    return ProjectedPath(
        points=tuple(
            polar_to_cartesian(axis_angle(i, count), value * radius)
            for i, value in enumerate(values)
        )
    )


def project(
    vector: FeatureVector,
    radius: float,
    features: Sequence[FeatureDescriptor] = FEATURES,
) -> ProjectedPath:
    return project_values([feature.normalize(vector) for feature in features], radius)


def average_profile(
    tracks: Sequence[FeatureVector],
    features: Sequence[FeatureDescriptor] = FEATURES,
) -> list[float] | None:
    """Average normalized feature values across ``tracks``.

    Tempo is averaged in raw BPM and normalized afterwards, since the tempo
    scale is clamped and averaging clamped values would hide outliers.
    Returns ``None`` for an empty collection.
    """
    if not tracks:
        return None

    count = len(tracks)
    profile: list[float] = []
    for feature in features:
        if feature.name == TEMPO.name:
            mean_bpm = sum(feature.raw(track) for track in tracks) / count
            profile.append(feature.scale(mean_bpm))
        else:
            profile.append(sum(feature.normalize(track) for track in tracks) / count)
    return profile


def average_path(
    tracks: Sequence[FeatureVector],
    radius: float,
    features: Sequence[FeatureDescriptor] = FEATURES,
) -> ProjectedPath | None:
    profile = average_profile(tracks, features)
    if profile is None:
        return None
    return project_values(profile, radius)


def opacity_scale(track_count: int, fill_factor: float = SINGLE_FILL_FACTOR) -> OpacityScale:
    """Per-track opacity that fades as more tracks are overlaid."""
    base = max(_OPACITY_FLOOR, 1 / math.pow(max(track_count, 1), _OPACITY_EXPONENT))
    return OpacityScale(
        fill=base * fill_factor,
        stroke=base,
        hover_fill=_HOVER_FILL,
        hover_stroke=_HOVER_STROKE,
    )


def track_color(index: int, hovered: bool, palette: Sequence[str] = WARM_COLORS) -> str:
    if hovered:
        return HOVER_COLOR
    return palette[index % len(palette)]


def track_style(
    index: int,
    track_count: int,
    hovered: bool = False,
    palette: Sequence[str] = WARM_COLORS,
    fill_factor: float = SINGLE_FILL_FACTOR,
) -> TrackStyle:
    opacities = opacity_scale(track_count, fill_factor)
    return TrackStyle(
        color=track_color(index, hovered, palette),
        fill_opacity=opacities.hover_fill if hovered else opacities.fill,
        stroke_opacity=opacities.hover_stroke if hovered else opacities.stroke,
        stroke_width=1.0 if hovered else 0.5,
    )


def axis_labels(
    radius: float,
    features: Sequence[FeatureDescriptor] = FEATURES,
) -> list[tuple[str, float, float]]:
    count = len(features)
    labels = []
    for i, feature in enumerate(features):
        x, y = polar_to_cartesian(axis_angle(i, count), radius)
        labels.append((feature.label, x * LABEL_OFFSET, y * LABEL_OFFSET))
    return labels


def grid_rings(radius: float) -> list[float]:
    return [level * radius for level in GRID_LEVELS]
