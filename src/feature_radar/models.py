from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

CandidateKind = Literal["artist", "album"]


@dataclass(frozen=True, slots=True)
class SearchCandidate:
    id: str
    name: str
    kind: CandidateKind
    popularity: int = 0
    followers: int | None = None
    artist_names: tuple[str, ...] = ()
    images: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class FeatureVector:
    track_id: str
    name: str
    danceability: float
    energy: float
    valence: float
    acousticness: float
    instrumentalness: float
    liveness: float
    loudness: float
    tempo: float
    duration_ms: int
    key: int = -1


@dataclass(frozen=True, slots=True)
class Collection:
    label: str
    tracks: tuple[FeatureVector, ...] = ()

    @classmethod
    def from_tracks(cls, label: str, tracks: Iterable[FeatureVector]) -> Collection:
        """Keep the first vector seen for each track id, preserving order."""
        seen: set[str] = set()
        unique: list[FeatureVector] = []
        for track in tracks:
            if track.track_id in seen:
                continue
            seen.add(track.track_id)
            unique.append(track)
        return cls(label=label, tracks=tuple(unique))

    def __len__(self) -> int:
        return len(self.tracks)


@dataclass(frozen=True, slots=True)
class ProjectedPath:
    points: tuple[tuple[float, float], ...] = ()

    def to_svg(self, smooth: bool = True) -> str:
        """Render the closed curve as SVG path data.

        With ``smooth`` every vertex becomes the control point of a quadratic
        segment ending at the midpoint to the next vertex; otherwise vertices
        are joined by straight lines.
        """
        if not self.points:
            return ""
        first_x, first_y = self.points[0]
        parts = [f"M {first_x},{first_y}"]
        count = len(self.points)
        for i, (x, y) in enumerate(self.points):
            if smooth:
                next_x, next_y = self.points[(i + 1) % count]
                parts.append(f"Q {x},{y} {(x + next_x) / 2},{(y + next_y) / 2}")
            elif i > 0:
                parts.append(f"L {x},{y}")
        parts.append("Z")
        return " ".join(parts)


@dataclass(frozen=True, slots=True)
class OpacityScale:
    fill: float
    stroke: float
    hover_fill: float
    hover_stroke: float


@dataclass(frozen=True, slots=True)
class TrackStyle:
    color: str
    fill_opacity: float
    stroke_opacity: float
    stroke_width: float
