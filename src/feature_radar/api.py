"""FastAPI web server for the feature radar."""
import logging
from functools import lru_cache
from typing import Annotated, Literal, Sequence

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from feature_radar import projection, ranking
from feature_radar.config import Settings
from feature_radar.features import FEATURES
from feature_radar.models import Collection
from feature_radar.spotify_service import CatalogueError, SearchFailed, SpotifyService

logger = logging.getLogger(__name__)

app = FastAPI(title="Feature Radar")

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Kind = Literal["artist", "album"]


# Request/Response models
class CandidateInfo(BaseModel):
    """One ranked search hit."""
    id: str
    name: str
    type: Kind
    popularity: int = 0
    followers: int | None = None
    artists: list[str] = []
    image: str | None = None
    subtitle: str = ""


class SearchResponse(BaseModel):
    query: str
    results: list[CandidateInfo]


class AxisInfo(BaseModel):
    name: str
    label: str
    x: float
    y: float


class TrackLayer(BaseModel):
    """Path and render attributes of one track."""
    id: str
    name: str
    path: str
    color: str
    fill_opacity: float
    stroke_opacity: float
    stroke_width: float
    values: dict[str, str]


class RadarLayer(BaseModel):
    label: str
    track_count: int
    tracks: list[TrackLayer]
    average_path: str | None = None
    fill_opacity: float
    stroke_opacity: float


class RadarResponse(BaseModel):
    radius: float
    axes: list[AxisInfo]
    rings: list[float]
    layers: list[RadarLayer]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def get_spotify_service() -> SpotifyService:
    """Initialize the shared Spotify service; its client authenticates lazily."""
    settings = get_settings()
    return SpotifyService(market=settings.market, max_workers=settings.fetch_workers)


def _candidate_info(candidate) -> CandidateInfo:
    return CandidateInfo(
        id=candidate.id,
        name=candidate.name,
        type=candidate.kind,
        popularity=candidate.popularity,
        followers=candidate.followers,
        artists=list(candidate.artist_names),
        image=candidate.images[0] if candidate.images else None,
        subtitle=ranking.describe_candidate(candidate),
    )


def build_layer(
    collection: Collection,
    radius: float,
    palette: Sequence[str] = projection.WARM_COLORS,
    fill_factor: float = projection.SINGLE_FILL_FACTOR,
    hovered: str | None = None,
) -> RadarLayer:
    count = len(collection)
    opacities = projection.opacity_scale(count, fill_factor)
    tracks = []
    for index, track in enumerate(collection.tracks):
        style = projection.track_style(index, count, track.track_id == hovered, palette, fill_factor)
        tracks.append(TrackLayer(
            id=track.track_id,
            name=track.name,
            path=projection.project(track, radius).to_svg(),
            color=style.color,
            fill_opacity=style.fill_opacity,
            stroke_opacity=style.stroke_opacity,
            stroke_width=style.stroke_width,
            values={feature.name: feature.format(track) for feature in FEATURES},
        ))

    average = projection.average_path(collection.tracks, radius)
    return RadarLayer(
        label=collection.label,
        track_count=count,
        tracks=tracks,
        average_path=average.to_svg() if average is not None else None,
        fill_opacity=opacities.fill,
        stroke_opacity=opacities.stroke,
    )


def _radar_response(radius: float, layers: list[RadarLayer]) -> RadarResponse:
    return RadarResponse(
        radius=radius,
        axes=[
            AxisInfo(name=feature.name, label=label, x=x, y=y)
            for feature, (label, x, y) in zip(FEATURES, projection.axis_labels(radius))
        ],
        rings=projection.grid_rings(radius),
        layers=layers,
    )


def _load(service: SpotifyService, kind: str, item_id: str) -> Collection:
    try:
        return service.load_collection(kind, item_id)
    except CatalogueError as e:
        logger.warning("Loading %s %s failed: %s", kind, item_id, e)
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/")
def root():
    return {"message": "Feature Radar API is running. Use /api/search to find artists and albums."}


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/search", response_model=SearchResponse)
def search_catalogue(q: str = "", limit: Annotated[int | None, Query(ge=1, le=50)] = None):
    """Search artists and albums, ranked best-first."""
    if not q.strip():
        return SearchResponse(query=q, results=[])

    try:
        service = get_spotify_service()
        results = ranking.search(service, q, limit=limit or get_settings().search_limit)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except SearchFailed as e:
        logger.warning("Search for %r failed: %s", q, e)
        raise HTTPException(status_code=502, detail="Error searching")

    return SearchResponse(query=q, results=[_candidate_info(c) for c in results])


@app.get("/api/radar/{kind}/{item_id}", response_model=RadarResponse)
def radar(kind: Kind, item_id: str, hovered: str | None = None):
    """Project every track of an artist or album onto the radar."""
    radius = get_settings().chart_radius
    try:
        service = get_spotify_service()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    collection = _load(service, kind, item_id)
    return _radar_response(radius, [build_layer(collection, radius, hovered=hovered)])


@app.get("/api/compare", response_model=RadarResponse)
def compare(
    left_kind: Kind,
    left_id: str,
    right_kind: Kind,
    right_id: str,
    hovered: str | None = None,
):
    """Overlay two collections, warm colours on the left and cool on the right."""
    radius = get_settings().chart_radius
    try:
        service = get_spotify_service()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    left = _load(service, left_kind, left_id)
    right = _load(service, right_kind, right_id)
    return _radar_response(radius, [
        build_layer(left, radius, projection.LEFT_COLORS, projection.COMPARISON_FILL_FACTOR, hovered),
        build_layer(right, radius, projection.RIGHT_COLORS, projection.COMPARISON_FILL_FACTOR, hovered),
    ])
