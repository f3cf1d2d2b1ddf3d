from __future__ import annotations

import logging
import os
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Sequence

import spotipy
from requests.exceptions import HTTPError, RequestException
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError

from feature_radar.analysis import build_collection
from feature_radar.models import Collection

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (SpotifyException, SpotifyOauthError, RequestException)


class CatalogueError(RuntimeError):
    """The catalogue API could not be reached or refused the request."""


class SearchFailed(CatalogueError):
    pass


class FetchFailed(CatalogueError):
    pass


def _status_of(exc: Exception) -> int | None:
    if isinstance(exc, HTTPError) and exc.response is not None:
        return exc.response.status_code
    if isinstance(exc, SpotifyException):
        return exc.http_status
    return None


class SpotifyService:
    # Spotify caps paged listings and search pages at 50 items.
    PAGE_LIMIT = 50
    # /audio-features accepts at most 100 ids per call.
    FEATURE_BATCH_SIZE = 100

    def __init__(self, market: str | None = None, max_workers: int = 4) -> None:
        self._validate_credentials()
        self.market = market
        self.max_workers = max(1, max_workers)
        self._client: spotipy.Spotify | None = None

    @staticmethod
    def _validate_credentials() -> None:
        missing = [name for name in ("SPOTIPY_CLIENT_ID", "SPOTIPY_CLIENT_SECRET") if not os.getenv(name)]
        if missing:
            missing_list = ", ".join(missing)
            raise ValueError(
                f"Missing Spotify credentials: {missing_list}. "
                "Set them in environment variables or local .env file."
            )

    @property
    def client(self) -> spotipy.Spotify:
        if self._client is None:
            self._client = spotipy.Spotify(auth_manager=SpotifyClientCredentials())
        return self._client

    def refresh(self) -> spotipy.Spotify:
        """Drop the cached client so the next call authenticates from scratch."""
        self._client = None
        return self.client

    def search(
        self,
        query: str,
        types: Sequence[str] = ("artist", "album"),
        market: str | None = None,
        limit: int = PAGE_LIMIT,
    ) -> dict:
        try:
            return self.client.search(
                q=query,
                type=",".join(types),
                market=market or self.market,
                limit=min(limit, self.PAGE_LIMIT),
            )
        except _TRANSPORT_ERRORS as exc:
            raise SearchFailed(f"Search for {query!r} failed: {exc}") from exc

    def _collect_pages(self, page: dict | None) -> list[dict]:
        items: list[dict] = []
        while page:
            items.extend(item for item in page.get("items") or [] if item)
            page = self.client.next(page) if page.get("next") else None
        return items

    def album_tracks(self, album_id: str) -> list[dict]:
        try:
            first = self.client.album_tracks(album_id, limit=self.PAGE_LIMIT, market=self.market)
            return self._collect_pages(first)
        except _TRANSPORT_ERRORS as exc:
            raise FetchFailed(f"Could not list tracks of album {album_id}: {exc}") from exc

    def artist_albums(self, artist_id: str) -> list[dict]:
        try:
            first = self.client.artist_albums(artist_id, limit=self.PAGE_LIMIT, country=self.market)
            return self._collect_pages(first)
        except _TRANSPORT_ERRORS as exc:
            raise FetchFailed(f"Could not list albums of artist {artist_id}: {exc}") from exc

    def artist_tracks(self, artist_id: str) -> list[dict]:
        """All tracks across an artist's albums, in album order, deduplicated."""
        albums = self.artist_albums(artist_id)
        album_ids = [album["id"] for album in albums if album.get("id")]

        # Build the client before fanning out; the lazy property is not locked.
        self.client
        # executor.map yields in submission order, so album i stays at slot i.
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            per_album = list(pool.map(self.album_tracks, album_ids))

        seen: set[str] = set()
        tracks: list[dict] = []
        for album_tracks in per_album:
            for track in album_tracks:
                track_id = track.get("id")
                if not track_id or track_id in seen:
                    continue
                seen.add(track_id)
                tracks.append(track)
        logger.info("Artist %s: %d albums, %d unique tracks", artist_id, len(album_ids), len(tracks))
        return tracks

    def _feature_batch(self, track_ids: list[str]) -> list[dict | None]:
        try:
            result = self.client.audio_features(track_ids) or []
        except _TRANSPORT_ERRORS as exc:
            if _status_of(exc) == 403:
                warnings.warn(
                    "Spotify audio-features endpoint returned 403 Forbidden. "
                    "This endpoint may be restricted for your app credentials. "
                    "Falling back to empty features.",
                    RuntimeWarning,
                    stacklevel=2,
                )
                return [None] * len(track_ids)
            raise FetchFailed(f"Could not fetch audio features: {exc}") from exc
        # Pad so a short response can't shift later batches.
        result = list(result[: len(track_ids)])
        result.extend([None] * (len(track_ids) - len(result)))
        return result

    def audio_features(self, track_ids: Iterable[str]) -> list[dict | None]:
        """One feature record (or ``None``) per id, in the order given."""
        ids = list(track_ids)
        batches = [
            ids[start:start + self.FEATURE_BATCH_SIZE]
            for start in range(0, len(ids), self.FEATURE_BATCH_SIZE)
        ]
        if len(batches) <= 1:
            results = [self._feature_batch(batch) for batch in batches]
        else:
            self.client
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(self._feature_batch, batches))
        return [record for batch in results for record in batch]

    def collection_label(self, kind: str, item_id: str) -> str:
        try:
            item = self.client.artist(item_id) if kind == "artist" else self.client.album(item_id)
        except _TRANSPORT_ERRORS as exc:
            raise FetchFailed(f"Could not look up {kind} {item_id}: {exc}") from exc
        return item.get("name") or item_id

    def load_collection(self, kind: str, item_id: str) -> Collection:
        if kind == "artist":
            tracks = self.artist_tracks(item_id)
        elif kind == "album":
            tracks = self.album_tracks(item_id)
        else:
            raise ValueError(f"Unknown collection kind: {kind!r}")

        label = self.collection_label(kind, item_id)
        features = self.audio_features(track["id"] for track in tracks)
        return build_collection(label, tracks, features)
