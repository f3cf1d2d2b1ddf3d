from __future__ import annotations

import logging
import math
import re
from typing import Iterable

from feature_radar.models import SearchCandidate

logger = logging.getLogger(__name__)

MAJOR_ARTISTS = frozenset({
    "beatles", "bob dylan", "pink floyd", "led zeppelin",
    "queen", "david bowie", "rolling stones", "beach boys",
    "the who", "eagles", "fleetwood mac", "bruce springsteen",
})

ALBUM_INDICATORS = ("album", "record", "soundtrack", "vol", "volume", "collection", "deluxe", "remaster")

KNOWN_ALBUMS = frozenset({
    "rubber soul", "revolver", "abbey road", "white album", "sgt pepper",
    "dark side of the moon", "the wall", "led zeppelin iv", "houses of the holy",
    "blonde on blonde", "highway 61", "blood on the tracks",
})

_LEADING_ARTICLE_RE = re.compile(r"^(the |a |an )", re.IGNORECASE)
_BRACKETED_RE = re.compile(r"[(\[].*?[)\]]")
_PUNCTUATION_RE = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")

_EXACT_MATCH_SCORE = 10_000
_PREFIX_MATCH_SCORE = 8_000
_SUBSTRING_MATCH_SCORE = 6_000
_MAJOR_ARTIST_BOOST = 5_000
_ALBUM_ARTIST_MATCH_SCORE = 7_000
_FOLLOWER_BONUS_CAP = 3_000
_SUPPRESSED_ARTIST_CAP = 1_000


def normalize_search_string(text: str) -> str:
    """Fold a name or query into the form used for every comparison."""
    folded = text.lower()
    folded = _LEADING_ARTICLE_RE.sub("", folded, count=1)
    folded = _BRACKETED_RE.sub("", folded)
    folded = _PUNCTUATION_RE.sub("", folded)
    return folded.strip()


def compare_names(first: str, second: str) -> bool:
    n1 = normalize_search_string(first)
    n2 = normalize_search_string(second)

    if n1 == n2:
        return True
    # Permissive on purpose: "led zeppelin" matches "led zeppelin iv".
    if n1 in n2 or n2 in n1:
        return True
    return f"the {n1}" == n2 or f"the {n2}" == n1


def is_likely_album_search(query: str) -> bool:
    normalized = normalize_search_string(query)
    if any(indicator in normalized for indicator in ALBUM_INDICATORS):
        return True
    return normalized in KNOWN_ALBUMS


def base_text_score(name: str, query: str) -> int:
    if compare_names(name, query):
        return _EXACT_MATCH_SCORE

    name_norm = normalize_search_string(name)
    query_norm = normalize_search_string(query)
    if name_norm.startswith(query_norm) or query_norm.startswith(name_norm):
        return _PREFIX_MATCH_SCORE
    if name_norm in query_norm or query_norm in name_norm:
        return _SUBSTRING_MATCH_SCORE
    return 0


def popularity_bonus(candidate: SearchCandidate, weight: int) -> int:
    return (candidate.popularity or 0) * weight


def major_artist_bonus(names: Iterable[str]) -> int:
    if any(normalize_search_string(name) in MAJOR_ARTISTS for name in names):
        return _MAJOR_ARTIST_BOOST
    return 0


def follower_bonus(candidate: SearchCandidate) -> float:
    return min(_FOLLOWER_BONUS_CAP, math.log(candidate.followers or 1) * 100)


def _score_album(candidate: SearchCandidate, query: str, album_search: bool) -> float:
    name_score = base_text_score(candidate.name, query)
    artist_match = any(compare_names(name, query) for name in candidate.artist_names)
    major = major_artist_bonus(candidate.artist_names)

    if album_search and name_score > 0:
        return name_score * 2 + popularity_bonus(candidate, 100) + major
    if artist_match:
        return _ALBUM_ARTIST_MATCH_SCORE + popularity_bonus(candidate, 50) + major
    return name_score + popularity_bonus(candidate, 30) + major / 2


def _score_artist(candidate: SearchCandidate, query: str, album_search: bool) -> float:
    base = base_text_score(candidate.name, query)

    if compare_names(candidate.name, query):
        return (
            base
            + popularity_bonus(candidate, 50)
            + follower_bonus(candidate)
            + major_artist_bonus([candidate.name])
        )
    if not album_search:
        return base + popularity_bonus(candidate, 10)
    # Album-looking query that doesn't name this artist: push it down.
    return min(base, _SUPPRESSED_ARTIST_CAP)


def score_candidate(candidate: SearchCandidate, query: str) -> float:
    album_search = is_likely_album_search(query)
    if candidate.kind == "album":
        return _score_album(candidate, query, album_search)
    return _score_artist(candidate, query, album_search)


def rank_candidates(candidates: Iterable[SearchCandidate], query: str) -> list[SearchCandidate]:
    """Sort best-first; equal scores keep the API's original order."""
    return sorted(candidates, key=lambda c: score_candidate(c, query), reverse=True)


def _image_urls(item: dict) -> tuple[str, ...]:
    return tuple(image["url"] for image in item.get("images") or [] if image.get("url"))


def candidate_from_item(item: dict, kind: str) -> SearchCandidate:
    followers = (item.get("followers") or {}).get("total") if kind == "artist" else None
    return SearchCandidate(
        id=item["id"],
        name=item.get("name", ""),
        kind=kind,
        popularity=int(item.get("popularity") or 0),
        followers=followers,
        artist_names=tuple(a.get("name", "") for a in item.get("artists") or []),
        images=_image_urls(item),
    )


def candidates_from_response(response: dict) -> list[SearchCandidate]:
    artists = (response.get("artists") or {}).get("items") or []
    albums = (response.get("albums") or {}).get("items") or []
    candidates = [candidate_from_item(item, "artist") for item in artists if item]
    candidates.extend(candidate_from_item(item, "album") for item in albums if item)
    return candidates


def search(service: object, query: str, limit: int = 50) -> list[SearchCandidate]:
    """Search artists and albums and return them ranked against ``query``.

    A blank query short-circuits to an empty list without touching the
    service. Transport failures propagate as ``SearchFailed`` so callers can
    tell them apart from "no results".
    """
    if not query or not query.strip():
        return []

    response = service.search(query, types=("artist", "album"), limit=limit)
    candidates = candidates_from_response(response)
    logger.debug("Ranking %d candidates for %r", len(candidates), query)
    return rank_candidates(candidates, query)


def describe_candidate(candidate: SearchCandidate) -> str:
    if candidate.kind == "artist" and candidate.followers is not None:
        return f"{candidate.followers:,} followers"
    if candidate.kind == "album" and candidate.artist_names:
        return ", ".join(candidate.artist_names)
    return ""
