from __future__ import annotations

import argparse
import logging

from feature_radar.config import Settings, configure_logging, load_local_env_file
from feature_radar.features import FEATURES
from feature_radar.models import Collection, SearchCandidate
from feature_radar.projection import average_profile
from feature_radar.ranking import describe_candidate, search
from feature_radar.session import SearchSession, SelectionTracker

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Audio-feature radar for artists and albums")
    sub = parser.add_subparsers(dest="command", required=True)

    search_cmd = sub.add_parser("search", help="Rank artists and albums matching a query")
    search_cmd.add_argument("query", nargs="+")
    search_cmd.add_argument("--limit", type=int, default=None, help="Results per entity type (max 50)")
    search_cmd.add_argument("--top", type=int, default=10, help="How many ranked results to print")

    radar_cmd = sub.add_parser("radar", help="Summarise one artist's or album's feature profile")
    radar_cmd.add_argument("kind", choices=["artist", "album"])
    radar_cmd.add_argument("item_id")

    compare_cmd = sub.add_parser("compare", help="Compare two feature profiles side by side")
    compare_cmd.add_argument("left_kind", choices=["artist", "album"])
    compare_cmd.add_argument("left_id")
    compare_cmd.add_argument("right_kind", choices=["artist", "album"])
    compare_cmd.add_argument("right_id")

    sub.add_parser("browse", help="Search interactively and pick a result to profile")
    return parser.parse_args(argv)


def format_candidate(rank: int, candidate: SearchCandidate) -> str:
    subtitle = describe_candidate(candidate)
    line = f"{rank:>2}. [{candidate.kind}] {candidate.name} ({candidate.id})"
    return f"{line} - {subtitle}" if subtitle else line


def format_profile(collection: Collection) -> list[str]:
    profile = average_profile(collection.tracks)
    if profile is None:
        return [f"{collection.label}: no tracks with audio features"]
    lines = [f"{collection.label}: {len(collection)} tracks"]
    for feature, value in zip(FEATURES, profile):
        lines.append(f"  {feature.label:<17} {value:6.3f}")
    return lines


def run_browse(service: object, settings: Settings, read=input) -> Collection | None:
    """Minimal terminal loop: type a query, pick a number, see the profile."""
    from feature_radar.spotify_service import FetchFailed, SearchFailed

    session = SearchSession(quiet_period=0.0)
    tracker = SelectionTracker()
    failed: SearchCandidate | None = None
    while True:
        text = read("search> ").strip()
        if not text:
            return None
        choice = None
        if text == "r" and failed is not None:
            choice = failed
        elif text.isdigit() and session.results:
            index = int(text) - 1
            if not 0 <= index < len(session.results):
                print("No such result.")
                continue
            choice = session.results[index]
        if choice is not None:
            session.select(choice)
            ticket = tracker.begin(choice.kind, choice.id)
            try:
                collection = service.load_collection(choice.kind, choice.id)
            except FetchFailed as exc:
                logger.warning("Loading %s %s failed: %s", choice.kind, choice.id, exc)
                print(f"Error fetching {choice.name}. Enter r to retry.")
                failed = choice
                continue
            if tracker.accept(ticket):
                print("\n".join(format_profile(collection)))
            return collection

        session.update_query(text)
        query = session.due()
        if query is None:
            continue
        ticket = session.begin(query)
        try:
            results = search(service, query, limit=settings.search_limit)
        except SearchFailed as exc:
            session.fail(ticket, exc)
            print(session.error)
            continue
        session.complete(ticket, results[:10])
        for rank, candidate in enumerate(session.results, start=1):
            print(format_candidate(rank, candidate))


def main(argv: list[str] | None = None) -> None:
    load_local_env_file()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    args = parse_args(argv)
    from feature_radar.spotify_service import CatalogueError, SpotifyService

    try:
        service = SpotifyService(market=settings.market, max_workers=settings.fetch_workers)
    except ValueError as exc:
        print(f"Configuration error: {exc}")
        raise SystemExit(1) from exc

    try:
        _run_command(args, service, settings)
    except CatalogueError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Spotify request failed: {exc}")
        raise SystemExit(1) from exc


def _run_command(args: argparse.Namespace, service: object, settings: Settings) -> None:
    if args.command == "search":
        query = " ".join(args.query)
        results = search(service, query, limit=args.limit or settings.search_limit)
        if not results:
            print("No matches.")
            return
        for rank, candidate in enumerate(results[: args.top], start=1):
            print(format_candidate(rank, candidate))
    elif args.command == "radar":
        collection = service.load_collection(args.kind, args.item_id)
        print("\n".join(format_profile(collection)))
    elif args.command == "compare":
        left = service.load_collection(args.left_kind, args.left_id)
        right = service.load_collection(args.right_kind, args.right_id)
        print("\n".join(format_profile(left)))
        print("\n".join(format_profile(right)))
    else:
        run_browse(service, settings)


if __name__ == "__main__":
    main()
