import io
import unittest
from contextlib import redirect_stdout
from unittest.mock import MagicMock, patch

from feature_radar import app
from feature_radar.app import format_candidate, format_profile, parse_args, run_browse
from feature_radar.config import Settings
from feature_radar.models import Collection, FeatureVector, SearchCandidate
from feature_radar.spotify_service import FetchFailed, SearchFailed


def _vector(track_id: str) -> FeatureVector:
    return FeatureVector(
        track_id=track_id, name=track_id, danceability=0.5, energy=0.5, valence=0.5,
        acousticness=0.5, instrumentalness=0.0, liveness=0.1, loudness=-6.0,
        tempo=120.0, duration_ms=200_000,
    )


class _FakeService:
    def __init__(
        self,
        response: dict | None = None,
        error: Exception | None = None,
        fetch_errors: list[Exception] | None = None,
    ) -> None:
        self._response = response or {}
        self._error = error
        self._fetch_errors = list(fetch_errors or [])
        self.loaded: list[tuple[str, str]] = []

    def search(self, query: str, types=("artist", "album"), limit: int = 50) -> dict:
        _ = (query, types, limit)
        if self._error is not None:
            raise self._error
        return self._response

    def load_collection(self, kind: str, item_id: str) -> Collection:
        self.loaded.append((kind, item_id))
        if self._fetch_errors:
            raise self._fetch_errors.pop(0)
        return Collection.from_tracks("Picked", [_vector("t1")])


def _reader(lines: list[str]):
    feed = iter(lines)
    return lambda prompt: next(feed)


class AppTests(unittest.TestCase):
    def test_parse_args_search(self) -> None:
        args = parse_args(["search", "abbey", "road", "--top", "3"])
        self.assertEqual((args.command, args.query, args.top), ("search", ["abbey", "road"], 3))

    def test_parse_args_compare(self) -> None:
        args = parse_args(["compare", "artist", "a1", "album", "b1"])
        self.assertEqual((args.left_kind, args.right_id), ("artist", "b1"))

    def test_format_candidate(self) -> None:
        candidate = SearchCandidate(id="a1", name="Radiohead", kind="artist", followers=2500)
        self.assertEqual(format_candidate(1, candidate), " 1. [artist] Radiohead (a1) - 2,500 followers")

    def test_format_profile_for_empty_collection(self) -> None:
        self.assertEqual(format_profile(Collection(label="Empty")), ["Empty: no tracks with audio features"])

    def test_format_profile_lists_every_axis(self) -> None:
        lines = format_profile(Collection.from_tracks("Kid A", [_vector("a")]))
        self.assertEqual(lines[0], "Kid A: 1 tracks")
        self.assertTrue(lines[1].strip().startswith("BPM"))

    def test_browse_search_then_select(self) -> None:
        service = _FakeService({"artists": {"items": [{"id": "ar1", "name": "Radiohead"}]}})
        out = io.StringIO()
        with redirect_stdout(out):
            collection = run_browse(service, Settings(), read=_reader(["radiohead", "1"]))

        self.assertEqual(service.loaded, [("artist", "ar1")])
        self.assertEqual(collection.label, "Picked")
        self.assertIn("[artist] Radiohead", out.getvalue())

    def test_browse_reports_search_failure(self) -> None:
        service = _FakeService(error=SearchFailed("offline"))
        out = io.StringIO()
        with redirect_stdout(out):
            result = run_browse(service, Settings(), read=_reader(["radiohead", ""]))

        self.assertIsNone(result)
        self.assertIn("Error searching", out.getvalue())

    def test_browse_reports_fetch_failure_and_keeps_going(self) -> None:
        service = _FakeService(
            {"artists": {"items": [{"id": "ar1", "name": "Radiohead"}]}},
            fetch_errors=[FetchFailed("offline")],
        )
        out = io.StringIO()
        with redirect_stdout(out), self.assertLogs("feature_radar.app", level="WARNING"):
            result = run_browse(service, Settings(), read=_reader(["radiohead", "1", ""]))

        self.assertIsNone(result)
        self.assertEqual(service.loaded, [("artist", "ar1")])
        self.assertIn("Error fetching Radiohead", out.getvalue())

    def test_browse_retries_failed_load(self) -> None:
        service = _FakeService(
            {"artists": {"items": [{"id": "ar1", "name": "Radiohead"}]}},
            fetch_errors=[FetchFailed("offline")],
        )
        out = io.StringIO()
        with redirect_stdout(out), self.assertLogs("feature_radar.app", level="WARNING"):
            result = run_browse(service, Settings(), read=_reader(["radiohead", "1", "r"]))

        self.assertEqual(service.loaded, [("artist", "ar1"), ("artist", "ar1")])
        self.assertEqual(result.label, "Picked")


@patch("feature_radar.app.configure_logging")
@patch("feature_radar.app.load_local_env_file")
class MainTests(unittest.TestCase):
    def _run(self, argv: list[str], service: MagicMock) -> tuple[int | str | None, str]:
        out = io.StringIO()
        with patch("feature_radar.spotify_service.SpotifyService", return_value=service), \
             redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
            app.main(argv)
        return ctx.exception.code, out.getvalue()

    def test_search_failure_exits_non_zero(self, _env, _logging) -> None:
        service = MagicMock()
        service.search.side_effect = SearchFailed("offline")

        code, output = self._run(["search", "radiohead"], service)

        self.assertEqual(code, 1)
        self.assertIn("offline", output)

    def test_radar_fetch_failure_exits_non_zero(self, _env, _logging) -> None:
        service = MagicMock()
        service.load_collection.side_effect = FetchFailed("Could not look up album al1")

        code, output = self._run(["radar", "album", "al1"], service)

        self.assertEqual(code, 1)
        self.assertIn("Could not look up album al1", output)

    def test_compare_fetch_failure_exits_non_zero(self, _env, _logging) -> None:
        service = MagicMock()
        service.load_collection.side_effect = [
            Collection.from_tracks("Left", [_vector("t1")]),
            FetchFailed("offline"),
        ]

        code, _ = self._run(["compare", "artist", "a1", "album", "b1"], service)

        self.assertEqual(code, 1)

    def test_missing_credentials_exit_non_zero(self, _env, _logging) -> None:
        out = io.StringIO()
        error = ValueError("Missing Spotify credentials: SPOTIPY_CLIENT_ID.")
        with patch("feature_radar.spotify_service.SpotifyService", side_effect=error), \
             redirect_stdout(out), self.assertRaises(SystemExit) as ctx:
            app.main(["search", "radiohead"])

        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("Configuration error: Missing Spotify credentials", out.getvalue())

    def test_search_prints_ranked_results(self, _env, _logging) -> None:
        service = MagicMock()
        service.search.return_value = {"artists": {"items": [{"id": "ar1", "name": "Radiohead"}]}}
        out = io.StringIO()
        with patch("feature_radar.spotify_service.SpotifyService", return_value=service), \
             redirect_stdout(out):
            app.main(["search", "radiohead"])

        self.assertIn("[artist] Radiohead (ar1)", out.getvalue())


if __name__ == "__main__":
    unittest.main()
