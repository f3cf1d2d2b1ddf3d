import unittest

from feature_radar.analysis import build_collection, build_feature_vector


def _fake_track(track_id: str = "t1", duration_ms: int | None = 210_000) -> dict:
    track = {
        "id": track_id,
        "name": "Test Song",
        "artists": [{"name": "Test Artist"}],
    }
    if duration_ms is not None:
        track["duration_ms"] = duration_ms
    return track


def _fake_features(track_id: str = "t1", **overrides) -> dict:
    features = {
        "id": track_id,
        "danceability": 0.5,
        "energy": 0.8,
        "valence": 0.3,
        "acousticness": 0.1,
        "instrumentalness": 0.0,
        "liveness": 0.2,
        "loudness": -5.0,
        "tempo": 120.0,
        "key": 7,
        "duration_ms": 199_000,
    }
    features.update(overrides)
    return features


class BuildFeatureVectorTests(unittest.TestCase):
    def test_returns_none_without_features(self) -> None:
        self.assertIsNone(build_feature_vector(_fake_track(), None))
        self.assertIsNone(build_feature_vector(_fake_track(), {}))

    def test_duration_taken_from_catalogue_track(self) -> None:
        vector = build_feature_vector(_fake_track(duration_ms=195_000), _fake_features())
        self.assertEqual(vector.duration_ms, 195_000)

    def test_duration_falls_back_to_feature_record(self) -> None:
        vector = build_feature_vector(_fake_track(duration_ms=None), _fake_features())
        self.assertEqual(vector.duration_ms, 199_000)

    def test_feature_values_copied(self) -> None:
        vector = build_feature_vector(_fake_track(), _fake_features(energy=0.91, key=None))
        self.assertEqual((vector.track_id, vector.name), ("t1", "Test Song"))
        self.assertEqual(vector.energy, 0.91)
        self.assertEqual(vector.tempo, 120.0)
        self.assertEqual(vector.key, -1)


class BuildCollectionTests(unittest.TestCase):
    def test_missing_feature_record_does_not_shift_others(self) -> None:
        tracks = [_fake_track("a"), _fake_track("b"), _fake_track("c")]
        features = [_fake_features("a", energy=0.1), None, _fake_features("c", energy=0.3)]

        collection = build_collection("Album", tracks, features)

        self.assertEqual([t.track_id for t in collection.tracks], ["a", "c"])
        self.assertEqual([t.energy for t in collection.tracks], [0.1, 0.3])

    def test_duplicates_removed_keeping_first(self) -> None:
        tracks = [_fake_track("a"), _fake_track("a")]
        features = [_fake_features(energy=0.1), _fake_features(energy=0.9)]

        collection = build_collection("Album", tracks, features)

        self.assertEqual(len(collection), 1)
        self.assertEqual(collection.tracks[0].energy, 0.1)

    def test_length_mismatch_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            build_collection("Album", [_fake_track()], [])

    def test_empty_collection(self) -> None:
        collection = build_collection("Nothing", [], [])
        self.assertEqual(collection.label, "Nothing")
        self.assertEqual(collection.tracks, ())


if __name__ == "__main__":
    unittest.main()
