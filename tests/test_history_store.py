import tempfile
import unittest
from pathlib import Path

from anytrack import history_store


class TestHistoryStore(unittest.TestCase):
    def test_normalize_output_path_fallback(self) -> None:
        # Smoke-test normalization keeps a usable string path.
        raw = Path("/tmp/example_anytrack.mp3")
        normalized = history_store.normalize_output_path(raw)
        self.assertTrue(normalized.endswith("example_anytrack.mp3"))

    def test_upsert_history_entry_moves_repeat_to_front(self) -> None:
        history: list = []

        history_store.upsert_history_entry(
            history,
            normalized_path="/tmp/a_anytrack.mp3",
            source="http://svc/api/download/a",
            timestamp="2026-02-17 12:00:00",
        )
        history_store.upsert_history_entry(
            history,
            normalized_path="/tmp/b_anytrack.mp3",
            source="http://svc/api/download/b",
            timestamp="2026-02-17 12:01:00",
        )
        history_store.upsert_history_entry(
            history,
            normalized_path="/tmp/a_anytrack.mp3",
            source="http://svc/api/download/a2",
            timestamp="2026-02-17 12:05:00",
        )

        self.assertEqual(len(history), 2)
        self.assertEqual(history[0]["name"], "a_anytrack.mp3")
        self.assertEqual(history[0]["timestamp"], "2026-02-17 12:05:00")
        self.assertEqual(history[0]["source"], "http://svc/api/download/a2")

    def test_upsert_history_entry_respects_max_entries(self) -> None:
        history: list = []

        for name in ("a", "b"):
            history_store.upsert_history_entry(
                history,
                normalized_path=f"/tmp/{name}.mp3",
                source=f"http://svc/api/download/{name}",
                timestamp="2026-02-17 12:00:00",
                max_entries=1,
            )

        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]["name"], "b.mp3")

    def test_save_and_load_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "history.json"
            history: list = []
            history_store.upsert_history_entry(
                history,
                normalized_path="/tmp/a.mp3",
                source="http://svc/api/download/a",
                timestamp="2026-02-17 12:00:00",
            )
            history_store.save_history(path, history)
            self.assertEqual(history_store.load_history(path), history)

    def test_load_history_ignores_missing_or_corrupt_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "history.json"
            self.assertEqual(history_store.load_history(path), [])

            path.write_text("{not json", encoding="utf-8")
            with self.assertLogs("anytrack.history_store", level="WARNING"):
                self.assertEqual(history_store.load_history(path), [])

            path.write_text('[{"path": ""}, "x", {"path": "/tmp/a.mp3"}]', encoding="utf-8")
            self.assertEqual(history_store.load_history(path), [{"path": "/tmp/a.mp3"}])


if __name__ == "__main__":
    unittest.main()
