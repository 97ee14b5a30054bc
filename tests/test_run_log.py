from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from fb_page_posts.run_log import RunLogger


class TestRunLogger(unittest.TestCase):
    def test_writes_jsonl_with_masked_token(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "logs" / "run.log.jsonl"
            with RunLogger.open(path, session_id="s1") as log:
                log.info(
                    "page_fetch_started",
                    url="https://graph.facebook.com/p/posts?limit=5&access_token=secret",
                    page="p",
                )
                log.warning("graph_retry", failure_attempt=1)

            lines = path.read_text(encoding="utf-8").splitlines()
            self.assertEqual(len(lines), 2)

            first = json.loads(lines[0])
            self.assertEqual(first["event"], "page_fetch_started")
            self.assertEqual(first["level"], "INFO")
            self.assertEqual(first["session_id"], "s1")
            self.assertEqual(first["data"], {"page": "p"})
            self.assertNotIn("secret", lines[0])
            self.assertTrue(first["url"].endswith("access_token=***"))

            self.assertEqual(json.loads(lines[1])["level"], "WARN")

    def test_memory_logger_keeps_records(self) -> None:
        log = RunLogger.memory()
        log.info("collect_completed", rows=3)
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            log.exception("collect_failed", exc=e)

        self.assertIsNone(log.path)
        self.assertEqual([r["event"] for r in log.events()], ["collect_completed", "collect_failed"])
        failed = log.events("collect_failed")[0]
        self.assertEqual(failed["data"]["error"]["type"], "RuntimeError")
        self.assertIn("boom", failed["data"]["error"]["traceback"])

    def test_reopen_appends_after_first_open(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "run.log.jsonl"
            log = RunLogger.open(path)
            log.info("a")
            log.close()
            log.info("b")
            log.close()

            events = [json.loads(x)["event"] for x in path.read_text(encoding="utf-8").splitlines()]
            self.assertEqual(events, ["a", "b"])


if __name__ == "__main__":
    unittest.main()
