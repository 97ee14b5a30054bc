from __future__ import annotations

import unittest
from datetime import date

import pandas as pd

from fb_page_posts.errors import TimeBoundError
from fb_page_posts.timebounds import bound_date, graph_date, parse_graph_time, resolve_time_bound


_NOW = pd.Timestamp("2025-03-15T09:30:00Z")


class TestResolveTimeBound(unittest.TestCase):
    def test_unix_seconds(self) -> None:
        self.assertEqual(resolve_time_bound(0), pd.Timestamp("1970-01-01T00:00:00Z"))
        self.assertEqual(resolve_time_bound("86400"), pd.Timestamp("1970-01-02T00:00:00Z"))

    def test_absolute_dates(self) -> None:
        self.assertEqual(bound_date("2013/01/01"), date(2013, 1, 1))
        self.assertEqual(bound_date("2013-01-31"), date(2013, 1, 31))
        self.assertEqual(
            resolve_time_bound("2013-01-31T12:00:00+0100"),
            pd.Timestamp("2013-01-31T11:00:00Z"),
        )

    def test_named_days(self) -> None:
        self.assertEqual(resolve_time_bound("now", now=_NOW), _NOW)
        self.assertEqual(bound_date("today", now=_NOW), date(2025, 3, 15))
        self.assertEqual(bound_date("yesterday", now=_NOW), date(2025, 3, 14))
        self.assertEqual(bound_date("Tomorrow", now=_NOW), date(2025, 3, 16))

    def test_relative_expressions(self) -> None:
        self.assertEqual(bound_date("-1 week", now=_NOW), date(2025, 3, 8))
        self.assertEqual(bound_date("3 days ago", now=_NOW), date(2025, 3, 12))
        self.assertEqual(bound_date("+2 days", now=_NOW), date(2025, 3, 17))
        self.assertEqual(bound_date("-1 month", now=_NOW), date(2025, 2, 15))

    def test_rejects_garbage(self) -> None:
        for value in ("", "not a date", True):
            with self.assertRaises(TimeBoundError):
                resolve_time_bound(value)  # type: ignore[arg-type]


class TestGraphTime(unittest.TestCase):
    def test_parses_graph_stamp(self) -> None:
        ts = parse_graph_time("2013-01-31T23:30:00+0000")
        self.assertEqual(ts, pd.Timestamp("2013-01-31T23:30:00Z"))
        self.assertEqual(graph_date("2013-01-31T23:30:00+0000"), date(2013, 1, 31))

    def test_unusable_values(self) -> None:
        self.assertIsNone(parse_graph_time(None))
        self.assertIsNone(parse_graph_time("   "))
        self.assertIsNone(graph_date("garbage"))


if __name__ == "__main__":
    unittest.main()
