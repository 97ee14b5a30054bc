from __future__ import annotations

import unittest

from fb_page_posts.request import POST_FIELDS, build_posts_url, page_size_for


class TestBuildPostsUrl(unittest.TestCase):
    def test_posts_edge_with_fields_and_limit(self) -> None:
        url = build_posts_url("samplepage", n=10)

        self.assertEqual(
            url,
            "https://graph.facebook.com/samplepage/posts?fields="
            + ",".join(POST_FIELDS)
            + "&limit=10",
        )

    def test_feed_edge(self) -> None:
        url = build_posts_url("samplepage", n=5, feed=True)
        self.assertTrue(url.startswith("https://graph.facebook.com/samplepage/feed?fields="))

    def test_until_then_since_appended_raw(self) -> None:
        url = build_posts_url("samplepage", n=100, since="-1 week", until=1700000000)
        self.assertTrue(url.endswith("&until=1700000000&since=-1 week&limit=25"))

    def test_absent_bounds_are_omitted(self) -> None:
        url = build_posts_url("samplepage", n=3)
        self.assertNotIn("since=", url)
        self.assertNotIn("until=", url)

    def test_custom_base_url(self) -> None:
        url = build_posts_url("p", n=1, base_url="https://graph.test/")
        self.assertTrue(url.startswith("https://graph.test/p/posts?"))

    def test_requests_updated_time(self) -> None:
        self.assertIn("updated_time", POST_FIELDS)


class TestPageSize(unittest.TestCase):
    def test_small_counts_request_exactly_n(self) -> None:
        for n in (1, 10, 24, 25):
            self.assertEqual(page_size_for(n), n)

    def test_large_counts_request_max_page(self) -> None:
        for n in (26, 100, 5000):
            self.assertEqual(page_size_for(n), 25)

    def test_custom_max_page_size(self) -> None:
        self.assertEqual(page_size_for(40, max_page_size=10), 10)


if __name__ == "__main__":
    unittest.main()
