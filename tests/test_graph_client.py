from __future__ import annotations

import unittest
from typing import Any

import requests

from fb_page_posts.errors import TransientApiError
from fb_page_posts.graph_client import (
    GraphResponse,
    GraphTransport,
    PageCursor,
    redact_token,
    with_access_token,
    with_api_version,
)


class _FakeResponse:
    def __init__(self, status_code: int, body: Any = None, *, text: str = "") -> None:
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class _FakeSession:
    def __init__(self, result: Any) -> None:
        self._result = result
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def get(self, url: str, *, timeout: float | None = None) -> Any:
        self.calls.append({"url": url, "timeout": timeout})
        if isinstance(self._result, BaseException):
            raise self._result
        return self._result

    def close(self) -> None:
        self.closed = True


class TestGraphResponse(unittest.TestCase):
    def test_data_and_cursor(self) -> None:
        resp = GraphResponse(
            body={"data": [{"id": "1"}, "junk"], "paging": {"next": " https://graph.test/next "}}
        )
        self.assertEqual(resp.data, [{"id": "1"}])
        self.assertEqual(resp.next_cursor, PageCursor("https://graph.test/next"))
        resp.raise_for_error()

    def test_error_hides_body(self) -> None:
        resp = GraphResponse(
            body={"data": [{"id": "1"}], "paging": {"next": "https://graph.test/next"}},
            error_code="190",
            error_msg="Invalid OAuth access token.",
        )
        self.assertTrue(resp.is_error)
        self.assertEqual(resp.data, [])
        self.assertIsNone(resp.next_cursor)
        with self.assertRaises(TransientApiError) as ctx:
            resp.raise_for_error()
        self.assertEqual(ctx.exception.code, "190")
        self.assertEqual(str(ctx.exception), "Invalid OAuth access token.")

    def test_missing_paging_means_no_cursor(self) -> None:
        self.assertIsNone(GraphResponse(body={"data": []}).next_cursor)
        self.assertIsNone(GraphResponse(body={"data": [], "paging": {"previous": "x"}}).next_cursor)

    def test_cursor_repr_masks_token(self) -> None:
        cursor = PageCursor("https://graph.test/next?access_token=secret&after=abc")
        self.assertNotIn("secret", repr(cursor))


class TestUrlHelpers(unittest.TestCase):
    def test_api_version_inserted_after_host(self) -> None:
        self.assertEqual(
            with_api_version("https://graph.facebook.com/page/posts?limit=5", "v2.8"),
            "https://graph.facebook.com/v2.8/page/posts?limit=5",
        )

    def test_existing_version_is_kept(self) -> None:
        url = "https://graph.facebook.com/v3.1/page/posts?after=abc"
        self.assertEqual(with_api_version(url, "v2.8"), url)

    def test_no_version_leaves_url(self) -> None:
        url = "https://graph.facebook.com/page/posts"
        self.assertEqual(with_api_version(url, None), url)

    def test_access_token_appended_once(self) -> None:
        url = "https://graph.facebook.com/page/posts?fields=comments.summary(true),shares"
        self.assertEqual(with_access_token(url, "abc"), url + "&access_token=abc")

        cursor = "https://graph.facebook.com/v2.8/page/posts?access_token=old&after=x"
        self.assertEqual(with_access_token(cursor, "abc"), cursor)

    def test_redact_token(self) -> None:
        self.assertEqual(
            redact_token("https://g/x?a=1&access_token=secret&b=2"),
            "https://g/x?a=1&access_token=***&b=2",
        )


class TestGraphTransport(unittest.TestCase):
    def test_success_returns_body(self) -> None:
        session = _FakeSession(_FakeResponse(200, {"data": [{"id": "1"}]}))
        transport = GraphTransport(session=session, timeout_seconds=5)  # type: ignore[arg-type]

        resp = transport.invoke("https://graph.facebook.com/page/posts?limit=1", "tok", "v2.8")

        self.assertFalse(resp.is_error)
        self.assertEqual(resp.data, [{"id": "1"}])
        self.assertEqual(
            session.calls[0]["url"],
            "https://graph.facebook.com/v2.8/page/posts?limit=1&access_token=tok",
        )
        self.assertEqual(session.calls[0]["timeout"], 5.0)

    def test_graph_error_object_becomes_error_indicator(self) -> None:
        body = {"error": {"message": "(#100) Invalid parameter", "type": "OAuthException", "code": 100}}
        transport = GraphTransport(session=_FakeSession(_FakeResponse(400, body)))  # type: ignore[arg-type]

        resp = transport.invoke("https://graph.facebook.com/page/posts", "tok")

        self.assertEqual(resp.error_code, "100")
        self.assertEqual(resp.error_msg, "(#100) Invalid parameter")

    def test_network_error_becomes_error_indicator(self) -> None:
        session = _FakeSession(requests.ConnectionError("connection reset"))
        transport = GraphTransport(session=session)  # type: ignore[arg-type]

        resp = transport.invoke("https://graph.facebook.com/page/posts", "tok")

        self.assertEqual(resp.error_code, "network_error")
        self.assertIn("connection reset", resp.error_msg or "")

    def test_non_json_body_becomes_error_indicator(self) -> None:
        session = _FakeSession(_FakeResponse(502, None, text="Bad Gateway"))
        transport = GraphTransport(session=session)  # type: ignore[arg-type]

        resp = transport.invoke("https://graph.facebook.com/page/posts", "tok")

        self.assertEqual(resp.error_code, "http_502")
        self.assertEqual(resp.error_msg, "Bad Gateway")

    def test_http_error_without_error_object(self) -> None:
        session = _FakeSession(_FakeResponse(500, {"data": []}))
        transport = GraphTransport(session=session)  # type: ignore[arg-type]

        resp = transport.invoke("https://graph.facebook.com/page/posts", "tok")

        self.assertEqual(resp.error_code, "http_500")

    def test_close_closes_session(self) -> None:
        session = _FakeSession(_FakeResponse(200, {}))
        GraphTransport(session=session).close()  # type: ignore[arg-type]
        self.assertTrue(session.closed)


if __name__ == "__main__":
    unittest.main()
