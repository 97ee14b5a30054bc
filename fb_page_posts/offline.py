from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import pandas as pd

from .errors import TimeBoundError
from .graph_client import GraphResponse
from .timebounds import parse_graph_time, resolve_time_bound


_OFFLINE_PAGE_ID = "1000"
_OFFLINE_PAGE_NAME = "Offline Page"
_GRAPH_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S+0000"

_OFFLINE_MESSAGES = (
    "Opening hours change next week, see the pinned post for details.",
    "Thanks to everyone who joined the meetup on Saturday.",
    "New photos from the community garden are up.",
    "Reminder: the survey closes on Friday.",
)


def _make_posts(total: int, *, newest: pd.Timestamp, step_hours: int) -> list[dict[str, Any]]:
    posts: list[dict[str, Any]] = []
    for i in range(total):
        created = newest - pd.Timedelta(hours=step_hours * i)
        updated = created + pd.Timedelta(hours=1)
        post: dict[str, Any] = {
            "id": f"{_OFFLINE_PAGE_ID}_{i + 1}",
            "from": {"name": _OFFLINE_PAGE_NAME, "id": _OFFLINE_PAGE_ID},
            "message": _OFFLINE_MESSAGES[i % len(_OFFLINE_MESSAGES)],
            "created_time": created.strftime(_GRAPH_TIME_FORMAT),
            "updated_time": updated.strftime(_GRAPH_TIME_FORMAT),
            "type": "photo" if i % 3 == 0 else "status",
            "link": f"https://www.facebook.com/{_OFFLINE_PAGE_ID}/posts/{i + 1}",
            "comments": {"data": [], "summary": {"total_count": i % 7}},
            "likes": {"data": [], "summary": {"total_count": (i * 3) % 50}},
        }
        if i % 4:
            post["shares"] = {"count": i % 4}
        posts.append(post)
    return posts


def _reaction_block(total: int) -> dict[str, Any]:
    return {"data": [], "summary": {"total_count": total}}


class OfflineGraphTransport:
    """
    In-memory stand-in for the Graph API listing and reactions endpoints.

    Posts are ordered most recently updated first and paged with offset cursors.
    The first `fail_first` calls return an API error.
    """

    def __init__(
        self,
        *,
        total_posts: int = 60,
        newest: str = "2025-01-31T12:00:00+0000",
        step_hours: int = 12,
        fail_first: int = 0,
    ) -> None:
        ts = parse_graph_time(newest)
        if ts is None:
            raise ValueError(f"Invalid newest timestamp: {newest!r}")
        self.posts = _make_posts(int(total_posts), newest=ts, step_hours=int(step_hours))
        self.calls: list[str] = []
        self._failures_left = int(fail_first)

    def invoke(self, url: str, token: str, api_version: str | None = None) -> GraphResponse:
        self.calls.append(url)

        if self._failures_left > 0:
            self._failures_left -= 1
            return GraphResponse.failure("1", "An unknown error has occurred.")

        parts = urlsplit(url)
        params = dict(parse_qsl(parts.query, keep_blank_values=True))

        if "ids" in params:
            return GraphResponse(body=self._reactions_body(params["ids"]))

        try:
            visible = self._window(params.get("since"), params.get("until"))
        except TimeBoundError as e:
            return GraphResponse.failure("100", f"(#100) Invalid time bound: {e}")

        limit = int(params.get("limit") or 25)
        offset = int(params.get("offset") or 0)
        chunk = visible[offset : offset + limit]

        body: dict[str, Any] = {"data": chunk}
        if chunk and offset + limit < len(visible):
            next_params = dict(params)
            next_params["offset"] = str(offset + limit)
            next_url = urlunsplit(
                (parts.scheme, parts.netloc, parts.path, urlencode(next_params), "")
            )
            body["paging"] = {"next": next_url}
        return GraphResponse(body=body)

    def _window(self, since: str | None, until: str | None) -> list[dict[str, Any]]:
        lo = resolve_time_bound(since) if since else None
        hi = resolve_time_bound(until) if until else None

        out: list[dict[str, Any]] = []
        for post in self.posts:
            updated = parse_graph_time(post["updated_time"])
            if lo is not None and updated is not None and updated < lo:
                continue
            if hi is not None and updated is not None and updated > hi:
                continue
            out.append(post)
        return out

    def _reactions_body(self, ids: str) -> dict[str, Any]:
        known = {p["id"] for p in self.posts}
        body: dict[str, Any] = {}
        for n, pid in enumerate(i for i in ids.split(",") if i):
            if pid not in known:
                continue
            body[pid] = {
                "id": pid,
                "love": _reaction_block(n % 5),
                "haha": _reaction_block(n % 3),
                "wow": _reaction_block(n % 2),
                "sad": _reaction_block(0),
                "angry": _reaction_block(1 if n % 4 == 3 else 0),
            }
        return body
