from __future__ import annotations

from .graph_client import DEFAULT_BASE_URL

MAX_PAGE_SIZE = 25

POST_FIELDS = (
    "from",
    "message",
    "created_time",
    "updated_time",
    "type",
    "link",
    "story",
    "comments.summary(true)",
    "likes.summary(true)",
    "shares",
)


def page_size_for(n: int, *, max_page_size: int = MAX_PAGE_SIZE) -> int:
    """Small requests ask for exactly n rows; larger ones page at max_page_size."""
    if n <= max_page_size:
        return int(n)
    return int(max_page_size)


def build_posts_url(
    page: str,
    *,
    n: int,
    feed: bool = False,
    since: str | int | float | None = None,
    until: str | int | float | None = None,
    base_url: str = DEFAULT_BASE_URL,
    max_page_size: int = MAX_PAGE_SIZE,
    fields: tuple[str, ...] = POST_FIELDS,
) -> str:
    """
    Build the first listing URL for a page.

    since/until are appended verbatim; a value the API cannot parse comes back
    as an API error through the transport.
    """
    edge = "feed" if feed else "posts"
    url = f"{base_url.rstrip('/')}/{page}/{edge}?fields={','.join(fields)}"

    if until is not None:
        url += f"&until={until}"
    if since is not None:
        url += f"&since={since}"

    url += f"&limit={page_size_for(n, max_page_size=max_page_size)}"
    return url
