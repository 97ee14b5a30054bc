from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

import pandas as pd

from .post import POST_COLUMNS, REACTION_COLUMNS, PostRecord


UPDATED_TIME_COLUMN = "updated_time"

_COUNT_COLUMNS = ("comments_count", "likes_count", "shares_count")


def _coerce_str(value: Any) -> str | None:
    if isinstance(value, str):
        s = value.strip()
        return s if s else None
    return None


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, str):
        v = value.strip()
        return v if v else None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


def _coerce_count(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _summary_total(obj: Any) -> int:
    if not isinstance(obj, Mapping):
        return 0
    summary = obj.get("summary")
    if not isinstance(summary, Mapping):
        return 0
    return _coerce_count(summary.get("total_count")) or 0


def post_record_from_graph_item(item: Mapping[str, Any]) -> PostRecord | None:
    """
    Flatten one Graph post object into a PostRecord.

    Returns None for objects without an id; every other field is optional.
    """
    post_id = _coerce_id(item.get("id"))
    if not post_id:
        return None

    author = item.get("from")
    from_id = None
    from_name = None
    if isinstance(author, Mapping):
        from_id = _coerce_id(author.get("id"))
        from_name = _coerce_str(author.get("name"))

    shares = item.get("shares")
    shares_count = 0
    if isinstance(shares, Mapping):
        shares_count = _coerce_count(shares.get("count")) or 0

    return PostRecord(
        id=post_id,
        from_id=from_id,
        from_name=from_name,
        message=_coerce_str(item.get("message")),
        created_time=_coerce_str(item.get("created_time")),
        type=_coerce_str(item.get("type")),
        link=_coerce_str(item.get("link")),
        story=_coerce_str(item.get("story")),
        comments_count=_summary_total(item.get("comments")),
        likes_count=_summary_total(item.get("likes")),
        shares_count=shares_count,
        updated_time=_coerce_str(item.get("updated_time")),
    )


def records_from_page(items: Iterable[Mapping[str, Any]]) -> list[PostRecord]:
    out: list[PostRecord] = []
    for item in items:
        record = post_record_from_graph_item(item)
        if record is not None:
            out.append(record)
    return out


def _frame_columns(*, with_updated: bool, with_reactions: bool) -> list[str]:
    cols = list(POST_COLUMNS)
    if with_reactions:
        cols.extend(REACTION_COLUMNS)
    if with_updated:
        cols.append(UPDATED_TIME_COLUMN)
    return cols


def empty_posts_frame(*, with_reactions: bool = False, with_updated: bool = False) -> pd.DataFrame:
    cols = _frame_columns(with_updated=with_updated, with_reactions=with_reactions)
    frame = pd.DataFrame({c: pd.Series(dtype="object") for c in cols})
    for c in _COUNT_COLUMNS:
        frame[c] = frame[c].astype("int64")
    for c in REACTION_COLUMNS:
        if c in frame.columns:
            frame[c] = frame[c].astype("Int64")
    return frame


def records_to_frame(records: Sequence[PostRecord], *, with_updated: bool = False) -> pd.DataFrame:
    """Build the posts table in record order. updated_time is kept only on request."""
    if not records:
        return empty_posts_frame(with_updated=with_updated)

    cols = _frame_columns(with_updated=with_updated, with_reactions=False)
    rows = [
        {
            "id": r.id,
            "from_id": r.from_id,
            "from_name": r.from_name,
            "message": r.message,
            "created_time": r.created_time,
            "type": r.type,
            "link": r.link,
            "story": r.story,
            "comments_count": r.comments_count,
            "likes_count": r.likes_count,
            "shares_count": r.shares_count,
            UPDATED_TIME_COLUMN: r.last_updated,
        }
        for r in records
    ]
    frame = pd.DataFrame(rows, columns=cols)
    for c in _COUNT_COLUMNS:
        frame[c] = frame[c].astype("int64")
    return frame
