from __future__ import annotations

from dataclasses import dataclass


POST_COLUMNS = (
    "id",
    "from_id",
    "from_name",
    "message",
    "created_time",
    "type",
    "link",
    "story",
    "comments_count",
    "likes_count",
    "shares_count",
)

REACTION_COLUMNS = (
    "love_count",
    "haha_count",
    "wow_count",
    "sad_count",
    "angry_count",
)


@dataclass(frozen=True)
class PostRecord:
    """One page post, flattened from a Graph post object."""

    id: str
    from_id: str | None = None
    from_name: str | None = None
    message: str | None = None
    created_time: str | None = None
    type: str | None = None
    link: str | None = None
    story: str | None = None
    comments_count: int = 0
    likes_count: int = 0
    shares_count: int = 0

    # Basis for since/until; not part of the returned table.
    updated_time: str | None = None

    @property
    def last_updated(self) -> str | None:
        return self.updated_time or self.created_time
