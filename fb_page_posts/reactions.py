from __future__ import annotations

from typing import Any, Callable, Iterator, Mapping, Sequence

import pandas as pd

from .graph_client import DEFAULT_BASE_URL, Transport
from .post import REACTION_COLUMNS
from .retry import OnRetryFn, RetryPolicy, SleepFn, fetch_with_retries


REACTION_TYPES = ("love", "haha", "wow", "sad", "angry")

ReactionsFn = Callable[[Sequence[str]], pd.DataFrame]


def _chunked(values: Sequence[str], size: int) -> Iterator[list[str]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")

    batch: list[str] = []
    for item in values:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def _normalize_ids(post_ids: Sequence[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for raw in post_ids:
        pid = str(raw or "").strip()
        if not pid or pid in seen:
            continue
        seen.add(pid)
        out.append(pid)
    return out


def build_reactions_url(post_ids: Sequence[str], *, base_url: str = DEFAULT_BASE_URL) -> str:
    fields = ",".join(
        f"reactions.type({name.upper()}).limit(0).summary(total_count).as({name})"
        for name in REACTION_TYPES
    )
    return f"{base_url.rstrip('/')}/?ids={','.join(post_ids)}&fields={fields}"


def _reaction_total(obj: Any) -> int | None:
    if not isinstance(obj, Mapping):
        return None
    summary = obj.get("summary")
    if not isinstance(summary, Mapping):
        return None
    total = summary.get("total_count")
    if isinstance(total, int) and not isinstance(total, bool):
        return total
    return None


def empty_reactions_frame() -> pd.DataFrame:
    frame = pd.DataFrame({"id": pd.Series(dtype="object")})
    for col in REACTION_COLUMNS:
        frame[col] = pd.Series(dtype="Int64")
    return frame


class ReactionsFetcher:
    """
    Fetch love/haha/wow/sad/angry totals for a set of post ids.

    Ids are queried in batches through the `ids` endpoint; posts the API does
    not return are simply absent from the result.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        token: str,
        api_version: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        batch_size: int = 50,
        retry: RetryPolicy | None = None,
        on_retry: OnRetryFn | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._transport = transport
        self._token = token
        self._api_version = api_version
        self._base_url = base_url
        self._batch_size = int(batch_size)
        self._retry = retry or RetryPolicy()
        self._on_retry = on_retry
        self._sleep_fn = sleep_fn

    def __call__(self, post_ids: Sequence[str]) -> pd.DataFrame:
        return self.fetch(post_ids)

    def fetch(self, post_ids: Sequence[str]) -> pd.DataFrame:
        ids = _normalize_ids(post_ids)
        if not ids:
            return empty_reactions_frame()

        rows: list[dict[str, Any]] = []
        for batch in _chunked(ids, self._batch_size):
            url = build_reactions_url(batch, base_url=self._base_url)
            response = fetch_with_retries(
                self._transport,
                url,
                token=self._token,
                api_version=self._api_version,
                policy=self._retry,
                operation="graph.reactions",
                on_retry=self._on_retry,
                sleep_fn=self._sleep_fn,
                log_url=url,
            )

            for pid in batch:
                obj = response.body.get(pid)
                if not isinstance(obj, Mapping):
                    continue
                row: dict[str, Any] = {"id": pid}
                for name in REACTION_TYPES:
                    row[f"{name}_count"] = _reaction_total(obj.get(name))
                rows.append(row)

        if not rows:
            return empty_reactions_frame()

        frame = pd.DataFrame(rows, columns=["id", *REACTION_COLUMNS])
        for col in REACTION_COLUMNS:
            frame[col] = pd.to_numeric(frame[col], errors="coerce").astype("Int64")
        return frame
