from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Sequence, TextIO

import pandas as pd

from .config import retry_policy
from .config_schema import AppConfig, validate_api_version
from .errors import ExhaustedRetriesError, TimeBoundError
from .graph_client import GraphResponse, GraphTransport, Transport
from .normalize import (
    UPDATED_TIME_COLUMN,
    empty_posts_frame,
    records_from_page,
    records_to_frame,
)
from .post import REACTION_COLUMNS, PostRecord
from .reactions import ReactionsFetcher, ReactionsFn
from .request import build_posts_url
from .retry import RetryEvent, SleepFn, fetch_with_retries
from .run_log import RunLogger
from .timebounds import bound_date, graph_date


class FetchState(str, Enum):
    INIT = "init"
    FETCHING = "fetching"
    ACCUMULATING = "accumulating"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PageQuery:
    """
    Inputs for one page listing.

    since/until bound the last-updated time of a post, not its creation time,
    so old posts that were edited recently can appear.
    """

    page: str
    n: int = 25
    since: str | int | float | None = None
    until: str | int | float | None = None
    feed: bool = False
    reactions: bool = False
    verbose: bool = True
    api_version: str | None = None

    def __post_init__(self) -> None:
        page = (self.page or "").strip()
        if not page:
            raise ValueError("page must be a non-empty string")
        object.__setattr__(self, "page", page)

        if isinstance(self.n, bool) or int(self.n) < 1:
            raise ValueError("n must be a positive integer")
        object.__setattr__(self, "n", int(self.n))

        object.__setattr__(self, "api_version", validate_api_version(self.api_version))


def _min_updated_date(records: Sequence[PostRecord]) -> date | None:
    dates = [d for d in (graph_date(r.last_updated) for r in records) if d is not None]
    return min(dates) if dates else None


def _created_sort_key(values: pd.Series) -> pd.Series:
    return pd.to_datetime(values, utc=True, errors="coerce")


class PagePostsCollector:
    """
    Pages through a Facebook page's posts until the requested count, the end of
    the listing, or the since bound is reached.

    One collector call owns its accumulated pages; a fatal API failure discards
    them and re-raises, so callers never see partial results.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        token: str,
        config: AppConfig | None = None,
        logger: RunLogger | None = None,
        reactions_fetcher: ReactionsFn | None = None,
        sleep_fn: SleepFn | None = None,
        now: pd.Timestamp | None = None,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> None:
        self._transport = transport
        self._token = token
        self._cfg = config or AppConfig()
        self._retry = retry_policy(self._cfg)
        self._logger = logger or RunLogger.memory()
        self._reactions_fetcher = reactions_fetcher
        self._sleep = sleep_fn or time.sleep
        self._now = now
        self._out = out
        self._err = err
        self.state = FetchState.INIT

    def collect(self, query: PageQuery) -> pd.DataFrame:
        self.state = FetchState.INIT
        try:
            return self._collect(query)
        except ExhaustedRetriesError as e:
            self.state = FetchState.FAILED
            self._logger.exception(
                "collect_failed",
                exc=e,
                url=e.url,
                page=query.page,
                code=e.code,
                attempts=e.attempts,
            )
            raise
        except Exception as e:
            self.state = FetchState.FAILED
            self._logger.exception("collect_failed", exc=e, page=query.page)
            raise

    def _collect(self, query: PageQuery) -> pd.DataFrame:
        api_version = query.api_version or self._cfg.graph.api_version
        max_page_size = int(self._cfg.paging.max_page_size)

        url = build_posts_url(
            query.page,
            n=query.n,
            feed=query.feed,
            since=query.since,
            until=query.until,
            base_url=self._cfg.graph.base_url,
            max_page_size=max_page_size,
        )

        self.state = FetchState.FETCHING
        response = self._fetch(url, query, api_version)

        if not response.data:
            print(f"No public posts were found : {query.page}", file=self._err or sys.stderr)
            self._logger.warning("no_public_posts", page=query.page)
            self.state = FetchState.DONE
            return empty_posts_frame(with_reactions=query.reactions)

        self.state = FetchState.ACCUMULATING
        records = records_from_page(response.data)
        pages: list[list[PostRecord]] = [records]
        fetched = len(records)
        self._progress(query, f"{fetched} posts ")

        since_date: date | None = None
        mindate: date | None = None
        if query.since is not None:
            since_date = self._since_date(query)
            if since_date is not None:
                mindate = _min_updated_date(records)

        if query.n > max_page_size:
            while True:
                reason = self._stop_reason(
                    query,
                    fetched=fetched,
                    response=response,
                    since_date=since_date,
                    mindate=mindate,
                )
                if reason is not None:
                    self._logger.info(
                        "pagination_stopped",
                        page=query.page,
                        reason=reason,
                        fetched=fetched,
                        pages=len(pages),
                    )
                    break

                cursor = response.next_cursor
                if cursor is None:
                    break

                self.state = FetchState.FETCHING
                delay = float(self._cfg.paging.page_delay_seconds)
                if delay > 0:
                    self._sleep(delay)
                response = self._fetch(cursor.url, query, api_version)

                self.state = FetchState.ACCUMULATING
                records = records_from_page(response.data)
                pages.append(records)
                fetched += len(records)
                if records:
                    self._progress(query, f"{fetched} posts ")

                if since_date is not None and records:
                    page_min = _min_updated_date(records)
                    if page_min is not None:
                        mindate = page_min

        if query.verbose:
            print("", file=self._out or sys.stdout, flush=True)

        frame = records_to_frame([r for page in pages for r in page], with_updated=True)

        if len(frame) > query.n:
            self._logger.info("posts_trimmed", page=query.page, fetched=len(frame), kept=query.n)
            frame = frame.iloc[: query.n].reset_index(drop=True)

        if since_date is not None:
            frame = self._filter_since(frame, since_date, query)

        frame = frame.drop(columns=[UPDATED_TIME_COLUMN])

        if query.reactions:
            frame = self._with_reactions(frame, query, api_version)

        self.state = FetchState.DONE
        self._logger.info("collect_completed", page=query.page, rows=len(frame), pages=len(pages))
        return frame

    def _stop_reason(
        self,
        query: PageQuery,
        *,
        fetched: int,
        response: GraphResponse,
        since_date: date | None,
        mindate: date | None,
    ) -> str | None:
        if fetched >= query.n:
            return "count_reached"
        if not response.data:
            return "empty_page"
        if response.next_cursor is None:
            return "no_cursor"
        # Pages come newest-updated first: once a page reaches back past `since`,
        # every later page does too.
        if since_date is not None and mindate is not None and mindate < since_date:
            return "time_window"
        return None

    def _since_date(self, query: PageQuery) -> date | None:
        # The API has already applied `since`; without a local date the guard
        # and the date filter are skipped.
        try:
            return bound_date(query.since, now=self._now)
        except TimeBoundError as e:
            self._logger.warning(
                "since_unresolved",
                page=query.page,
                since=str(query.since),
                error=str(e),
            )
            return None

    def _filter_since(self, frame: pd.DataFrame, since_date: date, query: PageQuery) -> pd.DataFrame:
        dates = frame[UPDATED_TIME_COLUMN].map(graph_date)
        mask = pd.Series(
            [d is not None and d >= since_date for d in dates],
            index=frame.index,
            dtype=bool,
        )
        dropped = int((~mask).sum())
        if dropped:
            self._logger.info(
                "posts_filtered_since",
                page=query.page,
                since=str(since_date),
                dropped=dropped,
            )
        return frame[mask].reset_index(drop=True)

    def _with_reactions(
        self, frame: pd.DataFrame, query: PageQuery, api_version: str | None
    ) -> pd.DataFrame:
        if frame.empty:
            out = frame.copy()
            for col in REACTION_COLUMNS:
                out[col] = pd.Series(dtype="Int64")
            return out

        fetcher = self._reactions_fetcher or ReactionsFetcher(
            self._transport,
            token=self._token,
            api_version=api_version,
            base_url=self._cfg.graph.base_url,
            batch_size=int(self._cfg.reactions.batch_size),
            retry=self._retry,
            on_retry=lambda event: self._on_retry(event, query),
            sleep_fn=self._sleep,
        )

        tallies = fetcher(frame["id"].tolist())
        tallies = tallies.reindex(columns=["id", *REACTION_COLUMNS])
        tallies["id"] = tallies["id"].astype(str)
        tallies = tallies.drop_duplicates(subset="id", keep="first")
        self._logger.info("reactions_fetched", page=query.page, posts=len(frame), tallies=len(tallies))

        merged = frame.merge(tallies, on="id", how="left")
        for col in REACTION_COLUMNS:
            merged[col] = pd.to_numeric(merged[col], errors="coerce").astype("Int64")

        return merged.sort_values(
            "created_time", key=_created_sort_key, kind="stable"
        ).reset_index(drop=True)

    def _fetch(self, url: str, query: PageQuery, api_version: str | None) -> GraphResponse:
        self._logger.info("page_fetch_started", url=url, page=query.page)
        response = fetch_with_retries(
            self._transport,
            url,
            token=self._token,
            api_version=api_version,
            policy=self._retry,
            operation=f"graph.{'feed' if query.feed else 'posts'}:{query.page}",
            on_retry=lambda event: self._on_retry(event, query),
            sleep_fn=self._sleep,
            log_url=url,
        )
        self._logger.info(
            "page_fetched",
            url=url,
            page=query.page,
            items=len(response.data),
            has_next=response.next_cursor is not None,
        )
        return response

    def _on_retry(self, event: RetryEvent, query: PageQuery) -> None:
        self._progress(query, "Error!\n")
        self._logger.warning(
            "graph_retry",
            url=event.context_url,
            operation=event.operation,
            failure_attempt=event.failure_attempt,
            max_attempts=event.max_attempts,
            delay_seconds=event.delay_seconds,
            error_code=event.error_code,
            error_message=event.error_message,
        )

    def _progress(self, query: PageQuery, text: str) -> None:
        if query.verbose:
            print(text, end="", file=self._out or sys.stdout, flush=True)


def get_page(
    page: str,
    token: str,
    n: int = 25,
    since: str | int | float | None = None,
    until: str | int | float | None = None,
    feed: bool = False,
    reactions: bool = False,
    verbose: bool = True,
    api: str | None = None,
    *,
    transport: Transport | None = None,
    config: AppConfig | None = None,
    logger: RunLogger | None = None,
    reactions_fetcher: ReactionsFn | None = None,
    sleep_fn: SleepFn | None = None,
) -> pd.DataFrame:
    """
    Return up to n posts from a public page as a DataFrame.

    Rows come in API order (most recently updated first). With reactions=True the
    table gains love/haha/wow/sad/angry counts and is sorted by created_time ascending.
    Raises ExhaustedRetriesError when the API keeps failing.
    """
    cfg = config or AppConfig()
    query = PageQuery(
        page=page,
        n=n,
        since=since,
        until=until,
        feed=feed,
        reactions=reactions,
        verbose=verbose,
        api_version=api,
    )

    owned = transport is None
    tr = transport if transport is not None else GraphTransport(
        timeout_seconds=float(cfg.graph.timeout_seconds)
    )
    try:
        collector = PagePostsCollector(
            tr,
            token=token,
            config=cfg,
            logger=logger,
            reactions_fetcher=reactions_fetcher,
            sleep_fn=sleep_fn,
        )
        return collector.collect(query)
    finally:
        if owned and isinstance(tr, GraphTransport):
            tr.close()
