from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from .errors import TransientApiError


DEFAULT_BASE_URL = "https://graph.facebook.com"

_VERSION_SEGMENT_RE = re.compile(r"^v\d+\.\d+$")
_TOKEN_PARAM_RE = re.compile(r"(access_token=)[^&]*")


@dataclass(frozen=True)
class PageCursor:
    """Opaque pointer to the next page, exactly as the API returned it."""

    url: str

    def __repr__(self) -> str:
        return f"PageCursor(url={redact_token(self.url)!r})"


@dataclass(frozen=True)
class GraphResponse:
    """
    One parsed Graph API response.

    When an error indicator is present the body is never trusted: data is empty
    and there is no next cursor.
    """

    body: Mapping[str, Any] = field(default_factory=dict)
    error_code: str | None = None
    error_msg: str | None = None

    @classmethod
    def failure(cls, code: str | None, message: str | None) -> "GraphResponse":
        return cls(
            body={},
            error_code=code or "unknown_error",
            error_msg=(message or "").strip() or "Graph API request failed",
        )

    @property
    def is_error(self) -> bool:
        return self.error_code is not None or self.error_msg is not None

    @property
    def data(self) -> list[dict[str, Any]]:
        if self.is_error:
            return []
        raw = self.body.get("data")
        if not isinstance(raw, list):
            return []
        return [item for item in raw if isinstance(item, dict)]

    @property
    def next_cursor(self) -> PageCursor | None:
        if self.is_error:
            return None
        paging = self.body.get("paging")
        if not isinstance(paging, Mapping):
            return None
        nxt = paging.get("next")
        if isinstance(nxt, str) and nxt.strip():
            return PageCursor(nxt.strip())
        return None

    def raise_for_error(self) -> None:
        if self.is_error:
            raise TransientApiError(self.error_msg, code=self.error_code)


class Transport(Protocol):
    def invoke(self, url: str, token: str, api_version: str | None = None) -> GraphResponse:
        ...


def redact_token(url: str) -> str:
    return _TOKEN_PARAM_RE.sub(r"\1***", url or "")


def with_api_version(url: str, api_version: str | None) -> str:
    """
    Insert the API version as the first path segment unless the URL already has one.
    """
    version = (api_version or "").strip()
    if not version:
        return url

    parts = urlsplit(url)
    segs = [s for s in (parts.path or "").split("/") if s]
    if segs and _VERSION_SEGMENT_RE.fullmatch(segs[0]):
        return url

    path = "/" + "/".join([version] + segs)
    if (parts.path or "").endswith("/") and segs:
        path += "/"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def with_access_token(url: str, token: str) -> str:
    tok = (token or "").strip()
    if not tok:
        return url

    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    if any(k == "access_token" for k, _ in query):
        return url

    # Leave the original query text untouched; field lists contain characters
    # such as "(" and "," that must reach the API as written.
    sep = "&" if parts.query else ""
    new_query = f"{parts.query}{sep}{urlencode({'access_token': tok})}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, new_query, parts.fragment))


def _error_from_body(body: Any) -> tuple[str | None, str | None] | None:
    if not isinstance(body, Mapping):
        return None
    err = body.get("error")
    if err is None:
        return None
    if isinstance(err, Mapping):
        code = err.get("code")
        message = err.get("message") or err.get("error_user_msg")
        return (str(code) if code is not None else None, str(message) if message else None)
    return None, str(err)


class GraphTransport:
    """
    Thin wrapper around a requests session for Graph API GET calls.

    Never raises for API or network failures; those come back as error-bearing
    GraphResponse objects so the retry layer can handle them uniformly.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout = float(timeout_seconds)

    def invoke(self, url: str, token: str, api_version: str | None = None) -> GraphResponse:
        target = with_access_token(with_api_version(url, api_version), token)

        try:
            resp = self._session.get(target, timeout=self._timeout)
        except requests.RequestException as e:
            return GraphResponse.failure("network_error", f"{type(e).__name__}: {e}")

        try:
            body = resp.json()
        except ValueError:
            text = (resp.text or "").strip()
            return GraphResponse.failure(
                f"http_{resp.status_code}",
                text[:500] or f"Non-JSON response (HTTP {resp.status_code})",
            )

        err = _error_from_body(body)
        if err is not None:
            code, message = err
            return GraphResponse.failure(code or f"http_{resp.status_code}", message)

        if resp.status_code >= 400:
            return GraphResponse.failure(
                f"http_{resp.status_code}", f"Graph API returned HTTP {resp.status_code}"
            )

        if not isinstance(body, Mapping):
            return GraphResponse.failure("bad_response", "Graph API response was not a JSON object")

        return GraphResponse(body=body)

    def close(self) -> None:
        self._session.close()
