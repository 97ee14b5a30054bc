from __future__ import annotations

from .collector import FetchState, PagePostsCollector, PageQuery, get_page
from .config import config_sha256, load_config, resolve_runtime_secrets
from .config_schema import AppConfig
from .errors import (
    ConfigError,
    ExhaustedRetriesError,
    GraphApiError,
    TimeBoundError,
    TransientApiError,
)
from .graph_client import GraphResponse, GraphTransport, PageCursor

__all__ = [
    "AppConfig",
    "ConfigError",
    "ExhaustedRetriesError",
    "FetchState",
    "GraphApiError",
    "GraphResponse",
    "GraphTransport",
    "PageCursor",
    "PagePostsCollector",
    "PageQuery",
    "TimeBoundError",
    "TransientApiError",
    "config_sha256",
    "get_page",
    "load_config",
    "resolve_runtime_secrets",
]
