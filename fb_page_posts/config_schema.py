from __future__ import annotations

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

_ENV_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_API_VERSION_RE = re.compile(r"^v\d+\.\d+$")


def _validate_env_var_name(value: str) -> str:
    name = (value or "").strip()
    if not _ENV_NAME_RE.fullmatch(name):
        raise ValueError("must be a valid environment variable name")
    return name


def validate_api_version(value: str | None) -> str | None:
    if value is None:
        return None
    v = value.strip()
    if not v:
        return None
    if not _API_VERSION_RE.fullmatch(v):
        raise ValueError("must look like v2.8")
    return v


PositiveInt = Annotated[int, Field(ge=1)]
NonNegativeInt = Annotated[int, Field(ge=0)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]


class GraphConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    token_env: str = "FB_GRAPH_TOKEN"
    base_url: str = "https://graph.facebook.com"
    api_version: str | None = None
    timeout_seconds: float = Field(30.0, gt=0.0)

    @field_validator("token_env")
    @classmethod
    def _token_env_must_be_valid(cls, v: str) -> str:
        return _validate_env_var_name(v)

    @field_validator("api_version")
    @classmethod
    def _api_version_must_be_valid(cls, v: str | None) -> str | None:
        return validate_api_version(v)

    @field_validator("base_url")
    @classmethod
    def _base_url_must_be_http(cls, v: str) -> str:
        url = (v or "").strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return url


class PagingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_page_size: PositiveInt = 25
    page_delay_seconds: NonNegativeFloat = 0.5


class RetrySettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_retries: NonNegativeInt = 3
    backoff_seconds: NonNegativeFloat = 0.5


class ReactionsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    # Graph rejects more than 50 ids per request.
    batch_size: int = Field(50, ge=1, le=50)


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    graph: GraphConfig = Field(default_factory=GraphConfig)
    paging: PagingConfig = Field(default_factory=PagingConfig)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    reactions: ReactionsConfig = Field(default_factory=ReactionsConfig)
