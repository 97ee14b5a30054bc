from __future__ import annotations

import re
from pathlib import Path

import pandas as pd

from .errors import ExportError


_CSV_FORMULA_PREFIXES = ("=", "+", "@")
_PLAIN_DASH_RE = re.compile(r"-(?:\d|\s|$)")


def _safe_cell(value: object) -> object:
    # Spreadsheet apps evaluate cells that start with a formula prefix.
    # A leading "-" before a number or a space is ordinary text.
    if not isinstance(value, str):
        return value
    if value.startswith(_CSV_FORMULA_PREFIXES):
        return "'" + value
    if value.startswith("-") and not _PLAIN_DASH_RE.match(value):
        return "'" + value
    return value


def export_posts_csv(frame: pd.DataFrame, path: str | Path) -> Path:
    """Write the posts table as UTF-8 CSV, creating parent directories as needed."""
    p = Path(path)

    safe = frame.copy()
    for col in ("message", "story", "from_name"):
        if col in safe.columns:
            safe[col] = safe[col].map(_safe_cell)

    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        safe.to_csv(p, index=False, encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to write posts CSV: {p}: {e}") from e

    return p
