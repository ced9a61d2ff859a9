"""Validation of caller-supplied run options.

These helpers run before the engine; they are the only place bad input is
rejected with an exception.
"""

import math
import re
from typing import Any, Iterable, List, Optional

from .models import DEDUPE_MODES, DedupeOptions, RawHeadline
from .tokens import normalize_url

MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_LIMIT = 5
MAX_EXCLUDE_URLS = 200

_URL_LIST_SPLIT_RE = re.compile(r"[\r\n,;]+")


def resolve_limit(raw: Any, default: int = DEFAULT_LIMIT) -> int:
    """Coerce a requested limit into [MIN_LIMIT, MAX_LIMIT].

    Accepts numbers and numeric strings; anything else yields *default*.
    """
    numeric: Optional[float] = None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        numeric = raw
    elif isinstance(raw, str):
        # leading integer only, e.g. "10 items" -> 10
        match = re.match(r"\s*([+-]?\d+)", raw)
        if match:
            numeric = int(match.group(1))

    if numeric is None or not math.isfinite(numeric):
        return default
    return min(MAX_LIMIT, max(MIN_LIMIT, int(numeric)))


def parse_dedupe_mode(raw: Any) -> str:
    if raw is None:
        return "default"
    if not isinstance(raw, str):
        raise ValueError("dedupeMode must be a string value")
    mode = raw.strip().lower()
    if not mode:
        return "default"
    if mode not in DEDUPE_MODES:
        raise ValueError(f"Unsupported dedupeMode value: {raw}")
    return mode


def parse_excluded_urls(raw: Any) -> List[str]:
    """Normalize a list (or delimited string) of URLs to skip."""
    if raw is None:
        return []
    if isinstance(raw, str):
        entries: Iterable[Any] = _URL_LIST_SPLIT_RE.split(raw)
    elif isinstance(raw, (list, tuple, set, frozenset)):
        entries = raw
    else:
        raise ValueError("excludeUrls must be provided as an array or string list of URLs")

    normalized: List[str] = []
    seen = set()
    for entry in entries:
        if not isinstance(entry, str) or not entry.strip():
            continue
        url = normalize_url(entry.strip())
        if not url or url in seen:
            continue
        seen.add(url)
        normalized.append(url)
        if len(normalized) >= MAX_EXCLUDE_URLS:
            break
    return normalized


def build_options(mode: Any = None, excluded_urls: Any = None) -> DedupeOptions:
    return DedupeOptions(
        mode=parse_dedupe_mode(mode),
        excluded_urls=frozenset(parse_excluded_urls(excluded_urls)),
    )


def headline_matches_keyword(keyword: str, headline: RawHeadline) -> bool:
    """Case-insensitive substring match on title or description."""
    needle = (keyword or "").strip().lower()
    if not needle:
        return True
    return needle in headline.title.lower() or needle in headline.description.lower()
