"""Text and URL normalization plus the comparison token builder."""

import re
from typing import Dict, List
from urllib.parse import urlparse

MAX_TOKEN_COUNT = 64
TOKEN_MIN_LENGTH_DEFAULT = 3
TOKEN_MIN_LENGTH_STRICT = 2

# Order matters: the first suffix that leaves a stem of 3+ chars wins.
STRICT_SUFFIXES = (
    "ations",
    "ation",
    "ments",
    "ment",
    "izing",
    "ingly",
    "ing",
    "ers",
    "er",
    "ied",
    "ies",
    "ed",
    "ly",
    "es",
    "s",
)

_URL_RE = re.compile(r"https?://\S+")
_NON_TOKEN_RE = re.compile(r"[^a-z0-9\s]+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_CONTRACTION_RE = re.compile(r"'(?:s|re|d)$")


def normalize_url(url: str) -> str:
    """Canonical form of a URL for equality checks: scheme://host/path.

    Query string and fragment are dropped. Malformed input falls back to a
    trimmed, lowercased copy of the raw string.
    """
    if not url:
        return ""
    try:
        parsed = urlparse(url.strip())
        host = parsed.hostname
        if not parsed.scheme or not host:
            raise ValueError(url)
        path = parsed.path.rstrip("/")
        return f"{parsed.scheme}://{host}{path}".rstrip("/").lower()
    except ValueError:
        return url.strip().rstrip("/").lower()


def normalize_text(text: str) -> str:
    return _NON_ALNUM_RE.sub(" ", (text or "").lower()).strip()


def token_min_length(strict: bool) -> int:
    return TOKEN_MIN_LENGTH_STRICT if strict else TOKEN_MIN_LENGTH_DEFAULT


def token_variants(token: str, strict: bool) -> List[str]:
    """Return the token plus, in strict mode, its lightly stemmed forms."""
    if not strict:
        return [token]

    base = _CONTRACTION_RE.sub("", token)
    if len(base) > 4 and (base.endswith("ies") or base.endswith("ied")):
        base = base[:-3] + "y"

    stemmed = base
    for suffix in STRICT_SUFFIXES:
        if stemmed.endswith(suffix) and len(stemmed) - len(suffix) >= 3:
            stemmed = stemmed[: -len(suffix)]
            break

    variants = list(dict.fromkeys((token, base, stemmed)))
    return [v for v in variants if v]


def build_token_set(title: str, description: str, strict: bool = False) -> Dict[str, None]:
    """Tokens of title + description, capped at MAX_TOKEN_COUNT.

    Returned as an insertion-ordered dict so the cap keeps the first tokens
    in order of appearance.
    """
    combined = f"{title or ''} {description or ''}".lower()
    combined = _URL_RE.sub(" ", combined)
    combined = _NON_TOKEN_RE.sub(" ", combined)
    min_length = token_min_length(strict)

    tokens: Dict[str, None] = {}
    for raw in combined.split():
        if len(raw) < min_length:
            continue
        for variant in token_variants(raw, strict):
            if len(variant) < min_length:
                continue
            tokens[variant] = None
            if len(tokens) >= MAX_TOKEN_COUNT:
                return tokens
    return tokens
