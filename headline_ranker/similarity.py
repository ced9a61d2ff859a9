"""Similarity measures used by the near-duplicate classifier."""

from typing import Collection

_WINKLER_PREFIX_MAX = 4
_WINKLER_SCALE = 0.1


def token_overlap_ratio(a: Collection[str], b: Collection[str]) -> float:
    """Shared tokens divided by the size of the smaller set."""
    if not a or not b:
        return 0.0
    smaller, larger = (a, b) if len(a) <= len(b) else (b, a)
    shared = sum(1 for token in smaller if token in larger)
    return shared / len(smaller)


def jaro_winkler(a: str, b: str) -> float:
    """Jaro-Winkler similarity in [0, 1]."""
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    a_len, b_len = len(a), len(b)
    window = max(0, max(a_len, b_len) // 2 - 1)
    a_matched = [False] * a_len
    b_matched = [False] * b_len

    matches = 0
    for i in range(a_len):
        start = max(0, i - window)
        end = min(i + window + 1, b_len)
        for j in range(start, end):
            if b_matched[j] or a[i] != b[j]:
                continue
            a_matched[i] = True
            b_matched[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i in range(a_len):
        if not a_matched[i]:
            continue
        while k < b_len and not b_matched[k]:
            k += 1
        if k >= b_len:
            break
        if a[i] != b[k]:
            transpositions += 1
        k += 1

    m = float(matches)
    jaro = (m / a_len + m / b_len + (m - transpositions / 2) / m) / 3

    prefix = 0
    for ca, cb in zip(a[:_WINKLER_PREFIX_MAX], b[:_WINKLER_PREFIX_MAX]):
        if ca != cb:
            break
        prefix += 1

    return min(1.0, jaro + prefix * _WINKLER_SCALE * (1 - jaro))
