"""Explainable ranking of headline clusters.

Every cluster gets four components in [0, 1], combined as a weighted sum:

- recency: linear decay to zero at 72 hours old
- source diversity: 1 / number of clusters led by the same source
- topic coverage: share of the cluster's tokens not seen in any other cluster
- cluster support: corroboration by related articles and distinct outlets

Scores are computed only from the clusters of the current run.
"""

import logging
import math
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from .models import Cluster, RankedCluster, RankingComponents, RankingDetails, RankingMetadata

log = logging.getLogger(__name__)

RECENCY_WEIGHT = 0.45
SOURCE_WEIGHT = 0.2
TOPIC_WEIGHT = 0.2
CLUSTER_WEIGHT = 0.25

RECENCY_MAX_HOURS = 72.0
CLUSTER_SIZE_FULL_SCORE = 8
CLUSTER_SOURCES_FULL_SCORE = 5

_UNKNOWN_SOURCE = "unknown"

# RSS / email style dates that fromisoformat() does not understand
_DATE_FORMATS = (
    "%a, %d %b %Y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%a, %d %b %Y %H:%M:%S",
    "%d %b %Y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M %z",
)


def parse_published_at(value: str) -> Optional[datetime]:
    """Best-effort parse of a published timestamp into an aware UTC datetime."""
    if not value or not value.strip():
        return None
    text = value.strip()
    parsed = None
    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def source_key(source: str) -> str:
    return (source or "").strip().lower() or _UNKNOWN_SOURCE


def recency_score(published_at: str, now: datetime) -> Tuple[float, Optional[float]]:
    """Return (score, age in hours). Unparsable dates score 0 with no age."""
    published = parse_published_at(published_at)
    if published is None:
        return 0.0, None
    age_hours = max(0.0, (now - published).total_seconds() / 3600)
    clamped = min(age_hours, RECENCY_MAX_HOURS)
    return 1.0 - clamped / RECENCY_MAX_HOURS, age_hours


def source_diversity_score(occurrences: int) -> float:
    if occurrences <= 0:
        return 0.0
    return 1.0 / occurrences


def topic_coverage_score(tokens: Sequence[str], frequency: Counter) -> float:
    if not tokens:
        return 0.0
    rare = sum(1 for token in tokens if frequency.get(token, 0) <= 1)
    return rare / len(tokens)


def _normalize_count(count: int, full_score: int) -> float:
    if full_score <= 1:
        return 1.0 if count > 1 else 0.0
    return min(1.0, (count - 1) / (full_score - 1))


def cluster_support_score(cluster: Cluster) -> Tuple[float, int, int]:
    """Return (score, cluster size, distinct sources in the cluster)."""
    size = cluster.size
    sources = {source_key(cluster.primary.source)}
    sources.update(source_key(article.source) for article in cluster.related)
    score = (
        _normalize_count(size, CLUSTER_SIZE_FULL_SCORE)
        + _normalize_count(len(sources), CLUSTER_SOURCES_FULL_SCORE)
    ) / 2
    return min(1.0, score), size, len(sources)


def build_reasons(ranking: RankingMetadata) -> List[str]:
    """Short human-readable explanation of a ranking. Never affects order."""
    c = ranking.components
    reasons: List[str] = []

    if ranking.details.age_hours is None:
        reasons.append("Publication time unknown")
    elif c.recency >= 0.75:
        reasons.append("Published within the last 18 hours")
    elif c.recency >= 0.5:
        reasons.append("Published recently")
    elif c.recency > 0.1:
        reasons.append("Published in the last few days")
    else:
        reasons.append("Older coverage")

    if c.source_diversity >= 0.75:
        reasons.append("Unique source in this set")
    elif c.source_diversity <= 0.25:
        reasons.append("Source appears multiple times")

    if c.topic_coverage >= 0.6:
        reasons.append("Adds distinct topic details")
    elif c.topic_coverage <= 0.2:
        reasons.append("Overlaps heavily with other articles")

    if c.cluster_support >= 0.6:
        reasons.append("Covered by many outlets")
    elif c.cluster_support >= 0.3:
        reasons.append("Multiple supporting reports")
    elif ranking.details.cluster_size <= 1:
        reasons.append("Limited supporting coverage")
    else:
        reasons.append("Some supporting coverage")

    return reasons


def score_cluster(
    cluster: Cluster,
    source_frequency: Counter,
    token_frequency: Counter,
    now: datetime,
) -> RankingMetadata:
    occurrences = source_frequency.get(source_key(cluster.primary.source), 1)
    recency, age_hours = recency_score(cluster.primary.published_at, now)
    diversity = source_diversity_score(occurrences)
    coverage = topic_coverage_score(list(cluster.token_set), token_frequency)
    support, size, unique_sources = cluster_support_score(cluster)

    score = (
        recency * RECENCY_WEIGHT
        + diversity * SOURCE_WEIGHT
        + coverage * TOPIC_WEIGHT
        + support * CLUSTER_WEIGHT
    )
    ranking = RankingMetadata(
        score=score,
        components=RankingComponents(
            recency=recency,
            source_diversity=diversity,
            topic_coverage=coverage,
            cluster_support=support,
        ),
        details=RankingDetails(
            age_hours=age_hours,
            source_occurrences=occurrences,
            unique_token_ratio=coverage,
            cluster_size=size,
            cluster_unique_sources=unique_sources,
        ),
    )
    ranking.reasons = build_reasons(ranking)
    return ranking


def rank_clusters(clusters: Sequence[Cluster], now: Optional[datetime] = None) -> List[RankedCluster]:
    """Score every cluster and return them best first.

    Ties fall back to the younger story, then to arrival order.
    """
    if not clusters:
        return []
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    source_frequency = Counter(source_key(c.primary.source) for c in clusters)
    token_frequency: Counter = Counter()
    for cluster in clusters:
        token_frequency.update(cluster.token_set.keys())

    scored = [
        (position, RankedCluster(cluster, score_cluster(cluster, source_frequency, token_frequency, now)))
        for position, cluster in enumerate(clusters)
    ]

    def order(item: Tuple[int, RankedCluster]) -> Tuple[float, float, int]:
        position, ranked = item
        age = ranked.ranking.details.age_hours
        return (-ranked.ranking.score, math.inf if age is None else age, position)

    scored.sort(key=order)
    log.info("Ranked %d clusters", len(scored))
    return [ranked for _, ranked in scored]
