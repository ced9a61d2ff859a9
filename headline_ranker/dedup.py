"""Near-duplicate detection and online clustering of headline records."""

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Union

from .models import Cluster, DedupeOptions, HeadlineCandidate, RawHeadline, RelatedArticle
from .similarity import jaro_winkler, token_overlap_ratio
from .tokens import build_token_set, normalize_text, normalize_url

log = logging.getLogger(__name__)

TOKEN_OVERLAP_THRESHOLD_DEFAULT = 0.7
TOKEN_OVERLAP_THRESHOLD_STRICT = 0.55
STRICT_TITLE_SIMILARITY_THRESHOLD = 0.88

# Anything carrying normalized url/title/description and a token set:
# a HeadlineCandidate or a Cluster.
Comparable = Union[HeadlineCandidate, Cluster]


def overlap_threshold(options: DedupeOptions) -> float:
    return TOKEN_OVERLAP_THRESHOLD_STRICT if options.strict else TOKEN_OVERLAP_THRESHOLD_DEFAULT


def create_candidate(headline: RawHeadline, options: DedupeOptions) -> HeadlineCandidate:
    tokens = build_token_set(headline.title, headline.description, strict=options.strict)
    return HeadlineCandidate(
        data=headline,
        normalized_url=normalize_url(headline.url),
        normalized_title=normalize_text(headline.title),
        normalized_description=normalize_text(headline.description),
        tokens=tuple(tokens),
        token_set=frozenset(tokens),
    )


def is_near_duplicate(a: Comparable, b: Comparable, options: DedupeOptions) -> bool:
    """True when *a* and *b* describe the same story.

    Any one signal is enough: same URL, same title, same description,
    enough shared tokens, or (strict mode) near-identical titles.
    """
    if a.normalized_url and a.normalized_url == b.normalized_url:
        return True
    if a.normalized_title and a.normalized_title == b.normalized_title:
        return True
    if a.normalized_description and a.normalized_description == b.normalized_description:
        return True
    if token_overlap_ratio(a.token_set, b.token_set) >= overlap_threshold(options):
        return True
    if options.strict:
        similarity = jaro_winkler(a.normalized_title, b.normalized_title)
        if similarity >= STRICT_TITLE_SIMILARITY_THRESHOLD:
            return True
    return False


class ClusterAggregator:
    """Folds records, in arrival order, into first-fit clusters."""

    def __init__(self, options: Optional[DedupeOptions] = None):
        self.options = options or DedupeOptions()
        self.clusters: List[Cluster] = []
        self.seen = 0
        self.excluded = 0
        self.merged = 0

    def add(self, headline: RawHeadline) -> bool:
        """Add one record. Returns True only if it started a new cluster."""
        self.seen += 1
        candidate = create_candidate(headline, self.options)

        if candidate.normalized_url and candidate.normalized_url in self.options.excluded_urls:
            self.excluded += 1
            log.debug("Dropped excluded URL %s", candidate.normalized_url)
            return False

        for cluster in self.clusters:
            if is_near_duplicate(cluster, candidate, self.options):
                self._merge(cluster, candidate)
                return False

        self.clusters.append(
            Cluster(
                primary=replace(headline),
                normalized_url=candidate.normalized_url,
                normalized_title=candidate.normalized_title,
                normalized_description=candidate.normalized_description,
                token_set=dict.fromkeys(candidate.tokens),
                index=len(self.clusters),
            )
        )
        return True

    def extend(self, headlines: Iterable[RawHeadline]) -> "ClusterAggregator":
        for headline in headlines:
            self.add(headline)
        return self

    def _merge(self, cluster: Cluster, candidate: HeadlineCandidate) -> None:
        incoming = candidate.data
        primary = cluster.primary

        if candidate.normalized_url and any(
            normalize_url(r.url) == candidate.normalized_url for r in cluster.related
        ):
            log.debug("Already recorded %s under '%s'", incoming.url, primary.title)
            return

        if len(incoming.description) > len(primary.description):
            primary.description = incoming.description
            cluster.normalized_description = candidate.normalized_description
        if incoming.keyword and not primary.keyword:
            primary.keyword = incoming.keyword
        if incoming.query_used and not primary.query_used:
            primary.query_used = incoming.query_used
        if incoming.search_query and not primary.search_query:
            primary.search_query = incoming.search_query

        for token in candidate.tokens:
            cluster.token_set[token] = None

        cluster.related.append(
            RelatedArticle(
                title=incoming.title,
                description=incoming.description,
                url=incoming.url,
                source=incoming.source,
                published_at=incoming.published_at,
            )
        )
        self.merged += 1
        log.debug("Merged '%s' into '%s'", incoming.title, primary.title)


def aggregate(
    headlines: Iterable[RawHeadline],
    options: Optional[DedupeOptions] = None,
) -> List[Cluster]:
    """Cluster *headlines* and return the clusters in creation order."""
    aggregator = ClusterAggregator(options).extend(headlines)
    log.info(
        "Clustered %d records into %d clusters (%d merged, %d excluded)",
        aggregator.seen, len(aggregator.clusters), aggregator.merged, aggregator.excluded,
    )
    return aggregator.clusters
