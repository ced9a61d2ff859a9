from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


DEDUPE_MODES = ("default", "strict")


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


@dataclass
class RawHeadline:
    title: str = ""
    description: str = ""
    url: str = ""
    source: str = ""
    published_at: str = ""
    # Provenance tags, passed through but never used for similarity
    keyword: str = ""
    query_used: str = ""
    search_query: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawHeadline":
        """Build a headline from a camelCase or snake_case mapping.

        ``source`` may also be a NewsAPI-style ``{"name": ...}`` object.
        """
        source = data.get("source")
        if isinstance(source, dict):
            source = source.get("name")
        return cls(
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            url=_text(data.get("url")),
            source=_text(source),
            published_at=_text(data.get("publishedAt", data.get("published_at"))),
            keyword=_text(data.get("keyword")),
            query_used=_text(data.get("queryUsed", data.get("query_used"))),
            search_query=_text(data.get("searchQuery", data.get("search_query"))),
        )


@dataclass
class RelatedArticle:
    title: str
    description: str
    url: str
    source: str
    published_at: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "source": self.source,
            "publishedAt": self.published_at,
        }


@dataclass(frozen=True)
class HeadlineCandidate:
    data: RawHeadline
    normalized_url: str
    normalized_title: str
    normalized_description: str
    tokens: Tuple[str, ...]  # order of appearance
    token_set: FrozenSet[str]


@dataclass
class Cluster:
    primary: RawHeadline
    normalized_url: str
    normalized_title: str
    normalized_description: str
    token_set: Dict[str, None]  # insertion-ordered set
    index: int
    related: List[RelatedArticle] = field(default_factory=list)

    @property
    def size(self) -> int:
        return 1 + len(self.related)


@dataclass(frozen=True)
class DedupeOptions:
    mode: str = "default"
    excluded_urls: FrozenSet[str] = frozenset()

    @property
    def strict(self) -> bool:
        return self.mode == "strict"


@dataclass(frozen=True)
class RankingComponents:
    recency: float
    source_diversity: float
    topic_coverage: float
    cluster_support: float


@dataclass(frozen=True)
class RankingDetails:
    age_hours: Optional[float]
    source_occurrences: int
    unique_token_ratio: float
    cluster_size: int
    cluster_unique_sources: int


@dataclass
class RankingMetadata:
    score: float
    components: RankingComponents
    details: RankingDetails
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "components": {
                "recency": self.components.recency,
                "sourceDiversity": self.components.source_diversity,
                "topicCoverage": self.components.topic_coverage,
                "clusterSupport": self.components.cluster_support,
            },
            "details": {
                "ageHours": self.details.age_hours,
                "sourceOccurrences": self.details.source_occurrences,
                "uniqueTokenRatio": self.details.unique_token_ratio,
                "clusterSize": self.details.cluster_size,
                "clusterUniqueSources": self.details.cluster_unique_sources,
            },
            "reasons": list(self.reasons),
        }


@dataclass
class RankedCluster:
    cluster: Cluster
    ranking: RankingMetadata


@dataclass
class RankedHeadline:
    title: str
    description: str
    url: str
    source: str
    published_at: str
    ranking: RankingMetadata
    related_articles: Optional[List[RelatedArticle]] = None
    keyword: str = ""
    query_used: str = ""
    search_query: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "source": self.source,
            "publishedAt": self.published_at,
        }
        if self.keyword:
            out["keyword"] = self.keyword
        if self.query_used:
            out["queryUsed"] = self.query_used
        if self.search_query:
            out["searchQuery"] = self.search_query
        if self.related_articles:
            out["relatedArticles"] = [a.to_dict() for a in self.related_articles]
        out["ranking"] = self.ranking.to_dict()
        return out


@dataclass
class KeywordGroup:
    keyword: str
    query: str
    total_results: int
    headlines: List[RankedHeadline]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "query": self.query,
            "totalResults": self.total_results,
            "headlines": [h.to_dict() for h in self.headlines],
        }
