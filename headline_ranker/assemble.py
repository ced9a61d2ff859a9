from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import RankedCluster, RankedHeadline, RelatedArticle
from .ranking import CLUSTER_WEIGHT, RECENCY_WEIGHT, SOURCE_WEIGHT, TOPIC_WEIGHT


TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

RANKING_EXPLANATIONS = {
    "recency": "Newer stories score higher, decaying to zero at 72 hours.",
    "sourceDiversity": "Penalizes outlets that lead several headlines in the same set.",
    "topicCoverage": "Rewards headlines whose vocabulary is not repeated elsewhere.",
    "clusterSupport": "Boosts headlines that are supported by multiple related articles and unique sources.",
}


def build_responses(ranked: Sequence[RankedCluster]) -> List[RankedHeadline]:
    """Project ranked clusters into the outward headline shape."""
    responses: List[RankedHeadline] = []
    for entry in ranked:
        primary = entry.cluster.primary
        related = [
            RelatedArticle(
                title=a.title,
                description=a.description,
                url=a.url,
                source=a.source,
                published_at=a.published_at,
            )
            for a in entry.cluster.related
        ]
        responses.append(
            RankedHeadline(
                title=primary.title,
                description=primary.description,
                url=primary.url,
                source=primary.source,
                published_at=primary.published_at,
                ranking=entry.ranking,
                related_articles=related or None,
                keyword=primary.keyword,
                query_used=primary.query_used,
                search_query=primary.search_query,
            )
        )
    return responses


def ranking_summary(total_ranked: int) -> Dict[str, Any]:
    return {
        "totalRanked": total_ranked,
        "weights": {
            "recency": RECENCY_WEIGHT,
            "sourceDiversity": SOURCE_WEIGHT,
            "topicCoverage": TOPIC_WEIGHT,
            "clusterSupport": CLUSTER_WEIGHT,
        },
        "explanations": dict(RANKING_EXPLANATIONS),
    }


def _get_env() -> Environment:
    loader = FileSystemLoader(str(TEMPLATE_DIR))
    env = Environment(
        loader=loader,
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    return env


def render_digest(
    headlines: Sequence[RankedHeadline],
    run_date: Optional[str] = None,
    title: str = "Top Headlines",
) -> str:
    """Render ranked headlines as a Markdown digest."""
    env = _get_env()
    template = env.get_template("digest.md.j2")
    return template.render(
        title=title,
        run_date=run_date or date.today().isoformat(),
        headlines=headlines,
    )
