import json
import logging
from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import click

from .assemble import build_responses, ranking_summary, render_digest
from .config import get_settings
from .dedup import ClusterAggregator, aggregate
from .models import DedupeOptions, KeywordGroup, RankedHeadline, RawHeadline
from .options import build_options, headline_matches_keyword
from .ranking import parse_published_at, rank_clusters

log = logging.getLogger(__name__)

Record = Union[RawHeadline, Mapping[str, Any]]


def _coerce_records(records: Iterable[Record]) -> List[RawHeadline]:
    headlines: List[RawHeadline] = []
    for record in records:
        if isinstance(record, RawHeadline):
            headlines.append(record)
        elif isinstance(record, Mapping):
            headlines.append(RawHeadline.from_dict(record))
        else:
            log.warning("Skipping record of unsupported type %s", type(record).__name__)
    return headlines


def _check_limit(limit: int) -> None:
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")


def drop_keyword_mismatches(records: Iterable[Record]) -> List[RawHeadline]:
    """Keep records that carry no keyword or actually mention it."""
    kept: List[RawHeadline] = []
    for headline in _coerce_records(records):
        if headline_matches_keyword(headline.keyword, headline):
            kept.append(headline)
        else:
            log.debug("Dropping '%s': keyword %r not mentioned", headline.title, headline.keyword)
    return kept


def rank_and_deduplicate(
    records: Iterable[Record],
    options: Optional[DedupeOptions] = None,
    limit: int = 5,
    now: Optional[datetime] = None,
) -> List[RankedHeadline]:
    """Cluster near-duplicate records, rank the clusters, return the top *limit*.

    The full pool is ranked before truncation, since source diversity, topic
    coverage and cluster support all depend on every cluster in the run.
    """
    _check_limit(limit)
    clusters = aggregate(_coerce_records(records), options)
    ranked = rank_clusters(clusters, now=now)
    return build_responses(ranked[:limit])


def group_by_keyword(
    records: Iterable[Record],
    options: Optional[DedupeOptions] = None,
    limit: int = 5,
    now: Optional[datetime] = None,
) -> List[KeywordGroup]:
    """Cluster and rank separately for each keyword the records were found by.

    Only records that actually mention their keyword are kept. Groups come
    back in the order their keywords were first seen.
    """
    _check_limit(limit)
    aggregators: Dict[str, ClusterAggregator] = OrderedDict()
    queries: Dict[str, str] = {}

    for headline in _coerce_records(records):
        keyword = headline.keyword.strip()
        if not keyword or not headline_matches_keyword(keyword, headline):
            continue
        if keyword not in aggregators:
            aggregators[keyword] = ClusterAggregator(options)
            queries[keyword] = headline.query_used or headline.search_query or keyword
        aggregators[keyword].add(headline)

    groups: List[KeywordGroup] = []
    for keyword, aggregator in aggregators.items():
        if not aggregator.clusters:
            continue
        ranked = rank_clusters(aggregator.clusters, now=now)
        groups.append(
            KeywordGroup(
                keyword=keyword,
                query=queries[keyword],
                total_results=len(aggregator.clusters),
                headlines=build_responses(ranked[:limit]),
            )
        )
    return groups


def rank_headlines_payload(
    records: Iterable[Record],
    options: Optional[DedupeOptions] = None,
    limit: int = 5,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """JSON-ready response: ranked headlines plus ranking and keyword summaries."""
    _check_limit(limit)
    headlines = drop_keyword_mismatches(records)
    clusters = aggregate(headlines, options)
    ranked = rank_clusters(clusters, now=now)

    payload: Dict[str, Any] = {
        "headlines": [h.to_dict() for h in build_responses(ranked[:limit])],
        "totalResults": len(clusters),
    }
    if ranked:
        payload["ranking"] = ranking_summary(len(ranked))

    groups = group_by_keyword(headlines, options, limit=limit, now=now)
    if groups:
        payload["keywordHeadlines"] = [g.to_dict() for g in groups]
    return payload


def load_records(raw: Any) -> List[Any]:
    """Accept either a bare list of records or an object with a ``headlines`` list."""
    if isinstance(raw, Mapping):
        raw = raw.get("headlines")
    if not isinstance(raw, list):
        raise ValueError("Input must be a JSON list of headlines or an object with a 'headlines' list")
    return raw


@click.command()
@click.argument("input_file", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--mode", type=click.Choice(["default", "strict"]), default=None, help="Dedupe strictness.")
@click.option("--limit", type=int, default=None, help="Maximum headlines to output.")
@click.option("--exclude", "exclude_urls", multiple=True, help="URL to drop (repeatable).")
@click.option("--format", "output_format", default="json", type=click.Choice(["json", "markdown"]), help="Output format.")
@click.option("--now", "now_str", default=None, help="Reference time (ISO-8601) for recency scoring.")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging.")
def main(input_file, mode, limit, exclude_urls, output_format, now_str, verbose):
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    limit = settings.default_limit if limit is None else limit
    if limit < 0:
        raise click.BadParameter("must be non-negative", param_hint="--limit")

    now = None
    if now_str:
        now = parse_published_at(now_str)
        if now is None:
            raise click.BadParameter(f"could not parse {now_str!r}", param_hint="--now")

    try:
        records = load_records(json.load(input_file))
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Invalid JSON input: {exc}")
    except ValueError as exc:
        raise click.ClickException(str(exc))

    options = build_options(mode or settings.default_mode, list(exclude_urls))

    if output_format == "markdown":
        headlines = rank_and_deduplicate(drop_keyword_mismatches(records), options, limit=limit, now=now)
        run_date = now.date().isoformat() if now else None
        click.echo(render_digest(headlines, run_date=run_date))
    else:
        payload = rank_headlines_payload(records, options, limit=limit, now=now)
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
