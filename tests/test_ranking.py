from datetime import datetime, timedelta, timezone

import pytest

from headline_ranker.dedup import aggregate
from headline_ranker.models import RawHeadline
from headline_ranker.ranking import (
    cluster_support_score,
    parse_published_at,
    rank_clusters,
    recency_score,
)

NOW = datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)


def _hours_ago(hours):
    return (NOW - timedelta(hours=hours)).isoformat()


def _make_headline(title, source="", published_at="", url="", description=""):
    return RawHeadline(
        title=title, description=description, url=url, source=source, published_at=published_at
    )


# ── Date parsing / recency ──

def test_parse_published_at_formats():
    assert parse_published_at("2025-01-10T06:00:00Z") == datetime(2025, 1, 10, 6, tzinfo=timezone.utc)
    assert parse_published_at("Fri, 10 Jan 2025 06:00:00 GMT") == datetime(2025, 1, 10, 6, tzinfo=timezone.utc)
    assert parse_published_at("Fri, 10 Jan 2025 07:00:00 +0100") == datetime(2025, 1, 10, 6, tzinfo=timezone.utc)
    assert parse_published_at("2025-01-10") == datetime(2025, 1, 10, tzinfo=timezone.utc)


def test_parse_published_at_garbage():
    assert parse_published_at("") is None
    assert parse_published_at("yesterday-ish") is None


def test_recency_score_linear_decay():
    score, age = recency_score(_hours_ago(6), NOW)
    assert age == pytest.approx(6)
    assert score == pytest.approx(1 - 6 / 72)


def test_recency_score_clamps_old_and_future():
    assert recency_score(_hours_ago(100), NOW)[0] == 0.0
    score, age = recency_score(_hours_ago(-5), NOW)
    assert score == 1.0
    assert age == 0.0


def test_recency_score_unparseable():
    assert recency_score("not a date", NOW) == (0.0, None)


# ── Components ──

def test_source_diversity_penalizes_repeated_sources():
    clusters = aggregate(
        [
            _make_headline("Volcano erupts near village", source="A"),
            _make_headline("Senate passes budget bill", source="a "),
            _make_headline("Team wins championship final", source="A"),
            _make_headline("Scientists map coral reef", source="B"),
        ]
    )
    ranked = rank_clusters(clusters, now=NOW)
    by_source = {r.cluster.primary.title: r.ranking for r in ranked}
    assert by_source["Volcano erupts near village"].components.source_diversity == pytest.approx(1 / 3)
    assert by_source["Senate passes budget bill"].details.source_occurrences == 3
    assert by_source["Scientists map coral reef"].components.source_diversity == 1.0


def test_topic_coverage_counts_tokens_unique_to_cluster():
    clusters = aggregate(
        [
            _make_headline("alpha bravo charlie", source="A"),
            _make_headline("alpha delta echo", source="B"),
        ]
    )
    ranked = rank_clusters(clusters, now=NOW)
    for entry in ranked:
        assert entry.ranking.components.topic_coverage == pytest.approx(2 / 3)


def test_topic_coverage_counts_merged_tokens_across_clusters():
    clusters = aggregate(
        [
            _make_headline("Quake shakes capital", source="A", url="https://a.com/q"),
            _make_headline("Quake shakes capital", source="B", url="https://b.com/q", description="rescue teams"),
            _make_headline("Rescue dogs trained", source="C", url="https://c.com/d"),
        ]
    )
    assert len(clusters) == 2
    ranked = rank_clusters(clusters, now=NOW)
    coverage = {r.cluster.primary.title: r.ranking.components.topic_coverage for r in ranked}
    # "rescue" comes from the merged member and is shared with the second cluster
    assert coverage["Quake shakes capital"] == pytest.approx(4 / 5)
    assert coverage["Rescue dogs trained"] == pytest.approx(2 / 3)


def test_cluster_support_single_story_scores_zero():
    clusters = aggregate([_make_headline("Lone report on bridge repairs", source="A")])
    assert cluster_support_score(clusters[0]) == (0.0, 1, 1)


def test_cluster_support_full_score():
    records = [
        _make_headline("Quake shakes capital", source=f"Outlet {i % 5}", url=f"https://n{i}.com/q")
        for i in range(8)
    ]
    clusters = aggregate(records)
    assert len(clusters) == 1
    assert cluster_support_score(clusters[0]) == (1.0, 8, 5)


def test_cluster_support_partial():
    clusters = aggregate(
        [
            _make_headline("Quake shakes capital", source="A", url="https://a.com/q"),
            _make_headline("Quake shakes capital", source="B", url="https://b.com/q"),
        ]
    )
    score, size, sources = cluster_support_score(clusters[0])
    assert (size, sources) == (2, 2)
    assert score == pytest.approx((1 / 7 + 1 / 4) / 2)


# ── Ordering ──

def test_fresh_unique_story_score():
    clusters = aggregate([_make_headline("Comet visible tonight", source="A", published_at=NOW.isoformat())])
    ranking = rank_clusters(clusters, now=NOW)[0].ranking
    assert ranking.score == pytest.approx(0.45 + 0.2 + 0.2)
    assert ranking.reasons == [
        "Published within the last 18 hours",
        "Unique source in this set",
        "Adds distinct topic details",
        "Limited supporting coverage",
    ]


def test_maximum_score_is_sum_of_weights():
    records = [
        _make_headline(
            "Quake shakes capital", source=f"Outlet {i % 5}", url=f"https://n{i}.com/q",
            published_at=NOW.isoformat(),
        )
        for i in range(8)
    ]
    ranking = rank_clusters(aggregate(records), now=NOW)[0].ranking
    assert ranking.components.recency == 1.0
    assert ranking.components.source_diversity == 1.0
    assert ranking.components.topic_coverage == 1.0
    assert ranking.components.cluster_support == 1.0
    assert ranking.score == pytest.approx(1.1)


def test_newer_story_ranks_no_lower():
    older = _make_headline("Harbor expansion approved", source="A", published_at=_hours_ago(40))
    newer = _make_headline("Museum reopens doors", source="B", published_at=_hours_ago(2))
    for order in ([older, newer], [newer, older]):
        ranked = rank_clusters(aggregate(order), now=NOW)
        assert ranked[0].cluster.primary.title == "Museum reopens doors"


def test_ties_break_by_younger_age_then_arrival():
    records = [
        _make_headline("Harbor expansion approved", source="A", published_at=_hours_ago(200)),
        _make_headline("Museum reopens doors", source="B", published_at=_hours_ago(100)),
        _make_headline("Orchard harvest begins", source="C"),
        _make_headline("Glacier retreat measured", source="D"),
    ]
    ranked = rank_clusters(aggregate(records), now=NOW)
    assert [r.cluster.primary.title for r in ranked] == [
        "Museum reopens doors",
        "Harbor expansion approved",
        "Orchard harvest begins",
        "Glacier retreat measured",
    ]


def test_ranking_is_deterministic():
    records = [
        _make_headline("Rail strike called off", source="A", published_at=_hours_ago(3)),
        _make_headline("Rail strike called off!", source="B", published_at=_hours_ago(4)),
        _make_headline("New species of frog found", source="C", published_at=_hours_ago(10)),
        _make_headline("Tech shares slide", source="A", published_at="garbage"),
    ]
    first = [(r.cluster.primary.title, r.ranking.score) for r in rank_clusters(aggregate(records), now=NOW)]
    second = [(r.cluster.primary.title, r.ranking.score) for r in rank_clusters(aggregate(records), now=NOW)]
    assert first == second


def test_reasons_always_between_two_and_four():
    records = [
        _make_headline("Rail strike called off", source="A", published_at=_hours_ago(30)),
        _make_headline("Rail strike called off", source="B"),
        _make_headline("Tech shares slide", source="A", published_at="garbage"),
        _make_headline("Tech rally fades", source="A", published_at=_hours_ago(80)),
    ]
    for entry in rank_clusters(aggregate(records), now=NOW):
        assert 2 <= len(entry.ranking.reasons) <= 4
        assert all(isinstance(r, str) and r for r in entry.ranking.reasons)


def test_unknown_date_reason():
    ranked = rank_clusters(aggregate([_make_headline("Undated story here", source="A")]), now=NOW)
    assert ranked[0].ranking.reasons[0] == "Publication time unknown"
    assert ranked[0].ranking.details.age_hours is None


def test_rank_empty():
    assert rank_clusters([], now=NOW) == []
