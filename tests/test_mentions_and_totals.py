from analytics.mentions import MENTION_KEYWORDS, ensure_mention_category, guest_mentions
from analytics.stats import property_lookup
from analytics.totals import aggregate_overview_metrics, aggregate_recent, aggregate_totals
from conftest import make_property, make_review


def test_totals_count_orphaned_reviews():
    reviews = [make_review("a", 5), make_review("a", 3), make_review("ghost", 1)]
    assert aggregate_totals(reviews) == {"totalReviews": 3, "totalProperties": 2}
    assert aggregate_totals([]) == {"totalReviews": 0, "totalProperties": 0}


def test_recent_reviews_newest_first_with_pagination():
    lookup = property_lookup([make_property("a", "Attic", city="Bath")])
    reviews = [
        make_review("a", 5, "2025-01-01T00:00:00Z"),
        make_review("a", 4, "2025-03-01T00:00:00Z"),
        make_review("ghost", 2, "2025-02-01T00:00:00Z"),
    ]
    page_one = aggregate_recent(reviews, lookup, page=1, limit=2)
    assert [row["reviewDate"] for row in page_one["data"]] == ["2025-03-01T00:00:00Z", "2025-02-01T00:00:00Z"]
    assert page_one["data"][0]["property"]["name"] == "Attic"
    assert page_one["data"][1]["property"] == {"id": "ghost", "name": None, "city": None, "country": None}
    assert page_one["pagination"] == {"page": 1, "limit": 2, "total": 3, "hasNext": True}

    page_two = aggregate_recent(reviews, lookup, page="2", limit="2")
    assert len(page_two["data"]) == 1
    assert page_two["pagination"]["hasNext"] is False


def test_recent_reviews_bad_paging_values_fall_back():
    result = aggregate_recent([make_review("a", 5)], {}, page="zero", limit=None)
    assert result["pagination"]["page"] == 1
    assert result["pagination"]["limit"] == 5


def test_unknown_mention_category_defaults_to_cleanliness():
    assert ensure_mention_category("Pets") == "Cleanliness"
    assert ensure_mention_category("noise COMPLAINTS") == "Noise complaints"


def test_guest_mentions_by_city():
    lookup = property_lookup([
        make_property("a", city="London"),
        make_property("b", city="Paris"),
        make_property("c", city=None),
    ])
    reviews = [
        make_review("a", 2, text="Very noisy street"),
        make_review("a", 3, title="Loud neighbours"),
        make_review("b", 4, text="Peaceful courtyard"),
        make_review("b", 5, text="Lovely host"),
        make_review("c", 1, text="So loud"),
        make_review("ghost", 1, text="loud"),
    ]
    result = guest_mentions(reviews, lookup, "Noise complaints")
    assert result["categories"] == list(MENTION_KEYWORDS)
    assert result["selectedCategory"] == "Noise complaints"
    assert result["locationData"] == [{"location": "London", "count": 2}, {"location": "Paris", "count": 1}]


def test_overview_metrics_report_increase():
    current = [make_review("a", 5), make_review("a", 4), make_review("b", 3)]
    previous = [make_review("a", 2)]
    metrics = aggregate_overview_metrics(current, previous, "30d")
    assert metrics["totalReviews"] == {
        "count": 3, "change": 2, "changeType": "increase", "comparisonPeriod": "VS 30D",
    }
    assert metrics["allProperties"] == {
        "count": 2, "change": 1, "changeType": "increase", "comparisonPeriod": "VS 30D",
    }


def test_overview_metrics_report_decrease_as_positive_change():
    current = [make_review("a", 4)]
    previous = [make_review("a", 5), make_review("b", 1), make_review("c", 3)]
    metrics = aggregate_overview_metrics(current, previous, "previous period")
    assert metrics["totalReviews"]["count"] == 1
    assert metrics["totalReviews"]["change"] == 2
    assert metrics["totalReviews"]["changeType"] == "decrease"
    assert metrics["allProperties"] == {
        "count": 1, "change": 2, "changeType": "decrease", "comparisonPeriod": "VS PREVIOUS PERIOD",
    }


def test_overview_metrics_unchanged_counts_as_increase():
    metrics = aggregate_overview_metrics([], [], "7d")
    assert metrics["totalReviews"] == {"count": 0, "change": 0, "changeType": "increase", "comparisonPeriod": "VS 7D"}
