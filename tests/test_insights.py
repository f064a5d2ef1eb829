from datetime import datetime, timezone

from analytics.buckets import aggregate_types
from analytics.insights import (
    EMPTY_BAD_BLURB,
    EMPTY_GOOD_BLURB,
    FALLBACK_BAD_BLURB,
    aggregate_insights,
    chart_summary,
)
from analytics.stats import property_lookup
from conftest import make_property, make_review


def _insights(reviews, properties):
    return aggregate_insights(reviews, property_lookup(properties), aggregate_types(reviews, "month"))


def test_empty_reviews_give_placeholders():
    assert aggregate_insights([], {}, aggregate_types([], "month")) == {
        "goodBlurb": EMPTY_GOOD_BLURB,
        "badBlurb": EMPTY_BAD_BLURB,
        "goodPct": 0,
        "badPct": 0,
        "links": [],
    }


def test_location_framed_blurbs():
    properties = [
        make_property("a", "Sunny Flat", city="Lisbon"),
        make_property("b", "Dark Room", city="Leeds"),
    ]
    reviews = [
        make_review("a", 5), make_review("a", 5), make_review("a", 4),
        make_review("b", 1), make_review("b", 2), make_review("b", 3),
    ]
    result = _insights(reviews, properties)
    assert result["goodBlurb"] == "Locations like Lisbon get consistently good reviews"
    assert result["badBlurb"] == "Leeds properties have frequent bad reviews lately"
    assert result["goodPct"] == 0.5
    assert result["badPct"] == 0.33
    assert result["links"] == [
        {"label": "See positive reviews for Sunny Flat", "href": "/drilldown/reviews?propertyId=a&kind=good", "kind": "good"},
        {"label": "See issues for Dark Room", "href": "/drilldown/reviews?propertyId=b&kind=bad", "kind": "bad"},
    ]


def test_property_framed_blurbs_when_city_signal_is_weak():
    properties = [make_property("a", "Canal House", city="Utrecht")]
    # 2 of 4 good, 1 of 4 bad: below both location thresholds
    reviews = [make_review("a", r) for r in (5, 4, 3, 2)]
    result = _insights(reviews, properties)
    assert result["goodBlurb"] == "Guests love Canal House (3.5★ avg)."
    assert result["badBlurb"] == "Canal House is trending down with 3.5★."


def test_cities_below_minimum_reviews_are_ignored():
    properties = [make_property("a", "Lone Cabin", city="Oslo")]
    result = _insights([make_review("a", 5)], properties)
    assert result["goodBlurb"] == "Guests love Lone Cabin (5.0★ avg)."


def test_only_orphaned_reviews_fall_back_to_generic_text():
    result = _insights([make_review("ghost", 1), make_review("ghost", 2)], [])
    assert result["badBlurb"] == FALLBACK_BAD_BLURB
    assert result["links"] == []


def test_chart_summary_reads_neutral_when_most_reviews_are_neutral():
    reviews = [
        make_review("a", 3, "2025-03-01T00:00:00Z"),
        make_review("a", 3, "2025-02-10T00:00:00Z"),
        make_review("a", 5, "2025-03-05T00:00:00Z"),
    ]
    assert chart_summary(reviews, "London") == {
        "text": "Consistently neutral reviews over the last 3 months for properties in London",
        "location": "London",
        "period": "last 3 months",
    }


def test_chart_summary_is_mixed_at_exactly_half_neutral():
    reviews = [make_review("a", 3, "2025-03-01T00:00:00Z"), make_review("a", 1, "2025-03-02T00:00:00Z")]
    assert chart_summary(reviews)["text"] == (
        "Mixed review sentiment over the last 3 months for properties in all locations"
    )


def test_chart_summary_ignores_months_before_the_window():
    reviews = [make_review("a", 3, f"2025-01-0{day}T00:00:00Z") for day in (1, 2, 3)]
    reviews.append(make_review("a", 5, "2025-05-01T00:00:00Z"))
    summary = chart_summary(reviews, "Paris", as_of=datetime(2025, 6, 15, tzinfo=timezone.utc))
    assert summary["text"].startswith("Mixed review sentiment")


def test_chart_summary_window_crosses_the_year():
    reviews = [
        make_review("a", 3, "2024-11-20T00:00:00Z"),
        make_review("a", 3, "2024-12-01T00:00:00Z"),
        make_review("a", 5, "2025-01-05T00:00:00Z"),
    ]
    summary = chart_summary(reviews, as_of=datetime(2025, 1, 10, tzinfo=timezone.utc))
    assert summary["text"].startswith("Consistently neutral reviews")


def test_chart_summary_without_reviews():
    assert chart_summary([]) == {
        "text": "Mixed review sentiment over the last 3 months for properties in all locations",
        "location": "all locations",
        "period": "last 3 months",
    }
