from datetime import datetime, timezone

import pytest

from analytics.errors import StayLengthUnavailable
from analytics.ranking import PropertyListQuery
from analytics.service import AnalyticsService
from conftest import FakeStore


@pytest.fixture
def service(portfolio, config):
    return AnalyticsService(portfolio, config)


def test_empty_store_yields_zero_outputs(config):
    service = AnalyticsService(FakeStore(), config)
    filters = service.create_filters()
    assert service.get_totals(filters) == {"totalReviews": 0, "totalProperties": 0}
    assert service.get_review_types(filters) == {"goodPct": 0, "neutralPct": 0, "badPct": 0, "timeSeries": []}
    insights = service.get_insights(filters)
    assert insights["links"] == []
    assert insights["goodPct"] == 0


def test_unknown_location_short_circuits_without_error(portfolio, config):
    service = AnalyticsService(portfolio, config)
    filters = service.create_filters(location="Atlantis")
    assert service.get_totals(filters) == {"totalReviews": 0, "totalProperties": 0}
    assert service.get_top_properties(filters) == []
    assert service.get_review_volume(filters) == {"histogram": []}
    assert service.get_property_list(filters, PropertyListQuery())["meta"]["total"] == 0
    assert service.get_guest_mentions(filters)["locationData"] == []
    assert portfolio.fetch_calls == 0


def test_totals_exclude_unapproved(service):
    assert service.get_totals(service.create_filters()) == {"totalReviews": 7, "totalProperties": 3}


def test_location_and_date_filters(service):
    london = service.create_filters(location="london")
    assert service.get_totals(london) == {"totalReviews": 5, "totalProperties": 2}

    february = service.create_filters(date_from="2025-02-01", date_to="2025-02-28T23:59:59Z")
    assert service.get_totals(february) == {"totalReviews": 3, "totalProperties": 2}


def test_top_properties_both_directions(service):
    filters = service.create_filters()
    good = service.get_top_properties(filters, "good", limit="2")
    assert [entry["propertyId"] for entry in good] == ["p1", "p2"]
    bad = service.get_top_properties(filters, "bad", limit=1)
    assert bad == [{"propertyId": "p3", "name": "Le Marais Studio", "city": "Paris", "avgRating": 1.5, "reviews": 2}]


def test_top_properties_honours_min_reviews(service):
    filters = service.create_filters()
    assert [e["propertyId"] for e in service.get_top_properties(filters, "good", min_reviews="3")] == ["p1"]


def test_bucket_defaults(service):
    filters = service.create_filters()
    assert service.get_review_types(filters, None)["timeSeries"][0]["t"] == "2025-01"
    assert service.get_review_volume(filters, None)["histogram"][0]["bucket"] == "2025-W01"


def test_stay_length_unavailable_for_location_without_stay_data(service):
    assert service.get_stay_length_distribution(service.create_filters())["lengthDist"] == [
        {"nights": "1-2", "pct": 0.5},
        {"nights": "3-5", "pct": 0.5},
    ]
    with pytest.raises(StayLengthUnavailable):
        service.get_stay_length_distribution(service.create_filters(location="Paris"))


def test_insights_and_mentions(service):
    filters = service.create_filters()
    insights = service.get_insights(filters)
    # London is 3/5 good, under the location threshold
    assert insights["goodBlurb"] == "Guests love Shoreditch Loft (4.67★ avg)."
    assert insights["badBlurb"] == "Paris properties have frequent bad reviews lately"
    assert [link["kind"] for link in insights["links"]] == ["good", "bad"]

    mentions = service.get_guest_mentions(filters, "Lack of cleanliness")
    assert mentions["locationData"] == [
        {"location": "London", "count": 1},
        {"location": "Paris", "count": 1},
    ]


def test_recent_reviews_default_limit(service, config):
    result = service.get_recent_reviews(service.create_filters())
    assert result["pagination"]["limit"] == config.recent_limit_default
    assert result["data"][0]["property"]["id"] == "p3"


def test_property_list_uses_config_limits(portfolio, tmp_path):
    from analytics.config import Config

    service = AnalyticsService(portfolio, Config(duckdb_path=tmp_path / "x.duckdb", list_limit_default=2, list_limit_max=2))
    result = service.get_property_list(service.create_filters(), PropertyListQuery(limit="10", sort="mostReviews"))
    assert [card["id"] for card in result["data"]] == ["p1", "p2"]
    assert result["cursor"]["limit"] == 2
    assert result["cursor"]["nextPageToken"] is not None


def test_overview_against_previous_period_of_equal_length(service):
    february = service.create_filters(date_from="2025-02-01", date_to="2025-02-28T23:59:59Z")
    overview = service.get_overview(february)
    # February has three reviews on two properties; the preceding 28 days only the Jan 15 stay
    assert overview["metrics"]["totalReviews"] == {
        "count": 3, "change": 2, "changeType": "increase", "comparisonPeriod": "VS PREVIOUS PERIOD",
    }
    assert overview["metrics"]["allProperties"]["changeType"] == "increase"
    assert overview["metrics"]["allProperties"]["change"] == 1
    assert overview["window"]["from"] == "2025-02-01T00:00:00Z"
    assert overview["window"]["to"] == "2025-02-28T23:59:59Z"
    assert overview["window"]["previousTo"] == "2025-02-01T00:00:00Z"
    assert overview["chartSummary"]["text"] == (
        "Mixed review sentiment over the last 3 months for properties in all locations"
    )


def test_overview_named_range_reports_decrease(service):
    now = datetime(2025, 3, 31, tzinfo=timezone.utc)
    overview = service.get_overview(service.create_filters(), "30D", now=now)
    assert overview["window"] == {
        "from": "2025-03-01T00:00:00Z",
        "to": "2025-03-31T00:00:00Z",
        "previousFrom": "2025-01-30T00:00:00Z",
        "previousTo": "2025-03-01T00:00:00Z",
    }
    assert overview["metrics"]["totalReviews"] == {
        "count": 2, "change": 1, "changeType": "decrease", "comparisonPeriod": "VS 30D",
    }
    assert overview["metrics"]["allProperties"] == {
        "count": 1, "change": 1, "changeType": "decrease", "comparisonPeriod": "VS 30D",
    }


def test_overview_unknown_range_falls_back_to_fourteen_days(service):
    now = datetime(2025, 2, 12, tzinfo=timezone.utc)
    overview = service.get_overview(service.create_filters(location="camden"), "fortnight", now=now)
    assert overview["metrics"]["totalReviews"]["comparisonPeriod"] == "VS 14D"
    assert overview["metrics"]["totalReviews"]["count"] == 2
    assert overview["chartSummary"]["location"] == "camden"
