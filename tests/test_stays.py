import pytest

from analytics.errors import StayLengthUnavailable
from analytics.stays import aggregate_stays, stay_nights_for
from conftest import make_review


def test_distribution_across_bands():
    reviews = [make_review("p", 5, stay_nights=n) for n in (1, 2, 3, 5, 6, 10)]
    assert aggregate_stays(reviews) == {
        "lengthDist": [
            {"nights": "1-2", "pct": 0.33},
            {"nights": "3-5", "pct": 0.33},
            {"nights": "6+", "pct": 0.33},
        ]
    }


def test_empty_bands_are_omitted():
    reviews = [make_review("p", 5, stay_nights=7), make_review("p", 4, stay_nights=1), make_review("p", 4)]
    assert aggregate_stays(reviews) == {
        "lengthDist": [{"nights": "1-2", "pct": 0.5}, {"nights": "6+", "pct": 0.5}]
    }


def test_explicit_nights_win_over_dates():
    review = make_review(
        "p", 5, stay_nights=4,
        stay_date="2025-01-01T00:00:00Z", checkout_date="2025-01-10T00:00:00Z",
    )
    assert stay_nights_for(review) == 4


def test_nights_derived_from_dates_round_half_up():
    half = make_review("p", 5, stay_date="2025-01-01T00:00:00Z", checkout_date="2025-01-03T12:00:00Z")
    assert stay_nights_for(half) == 3
    same_day = make_review("p", 5, stay_date="2025-01-01T08:00:00Z", checkout_date="2025-01-01T11:00:00Z")
    assert stay_nights_for(same_day) is None
    backwards = make_review("p", 5, stay_date="2025-01-05T00:00:00Z", checkout_date="2025-01-01T00:00:00Z")
    assert stay_nights_for(backwards) is None


def test_zero_nights_count_as_missing():
    assert stay_nights_for(make_review("p", 5, stay_nights=0)) is None


def test_unavailable_when_no_review_has_nights():
    with pytest.raises(StayLengthUnavailable) as excinfo:
        aggregate_stays([make_review("p", 5), make_review("p", 2)])
    assert excinfo.value.reason == "stay_length_unavailable"

    with pytest.raises(StayLengthUnavailable):
        aggregate_stays([])
