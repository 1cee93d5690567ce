"""Rally probability scoring tests."""

import pytest

from rally_radar.signals.probability import calculate_rally_probability


def test_all_maximum_inputs_score_100() -> None:
    assert calculate_rally_probability(15, 0.85, "increasing", True, True) == 100


def test_empty_inputs_score_zero() -> None:
    assert calculate_rally_probability(0, 0.0, "decreasing", False, False) == 0


@pytest.mark.parametrize(
    "news_count, expected",
    [(2, 10), (3, 20), (5, 30), (10, 40)],
)
def test_news_volume_breakpoints(news_count: int, expected: int) -> None:
    assert calculate_rally_probability(news_count, 0.0, "stable", False, False) == expected


@pytest.mark.parametrize(
    "ratio, expected",
    [(0.49, 0), (0.5, 5), (0.6, 15), (0.8, 25)],
)
def test_sentiment_breakpoints(ratio: float, expected: int) -> None:
    assert calculate_rally_probability(0, ratio, "decreasing", False, False) == expected


def test_score_is_monotonic_in_each_input() -> None:
    base = calculate_rally_probability(5, 0.6, "stable", False, False)

    assert calculate_rally_probability(10, 0.6, "stable", False, False) >= base
    assert calculate_rally_probability(5, 0.8, "stable", False, False) >= base
    assert calculate_rally_probability(5, 0.6, "increasing", False, False) >= base
    assert calculate_rally_probability(5, 0.6, "stable", True, False) >= base
    assert calculate_rally_probability(5, 0.6, "stable", False, True) >= base
    assert calculate_rally_probability(5, 0.6, "decreasing", False, False) <= base


def test_unknown_momentum_counts_as_zero() -> None:
    assert calculate_rally_probability(0, 0.0, "sideways", False, False) == 0
