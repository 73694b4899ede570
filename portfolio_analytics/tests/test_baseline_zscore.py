"""
Test suite for the Baseline Z-Score Calculator.

The tests verify:
1. Baseline statistics use the sample standard deviation
2. Thin baselines and zero variance degrade to unknown scores
3. TTFI is scored on a log scale and sign-inverted
4. Baseline selection tolerates unsorted history and excludes the scored day
5. Scores are clamped to the display range
6. History scoring only looks at strictly older days
"""

import math
import random
from datetime import date, timedelta

import numpy as np
import pytest

from portfolio_analytics.core.config import Settings
from portfolio_analytics.core.errors import InvalidWindowError
from portfolio_analytics.models import ZScoreMetric, ZScoreSet
from portfolio_analytics.services.baseline_zscore import (
    DERIVED_METRIC_FIELDS,
    calculate_baseline_stats,
    calculate_zscore,
    calculate_zscores,
    score_history,
    select_baseline,
)

REFERENCE_DAY = date(2026, 3, 14)


# =============================================================================
# Baseline Statistics
# =============================================================================


class TestBaselineStats:
    """Tests for calculate_baseline_stats()."""

    def test_mean_and_sample_std(self) -> None:
        mean, std = calculate_baseline_stats([10.0, 12.0, 8.0, 14.0, 11.0])

        assert mean == pytest.approx(11.0)
        assert std == pytest.approx(2.2360, abs=1e-3)

    def test_single_value_is_unknown(self) -> None:
        assert calculate_baseline_stats([5.0]) is None

    def test_empty_is_unknown(self) -> None:
        assert calculate_baseline_stats([]) is None

    def test_identical_values_are_unknown(self) -> None:
        assert calculate_baseline_stats([0.1] * 10) is None

    def test_min_samples_respected(self) -> None:
        assert calculate_baseline_stats([1.0, 2.0, 3.0], min_samples=4) is None


class TestCalculateZscore:
    """Tests for the single-metric calculate_zscore()."""

    def test_positive_deviation(self) -> None:
        score = calculate_zscore(14.0, [10.0, 12.0, 8.0, 14.0, 11.0])
        assert score == pytest.approx(3.0 / 2.2360, abs=1e-3)

    def test_unknown_today(self) -> None:
        assert calculate_zscore(None, [1.0, 2.0, 3.0]) is None

    def test_unknown_baseline_values_are_discarded(self) -> None:
        assert calculate_zscore(5.0, [None, 1.0, None]) is None
        assert calculate_zscore(5.0, [None, 1.0, 3.0]) is not None

    def test_clamped_to_bound(self) -> None:
        assert calculate_zscore(1000.0, [100.0, 101.0, 100.0, 101.0]) == 3.0
        assert calculate_zscore(-1000.0, [100.0, 101.0, 100.0, 101.0]) == -3.0

    def test_log_transform_rejects_non_positive_today(self) -> None:
        assert calculate_zscore(0.0, [1.0, 2.0, 3.0], log_transform=True) is None

    def test_log_transform_drops_non_positive_baseline_values(self) -> None:
        assert calculate_zscore(2.0, [0.0, 0.0, 3.0], log_transform=True) is None

    def test_invert_flips_sign(self) -> None:
        plain = calculate_zscore(4.0, [1.0, 2.0, 3.0])
        inverted = calculate_zscore(4.0, [1.0, 2.0, 3.0], invert=True)
        assert inverted == pytest.approx(-plain)


# =============================================================================
# Baseline Selection
# =============================================================================


class TestSelectBaseline:
    """Tests for select_baseline()."""

    def test_excludes_scored_day_and_sorts_descending(self, make_counters) -> None:
        today = make_counters(views=100)
        history = [
            make_counters(day=REFERENCE_DAY - timedelta(days=3), views=1),
            make_counters(day=REFERENCE_DAY, views=999),
            make_counters(day=REFERENCE_DAY - timedelta(days=1), views=2),
        ]

        baseline = select_baseline(today, history, window_days=28)

        assert [r.date for r in baseline] == [
            REFERENCE_DAY - timedelta(days=1),
            REFERENCE_DAY - timedelta(days=3),
        ]

    def test_truncates_to_most_recent_window(self, noisy_history, reference_day) -> None:
        baseline = select_baseline(reference_day, noisy_history, window_days=7)

        assert len(baseline) == 7
        assert baseline[0].date == REFERENCE_DAY - timedelta(days=1)
        assert baseline[-1].date == REFERENCE_DAY - timedelta(days=7)

    def test_none_history(self, reference_day) -> None:
        assert select_baseline(reference_day, None, window_days=28) == []

    @pytest.mark.parametrize("window_days", [0, -1])
    def test_non_positive_window_raises(self, reference_day, window_days) -> None:
        with pytest.raises(InvalidWindowError) as exc_info:
            select_baseline(reference_day, [], window_days)

        assert exc_info.value.window_days == window_days


# =============================================================================
# Five-Metric Scores
# =============================================================================


class TestCalculateZscores:
    """Tests for calculate_zscores()."""

    def test_single_day_history_is_all_unknown(self, make_counters) -> None:
        today = make_counters(views=100)
        history = [make_counters(day=REFERENCE_DAY - timedelta(days=1), views=50)]

        assert calculate_zscores(today, history) == ZScoreSet()

    def test_empty_history_is_all_unknown(self, reference_day) -> None:
        assert calculate_zscores(reference_day, []) == ZScoreSet()

    def test_increasing_views_score_positive(
        self,
        make_counters,
        increasing_views_history
    ) -> None:
        today = make_counters(views=170)

        scores = calculate_zscores(today, increasing_views_history)

        assert scores.visits is not None
        assert 0.0 < scores.visits <= 3.0
        # No scroll, quality or social counters anywhere
        assert scores.engagement is None
        assert scores.qualityVisitRate is None

    def test_four_increasing_days_score_positive(self, make_counters) -> None:
        history = [
            make_counters(day=REFERENCE_DAY - timedelta(days=4 - i), views=100 + 10 * i)
            for i in range(4)
        ]

        scores = calculate_zscores(make_counters(views=140), history)

        # Baseline 100..130: mean 115, sample std sqrt(500 / 3)
        assert scores.visits == pytest.approx(25.0 / math.sqrt(500.0 / 3.0))
        assert 0.0 < scores.visits <= 3.0

    def test_zero_variance_is_unknown(self, make_counters) -> None:
        history = [
            make_counters(day=REFERENCE_DAY - timedelta(days=d), views=100)
            for d in range(1, 8)
        ]

        scores = calculate_zscores(make_counters(views=150), history)

        assert scores.visits is None

    def test_every_metric_computable_with_full_history(
        self,
        reference_day,
        noisy_history
    ) -> None:
        scores = calculate_zscores(reference_day, noisy_history)

        for metric in ZScoreMetric:
            value = getattr(scores, metric.value)
            assert value is not None, metric
            assert -3.0 <= value <= 3.0

    def test_derived_metric_fields_cover_all_but_visits(self) -> None:
        assert set(DERIVED_METRIC_FIELDS) == set(ZScoreMetric) - {ZScoreMetric.VISITS}

    def test_unsorted_history_and_same_day_record_ignored(
        self,
        make_counters,
        reference_day,
        noisy_history
    ) -> None:
        shuffled = list(noisy_history)
        random.Random(7).shuffle(shuffled)
        shuffled.append(make_counters(views=100000, quality_visits=1))

        assert calculate_zscores(reference_day, shuffled) == calculate_zscores(
            reference_day, noisy_history
        )

    def test_window_limits_baseline(self, make_counters) -> None:
        recent = [
            make_counters(day=REFERENCE_DAY - timedelta(days=d), views=v)
            for d, v in [(1, 100), (2, 110), (3, 90)]
        ]
        old = [
            make_counters(day=REFERENCE_DAY - timedelta(days=d), views=5000)
            for d in range(4, 20)
        ]
        today = make_counters(views=105)

        windowed = calculate_zscores(today, recent + old, window_days=3)

        assert windowed == calculate_zscores(today, recent)

    @pytest.mark.parametrize("window_days", [0, -5])
    def test_invalid_window_raises(self, reference_day, noisy_history, window_days) -> None:
        with pytest.raises(InvalidWindowError):
            calculate_zscores(reference_day, noisy_history, window_days=window_days)

    def test_settings_clamp_applies(self, make_counters) -> None:
        settings = Settings(_env_file=None, zscore_clamp=2.0)
        history = [
            make_counters(day=REFERENCE_DAY - timedelta(days=d), views=100 + d % 2)
            for d in range(1, 8)
        ]

        scores = calculate_zscores(make_counters(views=1000), history, settings=settings)

        assert scores.visits == 2.0

    def test_settings_min_samples_applies(self, make_counters, increasing_views_history) -> None:
        settings = Settings(_env_file=None, min_baseline_samples=10)

        scores = calculate_zscores(
            make_counters(views=170), increasing_views_history, settings=settings
        )

        assert scores == ZScoreSet()


class TestTtfiScore:
    """TTFI is log-scaled and inverted so faster reads as better."""

    @pytest.fixture
    def ttfi_history(self, make_counters):
        return [
            make_counters(
                day=REFERENCE_DAY - timedelta(days=d),
                views=100,
                ttfi_sum_ms=ms,
                ttfi_count=1,
            )
            for d, ms in enumerate([1000, 1200, 800, 1100, 900], start=1)
        ]

    def test_faster_scores_positive(self, make_counters, ttfi_history) -> None:
        today = make_counters(views=100, ttfi_sum_ms=500, ttfi_count=1)

        assert calculate_zscores(today, ttfi_history).ttfi > 0

    def test_scored_on_log_scale(self, make_counters, ttfi_history) -> None:
        baseline_ms = np.array([1000.0, 1200.0, 800.0, 1100.0, 900.0])
        today = make_counters(views=100, ttfi_sum_ms=950, ttfi_count=1)

        log_baseline = np.log(baseline_ms)
        expected = -(math.log(950) - log_baseline.mean()) / log_baseline.std(ddof=1)
        linear = -(950 - baseline_ms.mean()) / baseline_ms.std(ddof=1)

        score = calculate_zscores(today, ttfi_history).ttfi

        assert score == pytest.approx(expected, abs=1e-9)
        assert abs(expected) < 3.0
        assert abs(score - linear) > 0.01

    def test_slower_scores_negative(self, make_counters, ttfi_history) -> None:
        today = make_counters(views=100, ttfi_sum_ms=2000, ttfi_count=1)

        assert calculate_zscores(today, ttfi_history).ttfi < 0

    def test_zero_ms_is_unknown_for_ttfi_only(self, make_counters, ttfi_history) -> None:
        today = make_counters(views=130, ttfi_sum_ms=0, ttfi_count=4)

        scores = calculate_zscores(today, ttfi_history)

        assert scores.ttfi is None

    def test_zero_ms_does_not_affect_other_metrics(self, make_counters) -> None:
        history = [
            make_counters(
                day=REFERENCE_DAY - timedelta(days=d),
                views=100 + 10 * d,
                ttfi_sum_ms=1000 * d,
                ttfi_count=1,
            )
            for d in range(1, 5)
        ]
        today = make_counters(views=130, ttfi_sum_ms=0, ttfi_count=4)

        scores = calculate_zscores(today, history)

        assert scores.ttfi is None
        assert scores.visits is not None


# =============================================================================
# History Scoring
# =============================================================================


class TestScoreHistory:
    """Tests for score_history()."""

    def test_most_recent_first(self, increasing_views_history) -> None:
        enhanced = score_history(reversed(increasing_views_history))

        dates = [e.counters.date for e in enhanced]
        assert dates == sorted(dates, reverse=True)
        assert len(enhanced) == len(increasing_views_history)

    def test_each_day_scored_against_older_days_only(self, increasing_views_history) -> None:
        enhanced = score_history(increasing_views_history)

        # Oldest two days have fewer than two older days
        assert enhanced[-1].zScores == ZScoreSet()
        assert enhanced[-2].zScores == ZScoreSet()
        # Every later day is above its own baseline
        for day in enhanced[:-2]:
            assert day.zScores.visits > 0

    def test_derived_metrics_attached(self, reference_day) -> None:
        enhanced = score_history([reference_day])

        assert enhanced[0].derived.desktopPct == pytest.approx(0.8)
        assert enhanced[0].counters == reference_day

    def test_invalid_window_raises(self, increasing_views_history) -> None:
        with pytest.raises(InvalidWindowError):
            score_history(increasing_views_history, window_days=0)

    def test_empty_history(self) -> None:
        assert score_history([]) == []
