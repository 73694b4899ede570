"""
Baseline Z-Score Calculator

Scores how anomalous a portfolio's day is relative to its own recent history,
in standard-deviation units, for five metrics:

    visits           raw views
    engagement       engagementAvg
    ttfi             ttfiMeanMs, on a log scale, sign-inverted
    qualityVisitRate qualityVisitRate
    socialCtr        socialCtr

Algorithm:
    1. Drop history records dated the same day as the scored record.
    2. Sort the rest by date descending and keep at most window_days.
    3. Fewer than 2 baseline records -> every score unknown.
    4. Per metric, compute the value for each baseline record independently
       and discard records where that metric is unknown.
    5. Fewer than 2 valid values -> that metric's score is unknown.
    6. Sample mean and sample standard deviation (ddof=1) of the valid values.
    7. Zero standard deviation -> unknown (no meaningful spread).
    8. score = (today - mean) / std. TTFI is scored on ln(value) for today
       and every baseline value and the sign is flipped, so a faster first
       interaction reads as a higher, better score like every other metric.
       A TTFI of exactly 0 ms cannot be logged and is unknown for TTFI only.
    9. Clamp to [-3, +3].

Failure semantics:
    Thin baselines, zero variance and zero TTFI degrade to per-field None and
    never raise; a missing anomaly signal is a valid display state. Only a
    non-positive window (a caller bug) raises InvalidWindowError.

Dependencies:
    - numpy: mean and sample standard deviation of baseline values
"""

import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from portfolio_analytics.core.config import Settings, get_settings
from portfolio_analytics.core.errors import InvalidWindowError
from portfolio_analytics.models import (
    DailyCounters,
    DerivedDayMetrics,
    EnhancedDayMetrics,
    ZScoreMetric,
    ZScoreSet,
)
from portfolio_analytics.services.derived_metrics import calculate_derived_metrics
from portfolio_analytics.services.numeric_guard import clamp

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# DerivedDayMetrics field backing each derived z-score metric
DERIVED_METRIC_FIELDS: Dict[ZScoreMetric, str] = {
    ZScoreMetric.ENGAGEMENT: 'engagementAvg',
    ZScoreMetric.TTFI: 'ttfiMeanMs',
    ZScoreMetric.QUALITY_VISIT_RATE: 'qualityVisitRate',
    ZScoreMetric.SOCIAL_CTR: 'socialCtr',
}

# Lower-is-better metrics, scored on a log scale and sign-inverted
LOG_INVERTED_METRICS = frozenset({ZScoreMetric.TTFI})


# =============================================================================
# Baseline Selection
# =============================================================================


def select_baseline(
    current: DailyCounters,
    history: Optional[Iterable[DailyCounters]],
    window_days: int
) -> List[DailyCounters]:
    """
    Pick the baseline records for scoring ``current``.

    The persistence layer may return history unsorted, with gaps, and
    including the scored day itself; this handles all three.

    Args:
        current: The record being scored.
        history: Candidate baseline records for the same portfolio.
        window_days: Maximum number of baseline records to keep.

    Returns:
        Up to window_days records, most recent first, none dated like current.

    Raises:
        InvalidWindowError: If window_days <= 0.
    """
    if window_days <= 0:
        logger.warning("Rejected baseline window of %d days", window_days)
        raise InvalidWindowError(window_days)

    remaining = [record for record in (history or []) if record.date != current.date]
    remaining.sort(key=lambda record: record.date, reverse=True)
    return remaining[:window_days]


# =============================================================================
# Statistics
# =============================================================================


def calculate_baseline_stats(
    values: Sequence[float],
    min_samples: int = 2
) -> Optional[Tuple[float, float]]:
    """
    Sample mean and sample standard deviation of baseline values.

    Args:
        values: Valid (known) baseline values.
        min_samples: Minimum number of values required.

    Returns:
        (mean, std) with std computed with ddof=1, or None when there are
        fewer than min_samples values or the values have no spread.

    Example:
        >>> mean, std = calculate_baseline_stats([10.0, 12.0, 8.0, 14.0, 11.0])
        >>> round(mean, 2), round(std, 2)
        (11.0, 2.24)
    """
    if len(values) < min_samples:
        return None

    values_array = np.asarray(values, dtype=np.float64)

    # Identical values have zero spread; checked exactly so float rounding in
    # the mean cannot fake a tiny non-zero deviation
    if np.all(values_array == values_array[0]):
        return None

    mean_val = float(np.mean(values_array))
    std_val = float(np.std(values_array, ddof=1))

    if not math.isfinite(std_val) or std_val == 0.0:
        return None

    return (mean_val, std_val)


def calculate_zscore(
    today: Optional[float],
    baseline_values: Iterable[Optional[float]],
    log_transform: bool = False,
    invert: bool = False,
    bound: float = 3.0,
    min_samples: int = 2
) -> Optional[float]:
    """
    Clamped z-score of today's value against baseline values.

    Args:
        today: Today's value; None yields None.
        baseline_values: Baseline values; None entries are discarded.
        log_transform: Score ln(value) instead of value. Non-positive values
            (today or baseline) are unknown under the transform.
        invert: Flip the sign so that lower raw values score higher.
        bound: Symmetric clamp bound.
        min_samples: Minimum number of valid baseline values.

    Returns:
        The score in [-bound, bound], or None when it cannot be computed.
    """
    if today is None:
        return None

    valid = [float(v) for v in baseline_values if v is not None]

    if log_transform:
        if today <= 0:
            return None
        today = math.log(today)
        valid = [math.log(v) for v in valid if v > 0]

    stats = calculate_baseline_stats(valid, min_samples)
    if stats is None:
        return None

    mean_val, std_val = stats
    score = (today - mean_val) / std_val
    if invert:
        score = -score

    return clamp(score, -bound, bound)


# =============================================================================
# Metric Extraction
# =============================================================================


def extract_metric_value(
    counters: DailyCounters,
    derived: DerivedDayMetrics,
    metric: ZScoreMetric
) -> Optional[float]:
    """
    The value a z-score metric reads from one day.

    visits reads raw views; every other metric reads its DerivedDayMetrics
    field.
    """
    if metric is ZScoreMetric.VISITS:
        engagement = counters.engagement
        if engagement is None or engagement.views is None:
            return None
        return float(engagement.views)

    return getattr(derived, DERIVED_METRIC_FIELDS[metric])


# =============================================================================
# Main Entry Point
# =============================================================================


def calculate_zscores(
    current: DailyCounters,
    history: Optional[Iterable[DailyCounters]],
    window_days: Optional[int] = None,
    settings: Optional[Settings] = None
) -> ZScoreSet:
    """
    Calculate the five baseline z-scores for one portfolio day.

    Args:
        current: The day being scored.
        history: Baseline candidates for the same portfolio, in any order,
            possibly including current's own record.
        window_days: Baseline window; defaults to settings.baseline_window_days.
        settings: Engine settings; defaults to get_settings().

    Returns:
        ZScoreSet where each field is independently either a clamped score or
        None.

    Raises:
        InvalidWindowError: If window_days <= 0.

    Example:
        >>> scores = calculate_zscores(today, last_month, window_days=28)
        >>> scores.visits is None or -3.0 <= scores.visits <= 3.0
        True
    """
    settings = settings or get_settings()
    window = settings.baseline_window_days if window_days is None else window_days

    baseline = select_baseline(current, history, window)

    if len(baseline) < settings.min_baseline_samples:
        logger.debug(
            "Insufficient baseline for %s on %s: %d records",
            current.portfolioId,
            current.date,
            len(baseline),
        )
        return ZScoreSet()

    current_derived = calculate_derived_metrics(current)
    baseline_derived = [
        (record, calculate_derived_metrics(record)) for record in baseline
    ]

    scores: Dict[str, Optional[float]] = {}

    for metric in ZScoreMetric:
        today = extract_metric_value(current, current_derived, metric)
        values = [
            extract_metric_value(record, derived, metric)
            for record, derived in baseline_derived
        ]
        inverted = metric in LOG_INVERTED_METRICS

        scores[metric.value] = calculate_zscore(
            today,
            values,
            log_transform=inverted,
            invert=inverted,
            bound=settings.zscore_clamp,
            min_samples=settings.min_baseline_samples,
        )

    return ZScoreSet(**scores)


# =============================================================================
# History Scoring
# =============================================================================


def score_history(
    records: Iterable[DailyCounters],
    window_days: Optional[int] = None,
    settings: Optional[Settings] = None
) -> List[EnhancedDayMetrics]:
    """
    Derived metrics and z-scores for every record of a portfolio history.

    Each day is scored only against days strictly older than itself, so a
    report over a date range shows what the anomaly signal was on each day.

    Args:
        records: Daily counters for one portfolio, in any order.
        window_days: Baseline window; defaults to settings.baseline_window_days.
        settings: Engine settings; defaults to get_settings().

    Returns:
        One EnhancedDayMetrics per record, most recent first.

    Raises:
        InvalidWindowError: If window_days <= 0.
    """
    settings = settings or get_settings()
    window = settings.baseline_window_days if window_days is None else window_days
    if window <= 0:
        logger.warning("Rejected baseline window of %d days", window)
        raise InvalidWindowError(window)

    ordered = sorted(records, key=lambda record: record.date, reverse=True)

    enhanced: List[EnhancedDayMetrics] = []
    for position, record in enumerate(ordered):
        older = [r for r in ordered[position + 1:] if r.date < record.date]
        enhanced.append(EnhancedDayMetrics(
            counters=record,
            derived=calculate_derived_metrics(record),
            zScores=calculate_zscores(record, older, window, settings),
        ))

    logger.debug("Scored %d days of history", len(enhanced))
    return enhanced
