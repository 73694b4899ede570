"""
Trend Analysis Service

Tabulates a portfolio's daily views and derived metrics as a pandas frame and
summarises the latest day-over-day movement of a metric.

Key Outputs:
    - build_daily_frame: DataFrame indexed by date (ascending), one column
      for raw views plus one per DerivedDayMetrics field. Unknown values are
      NaN inside the frame only; summaries convert back to None.
    - summarize_trend: current vs previous known value, relative change and
      an up/down/stable label.

Usage:
    frame = build_daily_frame(history)
    summary = summarize_trend(frame['engagementAvg'])

Dependencies:
    - pandas: date-indexed tabulation and NaN-aware series handling
"""

import logging
from typing import Iterable, List, Optional, Sequence, Union

import pandas as pd

from portfolio_analytics.core.config import Settings, get_settings
from portfolio_analytics.core.errors import AnalyticsError
from portfolio_analytics.models import (
    DailyCounters,
    DerivedDayMetrics,
    TrendDirection,
    TrendSummary,
)
from portfolio_analytics.services.derived_metrics import calculate_derived_metrics
from portfolio_analytics.services.numeric_guard import as_optional_float, safe_divide

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

DAILY_FRAME_COLUMNS: List[str] = ['views'] + list(DerivedDayMetrics.model_fields)


# =============================================================================
# Daily Frame
# =============================================================================


def build_daily_frame(records: Iterable[DailyCounters]) -> pd.DataFrame:
    """
    Tabulate raw views and derived metrics per day.

    Args:
        records: Daily counters for one portfolio, in any order.

    Returns:
        DataFrame indexed by a DatetimeIndex named 'date', sorted ascending,
        with float columns DAILY_FRAME_COLUMNS. When two records share a
        date the later one in input order wins. Missing days are absent rows,
        never zero rows.

    Example:
        >>> frame = build_daily_frame(history)
        >>> frame['desktopPct'].iloc[-1]
        0.8
    """
    rows = []
    for record in records:
        row = {
            'date': record.date,
            'views': record.engagement.views if record.engagement else None,
        }
        row.update(calculate_derived_metrics(record).model_dump())
        rows.append(row)

    if not rows:
        return pd.DataFrame(
            columns=DAILY_FRAME_COLUMNS,
            index=pd.DatetimeIndex([], name='date'),
            dtype=float,
        )

    frame = pd.DataFrame(rows)
    frame['date'] = pd.to_datetime(frame['date'])
    frame = frame.set_index('date')
    frame = frame[~frame.index.duplicated(keep='last')].sort_index()

    return frame[DAILY_FRAME_COLUMNS].astype(float)


# =============================================================================
# Trend Summary
# =============================================================================


def summarize_trend(
    values: Union[pd.Series, Sequence[Optional[float]]],
    stable_threshold: Optional[float] = None
) -> TrendSummary:
    """
    Summarise the latest movement of a chronologically ordered series.

    Unknown entries are skipped, so current and previous are the last two
    known values.

    Args:
        values: Series or sequence in ascending date order.
        stable_threshold: |changePct| below this is "stable"; defaults to
            settings.trend_stable_threshold.

    Returns:
        TrendSummary. changePct and trend are None when fewer than two known
        values exist or the previous value is zero.

    Example:
        >>> summarize_trend([100.0, 110.0]).trend
        <TrendDirection.UP: 'up'>
    """
    threshold = (
        get_settings().trend_stable_threshold
        if stable_threshold is None
        else stable_threshold
    )

    series = pd.Series(values, dtype=float).dropna()

    if series.empty:
        return TrendSummary()

    current = as_optional_float(series.iloc[-1])
    if len(series) < 2:
        return TrendSummary(current=current)

    previous = as_optional_float(series.iloc[-2])
    change = safe_divide(current - previous, previous)

    trend: Optional[TrendDirection] = None
    if change is not None:
        if abs(change) < threshold:
            trend = TrendDirection.STABLE
        elif change > 0:
            trend = TrendDirection.UP
        else:
            trend = TrendDirection.DOWN

    return TrendSummary(
        current=current,
        previous=previous,
        changePct=change,
        trend=trend,
    )


def summarize_metric_trend(
    records: Iterable[DailyCounters],
    metric: str,
    settings: Optional[Settings] = None
) -> TrendSummary:
    """
    Build the daily frame for records and summarise one of its columns.

    Raises:
        AnalyticsError: If metric is not a daily frame column.
    """
    if metric not in DAILY_FRAME_COLUMNS:
        raise AnalyticsError(
            f"Unknown trend metric '{metric}'; expected one of {DAILY_FRAME_COLUMNS}"
        )

    settings = settings or get_settings()
    frame = build_daily_frame(records)
    logger.debug("Summarising %s over %d days", metric, len(frame))
    return summarize_trend(frame[metric], settings.trend_stable_threshold)
