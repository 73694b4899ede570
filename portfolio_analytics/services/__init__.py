"""
Analytics Services Module

Pure, synchronous calculators over immutable value models. No service holds
state, performs I/O or caches results, so every call is safe across threads,
portfolios and days without coordination.

Services:
- numeric_guard: null-safe scalar arithmetic
- derived_metrics: per-day portfolio and per-project ratios
- heatmap_codec: top-K sparse heatmap encode/decode and snapshot merging
- baseline_zscore: rolling-baseline anomaly scores
- aggregation: merging partial daily counter batches
- trends: daily metric frames and day-over-day trend summaries
- facade: single call surface for report builders
"""

# =============================================================================
# Numeric Guard Exports
# =============================================================================

from portfolio_analytics.services.numeric_guard import (
    as_optional_float,
    safe_divide,
    safe_add,
    scale_time_unit,
    clamp,
)

# =============================================================================
# Derived Metrics Exports
# =============================================================================

from portfolio_analytics.services.derived_metrics import (
    MetricProjection,
    calculate_derived_metrics,
    calculate_project_derived_metrics,
    calculate_project_derived_by_id,
    enhance_project_metrics,
)

# =============================================================================
# Heatmap Codec Exports
# =============================================================================

from portfolio_analytics.services.heatmap_codec import (
    decode,
    decode_heatmap,
    encode,
    merge_snapshot,
)

# =============================================================================
# Baseline Z-Score Exports
# =============================================================================

from portfolio_analytics.services.baseline_zscore import (
    select_baseline,
    calculate_baseline_stats,
    calculate_zscore,
    calculate_zscores,
    score_history,
)

# =============================================================================
# Aggregation Exports
# =============================================================================

from portfolio_analytics.services.aggregation import (
    merge_daily_counters,
    merge_project_counters,
)

# =============================================================================
# Trend Exports
# =============================================================================

from portfolio_analytics.services.trends import (
    build_daily_frame,
    summarize_trend,
    summarize_metric_trend,
)

# =============================================================================
# Facade (imports the modules above, keep last)
# =============================================================================

from portfolio_analytics.services.facade import AnalyticsFacade

__all__ = [
    # ----- Numeric Guard -----
    'as_optional_float',
    'safe_divide',
    'safe_add',
    'scale_time_unit',
    'clamp',
    # ----- Derived Metrics -----
    'MetricProjection',
    'calculate_derived_metrics',
    'calculate_project_derived_metrics',
    'calculate_project_derived_by_id',
    'enhance_project_metrics',
    # ----- Heatmap Codec -----
    'decode',
    'decode_heatmap',
    'encode',
    'merge_snapshot',
    # ----- Baseline Z-Scores -----
    'select_baseline',
    'calculate_baseline_stats',
    'calculate_zscore',
    'calculate_zscores',
    'score_history',
    # ----- Aggregation -----
    'merge_daily_counters',
    'merge_project_counters',
    # ----- Trends -----
    'build_daily_frame',
    'summarize_trend',
    'summarize_metric_trend',
    # ----- Facade -----
    'AnalyticsFacade',
]
