"""
Package initialization file for the analytics value models.

Re-exports every schema and enumeration so callers can write:

    from portfolio_analytics.models import DailyCounters, ZScoreSet
"""

# =============================================================================
# Enums
# =============================================================================

from portfolio_analytics.models.enums import (
    ZScoreMetric,
    TrendDirection,
)

# =============================================================================
# Schemas
# =============================================================================

from portfolio_analytics.models.schemas import (
    # Raw counters
    Devices,
    Engagement,
    InteractionMetrics,
    ProjectCounters,
    ProjectCountersWithId,
    DailyCounters,
    # Derived metrics
    DerivedDayMetrics,
    ProjectDerivedMetrics,
    EnhancedProjectMetrics,
    # Z-scores
    ZScoreSet,
    EnhancedDayMetrics,
    # Heatmap
    HeatmapCell,
    SparseHeatmap,
    HeatmapSnapshot,
    # Trends
    TrendSummary,
)

__all__ = [
    # ----- Enums -----
    'ZScoreMetric',
    'TrendDirection',
    # ----- Raw counters -----
    'Devices',
    'Engagement',
    'InteractionMetrics',
    'ProjectCounters',
    'ProjectCountersWithId',
    'DailyCounters',
    # ----- Derived metrics -----
    'DerivedDayMetrics',
    'ProjectDerivedMetrics',
    'EnhancedProjectMetrics',
    # ----- Z-scores -----
    'ZScoreSet',
    'EnhancedDayMetrics',
    # ----- Heatmap -----
    'HeatmapCell',
    'SparseHeatmap',
    'HeatmapSnapshot',
    # ----- Trends -----
    'TrendSummary',
]
