"""
Analytics Facade

Single call surface for report builders. Each method delegates to the
calculator that owns the behaviour and adds no logic of its own beyond
filling defaults from Settings, so report code never constructs or wires
calculators itself.

Usage:
    from portfolio_analytics import AnalyticsFacade

    analytics = AnalyticsFacade()
    derived = analytics.compute_derived(today)
    scores = analytics.compute_zscores(today, last_month)
"""

from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from portfolio_analytics.core.config import Settings, get_settings
from portfolio_analytics.models import (
    DailyCounters,
    DerivedDayMetrics,
    EnhancedDayMetrics,
    HeatmapCell,
    HeatmapSnapshot,
    ProjectCounters,
    ProjectCountersWithId,
    ProjectDerivedMetrics,
    SparseHeatmap,
    TrendSummary,
    ZScoreSet,
)
from portfolio_analytics.services import (
    baseline_zscore,
    derived_metrics,
    heatmap_codec,
    trends,
)


class AnalyticsFacade:
    """
    Stateless entry point composing the analytics calculators.

    Holds only a Settings reference; instances are safe to share across
    threads and requests.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    # ----- Derived metrics -----

    def compute_derived(self, counters: Optional[DailyCounters]) -> DerivedDayMetrics:
        return derived_metrics.calculate_derived_metrics(counters)

    def compute_project_derived(
        self,
        project_counters: Optional[ProjectCounters]
    ) -> ProjectDerivedMetrics:
        return derived_metrics.calculate_project_derived_metrics(project_counters)

    def compute_project_derived_by_id(
        self,
        projects: Iterable[ProjectCountersWithId]
    ) -> Dict[int, ProjectDerivedMetrics]:
        return derived_metrics.calculate_project_derived_by_id(projects)

    # ----- Z-scores -----

    def compute_zscores(
        self,
        current: DailyCounters,
        history: Optional[Iterable[DailyCounters]],
        window_days: Optional[int] = None
    ) -> ZScoreSet:
        return baseline_zscore.calculate_zscores(
            current, history, window_days, self.settings
        )

    def enhance_history(
        self,
        records: Iterable[DailyCounters],
        window_days: Optional[int] = None
    ) -> List[EnhancedDayMetrics]:
        return baseline_zscore.score_history(records, window_days, self.settings)

    # ----- Heatmap -----

    def decode_heatmap(self, heatmap: SparseHeatmap) -> List[HeatmapCell]:
        return heatmap_codec.decode_heatmap(heatmap)

    def encode_heatmap(
        self,
        cells: Sequence[HeatmapCell],
        rows: int,
        columns: int,
        k: Optional[int] = None
    ) -> SparseHeatmap:
        k = self.settings.heatmap_max_cells if k is None else k
        return heatmap_codec.encode(cells, rows, columns, k)

    def merge_heatmap(
        self,
        existing: Optional[SparseHeatmap],
        snapshot: HeatmapSnapshot,
        max_cells: Optional[int] = None
    ) -> SparseHeatmap:
        max_cells = self.settings.heatmap_max_cells if max_cells is None else max_cells
        return heatmap_codec.merge_snapshot(existing, snapshot, max_cells)

    # ----- Trends -----

    def daily_frame(self, records: Iterable[DailyCounters]) -> pd.DataFrame:
        return trends.build_daily_frame(records)

    def summarize_trend(
        self,
        records: Iterable[DailyCounters],
        metric: str
    ) -> TrendSummary:
        return trends.summarize_metric_trend(records, metric, self.settings)
