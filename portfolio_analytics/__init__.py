"""
Portfolio Analytics Engine.

Turns a published portfolio's accumulated daily interaction counters into
derived metrics, rolling-baseline z-scores and a compact top-K heatmap
encoding. A pure library: it never touches a socket, database or queue.

Subpackages:
    - core: Configuration and the typed error hierarchy
    - models: Pydantic value models and enums
    - services: The calculators and the AnalyticsFacade

Usage:
    from portfolio_analytics import AnalyticsFacade

    analytics = AnalyticsFacade()
    scores = analytics.compute_zscores(today, history, window_days=28)
"""

from portfolio_analytics.core import (
    InvalidWindowError,
    MalformedHeatmapError,
    Settings,
    get_settings,
)
from portfolio_analytics.services import AnalyticsFacade

__version__ = "1.0.0"

__all__ = [
    'AnalyticsFacade',
    'InvalidWindowError',
    'MalformedHeatmapError',
    'Settings',
    'get_settings',
]
