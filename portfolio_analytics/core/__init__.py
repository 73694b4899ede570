"""
Core infrastructure package for the analytics engine.

Provides:
- Configuration management via pydantic-settings
- The typed error hierarchy for caller contract violations

Re-exported here so other modules can write:

    from portfolio_analytics.core import get_settings, MalformedHeatmapError
"""

# =============================================================================
# Re-exports from portfolio_analytics.core.config
# =============================================================================
from portfolio_analytics.core.config import Settings, get_settings

# =============================================================================
# Re-exports from portfolio_analytics.core.errors
# =============================================================================
from portfolio_analytics.core.errors import (
    AnalyticsError,
    MalformedHeatmapError,
    InvalidWindowError,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Errors (from errors.py)
    'AnalyticsError',
    'MalformedHeatmapError',
    'InvalidWindowError',
]
