"""
Settings and environment management for the portfolio analytics engine.

This module provides centralized configuration using pydantic-settings, which
loads values from environment variables (prefixed with ``ANALYTICS_``) and an
optional ``.env`` file.

Key Features:
- Environment variable validation and type coercion
- Defaults matching the values the reporting layer has always used
- Singleton access via @lru_cache

Environment Variables:
- ANALYTICS_BASELINE_WINDOW_DAYS: Days of history in a z-score baseline (default: 28)
- ANALYTICS_ZSCORE_CLAMP: Symmetric display bound for z-scores (default: 3.0)
- ANALYTICS_MIN_BASELINE_SAMPLES: Minimum baseline values for a z-score (default: 2)
- ANALYTICS_HEATMAP_MAX_CELLS: Cells retained when merging heatmap snapshots (default: 100)
- ANALYTICS_TREND_STABLE_THRESHOLD: |change| below which a trend is "stable" (default: 0.05)

Usage:
    from portfolio_analytics.core.config import get_settings

    settings = get_settings()
    window = settings.baseline_window_days
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Every value has a default so the engine works with no environment at all;
    overrides exist for tuning the statistics without a code change.

    Attributes:
        baseline_window_days: Most recent N days used as the z-score baseline.
        zscore_clamp: Z-scores are saturated into [-zscore_clamp, +zscore_clamp].
        min_baseline_samples: Fewer valid baseline values than this yields an
            unknown score.
        heatmap_max_cells: Upper bound on cells kept by heatmap snapshot merges.
        trend_stable_threshold: Relative change (fraction) below which a trend
            summary is reported as stable.
    """

    model_config = SettingsConfigDict(
        env_prefix='ANALYTICS_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Baseline z-score statistics
    # =========================================================================

    # 28 days covers four full weekly cycles
    baseline_window_days: int = Field(default=28, gt=0)

    # ZScoreSet fields are bounded to [-3, 3]
    zscore_clamp: float = Field(default=3.0, gt=0.0, le=3.0)

    # Sample standard deviation (n-1) is undefined below two values
    min_baseline_samples: int = Field(default=2, ge=2)

    # =========================================================================
    # Heatmap
    # =========================================================================

    heatmap_max_cells: int = Field(default=100, gt=0)

    # =========================================================================
    # Trends
    # =========================================================================

    trend_stable_threshold: float = Field(default=0.05, ge=0.0)


@lru_cache()
def get_settings() -> Settings:
    """
    Get the engine settings singleton.

    Returns:
        Settings: The cached settings instance.

    Raises:
        pydantic.ValidationError: If an environment override has an invalid
            value (e.g. ANALYTICS_BASELINE_WINDOW_DAYS=0).

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
