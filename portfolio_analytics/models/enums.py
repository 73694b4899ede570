"""
Enumeration definitions for the portfolio analytics engine.

All enums inherit from both `str` and `Enum` so they serialize as plain
strings inside Pydantic models and JSON payloads.
"""

from enum import Enum


class ZScoreMetric(str, Enum):
    """
    Metrics scored against the portfolio's own rolling baseline.

    Values match the ZScoreSet field names.

    - visits: raw daily views
    - engagement: average scroll score per view
    - ttfi: mean time-to-first-interaction, log-scaled and sign-inverted
      so that faster is higher
    - qualityVisitRate: quality visits per view
    - socialCtr: social link clicks per view
    """
    VISITS = "visits"
    ENGAGEMENT = "engagement"
    TTFI = "ttfi"
    QUALITY_VISIT_RATE = "qualityVisitRate"
    SOCIAL_CTR = "socialCtr"


class TrendDirection(str, Enum):
    """
    Direction of the latest day-over-day change in a metric series.

    - up: relative change at or above the stable threshold
    - down: relative change at or below the negative threshold
    - stable: |relative change| below the threshold
    """
    UP = "up"
    DOWN = "down"
    STABLE = "stable"
