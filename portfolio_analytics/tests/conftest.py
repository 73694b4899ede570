"""
Pytest Configuration and Shared Fixtures for the Portfolio Analytics Tests.

This module provides fixtures and configuration for all engine tests:
- A factory fixture building DailyCounters records with sensible defaults
- Reference day fixtures whose derived metrics are known by hand
- Synthetic history fixtures for baseline z-score tests
- Settings isolation so environment overrides never leak between tests

Dependencies:
- pytest
- numpy
"""

from datetime import date, timedelta
from typing import Callable, Generator, List, Optional

import numpy as np
import pytest

from portfolio_analytics.core.config import Settings, get_settings
from portfolio_analytics.models import (
    DailyCounters,
    Devices,
    Engagement,
    InteractionMetrics,
    ProjectCounters,
)


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - slow: Marks tests as slow (deselect with -m "not slow")
    - contract: Marks tests pinning exact values the reporting layer relies on
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )
    config.addinivalue_line(
        'markers',
        'contract: marks tests pinning values the reporting layer depends on'
    )


# ============================================================
# SETTINGS ISOLATION
# ============================================================

@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """
    Clear the get_settings() cache before and after every test.

    Tests that monkeypatch ANALYTICS_* environment variables would otherwise
    leave a stale Settings singleton behind for later tests.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def default_settings() -> Settings:
    """
    Settings built from defaults only, independent of the environment.
    """
    return Settings(_env_file=None)


# ============================================================
# COUNTER FACTORIES
# ============================================================

REFERENCE_DAY = date(2026, 3, 14)


@pytest.fixture
def make_counters() -> Callable[..., DailyCounters]:
    """
    Factory fixture for DailyCounters records.

    Only the counters passed in are set; everything else stays unknown.

    Example:
        def test_something(make_counters):
            day = make_counters(views=100, score_total=4500)
    """
    def _make(
        day: date = REFERENCE_DAY,
        portfolio_id: str = 'pf_123',
        views: Optional[int] = None,
        quality_visits: Optional[int] = None,
        email_copies: Optional[int] = None,
        social_clicks: Optional[int] = None,
        desktop_views: Optional[int] = None,
        mobile_tablet_views: Optional[int] = None,
        score_total: Optional[int] = None,
        scroll_time_total: Optional[int] = None,
        ttfi_sum_ms: Optional[int] = None,
        ttfi_count: Optional[int] = None,
        view_time: Optional[int] = None,
        exposures: Optional[int] = None,
        with_engagement: bool = True,
    ) -> DailyCounters:
        devices = None
        if desktop_views is not None or mobile_tablet_views is not None:
            devices = Devices(
                desktopViews=desktop_views,
                mobileTabletViews=mobile_tablet_views,
            )

        engagement = None
        if with_engagement:
            engagement = Engagement(
                views=views,
                qualityVisits=quality_visits,
                emailCopies=email_copies,
                socialClicks=social_clicks,
                devices=devices,
            )

        scroll = InteractionMetrics(
            scoreTotal=score_total,
            scrollTimeTotal=scroll_time_total,
            ttfiSumMs=ttfi_sum_ms,
            ttfiCount=ttfi_count,
        )

        projects = None
        if view_time is not None or exposures is not None:
            projects = ProjectCounters(viewTime=view_time, exposures=exposures)

        return DailyCounters(
            portfolioId=portfolio_id,
            date=day,
            engagement=engagement,
            scroll=scroll,
            cumProjects=projects,
        )

    return _make


@pytest.fixture
def reference_day(make_counters) -> DailyCounters:
    """
    A fully populated day with hand-computed derived metrics.

    Expected derived values:
    - desktopPct = 0.8, mobileTabletPct = 0.2
    - engagementAvg = 45.0
    - avgScrollTimeMs = 180.0
    - avgCardViewTimeMs = 92000 / 310 ~= 296.77
    - ttfiMeanMs = 85000 / 95 ~= 894.74
    - emailConversion = 0.03, qualityVisitRate = 0.4, socialCtr = 0.12
    """
    return make_counters(
        views=100,
        quality_visits=40,
        email_copies=3,
        social_clicks=12,
        desktop_views=80,
        mobile_tablet_views=20,
        score_total=4500,
        scroll_time_total=180,
        ttfi_sum_ms=85000,
        ttfi_count=95,
        view_time=920,
        exposures=310,
    )


# ============================================================
# HISTORY FIXTURES
# ============================================================

@pytest.fixture
def noisy_history(make_counters) -> List[DailyCounters]:
    """
    28 days of history before REFERENCE_DAY with views around 100.

    Every metric has spread, so every z-score is computable against it.
    Returned in ascending date order.
    """
    rng = np.random.default_rng(42)
    records = []
    for offset in range(28, 0, -1):
        views = int(rng.integers(90, 111))
        records.append(make_counters(
            day=REFERENCE_DAY - timedelta(days=offset),
            views=views,
            quality_visits=int(rng.integers(30, 51)),
            social_clicks=int(rng.integers(5, 16)),
            score_total=views * int(rng.integers(40, 51)),
            ttfi_sum_ms=int(rng.integers(70000, 100001)),
            ttfi_count=100,
        ))
    return records


@pytest.fixture
def increasing_views_history(make_counters) -> List[DailyCounters]:
    """
    Seven days before REFERENCE_DAY with views 100, 110, ..., 160.
    """
    return [
        make_counters(
            day=REFERENCE_DAY - timedelta(days=7 - i),
            views=100 + 10 * i,
        )
        for i in range(7)
    ]
