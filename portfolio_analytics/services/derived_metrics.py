"""
Derived Metrics Calculator

Maps one day's raw counters into human-meaningful ratios and averages, at
portfolio level and per project card.

Portfolio-day formulas:
- desktopPct        = desktopViews / (desktopViews + mobileTabletViews)
- mobileTabletPct   = mobileTabletViews / (desktopViews + mobileTabletViews)
- engagementAvg     = scrollScoreSum / views
- avgScrollTimeMs   = ms(scrollTimeSum) / views
- avgCardViewTimeMs = ms(projectViewTimeTotal) / projectExposuresTotal
- ttfiMeanMs        = ttfiSumMs / ttfiCount
- emailConversion   = emailCopies / views
- qualityVisitRate  = qualityVisits / views
- socialCtr         = socialClicks / views

Project-day formulas:
- avgViewTimeMs = ms(viewTime) / exposures
- codeCtr       = codeViews / exposures
- liveCtr       = liveViews / exposures

Null propagation is field-independent: each output is a MetricProjection
naming the inputs it requires, so one missing counter makes exactly the
outputs that need it unknown and nothing else. The only exception is a
missing engagement block, which short-circuits every portfolio output.

Example:
    >>> derived = calculate_derived_metrics(counters)
    >>> derived.desktopPct
    0.8
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from portfolio_analytics.models import (
    DailyCounters,
    DerivedDayMetrics,
    EnhancedProjectMetrics,
    ProjectCounters,
    ProjectCountersWithId,
    ProjectDerivedMetrics,
)
from portfolio_analytics.services.numeric_guard import (
    safe_add,
    safe_divide,
    scale_time_unit,
)

Inputs = Dict[str, Optional[int]]


# =============================================================================
# Generic Projection
# =============================================================================


@dataclass(frozen=True)
class MetricProjection:
    """
    One derived output: its field name, the inputs it cannot do without, and
    the formula computing it.

    The formula only runs when every required input is known. It may read
    optional inputs too (device mix reads the other side of the split), and
    is expected to route division through safe_divide so zero denominators
    still come out unknown.
    """
    output: str
    requires: Tuple[str, ...]
    formula: Callable[[Inputs], Optional[float]]

    def evaluate(self, inputs: Inputs) -> Optional[float]:
        if any(inputs.get(name) is None for name in self.requires):
            return None
        return self.formula(inputs)


def project_metrics(
    projections: Iterable[MetricProjection],
    inputs: Inputs
) -> Dict[str, Optional[float]]:
    """
    Evaluate every projection against the same flat inputs.

    Returns:
        Mapping of output field name to value (None when unknown).
    """
    return {p.output: p.evaluate(inputs) for p in projections}


def _device_total(c: Inputs) -> int:
    return safe_add(c['desktopViews'], c['mobileTabletViews'])


DAY_PROJECTIONS: List[MetricProjection] = [
    MetricProjection(
        'desktopPct', ('desktopViews',),
        lambda c: safe_divide(c['desktopViews'], _device_total(c)),
    ),
    MetricProjection(
        'mobileTabletPct', ('mobileTabletViews',),
        lambda c: safe_divide(c['mobileTabletViews'], _device_total(c)),
    ),
    MetricProjection(
        'engagementAvg', ('scrollScoreSum', 'views'),
        lambda c: safe_divide(c['scrollScoreSum'], c['views']),
    ),
    MetricProjection(
        'avgScrollTimeMs', ('scrollTimeSum', 'views'),
        lambda c: safe_divide(scale_time_unit(c['scrollTimeSum']), c['views']),
    ),
    MetricProjection(
        'avgCardViewTimeMs', ('projectViewTimeTotal', 'projectExposuresTotal'),
        lambda c: safe_divide(
            scale_time_unit(c['projectViewTimeTotal']),
            c['projectExposuresTotal'],
        ),
    ),
    MetricProjection(
        'ttfiMeanMs', ('ttfiSumMs', 'ttfiCount'),
        lambda c: safe_divide(c['ttfiSumMs'], c['ttfiCount']),
    ),
    MetricProjection(
        'emailConversion', ('emailCopies', 'views'),
        lambda c: safe_divide(c['emailCopies'], c['views']),
    ),
    MetricProjection(
        'qualityVisitRate', ('qualityVisits', 'views'),
        lambda c: safe_divide(c['qualityVisits'], c['views']),
    ),
    MetricProjection(
        'socialCtr', ('socialClicks', 'views'),
        lambda c: safe_divide(c['socialClicks'], c['views']),
    ),
]

PROJECT_PROJECTIONS: List[MetricProjection] = [
    MetricProjection(
        'avgViewTimeMs', ('viewTime', 'exposures'),
        lambda c: safe_divide(scale_time_unit(c['viewTime']), c['exposures']),
    ),
    MetricProjection(
        'codeCtr', ('codeViews', 'exposures'),
        lambda c: safe_divide(c['codeViews'], c['exposures']),
    ),
    MetricProjection(
        'liveCtr', ('liveViews', 'exposures'),
        lambda c: safe_divide(c['liveViews'], c['exposures']),
    ),
]


# =============================================================================
# Input Flattening
# =============================================================================


def flatten_day_counters(counters: DailyCounters) -> Inputs:
    """
    Flatten the nested counter blocks into the input names the day
    projections use. A missing sub-block contributes None for each of its
    fields.
    """
    engagement = counters.engagement
    devices = engagement.devices if engagement is not None else None
    scroll = counters.scroll
    projects = counters.cumProjects

    return {
        'views': engagement.views if engagement else None,
        'qualityVisits': engagement.qualityVisits if engagement else None,
        'emailCopies': engagement.emailCopies if engagement else None,
        'socialClicks': engagement.socialClicks if engagement else None,
        'desktopViews': devices.desktopViews if devices else None,
        'mobileTabletViews': devices.mobileTabletViews if devices else None,
        'scrollScoreSum': scroll.scoreTotal if scroll else None,
        'scrollTimeSum': scroll.scrollTimeTotal if scroll else None,
        'ttfiSumMs': scroll.ttfiSumMs if scroll else None,
        'ttfiCount': scroll.ttfiCount if scroll else None,
        'projectViewTimeTotal': projects.viewTime if projects else None,
        'projectExposuresTotal': projects.exposures if projects else None,
    }


# =============================================================================
# Portfolio-Day Metrics
# =============================================================================


def calculate_derived_metrics(counters: Optional[DailyCounters]) -> DerivedDayMetrics:
    """
    Calculate the derived metrics for one portfolio day.

    Args:
        counters: The day's accumulated counters. None is treated like a
            record without an engagement block.

    Returns:
        DerivedDayMetrics with every field computable from the present
        counters filled in. When the engagement block is absent, all nine
        fields are unknown.

    Example:
        >>> counters = DailyCounters(
        ...     portfolioId="pf_1", date=date(2026, 3, 14),
        ...     engagement=Engagement(views=100, devices=Devices(desktopViews=80, mobileTabletViews=20)),
        ...     scroll=InteractionMetrics(scoreTotal=4500, scrollTimeTotal=180),
        ... )
        >>> calculate_derived_metrics(counters).engagementAvg
        45.0
    """
    if counters is None or counters.engagement is None:
        return DerivedDayMetrics()

    return DerivedDayMetrics(
        **project_metrics(DAY_PROJECTIONS, flatten_day_counters(counters))
    )


# =============================================================================
# Project Metrics
# =============================================================================


def calculate_project_derived_metrics(
    project: Optional[ProjectCounters]
) -> ProjectDerivedMetrics:
    """
    Calculate the derived metrics for one project card.

    A None project yields an all-unknown result rather than an error.
    """
    if project is None:
        return ProjectDerivedMetrics()

    inputs: Inputs = {
        'viewTime': project.viewTime,
        'exposures': project.exposures,
        'codeViews': project.codeViews,
        'liveViews': project.liveViews,
    }
    return ProjectDerivedMetrics(**project_metrics(PROJECT_PROJECTIONS, inputs))


def enhance_project_metrics(
    project: Optional[ProjectCountersWithId]
) -> Optional[EnhancedProjectMetrics]:
    """
    Pair a project's raw counters with its derived metrics.

    Returns:
        EnhancedProjectMetrics, or None when no project was given.
    """
    if project is None:
        return None

    raw = ProjectCounters(**project.model_dump(exclude={'id'}))
    return EnhancedProjectMetrics(
        id=project.id,
        raw=raw,
        derived=calculate_project_derived_metrics(raw),
    )


def calculate_project_derived_by_id(
    projects: Iterable[ProjectCountersWithId]
) -> Dict[int, ProjectDerivedMetrics]:
    """
    Calculate derived metrics for every project of a day, keyed by project id.

    Later entries with a repeated id replace earlier ones.
    """
    return {
        project.id: calculate_project_derived_metrics(project)
        for project in projects
    }
