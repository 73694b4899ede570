"""
Pydantic value models for the portfolio analytics engine.

This module defines the immutable value shapes the engine accepts and returns:
raw per-day counters delivered by ingestion, the derived per-day and
per-project metrics, the z-score set, and the sparse heatmap encoding.

Conventions:
- Field names are camelCase, matching the JSON the reporting layer serializes.
- Every counter is Optional. ``None`` means "no data", never zero, and is the
  only representation of an unknown value (no -1 or NaN sentinels).
- Models are frozen; they are constructed per request and discarded.

All models use Pydantic v2 syntax.
"""

from datetime import date as DateType
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from portfolio_analytics.models.enums import TrendDirection


# =============================================================================
# Raw Counters (delivered by the ingestion collaborator)
# =============================================================================


class Devices(BaseModel):
    """
    Device split of a day's views.
    """
    model_config = ConfigDict(frozen=True)

    desktopViews: Optional[int] = Field(
        default=None,
        ge=0,
        description="Views from desktop clients"
    )
    mobileTabletViews: Optional[int] = Field(
        default=None,
        ge=0,
        description="Views from mobile and tablet clients"
    )


class Engagement(BaseModel):
    """
    Visit-level engagement counters for one portfolio day.

    When the whole block is absent from a DailyCounters record, every derived
    metric for that day is unknown.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "views": 100,
                "qualityVisits": 40,
                "emailCopies": 3,
                "socialClicks": 12,
                "activeTime": 5400,
                "devices": {"desktopViews": 80, "mobileTabletViews": 20}
            }
        }
    )

    views: Optional[int] = Field(
        default=None,
        ge=0,
        description="Total portfolio views"
    )
    qualityVisits: Optional[int] = Field(
        default=None,
        ge=0,
        description="Visits that passed the engagement quality bar"
    )
    emailCopies: Optional[int] = Field(
        default=None,
        ge=0,
        description="Times the contact email was copied"
    )
    socialClicks: Optional[int] = Field(
        default=None,
        ge=0,
        description="Clicks on social profile links"
    )
    activeTime: Optional[int] = Field(
        default=None,
        ge=0,
        description="Summed active time in deciseconds"
    )
    devices: Optional[Devices] = Field(
        default=None,
        description="Desktop vs mobile/tablet split"
    )


class InteractionMetrics(BaseModel):
    """
    Scroll and time-to-first-interaction aggregates for one portfolio day.
    """
    model_config = ConfigDict(frozen=True)

    scoreTotal: Optional[int] = Field(
        default=None,
        ge=0,
        description="Sum of per-visit scroll scores"
    )
    scrollTimeTotal: Optional[int] = Field(
        default=None,
        ge=0,
        description="Sum of per-visit scroll time in deciseconds"
    )
    ttfiSumMs: Optional[int] = Field(
        default=None,
        ge=0,
        description="Sum of time-to-first-interaction samples in milliseconds"
    )
    ttfiCount: Optional[int] = Field(
        default=None,
        ge=0,
        description="Number of time-to-first-interaction samples"
    )


class ProjectCounters(BaseModel):
    """
    Exposure and click counters for a project card (or all cards, cumulatively).
    """
    model_config = ConfigDict(frozen=True)

    viewTime: Optional[int] = Field(
        default=None,
        ge=0,
        description="Time the card was in view, in deciseconds"
    )
    exposures: Optional[int] = Field(
        default=None,
        ge=0,
        description="Times the card was shown"
    )
    codeViews: Optional[int] = Field(
        default=None,
        ge=0,
        description="Clicks on the code/repository link"
    )
    liveViews: Optional[int] = Field(
        default=None,
        ge=0,
        description="Clicks on the live demo link"
    )


class ProjectCountersWithId(ProjectCounters):
    """
    Project counters keyed by the project's id within the portfolio.
    """
    id: int = Field(
        ...,
        description="Project identifier within the portfolio"
    )


class DailyCounters(BaseModel):
    """
    Accumulated counters for one portfolio on one calendar day.

    The (portfolioId, date) pair is the only identity a record has.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "portfolioId": "pf_123",
                "date": "2026-03-14",
                "engagement": {
                    "views": 100,
                    "qualityVisits": 40,
                    "emailCopies": 3,
                    "socialClicks": 12,
                    "devices": {"desktopViews": 80, "mobileTabletViews": 20}
                },
                "scroll": {
                    "scoreTotal": 4500,
                    "scrollTimeTotal": 180,
                    "ttfiSumMs": 85000,
                    "ttfiCount": 95
                },
                "cumProjects": {"viewTime": 920, "exposures": 310}
            }
        }
    )

    portfolioId: str = Field(
        ...,
        min_length=1,
        description="Portfolio the counters belong to"
    )
    date: DateType = Field(
        ...,
        description="Calendar day the counters were accumulated for"
    )
    engagement: Optional[Engagement] = Field(
        default=None,
        description="Visit-level engagement block"
    )
    scroll: Optional[InteractionMetrics] = Field(
        default=None,
        description="Scroll and TTFI aggregates"
    )
    cumProjects: Optional[ProjectCounters] = Field(
        default=None,
        description="Project counters summed over every card"
    )


# =============================================================================
# Derived Metrics
# =============================================================================


class DerivedDayMetrics(BaseModel):
    """
    Ratios and averages computed from one DailyCounters record.

    Rates are fractions in [0, 1]; times are milliseconds.
    """
    model_config = ConfigDict(frozen=True)

    desktopPct: Optional[float] = Field(default=None, description="Desktop share of device-attributed views")
    mobileTabletPct: Optional[float] = Field(default=None, description="Mobile/tablet share of device-attributed views")
    engagementAvg: Optional[float] = Field(default=None, description="Average scroll score per view")
    avgScrollTimeMs: Optional[float] = Field(default=None, description="Average scroll time per view (ms)")
    avgCardViewTimeMs: Optional[float] = Field(default=None, description="Average project card view time per exposure (ms)")
    ttfiMeanMs: Optional[float] = Field(default=None, description="Mean time-to-first-interaction (ms)")
    emailConversion: Optional[float] = Field(default=None, description="Email copies per view")
    qualityVisitRate: Optional[float] = Field(default=None, description="Quality visits per view")
    socialCtr: Optional[float] = Field(default=None, description="Social clicks per view")


class ProjectDerivedMetrics(BaseModel):
    """
    Per-project ratios computed from ProjectCounters.
    """
    model_config = ConfigDict(frozen=True)

    avgViewTimeMs: Optional[float] = Field(default=None, description="Average view time per exposure (ms)")
    codeCtr: Optional[float] = Field(default=None, description="Code link clicks per exposure")
    liveCtr: Optional[float] = Field(default=None, description="Live demo clicks per exposure")


class EnhancedProjectMetrics(BaseModel):
    """
    A project's raw counters together with its derived metrics.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    raw: ProjectCounters
    derived: ProjectDerivedMetrics


# =============================================================================
# Z-Scores
# =============================================================================


class ZScoreSet(BaseModel):
    """
    Baseline z-scores for one day, each clamped to the display range.

    A ``None`` score means no meaningful anomaly signal could be computed
    (thin baseline, no spread, or missing input); it is a valid UI state.
    """
    model_config = ConfigDict(frozen=True)

    visits: Optional[float] = Field(default=None, ge=-3.0, le=3.0)
    engagement: Optional[float] = Field(default=None, ge=-3.0, le=3.0)
    ttfi: Optional[float] = Field(
        default=None,
        ge=-3.0,
        le=3.0,
        description="Sign-inverted log-scale score; faster first interaction scores higher"
    )
    qualityVisitRate: Optional[float] = Field(default=None, ge=-3.0, le=3.0)
    socialCtr: Optional[float] = Field(default=None, ge=-3.0, le=3.0)


class EnhancedDayMetrics(BaseModel):
    """
    One day's raw counters with their derived metrics and z-scores.
    """
    model_config = ConfigDict(frozen=True)

    counters: DailyCounters
    derived: DerivedDayMetrics
    zScores: ZScoreSet


# =============================================================================
# Heatmap
# =============================================================================


class HeatmapCell(BaseModel):
    """
    A sampled cell of the interaction heatmap grid.

    ``count`` is the number of visits that contributed to ``value``; it is
    None when the source arrays carried no counts.
    """
    model_config = ConfigDict(frozen=True)

    row: int = Field(..., ge=0)
    column: int = Field(..., ge=0)
    value: float
    count: Optional[int] = Field(default=None, ge=0)


class SparseHeatmap(BaseModel):
    """
    Top-K sample of a rows x columns grid as parallel arrays.

    Cells not listed are "not sampled", never "confirmed zero". Structural
    invariants are checked by the heatmap codec, which raises
    MalformedHeatmapError rather than a validation error.
    """
    model_config = ConfigDict(frozen=True)

    version: Optional[str] = Field(default=None, description="Client grid layout version")
    rows: int
    columns: int
    indexes: List[int] = Field(default_factory=list)
    values: List[float] = Field(default_factory=list)
    counts: Optional[List[int]] = Field(default=None)


class HeatmapSnapshot(BaseModel):
    """
    One visit's sparse heatmap sample, as sent by the client.

    Carries no counts; each listed cell counts as one visit when merged.
    """
    model_config = ConfigDict(frozen=True)

    version: Optional[str] = None
    rows: int
    columns: int
    indexes: List[int] = Field(default_factory=list)
    values: List[float] = Field(default_factory=list)


# =============================================================================
# Trends
# =============================================================================


class TrendSummary(BaseModel):
    """
    Latest day-over-day movement of a metric series.

    changePct is a fraction ((current - previous) / previous), unknown when
    either value is missing or previous is zero.
    """
    model_config = ConfigDict(frozen=True)

    current: Optional[float] = None
    previous: Optional[float] = None
    changePct: Optional[float] = None
    trend: Optional[TrendDirection] = None
