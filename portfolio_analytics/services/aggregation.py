"""
Counter Aggregation Service

Folds partial counter aggregates for the same portfolio day into one record,
for collaborators that accumulate a day's telemetry in several batches.

Rules:
- Counters are summed field by field.
- An unknown side contributes nothing: None + 5 = 5.
- Unknown on both sides stays unknown: None + None = None. Summing two
  "no data" reports must not fabricate a confirmed zero.
- A missing block on one side takes the other side's block as-is.

Per-project counters are merged by project id: existing projects keep their
order, projects seen for the first time are appended.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple, TypeVar

from pydantic import BaseModel

from portfolio_analytics.core.errors import AnalyticsError
from portfolio_analytics.models import DailyCounters, ProjectCountersWithId
from portfolio_analytics.services.numeric_guard import safe_add

logger = logging.getLogger(__name__)

ModelT = TypeVar('ModelT', bound=BaseModel)


def _sum_optional(a: Optional[int], b: Optional[int]) -> Optional[int]:
    if a is None and b is None:
        return None
    return safe_add(a, b)


def _merge_model(
    previous: Optional[ModelT],
    incoming: Optional[ModelT],
    keep: Tuple[str, ...] = ()
) -> Optional[ModelT]:
    """
    Sum two counter blocks of the same type, recursing into nested blocks.

    Fields named in ``keep`` are copied from ``previous`` instead of summed.
    """
    if previous is None:
        return incoming
    if incoming is None:
        return previous

    merged = {}
    for name in type(previous).model_fields:
        a = getattr(previous, name)
        b = getattr(incoming, name)
        if name in keep:
            merged[name] = a
        elif isinstance(a, BaseModel) or isinstance(b, BaseModel):
            merged[name] = _merge_model(a, b)
        else:
            merged[name] = _sum_optional(a, b)

    return type(previous)(**merged)


def merge_daily_counters(
    previous: Optional[DailyCounters],
    incoming: DailyCounters
) -> DailyCounters:
    """
    Merge an incoming partial aggregate into the day's running total.

    Args:
        previous: The running total, or None if this is the first batch.
        incoming: The new batch for the same portfolio and day.

    Returns:
        A new DailyCounters record with summed blocks.

    Raises:
        AnalyticsError: If the two records belong to different portfolios or
            days.
    """
    if previous is None:
        return incoming

    if previous.portfolioId != incoming.portfolioId or previous.date != incoming.date:
        logger.warning(
            "Rejected merge of %s@%s into %s@%s",
            incoming.portfolioId, incoming.date, previous.portfolioId, previous.date,
        )
        raise AnalyticsError(
            f"Cannot merge counters for {incoming.portfolioId}@{incoming.date} "
            f"into {previous.portfolioId}@{previous.date}"
        )

    return DailyCounters(
        portfolioId=previous.portfolioId,
        date=previous.date,
        engagement=_merge_model(previous.engagement, incoming.engagement),
        scroll=_merge_model(previous.scroll, incoming.scroll),
        cumProjects=_merge_model(previous.cumProjects, incoming.cumProjects),
    )


def merge_project_counters(
    existing: Optional[Iterable[ProjectCountersWithId]],
    incoming: Optional[Iterable[ProjectCountersWithId]]
) -> List[ProjectCountersWithId]:
    """
    Merge per-project counters by project id.

    Returns:
        Existing projects in their original order (summed with any incoming
        counters for the same id), followed by projects seen for the first
        time in incoming order.
    """
    existing_list = list(existing or [])
    incoming_list = list(incoming or [])

    merged: Dict[int, ProjectCountersWithId] = {}
    for project in existing_list:
        merged[project.id] = project

    for project in incoming_list:
        merged[project.id] = _merge_model(merged.get(project.id), project, keep=('id',))

    logger.debug(
        "Merged %d existing and %d new projects into %d total projects",
        len(existing_list),
        len(incoming_list),
        len(merged),
    )
    return list(merged.values())
