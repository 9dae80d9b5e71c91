import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict

import numpy as np

from gtm_planner.timing import (
    frozen,
    iter_launches,
    project_launch,
    quarter_totals,
    walk_segments,
    zeros,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevenueBreakdown:
    realized: float = 0.0
    arr: float = 0.0


@dataclass(frozen=True)
class MetricsResult:
    total_shipments: float
    realized_revenue: float
    annualized_run_rate: float
    monthly_shipments: np.ndarray
    quarterly_breakdown: Dict[str, float]
    plan_totals: Dict[str, float]
    plan_revenue_breakdown: Dict[str, RevenueBreakdown]
    gtm_group_totals: Dict[str, float]
    gtm_group_revenue_breakdown: Dict[str, RevenueBreakdown]
    segment_totals: Dict[str, float]
    segment_revenue_breakdown: Dict[str, RevenueBreakdown]
    percentage_to_goal: float
    shortfall: float


class _Rollup:
    """Shipments/realized/ARR accumulator keyed by entity id."""

    def __init__(self):
        self.shipments = defaultdict(float)
        self.realized = defaultdict(float)
        self.arr = defaultdict(float)

    def add(self, key, projection):
        self.shipments[key] += projection.total_shipments
        self.realized[key] += projection.realized
        self.arr[key] += projection.arr

    def touch(self, key):
        for column in (self.shipments, self.realized, self.arr):
            column.setdefault(key, 0.0)

    def totals(self):
        return dict(self.shipments)

    def breakdown(self):
        return {key: RevenueBreakdown(self.realized[key], self.arr[key]) for key in self.shipments}


def calculate_metrics(scenario, rps, target_shipments, seasonality=None, integration_timeline=None):
    """
    Roll launches up into shipments, realized revenue and ARR.

    Every launch is projected once (see timing.project_launch) and its
    contribution is added to its segment, GTM group, plan and the scenario
    total, so each level is an exact sum of the level below.
    """
    if seasonality is None:
        seasonality = scenario.settings.seasonality
    if integration_timeline is None:
        integration_timeline = scenario.settings.integration_timeline_days

    monthly = zeros()
    segments, gtm_groups, plans = _Rollup(), _Rollup(), _Rollup()
    total_shipments = realized_revenue = annualized_run_rate = 0.0

    for plan in scenario.plans:
        plans.touch(plan.id)
        for gtm_group in plan.gtm_groups:
            gtm_groups.touch(gtm_group.id)

    for plan, gtm_group, segment in walk_segments(scenario):
        segments.touch(segment.id)
        for launch_month, launch_count in iter_launches(segment):
            projection = project_launch(
                segment, launch_month, launch_count, rps, seasonality, integration_timeline
            )
            if not projection.in_year:
                logger.debug(
                    f"Segment {segment.id}: {launch_count} launches in month {launch_month} "
                    f"go live in month {projection.go_live_month}, outside the planning year"
                )
                continue

            monthly += projection.shipments
            segments.add(segment.id, projection)
            gtm_groups.add(gtm_group.id, projection)
            plans.add(plan.id, projection)

            total_shipments += projection.total_shipments
            realized_revenue += projection.realized
            annualized_run_rate += projection.arr

    plan_shipments = sum(plans.shipments.values())
    if abs(plan_shipments - total_shipments) > 1e-6:
        logger.warning(f"Shipment conservation check: plans={plan_shipments:,.2f}, total={total_shipments:,.2f}")

    percentage_to_goal = (total_shipments / target_shipments) * 100 if target_shipments > 0 else 0.0

    return MetricsResult(
        total_shipments=total_shipments,
        realized_revenue=realized_revenue,
        annualized_run_rate=annualized_run_rate,
        monthly_shipments=frozen(monthly),
        quarterly_breakdown=quarter_totals(monthly),
        plan_totals=plans.totals(),
        plan_revenue_breakdown=plans.breakdown(),
        gtm_group_totals=gtm_groups.totals(),
        gtm_group_revenue_breakdown=gtm_groups.breakdown(),
        segment_totals=segments.totals(),
        segment_revenue_breakdown=segments.breakdown(),
        percentage_to_goal=percentage_to_goal,
        shortfall=target_shipments - total_shipments,
    )
