import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from gtm_planner.models import SEGMENT_GROUP_MAPPING, SEGMENT_GROUPS, PlanType, SegmentGroup
from gtm_planner.timing import (
    integration_months,
    iter_launches,
    opp_creation_month,
    opps_needed,
    project_launch,
    usable_rate,
    zeros,
)

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    'scheduled_launches',
    'go_live_merchants',
    'top_of_funnel',
    'shipments',
    'realized_revenue',
    'arr',
]


@dataclass(frozen=True)
class MonthlyRow:
    scheduled_launches: int
    go_live_merchants: int
    top_of_funnel: int
    shipments: float
    realized_revenue: float
    arr: float
    cumulative_revenue: float
    cumulative_shipments: float
    cumulative_arr: float


@dataclass(frozen=True)
class PlanSegmentGroupReport:
    plan_id: str
    plan_type: PlanType
    segment_group: SegmentGroup
    monthly_data: Tuple[MonthlyRow, ...]


@dataclass(frozen=True)
class MonthlyReport:
    reports: Tuple[PlanSegmentGroupReport, ...]

    def for_plan(self, plan_id):
        return [r for r in self.reports if r.plan_id == plan_id]

    def get(self, plan_id, segment_group):
        for report in self.reports:
            if report.plan_id == plan_id and report.segment_group == segment_group:
                return report
        raise KeyError((plan_id, segment_group))


def _empty_group_columns():
    return {column: zeros() for column in REPORT_COLUMNS}


def _fold_segment(columns, segment, rps, rates, seasonality, timeline):
    tier = segment.segment_type
    rate = usable_rate(rates, tier)
    integration = integration_months(tier, timeline)

    for launch_month, launch_count in iter_launches(segment):
        columns['scheduled_launches'][launch_month] += launch_count

        projection = project_launch(segment, launch_month, launch_count, rps, seasonality, timeline)
        if projection.in_year:
            go_live = projection.go_live_month
            columns['go_live_merchants'][go_live] += launch_count
            columns['shipments'] += projection.shipments
            columns['realized_revenue'] += projection.shipments * rps
            columns['arr'][go_live] += projection.arr

        if rate is not None:
            month = opp_creation_month(launch_month, rate, integration)
            columns['top_of_funnel'][month] += opps_needed(launch_count, rate)


def _to_rows(columns):
    cumulative_revenue = np.cumsum(columns['realized_revenue'])
    cumulative_shipments = np.cumsum(columns['shipments'])
    cumulative_arr = np.cumsum(columns['arr'])
    return tuple(
        MonthlyRow(
            scheduled_launches=int(columns['scheduled_launches'][m]),
            go_live_merchants=int(columns['go_live_merchants'][m]),
            top_of_funnel=int(columns['top_of_funnel'][m]),
            shipments=float(columns['shipments'][m]),
            realized_revenue=float(columns['realized_revenue'][m]),
            arr=float(columns['arr'][m]),
            cumulative_revenue=float(cumulative_revenue[m]),
            cumulative_shipments=float(cumulative_shipments[m]),
            cumulative_arr=float(cumulative_arr[m]),
        )
        for m in range(len(cumulative_revenue))
    )


def calculate_monthly_report_data(scenario, rps, conversion_rates, seasonality=None, integration_timeline=None):
    """
    Month-by-month table per (plan, segment group) for exportable reports.

    Shipments and revenue land in the calendar month they are produced, ARR
    and go-live merchants in the go-live month, and opportunities in the
    month they must be created. Rows carry running cumulative revenue,
    shipments and ARR. Reports are ordered by plan, then SMB, Mid-Market,
    Enterprise.
    """
    if seasonality is None:
        seasonality = scenario.settings.seasonality
    if integration_timeline is None:
        integration_timeline = scenario.settings.integration_timeline_days

    reports = []
    for plan in scenario.plans:
        groups = {group: _empty_group_columns() for group in SEGMENT_GROUPS}
        for gtm_group in plan.gtm_groups:
            for segment in gtm_group.segments:
                group = SEGMENT_GROUP_MAPPING[segment.segment_type]
                _fold_segment(groups[group], segment, rps, conversion_rates, seasonality, integration_timeline)

        for group in SEGMENT_GROUPS:
            reports.append(PlanSegmentGroupReport(
                plan_id=plan.id,
                plan_type=plan.type,
                segment_group=group,
                monthly_data=_to_rows(groups[group]),
            ))

    logger.debug(f"Built {len(reports)} monthly report tables for scenario {scenario.id}")
    return MonthlyReport(reports=tuple(reports))
