"""
Tabular and quarterly views over engine output.

Everything here is derived from the same per-launch projection used by the
metrics engine; frames stop at pandas and leave file formatting to callers.
"""

import logging

import pandas as pd

from gtm_planner.config import MONTHS, N_MONTHS, QUARTER_KEYS
from gtm_planner.models import PlanType, SegmentTier
from gtm_planner.timing import (
    integration_months,
    iter_launches,
    project_launch,
    quarter_of,
    walk_segments,
    zeros,
)

logger = logging.getLogger(__name__)

SEGMENT_MONTH_COLUMNS = {
    'plan_id': 'object',
    'plan_type': 'object',
    'gtm_group_id': 'object',
    'gtm_name': 'object',
    'gtm_type': 'object',
    'segment_id': 'object',
    'segment_type': 'object',
    'month_index': 'int64',
    'month': 'object',
    'quarter': 'object',
    'scheduled_launches': 'int64',
    'go_live_merchants': 'int64',
    'shipments': 'float64',
    'realized_revenue': 'float64',
    'arr': 'float64',
}

DETAIL_COLUMNS = [
    'plan_id', 'plan_type', 'gtm_group_id', 'gtm_name', 'segment_id', 'segment_type', 'month_index', 'month',
    'top_of_funnel', 'scheduled_launches', 'go_live_merchants', 'shipments',
    'realized_revenue', 'cumulative_revenue', 'arr', 'cumulative_arr',
]

VALUE_COLUMNS = ['shipments', 'realized_revenue', 'arr']


def _value(enum_or_str):
    return getattr(enum_or_str, 'value', enum_or_str)


def _settings(scenario, seasonality, integration_timeline):
    if seasonality is None:
        seasonality = scenario.settings.seasonality
    if integration_timeline is None:
        integration_timeline = scenario.settings.integration_timeline_days
    return seasonality, integration_timeline


# --- Long-format segment x month frame ---

def segment_month_frame(scenario, rps, seasonality=None, integration_timeline=None):
    """One row per (segment, calendar month) with launches, go-lives, shipments, revenue and ARR."""
    seasonality, integration_timeline = _settings(scenario, seasonality, integration_timeline)

    rows = []
    for plan, gtm_group, segment in walk_segments(scenario):
        launches, go_lives, shipments, arr = zeros(), zeros(), zeros(), zeros()
        for launch_month, launch_count in iter_launches(segment):
            launches[launch_month] += launch_count
            projection = project_launch(segment, launch_month, launch_count, rps, seasonality, integration_timeline)
            if projection.in_year:
                go_lives[projection.go_live_month] += launch_count
                shipments += projection.shipments
                arr[projection.go_live_month] += projection.arr

        for m in range(N_MONTHS):
            rows.append({
                'plan_id': plan.id,
                'plan_type': _value(plan.type),
                'gtm_group_id': gtm_group.id,
                'gtm_name': gtm_group.name,
                'gtm_type': _value(gtm_group.type),
                'segment_id': segment.id,
                'segment_type': _value(segment.segment_type),
                'month_index': m,
                'month': MONTHS[m],
                'quarter': quarter_of(m),
                'scheduled_launches': int(launches[m]),
                'go_live_merchants': int(go_lives[m]),
                'shipments': shipments[m],
                'realized_revenue': shipments[m] * rps,
                'arr': arr[m],
            })

    if not rows:
        return pd.DataFrame({col: pd.Series(dtype=dtype) for col, dtype in SEGMENT_MONTH_COLUMNS.items()})
    return pd.DataFrame(rows, columns=list(SEGMENT_MONTH_COLUMNS))


def segment_monthly_detail(scenario, rps, funnel, seasonality=None, integration_timeline=None):
    """Per-segment monthly detail with top of funnel and running revenue/ARR."""
    frame = segment_month_frame(scenario, rps, seasonality, integration_timeline)
    if frame.empty:
        return pd.DataFrame(columns=DETAIL_COLUMNS)

    def opps_for(row):
        data = funnel.segment_funnel_data.get(row['segment_id'])
        return int(data.monthly_opps[row['month_index']]) if data is not None else 0

    frame['top_of_funnel'] = frame.apply(opps_for, axis=1)
    # rows are already month-ordered within each segment
    running = frame.groupby('segment_id', sort=False)[['realized_revenue', 'arr']].cumsum()
    frame['cumulative_revenue'] = running['realized_revenue']
    frame['cumulative_arr'] = running['arr']
    return frame[DETAIL_COLUMNS]


# --- Quarterly views ---

def quarter_plan_type_breakdown(scenario, rps, seasonality=None, integration_timeline=None):
    """
    Per quarter: total shipments plus realized revenue and ARR for each plan
    type. ARR is booked in the quarter the cohort goes live.
    """
    frame = segment_month_frame(scenario, rps, seasonality, integration_timeline)
    index = pd.Index(QUARTER_KEYS, name='quarter')

    result = pd.DataFrame(index=index)
    result['shipments'] = frame.groupby('quarter')['shipments'].sum().reindex(index, fill_value=0.0)
    for plan_type in PlanType:
        subset = frame[frame['plan_type'] == plan_type.value]
        by_quarter = subset.groupby('quarter')[['realized_revenue', 'arr']].sum().reindex(index, fill_value=0.0)
        key = plan_type.value.lower()
        result[f'{key}_realized'] = by_quarter['realized_revenue']
        result[f'{key}_arr'] = by_quarter['arr']
    return result


def plan_quarter_breakdown(scenario, rps, seasonality=None, integration_timeline=None):
    frame = segment_month_frame(scenario, rps, seasonality, integration_timeline)
    full_index = pd.MultiIndex.from_product(
        [[plan.id for plan in scenario.plans], list(QUARTER_KEYS)],
        names=['plan_id', 'quarter'],
    )
    grouped = frame.groupby(['plan_id', 'quarter'])[VALUE_COLUMNS].sum()
    return grouped.reindex(full_index, fill_value=0.0)


def tier_quarter_breakdown(scenario, funnel, integration_timeline=None):
    """Per tier: quarterly opportunities to create and merchants going live."""
    if integration_timeline is None:
        integration_timeline = scenario.settings.integration_timeline_days

    breakdown = {
        tier: {'opps': dict.fromkeys(QUARTER_KEYS, 0), 'merchants': dict.fromkeys(QUARTER_KEYS, 0)}
        for tier in SegmentTier
    }
    for _, _, segment in walk_segments(scenario):
        tier = SegmentTier(segment.segment_type)
        data = funnel.segment_funnel_data.get(segment.id)
        if data is not None:
            for quarter in QUARTER_KEYS:
                breakdown[tier]['opps'][quarter] += data.quarterly_opps[quarter]

        integration = integration_months(tier, integration_timeline)
        for launch_month, launch_count in iter_launches(segment):
            go_live = launch_month + integration
            if go_live < N_MONTHS:
                breakdown[tier]['merchants'][quarter_of(go_live)] += launch_count
    return breakdown


# --- Result frames ---

def monthly_report_frame(report):
    rows = []
    for table in report.reports:
        for m, row in enumerate(table.monthly_data):
            rows.append({
                'plan_id': table.plan_id,
                'plan_type': _value(table.plan_type),
                'segment_group': _value(table.segment_group),
                'month_index': m,
                'month': MONTHS[m],
                'top_of_funnel': row.top_of_funnel,
                'scheduled_launches': row.scheduled_launches,
                'go_live_merchants': row.go_live_merchants,
                'shipments': row.shipments,
                'realized_revenue': row.realized_revenue,
                'cumulative_revenue': row.cumulative_revenue,
                'arr': row.arr,
                'cumulative_arr': row.cumulative_arr,
                'cumulative_shipments': row.cumulative_shipments,
            })
    return pd.DataFrame(rows)


def metrics_summary_frame(scenario, metrics):
    rows = []
    for plan in scenario.plans:
        revenue = metrics.plan_revenue_breakdown.get(plan.id)
        rows.append({
            'plan_id': plan.id,
            'plan_type': _value(plan.type),
            'gtm_groups': len(plan.gtm_groups),
            'shipments': metrics.plan_totals.get(plan.id, 0.0),
            'realized_revenue': revenue.realized if revenue else 0.0,
            'arr': revenue.arr if revenue else 0.0,
        })
    summary = pd.DataFrame(rows, columns=['plan_id', 'plan_type', 'gtm_groups', 'shipments', 'realized_revenue', 'arr'])
    total = metrics.total_shipments
    summary['share_of_shipments'] = summary['shipments'] / total if total > 0 else 0.0
    return summary
