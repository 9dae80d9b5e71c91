import pytest

from gtm_planner.metrics import calculate_metrics
from gtm_planner.models import PlanType, SegmentGroup, SegmentTier
from gtm_planner.monthly_report import calculate_monthly_report_data

from conftest import launches_at, make_segment, make_settings, single_segment_scenario


def _report(segment, rates, rps=1, integration_days=None):
    settings = make_settings(integration_days=integration_days)
    scenario = single_segment_scenario(segment, rps=rps, settings=settings)
    return calculate_monthly_report_data(
        scenario, rps, rates, settings.seasonality, settings.integration_timeline_days
    )


def test_one_table_per_plan_and_segment_group(two_plan_scenario, default_rates):
    report = calculate_monthly_report_data(two_plan_scenario, 2, default_rates)
    keys = [(r.plan_id, r.segment_group) for r in report.reports]
    assert keys == [
        ('plan-b', SegmentGroup.SMB),
        ('plan-b', SegmentGroup.MID_MARKET),
        ('plan-b', SegmentGroup.ENTERPRISE),
        ('plan-s', SegmentGroup.SMB),
        ('plan-s', SegmentGroup.MID_MARKET),
        ('plan-s', SegmentGroup.ENTERPRISE),
    ]
    assert all(len(r.monthly_data) == 12 for r in report.reports)
    assert report.for_plan('plan-s')[0].plan_type == PlanType.STRETCH


def test_single_launch_rows(smb_rates):
    report = _report(make_segment(spm=100, launches=launches_at(0, 10)), smb_rates)
    rows = report.get('plan-baseline', SegmentGroup.SMB).monthly_data

    first = rows[0]
    assert first.scheduled_launches == 10
    assert first.go_live_merchants == 10
    assert first.top_of_funnel == 40
    assert first.shipments == 500
    assert first.realized_revenue == 500
    assert first.arr == pytest.approx(12000)

    assert rows[1].arr == 0
    assert rows[11].cumulative_arr == pytest.approx(12000)
    assert rows[11].cumulative_revenue == pytest.approx(11500)
    assert rows[11].cumulative_shipments == pytest.approx(11500)


def test_empty_groups_are_all_zero(smb_rates):
    report = _report(make_segment(spm=100, launches=launches_at(0, 10)), smb_rates)
    for group in (SegmentGroup.MID_MARKET, SegmentGroup.ENTERPRISE):
        rows = report.get('plan-baseline', group).monthly_data
        assert all(row.shipments == 0 and row.cumulative_arr == 0 for row in rows)


def test_mm_and_ent_share_mid_market(default_rates):
    plan_rows = {}
    for tier in (SegmentTier.MM, SegmentTier.ENT):
        report = _report(make_segment(tier=tier, spm=500, launches=launches_at(3, 2)), default_rates)
        plan_rows[tier] = report.get('plan-baseline', SegmentGroup.MID_MARKET).monthly_data
    assert plan_rows[SegmentTier.MM][3].scheduled_launches == 2
    assert plan_rows[SegmentTier.ENT][3].scheduled_launches == 2


def test_integration_delay_moves_go_live_and_arr(smb_rates):
    report = _report(
        make_segment(spm=100, launches=launches_at(2, 10)), smb_rates,
        integration_days={SegmentTier.SMB: 60},
    )
    rows = report.get('plan-baseline', SegmentGroup.SMB).monthly_data
    assert rows[2].scheduled_launches == 10
    assert rows[2].go_live_merchants == 0
    assert rows[4].go_live_merchants == 10
    assert rows[4].arr == pytest.approx(12000)
    assert rows[4].shipments == 500
    assert rows[3].shipments == 0


def test_launch_going_live_after_year_end(smb_rates):
    report = _report(
        make_segment(spm=100, launches=launches_at(11, 10)), smb_rates,
        integration_days={SegmentTier.SMB: 31},
    )
    rows = report.get('plan-baseline', SegmentGroup.SMB).monthly_data
    assert rows[11].scheduled_launches == 10
    assert sum(row.go_live_merchants for row in rows) == 0
    assert rows[11].cumulative_arr == 0
    assert rows[11].cumulative_shipments == 0
    # opps are still needed: close in month 9, created in month 7
    assert rows[7].top_of_funnel == 40


def test_missing_rate_leaves_funnel_column_empty():
    report = _report(make_segment(spm=100, launches=launches_at(0, 10)), {})
    rows = report.get('plan-baseline', SegmentGroup.SMB).monthly_data
    assert sum(row.top_of_funnel for row in rows) == 0
    assert rows[0].shipments == 500


def test_totals_match_metrics(two_plan_scenario, default_rates):
    scenario = two_plan_scenario
    metrics = calculate_metrics(scenario, scenario.rps, scenario.target_shipments)
    report = calculate_monthly_report_data(scenario, scenario.rps, default_rates)

    for plan in scenario.plans:
        tables = report.for_plan(plan.id)
        shipments = sum(t.monthly_data[-1].cumulative_shipments for t in tables)
        revenue = sum(t.monthly_data[-1].cumulative_revenue for t in tables)
        arr = sum(t.monthly_data[-1].cumulative_arr for t in tables)
        assert shipments == pytest.approx(metrics.plan_totals[plan.id])
        assert revenue == pytest.approx(metrics.plan_revenue_breakdown[plan.id].realized)
        assert arr == pytest.approx(metrics.plan_revenue_breakdown[plan.id].arr)


def test_unknown_table_raises(smb_rates):
    report = _report(make_segment(), smb_rates)
    with pytest.raises(KeyError):
        report.get('plan-missing', SegmentGroup.SMB)
