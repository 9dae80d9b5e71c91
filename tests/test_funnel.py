import logging

import pytest

from gtm_planner.funnel import calculate_funnel_metrics
from gtm_planner.models import ConversionRate, SegmentTier
from gtm_planner.timing import months_back

from conftest import launches_at, make_segment, make_settings, single_segment_scenario


def _run(segment, rates, integration_days=None):
    settings = make_settings(integration_days=integration_days)
    scenario = single_segment_scenario(segment, settings=settings)
    return calculate_funnel_metrics(scenario, rates, settings.integration_timeline_days)


def test_launch_in_first_month_needs_opps_in_first_month(smb_rates):
    result = _run(make_segment(launches=launches_at(0, 10)), smb_rates)
    assert result.total_opps == 40
    assert result.monthly_opps_total[0] == 40
    assert result.total_merchants == 10


@pytest.mark.parametrize('pct, merchants, expected', [
    (25, 10, 40),
    (33, 10, 31),
    (30, 3, 10),
    (100, 7, 7),
])
def test_opps_round_up(pct, merchants, expected):
    rates = {SegmentTier.SMB: ConversionRate(opp_to_close_pct=pct, avg_days_to_close=60)}
    result = _run(make_segment(launches=launches_at(6, merchants)), rates)
    assert result.total_opps == expected


def test_sales_cycle_and_integration_shift_back(smb_rates):
    result = _run(
        make_segment(launches=launches_at(8, 10)), smb_rates, integration_days={SegmentTier.SMB: 30},
    )
    # close in month 7, opp created two months before
    assert result.monthly_opps_total[5] == 40
    assert result.quarterly_opps_total == {'Q1': 0, 'Q2': 40, 'Q3': 0, 'Q4': 0}


def test_opps_before_year_start_clamp_to_first_month():
    rates = {SegmentTier.SMB: ConversionRate(opp_to_close_pct=10, avg_days_to_close=180)}
    result = _run(make_segment(launches=launches_at(2, 5)), rates)
    assert result.monthly_opps_total[0] == 50
    assert result.monthly_opps_total.sum() == 50


@pytest.mark.parametrize('days, expected', [(0, 0), (44, 1), (45, 2), (60, 2), (75, 3), (180, 6)])
def test_months_back_rounds_half_up(days, expected):
    assert months_back(days) == expected


def test_tier_without_rate_is_skipped(smb_rates, caplog):
    with caplog.at_level(logging.DEBUG):
        result = _run(make_segment(tier=SegmentTier.ENT, launches=launches_at(6, 4)), smb_rates)
    assert result.total_opps == 0
    assert result.total_merchants == 0
    assert result.segment_funnel_data['seg-1'].total_opps == 0
    assert not any(r.levelno >= logging.WARNING for r in caplog.records)


def test_zero_rate_is_skipped_with_warning(caplog):
    rates = {SegmentTier.SMB: ConversionRate(opp_to_close_pct=0, avg_days_to_close=60)}
    with caplog.at_level(logging.WARNING):
        result = _run(make_segment(launches=launches_at(6, 4)), rates)
    assert result.total_opps == 0
    assert result.total_merchants == 0
    assert 'SMB' in caplog.text


def test_every_entity_is_reported(two_plan_scenario, smb_rates):
    result = calculate_funnel_metrics(two_plan_scenario, smb_rates)
    assert set(result.plan_funnel_data) == {'plan-b', 'plan-s'}
    assert set(result.gtm_group_funnel_data) == {'gtm-b1', 'gtm-b2', 'gtm-s1'}
    assert set(result.segment_funnel_data) == {'b1-smb', 'b1-mm', 'b2-ent', 's1-flag', 's1-smb'}
    assert result.segment_funnel_data['b1-mm'].total_opps == 0


def test_levels_add_up(two_plan_scenario, default_rates):
    result = calculate_funnel_metrics(two_plan_scenario, default_rates)

    for plan in two_plan_scenario.plans:
        plan_data = result.plan_funnel_data[plan.id]
        groups = [result.gtm_group_funnel_data[g.id] for g in plan.gtm_groups]
        assert sum(g.total_opps for g in groups) == plan_data.total_opps
        assert sum(g.total_merchants for g in groups) == plan_data.total_merchants
        assert (sum(g.monthly_opps for g in groups) == plan_data.monthly_opps).all()

    assert sum(p.total_opps for p in result.plan_funnel_data.values()) == result.total_opps
    assert sum(result.quarterly_opps_total.values()) == result.total_opps
    assert result.monthly_opps_total.sum() == result.total_opps
    assert result.total_merchants == sum(sum(s.launches) for _, _, s in _segments(two_plan_scenario))


def test_funnel_counts_launches_that_go_live_after_year_end(smb_rates):
    result = _run(
        make_segment(launches=launches_at(11, 10)), smb_rates, integration_days={SegmentTier.SMB: 60},
    )
    assert result.total_opps == 40
    assert result.monthly_opps_total[7] == 40


def _segments(scenario):
    for plan in scenario.plans:
        for group in plan.gtm_groups:
            for segment in group.segments:
                yield plan, group, segment
