import pytest

from gtm_planner.config import DEFAULT_CONVERSION_RATES, create_default_settings
from gtm_planner.models import (
    ConversionRate,
    GtmGroup,
    GtmType,
    Plan,
    PlanType,
    Scenario,
    ScenarioSettings,
    ScenarioType,
    Seasonality,
    Segment,
    SegmentTier,
)


def launches_at(month, count, n=12):
    launches = [0] * n
    launches[month] = count
    return tuple(launches)


def make_segment(seg_id='seg-1', tier=SegmentTier.SMB, spm=100, launches=None):
    if launches is None:
        launches = launches_at(0, 10)
    return Segment(id=seg_id, segment_type=tier, spm=spm, launches=tuple(launches))


def make_group(group_id='gtm-1', segments=(), gtm_type=GtmType.SALES, name='Outbound', execution_plan=None):
    return GtmGroup(
        id=group_id, name=name, type=gtm_type, segments=tuple(segments), execution_plan=execution_plan,
    )


def make_scenario(plans, rps=1, target_shipments=400_000, settings=None):
    return Scenario(
        id='scn-1',
        name='Test Scenario',
        type=ScenarioType.CUSTOM,
        target_shipments=target_shipments,
        rps=rps,
        plans=tuple(plans),
        settings=settings or create_default_settings(),
    )


def single_segment_scenario(segment, rps=1, settings=None, target_shipments=400_000):
    plan = Plan(id='plan-baseline', type=PlanType.BASELINE, gtm_groups=(make_group(segments=[segment]),))
    return make_scenario([plan], rps=rps, settings=settings, target_shipments=target_shipments)


def make_settings(seasonality=None, integration_days=None):
    return ScenarioSettings(
        seasonality=seasonality or {},
        integration_timeline_days=integration_days or {},
    )


@pytest.fixture
def smb_rates():
    return {SegmentTier.SMB: ConversionRate(opp_to_close_pct=25, avg_days_to_close=60)}


@pytest.fixture
def default_rates():
    return dict(DEFAULT_CONVERSION_RATES)


@pytest.fixture
def two_plan_scenario():
    """Baseline with two motions, Stretch with one; mixed tiers."""
    baseline = Plan(id='plan-b', type=PlanType.BASELINE, gtm_groups=(
        make_group('gtm-b1', [
            make_segment('b1-smb', SegmentTier.SMB, 100, (10, 0, 5, 0, 0, 0, 0, 0, 0, 3, 0, 0)),
            make_segment('b1-mm', SegmentTier.MM, 500, (0, 2, 0, 0, 2, 0, 0, 0, 0, 0, 0, 1)),
        ]),
        make_group('gtm-b2', [
            make_segment('b2-ent', SegmentTier.ENT, 1000, (0, 0, 1, 0, 0, 1, 0, 0, 1, 0, 0, 0)),
        ], gtm_type=GtmType.MARKETING, name='Peak Campaign'),
    ))
    stretch = Plan(id='plan-s', type=PlanType.STRETCH, gtm_groups=(
        make_group('gtm-s1', [
            make_segment('s1-flag', SegmentTier.FLAGSHIP, 5000, (0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 1, 0)),
            make_segment('s1-smb', SegmentTier.SMB, 120, (4, 4, 4, 4, 4, 4, 4, 4, 4, 4, 4, 4)),
        ], gtm_type=GtmType.PARTNERSHIPS, name='Agency Referrals'),
    ))
    settings = make_settings(
        seasonality={
            SegmentTier.SMB: Seasonality(november=40, december=20),
            SegmentTier.MM: Seasonality(november=10, december=10),
        },
        integration_days={SegmentTier.MM: 30, SegmentTier.ENT: 45, SegmentTier.FLAGSHIP: 90},
    )
    return make_scenario([baseline, stretch], rps=2, target_shipments=100_000, settings=settings)
