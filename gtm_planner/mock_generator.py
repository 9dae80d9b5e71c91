import numpy as np

from gtm_planner.config import DEFAULT_RPS, DEFAULT_TARGET_SHIPMENTS, N_MONTHS, create_default_settings
from gtm_planner.models import (
    DEFAULT_SPM,
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

# ==========================================
# CONFIGURATION
# ==========================================
"""
Synthetic plan snapshots for demos and invariant tests.
- Both plans (Baseline + Stretch), several GTM motions each
- Every tier represented, launches drawn per tier
- Deterministic for a given seed
"""

GTM_NAMES = {
    GtmType.SALES: ['Outbound AE Team', 'Enterprise Pod', 'Inside Sales'],
    GtmType.MARKETING: ['Paid Search', 'Peak Season Campaign', 'Webinar Series'],
    GtmType.PARTNERSHIPS: ['Platform Integrations', 'Agency Referrals'],
    GtmType.CUSTOM: ['Founder Network'],
}

# Mean launches per month per tier; SMB is high-volume, Flagship is rare
TIER_LAUNCH_RATE = {
    SegmentTier.SMB: 8.0,
    SegmentTier.MM: 3.0,
    SegmentTier.ENT: 1.0,
    SegmentTier.ENT_PLUS: 0.4,
    SegmentTier.FLAGSHIP: 0.15,
}

STRETCH_UPLIFT = 1.35

SEASONALITY = {
    SegmentTier.SMB: Seasonality(november=40, december=40),
    SegmentTier.MM: Seasonality(november=30, december=25),
    SegmentTier.ENT: Seasonality(november=20, december=15),
    SegmentTier.ENT_PLUS: Seasonality(november=10, december=10),
    SegmentTier.FLAGSHIP: Seasonality(november=10, december=5),
}

INTEGRATION_DAYS = {
    SegmentTier.SMB: 0,
    SegmentTier.MM: 30,
    SegmentTier.ENT: 45,
    SegmentTier.ENT_PLUS: 90,
    SegmentTier.FLAGSHIP: 120,
}


# ==========================================
# GENERATION
# ==========================================

def generate_launches(rng, tier, uplift=1.0):
    """Poisson launch counts for 12 months."""
    return tuple(int(n) for n in rng.poisson(TIER_LAUNCH_RATE[tier] * uplift, size=N_MONTHS))


def generate_segment(rng, segment_id, tier, uplift=1.0):
    spm = int(DEFAULT_SPM[tier] * rng.uniform(0.8, 1.2))
    return Segment(id=segment_id, segment_type=tier, spm=spm, launches=generate_launches(rng, tier, uplift))


def generate_gtm_group(rng, group_id, sort_order, uplift=1.0):
    gtm_types = list(GTM_NAMES)
    gtm_type = gtm_types[rng.integers(len(gtm_types))]
    names = GTM_NAMES[gtm_type]
    name = names[rng.integers(len(names))]

    all_tiers = list(SegmentTier)
    n_segments = int(rng.integers(1, 4))
    picks = rng.choice(len(all_tiers), size=n_segments, replace=False)
    segments = tuple(
        generate_segment(rng, f"{group_id}-seg-{i}", all_tiers[pick], uplift)
        for i, pick in enumerate(picks)
    )
    return GtmGroup(id=group_id, name=name, type=gtm_type, segments=segments, sort_order=sort_order)


def generate_mock_scenario(seed=42, n_groups=4, with_settings=True, rps=DEFAULT_RPS,
                           target_shipments=DEFAULT_TARGET_SHIPMENTS):
    """Build a Baseline/Stretch scenario with n_groups motions per plan."""
    rng = np.random.default_rng(seed)
    plans = []
    for plan_type in PlanType:
        uplift = STRETCH_UPLIFT if plan_type == PlanType.STRETCH else 1.0
        prefix = plan_type.value.lower()
        groups = tuple(
            generate_gtm_group(rng, f"{prefix}-gtm-{i}", i, uplift)
            for i in range(n_groups)
        )
        plans.append(Plan(id=f"plan-{prefix}", type=plan_type, gtm_groups=groups))

    if with_settings:
        settings = ScenarioSettings(seasonality=dict(SEASONALITY), integration_timeline_days=dict(INTEGRATION_DAYS))
    else:
        settings = create_default_settings()

    return Scenario(
        id=f"mock-{seed}",
        name=f"Mock Scenario {seed}",
        type=ScenarioType.CUSTOM,
        target_shipments=target_shipments,
        rps=rps,
        plans=tuple(plans),
        settings=settings,
    )
