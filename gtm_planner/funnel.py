"""
Top-of-funnel reverse calculation.

Works backwards from each scheduled launch: the deal must close
integration_months() before launch, and the opportunity must be created
round(avg_days_to_close / 30) months before close. Opportunities needed in
the past collapse into month 0.
"""

import logging
from dataclasses import dataclass
from typing import Dict

import numpy as np

from gtm_planner.config import QUARTER_KEYS
from gtm_planner.timing import (
    frozen,
    integration_months,
    iter_launches,
    opp_creation_month,
    opps_needed,
    quarter_of,
    usable_rate,
    walk_segments,
    zeros,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FunnelData:
    monthly_opps: np.ndarray
    quarterly_opps: Dict[str, int]
    total_opps: int
    total_merchants: int


@dataclass(frozen=True)
class FunnelResult:
    plan_funnel_data: Dict[str, FunnelData]
    gtm_group_funnel_data: Dict[str, FunnelData]
    segment_funnel_data: Dict[str, FunnelData]
    monthly_opps_total: np.ndarray
    quarterly_opps_total: Dict[str, int]
    total_opps: int
    total_merchants: int


class _FunnelBucket:

    def __init__(self):
        self.monthly_opps = zeros()
        self.quarterly_opps = {quarter: 0 for quarter in QUARTER_KEYS}
        self.total_opps = 0
        self.total_merchants = 0

    def add(self, month, opps, merchants):
        self.monthly_opps[month] += opps
        self.quarterly_opps[quarter_of(month)] += opps
        self.total_opps += opps
        self.total_merchants += merchants

    def freeze(self):
        return FunnelData(
            monthly_opps=frozen(self.monthly_opps),
            quarterly_opps=dict(self.quarterly_opps),
            total_opps=self.total_opps,
            total_merchants=self.total_merchants,
        )


def calculate_funnel_metrics(scenario, conversion_rates, integration_timeline=None):
    if integration_timeline is None:
        integration_timeline = scenario.settings.integration_timeline_days

    total = _FunnelBucket()
    plans, gtm_groups, segments = {}, {}, {}
    skipped_tiers = set()

    for plan in scenario.plans:
        plans[plan.id] = _FunnelBucket()
        for gtm_group in plan.gtm_groups:
            gtm_groups[gtm_group.id] = _FunnelBucket()

    for plan, gtm_group, segment in walk_segments(scenario):
        bucket = segments[segment.id] = _FunnelBucket()
        tier = segment.segment_type
        rate = usable_rate(conversion_rates, tier)
        if rate is None:
            skipped_tiers.add(tier)
            continue

        integration = integration_months(tier, integration_timeline)
        for launch_month, merchants in iter_launches(segment):
            month = opp_creation_month(launch_month, rate, integration)
            opps = opps_needed(merchants, rate)
            for level in (bucket, gtm_groups[gtm_group.id], plans[plan.id], total):
                level.add(month, opps, merchants)

    for tier in skipped_tiers:
        if conversion_rates and conversion_rates.get(tier) is not None:
            logger.warning(f"Zero opp-to-close rate for {getattr(tier, 'value', tier)}; skipping its segments")
        else:
            logger.debug(f"No conversion rate for {getattr(tier, 'value', tier)}; skipping its segments")

    return FunnelResult(
        plan_funnel_data={key: b.freeze() for key, b in plans.items()},
        gtm_group_funnel_data={key: b.freeze() for key, b in gtm_groups.items()},
        segment_funnel_data={key: b.freeze() for key, b in segments.items()},
        monthly_opps_total=frozen(total.monthly_opps),
        quarterly_opps_total=dict(total.quarterly_opps),
        total_opps=total.total_opps,
        total_merchants=total.total_merchants,
    )
