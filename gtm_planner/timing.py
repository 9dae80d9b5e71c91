"""
Shared month arithmetic for the metrics, funnel and monthly report engines.

All month indices are 0-based calendar months (0 = Jan, 11 = Dec) inside a
single 12-month planning year. A launch whose go-live month lands at or after
month 12 is dropped for the year; back-shifted months clamp at 0.
"""

import math
from typing import NamedTuple

import numpy as np

from gtm_planner.config import (
    DAYS_PER_MONTH,
    DECEMBER,
    FIRST_MONTH_RAMP_FACTOR,
    N_MONTHS,
    NOVEMBER,
    QUARTER_KEYS,
    QUARTERS,
)

MONTH_INDEX = np.arange(N_MONTHS)


class LaunchProjection(NamedTuple):
    go_live_month: int
    base_monthly_shipments: float
    shipments: np.ndarray
    total_shipments: float
    realized: float
    arr: float

    @property
    def in_year(self):
        return self.go_live_month < N_MONTHS


# --- Vectors ---

def zeros():
    return np.zeros(N_MONTHS)


def frozen(values):
    """Read-only float copy of a 12-month vector."""
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


def quarter_of(month):
    for quarter, months in QUARTERS.items():
        if month in months:
            return quarter
    return None


def quarter_totals(monthly):
    sums = np.asarray(monthly, dtype=float).reshape(len(QUARTER_KEYS), 3).sum(axis=1)
    return dict(zip(QUARTER_KEYS, (float(s) for s in sums)))



# --- Seasonality & integration ---

def integration_months(tier, timeline):
    days = (timeline or {}).get(tier) or 0
    if days <= 0:
        return 0
    return max(0, math.ceil(days / DAYS_PER_MONTH))


def seasonal_multipliers(tier, seasonality):
    multipliers = np.ones(N_MONTHS)
    settings = (seasonality or {}).get(tier)
    if settings is None:
        return multipliers
    multipliers[NOVEMBER] = 1 + settings.november / 100
    multipliers[DECEMBER] = 1 + settings.december / 100
    return multipliers


def annual_seasonality_factor(tier, seasonality):
    multipliers = seasonal_multipliers(tier, seasonality)
    regular_months = N_MONTHS - 2
    return regular_months + multipliers[NOVEMBER] + multipliers[DECEMBER]


# --- Traversal ---

def walk_segments(scenario):
    """Yield (plan, gtm_group, segment) in snapshot order."""
    for plan in scenario.plans:
        for gtm_group in plan.gtm_groups:
            for segment in gtm_group.segments:
                yield plan, gtm_group, segment


def iter_launches(segment):
    """Yield (launch_month, launch_count) for the months with launches."""
    for month, count in enumerate(segment.launches):
        if count > 0:
            yield month, count


# --- Per-launch projections ---

def project_launch(segment, launch_month, launch_count, rps, seasonality, timeline):
    """
    Shipments, realized revenue and ARR produced this year by one launch cohort.

    The cohort goes live integration_months() after its launch month, ships at
    half rate in the go-live month and at full rate after, with November and
    December scaled by the tier's seasonality. ARR is the ramp-independent
    annualized run rate and is only booked for cohorts live within the year.
    """
    tier = segment.segment_type
    go_live = launch_month + integration_months(tier, timeline)
    base = launch_count * segment.spm

    if go_live >= N_MONTHS:
        return LaunchProjection(go_live, base, zeros(), 0.0, 0.0, 0.0)

    ramp = np.where(MONTH_INDEX == go_live, FIRST_MONTH_RAMP_FACTOR, 1.0)
    shipments = np.where(MONTH_INDEX >= go_live, base * ramp * seasonal_multipliers(tier, seasonality), 0.0)
    total = float(shipments.sum())
    arr = base * rps * annual_seasonality_factor(tier, seasonality)

    return LaunchProjection(go_live, base, shipments, total, total * rps, float(arr))


def months_back(avg_days_to_close):
    # half-up, matching the planner's spreadsheet rounding
    return max(0, math.floor(avg_days_to_close / DAYS_PER_MONTH + 0.5))


def opp_creation_month(launch_month, rate, integration):
    close_month = max(0, launch_month - integration)
    return max(0, close_month - months_back(rate.avg_days_to_close))


def opps_needed(merchants, rate):
    return math.ceil(merchants * 100 / rate.opp_to_close_pct)


def usable_rate(rates, tier):
    """Conversion rate for a tier, or None when the tier cannot be reverse-engineered."""
    rate = (rates or {}).get(tier)
    if rate is None or rate.opp_to_close_pct <= 0:
        return None
    return rate
