import json
import logging
import math
import os

from gtm_planner.models import ConversionRate, ScenarioSettings, Seasonality, SegmentTier

logger = logging.getLogger(__name__)

# --- Calendar ---

MONTHS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']
N_MONTHS = 12

QUARTERS = {
    'Q1': (0, 1, 2),
    'Q2': (3, 4, 5),
    'Q3': (6, 7, 8),
    'Q4': (9, 10, 11),
}
QUARTER_KEYS = tuple(QUARTERS)

NOVEMBER = 10
DECEMBER = 11

# --- Model assumptions ---

FIRST_MONTH_RAMP_FACTOR = 0.5
DAYS_PER_MONTH = 30

DEFAULT_RPS = 40
DEFAULT_TARGET_SHIPMENTS = 400_000

DEFAULT_CONVERSION_RATES = {
    SegmentTier.SMB:      ConversionRate(opp_to_close_pct=25, avg_days_to_close=60),
    SegmentTier.MM:       ConversionRate(opp_to_close_pct=20, avg_days_to_close=90),
    SegmentTier.ENT:      ConversionRate(opp_to_close_pct=20, avg_days_to_close=120),
    SegmentTier.ENT_PLUS: ConversionRate(opp_to_close_pct=10, avg_days_to_close=180),
    SegmentTier.FLAGSHIP: ConversionRate(opp_to_close_pct=10, avg_days_to_close=180),
}

CONVERSION_RATE_COLUMNS = ['segment_type', 'opp_to_close_pct', 'avg_days_to_close']


# --- Settings ---

def create_default_settings():
    return ScenarioSettings(
        seasonality={tier: Seasonality() for tier in SegmentTier},
        integration_timeline_days={tier: 0 for tier in SegmentTier},
    )


def _to_number(value, default=0.0):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


def normalize_settings(raw):
    """
    Build ScenarioSettings from the persisted settings blob.

    Missing tiers fall back to the defaults, unparseable numbers become 0,
    and integration delays are floored at 0 days.
    """
    raw = raw or {}
    seasonality_raw = raw.get('seasonality') or {}
    timeline_raw = raw.get('integrationTimelineDays') or raw.get('integration_timeline_days') or {}

    seasonality = {}
    timeline = {}
    for tier in SegmentTier:
        tier_season = seasonality_raw.get(tier.value) or {}
        seasonality[tier] = Seasonality(
            november=_to_number(tier_season.get('november')),
            december=_to_number(tier_season.get('december')),
        )
        timeline[tier] = max(0, int(_to_number(timeline_raw.get(tier.value))))

    unknown = set(seasonality_raw) | set(timeline_raw)
    unknown -= {tier.value for tier in SegmentTier}
    if unknown:
        logger.warning(f"Ignoring settings for unknown segment tiers: {sorted(unknown)}")

    return ScenarioSettings(seasonality=seasonality, integration_timeline_days=timeline)


def settings_to_dict(settings):
    return {
        'seasonality': {
            SegmentTier(tier).value: {'november': s.november, 'december': s.december}
            for tier, s in settings.seasonality.items()
        },
        'integrationTimelineDays': {
            SegmentTier(tier).value: days for tier, days in settings.integration_timeline_days.items()
        },
    }


# --- Conversion rates ---

def conversion_rates_from_records(rows):
    """Map conversion_rates table rows to {tier: ConversionRate}; later rows win."""
    rates = {}
    for row in rows:
        missing = set(CONVERSION_RATE_COLUMNS) - set(row)
        if missing:
            raise ValueError(f"Conversion rate row missing columns: {sorted(missing)}")
        tier = SegmentTier(row['segment_type'])
        rates[tier] = ConversionRate(
            opp_to_close_pct=float(row['opp_to_close_pct']),
            avg_days_to_close=int(row['avg_days_to_close']),
        )
    return rates


# --- Export config ---

def export_assumptions(path, rps, target_shipments, conversion_rates, settings):
    config = {
        'RPS': rps,
        'TARGET_SHIPMENTS': target_shipments,
        'FIRST_MONTH_RAMP_FACTOR': FIRST_MONTH_RAMP_FACTOR,
        'DAYS_PER_MONTH': DAYS_PER_MONTH,
        'CONVERSION_RATES': {
            SegmentTier(tier).value: {
                'oppToClose': rate.opp_to_close_pct,
                'avgDaysToClose': rate.avg_days_to_close,
            }
            for tier, rate in conversion_rates.items()
        },
        'SETTINGS': settings_to_dict(settings),
    }
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(config, f, indent=4)
    return config
