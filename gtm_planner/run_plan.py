import argparse
import json
import logging
import os

from gtm_planner.breakdowns import metrics_summary_frame
from gtm_planner.config import (
    DEFAULT_CONVERSION_RATES,
    conversion_rates_from_records,
    export_assumptions,
)
from gtm_planner.funnel import calculate_funnel_metrics
from gtm_planner.metrics import calculate_metrics
from gtm_planner.monthly_report import calculate_monthly_report_data
from gtm_planner.snapshot import scenario_from_records

logger = logging.getLogger(__name__)

GOAL_WARNING_PCT = 100


# --- Logging setup ---

def setup_logging(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def format_currency_m(x):
    if x is None or x == 0:
        return "$0.00M"
    return f"${x / 1_000_000:,.2f}M"


# --- Loading ---

def load_scenario(path):
    """Read a persisted scenario record (optionally with conversion_rates rows)."""
    with open(path) as f:
        payload = json.load(f)

    record = payload.get('scenario', payload)
    scenario = scenario_from_records(record)

    rows = payload.get('conversion_rates')
    rates = conversion_rates_from_records(rows) if rows else dict(DEFAULT_CONVERSION_RATES)
    return scenario, rates


# --- Main ---

def run_plan(path, rps=None, target_shipments=None, export_dir=None):
    scenario, rates = load_scenario(path)
    rps = scenario.rps if rps is None else rps
    target = scenario.target_shipments if target_shipments is None else target_shipments
    seasonality = scenario.settings.seasonality
    timeline = scenario.settings.integration_timeline_days

    metrics = calculate_metrics(scenario, rps, target, seasonality, timeline)
    funnel = calculate_funnel_metrics(scenario, rates, timeline)
    report = calculate_monthly_report_data(scenario, rps, rates, seasonality, timeline)

    logger.info(
        f"{scenario.name}: {metrics.total_shipments:,.0f} shipments, "
        f"realized {format_currency_m(metrics.realized_revenue)}, ARR {format_currency_m(metrics.annualized_run_rate)}"
    )
    for _, row in metrics_summary_frame(scenario, metrics).iterrows():
        logger.info(
            f"  {row['plan_type']:<8} {row['shipments']:>12,.0f} shipments | "
            f"realized {format_currency_m(row['realized_revenue'])} | ARR {format_currency_m(row['arr'])}"
        )
    logger.info(f"Goal: {target:,.0f} shipments ({metrics.percentage_to_goal:.1f}% to goal)")
    logger.info(f"Funnel: {funnel.total_opps:,} opportunities for {funnel.total_merchants:,} merchants")

    for table in report.reports:
        year_end = table.monthly_data[-1]
        logger.debug(
            f"  {table.plan_type.value} / {table.segment_group.value}: "
            f"revenue {format_currency_m(year_end.cumulative_revenue)}, ARR added {format_currency_m(year_end.cumulative_arr)}"
        )

    if target > 0 and metrics.percentage_to_goal < GOAL_WARNING_PCT:
        logger.warning(f"Plan is {metrics.shortfall:,.0f} shipments short of goal.")

    if export_dir:
        export_assumptions(
            os.path.join(export_dir, 'assumptions.json'),
            rps, target, rates, scenario.settings,
        )
        logger.info(f"Assumptions written to {export_dir}")

    return metrics, funnel, report


def main(argv=None):
    parser = argparse.ArgumentParser(description='Project shipments, revenue and funnel needs for a GTM plan.')
    parser.add_argument('scenario', help='path to a scenario JSON record')
    parser.add_argument('--rps', type=float, help='override revenue per shipment')
    parser.add_argument('--target', type=float, help='override target shipments')
    parser.add_argument('--export-dir', help='directory for the assumptions JSON')
    parser.add_argument('--verbose', action='store_true')
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    try:
        run_plan(args.scenario, rps=args.rps, target_shipments=args.target, export_dir=args.export_dir)
    except (ValueError, FileNotFoundError) as e:
        logger.error(f"Could not run plan: {e}")
        raise


if __name__ == "__main__":
    main()
