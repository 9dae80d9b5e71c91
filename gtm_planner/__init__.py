from gtm_planner.funnel import FunnelData, FunnelResult, calculate_funnel_metrics
from gtm_planner.metrics import MetricsResult, RevenueBreakdown, calculate_metrics
from gtm_planner.monthly_report import (
    MonthlyReport,
    MonthlyRow,
    PlanSegmentGroupReport,
    calculate_monthly_report_data,
)

__version__ = '0.1.0'
