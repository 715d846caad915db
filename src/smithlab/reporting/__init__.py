"""
Reporting views over simulated ledgers: DataFrames, chart series, summary
metrics and the tax audit trail.
"""

from .audit import CSV_HEADERS, AuditTrail
from .frame import comparison_frame, ledger_frame, scenario_frames
from .series import ChartSeriesBuilder, to_points
from .summary import SummaryMetrics, payoff_month, summary_metrics

__all__ = [
    "AuditTrail",
    "CSV_HEADERS",
    "ChartSeriesBuilder",
    "SummaryMetrics",
    "comparison_frame",
    "ledger_frame",
    "payoff_month",
    "scenario_frames",
    "summary_metrics",
    "to_points",
]
