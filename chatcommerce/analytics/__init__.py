from chatcommerce.analytics.conversion_tracker import (
    ConversionTracker,
    InteractionRecord,
    RealTimeMetrics,
    calculate_engagement_score,
    determine_funnel_stage,
)
from chatcommerce.analytics.report import AnalyticsReport, ReportBuilder, format_report

__all__ = [
    "ConversionTracker", "InteractionRecord", "RealTimeMetrics",
    "calculate_engagement_score", "determine_funnel_stage",
    "AnalyticsReport", "ReportBuilder", "format_report",
]
