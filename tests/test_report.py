"""Tests for the conversion analytics report."""

from datetime import timedelta

import pytest

from chatcommerce.analytics.conversion_tracker import ConversionTracker, InteractionRecord
from chatcommerce.analytics.report import ReportBuilder, format_report
from chatcommerce.config import AnalyticsConfig
from tests.conftest import NOW


def record(score, intent="general", status=None, ids=(), total=None):
    return InteractionRecord(
        message="msg",
        response="reply",
        lead_score=score,
        intent=intent,
        order_status=status,
        product_ids=list(ids),
        order_total=total,
    )


@pytest.fixture
def journeys():
    tracker = ConversionTracker()
    browsing_at = NOW - timedelta(days=1)
    pricing_at = NOW - timedelta(days=2)
    buying_at = NOW - timedelta(days=3)

    browsing = tracker.track_interaction(None, "browsing", record(10, "greeting"), browsing_at)
    pricing = tracker.track_interaction(
        None, "pricing", record(47, "price_inquiry", ids=["p1"]), pricing_at
    )
    buying = tracker.track_interaction(None, "buying", record(50, "purchase_intent"), buying_at)
    buying = tracker.track_interaction(
        buying, "buying", record(50, status="completed", ids=["p1"], total=350),
        buying_at + timedelta(hours=2),
    )
    stale = tracker.track_interaction(
        None, "stale", record(10, "greeting"), NOW - timedelta(days=10)
    )
    return [browsing, pricing, buying, stale]


def recent(journeys):
    return journeys[:3]


class TestFunnel:
    def test_counts_and_dropoff(self, journeys):
        funnel = ReportBuilder(AnalyticsConfig()).funnel_metrics(recent(journeys))
        assert [m.count for m in funnel.values()] == [3, 2, 2, 1, 1]
        assert funnel["awareness"].dropoff == 33.33
        assert funnel["interest"].dropoff == 0.0
        assert funnel["consideration"].dropoff == 50.0
        assert funnel["purchase"].dropoff == 0.0

    def test_empty(self):
        funnel = ReportBuilder(AnalyticsConfig()).funnel_metrics([])
        assert all(m.count == 0 and m.dropoff == 0.0 for m in funnel.values())


class TestConversions:
    def test_metrics(self, journeys):
        metrics = ReportBuilder(AnalyticsConfig()).conversion_metrics(recent(journeys))
        assert metrics.total == 1
        assert metrics.rate == 33.33
        assert metrics.average_hours_to_conversion == 2
        assert metrics.average_interactions_to_conversion == 2.0
        assert metrics.value_distribution.median == 350
        assert metrics.value_distribution.average == 350

    def test_products(self, journeys):
        products = ReportBuilder(AnalyticsConfig()).product_metrics(
            recent(journeys), {"p1": "Lavender Oil"}
        )
        assert len(products) == 1
        lavender = products[0]
        assert lavender.name == "Lavender Oil"
        assert (lavender.views, lavender.inquiries, lavender.orders, lavender.conversions) == (
            2, 1, 1, 1,
        )
        assert lavender.conversion_rate == 50.0
        assert lavender.inquiry_rate == 50.0

    def test_orders_without_view_are_ignored(self, journeys):
        journey = journeys[0].model_copy(deep=True)
        journey.products.ordered = ["p9"]
        assert ReportBuilder(AnalyticsConfig()).product_metrics([journey]) == []

    def test_segments(self, journeys):
        segments = ReportBuilder(AnalyticsConfig()).segment_metrics(recent(journeys))
        assert (segments.high_value, segments.medium_value, segments.low_value) == (1, 1, 1)
        assert segments.fast_converters == 1
        assert segments.slow_converters == 0
        assert segments.single_product == 2
        assert segments.multi_product == 0


class TestRecommendations:
    def test_all_thresholds_tripped(self, journeys):
        config = AnalyticsConfig(
            dropoff_alert_pct=40,
            min_conversion_rate_pct=50,
            low_engagement_share=0.2,
            low_engagement_score=30,
            low_product_conversion_pct=60,
            min_product_views=1,
        )
        report = ReportBuilder(config).build(recent(journeys), "30d", NOW, {"p1": "Lavender Oil"})
        recs = report.recommendations
        assert [r.type for r in recs] == [
            "funnel_optimization",
            "conversion_optimization",
            "product_optimization",
            "engagement_optimization",
        ]
        assert recs[0].stage == "consideration"
        assert recs[0].issue == "High dropoff rate of 50.00% at consideration stage"
        assert recs[1].issue == "Low conversion rate of 33.33%"
        assert recs[2].issue == "1 products have low conversion rates"
        assert recs[3].issue == "1 customers have low engagement scores"
        assert recs[0].priority == "high"
        assert recs[3].priority == "medium"

    def test_dropoff_at_threshold_is_not_flagged(self, journeys):
        report = ReportBuilder(AnalyticsConfig()).build(recent(journeys), "30d", NOW)
        assert "funnel_optimization" not in [r.type for r in report.recommendations]


class TestBuild:
    def test_timeframe_filters_by_start(self, journeys):
        builder = ReportBuilder(AnalyticsConfig())
        assert builder.build(journeys, "7d", NOW).summary.total_customers == 3
        assert builder.build(journeys, "30d", NOW).summary.total_customers == 4

    def test_summary(self, journeys):
        report = ReportBuilder(AnalyticsConfig()).build(journeys, "7d", NOW)
        assert report.timeframe == "7d"
        assert report.start_date == NOW - timedelta(days=7)
        assert report.summary.total_conversions == 1
        assert report.summary.total_revenue == 350
        assert report.summary.average_hours_to_conversion == 2

    def test_daily_trends(self, journeys):
        report = ReportBuilder(AnalyticsConfig()).build(journeys, "7d", NOW)
        assert len(report.trends) == 8
        assert sum(day.new_customers for day in report.trends) == 3
        assert sum(day.conversions for day in report.trends) == 1
        assert sum(day.total_interactions for day in report.trends) == 4

    def test_unknown_timeframe_uses_thirty_days(self, journeys):
        report = ReportBuilder(AnalyticsConfig()).build(journeys, "1y", NOW)
        assert report.start_date == NOW - timedelta(days=30)


class TestFormatReport:
    def test_sections(self, journeys):
        text = format_report(ReportBuilder(AnalyticsConfig()).build(journeys, "7d", NOW))
        assert "CONVERSION ANALYTICS REPORT (7d)" in text
        for section in ("SUMMARY", "FUNNEL", "SEGMENTS", "PRODUCTS", "RECOMMENDATIONS"):
            assert section in text
        assert "350.00" in text

    def test_healthy(self):
        config = AnalyticsConfig(min_conversion_rate_pct=0)
        text = format_report(ReportBuilder(config).build([], "7d", NOW))
        assert "None, all thresholds look healthy." in text
        assert "PRODUCTS" not in text
