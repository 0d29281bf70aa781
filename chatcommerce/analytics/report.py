"""
On-demand conversion analytics over stored customer journeys.

Aggregates funnel counts with stage-to-stage drop-off, conversion and
product metrics, customer segments and daily trends, then applies
threshold rules to produce advisory recommendations.

Usage:
    report = ReportBuilder(settings.analytics).build(store.list_journeys(), "7d", now)
    print(format_report(report))
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from chatcommerce.config import AnalyticsConfig
from chatcommerce.schemas.journey_schema import FUNNEL_ORDER, CustomerJourney, JourneyStatus

logger = logging.getLogger(__name__)

TIMEFRAME_DAYS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_TIMEFRAME_DAYS = 30
FAST_CONVERSION_SECONDS = 24 * 60 * 60
HIGH_VALUE_ENGAGEMENT = 80
MEDIUM_VALUE_ENGAGEMENT = 50


@dataclass
class FunnelStageMetrics:
    count: int = 0
    dropoff: float = 0.0  # percent lost before the next stage


@dataclass
class ValueDistribution:
    min: float = 0.0
    max: float = 0.0
    median: float = 0.0
    average: float = 0.0


@dataclass
class ConversionMetrics:
    total: int = 0
    rate: float = 0.0
    average_hours_to_conversion: int = 0
    average_interactions_to_conversion: float = 0.0
    value_distribution: ValueDistribution = field(default_factory=ValueDistribution)


@dataclass
class ProductMetrics:
    product_id: str
    name: str
    views: int = 0
    inquiries: int = 0
    orders: int = 0
    conversions: int = 0
    conversion_rate: float = 0.0
    inquiry_rate: float = 0.0


@dataclass
class SegmentMetrics:
    high_value: int = 0
    medium_value: int = 0
    low_value: int = 0
    fast_converters: int = 0
    slow_converters: int = 0
    multi_product: int = 0
    single_product: int = 0


@dataclass
class DailyTrend:
    day: date
    new_customers: int = 0
    conversions: int = 0
    total_interactions: int = 0
    average_lead_score: float = 0.0


@dataclass
class Recommendation:
    type: str
    priority: str
    issue: str
    suggestion: str
    stage: Optional[str] = None


@dataclass
class ReportSummary:
    total_customers: int = 0
    total_conversions: int = 0
    conversion_rate: float = 0.0
    average_hours_to_conversion: int = 0
    total_revenue: float = 0.0
    average_engagement_score: float = 0.0


@dataclass
class AnalyticsReport:
    timeframe: str
    start_date: datetime
    end_date: datetime
    summary: ReportSummary
    funnel: dict[str, FunnelStageMetrics]
    conversions: ConversionMetrics
    products: list[ProductMetrics]
    segments: SegmentMetrics
    trends: list[DailyTrend]
    recommendations: list[Recommendation]


RECOMMENDATION_TEMPLATES: dict[str, dict[str, str]] = {
    "funnel_optimization": {
        "priority": "high",
        "issue": "High dropoff rate of {value:.2f}% at {stage} stage",
        "suggestion": (
            "Focus on improving messaging and engagement strategies for customers "
            "in the {stage} stage"
        ),
    },
    "conversion_optimization": {
        "priority": "high",
        "issue": "Low conversion rate of {value:.2f}%",
        "suggestion": (
            "Implement more aggressive follow-up strategies and personalized offers "
            "for high-scoring leads"
        ),
    },
    "product_optimization": {
        "priority": "medium",
        "issue": "{value:.0f} products have low conversion rates",
        "suggestion": (
            "Review pricing, descriptions, and marketing strategies for underperforming products"
        ),
    },
    "engagement_optimization": {
        "priority": "medium",
        "issue": "{value:.0f} customers have low engagement scores",
        "suggestion": (
            "Implement more interactive content and personalized messaging to increase engagement"
        ),
    },
}


def _recommend(kind: str, value: float, stage: Optional[str] = None) -> Recommendation:
    template = RECOMMENDATION_TEMPLATES[kind]
    return Recommendation(
        type=kind,
        priority=template["priority"],
        issue=template["issue"].format(value=value, stage=stage),
        suggestion=template["suggestion"].format(stage=stage),
        stage=stage,
    )


def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def _converted(journeys: list[CustomerJourney]) -> list[CustomerJourney]:
    return [j for j in journeys if j.status == JourneyStatus.CONVERTED]


def average_hours_to_conversion(journeys: list[CustomerJourney]) -> int:
    times = [
        j.metrics.time_to_conversion
        for j in _converted(journeys)
        if j.metrics.time_to_conversion
    ]
    if not times:
        return 0
    return round(sum(times) / len(times) / 3600)


class ReportBuilder:
    """Builds AnalyticsReport instances with thresholds from AnalyticsConfig."""

    def __init__(self, config: AnalyticsConfig) -> None:
        self.config = config

    def funnel_metrics(self, journeys: list[CustomerJourney]) -> dict[str, FunnelStageMetrics]:
        funnel = {stage.value: FunnelStageMetrics() for stage in FUNNEL_ORDER}
        for journey in journeys:
            for stage in FUNNEL_ORDER:
                entry = journey.funnel.get(stage)
                if entry is not None and entry.reached:
                    funnel[stage.value].count += 1

        for current, following in zip(FUNNEL_ORDER, FUNNEL_ORDER[1:]):
            here = funnel[current.value].count
            if here:
                funnel[current.value].dropoff = _pct(here - funnel[following.value].count, here)
        return funnel

    def conversion_metrics(self, journeys: list[CustomerJourney]) -> ConversionMetrics:
        converted = _converted(journeys)
        values = sorted(j.metrics.conversion_value for j in converted)
        distribution = ValueDistribution()
        if values:
            distribution = ValueDistribution(
                min=values[0],
                max=values[-1],
                median=values[len(values) // 2],
                average=round(statistics.fmean(values), 2),
            )
        interactions = [j.metrics.total_interactions for j in converted]
        return ConversionMetrics(
            total=len(converted),
            rate=_pct(len(converted), len(journeys)),
            average_hours_to_conversion=average_hours_to_conversion(converted),
            average_interactions_to_conversion=(
                round(statistics.fmean(interactions), 1) if interactions else 0.0
            ),
            value_distribution=distribution,
        )

    def product_metrics(
        self,
        journeys: list[CustomerJourney],
        product_names: Optional[dict[str, str]] = None,
    ) -> list[ProductMetrics]:
        names = product_names or {}
        stats: dict[str, ProductMetrics] = {}
        for journey in journeys:
            for pid in journey.products.viewed:
                stats.setdefault(pid, ProductMetrics(product_id=pid, name=names.get(pid, pid)))
                stats[pid].views += 1
            for pid in journey.products.inquired:
                if pid in stats:
                    stats[pid].inquiries += 1
            for pid in journey.products.ordered:
                if pid in stats:
                    stats[pid].orders += 1
                    if journey.status == JourneyStatus.CONVERTED:
                        stats[pid].conversions += 1

        for metrics in stats.values():
            metrics.conversion_rate = _pct(metrics.conversions, metrics.views)
            metrics.inquiry_rate = _pct(metrics.inquiries, metrics.views)
        return sorted(stats.values(), key=lambda m: m.conversions, reverse=True)

    def segment_metrics(self, journeys: list[CustomerJourney]) -> SegmentMetrics:
        segments = SegmentMetrics()
        for journey in journeys:
            engagement = journey.metrics.engagement_score
            if engagement >= HIGH_VALUE_ENGAGEMENT:
                segments.high_value += 1
            elif engagement >= MEDIUM_VALUE_ENGAGEMENT:
                segments.medium_value += 1
            else:
                segments.low_value += 1

            elapsed = journey.metrics.time_to_conversion
            if journey.status == JourneyStatus.CONVERTED and elapsed is not None:
                if elapsed <= FAST_CONVERSION_SECONDS:
                    segments.fast_converters += 1
                else:
                    segments.slow_converters += 1

            viewed = len(journey.products.viewed)
            if viewed > 1:
                segments.multi_product += 1
            elif viewed == 1:
                segments.single_product += 1
        return segments

    def trend_metrics(
        self, journeys: list[CustomerJourney], start: datetime, end: datetime
    ) -> list[DailyTrend]:
        buckets: dict[date, DailyTrend] = {}
        day = start.date()
        while day <= end.date():
            buckets[day] = DailyTrend(day=day)
            day += timedelta(days=1)

        scores: dict[date, list[int]] = {d: [] for d in buckets}
        for journey in journeys:
            started = journey.start_date.date()
            if started in buckets:
                buckets[started].new_customers += 1
            purchase = journey.funnel.get(FUNNEL_ORDER[-1])
            if journey.status == JourneyStatus.CONVERTED and purchase and purchase.timestamp:
                converted_on = purchase.timestamp.date()
                if converted_on in buckets:
                    buckets[converted_on].conversions += 1
            for interaction in journey.interactions:
                on = interaction.timestamp.date()
                if on in buckets:
                    buckets[on].total_interactions += 1
                    scores[on].append(interaction.lead_score)

        for on, values in scores.items():
            if values:
                buckets[on].average_lead_score = round(statistics.fmean(values), 1)
        return list(buckets.values())

    def recommendations(
        self,
        journeys: list[CustomerJourney],
        funnel: dict[str, FunnelStageMetrics],
        conversions: ConversionMetrics,
        products: list[ProductMetrics],
    ) -> list[Recommendation]:
        cfg = self.config
        found = []

        candidates = [(stage, m) for stage, m in funnel.items() if stage != FUNNEL_ORDER[-1].value]
        if candidates:
            stage, worst = max(candidates, key=lambda item: item[1].dropoff)
            if worst.dropoff > cfg.dropoff_alert_pct:
                found.append(_recommend("funnel_optimization", worst.dropoff, stage))

        if conversions.rate < cfg.min_conversion_rate_pct:
            found.append(_recommend("conversion_optimization", conversions.rate))

        weak = [
            p for p in products
            if p.conversion_rate < cfg.low_product_conversion_pct and p.views > cfg.min_product_views
        ]
        if weak:
            found.append(_recommend("product_optimization", len(weak)))

        low = sum(1 for j in journeys if j.metrics.engagement_score < cfg.low_engagement_score)
        if low > len(journeys) * cfg.low_engagement_share:
            found.append(_recommend("engagement_optimization", low))
        return found

    def build(
        self,
        journeys: list[CustomerJourney],
        timeframe: Optional[str] = None,
        now: Optional[datetime] = None,
        product_names: Optional[dict[str, str]] = None,
    ) -> AnalyticsReport:
        timeframe = timeframe or self.config.default_timeframe
        end = now or datetime.now().astimezone()
        start = end - timedelta(days=TIMEFRAME_DAYS.get(timeframe, DEFAULT_TIMEFRAME_DAYS))
        selected = [j for j in journeys if j.start_date >= start]

        funnel = self.funnel_metrics(selected)
        conversions = self.conversion_metrics(selected)
        products = self.product_metrics(selected, product_names)
        converted = _converted(selected)
        engagement = [j.metrics.engagement_score for j in selected]

        summary = ReportSummary(
            total_customers=len(selected),
            total_conversions=len(converted),
            conversion_rate=conversions.rate,
            average_hours_to_conversion=average_hours_to_conversion(selected),
            total_revenue=sum(j.metrics.conversion_value for j in converted),
            average_engagement_score=round(statistics.fmean(engagement), 1) if engagement else 0.0,
        )
        logger.info(
            "Analytics report (%s): %d customers, %d conversions",
            timeframe, summary.total_customers, summary.total_conversions,
        )
        return AnalyticsReport(
            timeframe=timeframe,
            start_date=start,
            end_date=end,
            summary=summary,
            funnel=funnel,
            conversions=conversions,
            products=products,
            segments=self.segment_metrics(selected),
            trends=self.trend_metrics(selected, start, end),
            recommendations=self.recommendations(selected, funnel, conversions, products),
        )


def format_report(report: AnalyticsReport) -> str:
    """Format a report into a human-readable text block."""
    s = report.summary
    lines = [
        "=" * 60,
        f"CONVERSION ANALYTICS REPORT ({report.timeframe})",
        f"{report.start_date:%Y-%m-%d} to {report.end_date:%Y-%m-%d}",
        "=" * 60,
        "",
        "SUMMARY",
        f"  Customers:              {s.total_customers}",
        f"  Conversions:            {s.total_conversions}",
        f"  Conversion rate:        {s.conversion_rate:.2f}%",
        f"  Avg time to convert:    {s.average_hours_to_conversion}h",
        f"  Total revenue:          {s.total_revenue:,.2f}",
        f"  Avg engagement score:   {s.average_engagement_score:.1f}",
        "",
        "FUNNEL",
    ]
    for stage, metrics in report.funnel.items():
        lines.append(f"  {stage:<14}{metrics.count:>6}   dropoff {metrics.dropoff:.2f}%")

    segments = report.segments
    lines += [
        "",
        "SEGMENTS",
        f"  Engagement high/medium/low: {segments.high_value}/{segments.medium_value}/{segments.low_value}",
        f"  Fast/slow converters:       {segments.fast_converters}/{segments.slow_converters}",
        f"  Multi/single product:       {segments.multi_product}/{segments.single_product}",
    ]

    if report.products:
        lines += ["", "PRODUCTS"]
        for product in report.products:
            lines.append(
                f"  {product.name:<24} views {product.views:>4}  "
                f"conversions {product.conversions:>4}  rate {product.conversion_rate:.2f}%"
            )

    lines += ["", "RECOMMENDATIONS"]
    if report.recommendations:
        for rec in report.recommendations:
            lines.append(f"  [{rec.priority.upper()}] {rec.issue}")
            lines.append(f"      {rec.suggestion}")
    else:
        lines.append("  None, all thresholds look healthy.")
    lines.append("=" * 60)
    return "\n".join(lines)
