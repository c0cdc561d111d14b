"""
Analytics Report - One pass over a user's records

Runs every analytics component over a RecordBundle and returns a single
plain structure:

    RecordBundle
    ├── funnel, breakdowns, average times, time investment, predictions
    ├── correlations (prep, mock, research, checklist)
    ├── patterns (days, industries, company sizes)
    ├── forecast (three milestones)
    ├── scenarios (default strategies)
    └── recommendations

Each component is timed into `insights_computation_seconds` by the caller
through the `timings` dict, so this module stays free of web concerns.

Usage:
    bundle = load_bundle(payload)
    report = build_report(bundle, now=now)
    report.to_dict()
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional

from insights.config import get_settings
from insights.schemas.records import RecordBundle
from insights.services import aggregator, correlation, patterns
from insights.services.forecast import Forecast, forecast_inputs, forecast_milestones
from insights.services.patterns import Bucket
from insights.services.recommendations import (
    CorrelationSummary,
    MetricSummary,
    PatternSummary,
    Recommendation,
    generate,
)
from insights.services.scenarios import FunnelRates, Scenario, compare_strategies

logger = logging.getLogger(__name__)


@dataclass
class AnalyticsReport:
    generated_at: datetime
    funnel: aggregator.FunnelMetrics
    breakdowns: Dict[str, Dict]
    average_times: aggregator.AverageTimes
    time_investment: aggregator.TimeInvestment
    prediction_accuracy: aggregator.PredictionAccuracy
    correlations: CorrelationSummary
    patterns: PatternSummary
    company_sizes: List[Bucket]
    forecast: Forecast
    scenarios: List[Scenario]
    recommendations: List[Recommendation]
    skipped_records: int = 0
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.funnel.total == 0 and self.funnel.total_interviews == 0

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at.isoformat(),
            "funnel": self.funnel.to_dict(),
            "breakdowns": self.breakdowns,
            "average_times": self.average_times.to_dict(),
            "time_investment": self.time_investment.to_dict(),
            "prediction_accuracy": self.prediction_accuracy.to_dict(),
            "correlations": {
                "preparation": self.correlations.prep.to_dict(),
                "mock_interviews": self.correlations.mock.to_dict(),
                "research": self.correlations.research.to_dict(),
                "checklists": self.correlations.checklist.to_dict(),
            },
            "patterns": {
                "best_days": [b.to_dict() for b in self.patterns.best_days],
                "best_industries": [b.to_dict() for b in self.patterns.best_industries],
                "best_company_sizes": [b.to_dict() for b in self.company_sizes],
                "industry_offers": self.patterns.industry_offers,
            },
            "forecast": self.forecast.to_dict(),
            "scenarios": [s.to_dict() for s in self.scenarios],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "skipped_records": self.skipped_records,
        }


@contextmanager
def _timed(timings: Dict[str, float], component: str) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        timings[component] = timings.get(component, 0.0) + time.perf_counter() - start


def build_report(
    bundle: RecordBundle,
    now: Optional[datetime] = None,
    recommendation_limit: Optional[int] = None,
) -> AnalyticsReport:
    """
    Compute the full analytics report for one user's records.

    Args:
        bundle: Validated records
        now: Reference time for "upcoming", pace and forecast dates
        recommendation_limit: Cap on recommendations (default: settings, 0 = all)

    Returns:
        AnalyticsReport; deterministic for identical bundle and now
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    if recommendation_limit is None:
        recommendation_limit = settings.report_recommendation_limit

    apps = bundle.applications
    interviews = bundle.interviews
    timings: Dict[str, float] = {}

    with _timed(timings, "funnel"):
        funnel = aggregator.compute_funnel(apps, interviews, now=now)
        breakdowns = {
            "status": aggregator.status_breakdown(apps),
            "company": aggregator.sort_breakdown(aggregator.company_breakdown(apps)),
            "industry": aggregator.sort_breakdown(aggregator.industry_breakdown(apps)),
            "role": aggregator.sort_breakdown(aggregator.role_breakdown(apps)),
            "interview_stage": aggregator.stage_breakdown(interviews),
            "monthly": aggregator.monthly_breakdown(apps),
        }
        average_times = aggregator.compute_average_times(apps, interviews)
        investment = aggregator.time_investment(bundle.time_entries, apps)
        accuracy = aggregator.prediction_accuracy(bundle.predictions, interviews)

    with _timed(timings, "correlation"):
        correlations = CorrelationSummary(
            prep=correlation.prep_correlation(interviews, bundle.time_entries),
            mock=correlation.mock_correlation(interviews, bundle.time_entries),
            research=correlation.research_correlation(apps, bundle.research),
            checklist=correlation.checklist_correlation(apps, bundle.checklists),
        )

    with _timed(timings, "patterns"):
        pattern_summary = PatternSummary(
            best_days=patterns.best_days(apps),
            best_industries=patterns.best_industries(apps),
            industry_offers=aggregator.offers_by_dimension(apps, patterns.industry),
        )
        company_sizes = patterns.best_company_sizes(apps)

    with _timed(timings, "forecast"):
        inputs = forecast_inputs(apps, interviews, now=now)
        forecast = forecast_milestones(
            inputs.historical_averages,
            inputs.applications_per_week,
            inputs.conversion_rates,
            now=now,
        )

    with _timed(timings, "scenarios"):
        rates = inputs.conversion_rates
        scenarios = compare_strategies(
            inputs.applications_per_week,
            FunnelRates(rates.response, rates.interview, rates.offer),
        )

    with _timed(timings, "recommendations"):
        recommendations = generate(
            MetricSummary(funnel=funnel, applications_per_week=inputs.applications_per_week),
            correlations,
            pattern_summary,
            limit=recommendation_limit,
        )

    logger.info(
        f"Report built: {funnel.total} applications, {funnel.total_interviews} interviews, "
        f"{len(recommendations)} recommendations, {bundle.skipped} skipped records"
    )

    return AnalyticsReport(
        generated_at=now,
        funnel=funnel,
        breakdowns=breakdowns,
        average_times=average_times,
        time_investment=investment,
        prediction_accuracy=accuracy,
        correlations=correlations,
        patterns=pattern_summary,
        company_sizes=company_sizes,
        forecast=forecast,
        scenarios=scenarios,
        recommendations=recommendations,
        skipped_records=bundle.skipped,
        timings=timings,
    )
